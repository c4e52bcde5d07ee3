from collections.abc import Callable

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

SEVERITIES = ['Critical', 'High', 'Medium', 'Low', 'Negligible', 'Unknown']


class GrypeVulnerability(BaseModel):
    id: str = ''
    severity: str = 'Unknown'
    data_source: str = Field(alias='dataSource', default='')
    description: str | None = None

    model_config = ConfigDict(extra='ignore', populate_by_name=True)


class GrypeArtifact(BaseModel):
    name: str = ''
    version: str = ''
    type: str = ''
    purl: str | None = None

    model_config = ConfigDict(extra='ignore')


class GrypeMatch(BaseModel):
    vulnerability: GrypeVulnerability = Field(default_factory=GrypeVulnerability)
    artifact: GrypeArtifact = Field(default_factory=GrypeArtifact)

    model_config = ConfigDict(extra='ignore')


class GrypeDescriptor(BaseModel):
    name: str = ''
    version: str = ''

    model_config = ConfigDict(extra='ignore')


class GrypeReport(BaseModel):
    """A `grype -o json` document."""
    matches: list[GrypeMatch] = Field(default_factory=list)
    descriptor: GrypeDescriptor = Field(default_factory=GrypeDescriptor)

    model_config = ConfigDict(extra='ignore')

    def remove_matches(self, predicate: Callable[[GrypeMatch], bool]) -> list[GrypeMatch]:
        """Drop every match the predicate selects, returning the dropped ones."""
        kept, removed = [], []
        for match in self.matches:
            (removed if predicate(match) else kept).append(match)
        self.matches = kept
        return removed

    def vulnerability_ids(self) -> list[str]:
        return [m.vulnerability.id for m in self.matches]
