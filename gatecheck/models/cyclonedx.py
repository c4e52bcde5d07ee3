from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

SEVERITIES = ['critical', 'high', 'medium', 'low', 'info', 'none', 'unknown']


class CycloneDXComponent(BaseModel):
    bom_ref: str | None = Field(alias='bom-ref', default=None)
    name: str = ''
    version: str = ''
    type: str = ''
    purl: str | None = None

    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    @property
    def ref(self) -> str:
        if self.bom_ref:
            return self.bom_ref
        return f"{self.name}@{self.version}" if self.version else self.name


class CycloneDXRating(BaseModel):
    severity: str | None = None

    model_config = ConfigDict(extra='ignore')


class CycloneDXAffects(BaseModel):
    ref: str = ''

    model_config = ConfigDict(extra='ignore')


class CycloneDXVulnerability(BaseModel):
    id: str = ''
    ratings: list[CycloneDXRating] = Field(default_factory=list)
    affects: list[CycloneDXAffects] = Field(default_factory=list)
    description: str | None = None

    model_config = ConfigDict(extra='ignore')

    @property
    def severity(self) -> str:
        """Highest-ranked rating, or 'unknown' if the vulnerability has none."""
        ranks = [
            SEVERITIES.index(s)
            for s in (r.severity.lower() for r in self.ratings if r.severity)
            if s in SEVERITIES
        ]
        return SEVERITIES[min(ranks)] if ranks else 'unknown'


class CycloneDXReport(BaseModel):
    """A CycloneDX JSON SBOM, optionally carrying vulnerability records."""
    bom_format: str = Field(alias='bomFormat', default='')
    spec_version: str = Field(alias='specVersion', default='')
    components: list[CycloneDXComponent] = Field(default_factory=list)
    vulnerabilities: list[CycloneDXVulnerability] = Field(default_factory=list)

    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    def component_for(self, ref: str) -> CycloneDXComponent | None:
        for component in self.components:
            if component.ref == ref:
                return component
        return None

    def shim_components_as_vulnerabilities(self) -> 'CycloneDXReport':
        """
        Return a copy in which every component without a vulnerability record
        gains a synthetic 'none' severity vulnerability, so that plain
        components can be counted by the policy engine like findings.
        """
        referenced = {a.ref for v in self.vulnerabilities for a in v.affects}
        shimmed = self.model_copy(deep=True)
        for component in self.components:
            if component.ref in referenced:
                continue
            shimmed.vulnerabilities.append(
                CycloneDXVulnerability(
                    id=component.ref,
                    ratings=[CycloneDXRating(severity='none')],
                    affects=[CycloneDXAffects(ref=component.ref)],
                    description='Component with no associated vulnerability',
                ),
            )
        return shimmed
