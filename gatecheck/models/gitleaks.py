from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import RootModel


class GitleaksFinding(BaseModel):
    rule_id: str = Field(alias='RuleID', default='')
    file: str = Field(alias='File', default='')
    secret: str = Field(alias='Secret', default='')
    commit: str = Field(alias='Commit', default='')
    description: str = Field(alias='Description', default='')
    start_line: int = Field(alias='StartLine', default=0)

    model_config = ConfigDict(extra='ignore', populate_by_name=True)


class GitleaksReport(RootModel[list[GitleaksFinding]]):
    """Gitleaks writes a bare JSON array of findings."""

    def __iter__(self):
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)
