from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

SEVERITIES = ['ERROR', 'WARNING', 'INFO']


class SemgrepPosition(BaseModel):
    line: int = 0
    col: int = 0

    model_config = ConfigDict(extra='ignore')


class SemgrepExtra(BaseModel):
    severity: str = 'INFO'
    message: str = ''
    metadata: dict[str, Any] | None = None

    model_config = ConfigDict(extra='ignore')


class SemgrepResult(BaseModel):
    check_id: str = ''
    path: str = ''
    start: SemgrepPosition = Field(default_factory=SemgrepPosition)
    extra: SemgrepExtra = Field(default_factory=SemgrepExtra)

    model_config = ConfigDict(extra='ignore')

    @property
    def shortlink(self) -> str:
        return str((self.extra.metadata or {}).get('shortlink', ''))

    @property
    def cwe(self) -> str:
        cwe = (self.extra.metadata or {}).get('cwe', '')
        if isinstance(cwe, list):
            return ', '.join(str(c) for c in cwe)
        return str(cwe)


class SemgrepPaths(BaseModel):
    scanned: list[str] | None = None

    model_config = ConfigDict(extra='ignore')


class SemgrepReport(BaseModel):
    """A `semgrep scan --json` document.

    The three collections stay nullable so the structural check can tell
    "absent" apart from "present but empty".
    """
    results: list[SemgrepResult] | None = None
    errors: list[dict[str, Any]] | None = None
    paths: SemgrepPaths = Field(default_factory=SemgrepPaths)

    model_config = ConfigDict(extra='ignore')
