from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator
from pydantic import model_validator

SUPPORTED_CONFIG_VERSION = '1'


class ListItem(BaseModel):
    """A finding identifier on an allow or deny list, with the reason it is there."""
    id: str
    reason: str = ''

    model_config = ConfigDict(extra='ignore')

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return '' if v is None else str(v)


class FamilyConfig(BaseModel):
    """Settings shared by every scanner family section."""
    required: bool = False

    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    def ceilings(self) -> dict[str, int]:
        return {}


class ListConfig(FamilyConfig):
    allow_list: list[ListItem] = Field(alias='allowList', default_factory=list)
    deny_list: list[ListItem] = Field(alias='denyList', default_factory=list)

    @field_validator('allow_list', 'deny_list', mode='before')
    @classmethod
    def none_is_empty(cls, v: Any) -> Any:
        return v or []

    def allowed_reason(self, finding_id: str) -> str | None:
        for item in self.allow_list:
            if item.id == finding_id:
                return item.reason
        return None

    def denied_reason(self, finding_id: str) -> str | None:
        for item in self.deny_list:
            if item.id == finding_id:
                return item.reason
        return None


class GrypeConfig(ListConfig):
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    negligible: int = 0
    unknown: int = 0
    epss_allow_threshold: float = Field(
        alias='epssAllowThreshold', default=0.0, ge=0.0, le=1.0,
    )
    epss_deny_threshold: float = Field(
        alias='epssDenyThreshold', default=1.0, ge=0.0, le=1.0,
    )

    def ceilings(self) -> dict[str, int]:
        return {
            'Critical': self.critical,
            'High': self.high,
            'Medium': self.medium,
            'Low': self.low,
            'Negligible': self.negligible,
            'Unknown': self.unknown,
        }


class SemgrepConfig(ListConfig):
    info: int = 0
    warning: int = 0
    error: int = 0

    def ceilings(self) -> dict[str, int]:
        return {'ERROR': self.error, 'WARNING': self.warning, 'INFO': self.info}


class GitleaksConfig(FamilyConfig):
    secrets_allowed: bool = Field(alias='secretsAllowed', default=False)


class CycloneDXConfig(ListConfig):
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    info: int = 0
    none: int = 0
    unknown: int = 0

    def ceilings(self) -> dict[str, int]:
        return {
            'critical': self.critical,
            'high': self.high,
            'medium': self.medium,
            'low': self.low,
            'info': self.info,
            'none': self.none,
            'unknown': self.unknown,
        }


FAMILY_FIELDS = ('grype', 'semgrep', 'gitleaks', 'cyclonedx')


class PolicyConfig(BaseModel):
    """The policy document: a version plus one optional section per scanner family."""
    version: str
    grype: GrypeConfig | None = None
    semgrep: SemgrepConfig | None = None
    gitleaks: GitleaksConfig | None = None
    cyclonedx: CycloneDXConfig | None = None

    model_config = ConfigDict(extra='ignore')

    @model_validator(mode='before')
    @classmethod
    def empty_sections(cls, data: Any) -> Any:
        # `grype:` with no body declares the section with every default
        if isinstance(data, dict):
            data = {
                key: {} if key in FAMILY_FIELDS and value is None else value
                for key, value in data.items()
            }
        return data

    @field_validator('version', mode='before')
    @classmethod
    def check_version(cls, v: Any) -> str:
        if v is None:
            raise ValueError('missing version field')
        v = str(v)
        if v != SUPPORTED_CONFIG_VERSION:
            raise ValueError(
                f"version '{v}' is not supported, supported version is "
                f"'{SUPPORTED_CONFIG_VERSION}'",
            )
        return v

    def section(self, field_name: str) -> FamilyConfig | None:
        return getattr(self, field_name, None)

    def declared(self) -> list[str]:
        return [name for name in FAMILY_FIELDS if self.section(name) is not None]

    def required(self) -> list[str]:
        return [
            name for name in FAMILY_FIELDS
            if (section := self.section(name)) is not None and section.required
        ]

    def to_document(self) -> dict[str, Any]:
        """The YAML-ready mapping, using the document's own key names."""
        return self.model_dump(by_alias=True, exclude_none=True)


def default_config() -> PolicyConfig:
    """A permissive starting point: every ceiling unlimited, nothing required."""
    return PolicyConfig(
        version=SUPPORTED_CONFIG_VERSION,
        grype=GrypeConfig(
            critical=-1, high=-1, medium=-1, low=-1, negligible=-1, unknown=-1,
        ),
        semgrep=SemgrepConfig(info=-1, warning=-1, error=-1),
        gitleaks=GitleaksConfig(secrets_allowed=True),
        cyclonedx=CycloneDXConfig(
            critical=-1, high=-1, medium=-1, low=-1, info=-1, none=-1, unknown=-1,
        ),
    )
