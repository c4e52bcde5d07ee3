from dataclasses import dataclass
from enum import Enum
from typing import Any


class FileType(str, Enum):
    GRYPE = 'Anchore Grype Scan Report'
    SEMGREP = 'Semgrep Scan Report'
    GITLEAKS = 'Gitleaks Scan Report'
    CYCLONEDX = 'CycloneDX SBOM Report'
    CONFIG = 'Gatecheck Config'
    BUNDLE = 'Gatecheck Bundle'
    KEV = 'CISA KEV Catalog'
    GENERIC = 'Generic'

    def __str__(self) -> str:
        return self.value

    @property
    def is_report(self) -> bool:
        """True for the scanner families that carry policy-checked findings."""
        return self in REPORT_TYPES


REPORT_TYPES = frozenset({
    FileType.GRYPE,
    FileType.SEMGREP,
    FileType.GITLEAKS,
    FileType.CYCLONEDX,
})


@dataclass(frozen=True)
class Decoded:
    """A decoded document tagged with the format that recognised it."""
    file_type: FileType
    obj: Any
