from pathlib import Path

import requests
import structlog

from gatecheck.core.client import fetch
from gatecheck.core.detector import TypeDetector
from gatecheck.core.errors import APIError
from gatecheck.core.errors import DecodeTimeoutError
from gatecheck.core.errors import EncodingError
from gatecheck.core.errors import KEVValidationError
from gatecheck.core.fs import read_bytes
from gatecheck.models.grype import GrypeReport
from gatecheck.models.kev import KEVCatalog
from gatecheck.models.kev import KEVVulnerability
from gatecheck.services.decoders import kev_decoders


class KEVService:
    """Matches grype findings against the CISA Known Exploited Vulnerabilities catalog."""

    def __init__(self, catalog: KEVCatalog, logger=None):
        self.catalog = catalog
        self.logger = logger or structlog.get_logger('kev')
        self._index = {
            v.cve_id.lower(): v for v in catalog.vulnerabilities if v.cve_id
        }

    @classmethod
    def from_bytes(cls, content: bytes, timeout: float | None = None, logger=None) -> 'KEVService':
        """Load a catalog in either JSON or CSV form; the format is sniffed, not assumed."""
        detector = TypeDetector(kev_decoders(), logger=logger)
        decoded = detector.detect(content, timeout=timeout)
        catalog: KEVCatalog = decoded.obj
        (logger or structlog.get_logger('kev')).debug(
            'Loaded KEV catalog',
            catalog_version=catalog.catalog_version,
            vulnerabilities=len(catalog.vulnerabilities),
        )
        return cls(catalog, logger=logger)

    @classmethod
    def from_file(cls, path: str | Path, timeout: float | None = None, logger=None) -> 'KEVService':
        return cls.from_bytes(read_bytes(path), timeout=timeout, logger=logger)

    @classmethod
    def from_url(
        cls,
        url: str,
        session: requests.Session,
        timeout: float | None = None,
        logger=None,
    ) -> 'KEVService':
        content = fetch(session, url)
        try:
            return cls.from_bytes(content, timeout=timeout, logger=logger)
        except DecodeTimeoutError:
            raise
        except EncodingError as e:
            raise APIError(f"{url}: malformed response: {e}") from e

    def match(self, report: GrypeReport) -> list[KEVVulnerability]:
        """Catalog entries for every reported vulnerability id, compared case-insensitively."""
        matched: dict[str, KEVVulnerability] = {}
        for vulnerability_id in report.vulnerability_ids():
            entry = self._index.get(vulnerability_id.lower())
            if entry is not None:
                matched.setdefault(entry.cve_id.lower(), entry)
        return list(matched.values())

    def validate(self, report: GrypeReport) -> None:
        matches = self.match(report)
        self.logger.info(
            'KEV catalog matches',
            catalog_version=self.catalog.catalog_version,
            matched=len(matches),
        )
        if matches:
            raise KEVValidationError(self.catalog.catalog_version, matches)
