"""
Exploit Prediction Scoring System (EPSS) scores.

The feed is a CSV file, optionally gzip-compressed, with a leading
comment line such as `#model_version:v2023.03.01,score_date:...`,
followed by a `cve,epss,percentile` header and one row per CVE.
"""
import csv
import gzip
import io
import zlib
from pathlib import Path

import requests
import structlog

from gatecheck.core.client import fetch
from gatecheck.core.errors import APIError
from gatecheck.core.errors import EncodingError
from gatecheck.core.errors import EPSSValidationError
from gatecheck.core.fs import read_bytes
from gatecheck.models.epss import CVE
from gatecheck.models.epss import EPSSScore
from gatecheck.models.grype import GrypeReport
from gatecheck.models.policy import GrypeConfig

EPSS_HEADER = ['cve', 'epss', 'percentile']
GZIP_MAGIC = b'\x1f\x8b'


def parse_feed(content: bytes) -> tuple[dict[str, EPSSScore], dict[str, str]]:
    """Scores keyed by upper-case CVE id, plus the metadata from the comment line."""
    if content[:2] == GZIP_MAGIC:
        try:
            content = gzip.decompress(content)
        except (OSError, EOFError, zlib.error) as e:
            raise EncodingError(f"epss: feed decompression failed: {e}") from e
    try:
        text = content.decode('utf-8-sig')
    except UnicodeDecodeError as e:
        raise EncodingError(f"epss: {e}") from e

    lines = io.StringIO(text)
    metadata: dict[str, str] = {}
    first = lines.readline()
    if first.startswith('#'):
        for part in first[1:].strip().split(','):
            key, sep, value = part.partition(':')
            if sep:
                metadata[key.strip()] = value.strip()
        header_line = lines.readline()
    else:
        header_line = first

    header = [h.strip().lower() for h in header_line.strip().split(',')]
    if header != EPSS_HEADER:
        raise EncodingError(
            f"epss: unexpected header {header_line.strip()!r}, expected 'cve,epss,percentile'",
        )

    scores: dict[str, EPSSScore] = {}
    for line_number, row in enumerate(csv.reader(lines), start=3):
        if not row:
            continue
        if len(row) != 3:
            raise EncodingError(f"epss: line {line_number} has {len(row)} fields, expected 3")
        try:
            scores[row[0].strip().upper()] = EPSSScore(
                probability=float(row[1]),
                percentile=float(row[2]),
            )
        except ValueError as e:
            raise EncodingError(f"epss: line {line_number}: {e}") from e
    return scores, metadata


class EPSSService:
    """Looks up EPSS probability and percentile for CVE ids."""

    def __init__(self, scores: dict[str, EPSSScore], metadata: dict[str, str] | None = None, logger=None):
        self._scores = scores
        self.metadata = metadata or {}
        self.logger = logger or structlog.get_logger('epss')

    @classmethod
    def from_bytes(cls, content: bytes, logger=None) -> 'EPSSService':
        scores, metadata = parse_feed(content)
        (logger or structlog.get_logger('epss')).debug(
            'Loaded EPSS scores', scores=len(scores), metadata=metadata,
        )
        return cls(scores, metadata, logger=logger)

    @classmethod
    def from_file(cls, path: str | Path, logger=None) -> 'EPSSService':
        return cls.from_bytes(read_bytes(path), logger=logger)

    @classmethod
    def from_url(cls, url: str, session: requests.Session, logger=None) -> 'EPSSService':
        content = fetch(session, url)
        try:
            return cls.from_bytes(content, logger=logger)
        except EncodingError as e:
            raise APIError(f"{url}: malformed response: {e}") from e

    def __len__(self) -> int:
        return len(self._scores)

    @property
    def score_date(self) -> str:
        return self.metadata.get('score_date', '')

    def score(self, cve_id: str) -> EPSSScore | None:
        return self._scores.get(cve_id.upper())

    def scores(self, cves: list[CVE]) -> list[CVE]:
        """Annotate CVE records in place; ids without a score keep probability 0."""
        for cve in cves:
            found = self.score(cve.id)
            if found is None:
                continue
            cve.probability = found.probability
            cve.percentile = found.percentile
            cve.scored = True
        return cves

    @staticmethod
    def cves_for(report: GrypeReport) -> list[CVE]:
        return [
            CVE(
                id=m.vulnerability.id,
                severity=m.vulnerability.severity,
                link=m.vulnerability.data_source,
            )
            for m in report.matches
        ]


class EPSSValidator:
    """
    Removes findings scored at or below the allow threshold from the report,
    then denies the report if any remaining finding scores at or above the
    deny threshold.
    """

    def __init__(self, service: EPSSService, logger=None):
        self.service = service
        self.logger = logger or structlog.get_logger('epss')

    def validate(self, report: GrypeReport, config: GrypeConfig) -> list[CVE]:
        if not report.matches:
            return []

        cves = {cve.id: cve for cve in self.service.scores(EPSSService.cves_for(report))}

        removed = report.remove_matches(
            lambda m: _scored_at_most(cves[m.vulnerability.id], config.epss_allow_threshold),
        )
        allowed_ids = sorted({m.vulnerability.id for m in removed})
        self.logger.info(
            'EPSS allowed vulnerabilities',
            count=len(allowed_ids),
            ids=', '.join(allowed_ids),
            threshold=config.epss_allow_threshold,
        )

        denied = sorted({
            m.vulnerability.id for m in report.matches
            if cves[m.vulnerability.id].scored
            and cves[m.vulnerability.id].probability >= config.epss_deny_threshold
        })
        self.logger.info(
            'EPSS denied vulnerabilities',
            count=len(denied),
            ids=', '.join(denied),
            threshold=config.epss_deny_threshold,
        )
        if denied:
            raise EPSSValidationError(config.epss_deny_threshold, denied)
        return list(cves.values())


def _scored_at_most(cve: CVE, threshold: float) -> bool:
    # ids missing from the feed have no score and are never auto-allowed
    return cve.scored and cve.probability <= threshold
