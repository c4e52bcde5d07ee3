"""Rich tables for reports, bundles and enrichment results. Nothing here mutates its input."""
import humanize
from rich.markup import escape
from rich.table import Table

from gatecheck.models import cyclonedx
from gatecheck.models import grype
from gatecheck.models.bundle import Bundle
from gatecheck.models.cyclonedx import CycloneDXReport
from gatecheck.models.epss import CVE
from gatecheck.models.file_type import Decoded
from gatecheck.models.file_type import FileType
from gatecheck.models.gitleaks import GitleaksReport
from gatecheck.models.grype import GrypeReport
from gatecheck.models.kev import KEVVulnerability
from gatecheck.models.semgrep import SemgrepReport

SEVERITY_STYLES = {
    'critical': 'bold red',
    'high': 'red',
    'medium': 'yellow',
    'low': 'green',
    'error': 'red',
    'warning': 'yellow',
}


def _severity(value: str) -> str:
    style = SEVERITY_STYLES.get(value.lower())
    return f"[{style}]{escape(value)}[/{style}]" if style else escape(value)


def _rank(order: list[str], value: str) -> int:
    try:
        return order.index(value)
    except ValueError:
        return len(order)


def clip_left(value: str, width: int) -> str:
    """Keep the rightmost `width` characters, marking the cut with an ellipsis."""
    if len(value) <= width:
        return value
    return '…' + value[-(width - 1):]


def grype_table(report: GrypeReport) -> Table:
    table = Table(title=str(FileType.GRYPE))
    table.add_column('Severity')
    table.add_column('Package', style='cyan')
    table.add_column('Version', style='magenta')
    table.add_column('Link', style='dim')
    matches = sorted(
        report.matches,
        key=lambda m: (_rank(grype.SEVERITIES, m.vulnerability.severity), m.artifact.name),
    )
    for match in matches:
        table.add_row(
            _severity(match.vulnerability.severity),
            escape(match.artifact.name),
            escape(match.artifact.version),
            escape(match.vulnerability.data_source),
        )
    return table


def semgrep_table(report: SemgrepReport) -> Table:
    table = Table(title=str(FileType.SEMGREP))
    table.add_column('Path', style='cyan')
    table.add_column('Line', justify='right')
    table.add_column('Level')
    table.add_column('CWE')
    table.add_column('Link', style='dim')
    for result in report.results or []:
        table.add_row(
            escape(clip_left(result.path, 30)),
            str(result.start.line),
            _severity(result.extra.severity),
            escape(result.cwe),
            escape(result.shortlink),
        )
    return table


def gitleaks_table(report: GitleaksReport) -> Table:
    table = Table(title=str(FileType.GITLEAKS))
    table.add_column('Rule', style='cyan')
    table.add_column('File')
    table.add_column('Secret', style='red')
    table.add_column('Commit', style='dim')
    for finding in report:
        table.add_row(
            escape(finding.rule_id),
            escape(finding.file),
            escape(clip_left(finding.secret, 50)),
            escape(finding.commit),
        )
    return table


def cyclonedx_table(report: CycloneDXReport) -> Table:
    table = Table(title=str(FileType.CYCLONEDX))
    table.add_column('ID', style='cyan')
    table.add_column('Severity')
    table.add_column('Package')
    table.add_column('Version', style='magenta')
    rows = []
    for vulnerability in report.vulnerabilities:
        for affects in vulnerability.affects or [None]:
            component = report.component_for(affects.ref) if affects else None
            rows.append((
                vulnerability.id,
                vulnerability.severity,
                component.name if component else (affects.ref if affects else ''),
                component.version if component else '',
            ))
    rows.sort(key=lambda r: (_rank(cyclonedx.SEVERITIES, r[1]), r[2]))
    for vid, severity, package, version in rows:
        table.add_row(escape(vid), _severity(severity), escape(package), escape(version))
    return table


def bundle_table(bundle: Bundle, detector=None, required: list[FileType] | None = None, timeout: float | None = None) -> Table:
    """
    Summarise a bundle: one row per artifact plus a total size caption.

    Artifacts are typed with the detector when one is given, else shown as '?'.
    """
    required = required or []
    table = Table(title=str(FileType.BUNDLE))
    table.add_column('Type')
    table.add_column('Label', style='cyan')
    table.add_column('Digest', style='dim')
    table.add_column('Size', justify='right')
    table.add_column('Required', justify='center')
    for artifact in bundle.artifacts(detector=detector, timeout=timeout):
        file_type = str(artifact.file_type) if detector is not None else '?'
        table.add_row(
            file_type,
            escape(artifact.label),
            artifact.digest_string,
            artifact.natural_size,
            'Y' if artifact.file_type in required else '',
        )
    table.caption = f"Total Size: {humanize.naturalsize(bundle.total_size, binary=True)}"
    return table


def kev_table(matches: list[KEVVulnerability], catalog_version: str) -> Table:
    table = Table(title=f"CISA KEV Catalog (version {catalog_version})")
    table.add_column('CVE ID', style='cyan')
    table.add_column('Date Added')
    table.add_column('CVE.org Link', style='dim')
    table.add_column('Vulnerability Name')
    for match in matches:
        table.add_row(
            escape(match.cve_id),
            escape(match.date_added),
            escape(match.link),
            escape(match.vulnerability_name),
        )
    table.caption = f"{len(matches)} vulnerabilities matched to catalog"
    return table


def epss_table(cves: list[CVE]) -> Table:
    table = Table(title='Exploit Prediction Scoring System (EPSS)')
    table.add_column('CVE', style='cyan')
    table.add_column('Severity')
    table.add_column('EPSS Score', justify='right')
    table.add_column('Percentile', justify='right')
    table.add_column('Link', style='dim')
    for cve in sorted(cves, key=lambda c: c.probability, reverse=True):
        score = f"{cve.probability:.5f}" if cve.scored else '-'
        percentile = f"{cve.percentile * 100:.1f}%" if cve.scored else '-'
        table.add_row(escape(cve.id), _severity(cve.severity), score, percentile, escape(cve.link))
    return table


def report_table(decoded: Decoded, detector=None) -> Table | None:
    """Table for any decoded report or bundle, or None for types with no table."""
    if decoded.file_type == FileType.GRYPE:
        return grype_table(decoded.obj)
    if decoded.file_type == FileType.SEMGREP:
        return semgrep_table(decoded.obj)
    if decoded.file_type == FileType.GITLEAKS:
        return gitleaks_table(decoded.obj)
    if decoded.file_type == FileType.CYCLONEDX:
        return cyclonedx_table(decoded.obj)
    if decoded.file_type == FileType.BUNDLE:
        return bundle_table(decoded.obj, detector=detector)
    return None
