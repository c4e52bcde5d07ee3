"""
Severity-ceiling policy engine.

Each scanner family registers a PolicyRule naming the config section it
reads and a compare function. Compare functions count findings per
severity, skip allow-listed ids, record deny-listed ids, and compare the
counts against the configured ceilings, where -1 means unlimited.
"""
from collections.abc import Callable
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

import structlog

from gatecheck.core.errors import MissingConfigError
from gatecheck.core.errors import PolicyValidationError
from gatecheck.core.fs import read_bytes
from gatecheck.models import cyclonedx
from gatecheck.models import grype
from gatecheck.models import semgrep
from gatecheck.models.cyclonedx import CycloneDXReport
from gatecheck.models.file_type import Decoded
from gatecheck.models.file_type import FileType
from gatecheck.models.gitleaks import GitleaksReport
from gatecheck.models.grype import GrypeReport
from gatecheck.models.policy import CycloneDXConfig
from gatecheck.models.policy import FamilyConfig
from gatecheck.models.policy import GitleaksConfig
from gatecheck.models.policy import GrypeConfig
from gatecheck.models.policy import ListConfig
from gatecheck.models.policy import PolicyConfig
from gatecheck.models.policy import SemgrepConfig
from gatecheck.models.semgrep import SemgrepReport
from gatecheck.services.decoders import ConfigDecoder

logger = structlog.get_logger('policy')

UNLIMITED = -1


@dataclass(frozen=True)
class PolicyRule:
    file_type: FileType
    field_name: str
    config_model: type[FamilyConfig]
    compare: Callable


@dataclass
class Tally:
    """Per-severity counts plus the deny-listed ids seen along the way."""
    found: dict[str, int]
    denied: list[str]


def check_ceilings(found: dict[str, int], allowed: dict[str, int]) -> list[str]:
    """Failure strings for every level whose count exceeds its ceiling, in `found` order."""
    failures = []
    for level, count in found.items():
        ceiling = allowed.get(level, 0)
        if ceiling == UNLIMITED:
            continue
        if count > ceiling:
            failures.append(f"{level} ({count} found > {ceiling} allowed)")
    return failures


def tally(
    findings: Iterable[tuple[str, str]],
    levels: list[str],
    config: ListConfig,
    log=None,
) -> Tally:
    """
    Count (id, severity) pairs per level.

    Allow-listed ids are skipped entirely. Deny-listed ids are recorded and
    still counted. Severities outside `levels` are counted under their own
    name so they are never silently dropped.
    """
    log = log or logger
    found = {level: 0 for level in levels}
    denied = []
    for finding_id, severity in findings:
        reason = config.allowed_reason(finding_id)
        if reason is not None:
            log.info(f"{finding_id} allowed", reason=reason)
            continue
        reason = config.denied_reason(finding_id)
        if reason is not None:
            log.info(f"{finding_id} denied", reason=reason)
            denied.append(finding_id)
        found[severity] = found.get(severity, 0) + 1
    return Tally(found=found, denied=denied)


def _raise_on_failures(file_type: FileType, result: Tally, allowed: dict[str, int]) -> None:
    failures = check_ceilings(result.found, allowed)
    if failures or result.denied:
        raise PolicyValidationError(str(file_type), failures, result.denied)


def compare_grype(report: GrypeReport, config: GrypeConfig, log=None) -> None:
    log = log or logger
    result = tally(
        ((m.vulnerability.id, m.vulnerability.severity) for m in report.matches),
        grype.SEVERITIES,
        config,
        log=log,
    )
    log.info('Grype findings', findings=result.found)
    _raise_on_failures(FileType.GRYPE, result, config.ceilings())


def compare_semgrep(report: SemgrepReport, config: SemgrepConfig, log=None) -> None:
    log = log or logger
    result = tally(
        ((r.check_id, r.extra.severity.upper()) for r in report.results or []),
        semgrep.SEVERITIES,
        config,
        log=log,
    )
    log.info('Semgrep findings', findings=result.found)
    _raise_on_failures(FileType.SEMGREP, result, config.ceilings())


def compare_cyclonedx(report: CycloneDXReport, config: CycloneDXConfig, log=None) -> None:
    log = log or logger
    result = tally(
        ((v.id, v.severity) for v in report.vulnerabilities),
        cyclonedx.SEVERITIES,
        config,
        log=log,
    )
    log.info('CycloneDX findings', findings=result.found)
    _raise_on_failures(FileType.CYCLONEDX, result, config.ceilings())


def compare_gitleaks(report: GitleaksReport, config: GitleaksConfig, log=None) -> None:
    log = log or logger
    if len(report) == 0:
        return
    message = f"Gitleaks: {len(report)} secrets detected"
    log.info(message)
    if config.secrets_allowed:
        return
    raise PolicyValidationError(str(FileType.GITLEAKS), [message])


POLICY_RULES: dict[FileType, PolicyRule] = {
    FileType.GRYPE: PolicyRule(FileType.GRYPE, 'grype', GrypeConfig, compare_grype),
    FileType.SEMGREP: PolicyRule(FileType.SEMGREP, 'semgrep', SemgrepConfig, compare_semgrep),
    FileType.GITLEAKS: PolicyRule(FileType.GITLEAKS, 'gitleaks', GitleaksConfig, compare_gitleaks),
    FileType.CYCLONEDX: PolicyRule(FileType.CYCLONEDX, 'cyclonedx', CycloneDXConfig, compare_cyclonedx),
}


def rule_for(file_type: FileType) -> PolicyRule | None:
    return POLICY_RULES.get(file_type)


def section_for(rule: PolicyRule, config: PolicyConfig) -> FamilyConfig:
    section = config.section(rule.field_name)
    if section is None:
        raise MissingConfigError(
            f"no '{rule.field_name}' configuration provided for {rule.file_type}",
        )
    return section


def validate_report(decoded: Decoded, config: PolicyConfig, log=None) -> None:
    """Apply the registered policy rule for a decoded report."""
    rule = rule_for(decoded.file_type)
    if rule is None:
        raise ValueError(f"no policy rule for {decoded.file_type}")
    rule.compare(decoded.obj, section_for(rule, config), log=log)


def load_policy_config(path: str | Path) -> PolicyConfig:
    """Read and check a policy document; unreadable files and bad documents raise distinct errors."""
    return ConfigDecoder().decode(read_bytes(path))
