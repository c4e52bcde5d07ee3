from collections.abc import Callable
from concurrent.futures import as_completed
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from dataclasses import field

import structlog

from gatecheck.core.detector import TypeDetector
from gatecheck.core.errors import BundleValidationError
from gatecheck.core.errors import DecodeTimeoutError
from gatecheck.core.errors import GatecheckError
from gatecheck.core.errors import NoMatchingFormatError
from gatecheck.models.bundle import Bundle
from gatecheck.models.file_type import Decoded
from gatecheck.models.file_type import FileType
from gatecheck.models.policy import PolicyConfig
from gatecheck.services.policy import POLICY_RULES


@dataclass
class BundleResult:
    """Outcome of validating every artifact in a bundle."""
    detected: dict[str, FileType] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)
    passed: list[str] = field(default_factory=list)
    failures: dict[str, Exception] = field(default_factory=dict)
    missing_required: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures and not self.missing_required


class BundleValidator:
    """
    Classifies every artifact in a bundle and validates the known reports in parallel.

    Artifacts nobody recognises are skipped, as are configs and nested
    bundles. Every failing label is kept, so the aggregated error is the
    same whatever order the workers finish in.
    """

    def __init__(
        self,
        detector: TypeDetector,
        validate_report: Callable[[Decoded, PolicyConfig], None],
        max_workers: int = 4,
        timeout: float | None = None,
        logger=None,
    ):
        self.detector = detector
        self.validate_report = validate_report
        self.max_workers = max_workers
        self.timeout = timeout
        self.logger = logger or structlog.get_logger('bundle')

    def classify(self, bundle: Bundle, result: BundleResult) -> dict[str, Decoded]:
        """Detect each artifact's type; reports come back decoded, the rest are recorded as skipped."""
        reports: dict[str, Decoded] = {}
        for label, content in bundle.items():
            try:
                decoded = self.detector.detect(content, timeout=self.timeout)
            except NoMatchingFormatError:
                decoded = Decoded(FileType.GENERIC, content)
            except DecodeTimeoutError as e:
                result.failures[label] = e
                continue

            result.detected[label] = decoded.file_type
            if decoded.file_type in POLICY_RULES:
                reports[label] = decoded
            else:
                self.logger.debug(
                    'Skipping artifact',
                    label=label, file_type=str(decoded.file_type), _style='dim',
                )
                result.skipped.append(label)
        return reports

    def check(self, bundle: Bundle, config: PolicyConfig) -> BundleResult:
        result = BundleResult()
        reports = self.classify(bundle, result)

        present = {POLICY_RULES[d.file_type].field_name for d in reports.values()}
        result.missing_required = sorted(set(config.required()) - present)
        for field_name in result.missing_required:
            self.logger.warning('Required artifact missing from bundle', field=field_name)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_label = {
                executor.submit(self.validate_report, decoded, config): label
                for label, decoded in reports.items()
            }
            for future in as_completed(future_to_label):
                label = future_to_label[future]
                try:
                    future.result()
                except GatecheckError as e:
                    self.logger.info('Artifact failed validation', label=label)
                    result.failures[label] = e
                else:
                    self.logger.info('Artifact passed validation', label=label)
                    result.passed.append(label)

        result.passed.sort()
        result.skipped.sort()
        return result

    def validate(self, bundle: Bundle, config: PolicyConfig) -> BundleResult:
        result = self.check(bundle, config)
        if not result.ok:
            raise BundleValidationError(result.failures, result.missing_required)
        return result
