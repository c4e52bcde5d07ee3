import structlog

from gatecheck.core.detector import TypeDetector
from gatecheck.core.errors import ReportValidationError
from gatecheck.core.errors import ValidationError
from gatecheck.models.file_type import Decoded
from gatecheck.models.file_type import FileType
from gatecheck.models.policy import PolicyConfig
from gatecheck.services.bundle_validator import BundleResult
from gatecheck.services.bundle_validator import BundleValidator
from gatecheck.services.epss import EPSSService
from gatecheck.services.epss import EPSSValidator
from gatecheck.services.kev import KEVService
from gatecheck.services.policy import validate_report


class ValidationService:
    """
    Detects what a file is and validates it against a policy.

    Grype reports are enriched first (EPSS, then KEV) and only then handed
    to the policy engine, so severity counting sees the report after EPSS
    has removed the findings it allows.
    """

    def __init__(
        self,
        detector: TypeDetector,
        kev_service: KEVService | None = None,
        epss_service: EPSSService | None = None,
        timeout: float | None = None,
        max_workers: int = 4,
        logger=None,
    ):
        self.detector = detector
        self.kev_service = kev_service
        self.epss_service = epss_service
        self.timeout = timeout
        self.logger = logger or structlog.get_logger('validate')
        self.bundle_validator = BundleValidator(
            detector,
            self.validate_decoded,
            max_workers=max_workers,
            timeout=timeout,
            logger=logger,
        )

    def validate_bytes(self, content: bytes, config: PolicyConfig) -> Decoded:
        decoded = self.detector.detect(content, timeout=self.timeout)
        self.logger.info('Validating', file_type=str(decoded.file_type))

        if decoded.file_type == FileType.BUNDLE:
            self.validate_bundle(decoded, config)
        elif decoded.file_type.is_report:
            self.validate_decoded(decoded, config)
        else:
            self.logger.warning(
                'Nothing to validate for this file type',
                file_type=str(decoded.file_type),
            )
        return decoded

    def validate_bundle(self, decoded: Decoded, config: PolicyConfig) -> BundleResult:
        result = self.bundle_validator.validate(decoded.obj, config)
        self.logger.info(
            'Bundle passed validation',
            passed=len(result.passed),
            skipped=len(result.skipped),
        )
        return result

    def validate_decoded(self, decoded: Decoded, config: PolicyConfig) -> None:
        """Enrich (grype only) and apply the policy, raising every failure together."""
        errors: list[ValidationError] = []

        if decoded.file_type == FileType.GRYPE:
            errors.extend(self._enrich(decoded, config))

        try:
            validate_report(decoded, config, log=self.logger)
        except ValidationError as e:
            errors.append(e)

        if errors:
            raise ReportValidationError(errors)

    def _enrich(self, decoded: Decoded, config: PolicyConfig) -> list[ValidationError]:
        errors: list[ValidationError] = []
        if self.epss_service is not None and config.grype is not None:
            try:
                EPSSValidator(self.epss_service, logger=self.logger).validate(
                    decoded.obj, config.grype,
                )
            except ValidationError as e:
                errors.append(e)
        if self.kev_service is not None:
            try:
                self.kev_service.validate(decoded.obj)
            except ValidationError as e:
                errors.append(e)
        return errors
