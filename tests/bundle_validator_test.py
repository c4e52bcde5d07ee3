import pytest

from gatecheck.core.detector import TypeDetector
from gatecheck.core.errors import BundleValidationError
from gatecheck.core.errors import EPSSValidationError
from gatecheck.core.errors import KEVValidationError
from gatecheck.core.errors import MissingConfigError
from gatecheck.core.errors import PolicyValidationError
from gatecheck.core.errors import ReportValidationError
from gatecheck.models.bundle import Bundle
from gatecheck.models.file_type import FileType
from gatecheck.models.policy import PolicyConfig
from gatecheck.services.archive import dumps
from gatecheck.services.bundle_validator import BundleValidator
from gatecheck.services.decoders import standard_decoders
from gatecheck.services.epss import EPSSService
from gatecheck.services.kev import KEVService
from gatecheck.services.policy import validate_report
from gatecheck.services.validation import ValidationService


def policy(**sections):
    return PolicyConfig.model_validate({'version': '1', **sections})


@pytest.fixture
def mixed_bundle(grype_bytes, gitleaks_bytes):
    """A passing grype report, a failing gitleaks report and a text file."""
    return Bundle({
        'grype-report.json': grype_bytes,
        'gitleaks-report.json': gitleaks_bytes,
        'README.txt': b'release notes, nothing to validate',
    })


@pytest.fixture
def validator(detector):
    return BundleValidator(detector, validate_report, max_workers=4)


class TestBundleValidator:
    def test_one_failing_artifact(self, validator, mixed_bundle):
        config = policy(grype={'critical': -1, 'high': -1}, gitleaks={'secretsAllowed': False})
        with pytest.raises(BundleValidationError) as exc_info:
            validator.validate(mixed_bundle, config)
        error = exc_info.value
        assert list(error.failures) == ['gitleaks-report.json']
        assert isinstance(error.failures['gitleaks-report.json'], PolicyValidationError)
        assert str(error).startswith('[gitleaks-report.json]: ')

    def test_result_bookkeeping(self, validator, mixed_bundle):
        config = policy(grype={'critical': -1, 'high': -1}, gitleaks={'secretsAllowed': True})
        result = validator.validate(mixed_bundle, config)
        assert result.ok
        assert result.passed == ['gitleaks-report.json', 'grype-report.json']
        assert result.skipped == ['README.txt']
        assert result.detected['README.txt'] == FileType.GENERIC
        assert result.detected['grype-report.json'] == FileType.GRYPE

    def test_nested_bundle_and_config_are_skipped(self, validator, config_bytes):
        bundle = Bundle({
            'gatecheck.yaml': config_bytes,
            'inner.gz': dumps(Bundle({'x': b'1'})),
        })
        result = validator.validate(bundle, policy())
        assert result.passed == []
        assert result.skipped == ['gatecheck.yaml', 'inner.gz']

    def test_missing_section_fails_the_artifact(self, validator, mixed_bundle):
        config = policy(grype={'critical': -1, 'high': -1})
        with pytest.raises(BundleValidationError) as exc_info:
            validator.validate(mixed_bundle, config)
        assert isinstance(exc_info.value.failures['gitleaks-report.json'], MissingConfigError)

    def test_missing_required_family(self, validator, grype_bytes):
        config = policy(
            grype={'critical': -1, 'high': -1},
            semgrep={'required': True},
            cyclonedx={'required': True},
        )
        with pytest.raises(BundleValidationError) as exc_info:
            validator.validate(Bundle({'grype.json': grype_bytes}), config)
        assert exc_info.value.missing_required == ['cyclonedx', 'semgrep']
        assert exc_info.value.failures == {}
        assert 'semgrep is required' in str(exc_info.value)

    def test_required_family_present(self, validator, grype_bytes):
        config = policy(grype={'required': True, 'critical': -1, 'high': -1})
        assert validator.validate(Bundle({'grype.json': grype_bytes}), config).ok

    def test_failures_are_deterministic(self, detector, grype_bytes, semgrep_bytes, gitleaks_bytes):
        """Every failing label is reported, in the same order, run after run."""
        bundle = Bundle({
            'c-grype.json': grype_bytes,
            'a-semgrep.json': semgrep_bytes,
            'b-gitleaks.json': gitleaks_bytes,
        })
        config = policy(grype={}, semgrep={}, gitleaks={})
        messages = set()
        for _ in range(10):
            with pytest.raises(BundleValidationError) as exc_info:
                BundleValidator(detector, validate_report, max_workers=3).validate(bundle, config)
            assert list(exc_info.value.failures) == [
                'a-semgrep.json', 'b-gitleaks.json', 'c-grype.json',
            ]
            messages.add(str(exc_info.value))
        assert len(messages) == 1

    def test_detection_timeout_is_a_failure(self, grype_bytes):
        validator = BundleValidator(
            TypeDetector(standard_decoders()), validate_report, timeout=1e-9,
        )
        with pytest.raises(BundleValidationError) as exc_info:
            validator.validate(Bundle({'grype.json': grype_bytes}), policy(grype={}))
        assert 'timed out' in str(exc_info.value)


class TestValidationService:
    def test_all_failures_are_collected(self, detector, grype_bytes, kev_json_bytes, epss_csv_bytes):
        service = ValidationService(
            detector,
            kev_service=KEVService.from_bytes(kev_json_bytes),
            epss_service=EPSSService.from_bytes(epss_csv_bytes),
        )
        config = policy(grype={'critical': 0, 'high': -1, 'epssDenyThreshold': 0.9})
        with pytest.raises(ReportValidationError) as exc_info:
            service.validate_bytes(grype_bytes, config)
        kinds = [type(e) for e in exc_info.value.errors]
        assert kinds == [EPSSValidationError, KEVValidationError, PolicyValidationError]

    def test_epss_allowed_findings_are_not_counted(self, detector, grype_bytes, epss_csv_bytes):
        """Findings EPSS allows are gone before severity counting."""
        service = ValidationService(detector, epss_service=EPSSService.from_bytes(epss_csv_bytes))
        config = policy(grype={'critical': 1, 'high': -1, 'epssAllowThreshold': 0.001})
        decoded = service.validate_bytes(grype_bytes, config)
        assert decoded.obj.vulnerability_ids() == ['CVE-2023-0002', 'CVE-2023-0003']

    def test_policy_only(self, detector, semgrep_bytes):
        service = ValidationService(detector)
        decoded = service.validate_bytes(semgrep_bytes, policy(semgrep={'error': -1, 'warning': -1}))
        assert decoded.file_type == FileType.SEMGREP

    def test_config_file_is_not_validated(self, detector, config_bytes):
        decoded = ValidationService(detector).validate_bytes(config_bytes, policy())
        assert decoded.file_type == FileType.CONFIG

    def test_bundle(self, detector, mixed_bundle, kev_json_bytes):
        service = ValidationService(detector, kev_service=KEVService.from_bytes(kev_json_bytes))
        config = policy(grype={'critical': -1, 'high': -1}, gitleaks={'secretsAllowed': True})
        with pytest.raises(BundleValidationError) as exc_info:
            service.validate_bytes(dumps(mixed_bundle), config)
        failure = exc_info.value.failures['grype-report.json']
        assert isinstance(failure, ReportValidationError)
        assert isinstance(failure.errors[0], KEVValidationError)
