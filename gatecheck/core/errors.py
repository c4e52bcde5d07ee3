"""Error kinds raised by gatecheck and their CLI exit codes."""


class GatecheckError(Exception):
    """Base class for every error raised by gatecheck."""


class FileAccessError(GatecheckError):
    """A named input could not be opened or read."""


class EncodingError(GatecheckError):
    """An input could not be parsed or failed a structural check."""


class FailedCheckError(EncodingError):
    """Parsed successfully but is not a well-formed instance of the schema."""


class NoMatchingFormatError(EncodingError):
    """Every registered decoder rejected the input."""

    def __init__(self, causes: dict[str, Exception] | None = None):
        self.causes = causes or {}
        details = '; '.join(
            f"{name}: {cause}" for name, cause in sorted(self.causes.items())
        )
        message = 'no decoder matched the input'
        if details:
            message = f"{message} ({details})"
        super().__init__(message)


class DecodeTimeoutError(EncodingError):
    """Type detection was cancelled because the deadline passed."""


class ValidationError(GatecheckError):
    """A report does not satisfy the configured policy."""


class MissingConfigError(ValidationError):
    """The policy document has no section for a report that needs one."""


class PolicyValidationError(ValidationError):
    """Severity ceilings were exceeded or denied findings were present."""

    def __init__(self, file_type: str, failures: list[str], denied: list[str] | None = None):
        self.file_type = file_type
        self.failures = failures
        self.denied = denied or []
        parts = list(failures)
        if self.denied:
            parts.append(f"denied findings: {', '.join(self.denied)}")
        super().__init__(f"{file_type}: {', '.join(parts)}")


class KEVValidationError(ValidationError):
    """Findings matched the known exploited vulnerabilities catalog."""

    def __init__(self, catalog_version: str, matches: list):
        self.catalog_version = catalog_version
        self.matches = matches
        word = 'Vulnerability' if len(matches) == 1 else 'Vulnerabilities'
        lines = [f"{len(matches)} {word} matched to KEV Catalog (version {catalog_version})"]
        # one line per match: id, date added, CVE.org record
        lines.extend(f"  {m.cve_id} added {m.date_added} {m.link}" for m in matches)
        super().__init__('\n'.join(lines))


class EPSSValidationError(ValidationError):
    """Findings have exploit probabilities at or over the deny threshold."""

    def __init__(self, threshold: float, denied: list[str]):
        self.threshold = threshold
        self.denied = denied
        super().__init__(
            f"{len(denied)} vulnerabilities have EPSS scores over deny threshold "
            f"{threshold:.5f}: {', '.join(denied)}",
        )


class ReportValidationError(ValidationError):
    """Several independent checks failed for a single report."""

    def __init__(self, errors: list[ValidationError]):
        self.errors = errors
        super().__init__('\n'.join(str(e) for e in errors))


class BundleValidationError(ValidationError):
    """One or more bundle artifacts failed validation."""

    def __init__(self, failures: dict[str, Exception], missing_required: list[str] | None = None):
        self.failures = dict(sorted(failures.items()))
        self.missing_required = sorted(missing_required or [])
        lines = [
            f"{field} is required but the bundle has no such artifact"
            for field in self.missing_required
        ]
        lines.extend(
            f"[{label}]: {error}" for label, error in self.failures.items()
        )
        super().__init__('\n'.join(lines))


class APIError(GatecheckError):
    """A remote feed was unreachable or returned an unusable response."""


class UserInputError(GatecheckError):
    """A required argument or flag was missing or contradictory."""


EXIT_SUCCESS = 0
EXIT_VALIDATION = 1
EXIT_FILE_ACCESS = 2
EXIT_OTHER = -1


def exit_code_for(error: BaseException | None) -> int:
    """Map an error (or its absence) to the process exit code."""
    if error is None:
        return EXIT_SUCCESS
    if isinstance(error, ValidationError):
        return EXIT_VALIDATION
    if isinstance(error, FileAccessError):
        return EXIT_FILE_ACCESS
    return EXIT_OTHER
