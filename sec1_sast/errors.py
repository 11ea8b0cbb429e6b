"""Exceptions raised while running a Sec1 SAST scan.

Every error here aborts the build except a threshold breach evaluated
under the ``unstable`` or ``continue`` policy, which is never raised.
"""


class Sec1SastError(Exception):
    """Base class for all scanner integration errors."""


class ConfigurationError(Sec1SastError):
    """No usable API key or repository URL could be found."""


class MetadataNotFoundError(Sec1SastError):
    """Git metadata (config file, origin section or url line) is missing."""


class ApiError(Sec1SastError):
    """The Sec1 API could not be reached or returned an unusable response."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ScanFailedError(Sec1SastError):
    """The remote scan reached the FAILED state."""

    def __init__(self, report_id: str):
        super().__init__("Sec1 SAST Security Scan Finished with failures")
        self.report_id = report_id


class ScanTimeoutError(Sec1SastError):
    """The remote scan did not finish within the poll budget."""

    def __init__(self, report_id: str, timeout_seconds: float):
        super().__init__(
            f"Sec1 SAST Security Scan timed out after {timeout_seconds / 60:g} minutes"
        )
        self.report_id = report_id
        self.timeout_seconds = timeout_seconds


class ThresholdBreachError(Sec1SastError):
    """A vulnerability count reached its limit under the ``fail`` policy."""

    def __init__(self, severity: str, message: str):
        super().__init__(message)
        self.severity = severity
