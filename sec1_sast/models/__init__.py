"""Models for Sec1 SAST scans."""

from sec1_sast.models.model_scan import (
    ScanHandle,
    ScanRequest,
    ScanStatus,
    ScanStatusReport,
    Vulnerabilities,
)
from sec1_sast.models.model_threshold import (
    SEVERITIES,
    BreachAction,
    EvaluationResult,
    ExitCode,
    ScanResult,
    ThresholdConfig,
)

__all__ = [
    "SEVERITIES",
    "BreachAction",
    "EvaluationResult",
    "ExitCode",
    "ScanHandle",
    "ScanRequest",
    "ScanResult",
    "ScanStatus",
    "ScanStatusReport",
    "Vulnerabilities",
]
