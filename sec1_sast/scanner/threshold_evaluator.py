"""Gates a finished scan against per-severity vulnerability limits."""

import logging

from sec1_sast.errors import ThresholdBreachError
from sec1_sast.models.model_scan import ScanStatusReport
from sec1_sast.models.model_threshold import (
    SEVERITIES,
    BreachAction,
    EvaluationResult,
    ExitCode,
    ThresholdConfig,
)

logger = logging.getLogger(__name__)


def describe_limits(config: ThresholdConfig) -> str:
    """Render configured limits for the build log, e.g. ``Critical 3, High NA, ...``."""
    parts = []
    for severity in SEVERITIES:
        raw = getattr(config, severity)
        shown = raw.strip() if raw and raw.strip() else "NA"
        parts.append(f"{severity.capitalize()} {shown}")
    return ", ".join(parts)


class ThresholdEvaluator:
    """Decides the build outcome from vulnerability counts."""

    def evaluate(self, report: ScanStatusReport, config: ThresholdConfig) -> EvaluationResult:
        """Check ``report`` against ``config``.

        Severities are checked critical → high → medium → low. A severity is
        breached when its limit is a valid integer and the count is non-zero
        and at or above the limit. Under ``fail`` the first breach raises;
        under ``unstable`` all breaches make the build unstable; under
        ``continue`` breaches are only logged.

        A report carrying an error message skips thresholds and is unstable.

        Args:
            report: Completed status report
            config: Limits and breach action

        Returns:
            EvaluationResult with exit code and breach messages

        Raises:
            ThresholdBreachError: On the first breach when the action is fail
        """
        if report.error_message:
            logger.warning(f"Scan completed with error: {report.error_message}")
            return EvaluationResult(
                exit_code=ExitCode.UNSTABLE,
                error_message=report.error_message,
            )

        breaches: list[str] = []
        for severity in SEVERITIES:
            limit = config.limit_for(severity)
            if limit is None:
                continue

            count = getattr(report.vulnerabilities, severity)
            if count == 0 or count < limit:
                continue

            message = f"{severity.capitalize()} Vulnerability Threshold breached."
            logger.info(f"{message} ({count} found, limit {limit})")

            if config.breach_action == BreachAction.FAIL:
                raise ThresholdBreachError(severity, f"{message} Failing the build.")
            breaches.append(message)

        if breaches and config.breach_action == BreachAction.UNSTABLE:
            return EvaluationResult(exit_code=ExitCode.UNSTABLE, breaches=breaches)
        return EvaluationResult(exit_code=ExitCode.SUCCESS, breaches=breaches)
