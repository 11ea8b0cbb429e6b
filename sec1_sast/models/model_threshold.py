"""Models for vulnerability thresholds and build outcomes."""

import logging
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sec1_sast.models.model_scan import ScanHandle, ScanStatusReport

logger = logging.getLogger(__name__)

# Evaluation order, also used for breach messages
SEVERITIES = ("critical", "high", "medium", "low")


class BreachAction(str, Enum):
    """What to do with the build when a threshold is breached."""

    FAIL = "fail"
    UNSTABLE = "unstable"
    CONTINUE = "continue"

    @classmethod
    def parse(cls, value: "str | BreachAction | None") -> "BreachAction":
        """Parse a user-supplied action, defaulting to FAIL.

        Matching is case-insensitive. Blank or unknown values fall back to FAIL.
        """
        if isinstance(value, BreachAction):
            return value
        if value is None or not str(value).strip():
            logger.info("Threshold breach action is not set. Default action is fail.")
            return cls.FAIL
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            logger.warning(f"Unknown threshold breach action '{value}', using fail")
            return cls.FAIL


class ExitCode(IntEnum):
    """Non-fatal build outcomes. Fatal outcomes are raised as exceptions."""

    SUCCESS = 0
    UNSTABLE = 2


class ThresholdConfig(BaseModel):
    """Per-severity vulnerability limits and the breach policy.

    Limits are kept as the strings the user typed; only plain
    non-negative integers are enforced.
    """

    model_config = ConfigDict(frozen=True)

    critical: str | None = None
    high: str | None = None
    medium: str | None = None
    low: str | None = None
    breach_action: BreachAction = Field(default=BreachAction.FAIL)

    @field_validator("critical", "high", "medium", "low", mode="before")
    @classmethod
    def _stringify_limit(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("breach_action", mode="before")
    @classmethod
    def _parse_action(cls, value: Any) -> BreachAction:
        return BreachAction.parse(value)

    def limit_for(self, severity: str) -> int | None:
        """Return the active limit for a severity, or None if unset or invalid."""
        raw = getattr(self, severity)
        if raw is None:
            return None
        raw = raw.strip()
        if raw.isascii() and raw.isdigit():
            return int(raw)
        return None

    @property
    def has_limits(self) -> bool:
        """True when at least one limit was supplied."""
        return any(getattr(self, severity) for severity in SEVERITIES)


@dataclass
class EvaluationResult:
    """Outcome of checking a report against thresholds."""

    exit_code: ExitCode
    breaches: list[str] = field(default_factory=list)
    error_message: str | None = None


@dataclass
class ScanResult:
    """Final result of one orchestrated scan."""

    exit_code: ExitCode
    handle: ScanHandle
    report: ScanStatusReport
    breaches: list[str] = field(default_factory=list)
    error_message: str | None = None
