"""Data models for Sec1 scan requests and status reports."""

from enum import Enum
from typing import Any
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from sec1_sast.consts import REPORT_URL_PREFIX, SCAN_SOURCE


class ScanStatus(str, Enum):
    """Remote scan states reported by the status endpoint."""

    INITIATED = "INITIATED"
    SCANNING = "SCANNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class Vulnerabilities(BaseModel):
    """Vulnerability counts by severity."""

    model_config = ConfigDict(frozen=True)

    critical: int = Field(default=0, ge=0)
    high: int = Field(default=0, ge=0)
    medium: int = Field(default=0, ge=0)
    low: int = Field(default=0, ge=0)

    @field_validator("critical", "high", "medium", "low", mode="before")
    @classmethod
    def _missing_count_is_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    def summary(self) -> str:
        """Render counts the way the build log shows them."""
        return (
            f"Critical {self.critical}, High {self.high}, "
            f"Medium {self.medium}, Low {self.low}"
        )


class ScanRequest(BaseModel):
    """A single scan request sent to the scan-initiation endpoint."""

    model_config = ConfigDict(frozen=True)

    repository_url: str = Field(description="Credential-free origin URL of the repository")
    branch_name: str | None = Field(default=None, description="Checked-out branch, if known")
    application_name: str = Field(min_length=1, description="Application name shown in Sec1")
    source: str = Field(default=SCAN_SOURCE, description="Integration that requested the scan")

    @field_validator("repository_url")
    @classmethod
    def _require_clean_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("repository_url must not be empty")
        try:
            netloc = urlsplit(value).netloc
        except ValueError:
            return value
        if "@" in netloc:
            raise ValueError("repository_url must not embed credentials")
        return value

    def to_payload(self) -> dict[str, Any]:
        """Build the JSON envelope expected by the scan-initiation endpoint."""
        entry: dict[str, Any] = {"location": self.repository_url}
        if self.branch_name:
            entry["branchName"] = self.branch_name
        entry["appName"] = self.application_name
        entry["source"] = self.source
        return {"scanRequestList": [entry]}


class ScanHandle(BaseModel):
    """Opaque identifier of an initiated scan."""

    model_config = ConfigDict(frozen=True)

    report_id: str = Field(min_length=1)

    @computed_field
    @property
    def report_url(self) -> str:
        """Dashboard URL of the report."""
        return f"{REPORT_URL_PREFIX}{self.report_id}"


class ScanStatusReport(BaseModel):
    """Latest snapshot returned by the status endpoint.

    A new instance replaces the previous one on every poll.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    scan_status: str = Field(alias="scanStatus")
    vulnerabilities: Vulnerabilities = Field(default_factory=Vulnerabilities)
    error_message: str | None = Field(default=None, alias="errorMessage")

    @field_validator("error_message", mode="before")
    @classmethod
    def _blank_error_is_none(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def status(self) -> ScanStatus | None:
        """Known state for the raw status value, or None if unrecognized."""
        try:
            return ScanStatus(self.scan_status.strip().upper())
        except ValueError:
            return None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "ScanStatusReport":
        """Build a report from one element of the status endpoint response.

        Args:
            data: JSON object with scanStatus, severity counts and errorMessage

        Returns:
            Parsed ScanStatusReport

        Raises:
            pydantic.ValidationError: If the object does not match the model
        """
        return cls.model_validate(
            {
                "scanStatus": data.get("scanStatus"),
                "vulnerabilities": {
                    "critical": data.get("critical"),
                    "high": data.get("high"),
                    "medium": data.get("medium"),
                    "low": data.get("low"),
                },
                "errorMessage": data.get("errorMessage"),
            }
        )
