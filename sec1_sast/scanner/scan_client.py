"""HTTP client for the Sec1 scan-initiation and status endpoints."""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from sec1_sast.consts import (
    API_CONTEXT,
    API_KEY_HEADER,
    HTTP_TIMEOUT_SECONDS,
    SCAN_API,
    STATUS_CHECK_API,
)
from sec1_sast.errors import ApiError
from sec1_sast.models.model_scan import ScanHandle, ScanRequest, ScanStatusReport

logger = logging.getLogger(__name__)


class ScanClient:
    """Talks to the Sec1 API on behalf of a single build.

    A new ``httpx.Client`` is opened for every request and closed right after,
    so no connection state outlives a call.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize ScanClient.

        Args:
            base_url: Sec1 instance URL, e.g. https://api.sec1.io
            api_key: Value sent in the sec1-api-key header
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    @property
    def scan_url(self) -> str:
        return f"{self.base_url}{API_CONTEXT}{SCAN_API}"

    @property
    def status_url(self) -> str:
        return f"{self.base_url}{STATUS_CHECK_API}"

    def _post(self, url: str, payload: dict[str, Any]) -> httpx.Response:
        """POST a JSON payload with the API key header.

        Raises:
            ApiError: On any transport failure
        """
        headers = {
            API_KEY_HEADER: self.api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        logger.debug(f"POST {url}")
        try:
            with httpx.Client(
                timeout=httpx.Timeout(self.timeout),
                transport=self.transport,
            ) as client:
                return client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise ApiError(f"Issue while connecting to Sec1 API at {url}: {e}") from e

    def _first_element(self, response: httpx.Response) -> dict[str, Any]:
        """Return the first object of a JSON array response.

        Raises:
            ApiError: On non-200 status, unparseable body or empty array
        """
        if response.status_code != 200:
            logger.error(f"Sec1 API returned HTTP {response.status_code}: {response.text[:200]}")
            raise ApiError(
                "Error while processing scan result. Failing the build.",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ApiError("Invalid content received from Sec1 API.") from e

        if not isinstance(body, list) or not body or not isinstance(body[0], dict):
            raise ApiError("Error while processing scan result. Failing the build.")
        return body[0]

    def initiate_scan(self, request: ScanRequest) -> ScanHandle:
        """Start a SAST scan.

        Args:
            request: Repository details to scan

        Returns:
            ScanHandle carrying the report id

        Raises:
            ApiError: If the scan could not be started
        """
        response = self._post(self.scan_url, request.to_payload())
        first = self._first_element(response)

        report_id = str(first.get("uuid") or "").strip()
        if not report_id:
            raise ApiError("Sec1 API response did not contain a report id.")

        logger.info(f"Scan initiated, report id {report_id}")
        return ScanHandle(report_id=report_id)

    def check_status(self, handle: ScanHandle) -> ScanStatusReport:
        """Fetch the current status of a scan.

        Args:
            handle: Handle returned by initiate_scan

        Returns:
            Latest ScanStatusReport

        Raises:
            ApiError: On transport failure or malformed response
        """
        response = self._post(self.status_url, {"reportId": [handle.report_id]})
        first = self._first_element(response)

        try:
            return ScanStatusReport.from_api(first)
        except ValidationError as e:
            raise ApiError(f"Malformed status response for report {handle.report_id}: {e}") from e
