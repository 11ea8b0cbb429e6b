"""Blocking poll loop that waits for a remote scan to finish."""

import logging
import time
from collections.abc import Callable

from sec1_sast.consts import POLL_INTERVAL_SECONDS, SCAN_TIMEOUT_SECONDS
from sec1_sast.errors import ScanFailedError, ScanTimeoutError
from sec1_sast.models.model_scan import ScanHandle, ScanStatus, ScanStatusReport
from sec1_sast.scanner.scan_client import ScanClient

logger = logging.getLogger(__name__)


class PollLoop:
    """Polls the status endpoint until the scan completes, fails or times out.

    States: INITIATED → SCANNING → {COMPLETED, FAILED}, plus an implicit
    TIMEOUT. One handle is tracked per run, so polling is sequential and
    the sleep blocks the calling thread.
    """

    def __init__(
        self,
        client: ScanClient,
        interval: float = POLL_INTERVAL_SECONDS,
        timeout: float = SCAN_TIMEOUT_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        progress_callback: Callable[[ScanStatusReport], None] | None = None,
    ):
        """Initialize PollLoop.

        Args:
            client: ScanClient used for status checks
            interval: Seconds to wait before each status check
            timeout: Overall budget in seconds, measured from loop entry
            sleep: Blocking sleep function
            clock: Monotonic clock returning seconds
            progress_callback: Optional callback invoked with every non-terminal report
        """
        self.client = client
        self.interval = interval
        self.timeout = timeout
        self._sleep = sleep
        self._clock = clock
        self.progress_callback = progress_callback

    def run(self, handle: ScanHandle) -> ScanStatusReport:
        """Wait for the scan behind ``handle`` to reach a terminal state.

        The timeout is checked before every sleep, so the loop exceeds its
        budget by at most one interval plus one request.

        Args:
            handle: Handle of the initiated scan

        Returns:
            The COMPLETED status report

        Raises:
            ScanFailedError: If the scan reports FAILED
            ScanTimeoutError: If the budget runs out first
            ApiError: If a status check fails
        """
        start = self._clock()
        checks = 0

        while True:
            elapsed = self._clock() - start
            if elapsed > self.timeout:
                logger.error(
                    f"Report {handle.report_id} not finished after {elapsed:.0f}s "
                    f"({checks} status checks)"
                )
                raise ScanTimeoutError(handle.report_id, self.timeout)

            self._sleep(self.interval)

            report = self.client.check_status(handle)
            checks += 1
            status = report.status

            if status == ScanStatus.COMPLETED:
                logger.info(f"Scan {handle.report_id} completed after {checks} status checks")
                return report
            if status == ScanStatus.FAILED:
                raise ScanFailedError(handle.report_id)
            if status in (ScanStatus.SCANNING, ScanStatus.INITIATED):
                logger.debug(f"Report {handle.report_id} is {status.value}")
            else:
                # Unknown states are treated as in progress; the timeout still applies
                logger.warning(
                    f"Unrecognized scan status '{report.scan_status}' for report "
                    f"{handle.report_id}, continuing to poll"
                )

            if self.progress_callback:
                self.progress_callback(report)
