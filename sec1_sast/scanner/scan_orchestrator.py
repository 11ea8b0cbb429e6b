"""Runs one Sec1 SAST scan end to end and decides the build outcome."""

import logging
import os
import time
from collections.abc import Callable, Mapping
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.text import Text

from sec1_sast.consts import (
    DEFAULT_INSTANCE_URL,
    INSTANCE_URL_ENV,
    POLL_INTERVAL_SECONDS,
    SCAN_TIMEOUT_SECONDS,
)
from sec1_sast.credentials import SecretLookup, resolve_api_key
from sec1_sast.errors import (
    ConfigurationError,
    MetadataNotFoundError,
    ScanFailedError,
    ScanTimeoutError,
)
from sec1_sast.models.model_scan import ScanHandle, ScanRequest, ScanStatusReport
from sec1_sast.models.model_threshold import ScanResult, ThresholdConfig
from sec1_sast.repository.git_metadata import GitMetadataReader
from sec1_sast.scanner.poll_loop import PollLoop
from sec1_sast.scanner.scan_client import ScanClient
from sec1_sast.scanner.threshold_evaluator import ThresholdEvaluator, describe_limits

logger = logging.getLogger(__name__)

START_BANNER = "**************Sec1 SAST Security scan start**************"
END_BANNER = "**************Sec1 SAST Security scan end**************"
CONFIG_HEADER = "==================== SEC1 SAST SCAN CONFIG ===================="
RESULT_HEADER = "==================== SEC1 SAST SCAN RESULT ===================="


def build_console(ansi_color: bool) -> Console:
    """Create the build-log console. Colors are emitted only if ``ansi_color``."""
    return Console(
        no_color=not ansi_color,
        force_terminal=True if ansi_color else None,
        highlight=False,
        soft_wrap=True,
    )


class ScanOrchestrator:
    """Sequences key lookup, metadata, scan, polling and threshold gating.

    Any failure other than a threshold breach under the unstable or
    continue policy propagates as a Sec1SastError. Nothing is retried.
    """

    def __init__(
        self,
        workspace: Path | str,
        secret_lookup: SecretLookup,
        credentials_id: str | None = None,
        threshold: ThresholdConfig | None = None,
        environ: Mapping[str, str] | None = None,
        ansi_color: bool = False,
        console: Console | None = None,
        metadata_reader: GitMetadataReader | None = None,
        client_factory: Callable[[str, str], ScanClient] = ScanClient,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        poll_timeout: float = SCAN_TIMEOUT_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize ScanOrchestrator.

        Args:
            workspace: Repository checkout to scan
            secret_lookup: Store used to resolve the API key
            credentials_id: Configured secret identifier, may be None
            threshold: Limits to gate on; None disables gating
            environ: Environment used for the instance URL override
            ansi_color: Whether the build log renders ANSI colors
            console: Console for build-log output (default: built from ansi_color)
            metadata_reader: Reader for .git metadata
            client_factory: Builds a ScanClient from (base_url, api_key)
            poll_interval: Seconds between status checks
            poll_timeout: Overall polling budget in seconds
            sleep: Blocking sleep used by the poll loop
            clock: Monotonic clock used by the poll loop
        """
        self.workspace = Path(workspace)
        self.secret_lookup = secret_lookup
        self.credentials_id = credentials_id
        self.threshold = threshold
        self.environ = environ if environ is not None else os.environ
        self.ansi_color = ansi_color
        self.console = console or build_console(ansi_color)
        self.metadata_reader = metadata_reader or GitMetadataReader()
        self.client_factory = client_factory
        self.poll_interval = poll_interval
        self.poll_timeout = poll_timeout
        self._sleep = sleep
        self._clock = clock
        self.evaluator = ThresholdEvaluator()

    def _print(self, message: str, style: str | None = None) -> None:
        self.console.print(Text(message, style=style or ""))

    def resolve_instance_url(self) -> str:
        """Return the API base URL from the environment or the default."""
        instance_url = (self.environ.get(INSTANCE_URL_ENV) or "").strip()
        if instance_url:
            self._print(f"{INSTANCE_URL_ENV} : {instance_url}")
            return instance_url
        return DEFAULT_INSTANCE_URL

    def build_request(self) -> ScanRequest:
        """Build the scan request from the workspace git metadata.

        Raises:
            ConfigurationError: If no origin URL can be read
        """
        try:
            origin_url = self.metadata_reader.read_origin_url(self.workspace)
        except MetadataNotFoundError as e:
            logger.debug(f"Origin lookup failed: {e}")
            raise ConfigurationError(
                "No valid manifest found in working directory. Please check your configuration."
            ) from e
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(
                "Exception while getting scm url from .git folder of workspace."
            ) from e

        application_name = self.metadata_reader.derive_application_name(origin_url)

        branch_name = None
        try:
            branch_name = self.metadata_reader.read_current_branch(self.workspace)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error extracting branch name for scm url {origin_url}: {e}")

        try:
            return ScanRequest(
                repository_url=origin_url,
                branch_name=branch_name,
                application_name=application_name,
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid repository URL '{origin_url}': {e}") from e

    def _print_config(self, request: ScanRequest) -> None:
        apply_threshold = self.threshold is not None
        self._print(CONFIG_HEADER)
        self._print(f"SCM Url                {request.repository_url}")
        self._print(f"Threshold Enabled      {str(apply_threshold).lower()}")
        if apply_threshold:
            self._print(f"Threshold Values       {describe_limits(self.threshold)}")

    def _print_failure(self, handle: ScanHandle) -> None:
        self._print("Sec1 SAST Security Scanner Report:")
        self._print(f"Report ID: {handle.report_id}")
        self._print(f"Report URL: {handle.report_url}")
        self._print("Status: FAILURE")

    def _on_progress(self, report: ScanStatusReport) -> None:
        self._print("Scan is still in progress...")

    def run(self) -> ScanResult:
        """Run the scan and gate the build.

        Returns:
            ScanResult with SUCCESS or UNSTABLE exit code

        Raises:
            ConfigurationError: No API key or repository URL
            ApiError: The Sec1 API call failed
            ScanFailedError: The remote scan failed
            ScanTimeoutError: The remote scan did not finish in time
            ThresholdBreachError: A limit was breached under the fail policy
        """
        self._print(START_BANNER, "green")

        api_key = resolve_api_key(self.secret_lookup, self.credentials_id)
        base_url = self.resolve_instance_url()
        request = self.build_request()
        self._print_config(request)

        client = self.client_factory(base_url, api_key)
        handle = client.initiate_scan(request)

        poll_loop = PollLoop(
            client,
            interval=self.poll_interval,
            timeout=self.poll_timeout,
            sleep=self._sleep,
            clock=self._clock,
            progress_callback=self._on_progress,
        )
        try:
            report = poll_loop.run(handle)
        except (ScanFailedError, ScanTimeoutError):
            self._print_failure(handle)
            raise

        self._print(RESULT_HEADER)
        if not report.error_message:
            self._print(f"Vulnerabilities Found  {report.vulnerabilities.summary()}")
            self._print(f"Report Url             {handle.report_url}")

        evaluation = self.evaluator.evaluate(report, self.threshold or ThresholdConfig())

        if evaluation.error_message:
            self._print(f"Error Details : {evaluation.error_message}", "red")
        for message in evaluation.breaches:
            self._print(message, "red" if evaluation.exit_code else None)

        self._print(END_BANNER, "green")
        logger.info(f"Scan {handle.report_id} finished with {evaluation.exit_code.name}")

        return ScanResult(
            exit_code=evaluation.exit_code,
            handle=handle,
            report=report,
            breaches=evaluation.breaches,
            error_message=evaluation.error_message,
        )
