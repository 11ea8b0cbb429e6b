"""Tests for ScanOrchestrator end-to-end flow."""

import io
import json
from functools import partial

import httpx
import pytest
from rich.console import Console

from sec1_sast.credentials import EnvironmentSecretLookup
from sec1_sast.errors import (
    ApiError,
    ConfigurationError,
    ScanFailedError,
    ScanTimeoutError,
    ThresholdBreachError,
)
from sec1_sast.models.model_threshold import ExitCode, ThresholdConfig
from sec1_sast.scanner.scan_client import ScanClient
from sec1_sast.scanner.scan_orchestrator import ScanOrchestrator

SECRETS = EnvironmentSecretLookup({"SEC1_API_KEY": "key-xyz"})


class TestScanOrchestrator:
    """Tests for ScanOrchestrator.run()."""

    @pytest.fixture
    def output(self) -> io.StringIO:
        return io.StringIO()

    @pytest.fixture
    def make_orchestrator(self, make_git_repo, fake_clock, output):
        """Build an orchestrator wired to an API stub and fake clock."""

        def _make(api_stub, threshold=None, environ=None, repo=None, secrets=SECRETS):
            return ScanOrchestrator(
                workspace=repo or make_git_repo(),
                secret_lookup=secrets,
                threshold=threshold,
                environ=environ or {},
                console=Console(file=output, no_color=True, width=200),
                client_factory=partial(ScanClient, transport=api_stub.transport()),
                sleep=fake_clock.sleep,
                clock=fake_clock,
            )

        return _make

    def test_success_after_three_checks(self, make_orchestrator, make_api_stub, fake_clock) -> None:
        """Test SCANNING, SCANNING, COMPLETED under the limits yields success."""
        stub = make_api_stub(
            [
                {"scanStatus": "SCANNING"},
                {"scanStatus": "SCANNING"},
                {"scanStatus": "COMPLETED", "critical": 0, "high": 1},
            ]
        )
        threshold = ThresholdConfig(critical="1", high="5")

        result = make_orchestrator(stub, threshold=threshold).run()

        assert result.exit_code == ExitCode.SUCCESS
        assert result.handle.report_id == "rep-123"
        assert len(stub.status_requests) == 3
        assert fake_clock.sleeps == [10, 10, 10]

    def test_request_built_from_workspace(self, make_orchestrator, make_api_stub) -> None:
        stub = make_api_stub([{"scanStatus": "COMPLETED"}])

        make_orchestrator(stub).run()

        scan_request = stub.requests[0]
        assert str(scan_request.url) == "https://api.sec1.io/rest/foss/sast/ascan"
        assert scan_request.headers["sec1-api-key"] == "key-xyz"
        assert json.loads(scan_request.content)["scanRequestList"][0] == {
            "location": "https://github.com/acme/payments-api.git",
            "branchName": "main",
            "appName": "acme/payments-api.git",
            "source": "jenkins",
        }

    def test_instance_url_override(self, make_orchestrator, make_api_stub, output) -> None:
        stub = make_api_stub([{"scanStatus": "COMPLETED"}])

        make_orchestrator(stub, environ={"SEC1_INSTANCE_URL": "https://sec1.internal"}).run()

        assert str(stub.requests[0].url) == "https://sec1.internal/rest/foss/sast/ascan"
        assert str(stub.requests[1].url) == "https://sec1.internal/sast/asset/report/status"
        assert "SEC1_INSTANCE_URL : https://sec1.internal" in output.getvalue()

    def test_detached_head_omits_branch(
        self, make_orchestrator, make_api_stub, make_git_repo
    ) -> None:
        stub = make_api_stub([{"scanStatus": "COMPLETED"}])
        repo = make_git_repo(head="9b1c2d3e4f\n")

        make_orchestrator(stub, repo=repo).run()

        entry = json.loads(stub.requests[0].content)["scanRequestList"][0]
        assert "branchName" not in entry

    def test_unstable_breach(self, make_orchestrator, make_api_stub, output) -> None:
        stub = make_api_stub([{"scanStatus": "COMPLETED", "critical": 5, "high": 2}])
        threshold = ThresholdConfig(critical="3", breach_action="unstable")

        result = make_orchestrator(stub, threshold=threshold).run()

        assert result.exit_code == ExitCode.UNSTABLE
        assert result.breaches == ["Critical Vulnerability Threshold breached."]
        log = output.getvalue()
        assert "Vulnerabilities Found  Critical 5, High 2, Medium 0, Low 0" in log
        assert "Report Url             https://scopy.sec1.io/sast-advance-dashboard/rep-123" in log
        assert "Threshold Values       Critical 3, High NA, Medium NA, Low NA" in log

    def test_fail_breach_raises(self, make_orchestrator, make_api_stub) -> None:
        stub = make_api_stub([{"scanStatus": "COMPLETED", "critical": 5}])
        threshold = ThresholdConfig(critical="3")

        with pytest.raises(ThresholdBreachError):
            make_orchestrator(stub, threshold=threshold).run()

    def test_no_threshold_never_gates(self, make_orchestrator, make_api_stub, output) -> None:
        stub = make_api_stub([{"scanStatus": "COMPLETED", "critical": 99}])

        result = make_orchestrator(stub).run()

        assert result.exit_code == ExitCode.SUCCESS
        assert "Threshold Enabled      false" in output.getvalue()

    def test_remote_error_is_unstable(self, make_orchestrator, make_api_stub, output) -> None:
        stub = make_api_stub(
            [{"scanStatus": "COMPLETED", "critical": 9, "errorMessage": "Clone failed"}]
        )

        result = make_orchestrator(stub, threshold=ThresholdConfig(critical="1")).run()

        assert result.exit_code == ExitCode.UNSTABLE
        assert result.error_message == "Clone failed"
        assert "Error Details : Clone failed" in output.getvalue()
        assert "Vulnerabilities Found" not in output.getvalue()

    def test_scan_failed_prints_report(self, make_orchestrator, make_api_stub, output) -> None:
        stub = make_api_stub([{"scanStatus": "SCANNING"}, {"scanStatus": "FAILED"}])

        with pytest.raises(ScanFailedError):
            make_orchestrator(stub).run()

        log = output.getvalue()
        assert "Report ID: rep-123" in log
        assert "Status: FAILURE" in log

    def test_timeout_raised_once(self, make_orchestrator, make_api_stub, fake_clock) -> None:
        """Test a scan that never finishes times out within one interval of the budget."""
        stub = make_api_stub([{"scanStatus": "SCANNING"}])
        start = fake_clock.now

        with pytest.raises(ScanTimeoutError):
            make_orchestrator(stub).run()

        assert fake_clock.now - start <= 600 + 10

    def test_missing_api_key(self, make_orchestrator, make_api_stub) -> None:
        stub = make_api_stub([{"scanStatus": "COMPLETED"}])

        with pytest.raises(ConfigurationError, match="API Key"):
            make_orchestrator(stub, secrets=EnvironmentSecretLookup({})).run()

        assert stub.requests == []

    def test_missing_origin(self, make_orchestrator, make_api_stub, make_git_repo) -> None:
        stub = make_api_stub([{"scanStatus": "COMPLETED"}])
        repo = make_git_repo(config="[core]\n\tbare = false\n")

        with pytest.raises(ConfigurationError, match="No valid manifest"):
            make_orchestrator(stub, repo=repo).run()

        assert stub.requests == []

    def test_initiation_failure(self, make_orchestrator, make_api_stub) -> None:
        stub = make_api_stub(
            [{"scanStatus": "COMPLETED"}], scan_response=httpx.Response(500, text="down")
        )

        with pytest.raises(ApiError):
            make_orchestrator(stub).run()

        assert stub.status_requests == []

    def test_progress_is_printed(self, make_orchestrator, make_api_stub, output) -> None:
        stub = make_api_stub([{"scanStatus": "SCANNING"}, {"scanStatus": "COMPLETED"}])

        make_orchestrator(stub).run()

        assert output.getvalue().count("Scan is still in progress...") == 1

    def test_no_ansi_codes_without_color(self, make_orchestrator, make_api_stub, output) -> None:
        stub = make_api_stub([{"scanStatus": "COMPLETED"}])

        make_orchestrator(stub).run()

        assert "\x1b[" not in output.getvalue()
