"""CLI interface for the Sec1 SAST build step."""

import logging
import sys

import typer
from rich.text import Text

from sec1_sast.consts import INSTANCE_URL_ENV, WORKSPACE_ENV
from sec1_sast.credentials import EnvironmentSecretLookup
from sec1_sast.errors import Sec1SastError
from sec1_sast.models.model_threshold import ThresholdConfig
from sec1_sast.scanner.scan_orchestrator import ScanOrchestrator

app = typer.Typer(
    name="sec1-sast",
    help="Sec1 SAST - Trigger a remote SAST scan and gate the build on its results",
)

# Exit status for fatal failures; 0 and 2 come from ExitCode
EXIT_FAILURE = 1


def _wants_color(mode: str) -> bool:
    """Resolve the --color option to the ANSI capability flag."""
    mode = mode.strip().lower()
    if mode == "always":
        return True
    if mode == "never":
        return False
    return sys.stdout.isatty()


@app.callback()
def main() -> None:
    """Sec1 SAST build step."""


@app.command()
def scan(
    workspace: str = typer.Option(
        ".", "--workspace", "-w", envvar=WORKSPACE_ENV, help="Repository checkout to scan"
    ),
    credentials_id: str = typer.Option(
        None,
        "--credentials-id",
        envvar="SEC1_CREDENTIALS_ID",
        help="Environment variable holding the API key (falls back to SEC1_API_KEY)",
    ),
    instance_url: str = typer.Option(
        None, "--instance-url", envvar=INSTANCE_URL_ENV, help="Sec1 API base URL"
    ),
    critical: str = typer.Option(None, "--critical", help="Critical vulnerability limit"),
    high: str = typer.Option(None, "--high", help="High vulnerability limit"),
    medium: str = typer.Option(None, "--medium", help="Medium vulnerability limit"),
    low: str = typer.Option(None, "--low", help="Low vulnerability limit"),
    action: str = typer.Option(
        None,
        "--action",
        envvar="SEC1_THRESHOLD_ACTION",
        help="Action on threshold breach: fail (default), unstable, continue",
    ),
    color: str = typer.Option(
        "auto", "--color", help="ANSI colors in the build log: auto, always, never"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Run a Sec1 SAST scan for the workspace repository."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    ansi_color = _wants_color(color)

    threshold = None
    if any(limit for limit in (critical, high, medium, low)):
        threshold = ThresholdConfig(
            critical=critical,
            high=high,
            medium=medium,
            low=low,
            breach_action=action,
        )
    elif action:
        logging.getLogger(__name__).warning("--action given without any limit, ignoring it")

    environ = {INSTANCE_URL_ENV: instance_url} if instance_url else {}

    orchestrator = ScanOrchestrator(
        workspace=workspace,
        secret_lookup=EnvironmentSecretLookup(),
        credentials_id=credentials_id,
        threshold=threshold,
        environ=environ,
        ansi_color=ansi_color,
    )

    try:
        result = orchestrator.run()
    except Sec1SastError as e:
        orchestrator.console.print(Text(str(e), style="red"))
        raise typer.Exit(EXIT_FAILURE)

    raise typer.Exit(int(result.exit_code))


if __name__ == "__main__":
    app()
