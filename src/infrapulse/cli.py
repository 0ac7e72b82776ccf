"""Command-line interface for InfraPulse."""

import getpass
import json
import logging
import shutil
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.text import Text

from infrapulse import __version__
from infrapulse.config import DEFAULT_CONFIG_DIR, Config, resolve_interval, write_default_config
from infrapulse.exceptions import ConfigError
from infrapulse.models import CheckResult
from infrapulse.monitor import CycleReport, Monitor, install_signal_handlers
from infrapulse.notifiers import DeliveryOutcome

console = Console()

OUTCOME_MESSAGES = {
    DeliveryOutcome.SENT: ("Failure alerts sent via email.", "yellow"),
    DeliveryOutcome.DISABLED: ("SMTP configuration not found, skipping email alerts.", "yellow"),
    DeliveryOutcome.NO_RECIPIENTS: ("No alert recipient configured, skipping email alerts.", "yellow"),
    DeliveryOutcome.FAILED: ("Email alert failed to send.", "red"),
}

SYSTEMD_UNIT = """\
[Unit]
Description=InfraPulse Monitoring Service
After=network.target

[Service]
Type=simple
User={user}
ExecStart={exec_start}
Restart=on-failure

[Install]
WantedBy=multi-user.target
"""


def setup_logging(level: str) -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def format_result(result: CheckResult) -> Text:
    """Render one result as a colored line."""
    unit = result.unit
    style = "green" if result.is_up else "red"

    if unit.is_ping:
        state = "up" if result.is_up else "down"
        line = f"  [{result.status.value}] {unit.name} ({unit.host}): Host is {state}"
    else:
        line = f"    - {unit.name} ({unit.host}) Port {unit.port}: [{result.status.value}]"

    text = Text(line, style=style)
    if result.is_down and result.error:
        text.append(f"  {result.error}", style="dim")
    return text


def print_result(result: CheckResult) -> None:
    console.print(format_result(result))


def print_json_result(result: CheckResult) -> None:
    click.echo(json.dumps(result.to_dict()))


def print_outcome(report: CycleReport) -> None:
    """Report what happened to the cycle's alerts."""
    if report.outcome in OUTCOME_MESSAGES:
        message, style = OUTCOME_MESSAGES[report.outcome]
        console.print(Text(message, style=style))


def format_interval(seconds: float) -> str:
    return f"{seconds:g}s"


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """InfraPulse - host and port availability monitoring with email alerts."""
    pass


@main.command()
@click.option(
    "-c", "--config",
    type=click.Path(dir_okay=False),
    help="Path to servers.yaml (default: ~/.config/infrapulse/servers.yaml)",
)
@click.option(
    "-d", "--daemon",
    is_flag=True,
    help="Run in monitoring loop mode. Use a service manager to run in background.",
)
@click.option(
    "-i", "--interval",
    default=None,
    help="Check interval in loop mode (e.g. '60s', '5m'). Overrides the config file.",
)
@click.option(
    "--json", "output_json",
    is_flag=True,
    help="Print results as JSON lines",
)
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level",
)
def check(
    config: Optional[str],
    daemon: bool,
    interval: Optional[str],
    output_json: bool,
    log_level: str,
) -> None:
    """Check all configured hosts and ports."""
    setup_logging(log_level)

    path = Path(config) if config else Config.default_path()
    try:
        cfg = Config.load(path)
        loop_interval = resolve_interval(interval, cfg.check_interval) if daemon else None
    except ConfigError as e:
        console.print(Text(f"Error loading configuration: {e}", style="red"))
        sys.exit(1)

    monitor = Monitor(
        cfg,
        on_result=print_json_result if output_json else print_result,
        on_cycle=None if output_json else print_outcome,
    )

    if loop_interval is not None:
        install_signal_handlers(monitor)
        if not output_json:
            console.print(Text("InfraPulse: Starting monitoring loop...", style="cyan"))
            console.print(Text(f"Check interval: {format_interval(loop_interval)}", style="cyan"))
        monitor.run_forever(loop_interval)
        if not output_json:
            console.print(Text("\nShutting down monitoring loop...", style="cyan"))
        return

    if not output_json:
        console.print(Text("InfraPulse: Starting health checks...", style="cyan"))
    monitor.run_once()
    if not output_json:
        console.print(Text("All checks complete.", style="cyan"))


@main.command()
@click.option(
    "--dir", "directory",
    default=str(DEFAULT_CONFIG_DIR),
    help="Configuration directory (default: ~/.config/infrapulse)",
)
@click.option(
    "--force", "-f",
    is_flag=True,
    help="Overwrite existing files",
)
def init(directory: str, force: bool) -> None:
    """Create default servers.yaml and config.yaml files."""
    written = write_default_config(directory, force=force)

    if not written:
        console.print(f"[yellow]Configuration already exists in {directory}[/]")
        console.print("Use --force to overwrite")
        return

    for path in written:
        console.print(f"[green]Created {path}[/]")
    console.print("Edit servers.yaml to choose what to monitor.")
    console.print("Fill in the SMTP settings in config.yaml to enable email alerts.")


@main.command("systemd-unit")
@click.option(
    "-c", "--config",
    type=click.Path(dir_okay=False),
    help="Path to servers.yaml passed to the service",
)
@click.option(
    "-i", "--interval",
    default=None,
    help="Check interval passed to the service",
)
def systemd_unit(config: Optional[str], interval: Optional[str]) -> None:
    """Print a systemd unit that runs the monitoring loop."""
    executable = shutil.which("infrapulse") or "infrapulse"
    args = [executable, "check", "--daemon"]
    if config:
        args += ["--config", str(Path(config).expanduser().resolve())]
    if interval:
        args += ["--interval", interval]

    click.echo(SYSTEMD_UNIT.format(user=getpass.getuser(), exec_start=" ".join(args)), nl=False)


if __name__ == "__main__":
    main()
