"""Main CLI application using Typer."""

import logging
import sys
from enum import Enum
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from circmetrics import __version__

app = typer.Typer(
    name="circmetrics",
    help="circmetrics - Trap check management for the Circonus monitoring API",
    no_args_is_help=True,
)

console = Console()


class LogLevel(str, Enum):
    """Levels accepted by --log-level, the same as ``log_level`` in the config file."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


# Set from --log-level; takes precedence over the config file's log_level
cli_log_level: Optional[str] = None


def configure_logging(level: str = "INFO") -> None:
    """Route library logging to the console; only the CLI does this."""
    root = logging.getLogger()
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(console=Console(stderr=True), show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        root.addHandler(handler)
    root.setLevel(level)


def apply_log_level(config_level: str) -> None:
    """Use the config file's log level unless --log-level was given."""
    configure_logging(cli_log_level or config_level)


@app.callback()
def main_callback(
    log_level: Optional[LogLevel] = typer.Option(
        None,
        "--log-level",
        "-l",
        case_sensitive=False,
        help="Logging level (default: log_level from the config file)",
    ),
):
    global cli_log_level
    cli_log_level = log_level.value if log_level is not None else None
    if cli_log_level:
        configure_logging(cli_log_level)


@app.command()
def version():
    """Show circmetrics version."""
    console.print(f"circmetrics version {__version__}")


@app.command()
def init(
    config_path: str = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file (default: ~/.circmetrics/circmetrics.yaml)",
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing config"),
    non_interactive: bool = typer.Option(
        False, "--non-interactive", "-y", help="Use defaults without prompting"
    ),
    token: str = typer.Option(None, "--token", "-t", help="API token"),
    app_name: str = typer.Option(None, "--app", "-a", help="Application name"),
):
    """Write a circmetrics configuration file."""
    from circmetrics.cli.init_cmd import init_command

    init_command(
        config_path=config_path,
        force=force,
        non_interactive=non_interactive,
        token=token,
        app=app_name,
    )


@app.command()
def trap(
    config_path: str = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file",
    ),
):
    """Resolve (or create) the trap check and show its submission URL."""
    from circmetrics.cli.trap_cmd import trap_command

    trap_command(config_path=config_path)


@app.command()
def brokers(
    config_path: str = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file",
    ),
):
    """List brokers and whether they can host the configured check type."""
    from circmetrics.cli.trap_cmd import brokers_command

    brokers_command(config_path=config_path)


@app.command()
def clusters(
    config_path: str = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file",
    ),
    search: str = typer.Option(None, "--search", "-s", help="Search query"),
):
    """List metric clusters."""
    from circmetrics.cli.trap_cmd import clusters_command

    clusters_command(config_path=config_path, search=search)


def main():
    """Entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
