"""Initialize command - write a circmetrics.yaml with API credentials."""

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt

from circmetrics.config.defaults import default_instance_id, default_search_tag
from circmetrics.config.loader import DEFAULT_CONFIG_PATH, save_config
from circmetrics.config.schema import CircMetricsConfig

console = Console()


def init_command(
    config_path: str | None = None,
    force: bool = False,
    non_interactive: bool = False,
    token: str | None = None,
    app: str | None = None,
) -> None:
    """Initialize circmetrics configuration.

    Args:
        config_path: Destination (default: ~/.circmetrics/circmetrics.yaml)
        force: Overwrite existing config if present
        non_interactive: Use defaults without prompting
        token: API token
        app: Application name
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    console.print(
        Panel.fit(
            "[bold blue]circmetrics initialization[/bold blue]\n"
            "Configuring API access and check defaults...",
            border_style="blue",
        )
    )

    if path.exists() and not force:
        console.print(f"\n[yellow]Config already exists at {path}[/yellow]")
        console.print("Use [bold]--force[/bold] to overwrite.")
        raise typer.Exit(0)

    config = CircMetricsConfig()
    if app:
        config.api.app = app
    if token:
        config.api.token = token

    if not non_interactive:
        if not config.api.token:
            entered = Prompt.ask("API token (leave empty to run with a submission URL only)", default="")
            config.api.token = entered or None

        if Confirm.ask("\nCustomize check settings?", default=False):
            config.api.app = Prompt.ask("Application name", default=config.api.app)
            config.check.instance_id = Prompt.ask(
                "Instance id", default=default_instance_id(config.api.app)
            )
            config.check.search_tag = Prompt.ask(
                "Search tag", default=default_search_tag(config.api.app)
            )
            url = Prompt.ask("Submission URL (optional)", default="")
            config.check.submission_url = url or None

    if not config.api.token and not config.check.submission_url:
        console.print(
            "\n[yellow]No API token or submission URL configured; "
            "the check manager will refuse to start until one is set.[/yellow]"
        )

    save_config(config, path)
    console.print(f"\n[green]✓ Configuration saved to {path}[/green]")

    console.print("\nNext steps:")
    console.print("  1. Resolve the trap: [bold]circmetrics trap[/bold]")
    console.print("  2. Inspect brokers: [bold]circmetrics brokers[/bold]")
