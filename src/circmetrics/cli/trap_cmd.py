"""CLI commands that talk to the monitoring API."""

import asyncio
from pathlib import Path

from rich.console import Console
from rich.table import Table

from circmetrics.api.client import API
from circmetrics.checkmgr.broker import check_broker
from circmetrics.checkmgr.manager import CheckManager
from circmetrics.cli.app import apply_log_level
from circmetrics.config.loader import load_config
from circmetrics.config.schema import CircMetricsConfig

console = Console()


def _load(config_path: str | None) -> CircMetricsConfig:
    config = load_config(Path(config_path) if config_path else None)
    apply_log_level(config.log_level)
    return config


async def _async_trap(config_path: str | None = None) -> None:
    """Async implementation of trap resolution."""
    config = _load(config_path)

    async with CheckManager(config) as manager:
        mode = "enabled" if manager.enabled else "disabled (submission URL only)"
        console.print(f"[bold]Resolving trap...[/bold] check manager {mode}\n")

        trap = await manager.get_trap()

        table = Table(title="Trap", show_header=False)
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="white")
        table.add_row("URL", trap.url)
        table.add_row("Broker CN", trap.cn or "-")
        if manager.check_bundle is not None:
            bundle = manager.check_bundle
            table.add_row("Check bundle", bundle.cid or "-")
            table.add_row("Display name", bundle.display_name)
            table.add_row("Metrics", str(len(bundle.metrics)))
        if manager.check_id:
            table.add_row("Check id", str(manager.check_id))

        console.print(table)


def trap_command(config_path: str | None = None) -> None:
    """Resolve (or create) the trap check and print its URL."""
    asyncio.run(_async_trap(config_path))


async def _async_brokers(config_path: str | None = None) -> None:
    """Async implementation of broker listing."""
    config = _load(config_path)

    if not config.api.token:
        console.print("[yellow]No API token configured[/yellow]")
        return

    async with API.from_config(config.api) as api:
        if config.broker.select_tag:
            brokers = await api.search_brokers(filters={"f__tags_has": [config.broker.select_tag]})
        else:
            brokers = await api.fetch_brokers()

        results = await asyncio.gather(
            *(check_broker(b, config.check.type, config.broker.max_response_time) for b in brokers)
        )

    table = Table(title="Brokers")
    table.add_column("CID", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("Type", style="magenta")
    table.add_column("Instances", style="blue")
    table.add_column(f"Valid for {config.check.type}", style="white")
    table.add_column("Latency", style="yellow")

    for broker, candidate in zip(brokers, results):
        if candidate is not None:
            valid = "[green]yes[/green]"
            latency = f"{candidate.latency_ms:.1f}ms"
        else:
            valid = "[red]no[/red]"
            latency = "-"
        table.add_row(
            broker.cid,
            broker.name,
            broker.type,
            str(len(broker.details)),
            valid,
            latency,
        )

    console.print(table)

    usable = sum(1 for c in results if c is not None)
    console.print(f"\n[bold]Summary:[/bold] {usable}/{len(brokers)} brokers usable")


def brokers_command(config_path: str | None = None) -> None:
    """List brokers and whether new checks could be placed on them."""
    asyncio.run(_async_brokers(config_path))


async def _async_clusters(config_path: str | None = None, search: str | None = None) -> None:
    """Async implementation of metric cluster listing."""
    config = _load(config_path)

    if not config.api.token:
        console.print("[yellow]No API token configured[/yellow]")
        return

    async with API.from_config(config.api) as api:
        clusters = await api.search_metric_clusters(search=search)

    table = Table(title="Metric Clusters")
    table.add_column("CID", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("Queries", style="blue")
    table.add_column("Tags", style="magenta")

    for cluster in clusters:
        table.add_row(
            cluster.cid or "-",
            cluster.name,
            "\n".join(f"{q.type}: {q.query}" for q in cluster.queries),
            ", ".join(cluster.tags),
        )

    console.print(table)


def clusters_command(config_path: str | None = None, search: str | None = None) -> None:
    """List metric clusters, optionally filtered by a search query."""
    asyncio.run(_async_clusters(config_path, search))
