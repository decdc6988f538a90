"""Command-line interface for the lead sync engine.

Each command builds a fresh engine from settings, runs one operation and
shuts the engine down again.
"""

import asyncio
import json
import logging
import uuid
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.table import Table

from .config import EngineSettings, load_settings
from .engine import SyncEngine, create_engine
from .sync.models import SyncInterval, SyncResult, SyncState, SyncStatus


console = Console()


def setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


def get_engine(ctx: click.Context) -> SyncEngine:
    settings: EngineSettings = ctx.obj["settings"]
    return create_engine(settings)


@click.group(name="leadsync")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Path to a config.yaml file")
@click.option("--data-dir", help="Directory holding the database and preferences")
@click.option("--user", "principal_id", help="Principal id to sync as")
@click.option("--token", "api_token", help="API token for the remote store")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], data_dir: Optional[str],
        principal_id: Optional[str], api_token: Optional[str], verbose: bool):
    """Synchronize local leads with the remote document store."""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = load_settings(
        config_path,
        data_dir=data_dir,
        principal_id=principal_id,
        api_token=api_token,
    )


@cli.command("sync")
@click.option("--no-appointments", is_flag=True, help="Only sync leads")
@click.option("--json", "output_json", is_flag=True, help="Output the result as JSON")
@click.pass_context
def sync_command(ctx: click.Context, no_appointments: bool, output_json: bool):
    """Run one sync pass."""
    try:
        outcome = asyncio.run(_run_sync(get_engine(ctx), not no_appointments))
    except KeyboardInterrupt:
        console.print("\n[yellow]Sync cancelled[/yellow]")
        raise SystemExit(130)

    if outcome is None:
        console.print("[yellow]Not signed in; pass --user or set LEADSYNC_PRINCIPAL_ID[/yellow]")
        raise SystemExit(1)

    status, result = outcome
    if output_json:
        console.print(json.dumps({"status": str(status), **result.to_dict()}, indent=2))
    else:
        _display_sync_result(str(status), status.state, result)

    if status.state == SyncState.FAILED:
        raise SystemExit(1)


async def _run_sync(engine: SyncEngine,
                    include_appointments: bool) -> Optional[Tuple[SyncStatus, SyncResult]]:
    try:
        task = engine.orchestrator.start_sync(include_secondary=include_appointments)
        if task is None:
            return None
        result = await task
        return engine.orchestrator.status, result
    finally:
        await engine.aclose()


def _display_sync_result(status_text: str, state: SyncState, result: SyncResult):
    if state == SyncState.COMPLETED:
        console.print("[green]✅ Sync successful[/green]")
    elif state == SyncState.FAILED:
        console.print(f"[red]❌ Sync {status_text}[/red]")
    else:
        console.print(f"[yellow]⚠️ Sync stopped ({status_text})[/yellow]")

    stats_table = Table()
    stats_table.add_column("Metric", style="cyan")
    stats_table.add_column("Count", justify="right")

    stats_table.add_row("Corrupted removed", str(result.swept))
    stats_table.add_row("Leads uploaded", str(result.uploaded))
    stats_table.add_row("Leads created", str(result.download.created))
    stats_table.add_row("Leads updated", str(result.download.updated))
    stats_table.add_row("Recent edits kept", str(result.download.skipped))
    stats_table.add_row("Invalid documents", str(result.download.invalid))
    stats_table.add_row("Deleted leads not restored", str(result.download.deleted))
    stats_table.add_row("Appointments uploaded", str(result.appointments_uploaded))
    stats_table.add_row("Appointments downloaded", str(result.appointments_downloaded))
    stats_table.add_row("Attempts", str(result.attempts))
    stats_table.add_row("Duration", f"{result.duration_seconds:.1f}s")

    console.print(stats_table)

    if result.errors:
        console.print("\n[red]Errors:[/red]")
        for error in result.errors:
            console.print(f"  • {error}")


@cli.command("status")
@click.pass_context
def status_command(ctx: click.Context):
    """Show sync preferences and local record counts."""
    engine = get_engine(ctx)
    try:
        orchestrator = engine.orchestrator
        table = Table(title="Lead Sync")
        table.add_column("Property", style="cyan")
        table.add_column("Value")

        table.add_row("User", engine.auth.principal_id or "[dim]Not signed in[/dim]")
        table.add_row("Auto-sync", "✅" if orchestrator.is_auto_sync_enabled else "❌")
        table.add_row("Interval", orchestrator.sync_interval.display_name)
        table.add_row("Leads", str(engine.records.count()))
        table.add_row("Appointments", str(len(engine.appointments.fetch_all())))
        console.print(table)
    finally:
        asyncio.run(engine.aclose())


@cli.command("auto-sync")
@click.argument("state", type=click.Choice(["on", "off"]))
@click.pass_context
def auto_sync_command(ctx: click.Context, state: str):
    """Turn periodic sync on or off."""
    engine = get_engine(ctx)
    try:
        engine.orchestrator.toggle_auto_sync(state == "on")
    finally:
        asyncio.run(engine.aclose())
    console.print(f"Auto-sync {'enabled' if state == 'on' else 'disabled'}")


@cli.command("interval")
@click.argument("preset", type=click.Choice([i.value for i in SyncInterval]))
@click.pass_context
def interval_command(ctx: click.Context, preset: str):
    """Set the periodic sync interval."""
    interval = SyncInterval(preset)
    engine = get_engine(ctx)
    try:
        engine.orchestrator.set_sync_interval(interval)
    finally:
        asyncio.run(engine.aclose())
    console.print(f"Sync interval set to: {interval.display_name}")


def _parse_ids(values: Tuple[str, ...]) -> list:
    ids = []
    for value in values:
        try:
            ids.append(uuid.UUID(value))
        except ValueError:
            raise click.BadParameter(f"Not a valid lead id: {value}", param_hint="IDS")
    return ids


@cli.command("delete")
@click.argument("ids", nargs=-1, required=True)
@click.pass_context
def delete_command(ctx: click.Context, ids: Tuple[str, ...]):
    """Delete leads locally and from the remote store."""
    record_ids = _parse_ids(ids)
    report = asyncio.run(_run_delete(get_engine(ctx), record_ids))

    console.print(f"Deleted {report.local_deleted} lead(s) locally")
    if report.remote_failed:
        console.print(f"[yellow]{report.remote_failed} remote delete(s) failed[/yellow]")


async def _run_delete(engine: SyncEngine, record_ids: list):
    try:
        return await engine.orchestrator.delete_records(record_ids)
    finally:
        await engine.aclose()


@cli.command("sweep")
@click.pass_context
def sweep_command(ctx: click.Context):
    """Remove corrupted local leads without syncing."""
    removed = asyncio.run(_run_sweep(get_engine(ctx)))
    console.print(f"Removed {removed} corrupted lead(s)")


async def _run_sweep(engine: SyncEngine) -> int:
    try:
        return await engine.orchestrator.sweeper.sweep()
    finally:
        await engine.aclose()


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
