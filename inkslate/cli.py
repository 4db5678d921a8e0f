#!/usr/bin/env python3
"""
Command-line interface for InkSlate.

Provides note, budget and trash management against a local database.
"""

import asyncio
import logging
import sys
from datetime import timedelta
from typing import Any, Coroutine, Optional, TypeVar

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .app import SlateApplication
from .config import SlateConfig, get_config
from .soft_delete import SoftDeleteService, SweepResult

console = Console()

T = TypeVar("T")

# CLI names for the managed record kinds
KINDS = {"notes": "Note", "budget": "BudgetItem"}


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine from synchronous click commands."""
    return asyncio.run(coro)


def get_app(ctx: click.Context) -> SlateApplication:
    """Build the application once per invocation."""
    if ctx.obj.get("app") is None:
        app = SlateApplication(ctx.obj["config"])
        ctx.call_on_close(app.engine.dispose)
        ctx.obj["app"] = app
    return ctx.obj["app"]


def get_trash(ctx: click.Context, kind: str) -> SoftDeleteService:
    return get_app(ctx).trash.get(KINDS[kind])


def fail(message: str) -> None:
    console.print(f"[red]Error: {message}[/red]")
    sys.exit(1)


def format_timestamp(value: Any) -> str:
    if value is None:
        return "-"
    return value.strftime("%Y-%m-%d %H:%M")


def print_sweep_result(result: SweepResult) -> None:
    if result.error:
        console.print(f"[red]✗ {result.entity_type}: {result.error}[/red]")
        return

    style = "yellow" if result.has_errors else "green"
    console.print(
        f"[{style}]✓ {result.entity_type}: purged {result.succeeded} of "
        f"{result.attempted}[/{style}]"
    )
    for failure in result.failures:
        console.print(f"  [red]• {failure.entity_id}: {failure.error}[/red]")


@click.group(invoke_without_command=True)
@click.version_option(version=__version__)
@click.option("--database-url", help="SQLAlchemy database URL to use")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, database_url: Optional[str], verbose: bool) -> None:
    """InkSlate - notes, budget and trash management."""
    try:
        config = get_config()
        if database_url:
            config = config.model_copy(update={"database_url": database_url})
    except Exception as e:
        console.print(f"[red]Error loading configuration: {e}[/red]")
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if verbose else config.log_level.value,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config"] = config

    if ctx.invoked_subcommand is None:
        console.print(
            Panel.fit(
                f"[bold blue]InkSlate[/bold blue] v{__version__}\n"
                "[dim]Notes, budget and trash management[/dim]\n\n"
                "Use [bold]slate --help[/bold] to see available commands.",
                border_style="blue",
            )
        )


@cli.group()
def config() -> None:
    """Inspect InkSlate configuration."""
    pass


@config.command("show")
@click.option("--format", type=click.Choice(["table", "json", "yaml"]), default="table")
@click.pass_context
def config_show(ctx: click.Context, format: str) -> None:
    """Display current configuration."""
    config_dict = ctx.obj["config"].to_dict()

    if format == "json":
        console.print_json(data=config_dict)
    elif format == "yaml":
        import yaml  # type: ignore[import-untyped]

        console.print(yaml.dump(config_dict, default_flow_style=False))
    else:
        table = Table(title="InkSlate Configuration", show_header=True)
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")

        for setting, value in config_dict.items():
            if isinstance(value, bool):
                value = "✓" if value else "✗"
            table.add_row(setting, str(value))

        console.print(table)


@config.command("validate")
@click.pass_context
def config_validate(ctx: click.Context) -> None:
    """Check the configuration for risky settings."""
    config: SlateConfig = ctx.obj["config"]
    warnings = []

    if config.sweep_interval > config.retention_period:
        warnings.append(
            "Sweep interval is longer than the retention period; "
            "expired trash will linger past its retention"
        )
    if config.expiry_warning_days >= config.trash_retention_days:
        warnings.append("Every trashed item will be flagged as expiring")
    if config.database_url.endswith(":memory:"):
        warnings.append("In-memory database: nothing is kept between runs")

    console.print("[green]✓ Configuration is valid[/green]")
    if warnings:
        console.print("\n[yellow]⚠ Warnings:[/yellow]")
        for warning in warnings:
            console.print(f"  [yellow]• {warning}[/yellow]")


@cli.group()
def notes() -> None:
    """Create, list and delete notes."""
    pass


@notes.command("add")
@click.argument("title")
@click.option("--content", default="", help="Note body")
@click.option("--folder-id", type=int, help="Folder to file the note in")
@click.pass_context
def notes_add(
    ctx: click.Context, title: str, content: str, folder_id: Optional[int]
) -> None:
    """Create a note."""
    try:
        app = get_app(ctx)
        note = run_async(
            app.notes.create_note(title=title, content=content, folder_id=folder_id)
        )
        console.print(f"[green]✓[/green] Created note {note.id}: {note.title}")
    except Exception as e:
        fail(f"could not create note: {e}")


@notes.command("list")
@click.option("--search", help="Filter by text in title or content")
@click.option("--folder-id", type=int, help="Only notes in this folder")
@click.pass_context
def notes_list(
    ctx: click.Context, search: Optional[str], folder_id: Optional[int]
) -> None:
    """List notes that are not in the trash."""
    try:
        app = get_app(ctx)
        items = run_async(app.notes.list_notes(folder_id=folder_id, search=search))
    except Exception as e:
        fail(f"could not list notes: {e}")
        return

    if not items:
        console.print("[yellow]No notes found[/yellow]")
        return

    table = Table(title=f"Notes ({len(items)})")
    table.add_column("ID", style="cyan")
    table.add_column("Title", style="green")
    table.add_column("Modified", style="dim")
    for note in items:
        title = note.safe_title + (" 🔒" if note.is_password_protected else "")
        table.add_row(str(note.id), title, format_timestamp(note.modified_date))
    console.print(table)


@notes.command("delete")
@click.argument("note_id", type=int)
@click.pass_context
def notes_delete(ctx: click.Context, note_id: int) -> None:
    """Move a note to the trash."""
    try:
        app = get_app(ctx)
        note = run_async(app.notes.store.get(note_id))
        if note is None:
            fail(f"note {note_id} not found")
            return
        run_async(app.notes.delete_note(note))
        console.print(f"[green]✓[/green] Moved note {note_id} to trash")
    except Exception as e:
        fail(f"could not delete note: {e}")


@cli.group()
def budget() -> None:
    """Create and delete budget items."""
    pass


@budget.command("add")
@click.argument("name")
@click.argument("amount", type=float)
@click.option("--budget-amount", type=float, default=0.0, help="Planned amount")
@click.option("--income", is_flag=True, help="Record as income")
@click.option("--category-id", type=int, help="Category of the item")
@click.pass_context
def budget_add(
    ctx: click.Context,
    name: str,
    amount: float,
    budget_amount: float,
    income: bool,
    category_id: Optional[int],
) -> None:
    """Create a budget item."""
    try:
        app = get_app(ctx)
        item = run_async(
            app.budget.create_item(
                name=name,
                amount=amount,
                budget_amount=budget_amount,
                is_income=income,
                category_id=category_id,
            )
        )
        console.print(f"[green]✓[/green] Created budget item {item.id}: {item.name}")
    except Exception as e:
        fail(f"could not create budget item: {e}")


@budget.command("delete")
@click.argument("item_id", type=int)
@click.pass_context
def budget_delete(ctx: click.Context, item_id: int) -> None:
    """Move a budget item to the trash."""
    try:
        app = get_app(ctx)
        item = run_async(app.budget.store.get(item_id))
        if item is None:
            fail(f"budget item {item_id} not found")
            return
        run_async(app.budget.delete_item(item))
        console.print(f"[green]✓[/green] Moved budget item {item_id} to trash")
    except Exception as e:
        fail(f"could not delete budget item: {e}")


@cli.group()
def trash() -> None:
    """Inspect, restore and purge trashed records."""
    pass


KIND_ARGUMENT = click.argument("kind", type=click.Choice(sorted(KINDS)))


@trash.command("list")
@KIND_ARGUMENT
@click.pass_context
def trash_list(ctx: click.Context, kind: str) -> None:
    """List trashed records with the days left before purge."""
    try:
        service = get_trash(ctx, kind)
        records = run_async(service.list_trash())
    except Exception as e:
        fail(f"could not read trash: {e}")
        return

    if not records:
        console.print(f"[yellow]Trash for {kind} is empty[/yellow]")
        return

    table = Table(title=f"Trash: {kind} ({len(records)})")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Deleted", style="dim")
    table.add_column("Expires", style="magenta")
    for record in records:
        days = service.days_until_purge(record)
        if days <= service.policy.expiry_warning_days:
            expires = f"[red]in {days} day{'' if days == 1 else 's'}[/red]"
        else:
            expires = f"{days} days left"
        name = getattr(record, "title", None) or getattr(record, "name", "")
        table.add_row(
            str(record.id), name, format_timestamp(record.deleted_at), expires
        )
    console.print(table)


@trash.command("restore")
@KIND_ARGUMENT
@click.argument("record_id", type=int)
@click.pass_context
def trash_restore(ctx: click.Context, kind: str, record_id: int) -> None:
    """Restore a trashed record."""
    try:
        service = get_trash(ctx, kind)
        record = run_async(service.store.get(record_id))
        if record is None:
            fail(f"{kind} record {record_id} not found")
            return
        if run_async(service.restore(record)) is None:
            fail(f"{kind} record {record_id} was purged")
            return
        console.print(f"[green]✓[/green] Restored {kind} record {record_id}")
    except Exception as e:
        fail(f"could not restore record: {e}")


@trash.command("purge")
@KIND_ARGUMENT
@click.argument("record_id", type=int)
@click.confirmation_option(prompt="This permanently deletes the record. Continue?")
@click.pass_context
def trash_purge(ctx: click.Context, kind: str, record_id: int) -> None:
    """Permanently delete one trashed record."""
    try:
        service = get_trash(ctx, kind)
        record = run_async(service.store.get(record_id))
        if record is None:
            fail(f"{kind} record {record_id} not found")
            return
        run_async(service.purge(record))
        console.print(f"[green]✓[/green] Purged {kind} record {record_id}")
    except Exception as e:
        fail(f"could not purge record: {e}")


@trash.command("empty")
@KIND_ARGUMENT
@click.confirmation_option(prompt="This permanently deletes everything in the trash.")
@click.pass_context
def trash_empty(ctx: click.Context, kind: str) -> None:
    """Permanently delete every trashed record of a kind."""
    try:
        result = run_async(get_trash(ctx, kind).empty_trash())
    except Exception as e:
        fail(f"could not empty trash: {e}")
        return

    print_sweep_result(result)
    if result.has_errors:
        sys.exit(1)


@trash.command("sweep")
@click.option(
    "--retention-days", type=click.IntRange(min=1), help="Override retention period"
)
@click.pass_context
def trash_sweep(ctx: click.Context, retention_days: Optional[int]) -> None:
    """Purge trashed records older than the retention period."""
    try:
        app = get_app(ctx)
        period = timedelta(days=retention_days) if retention_days else None
        results = run_async(app.sweeper.run_once(period))
    except Exception as e:
        fail(f"sweep failed: {e}")
        return

    for result in results:
        print_sweep_result(result)
    if any(r.has_errors for r in results):
        sys.exit(1)


@trash.command("stats")
@click.pass_context
def trash_stats(ctx: click.Context) -> None:
    """Summarize the trash of every record kind."""
    try:
        app = get_app(ctx)
        summaries = [
            run_async(service.summarize_trash())
            for service in app.trash.services.values()
        ]
    except Exception as e:
        fail(f"could not summarize trash: {e}")
        return

    table = Table(title="Trash Statistics")
    table.add_column("Kind", style="cyan")
    table.add_column("Items", style="green")
    table.add_column("Oldest", style="dim")
    table.add_column("Expiring soon", style="red")
    for summary in summaries:
        table.add_row(
            summary.entity_type,
            str(summary.total_items),
            format_timestamp(summary.oldest_deleted_at),
            str(summary.expiring_soon),
        )
    console.print(table)


if __name__ == "__main__":
    cli()
