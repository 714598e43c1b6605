"""Count (batch) management commands."""

import time

import click

from platecount.cli.context import (
    get_services,
    get_tenant,
    parse_date_or_exit,
    require_batch_or_exit,
    run_or_exit,
)
from platecount.domain.attestation import attestation_state
from platecount.domain.entities import Batch, BatchStatus
from platecount.domain.refresh import BatchSnapshot, BatchViewRegistry
from platecount.domain.reports import format_money


def _actor_id(ctx):
    return ctx.obj.get("actor_id")


def echo_batch_line(batch: Batch) -> None:
    state = attestation_state(batch).name
    click.echo(
        f"ID: {batch.id:4d} | {batch.date.isoformat()} | {batch.name[:36]:36s} | "
        f"{state:18s} | {format_money(batch.total_amount):>12}"
    )


def echo_snapshot(snapshot: BatchSnapshot) -> None:
    batch = snapshot.batch
    click.echo(f"\nCount {batch.id}: {batch.name}")
    click.echo("=" * 72)
    click.echo(f"Date:    {batch.date.isoformat()}")
    if batch.service:
        click.echo(f"Service: {batch.service}")
    click.echo(f"State:   {snapshot.state}")
    if batch.primary_attestor_name:
        click.echo(f"Counted by:  {batch.primary_attestor_name} ({batch.primary_attestor_id})")
    if batch.secondary_attestor_name:
        click.echo(f"Verified by: {batch.secondary_attestor_name} ({batch.secondary_attestor_id})")
    if batch.notes:
        click.echo(f"Notes:   {batch.notes}")

    click.echo(f"\nDonations ({len(snapshot.lines)}):")
    click.echo("-" * 72)
    if not snapshot.lines:
        click.echo("  No donations yet.")
    for line in snapshot.lines:
        donation = line.donation
        check = f"#{donation.check_number}" if donation.check_number else ""
        click.echo(
            f"  ID: {donation.id:4d} | {donation.date.isoformat()} | {donation.donation_type.value:5s} "
            f"{check:8s} | {line.contributor[:24]:24s} | {format_money(donation.amount):>10}"
        )
    click.echo("-" * 72)
    click.echo(f"Cash:   {format_money(snapshot.partition.cash_total):>12}")
    click.echo(f"Checks: {format_money(snapshot.partition.check_total):>12}")
    click.echo(f"Total:  {format_money(batch.total_amount):>12}")


@click.group()
def batch_group():
    """Manage counts."""
    pass


@batch_group.command("create")
@click.option("--date", "date_str", default="today", help="Service date (YYYY-MM-DD or relative like 'sunday')")
@click.option("--service", help="Service label, e.g. 'Sunday Morning'")
@click.option("--name", help="Display name (defaults to service and date)")
@click.option("--notes", help="Notes")
@click.pass_context
def create_batch(ctx, date_str: str, service: str | None, name: str | None, notes: str | None):
    """Create a new count.

    Examples:
        platecount batch create --service "Sunday Morning"
        platecount batch create --date 2024-01-07 --service "Christmas Eve"
    """
    services = get_services(ctx)
    batch_date = parse_date_or_exit(ctx, date_str)
    batch_id = run_or_exit(
        ctx,
        services.batches.create_batch,
        batch_date=batch_date,
        tenant_id=get_tenant(ctx),
        service=service,
        name=name,
        notes=notes,
        actor_id=_actor_id(ctx),
    )
    batch = services.batches.require_batch(batch_id)
    click.echo(f"Created count '{batch.name}' (ID: {batch_id})")


@batch_group.command("list")
@click.option("--status", type=click.Choice(["open", "finalized"], case_sensitive=False), help="Filter by status")
@click.pass_context
def list_batches(ctx, status: str | None):
    """List counts, newest first."""
    services = get_services(ctx)
    batch_status = BatchStatus(status.upper()) if status else None
    batches = services.batches.list_batches(tenant_id=get_tenant(ctx), status=batch_status)
    if not batches:
        click.echo("No counts found.")
        return

    click.echo("\nCounts:")
    click.echo("-" * 90)
    for batch in batches:
        echo_batch_line(batch)


@batch_group.command("show")
@click.argument("batch_id", type=int)
@click.pass_context
def show_batch(ctx, batch_id: int):
    """Show a count with its donations and totals."""
    services = get_services(ctx)
    require_batch_or_exit(ctx, batch_id)
    echo_snapshot(run_or_exit(ctx, services.reader.read, batch_id))


@batch_group.command("update")
@click.argument("batch_id", type=int)
@click.option("--name", help="New display name")
@click.option("--date", "date_str", help="New service date")
@click.option("--service", help="New service label")
@click.option("--notes", help="New notes")
@click.pass_context
def update_batch(ctx, batch_id: int, name: str | None, date_str: str | None, service: str | None, notes: str | None):
    """Edit a count's details. Only possible before anyone has attested it."""
    services = get_services(ctx)
    require_batch_or_exit(ctx, batch_id)
    batch_date = parse_date_or_exit(ctx, date_str) if date_str is not None else None
    batch = run_or_exit(
        ctx,
        services.batches.update_batch,
        batch_id,
        name=name,
        batch_date=batch_date,
        service=service,
        notes=notes,
        actor_id=_actor_id(ctx),
    )
    click.echo(f"Updated count {batch_id}: {batch.name}")


@batch_group.command("delete")
@click.argument("batch_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_batch(ctx, batch_id: int, yes: bool):
    """Delete a count and all of its donations. Finalized counts cannot be deleted."""
    services = get_services(ctx)
    batch = require_batch_or_exit(ctx, batch_id)
    count = services.batches.donation_count(batch_id)
    if not yes and not click.confirm(
        f"Delete count '{batch.name}' (ID: {batch_id}) and its {count} donation(s)?"
    ):
        click.echo("Deletion cancelled.")
        return
    run_or_exit(ctx, services.batches.delete_batch, batch_id, actor_id=_actor_id(ctx))
    click.echo(f"Deleted count {batch_id}")


@batch_group.command("current")
@click.pass_context
def current_batch(ctx):
    """Show the open count, creating one for today if there is none."""
    services = get_services(ctx)
    batch = run_or_exit(ctx, services.batches.get_current_batch, get_tenant(ctx))
    echo_snapshot(services.reader.read(batch.id))


@batch_group.command("watch")
@click.argument("batch_id", type=int)
@click.option("--interval", type=float, default=None, help="Seconds between refreshes")
@click.option("--iterations", type=int, default=0, help="Stop after this many refreshes (0 = until finalized)")
@click.pass_context
def watch_batch(ctx, batch_id: int, interval: float | None, iterations: int):
    """Follow a count's totals while donations are entered elsewhere."""
    services = get_services(ctx)
    require_batch_or_exit(ctx, batch_id)
    interval = interval if interval is not None else ctx.obj["settings"].refresh_seconds
    if interval <= 0:
        click.echo("Error: --interval must be positive", err=True)
        ctx.exit(1)

    registry = BatchViewRegistry(services.reader, services.changes, interval_seconds=interval)
    view = registry.view(batch_id)
    shown = 0
    try:
        while True:
            snapshot = run_or_exit(ctx, view.current)
            shown += 1
            click.echo(
                f"[{snapshot.taken_at:%H:%M:%S}] {snapshot.state:18s} "
                f"{len(snapshot.lines):3d} donation(s)  cash {format_money(snapshot.partition.cash_total)}  "
                f"checks {format_money(snapshot.partition.check_total)}  "
                f"total {format_money(snapshot.total)}"
            )
            if snapshot.batch.is_finalized:
                click.echo("Count is finalized.")
                break
            if iterations and shown >= iterations:
                break
            time.sleep(interval)
    except KeyboardInterrupt:
        pass
    finally:
        registry.close()


def register_commands(cli):
    """Register batch commands with main CLI."""
    cli.add_command(batch_group, name="batch")
