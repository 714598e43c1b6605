"""Audit log command."""

import click

from platecount.cli.context import get_services, require_batch_or_exit


@click.command("events")
@click.argument("batch_id", type=int)
@click.pass_context
def list_events(ctx, batch_id: int):
    """Show the audit log of a count."""
    services = get_services(ctx)
    require_batch_or_exit(ctx, batch_id)
    events = services.batches.list_events(batch_id)
    if not events:
        click.echo("No events recorded.")
        return
    for event in events:
        actor = event.actor_id or "-"
        detail = f"  {event.detail}" if event.detail else ""
        click.echo(f"{event.created_at:%Y-%m-%d %H:%M:%S}  {event.event_type.value:22s} {actor:12s}{detail}")


def register_commands(cli):
    """Register events command with main CLI."""
    cli.add_command(list_events)
