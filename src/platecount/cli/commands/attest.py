"""Attestation commands: the two-person sign-off that closes a count."""

import click

from platecount.cli.context import get_services, require_actor, require_batch_or_exit, run_or_exit
from platecount.domain.finalization import DispatchStatus
from platecount.domain.reports import format_money


@click.group()
def attest_group():
    """Attest and finalize counts."""
    pass


@attest_group.command("primary")
@click.argument("batch_id", type=int)
@click.option("--name", "signature_name", help="Typed signature (defaults to your display name)")
@click.pass_context
def attest_primary(ctx, batch_id: int, signature_name: str | None):
    """Sign a count as the person who counted it.

    Examples:
        platecount --as alice attest primary 12
        platecount --as alice attest primary 12 --name "Alice Smith"
    """
    services = get_services(ctx)
    actor = require_actor(ctx)
    require_batch_or_exit(ctx, batch_id)
    batch = run_or_exit(
        ctx, services.attestation.attest_primary, batch_id, actor.id, signature_name or actor.display_name
    )
    click.echo(f"Count {batch_id} attested by {batch.primary_attestor_name} ({format_money(batch.total_amount)})")
    click.echo("A second, verified user must now attest it: platecount attest secondary")


@attest_group.command("secondary")
@click.argument("batch_id", type=int)
@click.option("--attestor", "attestor_id", help="User ID of the second attestor (defaults to --as)")
@click.option("--name", "signature_name", help="Typed signature (defaults to the attestor's display name)")
@click.pass_context
def attest_secondary(ctx, batch_id: int, attestor_id: str | None, signature_name: str | None):
    """Sign a count as the second, independent attestor.

    Examples:
        platecount --as bob attest secondary 12
        platecount --as alice attest secondary 12 --attestor bob --name "Bob Jones"
    """
    services = get_services(ctx)
    actor = require_actor(ctx)
    require_batch_or_exit(ctx, batch_id)
    attestor_id = attestor_id or actor.id
    if not signature_name:
        attestor = services.users.get_user(attestor_id)
        signature_name = attestor.display_name if attestor else attestor_id
    batch = run_or_exit(ctx, services.attestation.attest_secondary, batch_id, attestor_id, signature_name)
    click.echo(f"Count {batch_id} verified by {batch.secondary_attestor_name}")
    click.echo("Review the count, then finalize it: platecount attest confirm")


@attest_group.command("confirm")
@click.argument("batch_id", type=int)
@click.pass_context
def confirm_attestation(ctx, batch_id: int):
    """Finalize a count that has both attestations. The count is locked afterwards."""
    services = get_services(ctx)
    actor = require_actor(ctx)
    require_batch_or_exit(ctx, batch_id)
    outcome = run_or_exit(ctx, services.finalization.confirm, batch_id, actor.id)

    if not outcome.transitioned:
        click.echo(f"Count {batch_id} was already finalized.")
        return
    click.echo(f"Finalized count {batch_id}: {outcome.batch.name} ({format_money(outcome.batch.total_amount)})")
    dispatch = outcome.dispatch
    if dispatch.status == DispatchStatus.SENT:
        click.echo(f"Report sent to {dispatch.recipient_count} recipient(s).")
    elif dispatch.status == DispatchStatus.FAILED:
        click.echo(f"Warning: the report could not be sent: {dispatch.detail}", err=True)
        click.echo("Retry with: platecount report resend", err=True)
    else:
        click.echo(f"Report not sent: {dispatch.detail}")


@attest_group.command("eligible")
@click.argument("batch_id", type=int)
@click.pass_context
def eligible_attestors(ctx, batch_id: int):
    """List users who may give the second attestation."""
    services = get_services(ctx)
    batch = require_batch_or_exit(ctx, batch_id)
    users = services.users.eligible_secondary_attestors(batch)
    if not users:
        click.echo("No eligible second attestors. Verify a user with 'platecount user verify'.")
        return
    for user in users:
        click.echo(f"{user.id:20s} {user.display_name}")


def register_commands(cli):
    """Register attest commands with main CLI."""
    cli.add_command(attest_group, name="attest")
