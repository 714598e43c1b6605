"""Report recipient commands."""

import click

from platecount.cli.context import get_services, get_tenant, run_or_exit


@click.group()
def recipient_group():
    """Manage who receives finalized count reports."""
    pass


@recipient_group.command("add")
@click.argument("first_name")
@click.argument("last_name")
@click.argument("email")
@click.pass_context
def add_recipient(ctx, first_name: str, last_name: str, email: str):
    """Add a report recipient.

    Examples:
        platecount recipient add Carol Treasurer carol@example.org
    """
    services = get_services(ctx)
    recipient_id = run_or_exit(
        ctx,
        services.recipients.add_recipient,
        first_name=first_name,
        last_name=last_name,
        email=email,
        tenant_id=get_tenant(ctx),
    )
    click.echo(f"Added report recipient {email} (ID: {recipient_id})")


@recipient_group.command("list")
@click.pass_context
def list_recipients(ctx):
    """List report recipients."""
    services = get_services(ctx)
    recipients = services.recipients.list_recipients(get_tenant(ctx))
    if not recipients:
        click.echo("No report recipients configured.")
        return
    for recipient in recipients:
        click.echo(f"ID: {recipient.id:4d} | {recipient.display_name:30s} | {recipient.email}")


@recipient_group.command("remove")
@click.argument("recipient_id", type=int)
@click.pass_context
def remove_recipient(ctx, recipient_id: int):
    """Remove a report recipient."""
    services = get_services(ctx)
    run_or_exit(ctx, services.recipients.remove_recipient, recipient_id)
    click.echo(f"Removed report recipient {recipient_id}")


def register_commands(cli):
    """Register recipient commands with main CLI."""
    cli.add_command(recipient_group, name="recipient")
