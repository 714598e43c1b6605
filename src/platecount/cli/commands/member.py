"""Member directory commands."""

import click

from platecount.cli.context import get_services, get_tenant, run_or_exit


@click.group()
def member_group():
    """Manage contributors."""
    pass


@member_group.command("add")
@click.argument("first_name")
@click.argument("last_name")
@click.option("--email", help="Email address")
@click.option("--phone", help="Phone number")
@click.pass_context
def add_member(ctx, first_name: str, last_name: str, email: str | None, phone: str | None):
    """Add a contributor to the directory."""
    services = get_services(ctx)
    member_id = run_or_exit(
        ctx,
        services.members.create_member,
        first_name=first_name,
        last_name=last_name,
        tenant_id=get_tenant(ctx),
        email=email,
        phone=phone,
    )
    click.echo(f"Added member '{first_name} {last_name}' (ID: {member_id})")


@member_group.command("list")
@click.pass_context
def list_members(ctx):
    """List contributors."""
    services = get_services(ctx)
    members = services.members.list_members(tenant_id=get_tenant(ctx))
    if not members:
        click.echo("No members found.")
        return
    for member in members:
        click.echo(f"ID: {member.id:4d} | {member.display_name:30s} | {member.email or ''}")


def register_commands(cli):
    """Register member commands with main CLI."""
    cli.add_command(member_group, name="member")
