"""User commands."""

import click

from platecount.cli.context import get_services, get_tenant, run_or_exit


@click.group()
def user_group():
    """Manage users who can attest counts."""
    pass


@user_group.command("add")
@click.argument("user_id")
@click.argument("display_name")
@click.option("--email", help="Email address")
@click.option("--verified", is_flag=True, help="Allow this user to give second attestations")
@click.pass_context
def add_user(ctx, user_id: str, display_name: str, email: str | None, verified: bool):
    """Add a user.

    Examples:
        platecount user add alice "Alice Smith"
        platecount user add bob "Bob Jones" --verified
    """
    services = get_services(ctx)
    run_or_exit(
        ctx,
        services.users.create_user,
        user_id=user_id,
        display_name=display_name,
        tenant_id=get_tenant(ctx),
        email=email,
        verified=verified,
    )
    click.echo(f"Added user '{user_id}'{' (verified)' if verified else ''}")


@user_group.command("verify")
@click.argument("user_id")
@click.option("--revoke", is_flag=True, help="Remove verification instead")
@click.pass_context
def verify_user(ctx, user_id: str, revoke: bool):
    """Mark a user as verified for second attestations."""
    services = get_services(ctx)
    user = run_or_exit(ctx, services.users.require_user, user_id)
    if user.tenant_id != get_tenant(ctx):
        click.echo(f"Error: User '{user_id}' not found", err=True)
        ctx.exit(1)
    run_or_exit(ctx, services.users.set_verified, user_id, not revoke)
    click.echo(f"User '{user_id}' is {'no longer ' if revoke else ''}verified")


@user_group.command("list")
@click.pass_context
def list_users(ctx):
    """List users."""
    services = get_services(ctx)
    users = services.users.list_users(tenant_id=get_tenant(ctx))
    if not users:
        click.echo("No users found.")
        return
    for user in users:
        flag = "verified" if user.verified else ""
        click.echo(f"{user.id:20s} {user.display_name:30s} {flag}")


def register_commands(cli):
    """Register user commands with main CLI."""
    cli.add_command(user_group, name="user")
