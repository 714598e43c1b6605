"""Service option commands."""

import click

from platecount.cli.context import get_services, get_tenant, run_or_exit


@click.group()
def service_option_group():
    """Manage the services counts are taken at."""
    pass


@service_option_group.command("add")
@click.argument("name")
@click.option("--value", help="Stable identifier (default: derived from NAME)")
@click.option("--default", "is_default", is_flag=True, help="Make this the default service")
@click.pass_context
def add_option(ctx, name: str, value: str, is_default: bool):
    """Add a service option.

    Examples:
        platecount service-option add "Sunday Morning" --default
        platecount service-option add "Good Friday" --value good-friday
    """
    services = get_services(ctx)
    option_id = run_or_exit(
        ctx,
        services.service_options.add_option,
        name=name,
        tenant_id=get_tenant(ctx),
        value=value,
        is_default=is_default,
    )
    click.echo(f"Added service option '{name}' (ID: {option_id})")


@service_option_group.command("list")
@click.pass_context
def list_options(ctx):
    """List service options."""
    services = get_services(ctx)
    options = services.service_options.list_options(get_tenant(ctx))
    if not options:
        click.echo("No service options configured.")
        return
    for option in options:
        marker = " (default)" if option.is_default else ""
        click.echo(f"ID: {option.id:4d} | {option.name:30s} | {option.value}{marker}")


@service_option_group.command("default")
@click.argument("option_id", type=int)
@click.pass_context
def set_default(ctx, option_id: int):
    """Make a service option the default."""
    services = get_services(ctx)
    run_or_exit(ctx, services.service_options.set_default, option_id)
    click.echo(f"Service option {option_id} is now the default")


@service_option_group.command("remove")
@click.argument("option_id", type=int)
@click.pass_context
def remove_option(ctx, option_id: int):
    """Remove a service option."""
    services = get_services(ctx)
    run_or_exit(ctx, services.service_options.remove_option, option_id)
    click.echo(f"Removed service option {option_id}")


@service_option_group.command("init")
@click.pass_context
def init_options(ctx):
    """Create the standard service options if none exist."""
    services = get_services(ctx)
    created = services.service_options.install_defaults(get_tenant(ctx))
    if created == 0:
        click.echo("Service options already configured, nothing to do.")
        return
    click.echo(f"Created {created} service option(s).")


def register_commands(cli):
    """Register service option commands with main CLI."""
    cli.add_command(service_option_group, name="service-option")
