"""Main CLI entry point."""

import click

from platecount.config import LOG_LEVELS, Settings
from platecount.database.factories import create_database, create_sqlite_database
from platecount.logging_config import configure_logging
from platecount.services import build_services

# Import and register all commands at module level
from platecount.cli.commands import (
    attest,
    batch,
    donation,
    events,
    member,
    recipient,
    report,
    service_option,
    user,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to a SQLite database file (overrides PLATECOUNT_DATABASE_URL and PLATECOUNT_DB_PATH)",
)
@click.option(
    "--tenant",
    help="Church the command acts on (overrides PLATECOUNT_TENANT environment variable)",
    envvar="PLATECOUNT_TENANT",
)
@click.option(
    "--as",
    "actor_id",
    help="User ID performing the command (overrides PLATECOUNT_USER environment variable)",
    envvar="PLATECOUNT_USER",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Log level (overrides PLATECOUNT_LOG_LEVEL environment variable)",
)
@click.pass_context
def cli(ctx, db_path: str | None, tenant: str | None, actor_id: str | None, log_level: str | None):
    """Platecount - offering counts with two-person attestation.

    Ushers record the cash and checks of a service into a count. One person
    attests the count, a second verified person attests it again, and the
    count is finalized, locked and its report sent to the treasurer.
    """
    ctx.ensure_object(dict)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            settings = Settings.from_env()
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)
        configure_logging(log_level or settings.log_level, fmt=settings.log_format)

        # PLATECOUNT_DATABASE_URL, then PLATECOUNT_DB_PATH, unless --db-path is given
        if db_path:
            db = create_sqlite_database(database_path=db_path)
        else:
            db = create_database(database_url=settings.database_url, database_path=settings.db_path)
        db.connect()
        db.initialize_schema()
        ctx.call_on_close(db.disconnect)

        ctx.obj["db"] = db
        ctx.obj["settings"] = settings
        ctx.obj["tenant"] = tenant or settings.tenant_id
        ctx.obj["actor_id"] = actor_id
        ctx.obj["services"] = build_services(db, settings=settings)


# Register all commands
batch.register_commands(cli)
donation.register_commands(cli)
attest.register_commands(cli)
report.register_commands(cli)
user.register_commands(cli)
member.register_commands(cli)
recipient.register_commands(cli)
service_option.register_commands(cli)
events.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
