"""CLI helpers for reaching services and parsing common arguments."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import click

from platecount.domain.entities import Batch, Donation, User
from platecount.domain.errors import DomainError
from platecount.cli.error_handling import handle_domain_error
from platecount.services import Services
from platecount.utils.amount_parser import parse_amount
from platecount.utils.date_parser import parse_date


def get_services(ctx: click.Context) -> Services:
    return ctx.obj["services"]


def get_tenant(ctx: click.Context) -> str:
    return ctx.obj["tenant"]


def require_actor(ctx: click.Context) -> User:
    """The user named by --as, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    actor_id = ctx.obj.get("actor_id")
    if not actor_id:
        click.echo("Error: This command needs to know who you are. Pass --as USER_ID", err=True)
        ctx.exit(1)
    user = get_services(ctx).users.get_user(actor_id)
    if user is None:
        click.echo(f"Error: Unknown user '{actor_id}'. Add it with 'platecount user add'", err=True)
        ctx.exit(1)
    return user


def require_batch_or_exit(ctx: click.Context, batch_id: int) -> Batch:
    """Load a count of the current church, or exit with a CLI error."""
    batch = get_services(ctx).batches.get_batch(batch_id)
    if batch is None or batch.tenant_id != get_tenant(ctx):
        click.echo(f"Error: Count {batch_id} not found", err=True)
        ctx.exit(1)
    return batch


def parse_date_or_exit(ctx: click.Context, value: str) -> date:
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)


def parse_amount_or_exit(ctx: click.Context, value: str) -> Decimal:
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)


def run_or_exit(ctx: click.Context, func, *args, **kwargs):
    """Call a service function, rendering a domain error and exiting on failure."""
    try:
        return func(*args, **kwargs)
    except DomainError as e:
        handle_domain_error(ctx, e)


def require_donation_or_exit(ctx: click.Context, donation_id: int) -> Donation:
    """Load a donation of the current church, or exit with a CLI error."""
    donation = get_services(ctx).ledger.get_donation(donation_id)
    if donation is None or donation.tenant_id != get_tenant(ctx):
        click.echo(f"Error: Donation {donation_id} not found", err=True)
        ctx.exit(1)
    return donation
