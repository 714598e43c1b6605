"""Donation commands."""

import click

from platecount.cli.context import (
    get_services,
    get_tenant,
    parse_amount_or_exit,
    parse_date_or_exit,
    require_batch_or_exit,
    require_donation_or_exit,
    run_or_exit,
)
from platecount.domain.reports import format_money


@click.group()
def donation_group():
    """Record donations."""
    pass


@donation_group.command("add")
@click.option("--batch", "batch_id", type=int, help="Count ID (leave out for an unassigned donation)")
@click.option("--amount", required=True, help="Amount (e.g., 50 or 1,250.00)")
@click.option("--type", "donation_type", type=click.Choice(["cash", "check"], case_sensitive=False), default="cash")
@click.option("--check-number", help="Check number (required for checks)")
@click.option("--member", "member_id", type=int, help="Contributor member ID (leave out for anonymous)")
@click.option("--date", "date_str", default="today", help="Donation date (YYYY-MM-DD or relative like 'today')")
@click.option("--notes", help="Notes")
@click.pass_context
def add_donation(
    ctx,
    batch_id: int | None,
    amount: str,
    donation_type: str,
    check_number: str | None,
    member_id: int | None,
    date_str: str,
    notes: str | None,
):
    """Record a donation.

    Examples:
        platecount donation add --batch 1 --amount 50
        platecount donation add --batch 1 --amount 120 --type check --check-number 456 --member 3
    """
    services = get_services(ctx)
    if batch_id is not None:
        require_batch_or_exit(ctx, batch_id)
    donation_date = parse_date_or_exit(ctx, date_str)
    donation_amount = parse_amount_or_exit(ctx, amount)

    donation_id = run_or_exit(
        ctx,
        services.ledger.create_donation,
        donation_date=donation_date,
        amount=donation_amount,
        donation_type=donation_type,
        tenant_id=get_tenant(ctx),
        check_number=check_number,
        member_id=member_id,
        batch_id=batch_id,
        notes=notes,
    )
    click.echo(f"Added donation {donation_id} ({format_money(donation_amount)} {donation_type.upper()})")
    if batch_id is not None:
        batch = services.batches.require_batch(batch_id)
        click.echo(f"Count {batch_id} total: {format_money(batch.total_amount)}")


@donation_group.command("update")
@click.argument("donation_id", type=int)
@click.option("--amount", help="New amount")
@click.option("--type", "donation_type", type=click.Choice(["cash", "check"], case_sensitive=False))
@click.option("--check-number", help="New check number")
@click.option("--member", help="Contributor member ID, or empty string for anonymous")
@click.option("--batch", help="Move to this count ID, or empty string to unassign")
@click.option("--date", "date_str", help="New donation date")
@click.option("--notes", help="New notes")
@click.pass_context
def update_donation(
    ctx,
    donation_id: int,
    amount: str | None,
    donation_type: str | None,
    check_number: str | None,
    member: str | None,
    batch: str | None,
    date_str: str | None,
    notes: str | None,
):
    """Update a donation. Only the given fields change.

    Examples:
        platecount donation update 4 --amount 75
        platecount donation update 4 --batch 2
        platecount donation update 4 --member ""  # Make anonymous
    """
    services = get_services(ctx)
    require_donation_or_exit(ctx, donation_id)
    donation_amount = parse_amount_or_exit(ctx, amount) if amount is not None else None
    donation_date = parse_date_or_exit(ctx, date_str) if date_str is not None else None

    member_id = None
    clear_member = member == ""
    if member:
        try:
            member_id = int(member)
        except ValueError:
            click.echo(f"Error: Invalid member ID '{member}'", err=True)
            ctx.exit(1)

    batch_id = None
    unassign = batch == ""
    if batch:
        try:
            batch_id = int(batch)
        except ValueError:
            click.echo(f"Error: Invalid count ID '{batch}'", err=True)
            ctx.exit(1)
        require_batch_or_exit(ctx, batch_id)

    run_or_exit(
        ctx,
        services.ledger.update_donation,
        donation_id,
        donation_date=donation_date,
        amount=donation_amount,
        donation_type=donation_type,
        check_number=check_number,
        notes=notes,
        member_id=member_id,
        batch_id=batch_id,
        clear_member=clear_member,
        unassign=unassign,
    )
    click.echo(f"Updated donation {donation_id}")


@donation_group.command("delete")
@click.argument("donation_id", type=int)
@click.pass_context
def delete_donation(ctx, donation_id: int):
    """Delete a donation."""
    services = get_services(ctx)
    require_donation_or_exit(ctx, donation_id)
    run_or_exit(ctx, services.ledger.delete_donation, donation_id)
    click.echo(f"Deleted donation {donation_id}")


@donation_group.command("list")
@click.option("--batch", "batch_id", type=int, help="Count ID")
@click.option("--unassigned", is_flag=True, help="Only donations not in any count")
@click.pass_context
def list_donations(ctx, batch_id: int | None, unassigned: bool):
    """List donations of a count, or unassigned donations."""
    services = get_services(ctx)
    if batch_id is not None and unassigned:
        click.echo("Error: --batch and --unassigned cannot be combined", err=True)
        ctx.exit(1)
    if batch_id is None and not unassigned:
        click.echo("Error: Pass --batch ID or --unassigned", err=True)
        ctx.exit(1)

    if unassigned:
        donations = services.ledger.list_unassigned(tenant_id=get_tenant(ctx))
    else:
        require_batch_or_exit(ctx, batch_id)
        donations = run_or_exit(ctx, services.ledger.list_by_batch, batch_id)

    if not donations:
        click.echo("No donations found.")
        return

    for line in services.ledger.list_with_members(donations):
        donation = line.donation
        check = f"#{donation.check_number}" if donation.check_number else ""
        click.echo(
            f"ID: {donation.id:4d} | {donation.date.isoformat()} | {donation.donation_type.value:5s} "
            f"{check:8s} | {line.contributor[:24]:24s} | {format_money(donation.amount):>10}"
        )


def register_commands(cli):
    """Register donation commands with main CLI."""
    cli.add_command(donation_group, name="donation")
