"""Count report commands."""

import click

from platecount.cli.context import get_services, require_batch_or_exit, run_or_exit
from platecount.domain.finalization import DispatchStatus


@click.group()
def report_group():
    """Show, export and resend count reports."""
    pass


@report_group.command("show")
@click.argument("batch_id", type=int)
@click.pass_context
def show_report(ctx, batch_id: int):
    """Print the report of a finalized count."""
    services = get_services(ctx)
    require_batch_or_exit(ctx, batch_id)
    report = run_or_exit(ctx, services.finalization.render_report, batch_id)
    click.echo(report.document.decode("utf-8"), nl=False)


@report_group.command("export")
@click.argument("batch_id", type=int)
@click.option("--output", "-o", type=click.Path(dir_okay=False, writable=True), help="Write the CSV to this file")
@click.pass_context
def export_report(ctx, batch_id: int, output: str | None):
    """Export the donations of a finalized count as CSV."""
    services = get_services(ctx)
    require_batch_or_exit(ctx, batch_id)
    report = run_or_exit(ctx, services.finalization.render_report, batch_id)
    if output is None:
        click.echo(report.csv_text, nl=False)
        return
    with open(output, "w", newline="", encoding="utf-8") as f:
        f.write(report.csv_text)
    click.echo(f"Exported count {batch_id} to {output}")


@report_group.command("resend")
@click.argument("batch_id", type=int)
@click.pass_context
def resend_report(ctx, batch_id: int):
    """Send the report of a finalized count to its recipients again."""
    services = get_services(ctx)
    require_batch_or_exit(ctx, batch_id)
    outcome = run_or_exit(ctx, services.finalization.resend_report, batch_id, actor_id=ctx.obj.get("actor_id"))
    if outcome.status == DispatchStatus.SENT:
        click.echo(f"Report sent to {outcome.recipient_count} recipient(s).")
    elif outcome.status == DispatchStatus.FAILED:
        click.echo(f"Error: the report could not be sent: {outcome.detail}", err=True)
        ctx.exit(1)
    else:
        click.echo(f"Report not sent: {outcome.detail}")


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
