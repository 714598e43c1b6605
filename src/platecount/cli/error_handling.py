"""CLI error handling helpers."""

import logging

import click

from platecount.domain.errors import (
    BatchFinalizedError,
    DomainError,
    SelfAttestationError,
    UnverifiedAttestorError,
)

logger = logging.getLogger(__name__)

HINTS = {
    SelfAttestationError: "See who can attest with: platecount attest eligible BATCH_ID",
    UnverifiedAttestorError: "See who can attest with: platecount attest eligible BATCH_ID",
    BatchFinalizedError: "Finalized counts are read-only; record corrections in a new count.",
}


def handle_domain_error(ctx: click.Context, error: DomainError) -> None:
    """Render a domain error, with a hint where one helps, and exit with failure."""
    logger.debug("Command %s failed: %s: %s", ctx.command_path, type(error).__name__, error)
    click.echo(f"Error: {error}", err=True)
    hint = HINTS.get(type(error))
    if hint:
        click.echo(hint, err=True)
    ctx.exit(1)
