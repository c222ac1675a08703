"""Reporting domain failures from click commands."""

import logging

import click

from travellog.domain.errors import DomainError, RemoteCallFailure

logger = logging.getLogger(__name__)


def handle_domain_error(ctx: click.Context, error: DomainError) -> None:
    """Print a domain error to stderr and exit with status 1.

    Failed remote calls are reported once and never retried.
    """
    logger.debug("%s failed", ctx.command_path, exc_info=error)
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, RemoteCallFailure):
        click.echo("The change was not saved; run the command again to retry.", err=True)
    ctx.exit(1)
