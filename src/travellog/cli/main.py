"""Main CLI entry point."""

import logging

import click

from travellog.database.factories import create_auth_provider, create_sqlite_database

# Import and register all commands at module level
from travellog.cli.commands import (
    auth,
    import_cmd,
    place,
    search,
    summary,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides TRAVELLOG_DB_PATH environment variable)",
    envvar="TRAVELLOG_DB_PATH",
)
@click.option(
    "--boundaries",
    help="Country boundary GeoJSON file or URL (defaults to the public geo-countries dataset)",
    envvar="TRAVELLOG_BOUNDARIES",
)
@click.option("--verbose", "-v", is_flag=True, help="Log session and storage activity")
@click.pass_context
def cli(ctx, db_path: str | None, boundaries: str | None, verbose: bool):
    """Travellog - Travel log of visited and wishlist places.

    Places are kept in local storage while signed out and in your
    account's place table while signed in.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj["boundaries"] = boundaries

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        ctx.obj["db"] = db
        ctx.obj["auth"] = create_auth_provider(db)
        ctx.call_on_close(db.disconnect)


# Register all commands
place.register_commands(cli)
import_cmd.register_commands(cli)
summary.register_commands(cli)
search.register_commands(cli)
auth.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
