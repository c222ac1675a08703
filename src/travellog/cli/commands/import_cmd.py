"""Import and export commands."""

from pathlib import Path

import click

from travellog.cli.runtime import run_with_controller
from travellog.domain.entities import Authenticated


@click.command("import")
@click.argument("json_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def import_places(ctx, json_file: str):
    """Replace all places with those of an exported JSON file.

    The file must contain a JSON array of places. Missing fields get
    defaults; a file that is not a JSON array leaves your places unchanged.
    """
    text = Path(json_file).read_text(encoding="utf-8")

    async def _import(controller):
        return controller.session, controller.import_places(text)

    session, places = run_with_controller(ctx, _import)
    click.echo("\nImport complete:")
    click.echo(f"  Imported: {len(places)} places")
    unnamed = sum(1 for place in places if not place.name)
    if unnamed:
        click.echo(f"  Without a name: {unnamed}")
    if isinstance(session, Authenticated):
        click.echo("  Note: imported places are not saved to your account while signed in", err=True)


@click.command("export")
@click.argument("json_file", type=click.Path(dir_okay=False, writable=True))
@click.pass_context
def export_places(ctx, json_file: str):
    """Write all places to a JSON file."""

    async def _export(controller):
        return len(controller.places), controller.export_places()

    count, text = run_with_controller(ctx, _export)
    Path(json_file).write_text(text, encoding="utf-8")
    click.echo(f"Exported {count} places to {json_file}")


def register_commands(cli):
    """Register import and export commands with main CLI."""
    cli.add_command(import_places)
    cli.add_command(export_places)
