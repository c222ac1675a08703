"""Place search command."""

import click

from travellog.cli.runtime import run_async, run_with_controller
from travellog.domain.entities import PLACE_STATUSES
from travellog.domain.search import PlaceSearch
from travellog.utils.nominatim import NominatimClient


async def _search(query: str) -> PlaceSearch:
    search = PlaceSearch(NominatimClient().search_async, debounce=0)
    search.set_query(query)
    await search.wait_idle()
    return search


@click.command("search")
@click.argument("query")
@click.option("--add", "add_index", type=int, help="Add the Nth result as a new place")
@click.option(
    "--status",
    type=click.Choice(PLACE_STATUSES),
    help="Status of the added place (required with --add)",
)
@click.pass_context
def search_places(ctx, query: str, add_index: int | None, status: str | None):
    """Search places and cities on OpenStreetMap.

    Examples:
        travellog search "Bled"
        travellog search "Bled" --add 1 --status visited
    """
    if add_index is not None and status is None:
        click.echo("Error: --status is required with --add", err=True)
        ctx.exit(1)

    candidates = run_async(ctx, _search(query)).results
    if not candidates:
        click.echo("No results.")
        return

    if add_index is None:
        for number, candidate in enumerate(candidates, start=1):
            click.echo(f"{number}. {candidate.name}")
            click.echo(f"   {candidate.display_name}")
        return

    if not 1 <= add_index <= len(candidates):
        click.echo(f"Error: --add must be between 1 and {len(candidates)}", err=True)
        ctx.exit(1)
    candidate = candidates[add_index - 1]
    raw = {
        "name": candidate.name,
        "country": candidate.country,
        "country_code": candidate.country_code,
        "city": candidate.city,
        "lat": candidate.lat,
        "lng": candidate.lng,
        "status": status,
    }

    async def _add(controller):
        return await controller.create(raw)

    place = run_with_controller(ctx, _add)
    click.echo(f"Added place '{place.name}' (ID: {place.id})")


def register_commands(cli):
    """Register search command with main CLI."""
    cli.add_command(search_places)
