"""Place management commands."""

import click

from travellog.cli.place_resolution import (
    echo_place_details,
    format_place_line,
    resolve_place_in,
    short_id,
)
from travellog.cli.runtime import run_with_controller
from travellog.domain.entities import (
    PLACE_STATUSES,
    STATUS_ALL,
    STATUS_VISITED,
    STATUS_WISHLIST,
    Authenticated,
)
from travellog.utils.date_parser import parse_visit_date


def _parse_date_or_exit(ctx, value: str | None) -> str | None:
    if value is None:
        return None
    try:
        return parse_visit_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid visit date: {e}", err=True)
        ctx.exit(1)


@click.command("add")
@click.argument("name")
@click.option(
    "--status",
    type=click.Choice(PLACE_STATUSES),
    required=True,
    help="Whether the place was visited or is on the wishlist",
)
@click.option("--country", help="Country name")
@click.option("--country-code", help="ISO 3166-1 alpha-2 country code (e.g., HU)")
@click.option("--city", help="City or region")
@click.option("--lat", type=float, help="Latitude (defaults to the last selected map position)")
@click.option("--lng", type=float, help="Longitude (defaults to the last selected map position)")
@click.option("--date", "date_visited", help="Visit date (YYYY-MM-DD or 'today', 'yesterday')")
@click.option("--rating", type=click.IntRange(0, 5), default=0, help="Rating from 0 to 5")
@click.option("--notes", help="Notes")
@click.option("--tags", help="Comma separated tags")
@click.pass_context
def add_place(
    ctx,
    name: str,
    status: str,
    country: str | None,
    country_code: str | None,
    city: str | None,
    lat: float | None,
    lng: float | None,
    date_visited: str | None,
    rating: int,
    notes: str | None,
    tags: str | None,
):
    """Add a place.

    Examples:
        travellog add "Lake Bled" --status visited --country Slovenia --rating 5
        travellog add "Prague Old Town" --status wishlist --country-code CZ --tags "city, beer"
    """
    raw = {
        "name": name,
        "status": status,
        "country": country,
        "country_code": country_code,
        "city": city,
        "lat": lat,
        "lng": lng,
        "date_visited": _parse_date_or_exit(ctx, date_visited),
        "rating": rating,
        "notes": notes,
        "tags": tags,
    }

    async def _add(controller):
        return await controller.create(raw)

    place = run_with_controller(ctx, _add)
    click.echo(f"Added place '{place.name}' (ID: {place.id})")


@click.command("list")
@click.argument("query", required=False, default="")
@click.option(
    "--status",
    type=click.Choice((STATUS_ALL,) + PLACE_STATUSES),
    default=STATUS_ALL,
    help="Only show places with this status",
)
@click.pass_context
def list_places(ctx, query: str, status: str):
    """List places, optionally filtered by text and status.

    QUERY is matched against name, country, city and tags.
    """

    async def _list(controller):
        return controller.session, controller.filtered(query, status)

    session, places = run_with_controller(ctx, _list)
    if isinstance(session, Authenticated):
        click.echo("Showing places of your account")

    if not places:
        click.echo("No places found.")
        return

    click.echo(f"\nFound {len(places)} place(s):")
    click.echo("-" * 60)
    for place in places:
        click.echo(format_place_line(place))


@click.command("show")
@click.argument("place", metavar="PLACE")
@click.pass_context
def show_place(ctx, place: str):
    """Show all details of a place.

    PLACE can be a place ID, an ID prefix or a name.
    """

    async def _show(controller):
        return resolve_place_in(controller, place)

    echo_place_details(run_with_controller(ctx, _show))


@click.command("edit")
@click.argument("place", metavar="PLACE")
@click.option("--name", help="New name")
@click.option("--status", type=click.Choice(PLACE_STATUSES), help="New status")
@click.option("--country", help="Country name")
@click.option("--country-code", help="ISO 3166-1 alpha-2 country code")
@click.option("--city", help="City or region")
@click.option("--lat", type=float, help="Latitude")
@click.option("--lng", type=float, help="Longitude")
@click.option("--date", "date_visited", help="Visit date")
@click.option("--rating", type=click.IntRange(0, 5), help="Rating from 0 to 5")
@click.option("--notes", help="Notes")
@click.option("--tags", help="Comma separated tags (replaces existing tags)")
@click.pass_context
def edit_place(ctx, place: str, date_visited: str | None, **options):
    """Edit fields of a place; only the given options are changed.

    Examples:
        travellog edit "Lake Bled" --rating 4
        travellog edit 1a2b3c4d --status visited --date today
    """
    changes = {key: value for key, value in options.items() if value is not None}
    if date_visited is not None:
        changes["date_visited"] = _parse_date_or_exit(ctx, date_visited)
    if not changes:
        click.echo("Nothing to change.")
        return

    async def _edit(controller):
        target = resolve_place_in(controller, place)
        return await controller.update(target.id, changes)

    updated = run_with_controller(ctx, _edit)
    if updated is None:
        click.echo("Session changed before the edit was saved.", err=True)
        ctx.exit(1)
    click.echo(f"Updated place '{updated.name}' (ID: {short_id(updated)})")


@click.command("toggle")
@click.argument("place", metavar="PLACE")
@click.pass_context
def toggle_place(ctx, place: str):
    """Move a place between visited and wishlist."""

    async def _toggle(controller):
        target = resolve_place_in(controller, place)
        status = STATUS_WISHLIST if target.is_visited else STATUS_VISITED
        return await controller.update(target.id, {"status": status})

    updated = run_with_controller(ctx, _toggle)
    if updated is not None:
        click.echo(f"'{updated.name}' is now {updated.status}")


@click.command("delete")
@click.argument("place", metavar="PLACE")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_place(ctx, place: str, yes: bool):
    """Delete a place.

    PLACE can be a place ID, an ID prefix or a name.
    """

    async def _delete(controller):
        target = resolve_place_in(controller, place)
        if not yes and not click.confirm(
            f"Are you sure you want to delete '{target.name}' (ID: {short_id(target)})?"
        ):
            return None
        await controller.delete(target.id)
        return target

    deleted = run_with_controller(ctx, _delete)
    if deleted is None:
        click.echo("Deletion cancelled.")
        return
    click.echo(f"Deleted place '{deleted.name}'")


def register_commands(cli):
    """Register place commands with main CLI."""
    cli.add_command(add_place)
    cli.add_command(list_places)
    cli.add_command(show_place)
    cli.add_command(edit_place)
    cli.add_command(toggle_place)
    cli.add_command(delete_place)
