"""Statistics and map commands."""

import json
from pathlib import Path

import click

from travellog.cli.runtime import boundary_document, boundary_index, run_with_controller
from travellog.domain.attribution import BoundaryIndex, shade_boundaries, visited_country_codes
from travellog.domain.place import place_to_json


@click.command("stats")
@click.pass_context
def show_stats(ctx):
    """Show visited and wishlist counts and visited countries."""
    index = boundary_index(ctx)

    async def _stats(controller):
        return controller.stats(index), visited_country_codes(controller.places, index)

    stats, codes = run_with_controller(ctx, _stats)
    click.echo(f"Visited countries: {stats.distinct_visited_country_count}")
    click.echo(f"Places: {stats.visited_count} visited / {stats.wishlist_count} wishlist")
    if not index.is_loaded:
        click.echo("Boundary data unavailable; countries counted by name.", err=True)
    elif codes:
        click.echo(f"Country codes: {', '.join(sorted(codes))}")


@click.command("map")
@click.argument("output", type=click.Path(dir_okay=False, writable=True))
@click.pass_context
def export_map(ctx, output: str):
    """Write map data as GeoJSON: shaded country boundaries plus place markers.

    Boundary features get 'visited' and 'style' properties; each place is
    added as a Point feature.
    """
    document = boundary_document(ctx)
    index = BoundaryIndex.from_geojson(document)

    async def _places(controller):
        return controller.places

    places = run_with_controller(ctx, _places)
    codes = visited_country_codes(places, index)

    features = shade_boundaries(document, codes) if document else []
    for place in places:
        features.append(
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [place.lng, place.lat]},
                "properties": place_to_json(place),
            }
        )

    collection = {"type": "FeatureCollection", "features": features}
    Path(output).write_text(json.dumps(collection, ensure_ascii=False), encoding="utf-8")
    click.echo(f"Wrote {len(places)} places and {len(features) - len(places)} boundaries to {output}")
    if document is None:
        click.echo("Boundary data unavailable; map contains places only.", err=True)


def register_commands(cli):
    """Register stats and map commands with main CLI."""
    cli.add_command(show_stats)
    cli.add_command(export_map)
