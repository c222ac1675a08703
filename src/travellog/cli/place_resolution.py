"""CLI helpers for place resolution and display."""

from __future__ import annotations

import click

from travellog.domain.entities import Place
from travellog.domain.persistence import PersistenceController
from travellog.utils.place_resolver import resolve_place


def resolve_place_in(controller: PersistenceController, reference: str) -> Place:
    """Resolve a place reference against the controller's collection.

    Raises the domain error on failure; commands run through
    ``run_with_controller`` which reports it.
    """
    return resolve_place(controller.places, reference)


def short_id(place: Place) -> str:
    return place.id[:8]


def format_place_line(place: Place) -> str:
    """One-line summary used by list style output."""
    marker = "✓" if place.is_visited else "☆"
    location = ", ".join(part for part in (place.city, place.country) if part)
    line = f"{marker} {short_id(place):8s} | {place.name}"
    if location:
        line += f" ({location})"
    return line


def echo_place_details(place: Place) -> None:
    """Print every field of a place."""
    click.echo(f"\nPlace ID: {place.id}")
    click.echo(f"  Name: {place.name}")
    if place.city:
        click.echo(f"  City: {place.city}")
    if place.country:
        click.echo(f"  Country: {place.country}")
    if place.country_code:
        click.echo(f"  Country code: {place.country_code}")
    click.echo(f"  Coordinates: {place.lat:.4f}, {place.lng:.4f}")
    click.echo(f"  Status: {place.status}")
    if place.is_visited:
        click.echo(f"  Visited: {place.date_visited or '-'}")
        click.echo(f"  Rating: {place.rating}/5")
    if place.tags:
        click.echo(f"  Tags: {', '.join(place.tags)}")
    if place.notes:
        click.echo(f"  Notes: {place.notes}")
