"""Running domain operations from click commands."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

import click

from travellog.cli.error_handling import handle_domain_error
from travellog.domain.attribution import BoundaryIndex
from travellog.domain.errors import DomainError
from travellog.domain.persistence import PersistenceController
from travellog.utils.boundaries import load_boundary_document

T = TypeVar("T")


def build_controller(ctx: click.Context) -> PersistenceController:
    """Create a controller wired to the stores of the current invocation."""
    db = ctx.obj["db"]
    return PersistenceController(
        local_store=db,
        remote_store=db,
        auth_provider=ctx.obj["auth"],
        config=ctx.obj.get("config"),
    )


def run_with_controller(
    ctx: click.Context, operation: Callable[[PersistenceController], Awaitable[T]]
) -> T:
    """Start a controller, run operation on it and report domain errors.

    Every command runs on its own event loop; the controller adopts the
    current identity before the operation runs.
    """

    async def _run() -> T:
        controller = build_controller(ctx)
        try:
            await controller.start()
            return await operation(controller)
        finally:
            controller.close()

    try:
        return asyncio.run(_run())
    except DomainError as e:
        handle_domain_error(ctx, e)


def run_async(ctx: click.Context, awaitable: Awaitable[T]) -> T:
    """Run a coroutine that does not need the place collection."""

    async def _run() -> Any:
        return await awaitable

    try:
        return asyncio.run(_run())
    except DomainError as e:
        handle_domain_error(ctx, e)


def boundary_document(ctx: click.Context) -> dict[str, Any] | None:
    """Load the boundary dataset once per invocation."""
    if "boundary_document" not in ctx.obj:
        ctx.obj["boundary_document"] = load_boundary_document(ctx.obj.get("boundaries"))
    return ctx.obj["boundary_document"]


def boundary_index(ctx: click.Context) -> BoundaryIndex:
    return BoundaryIndex.from_geojson(boundary_document(ctx))
