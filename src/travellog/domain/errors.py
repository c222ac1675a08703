"""Shared domain error messages and error types."""

from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


# Name used throughout the travel log for rejected form input.
InvalidInputError = ValidationError


class NotFoundError(DomainError):
    """Requested place does not exist in the active collection."""


class ConflictError(DomainError):
    """A change for the same place is already waiting on the remote store."""


class ParseError(DomainError):
    """Import payload or stored collection could not be parsed."""


class RemoteCallFailure(DomainError):
    """Network or backend failure while talking to a store or auth backend."""


class AuthFailure(DomainError):
    """Authentication rejected by the backend.

    The backend supplied message is used when there is one, otherwise a
    generic fallback.
    """

    def __init__(self, message: Optional[str] = None, fallback: str = "Authentication failed"):
        super().__init__(message or fallback)


def place_not_found(place_id: str) -> str:
    """Return message for missing place."""
    return f"Place {place_id} not found"


def place_name_required() -> str:
    """Return message for a place submitted without a name."""
    return "Place name is required"


def unknown_place_field(field_name: str) -> str:
    """Return message for an edit naming a field that does not exist."""
    return f"Unknown place field '{field_name}'"


def change_in_flight(place_id: str) -> str:
    """Return message when a second remote change targets the same place."""
    return f"A change for place {place_id} is still being saved; try again shortly"


def import_not_a_list() -> str:
    """Return message for an import whose top level is not an array."""
    return "Import file must contain a JSON array of places"


def password_too_short(min_length: int) -> str:
    """Return message for a password below the minimum length."""
    return f"Password must be at least {min_length} characters long"


def remote_call_failed(operation: str, error: Exception) -> str:
    """Return message for a failed remote store or auth call."""
    return f"Could not {operation}: {error}"
