"""Domain layer for travellog application."""

from travellog.domain.auth import AuthService
from travellog.domain.persistence import PersistenceConfig, PersistenceController
from travellog.domain.search import PlaceSearch

__all__ = [
    "AuthService",
    "PersistenceConfig",
    "PersistenceController",
    "PlaceSearch",
]
