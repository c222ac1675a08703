"""Database layer for travellog application."""

from travellog.database.base import AuthProvider, LocalStore, RemoteStore
from travellog.database.factories import create_auth_provider, create_sqlite_database

__all__ = [
    "AuthProvider",
    "LocalStore",
    "RemoteStore",
    "create_auth_provider",
    "create_sqlite_database",
]
