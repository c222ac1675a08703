"""Shared pytest fixtures for travellog tests."""

import asyncio
import json
import tempfile
import os
from pathlib import Path
from typing import Optional
import pytest

from travellog.database.base import AuthProvider, LocalStore, RemoteStore
from travellog.database.factories import create_auth_provider, create_sqlite_database
from travellog.domain.entities import Identity, Place, SignUpResult
from travellog.domain.errors import AuthFailure, RemoteCallFailure
from travellog.domain.persistence import PersistenceConfig, PersistenceController


class MemoryLocalStore(LocalStore):
    """Dict backed local storage."""

    def __init__(self, items: Optional[dict] = None):
        self.items = dict(items or {})
        self.writes = 0

    def get_item(self, key):
        return self.items.get(key)

    def set_item(self, key, value):
        self.writes += 1
        self.items[key] = value

    def remove_item(self, key):
        self.items.pop(key, None)


class FakeRemoteStore(RemoteStore):
    """In-memory row store behaving like a hosted table.

    Rows keep tags as JSON text and visit dates as timestamps. Operations
    named in ``failing`` raise RemoteCallFailure; when ``gate`` is set every
    call waits for it before answering.
    """

    def __init__(self):
        self.rows: list[dict] = []
        self.failing: set[str] = set()
        self.gate: Optional[asyncio.Event] = None
        self.calls: list[tuple] = []
        self._next_id = 1

    def add_row(self, owner_id: str, **fields) -> dict:
        row = {
            "id": self._next_id,
            "owner_id": owner_id,
            "name": "",
            "country": "",
            "country_code": None,
            "city": "",
            "lat": 0.0,
            "lng": 0.0,
            "status": "wishlist",
            "date_visited": None,
            "rating": 0,
            "notes": "",
            "tags": "[]",
        }
        row.update(fields)
        if isinstance(row["tags"], list):
            row["tags"] = json.dumps(row["tags"])
        if row["date_visited"] and len(row["date_visited"]) == 10:
            row["date_visited"] += "T00:00:00+00:00"
        self._next_id += 1
        # Newest first
        self.rows.insert(0, row)
        return dict(row)

    async def _enter(self, operation: str, *args):
        self.calls.append((operation,) + args)
        if self.gate is not None:
            await self.gate.wait()
        if operation in self.failing:
            raise RemoteCallFailure(f"{operation} failed")

    async def select_places(self, owner_id):
        await self._enter("select", owner_id)
        return [dict(row) for row in self.rows if row["owner_id"] == owner_id]

    async def insert_place(self, row):
        await self._enter("insert", row)
        fields = {key: value for key, value in row.items() if key != "owner_id"}
        return self.add_row(row["owner_id"], **fields)

    async def update_place(self, place_id, changes, owner_id):
        await self._enter("update", place_id, changes, owner_id)
        for row in self.rows:
            if str(row["id"]) == str(place_id) and row["owner_id"] == owner_id:
                row.update(changes)
                if isinstance(row["tags"], list):
                    row["tags"] = json.dumps(row["tags"])
                return dict(row)
        return None

    async def delete_place(self, place_id, owner_id):
        await self._enter("delete", place_id, owner_id)
        for row in self.rows:
            if str(row["id"]) == str(place_id) and row["owner_id"] == owner_id:
                self.rows.remove(row)
                return True
        return False


class FakeAuthProvider(AuthProvider):
    """Auth provider with a fixed user table and observable listeners."""

    def __init__(self, users: Optional[dict] = None, exists_answer: Optional[bool] = None):
        self.users = dict(users or {})
        self.identity: Optional[Identity] = None
        self.exists_answer = exists_answer
        self.listeners = []
        self.sessions: dict[str, Identity] = {}
        self.reset_requests: list[tuple[str, str]] = []
        self.password_updates: list[str] = []
        self.fail_identity_query = False

    async def _notify(self):
        for listener in list(self.listeners):
            await listener(self.identity)

    async def get_current_identity(self):
        if self.fail_identity_query:
            raise RemoteCallFailure("auth backend unreachable")
        return self.identity

    async def sign_up(self, email, password):
        identity = Identity(id=f"user-{len(self.users) + 1}", email=email)
        self.users[email] = (identity, password)
        return SignUpResult(identity=identity, session_present=False)

    async def sign_in(self, email, password):
        entry = self.users.get(email)
        if entry is None or entry[1] != password:
            raise AuthFailure("Invalid login credentials")
        self.identity = entry[0]
        await self._notify()
        return self.identity

    async def sign_out(self):
        self.identity = None
        await self._notify()

    def on_identity_change(self, listener):
        self.listeners.append(listener)
        return lambda: self.listeners.remove(listener)

    async def set_session(self, access_token, refresh_token=None):
        if access_token not in self.sessions:
            raise AuthFailure("Invalid or expired session token")
        self.identity = self.sessions[access_token]
        return self.identity

    async def update_current_identity(self, password):
        if self.identity is None:
            raise AuthFailure("Auth session missing")
        self.password_updates.append(password)

    async def send_password_reset(self, email, redirect_to):
        self.reset_requests.append((email, redirect_to))

    async def email_exists(self, email):
        return self.exists_answer


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def sqlite_auth(temp_db):
    """Create the SQLAlchemy auth provider on the temporary database."""
    return create_auth_provider(temp_db)


@pytest.fixture
def local_store():
    return MemoryLocalStore()


@pytest.fixture
def remote_store():
    return FakeRemoteStore()


@pytest.fixture
def auth_provider():
    identity = Identity(id="owner-1", email="ada@example.com")
    return FakeAuthProvider(users={"ada@example.com": (identity, "secret1")})


@pytest.fixture
def seed_places():
    return (
        Place(id="seed-1", name="Lake Bled", country="Slovenia", country_code="SI", status="visited"),
        Place(id="seed-2", name="Prague Old Town", country="Czechia", status="wishlist"),
    )


@pytest.fixture
def persistence_config(seed_places):
    return PersistenceConfig(
        storage_key="test-places", seed_places=seed_places, default_coords=(47.5, 19.04)
    )


@pytest.fixture
def controller(local_store, remote_store, auth_provider, persistence_config):
    """Create a PersistenceController wired to in-memory collaborators."""
    return PersistenceController(
        local_store=local_store,
        remote_store=remote_store,
        auth_provider=auth_provider,
        config=persistence_config,
    )


@pytest.fixture
def sample_places():
    return [
        Place(id="p1", name="Paris", country="France", city="Paris", status="visited", tags=("food",)),
        Place(id="p2", name="Rome", country="Italy", city="Rome", status="wishlist"),
    ]


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def boundary_document(fixtures_dir):
    return json.loads((fixtures_dir / "boundaries.geojson").read_text(encoding="utf-8"))
