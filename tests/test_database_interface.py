"""Tests for the SQLAlchemy local store, remote store and auth provider."""

import asyncio
import logging
import re
import threading

import pytest

from travellog.database.factories import create_auth_provider, create_sqlite_database
from travellog.database.mappers import domain_to_row, row_to_domain
from travellog.database.sqlalchemy_auth import hash_password, verify_password
from travellog.domain.entities import Anonymous, Authenticated, Place
from travellog.domain.errors import AuthFailure
from travellog.domain.persistence import PersistenceConfig, PersistenceController


class TestLocalStore:
    """Tests for key/value local storage."""

    def test_get_missing_key(self, temp_db):
        assert temp_db.get_item("missing") is None

    def test_set_replace_and_remove(self, temp_db):
        temp_db.set_item("k", "one")
        temp_db.set_item("k", "two")
        assert temp_db.get_item("k") == "two"

        temp_db.remove_item("k")
        temp_db.remove_item("k")
        assert temp_db.get_item("k") is None

    def test_values_survive_reconnect(self, temp_db):
        temp_db.set_item("k", "[]")
        other = create_sqlite_database(database_path=temp_db.database_path)
        try:
            assert other.get_item("k") == "[]"
        finally:
            other.disconnect()


class TestRemoteStore:
    """Tests for owner scoped place rows."""

    @pytest.mark.asyncio
    async def test_insert_assigns_id_and_encodes_fields(self, temp_db):
        place = Place(id="tmp", name="Kyoto", date_visited="2024-04-02", tags=("temples",))

        row = await temp_db.insert_place(domain_to_row(place, "owner-1"))

        assert isinstance(row["id"], int)
        assert row["owner_id"] == "owner-1"
        assert row["date_visited"] == "2024-04-02T00:00:00+00:00"
        assert row["tags"] == '["temples"]'
        stored = row_to_domain(row)
        assert stored.date_visited == "2024-04-02"
        assert stored.tags == ("temples",)

    @pytest.mark.asyncio
    async def test_select_is_owner_scoped_and_newest_first(self, temp_db):
        for name in ("First", "Second", "Third"):
            await temp_db.insert_place(domain_to_row(Place(id="t", name=name), "owner-1"))
        await temp_db.insert_place(domain_to_row(Place(id="t", name="Other"), "owner-2"))

        rows = await temp_db.select_places("owner-1")

        assert [row["name"] for row in rows] == ["Third", "Second", "First"]

    @pytest.mark.asyncio
    async def test_update_applies_only_given_fields(self, temp_db):
        row = await temp_db.insert_place(
            domain_to_row(Place(id="t", name="Oslo", rating=2, notes="cold"), "owner-1")
        )

        updated = await temp_db.update_place(str(row["id"]), {"rating": 4, "tags": ["fjord"]}, "owner-1")

        assert updated["rating"] == 4
        assert updated["notes"] == "cold"
        assert updated["tags"] == '["fjord"]'

    @pytest.mark.asyncio
    async def test_update_and_delete_respect_owner(self, temp_db):
        row = await temp_db.insert_place(domain_to_row(Place(id="t", name="Oslo"), "owner-1"))
        place_id = str(row["id"])

        assert await temp_db.update_place(place_id, {"rating": 1}, "owner-2") is None
        assert await temp_db.delete_place(place_id, "owner-2") is False
        assert await temp_db.delete_place(place_id, "owner-1") is True
        assert await temp_db.select_places("owner-1") == []

    @pytest.mark.asyncio
    async def test_temporary_ids_are_not_found(self, temp_db):
        assert await temp_db.update_place("0b7c-temp", {"rating": 1}, "owner-1") is None
        assert await temp_db.delete_place("0b7c-temp", "owner-1") is False

    @pytest.mark.asyncio
    async def test_queries_run_off_the_event_loop_thread(self, temp_db, monkeypatch):
        threads = []
        select = temp_db._select_places

        def recording_select(owner_id):
            threads.append(threading.get_ident())
            return select(owner_id)

        monkeypatch.setattr(temp_db, "_select_places", recording_select)

        assert await temp_db.select_places("owner-1") == []
        assert threads and threads[0] != threading.get_ident()

    @pytest.mark.asyncio
    async def test_concurrent_calls_share_the_session_safely(self, temp_db):
        temp_db.set_item("k", "[]")
        rows = await asyncio.gather(
            *(temp_db.insert_place(domain_to_row(Place(id="t", name=f"City {n}"), "owner-1")) for n in range(5))
        )

        assert len({row["id"] for row in rows}) == 5
        stored = await temp_db.select_places("owner-1")
        assert sorted(row["name"] for row in stored) == [f"City {n}" for n in range(5)]
        assert temp_db.get_item("k") == "[]"


class TestPasswordHashing:
    """Tests for password hashing helpers."""

    def test_verify(self):
        hashed = hash_password("secret1")
        assert verify_password("secret1", hashed)
        assert not verify_password("secret2", hashed)

    def test_salted(self):
        assert hash_password("secret1") != hash_password("secret1")


class TestSQLAlchemyAuthProvider:
    """Tests for the database backed auth provider."""

    @pytest.mark.asyncio
    async def test_sign_up_signs_in(self, sqlite_auth):
        result = await sqlite_auth.sign_up("ada@example.com", "secret1")

        assert result.session_present
        assert result.identity.email == "ada@example.com"
        assert await sqlite_auth.get_current_identity() == result.identity
        assert await sqlite_auth.email_exists("ada@example.com") is True
        assert await sqlite_auth.email_exists("bob@example.com") is False

    @pytest.mark.asyncio
    async def test_duplicate_sign_up(self, sqlite_auth):
        await sqlite_auth.sign_up("ada@example.com", "secret1")
        with pytest.raises(AuthFailure, match="already registered"):
            await sqlite_auth.sign_up("ada@example.com", "secret2")

    @pytest.mark.asyncio
    async def test_sign_in_and_out(self, sqlite_auth):
        await sqlite_auth.sign_up("ada@example.com", "secret1")
        await sqlite_auth.sign_out()
        assert await sqlite_auth.get_current_identity() is None

        identity = await sqlite_auth.sign_in("ada@example.com", "secret1")
        assert (await sqlite_auth.get_current_identity()) == identity

    @pytest.mark.asyncio
    async def test_wrong_credentials(self, sqlite_auth):
        await sqlite_auth.sign_up("ada@example.com", "secret1")
        with pytest.raises(AuthFailure, match="Invalid login credentials"):
            await sqlite_auth.sign_in("ada@example.com", "wrong!")
        with pytest.raises(AuthFailure):
            await sqlite_auth.sign_in("bob@example.com", "secret1")

    @pytest.mark.asyncio
    async def test_listeners_are_notified(self, sqlite_auth):
        seen = []

        async def listener(identity):
            seen.append(identity.email if identity else None)

        unsubscribe = sqlite_auth.on_identity_change(listener)
        await sqlite_auth.sign_up("ada@example.com", "secret1")
        await sqlite_auth.sign_out()
        unsubscribe()
        await sqlite_auth.sign_in("ada@example.com", "secret1")

        assert seen == ["ada@example.com", None]

    @pytest.mark.asyncio
    async def test_password_reset_link(self, sqlite_auth, caplog):
        await sqlite_auth.sign_up("ada@example.com", "secret1")
        await sqlite_auth.sign_out()
        caplog.set_level(logging.INFO, logger="travellog.database.sqlalchemy_auth")

        await sqlite_auth.send_password_reset("ada@example.com", "http://localhost/reset")

        message = caplog.records[-1].getMessage()
        match = re.search(r"#access_token=([^&]+)&refresh_token=([^&]+)&type=recovery", message)
        assert match
        assert "http://localhost/reset#access_token=" in message
        # Requesting a reset does not sign anyone in
        assert await sqlite_auth.get_current_identity() is None

        identity = await sqlite_auth.set_session(match.group(1), match.group(2))
        assert identity.email == "ada@example.com"
        await sqlite_auth.update_current_identity("newsecret")
        await sqlite_auth.sign_out()

        await sqlite_auth.sign_in("ada@example.com", "newsecret")
        with pytest.raises(AuthFailure):
            await sqlite_auth.set_session(match.group(1), match.group(2))

    @pytest.mark.asyncio
    async def test_reset_for_unknown_email_is_silent(self, sqlite_auth, caplog):
        caplog.set_level(logging.INFO, logger="travellog.database.sqlalchemy_auth")
        await sqlite_auth.send_password_reset("nobody@example.com", "http://localhost/reset")
        assert "access_token" not in caplog.text

    @pytest.mark.asyncio
    async def test_invalid_session_tokens(self, sqlite_auth):
        with pytest.raises(AuthFailure):
            await sqlite_auth.set_session("bogus")
        with pytest.raises(AuthFailure, match="Auth session missing"):
            await sqlite_auth.update_current_identity("newsecret")


class TestControllerOnDatabase:
    """End to end controller behaviour on the SQLite backend."""

    @pytest.mark.asyncio
    async def test_local_and_account_collections_stay_separate(self, temp_db):
        auth = create_auth_provider(temp_db)
        config = PersistenceConfig(storage_key="places", seed_places=())
        controller = PersistenceController(temp_db, temp_db, auth, config)
        await controller.start()

        await controller.create({"name": "Local place"})
        await auth.sign_up("ada@example.com", "secret1")
        assert isinstance(controller.session, Authenticated)
        assert controller.places == ()

        created = await controller.create({"name": "Account place", "status": "visited"})
        assert created.id.isdigit()

        await auth.sign_out()
        assert controller.session == Anonymous()
        assert [p.name for p in controller.places] == ["Local place"]

        await auth.sign_in("ada@example.com", "secret1")
        assert [p.name for p in controller.places] == ["Account place"]
        controller.close()
