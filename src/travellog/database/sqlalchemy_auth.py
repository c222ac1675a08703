"""SQLAlchemy-backed authentication provider for local use.

Stands in for a hosted auth backend: identities and sessions live in the same
database as the place rows, and "sending" a password reset link logs it.
"""

import asyncio
import hashlib
import hmac
import logging
import secrets
import uuid
from datetime import datetime, timedelta, UTC
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from travellog.database.base import AuthProvider, IdentityListener
from travellog.database.models import AuthSession, User
from travellog.database.sqlalchemy_db import SQLAlchemyDatabase
from travellog.domain.entities import Identity, SignUpResult
from travellog.domain.errors import AuthFailure, RemoteCallFailure, remote_call_failed

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 200_000
RECOVERY_SESSION_LIFETIME = timedelta(hours=1)


def hash_password(password: str, salt: Optional[str] = None) -> str:
    """Return a salted PBKDF2 hash in ``salt$hexdigest`` form."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), PBKDF2_ITERATIONS)
    return f"{salt}${digest.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    salt, _, _ = password_hash.partition("$")
    return hmac.compare_digest(hash_password(password, salt), password_hash)


def _identity(user: User) -> Identity:
    return Identity(id=user.id, email=user.email)


def _is_expired(auth_session: AuthSession) -> bool:
    if auth_session.expires_at is None:
        return False
    expires_at = auth_session.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=UTC)
    return expires_at <= datetime.now(UTC)


class SQLAlchemyAuthProvider(AuthProvider):
    """Auth provider keeping identities and sessions in the travellog database."""

    def __init__(self, db: SQLAlchemyDatabase):
        """Initialize auth provider.

        Args:
            db: Database whose session is shared for auth tables
        """
        self.db = db
        self._listeners: list[IdentityListener] = []

    def _session(self) -> Session:
        return self.db._get_session()

    def _failed(self, operation: str, error: SQLAlchemyError) -> RemoteCallFailure:
        self._session().rollback()
        logger.warning("Auth call failed (%s): %s", operation, error)
        return RemoteCallFailure(remote_call_failed(operation, error))

    def _current_session(self) -> Optional[AuthSession]:
        return (
            self._session()
            .query(AuthSession)
            .filter(AuthSession.is_current.is_(True))
            .first()
        )

    def _start_session(self, user: User, recovery: bool = False) -> AuthSession:
        session = self._session()
        if not recovery:
            session.query(AuthSession).filter(AuthSession.is_current.is_(True)).update(
                {AuthSession.is_current: False}
            )
        auth_session = AuthSession(
            access_token=secrets.token_urlsafe(32),
            refresh_token=secrets.token_urlsafe(32),
            user_id=user.id,
            is_current=not recovery,
            is_recovery=recovery,
            expires_at=datetime.now(UTC) + RECOVERY_SESSION_LIFETIME if recovery else None,
        )
        session.add(auth_session)
        session.commit()
        return auth_session

    async def _notify(self, identity: Optional[Identity]) -> None:
        for listener in list(self._listeners):
            await listener(identity)

    def on_identity_change(self, listener: IdentityListener) -> Callable[[], None]:
        """Register a listener for sign-in and sign-out."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def get_current_identity(self) -> Optional[Identity]:
        """Return the signed in identity, if any."""
        return await asyncio.to_thread(self._get_current_identity)

    async def email_exists(self, email: str) -> Optional[bool]:
        """Check whether an e-mail is registered."""
        return await asyncio.to_thread(self._email_exists, email)

    async def sign_up(self, email: str, password: str) -> SignUpResult:
        """Register a new identity and sign it in."""
        identity = await asyncio.to_thread(self._sign_up, email, password)
        await self._notify(identity)
        return SignUpResult(identity=identity, session_present=True)

    async def sign_in(self, email: str, password: str) -> Identity:
        """Sign in with e-mail and password."""
        identity = await asyncio.to_thread(self._sign_in, email, password)
        await self._notify(identity)
        return identity

    async def sign_out(self) -> None:
        """End the current session."""
        await asyncio.to_thread(self._sign_out)
        await self._notify(None)

    async def set_session(self, access_token: str, refresh_token: Optional[str] = None) -> Identity:
        """Adopt a session from the tokens of a reset link."""
        identity = await asyncio.to_thread(self._set_session, access_token, refresh_token)
        await self._notify(identity)
        return identity

    async def update_current_identity(self, password: str) -> None:
        """Change the password of the current identity."""
        await asyncio.to_thread(self._update_current_identity, password)

    async def send_password_reset(self, email: str, redirect_to: str) -> None:
        """Create a recovery session and log its landing link."""
        tokens = await asyncio.to_thread(self._create_recovery_session, email)
        if tokens is None:
            # Unknown addresses are not disclosed
            logger.info("Password reset requested for unknown e-mail")
            return
        access_token, refresh_token = tokens
        logger.info(
            "Password reset link for %s: %s#access_token=%s&refresh_token=%s&type=recovery",
            email,
            redirect_to,
            access_token,
            refresh_token,
        )

    # Blocking halves, run on worker threads while holding the database lock
    def _get_current_identity(self) -> Optional[Identity]:
        with self.db.lock:
            try:
                auth_session = self._current_session()
                if auth_session is None or _is_expired(auth_session):
                    return None
                return _identity(auth_session.user)
            except SQLAlchemyError as e:
                raise self._failed("fetch session", e)

    def _email_exists(self, email: str) -> Optional[bool]:
        with self.db.lock:
            try:
                return self._session().query(User).filter(User.email == email).first() is not None
            except SQLAlchemyError as e:
                logger.warning("E-mail existence check failed: %s", e)
                self._session().rollback()
                return None

    def _sign_up(self, email: str, password: str) -> Identity:
        with self.db.lock:
            session = self._session()
            try:
                if session.query(User).filter(User.email == email).first() is not None:
                    raise AuthFailure("User already registered")
                user = User(id=str(uuid.uuid4()), email=email, password_hash=hash_password(password))
                session.add(user)
                session.commit()
                self._start_session(user)
            except SQLAlchemyError as e:
                raise self._failed("sign up", e)
            return _identity(user)

    def _sign_in(self, email: str, password: str) -> Identity:
        with self.db.lock:
            try:
                user = self._session().query(User).filter(User.email == email).first()
                if user is None or not verify_password(password, user.password_hash):
                    raise AuthFailure("Invalid login credentials")
                self._start_session(user)
            except SQLAlchemyError as e:
                raise self._failed("sign in", e)
            return _identity(user)

    def _sign_out(self) -> None:
        with self.db.lock:
            session = self._session()
            try:
                session.query(AuthSession).filter(AuthSession.is_current.is_(True)).delete()
                session.commit()
            except SQLAlchemyError as e:
                raise self._failed("sign out", e)

    def _set_session(self, access_token: str, refresh_token: Optional[str]) -> Identity:
        with self.db.lock:
            session = self._session()
            try:
                auth_session = session.get(AuthSession, access_token)
                if (
                    auth_session is None
                    or _is_expired(auth_session)
                    or (refresh_token and refresh_token != auth_session.refresh_token)
                ):
                    raise AuthFailure("Invalid or expired session token")
                session.query(AuthSession).filter(AuthSession.is_current.is_(True)).update(
                    {AuthSession.is_current: False}
                )
                auth_session.is_current = True
                session.commit()
                return _identity(auth_session.user)
            except SQLAlchemyError as e:
                raise self._failed("restore session", e)

    def _update_current_identity(self, password: str) -> None:
        with self.db.lock:
            try:
                auth_session = self._current_session()
                if auth_session is None or _is_expired(auth_session):
                    raise AuthFailure("Auth session missing")
                auth_session.user.password_hash = hash_password(password)
                if auth_session.is_recovery:
                    # Recovery sessions are single use
                    auth_session.expires_at = datetime.now(UTC)
                self._session().commit()
            except SQLAlchemyError as e:
                raise self._failed("update password", e)

    def _create_recovery_session(self, email: str) -> Optional[tuple[str, str]]:
        with self.db.lock:
            try:
                user = self._session().query(User).filter(User.email == email).first()
                if user is None:
                    return None
                auth_session = self._start_session(user, recovery=True)
            except SQLAlchemyError as e:
                raise self._failed("send password reset", e)
            return auth_session.access_token, auth_session.refresh_token
