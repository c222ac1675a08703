"""Authentication domain service."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional
from urllib.parse import parse_qs, urlsplit

from travellog.domain.entities import Identity, SignUpResult
from travellog.domain.errors import (
    AuthFailure,
    ValidationError,
    password_too_short,
)

if TYPE_CHECKING:
    from travellog.database.base import AuthProvider

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def parse_reset_tokens(url: str) -> tuple[Optional[str], Optional[str]]:
    """Read the access and refresh tokens from a reset link.

    Tokens may arrive in the query string or in the fragment; the access
    token may be named ``access_token`` or ``token``.
    """
    parts = urlsplit(url)
    query = parse_qs(parts.query)
    fragment = parse_qs(parts.fragment.lstrip("#"))

    def first(name: str) -> Optional[str]:
        for source in (query, fragment):
            values = source.get(name)
            if values:
                return values[0]
        return None

    access_token = first("access_token") or first("token")
    return access_token, first("refresh_token")


class AuthService:
    """Service wrapping the auth provider with input validation."""

    def __init__(self, provider: AuthProvider):
        """Initialize auth service.

        Args:
            provider: Auth provider instance
        """
        self.provider = provider

    @staticmethod
    def _require_credentials(email: str, password: str) -> str:
        email = (email or "").strip()
        if not email or not password:
            raise ValidationError("E-mail and password are required")
        return email

    @staticmethod
    def _check_password(password: str) -> None:
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(password_too_short(MIN_PASSWORD_LENGTH))

    async def sign_up(self, email: str, password: str) -> SignUpResult:
        """Register a new identity.

        The existence check is best effort: an unknown answer does not block
        the sign-up.

        Raises:
            ValidationError: If e-mail or password are missing or too short
            AuthFailure: If the e-mail is already registered
        """
        email = self._require_credentials(email, password)
        self._check_password(password)
        exists = await self.provider.email_exists(email)
        if exists:
            raise AuthFailure("This e-mail address is already registered")
        if exists is None:
            logger.info("E-mail existence check unavailable; continuing with sign-up")
        return await self.provider.sign_up(email, password)

    async def sign_in(self, email: str, password: str) -> Identity:
        """Sign in with e-mail and password."""
        email = self._require_credentials(email, password)
        return await self.provider.sign_in(email, password)

    async def sign_out(self) -> None:
        await self.provider.sign_out()

    async def current_identity(self) -> Optional[Identity]:
        return await self.provider.get_current_identity()

    async def request_password_reset(self, email: str, redirect_to: str) -> None:
        """Ask the backend to send a reset link landing on redirect_to."""
        email = (email or "").strip()
        if not email:
            raise ValidationError("E-mail is required")
        await self.provider.send_password_reset(email, redirect_to)

    async def open_reset_link(self, url: str) -> Identity:
        """Adopt the session carried by a password reset link.

        Raises:
            AuthFailure: If the link has no token, or the token is invalid
                or expired
        """
        access_token, refresh_token = parse_reset_tokens(url)
        if not access_token:
            raise AuthFailure(
                "Open the password reset link from your e-mail, or request a new one"
            )
        try:
            return await self.provider.set_session(access_token, refresh_token)
        except AuthFailure as e:
            logger.warning("Reset link rejected: %s", e)
            raise AuthFailure("The reset link is invalid or has expired; request a new one")

    async def set_new_password(self, password: str) -> None:
        """Set the password of the identity adopted from a reset link.

        Raises:
            ValidationError: If the password is too short
        """
        self._check_password(password)
        await self.provider.update_current_identity(password)
