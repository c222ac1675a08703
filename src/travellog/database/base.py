"""Abstract storage and authentication interfaces."""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from travellog.domain.entities import Identity, SignUpResult

Row = dict[str, Any]
IdentityListener = Callable[[Optional[Identity]], Awaitable[None]]


class LocalStore(ABC):
    """Key/value storage for the anonymous place collection."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value for key, or None if absent."""
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove key if present."""
        pass


class RemoteStore(ABC):
    """Per-owner row storage for the authenticated place collection.

    Rows are plain dicts using snake_case column names. Implementations raise
    ``RemoteCallFailure`` for backend errors.
    """

    @abstractmethod
    async def select_places(self, owner_id: str) -> list[Row]:
        """Return all rows of an owner, newest created first."""
        pass

    @abstractmethod
    async def insert_place(self, row: Row) -> Row:
        """Insert a row and return it as stored, with its assigned id."""
        pass

    @abstractmethod
    async def update_place(self, place_id: str, changes: Row, owner_id: str) -> Optional[Row]:
        """Apply a partial update to an owner's row.

        Returns the updated row, or None if the owner has no such row.
        """
        pass

    @abstractmethod
    async def delete_place(self, place_id: str, owner_id: str) -> bool:
        """Delete an owner's row. Returns False if there was no such row."""
        pass


class AuthProvider(ABC):
    """External authentication backend.

    Implementations raise ``AuthFailure`` when the backend rejects a request
    and ``RemoteCallFailure`` when it cannot be reached.
    """

    @abstractmethod
    async def get_current_identity(self) -> Optional[Identity]:
        """Return the signed in identity, if any."""
        pass

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> SignUpResult:
        """Register a new identity."""
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> Identity:
        """Sign in with e-mail and password."""
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        """End the current session."""
        pass

    @abstractmethod
    def on_identity_change(self, listener: IdentityListener) -> Callable[[], None]:
        """Register a listener for sign-in and sign-out.

        Returns a function that removes the listener.
        """
        pass

    @abstractmethod
    async def set_session(self, access_token: str, refresh_token: Optional[str] = None) -> Identity:
        """Adopt a session from tokens, as delivered by a password reset link."""
        pass

    @abstractmethod
    async def update_current_identity(self, password: str) -> None:
        """Change the password of the current identity."""
        pass

    @abstractmethod
    async def send_password_reset(self, email: str, redirect_to: str) -> None:
        """Send a password reset link that lands on redirect_to."""
        pass

    async def email_exists(self, email: str) -> Optional[bool]:
        """Best-effort check whether an e-mail is registered.

        Returns None when the backend does not allow the check.
        """
        return None
