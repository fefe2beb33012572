"""Token holder for one Netatmo credential set."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from .models import Credentials


class TokenStore:
    """Hold the bearer token, its expiry and the refresh token.

    The access token and its expiry are always cleared together, so a
    cleared token never carries an expiry that would delay re-authentication.
    """

    def __init__(self, credentials: Credentials) -> None:
        """Initialize the store from client credentials."""
        self._credentials = credentials

    @property
    def client_id(self) -> str:
        """Return the OAuth client id."""
        return self._credentials.client_id

    @property
    def client_secret(self) -> str:
        """Return the OAuth client secret."""
        return self._credentials.client_secret

    @property
    def refresh_token(self) -> str | None:
        """Return the refresh token, if one was issued."""
        return self._credentials.refresh_token

    @property
    def expires_at(self) -> datetime | None:
        """Return the expiry of the current access token."""
        return self._credentials.expires_at

    @property
    def needs_auth(self) -> bool:
        """Return True if no access token is held."""
        return not self._credentials.access_token

    def current_token(self) -> str | None:
        """Return the current access token or None."""
        return self._credentials.access_token or None

    def invalidate(self) -> None:
        """Drop the access token and its expiry."""
        self._credentials.access_token = None
        self._credentials.expires_at = None

    def set_tokens(
        self, access_token: str, expires_at: datetime, refresh_token: str
    ) -> None:
        """Store a freshly issued token set."""
        self._credentials.access_token = access_token
        self._credentials.expires_at = expires_at
        self._credentials.refresh_token = refresh_token
