"""OAuth2 authorization-code flow and token refresh for Netatmo."""

from __future__ import annotations

import logging
import secrets
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import httpx
from homeassistant.helpers.event import async_track_point_in_utc_time

from . import api
from .api import AuthFlowError
from .const import CONF_EXPIRES_AT, CONF_REFRESH_TOKEN, OAUTH_AUTHORIZE_URL
from .models import CompletedAuthorization, OAuthTokens, PendingAuthorization

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from homeassistant.core import CALLBACK_TYPE, HomeAssistant

    from .token_store import TokenStore

_LOGGER = logging.getLogger(__name__)


class AuthState(StrEnum):
    """Lifecycle of the OAuth controller."""

    IDLE = "idle"
    AWAITING_REDIRECT = "awaiting_redirect"
    EXCHANGING_CODE = "exchanging_code"
    AUTHENTICATED = "authenticated"
    REFRESH_SCHEDULED = "refresh_scheduled"
    REFRESHING = "refreshing"


def parse_redirect(redirected: str) -> httpx.QueryParams:
    """Return the query parameters of a redirected URL or bare query string."""
    if "://" in redirected or redirected.startswith("/"):
        return httpx.URL(redirected).params
    return httpx.QueryParams(redirected.lstrip("?"))


class NetatmoOAuth:
    """Drive the authorization-code exchange and keep the access token fresh.

    Authorization is a two-phase operation: ``begin_authorization`` issues a
    nonce and the URL the user must visit, ``async_complete_authorization``
    validates the redirect and exchanges the code. Issued tokens are kept in
    the token store, persisted through ``save_config`` and refreshed when
    they expire.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        session: httpx.AsyncClient,
        token_store: TokenStore,
        save_config: Callable[[dict[str, Any]], Awaitable[None]],
    ) -> None:
        """Initialize the controller.

        Args:
            hass: Home Assistant instance.
            session: HTTP client session.
            token_store: Store receiving issued tokens.
            save_config: Coroutine merging a partial dict into persisted config.

        """
        self._hass = hass
        self._session = session
        self._token_store = token_store
        self._save_config = save_config
        self._cancel_refresh: CALLBACK_TYPE | None = None
        self.state = AuthState.IDLE

    @property
    def refresh_scheduled(self) -> bool:
        """Return True if a refresh timer is pending."""
        return self._cancel_refresh is not None

    def begin_authorization(
        self, scopes: Sequence[str], redirect_uri: str
    ) -> PendingAuthorization:
        """Start an authorization attempt.

        Args:
            scopes: Requested OAuth scopes.
            redirect_uri: URI the provider redirects the user to.

        Returns:
            PendingAuthorization holding the nonce and the authorize URL.

        """
        nonce = secrets.token_hex(16)
        url = httpx.URL(
            OAUTH_AUTHORIZE_URL,
            params={
                "client_id": self._token_store.client_id,
                "redirect_uri": redirect_uri,
                "scope": " ".join(scopes),
                "state": nonce,
            },
        )
        self.state = AuthState.AWAITING_REDIRECT
        _LOGGER.debug("Authorization started, awaiting redirect to %s", redirect_uri)
        return PendingAuthorization(
            nonce=nonce,
            redirect_uri=redirect_uri,
            scopes=tuple(scopes),
            url=str(url),
        )

    async def async_complete_authorization(
        self, pending: PendingAuthorization, redirected: str
    ) -> CompletedAuthorization:
        """Validate the redirect and exchange its code for tokens.

        Args:
            pending: The attempt returned by begin_authorization.
            redirected: Redirected URL or its query string.

        Returns:
            CompletedAuthorization with the issued tokens.

        Raises:
            AuthFlowError: If the redirect is not valid or the exchange fails.

        """
        try:
            params = parse_redirect(redirected)
            state = params.get("state")
            if state is None or state != pending.nonce:
                error_msg = (
                    "Authorization flow failed. Possible error: "
                    f"{params.get('error')}"
                )
                raise AuthFlowError(error_msg)

            code = params.get("code")
            if not code:
                error_msg = "Authorization flow could not retrieve the code."
                raise AuthFlowError(error_msg)

            self.state = AuthState.EXCHANGING_CODE
            try:
                tokens = await api.async_exchange_code(
                    self._session,
                    self._token_store,
                    code,
                    pending.scopes,
                    pending.redirect_uri,
                )
            except api.NetatmoTokenError as err:
                error_msg = f"Authorization flow failed while retrieving token: {err}"
                raise AuthFlowError(error_msg) from err
            except httpx.RequestError as err:
                error_msg = f"Connection error while retrieving token: {err}"
                raise AuthFlowError(error_msg) from err
        except AuthFlowError:
            self.state = AuthState.IDLE
            raise

        await self._async_store_tokens(tokens)
        _LOGGER.info("Authorization with Netatmo completed")
        return CompletedAuthorization(tokens=tokens)

    async def async_refresh(self) -> None:
        """Refresh the access token using the stored refresh token.

        Failures are logged and leave the store unauthenticated.
        """
        self._async_cancel_refresh_timer()
        self._token_store.invalidate()

        refresh_token = self._token_store.refresh_token
        if not refresh_token:
            _LOGGER.error("Cannot refresh token: no refresh token available")
            self.state = AuthState.IDLE
            return

        self.state = AuthState.REFRESHING
        try:
            tokens = await api.async_refresh_tokens(
                self._session, self._token_store, refresh_token
            )
        except api.NetatmoTokenError as err:
            _LOGGER.error("Failed to refresh token: %s", err)
            self.state = AuthState.IDLE
            return
        except httpx.RequestError as err:
            _LOGGER.error("Connection error while refreshing token: %s", err)
            self.state = AuthState.IDLE
            return

        await self._async_store_tokens(tokens)
        _LOGGER.debug("Access token refreshed")

    def schedule_refresh(self) -> None:
        """Schedule a refresh for when the access token expires.

        An already expired or missing token is refreshed right away.
        """
        self._async_cancel_refresh_timer()
        expires_at = self._token_store.expires_at

        if (
            self._token_store.needs_auth
            or expires_at is None
            or expires_at <= datetime.now(UTC)
        ):
            _LOGGER.debug("Access token expired, refreshing now")
            self._hass.async_create_task(self.async_refresh())
            return

        self._cancel_refresh = async_track_point_in_utc_time(
            self._hass, self._async_handle_refresh_timer, expires_at
        )
        self.state = AuthState.REFRESH_SCHEDULED
        _LOGGER.debug("Token refresh scheduled at %s", expires_at.isoformat())

    async def _async_handle_refresh_timer(self, _now: datetime) -> None:
        self._cancel_refresh = None
        await self.async_refresh()

    def async_shutdown(self) -> None:
        """Cancel any pending refresh."""
        self._async_cancel_refresh_timer()

    def _async_cancel_refresh_timer(self) -> None:
        if self._cancel_refresh is not None:
            self._cancel_refresh()
            self._cancel_refresh = None

    async def _async_store_tokens(self, tokens: OAuthTokens) -> None:
        self._token_store.set_tokens(
            tokens.access_token, tokens.expires_at, tokens.refresh_token
        )
        self.state = AuthState.AUTHENTICATED
        await self._save_config(
            {
                CONF_EXPIRES_AT: int(tokens.expires_at.timestamp()),
                CONF_REFRESH_TOKEN: tokens.refresh_token,
            }
        )
        self.schedule_refresh()
