"""Tests for the pairing flow."""

import asyncio
from collections.abc import Iterator
from datetime import UTC, datetime
from unittest.mock import AsyncMock, Mock, patch

import pytest
from homeassistant.helpers.network import NoURLAvailableError

from custom_components.netatmo_weather import pairing
from custom_components.netatmo_weather.api import AuthFlowError
from custom_components.netatmo_weather.callback import CallbackHub
from custom_components.netatmo_weather.const import CALLBACK_PATH, SCOPES
from custom_components.netatmo_weather.models import (
    CompletedAuthorization,
    FailedAuthorization,
    OAuthTokens,
    PendingAuthorization,
)
from custom_components.netatmo_weather.token_store import TokenStore

BASE_URL = "https://ha.example"
PENDING = PendingAuthorization(
    nonce="nonce-1",
    redirect_uri=f"{BASE_URL}{CALLBACK_PATH}",
    scopes=tuple(SCOPES),
    url="https://api.netatmo.com/oauth2/authorize?state=nonce-1",
)
COMPLETED = CompletedAuthorization(
    tokens=OAuthTokens(
        access_token="a", refresh_token="r", expires_at=datetime.now(UTC)
    )
)


@pytest.fixture
def mock_notification() -> Iterator[Mock]:
    """Patch the persistent notification helpers."""
    with patch.object(pairing, "persistent_notification") as notification:
        yield notification


@pytest.fixture
def mock_get_url() -> Iterator[Mock]:
    """Patch the Home Assistant URL lookup."""
    with patch.object(pairing, "get_url", return_value=BASE_URL) as get_url:
        yield get_url


@pytest.fixture
def oauth() -> Mock:
    """Fixture providing a mock OAuth controller."""
    oauth = Mock()
    oauth.begin_authorization = Mock(return_value=PENDING)
    oauth.async_complete_authorization = AsyncMock(return_value=COMPLETED)
    return oauth


async def deliver_when_waiting(hub: CallbackHub, query: str) -> None:
    """Deliver a redirect once the pairing flow waits for it."""
    while hub.pending == 0:
        await asyncio.sleep(0)
    hub.deliver(query)


class TestRedirectUri:
    """Tests for redirect_uri function."""

    def test_appends_callback_path(self, mock_hass: Mock, mock_get_url: Mock) -> None:
        """Test that the callback path is served from the public URL."""
        assert pairing.redirect_uri(mock_hass) == f"{BASE_URL}{CALLBACK_PATH}"
        mock_get_url.assert_called_once_with(
            mock_hass, allow_internal=True, prefer_external=True
        )


class TestAsyncAuthorize:
    """Tests for async_authorize."""

    @pytest.mark.asyncio
    async def test_successful_authorization(
        self,
        mock_hass: Mock,
        mock_get_url: Mock,
        mock_notification: Mock,
        oauth: Mock,
    ) -> None:
        """Test that the redirect is handed to the OAuth controller."""
        hub = CallbackHub()
        deliverer = asyncio.create_task(
            deliver_when_waiting(hub, "state=nonce-1&code=c")
        )

        result = await pairing.async_authorize(mock_hass, "entry-id", oauth, hub)
        await deliverer

        assert result is COMPLETED
        oauth.begin_authorization.assert_called_once_with(
            SCOPES, f"{BASE_URL}{CALLBACK_PATH}"
        )
        oauth.async_complete_authorization.assert_awaited_once_with(
            PENDING, "state=nonce-1&code=c"
        )
        prompt = mock_notification.async_create.call_args.args[1]
        assert PENDING.url in prompt
        mock_notification.async_dismiss.assert_called_once()
        assert hub.pending == 0

    @pytest.mark.asyncio
    async def test_rejected_authorization(
        self,
        mock_hass: Mock,
        mock_get_url: Mock,
        mock_notification: Mock,
        oauth: Mock,
    ) -> None:
        """Test that a rejected redirect is reported to the user."""
        oauth.async_complete_authorization.side_effect = AuthFlowError("denied")
        hub = CallbackHub()
        deliverer = asyncio.create_task(
            deliver_when_waiting(hub, "error=access_denied")
        )

        result = await pairing.async_authorize(mock_hass, "entry-id", oauth, hub)
        await deliverer

        assert result == FailedAuthorization(reason="denied")
        assert "denied" in mock_notification.async_create.call_args.args[1]
        mock_notification.async_dismiss.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_url_available(
        self, mock_hass: Mock, mock_notification: Mock, oauth: Mock
    ) -> None:
        """Test that pairing fails without a reachable URL."""
        with patch.object(pairing, "get_url", side_effect=NoURLAvailableError):
            result = await pairing.async_authorize(
                mock_hass, "entry-id", oauth, CallbackHub()
            )

        assert isinstance(result, FailedAuthorization)
        oauth.begin_authorization.assert_not_called()
        mock_notification.async_create.assert_called_once()

    @pytest.mark.asyncio
    async def test_cancelled_wait_removes_listener(
        self,
        mock_hass: Mock,
        mock_get_url: Mock,
        mock_notification: Mock,
        oauth: Mock,
    ) -> None:
        """Test that cancelling pairing unregisters the listener."""
        hub = CallbackHub()
        task = asyncio.create_task(
            pairing.async_authorize(mock_hass, "entry-id", oauth, hub)
        )
        while hub.pending == 0:
            await asyncio.sleep(0)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert hub.pending == 0


class TestAsyncStartPairing:
    """Tests for async_start_pairing."""

    @pytest.mark.asyncio
    async def test_authenticated_store_skips_authorization(
        self, mock_hass: Mock, token_store: TokenStore
    ) -> None:
        """Test that a valid token goes straight to discovery."""
        synchronizer = Mock(async_discover=AsyncMock())
        with patch.object(pairing, "async_authorize", AsyncMock()) as authorize:
            await pairing.async_start_pairing(
                mock_hass, "entry-id", token_store, Mock(), CallbackHub(), synchronizer
            )

        authorize.assert_not_awaited()
        synchronizer.async_discover.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_authorizes_then_discovers(
        self, mock_hass: Mock, unauthenticated_token_store: TokenStore
    ) -> None:
        """Test that a missing token triggers authorization first."""
        synchronizer = Mock(async_discover=AsyncMock())
        with patch.object(
            pairing, "async_authorize", AsyncMock(return_value=COMPLETED)
        ) as authorize:
            await pairing.async_start_pairing(
                mock_hass,
                "entry-id",
                unauthenticated_token_store,
                Mock(),
                CallbackHub(),
                synchronizer,
            )

        authorize.assert_awaited_once()
        synchronizer.async_discover.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_authorization_skips_discovery(
        self, mock_hass: Mock, unauthenticated_token_store: TokenStore
    ) -> None:
        """Test that discovery does not run after a failed authorization."""
        synchronizer = Mock(async_discover=AsyncMock())
        with patch.object(
            pairing,
            "async_authorize",
            AsyncMock(return_value=FailedAuthorization(reason="denied")),
        ):
            await pairing.async_start_pairing(
                mock_hass,
                "entry-id",
                unauthenticated_token_store,
                Mock(),
                CallbackHub(),
                synchronizer,
            )

        synchronizer.async_discover.assert_not_awaited()
