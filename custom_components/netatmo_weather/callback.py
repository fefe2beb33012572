"""Callback channel delivering OAuth redirects to pending authorizations."""

from __future__ import annotations

import asyncio
import logging
from http import HTTPStatus
from typing import TYPE_CHECKING

import httpx
from aiohttp import web
from homeassistant.components.http import HomeAssistantView

from .const import CALLBACK_PATH, CALLBACK_VIEW_NAME

if TYPE_CHECKING:
    from aiohttp.web import Request

_LOGGER = logging.getLogger(__name__)


class CallbackListener:
    """A single pending wait for a redirected query string."""

    def __init__(self, listener_id: str) -> None:
        """Initialize the listener."""
        self.id = listener_id
        self._future: asyncio.Future[str] = asyncio.get_running_loop().create_future()

    @property
    def done(self) -> bool:
        """Return True once a redirect was delivered or the wait cancelled."""
        return self._future.done()

    def deliver(self, query: str) -> None:
        """Resolve the wait with the redirected query string."""
        if not self._future.done():
            self._future.set_result(query)

    def cancel(self) -> None:
        """Abort the wait."""
        self._future.cancel()

    async def wait(self) -> str:
        """Wait until a redirect is delivered."""
        return await self._future


class CallbackHub:
    """Route redirects to pending listeners by listener id."""

    def __init__(self) -> None:
        """Initialize an empty hub."""
        self._listeners: dict[str, CallbackListener] = {}

    @property
    def pending(self) -> int:
        """Return the number of pending listeners."""
        return len(self._listeners)

    def add_listener(self, listener_id: str) -> CallbackListener:
        """Register and return a new listener."""
        listener = CallbackListener(listener_id)
        self._listeners[listener_id] = listener
        return listener

    def remove_listener(self, listener: CallbackListener) -> None:
        """Unregister a listener, cancelling it if still pending."""
        if self._listeners.get(listener.id) is listener:
            del self._listeners[listener.id]
        if not listener.done:
            listener.cancel()

    def deliver(self, query: str) -> bool:
        """Deliver a redirected query string to exactly one listener.

        The listener whose id equals the ``state`` parameter wins; otherwise
        the sole pending listener receives it so it can reject the mismatch.

        Returns:
            True if a listener received the query, False otherwise.

        """
        state = httpx.QueryParams(query).get("state")
        listener = self._listeners.get(state) if state else None
        if listener is None and len(self._listeners) == 1:
            listener = next(iter(self._listeners.values()))
        if listener is None:
            _LOGGER.warning("Received OAuth callback with no matching listener")
            return False

        del self._listeners[listener.id]
        listener.deliver(query)
        return True


class NetatmoCallbackView(HomeAssistantView):
    """Receive the OAuth redirect from the user's browser."""

    url = CALLBACK_PATH
    name = CALLBACK_VIEW_NAME
    requires_auth = False

    def __init__(self, hub: CallbackHub) -> None:
        """Initialize the view."""
        self._hub = hub

    async def get(self, request: Request) -> web.Response:
        """Handle a plain browser redirect."""
        return self._deliver(request.query_string)

    async def post(self, request: Request) -> web.Response:
        """Handle a redirect forwarded as a query string or JSON object."""
        if request.content_type == "application/json":
            try:
                data = await request.json()
            except ValueError:
                return web.Response(status=HTTPStatus.BAD_REQUEST)
            if not isinstance(data, dict):
                return web.Response(status=HTTPStatus.BAD_REQUEST)
            query = str(httpx.QueryParams({k: str(v) for k, v in data.items()}))
        else:
            query = (await request.text()).strip().lstrip("?")
        return self._deliver(query)

    def _deliver(self, query: str) -> web.Response:
        if not self._hub.deliver(query):
            return web.Response(status=HTTPStatus.NOT_FOUND)
        return web.Response(text="Done! You may close this tab now.")
