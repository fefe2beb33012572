"""Pairing: authorize with Netatmo through the user, then discover devices."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from homeassistant.components import persistent_notification
from homeassistant.helpers.network import NoURLAvailableError, get_url

from .api import AuthFlowError
from .const import (
    CALLBACK_PATH,
    PAIRING_FAILED_MESSAGE,
    PAIRING_MESSAGE,
    PAIRING_NOTIFICATION_ID,
    SCOPES,
)
from .models import CompletedAuthorization, FailedAuthorization

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from .auth import NetatmoOAuth
    from .callback import CallbackHub
    from .sync import DeviceSynchronizer
    from .token_store import TokenStore

_LOGGER = logging.getLogger(__name__)


def async_prompt_user(
    hass: HomeAssistant, entry_id: str, message: str, url: str | None = None
) -> None:
    """Show a message, and optionally a link, to the user."""
    text = f"{message}\n\n[Authorize]({url})" if url else message
    persistent_notification.async_create(
        hass,
        text,
        title="Netatmo Weather",
        notification_id=PAIRING_NOTIFICATION_ID.format(entry_id),
    )


def redirect_uri(hass: HomeAssistant) -> str:
    """Return the OAuth redirect URI served by the callback view.

    Raises:
        NoURLAvailableError: If Home Assistant has no reachable URL.

    """
    return f"{get_url(hass, allow_internal=True, prefer_external=True)}{CALLBACK_PATH}"


async def async_authorize(
    hass: HomeAssistant,
    entry_id: str,
    oauth: NetatmoOAuth,
    hub: CallbackHub,
) -> CompletedAuthorization | FailedAuthorization:
    """Run one authorization attempt through the user's browser.

    Waits without timeout until the redirect reaches the callback view.
    Failures are reported to the user.
    """
    try:
        uri = redirect_uri(hass)
    except NoURLAvailableError:
        reason = "Home Assistant has no URL the OAuth redirect could reach"
        _LOGGER.error(reason)
        async_prompt_user(hass, entry_id, PAIRING_FAILED_MESSAGE.format(reason))
        return FailedAuthorization(reason=reason)

    pending = oauth.begin_authorization(SCOPES, uri)
    listener = hub.add_listener(pending.nonce)
    async_prompt_user(hass, entry_id, PAIRING_MESSAGE, pending.url)
    try:
        redirected = await listener.wait()
    finally:
        hub.remove_listener(listener)

    try:
        completed = await oauth.async_complete_authorization(pending, redirected)
    except AuthFlowError as err:
        _LOGGER.error("Netatmo authorization failed: %s", err)
        async_prompt_user(hass, entry_id, PAIRING_FAILED_MESSAGE.format(err))
        return FailedAuthorization(reason=str(err))

    persistent_notification.async_dismiss(
        hass, PAIRING_NOTIFICATION_ID.format(entry_id)
    )
    return completed


async def async_start_pairing(
    hass: HomeAssistant,
    entry_id: str,
    token_store: TokenStore,
    oauth: NetatmoOAuth,
    hub: CallbackHub,
    synchronizer: DeviceSynchronizer,
) -> None:
    """Authorize if needed, then discover devices."""
    if token_store.needs_auth:
        result = await async_authorize(hass, entry_id, oauth, hub)
        if isinstance(result, FailedAuthorization):
            return
    await synchronizer.async_discover()
