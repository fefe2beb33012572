from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from homeassistant.const import CONF_CLIENT_ID, CONF_CLIENT_SECRET, Platform

from .api import create_session_client
from .auth import NetatmoOAuth
from .callback import CallbackHub, NetatmoCallbackView
from .const import CONF_EXPIRES_AT, CONF_REFRESH_TOKEN, DOMAIN, SERVICE_PAIR
from .models import Credentials
from .pairing import async_start_pairing
from .registry import NetatmoDeviceRegistry
from .sync import DeviceSynchronizer
from .token_store import TokenStore

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant, ServiceCall
    from homeassistant.helpers.device_registry import DeviceEntry

_LOGGER = logging.getLogger(__name__)

PLATFORMS = [Platform.BINARY_SENSOR, Platform.SENSOR]

DATA_CALLBACK_HUB = f"{DOMAIN}_callback_hub"


def _async_get_callback_hub(hass: HomeAssistant) -> CallbackHub:
    """Return the shared callback hub, registering its view on first use."""
    if DATA_CALLBACK_HUB not in hass.data:
        hub = CallbackHub()
        hass.http.register_view(NetatmoCallbackView(hub))
        hass.data[DATA_CALLBACK_HUB] = hub
    return hass.data[DATA_CALLBACK_HUB]


def _credentials_from_entry(entry: ConfigEntry) -> Credentials:
    expires_at = entry.data.get(CONF_EXPIRES_AT)
    return Credentials(
        client_id=entry.data[CONF_CLIENT_ID],
        client_secret=entry.data[CONF_CLIENT_SECRET],
        refresh_token=entry.data.get(CONF_REFRESH_TOKEN),
        expires_at=(
            datetime.fromtimestamp(expires_at, UTC) if expires_at is not None else None
        ),
    )


def _async_start_pairing_task(
    hass: HomeAssistant, entry: ConfigEntry, entry_data: dict[str, Any]
) -> None:
    task = entry_data.get("pairing_task")
    if task is not None and not task.done():
        _LOGGER.debug("Pairing already in progress for entry %s", entry.entry_id)
        return

    entry_data["pairing_task"] = entry.async_create_background_task(
        hass,
        async_start_pairing(
            hass,
            entry.entry_id,
            entry_data["token_store"],
            entry_data["oauth"],
            entry_data["callback_hub"],
            entry_data["synchronizer"],
        ),
        f"{DOMAIN} pairing {entry.entry_id}",
    )


async def _async_handle_pair(call: ServiceCall) -> None:
    """Re-run authorization where needed and rediscover devices."""
    hass = call.hass
    for entry_id, entry_data in hass.data.get(DOMAIN, {}).items():
        entry = hass.config_entries.async_get_entry(entry_id)
        if entry is not None:
            _async_start_pairing_task(hass, entry, entry_data)


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    _LOGGER.info("Setting up Netatmo Weather integration for entry %s", entry.entry_id)

    if CONF_CLIENT_ID not in entry.data or CONF_CLIENT_SECRET not in entry.data:
        _LOGGER.error(
            "Missing client credentials in configuration for entry %s",
            entry.entry_id,
        )
        return False

    hub = _async_get_callback_hub(hass)
    session = create_session_client(hass)
    token_store = TokenStore(_credentials_from_entry(entry))

    async def save_config(partial: dict[str, Any]) -> None:
        hass.config_entries.async_update_entry(entry, data={**entry.data, **partial})

    oauth = NetatmoOAuth(hass, session, token_store, save_config)
    registry = NetatmoDeviceRegistry(hass, entry.entry_id)
    synchronizer = DeviceSynchronizer(hass, session, token_store, registry)

    entry_data: dict[str, Any] = {
        "session": session,
        "token_store": token_store,
        "oauth": oauth,
        "callback_hub": hub,
        "registry": registry,
        "synchronizer": synchronizer,
        "pairing_task": None,
    }
    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = entry_data

    if token_store.refresh_token:
        _LOGGER.debug("Refreshing access token for entry %s", entry.entry_id)
        await oauth.async_refresh()

    try:
        await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    except Exception as err:
        _LOGGER.error("Failed to setup platforms for entry %s: %s", entry.entry_id, err)
        oauth.async_shutdown()
        hass.data[DOMAIN].pop(entry.entry_id)
        return False

    if not hass.services.has_service(DOMAIN, SERVICE_PAIR):
        hass.services.async_register(DOMAIN, SERVICE_PAIR, _async_handle_pair)

    _async_start_pairing_task(hass, entry, entry_data)
    _LOGGER.info(
        "Successfully setup Netatmo Weather integration for entry %s", entry.entry_id
    )
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    _LOGGER.info("Unloading Netatmo Weather integration for entry %s", entry.entry_id)

    entry_data = hass.data.get(DOMAIN, {}).get(entry.entry_id)
    if entry_data is not None:
        entry_data["synchronizer"].scheduler.async_shutdown()
        entry_data["oauth"].async_shutdown()
        task = entry_data.get("pairing_task")
        if task is not None and not task.done():
            task.cancel()

    try:
        unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    except Exception as err:
        _LOGGER.error(
            "Error unloading Netatmo Weather integration for entry %s: %s",
            entry.entry_id,
            err,
        )
        return False

    if unload_ok:
        if entry_data is not None:
            entry_data["registry"].clear()
            hass.data[DOMAIN].pop(entry.entry_id)
            _LOGGER.debug("Cleaned up data for entry %s", entry.entry_id)
        if not hass.data.get(DOMAIN):
            hass.services.async_remove(DOMAIN, SERVICE_PAIR)
    else:
        _LOGGER.warning("Failed to unload some platforms for entry %s", entry.entry_id)

    return unload_ok


async def async_remove_config_entry_device(
    hass: HomeAssistant, entry: ConfigEntry, device_entry: DeviceEntry
) -> bool:
    """Stop tracking a device the user removed."""
    entry_data = hass.data.get(DOMAIN, {}).get(entry.entry_id)
    if entry_data is None:
        return True

    registry: NetatmoDeviceRegistry = entry_data["registry"]
    scheduler = entry_data["synchronizer"].scheduler
    for domain, device_id in device_entry.identifiers:
        if domain != DOMAIN:
            continue
        device = registry.get_device(device_id)
        if device is not None:
            scheduler.stop_polling(device)
            registry.remove_device(device_id)
    return True
