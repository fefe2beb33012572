"""Diagnostics support for Netatmo Weather."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from homeassistant.components.diagnostics import async_redact_data
from homeassistant.const import CONF_CLIENT_SECRET

from .const import CONF_REFRESH_TOKEN, DOMAIN

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

TO_REDACT = {CONF_CLIENT_SECRET, CONF_REFRESH_TOKEN}


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    entry_data = hass.data[DOMAIN][entry.entry_id]
    token_store = entry_data["token_store"]
    registry = entry_data["registry"]
    scheduler = entry_data["synchronizer"].scheduler
    expires_at = token_store.expires_at

    return {
        "entry": async_redact_data(dict(entry.data), TO_REDACT),
        "auth": {
            "needs_auth": token_store.needs_auth,
            "expires_at": expires_at.isoformat() if expires_at else None,
            "state": entry_data["oauth"].state,
        },
        "devices": [
            {
                "id": device.id,
                "type": device.type,
                "description": device.description,
                "parent_id": device.parent_id,
                "connected": device.connected,
                "polling": scheduler.is_polling(device.id),
                "polling_for": sorted(device.polling_for),
                "capabilities": device.capabilities,
                "properties": [asdict(prop) for prop in device.properties.values()],
            }
            for device in registry.devices.values()
        ],
    }
