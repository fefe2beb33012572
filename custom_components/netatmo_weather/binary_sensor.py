"""Binary sensor entities for Netatmo CO2 calibration state."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.components.binary_sensor import BinarySensorEntity
from homeassistant.const import EntityCategory
from homeassistant.core import callback
from homeassistant.helpers.dispatcher import async_dispatcher_connect

from .const import DOMAIN
from .entity import NetatmoPropertyEntity

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .device import NetatmoDevice


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up binary sensors for boolean device properties."""
    registry = hass.data[DOMAIN][entry.entry_id]["registry"]

    @callback
    def _async_add_device(device: NetatmoDevice) -> None:
        async_add_entities(
            NetatmoBinarySensorEntity(device, prop)
            for prop in device.properties.values()
            if prop.type == "boolean"
        )

    for device in registry.devices.values():
        _async_add_device(device)

    entry.async_on_unload(
        async_dispatcher_connect(hass, registry.signal_device_added, _async_add_device)
    )


class NetatmoBinarySensorEntity(NetatmoPropertyEntity, BinarySensorEntity):
    """Binary sensor for a boolean Netatmo property."""

    _attr_entity_category = EntityCategory.DIAGNOSTIC

    @property
    def is_on(self) -> bool | None:
        """Return the cached property value."""
        value = self._property.value
        return None if value is None else bool(value)
