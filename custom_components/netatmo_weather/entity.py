"""Base entity for Netatmo Weather devices."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.core import callback
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.entity import Entity

from .const import (
    DASHBOARD_URL,
    DOMAIN,
    MANUFACTURER,
    SIGNAL_CONNECTION_CHANGED,
    SIGNAL_PROPERTY_CHANGED,
    STATION_TYPE,
)

if TYPE_CHECKING:
    from .device import NetatmoDevice, NetatmoProperty


class NetatmoPropertyEntity(Entity):
    """Entity mirroring one property of a local Netatmo device."""

    _attr_has_entity_name = True
    _attr_should_poll = False

    def __init__(self, device: NetatmoDevice, prop: NetatmoProperty) -> None:
        """Initialize the entity."""
        self._device = device
        self._property = prop
        self._attr_unique_id = f"{device.id}-{prop.name}"
        self._attr_name = prop.title
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, device.id)},
            manufacturer=MANUFACTURER,
            model=STATION_TYPE[device.type],
            name=device.name,
            configuration_url=DASHBOARD_URL,
        )
        if device.parent_id is not None:
            self._attr_device_info["via_device"] = (DOMAIN, device.parent_id)

    @property
    def available(self) -> bool:
        """Return True while the device is reachable."""
        return self._device.connected

    @property
    def extra_state_attributes(self) -> dict[str, Any] | None:
        """Return the declared bounds of the reading."""
        attributes = {
            key: value
            for key, value in (
                ("minimum", self._property.minimum),
                ("maximum", self._property.maximum),
            )
            if value is not None
        }
        return attributes or None

    async def async_added_to_hass(self) -> None:
        """Subscribe to property and connectivity changes."""
        self.async_on_remove(
            async_dispatcher_connect(
                self.hass,
                SIGNAL_PROPERTY_CHANGED.format(self._device.id),
                self._async_property_changed,
            )
        )
        self.async_on_remove(
            async_dispatcher_connect(
                self.hass,
                SIGNAL_CONNECTION_CHANGED.format(self._device.id),
                self._async_connection_changed,
            )
        )

    @callback
    def _async_property_changed(self, prop: NetatmoProperty) -> None:
        if prop.name == self._property.name:
            self.async_write_ha_state()

    @callback
    def _async_connection_changed(self, _connected: bool) -> None:
        self.async_write_ha_state()
