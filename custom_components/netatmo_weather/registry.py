"""Registry of local Netatmo devices for one config entry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from homeassistant.helpers.dispatcher import async_dispatcher_send

from .const import (
    SIGNAL_CONNECTION_CHANGED,
    SIGNAL_DEVICE_ADDED,
    SIGNAL_PROPERTY_CHANGED,
)

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from .device import NetatmoDevice, NetatmoProperty

_LOGGER = logging.getLogger(__name__)


class NetatmoDeviceRegistry:
    """Hold local devices and publish their changes to entity platforms."""

    def __init__(self, hass: HomeAssistant, entry_id: str) -> None:
        """Initialize an empty registry."""
        self._hass = hass
        self.devices: dict[str, NetatmoDevice] = {}
        self.signal_device_added = SIGNAL_DEVICE_ADDED.format(entry_id)

    def get_device(self, device_id: str | None) -> NetatmoDevice | None:
        """Return the device with the given id, if known."""
        if device_id is None:
            return None
        return self.devices.get(device_id)

    def add_device(self, device: NetatmoDevice) -> None:
        """Register a device and announce it."""
        self.devices[device.id] = device
        _LOGGER.info("Added Netatmo device %s (%s)", device.name, device.id)
        async_dispatcher_send(self._hass, self.signal_device_added, device)

    def remove_device(self, device_id: str) -> NetatmoDevice | None:
        """Forget a device."""
        device = self.devices.pop(device_id, None)
        if device is not None:
            _LOGGER.info("Removed Netatmo device %s (%s)", device.name, device_id)
        return device

    def notify_property_changed(
        self, device: NetatmoDevice, prop: NetatmoProperty
    ) -> None:
        """Announce a changed property value."""
        _LOGGER.debug("%s %s changed to %s", device.id, prop.name, prop.value)
        async_dispatcher_send(
            self._hass, SIGNAL_PROPERTY_CHANGED.format(device.id), prop
        )

    def notify_connected(self, device: NetatmoDevice) -> None:
        """Announce a connectivity change."""
        _LOGGER.debug("%s connected: %s", device.id, device.connected)
        async_dispatcher_send(
            self._hass, SIGNAL_CONNECTION_CHANGED.format(device.id), device.connected
        )

    def clear(self) -> None:
        """Forget every device."""
        self.devices.clear()
