"""Reference-counted polling timers for self-updating Netatmo devices."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from homeassistant.helpers.event import async_track_time_interval

from .const import DOMAIN, POLL_INTERVAL

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from datetime import datetime

    from homeassistant.core import CALLBACK_TYPE, HomeAssistant

    from .device import NetatmoDevice
    from .registry import NetatmoDeviceRegistry

_LOGGER = logging.getLogger(__name__)


class PollingScheduler:
    """Run one polling timer per self-updating device.

    Modules request polling through their station, so a station and its
    modules share one timer. The timer stops when the last requester
    releases it.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        registry: NetatmoDeviceRegistry,
        update_device: Callable[[NetatmoDevice], Awaitable[None]],
        interval: timedelta = timedelta(seconds=POLL_INTERVAL),
    ) -> None:
        """Initialize the scheduler.

        Args:
            hass: Home Assistant instance.
            registry: Registry used to resolve parents and polled devices.
            update_device: Coroutine running one fetch-and-update cycle.
            interval: Time between two polls.

        """
        self._hass = hass
        self._registry = registry
        self._update_device = update_device
        self._interval = interval
        self._timers: dict[str, CALLBACK_TYPE] = {}
        self._in_flight: set[str] = set()

    def is_polling(self, device_id: str) -> bool:
        """Return True if a timer runs for the device."""
        return device_id in self._timers

    def _resolve_updater(self, device: NetatmoDevice) -> NetatmoDevice | None:
        if device.can_update:
            return device
        parent = self._registry.get_device(device.parent_id)
        if parent is None:
            _LOGGER.warning("Cannot resolve parent of %s for polling", device.id)
        return parent

    def start_polling(
        self, device: NetatmoDevice, requester_id: str | None = None
    ) -> None:
        """Request polling of the device on behalf of requester_id."""
        if requester_id is None:
            requester_id = device.id

        updater = self._resolve_updater(device)
        if updater is None:
            return
        if updater is not device:
            self.start_polling(updater, requester_id)
            return

        device.polling_for.add(requester_id)
        if device.id in self._timers:
            return

        self._timers[device.id] = async_track_time_interval(
            self._hass,
            self._make_poll_action(device.id),
            self._interval,
            name=f"{DOMAIN} poll {device.id}",
        )
        _LOGGER.debug("Started polling %s", device.id)

    def stop_polling(
        self, device: NetatmoDevice, requester_id: str | None = None
    ) -> None:
        """Release the polling request made by requester_id."""
        if requester_id is None:
            requester_id = device.id

        updater = self._resolve_updater(device)
        if updater is None:
            return
        if updater is not device:
            self.stop_polling(updater, requester_id)
            return

        device.polling_for.discard(requester_id)
        if device.polling_for:
            return

        cancel = self._timers.pop(device.id, None)
        if cancel is not None:
            cancel()
            _LOGGER.debug("Stopped polling %s", device.id)

    def _make_poll_action(
        self, device_id: str
    ) -> Callable[[datetime], Awaitable[None]]:
        async def _async_poll(_now: datetime) -> None:
            await self.async_poll(device_id)

        return _async_poll

    async def async_poll(self, device_id: str) -> None:
        """Run one update cycle unless the previous one is still running."""
        device = self._registry.get_device(device_id)
        if device is None:
            return
        if device_id in self._in_flight:
            _LOGGER.debug("Skipping poll of %s, previous cycle in flight", device_id)
            return

        self._in_flight.add(device_id)
        try:
            await self._update_device(device)
        finally:
            self._in_flight.discard(device_id)

    def async_shutdown(self) -> None:
        """Cancel every timer."""
        for cancel in self._timers.values():
            cancel()
        self._timers.clear()
        for device in self._registry.devices.values():
            device.polling_for.clear()
