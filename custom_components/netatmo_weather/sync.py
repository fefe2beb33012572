"""Synchronize the Netatmo device graph into the local registry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from . import api
from .device import NetatmoDevice, OrphanModuleError
from .models import DeviceType, RemoteStation
from .scheduler import PollingScheduler

if TYPE_CHECKING:
    from collections.abc import Iterable

    from homeassistant.core import HomeAssistant

    from .models import RemoteDevice
    from .registry import NetatmoDeviceRegistry
    from .token_store import TokenStore

_LOGGER = logging.getLogger(__name__)


class DeviceSynchronizer:
    """Create and update local devices from fetched remote devices."""

    def __init__(
        self,
        hass: HomeAssistant,
        session: httpx.AsyncClient,
        token_store: TokenStore,
        registry: NetatmoDeviceRegistry,
        scheduler: PollingScheduler | None = None,
    ) -> None:
        """Initialize the synchronizer and its polling scheduler."""
        self._session = session
        self._token_store = token_store
        self._registry = registry
        self.scheduler = scheduler or PollingScheduler(
            hass, registry, self.async_update_device
        )

    def reconcile(self, remote_devices: Iterable[RemoteDevice]) -> list[NetatmoDevice]:
        """Reconcile top-level remote devices and their modules.

        Args:
            remote_devices: Stations and health coaches.

        Returns:
            The devices created during this pass.

        """
        created: list[NetatmoDevice] = []
        for remote in remote_devices:
            device = self._reconcile_device(remote, None, created)
            if device is None or not isinstance(remote, RemoteStation):
                continue
            for module in remote.modules:
                parent = self._registry.get_device(module.parent_id)
                self._reconcile_device(module, parent, created)
        return created

    def _reconcile_device(
        self,
        remote: RemoteDevice,
        parent: NetatmoDevice | None,
        created: list[NetatmoDevice],
    ) -> NetatmoDevice | None:
        device = self._registry.get_device(remote.id)
        if device is not None:
            self.apply_update(device, remote)
            self.scheduler.start_polling(device)
            return device

        try:
            device = NetatmoDevice(remote, parent)
        except OrphanModuleError as err:
            _LOGGER.warning("Rejected module %s: %s", remote.id, err)
            return None

        self._registry.add_device(device)
        self.scheduler.start_polling(device)
        created.append(device)
        return device

    def apply_update(self, device: NetatmoDevice, remote: RemoteDevice) -> None:
        """Update a local device and notify about what changed."""
        was_connected = device.connected
        changed = device.update_properties(remote)
        if device.connected != was_connected:
            self._registry.notify_connected(device)
        for prop in changed:
            self._registry.notify_property_changed(device, prop)

    async def async_discover(self) -> list[NetatmoDevice]:
        """Fetch every station and health coach and reconcile them."""
        created: list[NetatmoDevice] = []
        fetchers = (
            ("stations", api.async_get_stations),
            ("health coaches", api.async_get_health_coaches),
        )
        for label, fetch in fetchers:
            try:
                remote_devices = await fetch(self._session, self._token_store)
            except api.NetatmoUnauthorizedError:
                _LOGGER.error("Cannot fetch %s: not authorized", label)
                continue
            except httpx.RequestError as err:
                _LOGGER.error("Connection error while fetching %s: %s", label, err)
                continue
            created.extend(self.reconcile(remote_devices))

        _LOGGER.info("Discovery created %d Netatmo devices", len(created))
        return created

    async def async_update_device(self, device: NetatmoDevice) -> None:
        """Fetch and apply fresh data for one self-updating device."""
        try:
            if device.type == DeviceType.HEALTH_COACH:
                remotes = await api.async_get_health_coaches(
                    self._session, self._token_store, device.id
                )
            else:
                remotes = await api.async_get_stations(
                    self._session, self._token_store, device.id
                )
        except api.NetatmoUnauthorizedError:
            _LOGGER.warning("Skipping update of %s: not authorized", device.id)
            return
        except httpx.RequestError as err:
            _LOGGER.warning("Connection error while updating %s: %s", device.id, err)
            return

        remote = next((item for item in remotes if item.id == device.id), None)
        if remote is None:
            _LOGGER.debug("No data received for %s this cycle", device.id)
            return

        self.apply_update(device, remote)
        if isinstance(remote, RemoteStation):
            for module in remote.modules:
                module_device = self._registry.get_device(module.id)
                if module_device is not None:
                    self.apply_update(module_device, module)
