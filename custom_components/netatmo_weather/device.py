"""Local mirror of Netatmo devices and their properties."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from homeassistant.const import PERCENTAGE

from .const import (
    BATTERY_CAPABILITY,
    CAPABILITIES,
    DEVICE_CAPABILITIES,
    HEALTH_IDX_MAP,
    INTEGERS,
    MAX,
    MIN,
    NICE_LABEL,
    PROPERTY_BATTERY,
    PROPERTY_CALIBRATING,
    PROPERTY_SIGNAL,
    RF_SIGNAL_BASELINE,
    SIGNAL_RANGE,
    STATION_TYPE,
    UNITS,
    WIFI_SIGNAL_BASELINE,
    WIND_READINGS,
)
from .models import DataType, DeviceType, RemoteModule, RemoteTopLevelDevice

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import RemoteDevice

_LOGGER = logging.getLogger(__name__)


class OrphanModuleError(ValueError):
    """Raised when a module is created without its owning station."""


@dataclass
class NetatmoProperty:
    """A read-only reading exposed by a local device."""

    name: str
    title: str
    type: str
    value: Any
    unit: str | None = None
    minimum: float | None = None
    maximum: float | None = None
    capability: str | None = None
    enum: list[str] | None = None


def clamp(value: float, maximum: float = 100, minimum: float = 0) -> float:
    """Clamp value into [minimum, maximum]."""
    return max(min(value, maximum), minimum)


def map_signal_to_percent(
    signal: float, baseline: float, signal_range: float = SIGNAL_RANGE
) -> float:
    """Map a raw signal reading onto a 0-100 percent gauge.

    Netatmo documents good to bad over ``signal_range`` units below
    ``baseline``; readings better than the baseline are clamped.
    """
    return clamp(((baseline - signal) / signal_range) * 90 + 10)


def map_wifi_to_percent(wifi: float) -> float:
    """Map a wifi_status reading to percent."""
    return map_signal_to_percent(wifi, WIFI_SIGNAL_BASELINE)


def map_rf_to_percent(rf: float) -> float:
    """Map an rf_status reading to percent."""
    return map_signal_to_percent(rf, RF_SIGNAL_BASELINE)


def available_properties(data_type: Sequence[str]) -> list[str]:
    """Return the readings a device exposes for its declared data types."""
    if list(data_type) == [DataType.WIND]:
        return list(WIND_READINGS)
    return [item for item in data_type if isinstance(item, str)]


def health_index_label(raw: Any) -> str:
    """Map a raw health index to its label, or an empty string."""
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return ""
    if isinstance(raw, float) and (math.isnan(raw) or not raw.is_integer()):
        return ""
    index = int(raw)
    if 0 <= index < len(HEALTH_IDX_MAP):
        return HEALTH_IDX_MAP[index]
    return ""


def build_property(name: str, dashboard_data: dict[str, Any]) -> NetatmoProperty:
    """Derive a property record for one reading."""
    value = dashboard_data.get(name)
    if name == DataType.HEALTH_INDEX:
        return NetatmoProperty(
            name=name,
            title=NICE_LABEL[name],
            type="string",
            value=health_index_label(value),
            enum=list(HEALTH_IDX_MAP),
        )

    return NetatmoProperty(
        name=name,
        title=NICE_LABEL.get(name, name),
        type="integer" if name in INTEGERS else "number",
        value=value,
        unit=UNITS.get(name),
        minimum=MIN.get(name),
        maximum=MAX.get(name),
        capability=CAPABILITIES.get(name),
    )


def _signal_percent(remote: RemoteDevice) -> float | None:
    if isinstance(remote, RemoteTopLevelDevice) and remote.wifi_status:
        return map_wifi_to_percent(remote.wifi_status)
    if isinstance(remote, RemoteModule) and remote.rf_status:
        return map_rf_to_percent(remote.rf_status)
    return None


class NetatmoDevice:
    """Host-side mirror of a remote Netatmo device.

    Holds the derived properties, the connectivity flag and the set of
    requesters keeping its polling timer alive. Modules reference their
    station by ``parent_id`` only.
    """

    def __init__(
        self, remote: RemoteDevice, parent: NetatmoDevice | None = None
    ) -> None:
        """Build the local device and derive its properties.

        Raises:
            OrphanModuleError: If a module is given no parent.

        """
        if remote.is_module and parent is None:
            error_msg = f"Module {remote.id} without parent station"
            raise OrphanModuleError(error_msg)

        self.id = remote.id
        self.type = remote.type
        self.name = remote.name
        self.parent_id = parent.id if parent is not None else None
        self.connected = remote.reachable
        self.polling_for: set[str] = set()
        self.properties: dict[str, NetatmoProperty] = {}
        self.capabilities: list[str] = []

        if isinstance(remote, RemoteTopLevelDevice):
            location = remote.home_name or remote.name
        else:
            location = parent.name
        self.description = f"{STATION_TYPE[remote.type]} for {location}"

        if self.can_update and self.parent_id is not None:
            _LOGGER.warning("Device %s can both update itself and has a parent", self.id)

        for name in available_properties(remote.data_type):
            prop = build_property(name, remote.dashboard_data)
            self.properties[name] = prop
            capability = DEVICE_CAPABILITIES.get(name)
            if capability is not None and capability not in self.capabilities:
                self.capabilities.append(capability)

        self._build_auxiliary_properties(remote)

    @property
    def updatable_type(self) -> DeviceType:
        """Return the device type that polls for this device family."""
        if self.type == DeviceType.HEALTH_COACH:
            return DeviceType.HEALTH_COACH
        return DeviceType.STATION

    @property
    def can_update(self) -> bool:
        """Return True if this device runs its own polling timer."""
        return self.type == self.updatable_type

    @property
    def is_module(self) -> bool:
        """Return True for station modules."""
        return self.type not in (DeviceType.STATION, DeviceType.HEALTH_COACH)

    def _build_auxiliary_properties(self, remote: RemoteDevice) -> None:
        if isinstance(remote, RemoteModule) and remote.battery_percent:
            self.properties[PROPERTY_BATTERY] = NetatmoProperty(
                name=PROPERTY_BATTERY,
                title="Battery",
                type="number",
                value=remote.battery_percent,
                unit=PERCENTAGE,
                capability=BATTERY_CAPABILITY,
            )

        signal = _signal_percent(remote)
        if signal is not None:
            self.properties[PROPERTY_SIGNAL] = NetatmoProperty(
                name=PROPERTY_SIGNAL,
                title="Signal strength",
                type="number",
                value=signal,
                unit=PERCENTAGE,
            )

        if (
            isinstance(remote, RemoteTopLevelDevice)
            and remote.co2_calibrating is not None
        ):
            self.properties[PROPERTY_CALIBRATING] = NetatmoProperty(
                name=PROPERTY_CALIBRATING,
                title="Calibrating CO₂",
                type="boolean",
                value=remote.co2_calibrating,
            )

    def update_property(self, name: str, value: Any) -> NetatmoProperty | None:
        """Set a cached value, returning the property if it changed."""
        prop = self.properties.get(name)
        if prop is None:
            _LOGGER.debug("Device %s has no property %s", self.id, name)
            return None
        if prop.value == value:
            return None
        prop.value = value
        return prop

    def update_properties(self, remote: RemoteDevice) -> list[NetatmoProperty]:
        """Apply a fresh remote snapshot.

        Unreachable devices keep their last values.

        Returns:
            The properties whose value changed.

        """
        self.connected = remote.reachable
        if not remote.reachable:
            return []

        updates: list[tuple[str, Any]] = []
        for name in available_properties(remote.data_type):
            if name not in remote.dashboard_data:
                continue
            value = remote.dashboard_data[name]
            if name == DataType.HEALTH_INDEX:
                value = health_index_label(value)
            updates.append((name, value))

        if isinstance(remote, RemoteModule) and remote.battery_percent:
            updates.append((PROPERTY_BATTERY, remote.battery_percent))

        signal = _signal_percent(remote)
        if signal is not None:
            updates.append((PROPERTY_SIGNAL, signal))

        if (
            isinstance(remote, RemoteTopLevelDevice)
            and remote.co2_calibrating is not None
        ):
            updates.append((PROPERTY_CALIBRATING, remote.co2_calibrating))

        changed = []
        for name, value in updates:
            prop = self.update_property(name, value)
            if prop is not None:
                changed.append(prop)
        return changed
