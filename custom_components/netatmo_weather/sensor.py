"""Sensor entities for Netatmo weather stations, modules and health coaches."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorStateClass,
)
from homeassistant.const import EntityCategory
from homeassistant.core import callback
from homeassistant.helpers.dispatcher import async_dispatcher_connect

from .const import DOMAIN, PROPERTY_SIGNAL
from .entity import NetatmoPropertyEntity

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .device import NetatmoDevice, NetatmoProperty

SENSOR_PROPERTY_TYPES = ("integer", "number", "string")


def _sensor_entities(device: NetatmoDevice) -> list[NetatmoSensorEntity]:
    return [
        NetatmoSensorEntity(device, prop)
        for prop in device.properties.values()
        if prop.type in SENSOR_PROPERTY_TYPES
    ]


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up sensors for known devices and for devices added later."""
    registry = hass.data[DOMAIN][entry.entry_id]["registry"]

    @callback
    def _async_add_device(device: NetatmoDevice) -> None:
        async_add_entities(_sensor_entities(device))

    for device in registry.devices.values():
        _async_add_device(device)

    entry.async_on_unload(
        async_dispatcher_connect(hass, registry.signal_device_added, _async_add_device)
    )


class NetatmoSensorEntity(NetatmoPropertyEntity, SensorEntity):
    """Sensor for a numeric or enumerated Netatmo reading."""

    def __init__(self, device: NetatmoDevice, prop: NetatmoProperty) -> None:
        """Initialize the sensor from the property description."""
        super().__init__(device, prop)
        if prop.enum is not None:
            self._attr_device_class = SensorDeviceClass.ENUM
            self._attr_options = list(prop.enum)
            return

        self._attr_state_class = SensorStateClass.MEASUREMENT
        self._attr_native_unit_of_measurement = prop.unit
        if prop.capability is not None:
            self._attr_device_class = SensorDeviceClass(prop.capability)
        if prop.type == "integer":
            self._attr_suggested_display_precision = 0
        if prop.name == PROPERTY_SIGNAL:
            self._attr_entity_category = EntityCategory.DIAGNOSTIC
            self._attr_suggested_display_precision = 0

    @property
    def native_value(self) -> str | float | None:
        """Return the cached property value."""
        value = self._property.value
        if self._property.enum is not None:
            return value or None
        return value
