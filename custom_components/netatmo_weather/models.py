"""Data models for Netatmo Weather integration."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


class DeviceType(StrEnum):
    """Netatmo device type codes."""

    STATION = "NAMain"
    OUTDOOR = "NAModule1"
    WIND = "NAModule2"
    RAIN = "NAModule3"
    INDOOR = "NAModule4"
    HEALTH_COACH = "NHC"


class DataType(StrEnum):
    """Reading types declared by a device in its data_type list."""

    TEMPERATURE = "Temperature"
    HUMIDITY = "Humidity"
    CO2 = "CO2"
    PRESSURE = "Pressure"
    NOISE = "Noise"
    WIND = "Wind"
    RAIN = "Rain"
    HEALTH_INDEX = "health_idx"


TOP_LEVEL_TYPES = frozenset({DeviceType.STATION, DeviceType.HEALTH_COACH})
MODULE_TYPES = frozenset(
    {DeviceType.OUTDOOR, DeviceType.WIND, DeviceType.RAIN, DeviceType.INDOOR}
)


@dataclass
class Credentials:
    """OAuth client credentials and the tokens obtained with them."""

    client_id: str
    client_secret: str
    access_token: str | None = None
    expires_at: datetime | None = None
    refresh_token: str | None = None


@dataclass(frozen=True)
class OAuthTokens:
    """Token set returned by the Netatmo token endpoint."""

    access_token: str
    refresh_token: str
    expires_at: datetime


@dataclass(frozen=True)
class PendingAuthorization:
    """An authorization attempt waiting for the user to be redirected back."""

    nonce: str
    redirect_uri: str
    scopes: tuple[str, ...]
    url: str


@dataclass(frozen=True)
class CompletedAuthorization:
    """An authorization attempt that yielded tokens."""

    tokens: OAuthTokens


@dataclass(frozen=True)
class FailedAuthorization:
    """An authorization attempt that was rejected."""

    reason: str


@dataclass(frozen=True, kw_only=True)
class RemoteDevice:
    """A device as reported by the Netatmo API.

    Attributes:
        id: MAC-style device identifier (``_id`` on the wire).
        type: Device type code.
        name: Module or station name.
        reachable: Whether the cloud could reach the device recently.
        data_type: Reading types the device declares.
        dashboard_data: Latest raw readings keyed by reading name.

    """

    id: str
    type: DeviceType
    name: str
    reachable: bool
    data_type: tuple[str, ...] = ()
    dashboard_data: dict[str, Any] = field(default_factory=dict)

    @property
    def is_module(self) -> bool:
        """Return True for station modules."""
        return self.type in MODULE_TYPES


@dataclass(frozen=True, kw_only=True)
class RemoteTopLevelDevice(RemoteDevice):
    """A station or health coach, reporting over wifi."""

    home_name: str | None = None
    wifi_status: int | None = None
    co2_calibrating: bool | None = None


@dataclass(frozen=True, kw_only=True)
class RemoteModule(RemoteDevice):
    """A station module, reporting over RF through its owning station.

    The module kind is tagged by ``type``; ``parent_id`` references the
    owning station by id.
    """

    parent_id: str
    battery_percent: int | None = None
    rf_status: int | None = None

    def __post_init__(self) -> None:
        """Reject modules that are not attached to a station."""
        if self.type not in MODULE_TYPES:
            error_msg = f"Device type {self.type} is not a station module"
            raise ValueError(error_msg)
        if not self.parent_id:
            error_msg = f"Module {self.id} has no owning station"
            raise ValueError(error_msg)


@dataclass(frozen=True, kw_only=True)
class RemoteStation(RemoteTopLevelDevice):
    """A weather station and the modules it owns."""

    modules: tuple[RemoteModule, ...] = ()


@dataclass(frozen=True, kw_only=True)
class RemoteHealthCoach(RemoteTopLevelDevice):
    """A healthy home coach."""
