"""Pytest configuration and fixtures for Netatmo Weather tests."""

from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import Mock, patch

import pytest

from custom_components.netatmo_weather.models import Credentials
from custom_components.netatmo_weather.token_store import TokenStore

CLIENT_ID = "client-id"
CLIENT_SECRET = "client-secret"
ACCESS_TOKEN = "access-token"
REFRESH_TOKEN = "refresh-token"

STATION_ID = "70:ee:50:00:00:01"
OUTDOOR_ID = "02:00:00:00:00:01"
WIND_ID = "06:00:00:00:00:01"
INDOOR_ID = "03:00:00:00:00:01"
COACH_ID = "70:ee:50:00:00:99"


@pytest.fixture
def mock_hass() -> Mock:
    """Create a mock Home Assistant instance."""
    hass = Mock()
    hass.data = {}
    hass.async_create_task = Mock(side_effect=lambda coro: coro.close())
    return hass


@pytest.fixture
def token_store() -> TokenStore:
    """Fixture providing an authenticated token store."""
    store = TokenStore(Credentials(client_id=CLIENT_ID, client_secret=CLIENT_SECRET))
    store.set_tokens(
        ACCESS_TOKEN, datetime.now(UTC) + timedelta(hours=3), REFRESH_TOKEN
    )
    return store


@pytest.fixture
def unauthenticated_token_store() -> TokenStore:
    """Fixture providing a token store holding only client credentials."""
    return TokenStore(Credentials(client_id=CLIENT_ID, client_secret=CLIENT_SECRET))


@pytest.fixture
def mock_dispatcher() -> Iterator[Mock]:
    """Patch the dispatcher used by the device registry."""
    with patch(
        "custom_components.netatmo_weather.registry.async_dispatcher_send"
    ) as send:
        yield send


@pytest.fixture
def mock_track_time_interval() -> Iterator[Mock]:
    """Patch the interval tracker used by the polling scheduler.

    Every call returns a distinct cancel callback.
    """
    with patch(
        "custom_components.netatmo_weather.scheduler.async_track_time_interval",
        side_effect=lambda *args, **kwargs: Mock(),
    ) as track:
        yield track


def station_payload(
    *,
    reachable: bool = True,
    temperature: float = 21.5,
    modules: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Build a raw weather station entry."""
    return {
        "_id": STATION_ID,
        "type": "NAMain",
        "station_name": "Home (Indoor)",
        "module_name": "Indoor",
        "home_name": "Home",
        "reachable": reachable,
        "wifi_status": 56,
        "co2_calibrating": False,
        "data_type": ["Temperature", "CO2", "Humidity", "Noise", "Pressure"],
        "dashboard_data": {
            "Temperature": temperature,
            "CO2": 650,
            "Humidity": 48,
            "Noise": 38,
            "Pressure": 1016.2,
        },
        "modules": modules if modules is not None else [],
    }


def outdoor_payload(*, temperature: float = 8.3, battery: int = 80) -> dict[str, Any]:
    """Build a raw outdoor module entry."""
    return {
        "_id": OUTDOOR_ID,
        "type": "NAModule1",
        "module_name": "Outdoor",
        "reachable": True,
        "battery_percent": battery,
        "rf_status": 90,
        "data_type": ["Temperature", "Humidity"],
        "dashboard_data": {"Temperature": temperature, "Humidity": 81},
    }


def wind_payload() -> dict[str, Any]:
    """Build a raw wind gauge entry."""
    return {
        "_id": WIND_ID,
        "type": "NAModule2",
        "module_name": "Wind",
        "reachable": True,
        "battery_percent": 55,
        "rf_status": 75,
        "data_type": ["Wind"],
        "dashboard_data": {
            "WindStrength": 12,
            "WindAngle": 270,
            "GustStrength": 25,
            "GustAngle": 260,
        },
    }


def coach_payload(*, health_idx: Any = 1) -> dict[str, Any]:
    """Build a raw healthy home coach entry."""
    return {
        "_id": COACH_ID,
        "type": "NHC",
        "name": "Bedroom",
        "station_name": "Bedroom",
        "reachable": True,
        "wifi_status": 70,
        "co2_calibrating": True,
        "data_type": [
            "Temperature",
            "CO2",
            "Humidity",
            "Noise",
            "Pressure",
            "health_idx",
        ],
        "dashboard_data": {
            "Temperature": 19.8,
            "CO2": 900,
            "Humidity": 55,
            "Noise": 36,
            "Pressure": 1012.0,
            "health_idx": health_idx,
        },
    }


def devices_response(*devices: dict[str, Any]) -> dict[str, Any]:
    """Wrap raw device entries in a data endpoint response."""
    return {"status": "ok", "body": {"devices": list(devices)}}


@pytest.fixture
def sample_token_response() -> dict[str, Any]:
    """Fixture providing a sample token endpoint response."""
    return {
        "access_token": "new-access-token",
        "refresh_token": "new-refresh-token",
        "expires_in": 10800,
    }
