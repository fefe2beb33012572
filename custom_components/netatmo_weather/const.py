"""Constants for Netatmo Weather integration.

This module contains all the constants used throughout the integration,
including API endpoints, configuration keys, and the lookup tables that
turn raw dashboard readings into Home Assistant sensor semantics.
"""

from homeassistant.components.sensor import SensorDeviceClass
from homeassistant.const import (
    CONCENTRATION_PARTS_PER_MILLION,
    DEGREE,
    PERCENTAGE,
    UnitOfPrecipitationDepth,
    UnitOfPressure,
    UnitOfSoundPressure,
    UnitOfSpeed,
    UnitOfTemperature,
)

from .models import DataType, DeviceType

DOMAIN = "netatmo_weather"

BASE_URL = "https://api.netatmo.com"
OAUTH_AUTHORIZE_URL = f"{BASE_URL}/oauth2/authorize"
OAUTH_TOKEN_URL = f"{BASE_URL}/oauth2/token"
STATIONS_DATA_URL = f"{BASE_URL}/api/getstationsdata"
HOME_COACHS_DATA_URL = f"{BASE_URL}/api/gethomecoachsdata"
DASHBOARD_URL = "https://my.netatmo.com/app/station"

CALLBACK_PATH = f"/api/{DOMAIN}/callback"
CALLBACK_VIEW_NAME = f"api:{DOMAIN}:callback"

SCOPE_READ_STATION = "read_station"
SCOPE_READ_HOMECOACH = "read_homecoach"
SCOPES = [SCOPE_READ_HOMECOACH, SCOPE_READ_STATION]

# Measurements are taken about every 5 minutes unless requested on demand.
POLL_INTERVAL = 5 * 60

CONF_REFRESH_TOKEN = "refresh_token"
CONF_EXPIRES_AT = "expires_at"

SERVICE_PAIR = "pair"

SIGNAL_DEVICE_ADDED = f"{DOMAIN}_device_added_{{}}"
SIGNAL_PROPERTY_CHANGED = f"{DOMAIN}_property_changed_{{}}"
SIGNAL_CONNECTION_CHANGED = f"{DOMAIN}_connection_changed_{{}}"

PAIRING_NOTIFICATION_ID = f"{DOMAIN}_pairing_{{}}"
PAIRING_MESSAGE = "Please authorize the integration to access your Netatmo account."
PAIRING_FAILED_MESSAGE = "Netatmo authorization failed: {}"

MANUFACTURER = "Netatmo"

PROPERTY_BATTERY = "battery"
PROPERTY_SIGNAL = "signal"
PROPERTY_CALIBRATING = "calibrating"

WIND_READINGS = ["WindStrength", "WindAngle", "GustStrength", "GustAngle"]

WIFI_SIGNAL_BASELINE = 86
RF_SIGNAL_BASELINE = 90
SIGNAL_RANGE = 30

UNITS = {
    DataType.TEMPERATURE: UnitOfTemperature.CELSIUS,
    DataType.HUMIDITY: PERCENTAGE,
    DataType.PRESSURE: UnitOfPressure.HPA,
    DataType.NOISE: UnitOfSoundPressure.DECIBEL,
    DataType.CO2: CONCENTRATION_PARTS_PER_MILLION,
    DataType.RAIN: UnitOfPrecipitationDepth.MILLIMETERS,
    "WindStrength": UnitOfSpeed.KILOMETERS_PER_HOUR,
    "GustStrength": UnitOfSpeed.KILOMETERS_PER_HOUR,
    "WindAngle": DEGREE,
    "GustAngle": DEGREE,
}

# Sensor ranges from the weather station and home coach datasheets.
MIN = {
    DataType.TEMPERATURE: -40,
    DataType.PRESSURE: 260,
    DataType.NOISE: 35,
    DataType.CO2: 0,
    DataType.RAIN: 0,
    "WindAngle": -360,
    "GustAngle": -360,
}

MAX = {
    DataType.TEMPERATURE: 65,
    DataType.PRESSURE: 1260,
    DataType.NOISE: 120,
    DataType.CO2: 5000,
    "WindAngle": 360,
    "GustAngle": 360,
}

BATTERY_CAPABILITY = SensorDeviceClass.BATTERY

CAPABILITIES = {
    DataType.TEMPERATURE: SensorDeviceClass.TEMPERATURE,
    DataType.HUMIDITY: SensorDeviceClass.HUMIDITY,
    DataType.PRESSURE: SensorDeviceClass.ATMOSPHERIC_PRESSURE,
    DataType.CO2: SensorDeviceClass.CO2,
}

DEVICE_CAPABILITIES = {
    DataType.TEMPERATURE: "TemperatureSensor",
    DataType.HUMIDITY: "HumiditySensor",
    DataType.PRESSURE: "BarometricPressureSensor",
    DataType.CO2: "AirQualitySensor",
}

INTEGERS = [DataType.HUMIDITY, DataType.NOISE, DataType.CO2]

NICE_LABEL = {
    DataType.CO2: "CO₂",
    "WindStrength": "Wind strength",
    "GustStrength": "Gust strength",
    "WindAngle": "Wind angle",
    "GustAngle": "Gust angle",
    DataType.HEALTH_INDEX: "Health index",
}

STATION_TYPE = {
    DeviceType.STATION: "Netatmo Weather Station",
    DeviceType.OUTDOOR: "Netatmo Outdoor Module",
    DeviceType.WIND: "Netatmo Wind Gauge",
    DeviceType.RAIN: "Netatmo Rain Gauge",
    DeviceType.INDOOR: "Netatmo Indoor Module",
    DeviceType.HEALTH_COACH: "Netatmo Health Coach",
}

HEALTH_IDX_MAP = ["Healthy", "Fine", "Fair", "Poor", "Unhealthy"]
