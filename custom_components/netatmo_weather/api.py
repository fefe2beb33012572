"""API client for the Netatmo weather cloud.

This module provides functions to interact with the Netatmo API,
including the OAuth2 token endpoint and the station and home coach
data endpoints.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import httpx
from homeassistant.helpers.httpx_client import create_async_httpx_client
from httpx_retries import Retry, RetryTransport

from .const import HOME_COACHS_DATA_URL, OAUTH_TOKEN_URL, STATIONS_DATA_URL
from .models import (
    DeviceType,
    OAuthTokens,
    RemoteHealthCoach,
    RemoteModule,
    RemoteStation,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from homeassistant.core import HomeAssistant

    from .token_store import TokenStore

_LOGGER = logging.getLogger(__name__)

# HTTP status codes
HTTP_OK = 200
HTTP_FORBIDDEN = 403


class NetatmoApiError(Exception):
    """Base exception for Netatmo API errors."""


class NetatmoUnauthorizedError(NetatmoApiError):
    """Exception raised when a data request is made without an access token."""


class NetatmoTokenError(NetatmoApiError):
    """Exception raised when the token endpoint rejects a grant."""


class AuthFlowError(NetatmoApiError):
    """Exception raised when an authorization attempt is rejected."""


def create_headers(access_token: str | None = None) -> dict[str, str]:
    """Create HTTP headers for Netatmo API requests.

    Args:
        access_token: Optional bearer token to include in headers.

    Returns:
        Dictionary containing HTTP headers for API requests.

    """
    headers = {"accept": "application/json"}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    return headers


def is_success(status: int) -> bool:
    """Check if HTTP status code indicates a usable response.

    Args:
        status: HTTP status code to check.

    Returns:
        True if status code is 200, False otherwise.

    """
    return status == HTTP_OK


def is_auth_expired(status: int) -> bool:
    """Check if HTTP status code indicates a rejected access token.

    Args:
        status: HTTP status code to check.

    Returns:
        True if status code is 403, False otherwise.

    """
    return status == HTTP_FORBIDDEN


def extract_tokens(data: dict[str, Any], now: datetime | None = None) -> OAuthTokens:
    """Extract the token set from a token endpoint response.

    Args:
        data: Token endpoint response data dictionary.
        now: Reference time for the expiry, defaults to the current time.

    Returns:
        OAuthTokens with an absolute expiry.

    Raises:
        NetatmoTokenError: If the response lacks a usable token set.

    """
    if now is None:
        now = datetime.now(UTC)
    try:
        access_token = str(data["access_token"])
        refresh_token = str(data["refresh_token"])
        expires_in = int(data["expires_in"])
    except (KeyError, TypeError, ValueError) as err:
        error_msg = f"Malformed token response: {err}"
        raise NetatmoTokenError(error_msg) from err

    return OAuthTokens(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_at=now + timedelta(seconds=expires_in),
    )


def extract_devices(data: Any) -> list[dict[str, Any]]:
    """Extract the raw device list from a data endpoint response.

    Args:
        data: Decoded JSON response.

    Returns:
        List of raw device dictionaries, empty when the body is not usable.

    """
    if not isinstance(data, dict):
        return []
    body = data.get("body")
    if not isinstance(body, dict):
        return []
    devices = body.get("devices")
    if not isinstance(devices, list):
        return []
    return [device for device in devices if isinstance(device, dict)]


def _device_name(raw: dict[str, Any]) -> str:
    for key in ("module_name", "station_name", "name"):
        if raw.get(key):
            return str(raw[key])
    return str(raw["_id"])


def _common_fields(raw: dict[str, Any]) -> dict[str, Any]:
    dashboard_data = raw.get("dashboard_data")
    return {
        "id": str(raw["_id"]),
        "type": DeviceType(raw["type"]),
        "name": _device_name(raw),
        "reachable": bool(raw.get("reachable", True)),
        "data_type": tuple(raw.get("data_type") or ()),
        "dashboard_data": dashboard_data if isinstance(dashboard_data, dict) else {},
    }


def _top_level_fields(raw: dict[str, Any]) -> dict[str, Any]:
    co2_calibrating = raw.get("co2_calibrating")
    return {
        **_common_fields(raw),
        "home_name": raw.get("home_name"),
        "wifi_status": raw.get("wifi_status"),
        "co2_calibrating": None if co2_calibrating is None else bool(co2_calibrating),
    }


def parse_module(raw: dict[str, Any], parent_id: str) -> RemoteModule:
    """Build a RemoteModule owned by the given station.

    Raises:
        KeyError: If the entry has no id or type.
        ValueError: If the entry is not a module or has no owner.

    """
    return RemoteModule(
        **_common_fields(raw),
        parent_id=parent_id,
        battery_percent=raw.get("battery_percent"),
        rf_status=raw.get("rf_status"),
    )


def parse_station(raw: dict[str, Any]) -> RemoteStation:
    """Build a RemoteStation with every module that could be parsed.

    Raises:
        KeyError: If the entry has no id or type.
        ValueError: If the entry is not a weather station.

    """
    fields = _top_level_fields(raw)
    if fields["type"] != DeviceType.STATION:
        error_msg = f"Device {fields['id']} is not a weather station"
        raise ValueError(error_msg)

    modules = []
    for module in raw.get("modules") or []:
        try:
            modules.append(parse_module(module, fields["id"]))
        except (KeyError, TypeError, ValueError) as err:
            _LOGGER.warning(
                "Skipping malformed module of station %s: %s", fields["id"], err
            )
    return RemoteStation(**fields, modules=tuple(modules))


def parse_health_coach(raw: dict[str, Any]) -> RemoteHealthCoach:
    """Build a RemoteHealthCoach.

    Raises:
        KeyError: If the entry has no id or type.
        ValueError: If the entry is not a health coach.

    """
    fields = _top_level_fields(raw)
    if fields["type"] != DeviceType.HEALTH_COACH:
        error_msg = f"Device {fields['id']} is not a health coach"
        raise ValueError(error_msg)
    return RemoteHealthCoach(**fields)


def extract_stations(data: Any) -> list[RemoteStation]:
    """Extract weather stations from a getstationsdata response."""
    stations = []
    for raw in extract_devices(data):
        try:
            stations.append(parse_station(raw))
        except (KeyError, TypeError, ValueError) as err:
            _LOGGER.warning("Skipping malformed station entry: %s", err)
    return stations


def extract_health_coaches(data: Any) -> list[RemoteHealthCoach]:
    """Extract health coaches from a gethomecoachsdata response."""
    coaches = []
    for raw in extract_devices(data):
        try:
            coaches.append(parse_health_coach(raw))
        except (KeyError, TypeError, ValueError) as err:
            _LOGGER.warning("Skipping malformed health coach entry: %s", err)
    return coaches


def create_session_client(hass: HomeAssistant) -> httpx.AsyncClient:
    """Create HTTP client with retry logic for Netatmo API.

    Args:
        hass: Home Assistant instance.

    Returns:
        Configured httpx AsyncClient with retry transport.

    """
    base_client = create_async_httpx_client(hass, timeout=10.0)
    retry = Retry(total=3, backoff_factor=0.5)
    base_client._transport = RetryTransport(  # noqa: SLF001
        transport=base_client._transport,  # noqa: SLF001
        retry=retry,
    )
    return base_client


async def async_request_tokens(
    session: httpx.AsyncClient,
    form: dict[str, str],
) -> OAuthTokens:
    """Post a grant to the token endpoint.

    Args:
        session: HTTP client session.
        form: Form fields of the grant.

    Returns:
        The issued token set.

    Raises:
        NetatmoTokenError: If the grant is rejected or the response is malformed.
        httpx.RequestError: If the request could not be sent.

    """
    _LOGGER.debug("Requesting tokens with grant %s", form.get("grant_type"))
    response = await session.post(OAUTH_TOKEN_URL, data=form, headers=create_headers())
    if not is_success(response.status_code):
        error_msg = f"Token request failed: {response.status_code}"
        raise NetatmoTokenError(error_msg)
    try:
        data = response.json()
    except ValueError as err:
        error_msg = f"Token response is not JSON: {err}"
        raise NetatmoTokenError(error_msg) from err
    if not isinstance(data, dict):
        error_msg = "Token response is not an object"
        raise NetatmoTokenError(error_msg)
    return extract_tokens(data)


async def async_exchange_code(
    session: httpx.AsyncClient,
    token_store: TokenStore,
    code: str,
    scopes: Sequence[str],
    redirect_uri: str,
) -> OAuthTokens:
    """Exchange an authorization code for tokens.

    Raises:
        NetatmoTokenError: If the exchange is rejected.
        httpx.RequestError: If the request could not be sent.

    """
    return await async_request_tokens(
        session,
        {
            "grant_type": "authorization_code",
            "code": code,
            "scope": " ".join(scopes),
            "client_id": token_store.client_id,
            "client_secret": token_store.client_secret,
            "redirect_uri": redirect_uri,
        },
    )


async def async_refresh_tokens(
    session: httpx.AsyncClient,
    token_store: TokenStore,
    refresh_token: str,
) -> OAuthTokens:
    """Trade a refresh token for a new token set.

    Raises:
        NetatmoTokenError: If the refresh is rejected.
        httpx.RequestError: If the request could not be sent.

    """
    return await async_request_tokens(
        session,
        {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": token_store.client_id,
            "client_secret": token_store.client_secret,
        },
    )


async def _async_fetch_devices(
    session: httpx.AsyncClient,
    token_store: TokenStore,
    url: str,
    device_id: str | None,
) -> Any:
    token = token_store.current_token()
    if token is None:
        error_msg = "Unauthorized"
        raise NetatmoUnauthorizedError(error_msg)

    form = {"device_id": device_id} if device_id else {}
    response = await session.post(url, data=form, headers=create_headers(token))

    if is_auth_expired(response.status_code):
        _LOGGER.warning("Access token rejected by %s, authorization required", url)
        token_store.invalidate()
        return None
    if not is_success(response.status_code):
        _LOGGER.debug("Request to %s failed: %s", url, response.status_code)
        return None

    try:
        return response.json()
    except ValueError:
        _LOGGER.warning("Response from %s is not valid JSON", url)
        return None


async def async_get_stations(
    session: httpx.AsyncClient,
    token_store: TokenStore,
    device_id: str | None = None,
) -> list[RemoteStation]:
    """Fetch weather stations and their modules.

    Args:
        session: HTTP client session.
        token_store: Store holding the access token.
        device_id: Optional station id to restrict the result to.

    Returns:
        List of RemoteStation objects, empty when the request failed.

    Raises:
        NetatmoUnauthorizedError: If no access token is held.
        httpx.RequestError: If the request could not be sent.

    """
    data = await _async_fetch_devices(
        session, token_store, STATIONS_DATA_URL, device_id
    )
    stations = extract_stations(data)
    _LOGGER.debug("Retrieved %d stations from Netatmo API", len(stations))
    return stations


async def async_get_health_coaches(
    session: httpx.AsyncClient,
    token_store: TokenStore,
    device_id: str | None = None,
) -> list[RemoteHealthCoach]:
    """Fetch healthy home coaches.

    Args:
        session: HTTP client session.
        token_store: Store holding the access token.
        device_id: Optional coach id to restrict the result to.

    Returns:
        List of RemoteHealthCoach objects, empty when the request failed.

    Raises:
        NetatmoUnauthorizedError: If no access token is held.
        httpx.RequestError: If the request could not be sent.

    """
    data = await _async_fetch_devices(
        session, token_store, HOME_COACHS_DATA_URL, device_id
    )
    coaches = extract_health_coaches(data)
    _LOGGER.debug("Retrieved %d health coaches from Netatmo API", len(coaches))
    return coaches
