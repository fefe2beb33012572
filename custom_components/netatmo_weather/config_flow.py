"""
Configuration flow for Netatmo Weather integration.

This module collects the OAuth client credentials of a Netatmo developer
app. Authorization itself runs once the entry is set up.
"""

import logging
from typing import Any

import voluptuous as vol
from homeassistant.config_entries import ConfigFlow, ConfigFlowResult
from homeassistant.const import CONF_CLIENT_ID, CONF_CLIENT_SECRET

from .const import DOMAIN

_LOGGER = logging.getLogger(__name__)

ERROR_INVALID_CREDENTIALS = "invalid_credentials"


class NetatmoWeatherConfigFlow(ConfigFlow, domain=DOMAIN):
    """Handle configuration flow for Netatmo Weather integration."""

    VERSION = 1

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """
        Handle the initial step of the config flow.

        Args:
            user_input: User input data containing client id and secret.

        Returns:
            ConfigFlowResult indicating the next step or errors.

        """
        errors: dict[str, str] = {}

        if user_input is not None:
            client_id = user_input[CONF_CLIENT_ID].strip()
            client_secret = user_input[CONF_CLIENT_SECRET].strip()

            if not client_id or not client_secret:
                _LOGGER.warning(
                    "Rejected empty client credentials (%s)", ERROR_INVALID_CREDENTIALS
                )
                errors["base"] = ERROR_INVALID_CREDENTIALS
            else:
                await self.async_set_unique_id(client_id)
                self._abort_if_unique_id_configured()

                return self.async_create_entry(
                    title=f"Netatmo Weather ({client_id})",
                    data={
                        CONF_CLIENT_ID: client_id,
                        CONF_CLIENT_SECRET: client_secret,
                    },
                )

        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_CLIENT_ID): str,
                    vol.Required(CONF_CLIENT_SECRET): str,
                }
            ),
            errors=errors,
        )
