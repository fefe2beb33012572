"""Tests for the Netatmo Weather Config Flow."""

from unittest.mock import AsyncMock, Mock

import pytest
from conftest import CLIENT_ID, CLIENT_SECRET
from homeassistant.const import CONF_CLIENT_ID, CONF_CLIENT_SECRET
from homeassistant.data_entry_flow import FlowResultType

from custom_components.netatmo_weather.config_flow import (
    ERROR_INVALID_CREDENTIALS,
    NetatmoWeatherConfigFlow,
)


@pytest.fixture
def flow(mock_hass: Mock) -> NetatmoWeatherConfigFlow:
    """Create a NetatmoWeatherConfigFlow instance for testing."""
    flow_instance = NetatmoWeatherConfigFlow()
    flow_instance.hass = mock_hass
    flow_instance.async_set_unique_id = AsyncMock()
    flow_instance._abort_if_unique_id_configured = Mock()
    flow_instance.async_create_entry = Mock(
        return_value={"type": FlowResultType.CREATE_ENTRY},
    )
    flow_instance.async_show_form = Mock(return_value={"type": FlowResultType.FORM})
    return flow_instance


class TestNetatmoWeatherConfigFlowAsyncStepUser:
    """Tests for async_step_user method."""

    @pytest.mark.asyncio
    async def test_async_step_user_shows_form_when_no_input(
        self,
        flow: NetatmoWeatherConfigFlow,
    ) -> None:
        """Test that async_step_user shows form when no input provided."""
        result = await flow.async_step_user()
        flow.async_show_form.assert_called_once()
        assert flow.async_show_form.call_args.kwargs["errors"] == {}
        assert result["type"] == FlowResultType.FORM

    @pytest.mark.asyncio
    async def test_async_step_user_creates_entry(
        self,
        flow: NetatmoWeatherConfigFlow,
    ) -> None:
        """Test that valid credentials create an entry keyed by client id."""
        user_input = {
            CONF_CLIENT_ID: f"  {CLIENT_ID} ",
            CONF_CLIENT_SECRET: CLIENT_SECRET,
        }

        result = await flow.async_step_user(user_input)

        flow.async_set_unique_id.assert_awaited_once_with(CLIENT_ID)
        flow._abort_if_unique_id_configured.assert_called_once()
        flow.async_create_entry.assert_called_once_with(
            title=f"Netatmo Weather ({CLIENT_ID})",
            data={CONF_CLIENT_ID: CLIENT_ID, CONF_CLIENT_SECRET: CLIENT_SECRET},
        )
        assert result["type"] == FlowResultType.CREATE_ENTRY

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "user_input",
        [
            {CONF_CLIENT_ID: "", CONF_CLIENT_SECRET: CLIENT_SECRET},
            {CONF_CLIENT_ID: CLIENT_ID, CONF_CLIENT_SECRET: "   "},
        ],
    )
    async def test_async_step_user_rejects_empty_credentials(
        self,
        flow: NetatmoWeatherConfigFlow,
        user_input: dict[str, str],
    ) -> None:
        """Test that blank credentials show the form with an error."""
        result = await flow.async_step_user(user_input)

        flow.async_create_entry.assert_not_called()
        assert flow.async_show_form.call_args.kwargs["errors"] == {
            "base": ERROR_INVALID_CREDENTIALS
        }
        assert result["type"] == FlowResultType.FORM

    @pytest.mark.asyncio
    async def test_async_step_user_aborts_when_already_configured(
        self,
        flow: NetatmoWeatherConfigFlow,
    ) -> None:
        """Test that a configured client id aborts the flow."""
        flow._abort_if_unique_id_configured.side_effect = RuntimeError("configured")

        with pytest.raises(RuntimeError):
            await flow.async_step_user(
                {CONF_CLIENT_ID: CLIENT_ID, CONF_CLIENT_SECRET: CLIENT_SECRET}
            )

        flow.async_create_entry.assert_not_called()
