from homeassistant_plugin.services.ha_models import (
    CalendarEvent,
    ConfigCheckResult,
    EventEntry,
    HAConfiguration,
    HistoryEntry,
    LogbookEntry,
    ServiceCallResponse,
    ServiceDomain,
)


def test_server_configuration_keeps_unknown_fields():
    config = HAConfiguration.model_validate(
        {
            "components": ["light", "sensor"],
            "location_name": "Home",
            "latitude": 52.1,
            "longitude": 5.2,
            "time_zone": "Europe/Amsterdam",
            "unit_system": {"length": "km", "temperature": "°C"},
            "version": "2024.6.0",
            "state": "RUNNING",
        }
    )

    assert config.unit_system.temperature == "°C"
    assert config.model_extra == {"state": "RUNNING"}


def test_calendar_event_date_time_alias():
    event = CalendarEvent.model_validate(
        {
            "summary": "Dentist",
            "start": {"dateTime": "2024-01-01T09:00:00+01:00"},
            "end": {"date": "2024-01-02"},
        }
    )

    assert event.start.date_time == "2024-01-01T09:00:00+01:00"
    assert event.end.date == "2024-01-02"


def test_service_call_response_parses_changed_states():
    response = ServiceCallResponse.model_validate(
        {
            "changed_states": [{"entity_id": "light.kitchen", "state": "on"}],
            "service_response": {"weather.home": {"forecast": []}},
        }
    )

    assert response.changed_states[0].entity_id == "light.kitchen"
    assert "weather.home" in response.service_response


def test_list_payload_models():
    assert EventEntry.model_validate({"event": "state_changed", "listener_count": 3}).listener_count == 3
    assert "turn_on" in ServiceDomain.model_validate(
        {"domain": "light", "services": {"turn_on": {"name": "Turn on"}}}
    ).services
    assert HistoryEntry.model_validate({"state": "on", "last_changed": "t1"}).entity_id is None
    assert LogbookEntry.model_validate(
        {"name": "Kitchen", "when": "t1", "message": "turned on"}
    ).message == "turned on"
    assert ConfigCheckResult.model_validate({"result": "valid", "errors": None}).errors is None
