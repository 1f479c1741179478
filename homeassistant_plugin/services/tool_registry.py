"""Canonical definitions for Home Assistant agent tools."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping

from pydantic import ValidationError

from homeassistant_plugin.core.security import (
    ArgumentError,
    parse_json_object,
    require_arguments,
)
from .ha_api import HAClientResult, HomeAssistantAPI
from .ha_models import (
    CalendarOptions,
    HistoryOptions,
    IntentHandleRequest,
    LogbookOptions,
    StateUpdateRequest,
)

logger = logging.getLogger(__name__)

ToolHandler = Callable[[HomeAssistantAPI, Mapping[str, Any]], Awaitable[Any]]


@dataclass(slots=True, frozen=True)
class ToolDefinition:
    name: str
    description: str
    handler: ToolHandler
    properties: dict[str, dict[str, Any]] = field(default_factory=dict)
    required_args: tuple[str, ...] = ()

    @property
    def parameters(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": "object", "properties": self.properties}
        if self.required_args:
            schema["required"] = list(self.required_args)
        return schema


def format_tool_result(data: Any) -> dict[str, Any]:
    """Wrap a payload in the text content block agents expect."""

    return {"content": [{"type": "text", "text": json.dumps(data, indent=2)}]}


def _unwrap(result: HAClientResult, key: str | None = None) -> Any:
    if not result.ok:
        return {"error": result.error}
    return {key: result.data} if key else result.data


def _string(description: str) -> dict[str, Any]:
    return {"type": "string", "description": description}


def _optional_text(args: Mapping[str, Any], key: str) -> str | None:
    value = args.get(key)
    if value is None or value == "":
        return None
    return str(value)


def _describe_validation_error(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )


async def _get_states(api: HomeAssistantAPI, args: Mapping[str, Any]) -> Any:
    return _unwrap(await api.get_states())


async def _get_state(api: HomeAssistantAPI, args: Mapping[str, Any]) -> Any:
    return _unwrap(await api.get_state(str(args["entity_id"])))


async def _call_service(api: HomeAssistantAPI, args: Mapping[str, Any]) -> Any:
    data: dict[str, Any] = {}
    if args.get("entity_id"):
        data["entity_id"] = args["entity_id"]
    extra = parse_json_object(args.get("service_data"), "service_data")
    if extra:
        data.update(extra)
    return _unwrap(await api.call_service(str(args["domain"]), str(args["service"]), data))


async def _get_services(api: HomeAssistantAPI, args: Mapping[str, Any]) -> Any:
    return _unwrap(await api.get_services())


async def _get_history(api: HomeAssistantAPI, args: Mapping[str, Any]) -> Any:
    options = HistoryOptions(
        filter_entity_id=str(args["entity_id"]),
        start_time=_optional_text(args, "start_time"),
        end_time=_optional_text(args, "end_time"),
        minimal_response=str(args.get("minimal_response", "")).lower() == "true",
    )
    return _unwrap(await api.get_history(options))


async def _fire_event(api: HomeAssistantAPI, args: Mapping[str, Any]) -> Any:
    data = parse_json_object(args.get("event_data"), "event_data")
    return _unwrap(await api.fire_event(str(args["event_type"]), data))


async def _render_template(api: HomeAssistantAPI, args: Mapping[str, Any]) -> Any:
    return _unwrap(await api.render_template(str(args["template"])), "rendered")


async def _set_state(api: HomeAssistantAPI, args: Mapping[str, Any]) -> Any:
    attributes = parse_json_object(args.get("attributes"), "attributes")
    update = StateUpdateRequest(state=str(args["state"]), attributes=attributes)
    return _unwrap(await api.set_state(str(args["entity_id"]), update))


async def _get_logbook(api: HomeAssistantAPI, args: Mapping[str, Any]) -> Any:
    options = LogbookOptions(
        entity=_optional_text(args, "entity_id"),
        start_time=_optional_text(args, "start_time"),
        end_time=_optional_text(args, "end_time"),
    )
    return _unwrap(await api.get_logbook(options))


async def _get_calendars(api: HomeAssistantAPI, args: Mapping[str, Any]) -> Any:
    entity_id, start, end = args.get("entity_id"), args.get("start"), args.get("end")
    if entity_id and start and end:
        options = CalendarOptions(start=str(start), end=str(end))
        return _unwrap(await api.get_calendar_events(str(entity_id), options))
    return _unwrap(await api.get_calendars())


async def _get_error_log(api: HomeAssistantAPI, args: Mapping[str, Any]) -> Any:
    return _unwrap(await api.get_error_log(), "log")


async def _check_config(api: HomeAssistantAPI, args: Mapping[str, Any]) -> Any:
    return _unwrap(await api.check_config())


async def _handle_intent(api: HomeAssistantAPI, args: Mapping[str, Any]) -> Any:
    data = parse_json_object(args.get("data"), "data")
    return _unwrap(await api.handle_intent(IntentHandleRequest(name=str(args["name"]), data=data)))


async def _get_events(api: HomeAssistantAPI, args: Mapping[str, Any]) -> Any:
    return _unwrap(await api.get_events())


async def _get_config(api: HomeAssistantAPI, args: Mapping[str, Any]) -> Any:
    return _unwrap(await api.get_server_config())


async def _get_components(api: HomeAssistantAPI, args: Mapping[str, Any]) -> Any:
    return _unwrap(await api.get_components())


TOOL_DEFINITIONS: dict[str, ToolDefinition] = {
    definition.name: definition
    for definition in (
        ToolDefinition(
            name="ha_get_states",
            description=(
                "Get all entity states from Home Assistant. Returns every entity's current "
                "state, attributes, and last_changed timestamp. Use ha_get_state for a "
                "single entity."
            ),
            handler=_get_states,
        ),
        ToolDefinition(
            name="ha_get_state",
            description=(
                "Get the current state of a specific Home Assistant entity. "
                "Returns state, attributes, last_changed, and last_updated."
            ),
            handler=_get_state,
            properties={
                "entity_id": _string(
                    'The entity ID (e.g. "light.living_room", "sensor.temperature")'
                ),
            },
            required_args=("entity_id",),
        ),
        ToolDefinition(
            name="ha_call_service",
            description=(
                "Call a Home Assistant service. Use this to control devices: turn on/off "
                "lights, lock/unlock doors, set thermostats, trigger automations, etc."
            ),
            handler=_call_service,
            properties={
                "domain": _string(
                    'The service domain (e.g. "light", "switch", "climate", "automation")'
                ),
                "service": _string('The service to call (e.g. "turn_on", "turn_off", "toggle")'),
                "entity_id": _string('Target entity ID (e.g. "light.living_room")'),
                "service_data": _string(
                    "Additional service data as JSON string "
                    '(e.g. \'{"brightness": 128, "color_name": "blue"}\')'
                ),
            },
            required_args=("domain", "service"),
        ),
        ToolDefinition(
            name="ha_get_services",
            description=(
                "List all available Home Assistant services grouped by domain. Use this "
                "to discover what services/actions are available for a domain."
            ),
            handler=_get_services,
        ),
        ToolDefinition(
            name="ha_get_history",
            description=(
                "Get state history for one or more entities over a time period. Useful "
                "for tracking changes, graphing trends, and analyzing device behavior."
            ),
            handler=_get_history,
            properties={
                "entity_id": _string(
                    "Comma-separated entity IDs to get history for "
                    '(e.g. "sensor.temperature,sensor.humidity")'
                ),
                "start_time": _string("Start timestamp in ISO 8601 format (default: 1 day ago)"),
                "end_time": _string("End timestamp in ISO 8601 format (default: now)"),
                "minimal_response": _string(
                    'Set to "true" for compact response (only state + last_changed)'
                ),
            },
            required_args=("entity_id",),
        ),
        ToolDefinition(
            name="ha_fire_event",
            description=(
                "Fire a custom event in Home Assistant. "
                "Events can trigger automations and notify other integrations."
            ),
            handler=_fire_event,
            properties={
                "event_type": _string('The event type to fire (e.g. "custom_event")'),
                "event_data": _string("Event data as JSON string"),
            },
            required_args=("event_type",),
        ),
        ToolDefinition(
            name="ha_render_template",
            description=(
                "Render a Home Assistant Jinja2 template. Use this to evaluate expressions "
                "like \"{{ states('sensor.temperature') }}\" or build dynamic content "
                "using HA state data."
            ),
            handler=_render_template,
            properties={
                "template": _string(
                    "Jinja2 template string to render "
                    "(e.g. \"{{ states('sensor.temperature') }}\")"
                ),
            },
            required_args=("template",),
        ),
        ToolDefinition(
            name="ha_set_state",
            description=(
                "Create or update a Home Assistant entity state. This updates the state "
                "representation in HA, not the physical device. Use ha_call_service to "
                "control actual devices."
            ),
            handler=_set_state,
            properties={
                "entity_id": _string('The entity ID to update (e.g. "sensor.custom_value")'),
                "state": _string("The new state value"),
                "attributes": _string(
                    "JSON string of attributes to set "
                    '(e.g. \'{"unit_of_measurement": "°C", "friendly_name": "My Sensor"}\')'
                ),
            },
            required_args=("entity_id", "state"),
        ),
        ToolDefinition(
            name="ha_get_logbook",
            description=(
                "Get logbook entries from Home Assistant. "
                "Shows a timeline of events and state changes."
            ),
            handler=_get_logbook,
            properties={
                "entity_id": _string("Filter to a single entity ID"),
                "start_time": _string("Start timestamp in ISO 8601 format (default: 1 day ago)"),
                "end_time": _string("End timestamp in ISO 8601 format"),
            },
        ),
        ToolDefinition(
            name="ha_get_calendars",
            description=(
                "Get calendar entities and their events from Home Assistant. Without "
                "parameters, lists all calendars. With entity_id and date range, returns events."
            ),
            handler=_get_calendars,
            properties={
                "entity_id": _string('Calendar entity ID (e.g. "calendar.personal")'),
                "start": _string("Start timestamp in ISO 8601 (required when entity_id is set)"),
                "end": _string("End timestamp in ISO 8601 (required when entity_id is set)"),
            },
        ),
        ToolDefinition(
            name="ha_get_error_log",
            description="Get the current Home Assistant error log.",
            handler=_get_error_log,
        ),
        ToolDefinition(
            name="ha_check_config",
            description="Check if the Home Assistant configuration.yaml is valid.",
            handler=_check_config,
        ),
        ToolDefinition(
            name="ha_handle_intent",
            description=(
                "Handle a Home Assistant intent. "
                'Intents are named actions like "SetTimer", "TurnOnLight", etc.'
            ),
            handler=_handle_intent,
            properties={
                "name": _string('Intent name (e.g. "SetTimer", "TurnOnLight")'),
                "data": _string('Intent data as JSON string (e.g. \'{"seconds": "30"}\')'),
            },
            required_args=("name",),
        ),
        ToolDefinition(
            name="ha_get_events",
            description=(
                "List all available event types and their listener counts in Home Assistant."
            ),
            handler=_get_events,
        ),
        ToolDefinition(
            name="ha_get_config",
            description=(
                "Get the Home Assistant server configuration including location, timezone, "
                "version, components, and unit system."
            ),
            handler=_get_config,
        ),
        ToolDefinition(
            name="ha_get_components",
            description="List all currently loaded Home Assistant components/integrations.",
            handler=_get_components,
        ),
    )
}


def get_tool_definition(name: str) -> ToolDefinition | None:
    return TOOL_DEFINITIONS.get(name)


def function_definitions() -> list[dict[str, Any]]:
    """Return the tools as OpenAI-style function definitions."""

    return [
        {
            "name": definition.name,
            "description": definition.description,
            "parameters": definition.parameters,
        }
        for definition in TOOL_DEFINITIONS.values()
    ]


def describe_tools_for_prompt() -> str:
    """Return Markdown description of tools for LLM conditioning."""

    lines: list[str] = []
    for definition in TOOL_DEFINITIONS.values():
        args = ", ".join(definition.properties) or "none"
        lines.append(f"- {definition.name}: {definition.description} (args: {args})")
    return "\n".join(lines)


async def execute_tool(
    name: str,
    args: Mapping[str, Any] | None,
    api: HomeAssistantAPI,
) -> dict[str, Any]:
    """Run a tool and wrap its payload as a text result.

    Raises ``KeyError`` for unknown tools. Argument problems are reported in
    the result without contacting Home Assistant.
    """

    definition = TOOL_DEFINITIONS[name]
    args = args or {}
    logger.debug("Executing tool %s", name)
    try:
        require_arguments(args, definition.required_args)
        payload = await definition.handler(api, args)
    except ValidationError as exc:
        logger.info("Rejected %s call: %s", name, exc)
        payload = {"error": f"Invalid arguments for {name}: {_describe_validation_error(exc)}"}
    except ArgumentError as exc:
        logger.info("Rejected %s call: %s", name, exc)
        payload = {"error": str(exc)}
    return format_tool_result(payload)
