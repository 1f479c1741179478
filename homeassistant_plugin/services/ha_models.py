"""Typed payloads for the Home Assistant REST API.

Response bodies are passed through as decoded JSON. Request models shape
bodies and query strings; response models give callers such as the CLI a
typed view of the fixed-shape payloads.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class EntityState(BaseModel):
    """Entity state object returned by ``/api/states``."""

    model_config = ConfigDict(extra="allow")

    entity_id: str
    state: str
    attributes: dict[str, Any] = Field(default_factory=dict)
    last_changed: str | None = None
    last_updated: str | None = None
    context: dict[str, Any] | None = None


class StateUpdateRequest(BaseModel):
    state: str
    attributes: dict[str, Any] | None = None


class IntentHandleRequest(BaseModel):
    name: str
    data: dict[str, Any] | None = None


class HistoryOptions(BaseModel):
    """Options for ``GET /api/history/period``."""

    filter_entity_id: str
    """Comma-separated entity IDs."""
    start_time: str | None = None
    end_time: str | None = None
    minimal_response: bool = False
    no_attributes: bool = False
    significant_changes_only: bool = False


class LogbookOptions(BaseModel):
    start_time: str | None = None
    end_time: str | None = None
    entity: str | None = None


class CalendarOptions(BaseModel):
    start: str
    end: str


class _Response(BaseModel):
    model_config = ConfigDict(extra="allow")


class APIStatus(_Response):
    """``GET /api/``"""

    message: str


class UnitSystem(_Response):
    length: str | None = None
    mass: str | None = None
    temperature: str | None = None
    volume: str | None = None


class HAConfiguration(_Response):
    """``GET /api/config``"""

    components: list[str] = Field(default_factory=list)
    config_dir: str | None = None
    elevation: float | None = None
    latitude: float | None = None
    longitude: float | None = None
    location_name: str | None = None
    time_zone: str | None = None
    unit_system: UnitSystem | None = None
    version: str | None = None
    whitelist_external_dirs: list[str] = Field(default_factory=list)


class EventEntry(_Response):
    event: str
    listener_count: int = 0


class ServiceDomain(_Response):
    domain: str
    services: dict[str, dict[str, Any]] = Field(default_factory=dict)


class HistoryEntry(_Response):
    entity_id: str | None = None
    state: str
    attributes: dict[str, Any] | None = None
    last_changed: str
    last_updated: str | None = None


class LogbookEntry(_Response):
    context_user_id: str | None = None
    domain: str | None = None
    entity_id: str | None = None
    message: str | None = None
    name: str
    when: str


class CalendarEntity(_Response):
    entity_id: str
    name: str


class CalendarDateTime(_Response):
    date: str | None = None
    date_time: str | None = Field(default=None, alias="dateTime")


class CalendarEvent(_Response):
    summary: str
    start: CalendarDateTime
    end: CalendarDateTime
    description: str | None = None
    location: str | None = None


class ConfigCheckResult(_Response):
    """``POST /api/config/core/check_config``"""

    result: Literal["valid", "invalid"]
    errors: str | None = None


class EventFireResult(_Response):
    message: str


class ServiceCallResponse(_Response):
    """``POST /api/services/<domain>/<service>?return_response``"""

    changed_states: list[EntityState] = Field(default_factory=list)
    service_response: dict[str, Any] = Field(default_factory=dict)
