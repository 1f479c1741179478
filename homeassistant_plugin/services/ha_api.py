"""Asynchronous Home Assistant REST API wrapper."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from time import monotonic
from typing import Any, Mapping

import httpx

from homeassistant_plugin.core.config import ConfigurationError, HAConfig, resolve_config
from .ha_models import (
    CalendarOptions,
    HistoryOptions,
    IntentHandleRequest,
    LogbookOptions,
    StateUpdateRequest,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class HAClientResult:
    """Outcome of a single Home Assistant request.

    ``ok`` is true only for a 2xx response that decoded cleanly. On failure
    ``data`` is ``None`` and ``error`` describes what went wrong.
    """

    ok: bool
    status: int
    data: Any = None
    latency_ms: int = 0
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "ok": self.ok,
            "status": self.status,
            "data": self.data,
            "latencyMs": self.latency_ms,
        }
        if self.error is not None:
            result["error"] = self.error
        return result


def _elapsed_ms(start: float) -> int:
    return max(0, int((monotonic() - start) * 1000))


def _with_query(path: str, params: Mapping[str, str]) -> str:
    if not params:
        return path
    return f"{path}?{httpx.QueryParams(params)}"


class HomeAssistantAPI:
    """Async client for Home Assistant's REST API.

    Without an explicit ``config`` the connection is resolved from the
    environment on every call. Every operation returns an
    :class:`HAClientResult`; nothing is raised for network or HTTP failures.
    """

    def __init__(
        self,
        config: HAConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport

    @property
    def config(self) -> HAConfig | None:
        return self._config

    async def _request(
        self,
        method: str,
        path: str,
        body: Any = None,
        config: HAConfig | None = None,
    ) -> HAClientResult:
        try:
            cfg = resolve_config(config if config is not None else self._config)
        except ConfigurationError as exc:
            logger.warning("Skipping %s %s: %s", method, path, exc)
            return HAClientResult(ok=False, status=0, latency_ms=0, error=str(exc))

        url = f"{cfg.base_url}{path}"
        timeout_ms = cfg.effective_timeout_ms
        headers = {
            "Authorization": f"Bearer {cfg.token}",
            "Content-Type": "application/json",
        }
        content = json.dumps(body) if body is not None else None

        start = monotonic()
        try:
            async with httpx.AsyncClient(
                timeout=timeout_ms / 1000, transport=self._transport
            ) as client:
                response = await asyncio.wait_for(
                    client.request(method, url, headers=headers, content=content),
                    timeout=timeout_ms / 1000,
                )
                latency_ms = _elapsed_ms(start)

                if not response.is_success:
                    try:
                        text = response.text
                    except Exception:
                        text = ""
                    logger.warning(
                        "Home Assistant %s %s returned %d", method, path, response.status_code
                    )
                    return HAClientResult(
                        ok=False,
                        status=response.status_code,
                        latency_ms=latency_ms,
                        error=f"HTTP {response.status_code}: {text or response.reason_phrase}",
                    )

                # /api/error_log and /api/template answer with plain text
                content_type = response.headers.get("content-type", "")
                if "application/json" in content_type:
                    data = response.json()
                else:
                    data = response.text
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning("Home Assistant %s %s timed out after %dms", method, path, timeout_ms)
            return HAClientResult(
                ok=False,
                status=0,
                latency_ms=_elapsed_ms(start),
                error=f"Request timed out after {timeout_ms}ms",
            )
        except Exception as exc:
            logger.warning("Home Assistant %s %s failed: %s", method, path, exc)
            return HAClientResult(
                ok=False,
                status=0,
                latency_ms=_elapsed_ms(start),
                error=str(exc) or exc.__class__.__name__,
            )

        logger.debug(
            "Home Assistant %s %s -> %d (%dms)", method, path, response.status_code, latency_ms
        )
        return HAClientResult(
            ok=True, status=response.status_code, data=data, latency_ms=latency_ms
        )

    async def get_api_status(self) -> HAClientResult:
        """Check that the API is running."""

        return await self._request("GET", "/api/")

    async def get_server_config(self) -> HAClientResult:
        """Location, time zone, version, unit system and loaded components."""

        return await self._request("GET", "/api/config")

    async def get_components(self) -> HAClientResult:
        return await self._request("GET", "/api/components")

    async def get_states(self) -> HAClientResult:
        return await self._request("GET", "/api/states")

    async def get_state(self, entity_id: str) -> HAClientResult:
        return await self._request("GET", f"/api/states/{entity_id}")

    async def set_state(self, entity_id: str, state: StateUpdateRequest) -> HAClientResult:
        """Create or update the state representation of an entity.

        This does not talk to the physical device; use :meth:`call_service`.
        """

        return await self._request(
            "POST", f"/api/states/{entity_id}", state.model_dump(exclude_none=True)
        )

    async def delete_state(self, entity_id: str) -> HAClientResult:
        return await self._request("DELETE", f"/api/states/{entity_id}")

    async def get_events(self) -> HAClientResult:
        """Event types and their listener counts."""

        return await self._request("GET", "/api/events")

    async def fire_event(
        self, event_type: str, event_data: dict[str, Any] | None = None
    ) -> HAClientResult:
        return await self._request("POST", f"/api/events/{event_type}", event_data or {})

    async def get_services(self) -> HAClientResult:
        return await self._request("GET", "/api/services")

    async def call_service(
        self,
        domain: str,
        service: str,
        data: dict[str, Any] | None = None,
        *,
        return_response: bool = False,
    ) -> HAClientResult:
        """Invoke a service.

        With ``return_response`` Home Assistant answers with
        ``{"changed_states": [...], "service_response": {...}}`` instead of
        the list of changed states.
        """

        suffix = "?return_response" if return_response else ""
        return await self._request(
            "POST", f"/api/services/{domain}/{service}{suffix}", data or {}
        )

    async def get_history(self, options: HistoryOptions) -> HAClientResult:
        params = {"filter_entity_id": options.filter_entity_id}
        if options.end_time:
            params["end_time"] = options.end_time
        if options.minimal_response:
            params["minimal_response"] = ""
        if options.no_attributes:
            params["no_attributes"] = ""
        if options.significant_changes_only:
            params["significant_changes_only"] = ""

        time_path = f"/{options.start_time}" if options.start_time else ""
        return await self._request("GET", _with_query(f"/api/history/period{time_path}", params))

    async def get_logbook(self, options: LogbookOptions | None = None) -> HAClientResult:
        options = options or LogbookOptions()
        params: dict[str, str] = {}
        if options.entity:
            params["entity"] = options.entity
        if options.end_time:
            params["end_time"] = options.end_time

        time_path = f"/{options.start_time}" if options.start_time else ""
        return await self._request("GET", _with_query(f"/api/logbook{time_path}", params))

    async def get_error_log(self) -> HAClientResult:
        """Current error log, as plain text."""

        return await self._request("GET", "/api/error_log")

    async def get_calendars(self) -> HAClientResult:
        return await self._request("GET", "/api/calendars")

    async def get_calendar_events(
        self, entity_id: str, options: CalendarOptions
    ) -> HAClientResult:
        params = {"start": options.start, "end": options.end}
        return await self._request("GET", _with_query(f"/api/calendars/{entity_id}", params))

    async def render_template(self, template: str) -> HAClientResult:
        """Render a Jinja2 template; the result is plain text."""

        return await self._request("POST", "/api/template", {"template": template})

    async def check_config(self) -> HAClientResult:
        return await self._request("POST", "/api/config/core/check_config", {})

    async def handle_intent(self, intent: IntentHandleRequest) -> HAClientResult:
        return await self._request(
            "POST", "/api/intent/handle", intent.model_dump(exclude_none=True)
        )
