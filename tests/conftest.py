"""Pytest configuration for Home Assistant plugin tests."""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from homeassistant_plugin.core.config import HAConfig
from homeassistant_plugin.services.ha_api import HomeAssistantAPI

BASE_URL = "http://ha.local:8123"
TOKEN = "tok"  # noqa: S105


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def clear_ha_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("HA_BASE_URL", "HA_TOKEN", "HA_TIMEOUT_MS"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def ha_config() -> HAConfig:
    return HAConfig(base_url=BASE_URL, token=TOKEN)


class RecordingHandler:
    """MockTransport handler that records requests and replays one response."""

    def __init__(self, response: httpx.Response | Callable[[httpx.Request], Any]) -> None:
        self._response = response
        self.requests: list[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if callable(self._response):
            result = self._response(request)
            if not isinstance(result, httpx.Response):
                result = await result
            return result
        return self._response

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def make_api(ha_config: HAConfig) -> Callable[..., tuple[HomeAssistantAPI, RecordingHandler]]:
    def _make(
        response: httpx.Response | Callable[[httpx.Request], Any],
        config: HAConfig | None = ha_config,
    ) -> tuple[HomeAssistantAPI, RecordingHandler]:
        handler = RecordingHandler(response)
        api = HomeAssistantAPI(config, transport=httpx.MockTransport(handler))
        return api, handler

    return _make
