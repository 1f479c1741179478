"""Gateway RPC methods and tool endpoints."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Mapping

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from pydantic import BaseModel

from homeassistant_plugin.core.config import PLUGIN_ID, PLUGIN_VERSION, is_configured
from homeassistant_plugin.services import tool_registry
from homeassistant_plugin.services.ha_api import HomeAssistantAPI

logger = logging.getLogger(__name__)

router = APIRouter()

RpcHandler = Callable[[HomeAssistantAPI, Mapping[str, Any]], Awaitable[tuple[bool, Any]]]


class RpcResponse(BaseModel):
    ok: bool
    data: dict | list | str | int | float | bool | None = None


class ToolContent(BaseModel):
    type: str = "text"
    text: str


class ToolResponse(BaseModel):
    content: list[ToolContent]


def get_ha_api(request: Request) -> HomeAssistantAPI:
    ha_api: HomeAssistantAPI | None = getattr(request.app.state, "ha_api", None)
    if not ha_api:
        raise RuntimeError("Home Assistant client has not been initialised")
    return ha_api


async def rpc_status(api: HomeAssistantAPI, params: Mapping[str, Any]) -> tuple[bool, Any]:
    if not is_configured(api.config):
        return True, {
            "plugin": PLUGIN_ID,
            "version": PLUGIN_VERSION,
            "status": "missing_config",
            "message": "Set HA_BASE_URL and HA_TOKEN environment variables",
        }

    result = await api.get_api_status()
    return True, {
        "plugin": PLUGIN_ID,
        "version": PLUGIN_VERSION,
        "status": "connected" if result.ok else "error",
        "api": result.data,
        "latencyMs": result.latency_ms,
        "error": result.error,
    }


async def rpc_states(api: HomeAssistantAPI, params: Mapping[str, Any]) -> tuple[bool, Any]:
    entity_id = params.get("entity_id")
    if entity_id:
        result = await api.get_state(str(entity_id))
    else:
        result = await api.get_states()
    return result.ok, result.data if result.ok else {"error": result.error}


async def rpc_call_service(api: HomeAssistantAPI, params: Mapping[str, Any]) -> tuple[bool, Any]:
    domain = params.get("domain")
    service = params.get("service")
    if not domain or not service:
        return False, {"error": "domain and service are required"}

    service_data = params.get("data")
    if service_data is not None and not isinstance(service_data, dict):
        return False, {"error": "data must be an object"}

    result = await api.call_service(
        str(domain),
        str(service),
        service_data,
        return_response=bool(params.get("return_response")),
    )
    return result.ok, result.data if result.ok else {"error": result.error}


RPC_METHODS: dict[str, RpcHandler] = {
    "homeassistant.status": rpc_status,
    "homeassistant.states": rpc_states,
    "homeassistant.call_service": rpc_call_service,
}


@router.post("/rpc/{method}", response_model=RpcResponse)
async def call_rpc(
    method: str,
    params: dict[str, Any] | None = Body(default=None),
    ha_api: HomeAssistantAPI = Depends(get_ha_api),
) -> dict:
    handler = RPC_METHODS.get(method)
    if handler is None:
        raise HTTPException(status_code=404, detail=f"Unknown method: {method}")

    logger.debug("RPC %s", method)
    ok, data = await handler(ha_api, params or {})
    return {"ok": ok, "data": data}


@router.get("/tools")
async def list_tools() -> list[dict[str, Any]]:
    return tool_registry.function_definitions()


@router.post("/tools/{name}", response_model=ToolResponse)
async def invoke_tool(
    name: str,
    args: dict[str, Any] | None = Body(default=None),
    ha_api: HomeAssistantAPI = Depends(get_ha_api),
) -> dict:
    if tool_registry.get_tool_definition(name) is None:
        raise HTTPException(status_code=404, detail=f"Unknown tool: {name}")
    return await tool_registry.execute_tool(name, args, ha_api)
