"""FastAPI gateway entry point."""

from __future__ import annotations

import contextlib
import logging
from typing import AsyncGenerator

from fastapi import FastAPI

from homeassistant_plugin.api import routes
from homeassistant_plugin.core.config import (
    PLUGIN_NAME,
    PLUGIN_VERSION,
    HAConfig,
    get_settings,
    is_configured,
)
from homeassistant_plugin.services.ha_api import HomeAssistantAPI

logger = logging.getLogger("homeassistant_plugin")


def build_app(ha_api: HomeAssistantAPI | None = None, config: HAConfig | None = None) -> FastAPI:
    settings = get_settings()
    ha_api = ha_api or HomeAssistantAPI(config)

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("%s plugin loaded (%s)", PLUGIN_NAME, settings.environment)
        if not is_configured(ha_api.config):
            logger.warning("Home Assistant not configured; set HA_BASE_URL and HA_TOKEN")
        yield

    app = FastAPI(title=settings.app_name, version=PLUGIN_VERSION, lifespan=lifespan)
    app.state.ha_api = ha_api
    app.include_router(routes.router)
    return app


def create_app() -> FastAPI:
    """Application factory for ASGI servers."""

    logging.basicConfig(level=get_settings().log_level.upper())
    return build_app()
