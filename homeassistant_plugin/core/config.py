"""Plugin configuration utilities."""

from __future__ import annotations

import os
from typing import Any

from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

PLUGIN_ID = "homeassistant"
PLUGIN_NAME = "Home Assistant"
PLUGIN_VERSION = "0.1.0"

DEFAULT_TIMEOUT_MS = 10_000

MISSING_CONFIG_MESSAGE = (
    "Home Assistant configuration missing. "
    "Set HA_BASE_URL and HA_TOKEN environment variables."
)


class ConfigurationError(RuntimeError):
    """Raised when the Home Assistant connection cannot be resolved."""


class HAConfig(BaseModel):
    """Connection settings for a single Home Assistant instance."""

    model_config = ConfigDict(frozen=True)

    base_url: str
    token: str
    timeout_ms: int | None = None

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slashes(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def effective_timeout_ms(self) -> int:
        return self.timeout_ms if self.timeout_ms is not None else DEFAULT_TIMEOUT_MS


class Settings(BaseModel):
    """Runtime configuration loaded from environment variables."""

    app_name: str = "Home Assistant Plugin"
    environment: str = "development"
    log_level: str = "INFO"
    ha_base_url: str = ""
    ha_token: str = ""
    ha_timeout_ms: int | None = None

    model_config = ConfigDict(extra="ignore")


def _parse_timeout(raw: str | None) -> int | None:
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _read_environment() -> dict[str, str]:
    """Process environment layered over the .env file; neither is written."""

    dotenv_path = find_dotenv(usecwd=True)
    values = {
        key: value
        for key, value in (dotenv_values(dotenv_path) if dotenv_path else {}).items()
        if value is not None
    }
    values.update(os.environ)
    return values


def get_settings() -> Settings:
    """Read settings from the environment.

    Not cached: every call reflects the current process environment and .env file.
    """

    env = _read_environment()
    data: dict[str, Any] = {
        "app_name": env.get("APP_NAME", "Home Assistant Plugin"),
        "environment": env.get("ENVIRONMENT", "development"),
        "log_level": env.get("LOG_LEVEL", "INFO"),
        "ha_base_url": env.get("HA_BASE_URL", ""),
        "ha_token": env.get("HA_TOKEN", ""),
        "ha_timeout_ms": _parse_timeout(env.get("HA_TIMEOUT_MS")),
    }
    return Settings(**data)


def resolve_config(override: HAConfig | None = None) -> HAConfig:
    """Return the override, or build a connection config from the environment."""

    if override is not None:
        return override

    settings = get_settings()
    if not settings.ha_base_url or not settings.ha_token:
        raise ConfigurationError(MISSING_CONFIG_MESSAGE)

    return HAConfig(
        base_url=settings.ha_base_url,
        token=settings.ha_token,
        timeout_ms=settings.ha_timeout_ms,
    )


def is_configured(override: HAConfig | None = None) -> bool:
    if override is not None and override.base_url and override.token:
        return True
    settings = get_settings()
    return bool(settings.ha_base_url and settings.ha_token)
