"""Command-line interface for the Home Assistant plugin.

Usage:
    # Plugin and API status (alias: homeassistant)
    python -m homeassistant_plugin.cli status

    # All entity states, or a single entity with its attributes (alias: ha-states)
    python -m homeassistant_plugin.cli states
    python -m homeassistant_plugin.cli states light.living_room --json

    # Validate configuration.yaml
    python -m homeassistant_plugin.cli check-config
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Sequence

from pydantic import ValidationError

from homeassistant_plugin.core.config import PLUGIN_VERSION, get_settings, is_configured
from homeassistant_plugin.services.ha_api import HomeAssistantAPI
from homeassistant_plugin.services.ha_models import APIStatus, ConfigCheckResult, EntityState


async def status_command(args: argparse.Namespace, api: HomeAssistantAPI) -> int:
    configured = is_configured(api.config)
    print("Home Assistant Plugin Status")
    print("----------------------------")
    print(f"Version: {PLUGIN_VERSION}")
    print(f"Config: {'configured' if configured else 'MISSING'}")
    if not configured:
        print("\nSet HA_BASE_URL and HA_TOKEN environment variables")
        return 0

    result = await api.get_api_status()
    print(f"API: {'connected' if result.ok else 'unreachable'}")
    print(f"Latency: {result.latency_ms}ms")
    if result.ok:
        try:
            print(f"Message: {APIStatus.model_validate(result.data).message}")
        except ValidationError:
            pass
    if result.error:
        print(f"Error: {result.error}")
    return 0


async def states_command(args: argparse.Namespace, api: HomeAssistantAPI) -> int:
    if args.entity_id:
        result = await api.get_state(args.entity_id)
    else:
        result = await api.get_states()

    if not result.ok:
        print(f"Error: {result.error}")
        return 1

    if args.json:
        print(json.dumps(result.data, indent=2))
        return 0

    try:
        if args.entity_id:
            entities = [EntityState.model_validate(result.data)]
        elif isinstance(result.data, list):
            entities = [EntityState.model_validate(item) for item in result.data]
        else:
            print("Error: unexpected response, expected a list of entity states")
            return 1
    except ValidationError as exc:
        print(f"Error: unexpected response: {exc.error_count()} invalid field(s)")
        return 1

    for entity in entities:
        print(f"{entity.entity_id}: {entity.state}")
        if args.entity_id:
            for key, value in entity.attributes.items():
                print(f"  {key}: {value}")
    return 0


async def check_config_command(args: argparse.Namespace, api: HomeAssistantAPI) -> int:
    result = await api.check_config()
    if not result.ok:
        print(f"Error: {result.error}")
        return 1

    try:
        check = ConfigCheckResult.model_validate(result.data)
    except ValidationError as exc:
        print(f"Error: unexpected response: {exc.error_count()} invalid field(s)")
        return 1

    print(f"Configuration: {check.result}")
    if check.errors:
        print(check.errors)
    return 0 if check.result == "valid" else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ha-plugin",
        description="Home Assistant REST API from the command line",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    status_parser = subparsers.add_parser(
        "status", aliases=["homeassistant"], help="Show Home Assistant plugin status"
    )
    status_parser.set_defaults(handler=status_command)

    states_parser = subparsers.add_parser(
        "states", aliases=["ha-states"], help="Get Home Assistant entity states"
    )
    states_parser.add_argument("entity_id", nargs="?", help="Single entity to show")
    states_parser.add_argument("--json", action="store_true", help="Output as JSON")
    states_parser.set_defaults(handler=states_command)

    check_parser = subparsers.add_parser(
        "check-config", help="Check if configuration.yaml is valid"
    )
    check_parser.set_defaults(handler=check_config_command)

    return parser


def main(argv: Sequence[str] | None = None, *, api: HomeAssistantAPI | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    level = "DEBUG" if args.verbose else get_settings().log_level.upper()
    logging.basicConfig(level=level)

    api = api or HomeAssistantAPI()
    return asyncio.run(args.handler(args, api))


if __name__ == "__main__":
    sys.exit(main())
