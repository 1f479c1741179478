"""Validation helpers for tool and RPC arguments before hitting Home Assistant."""

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping


class ArgumentError(ValueError):
    """Raised when caller-supplied arguments cannot be used to build a request."""


def parse_json_argument(raw: Any, field: str) -> Any:
    """Decode a JSON-text argument.

    Agents pass structured payloads as strings; already-decoded values are
    returned unchanged. Empty values decode to ``None``.
    """

    if raw is None or raw == "":
        return None
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ArgumentError(f"Invalid JSON in {field}") from exc


def parse_json_object(raw: Any, field: str) -> dict[str, Any] | None:
    value = parse_json_argument(raw, field)
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ArgumentError(f"Invalid JSON in {field}: expected an object")
    return dict(value)


def require_arguments(args: Mapping[str, Any], required: Iterable[str]) -> None:
    missing = [key for key in required if args.get(key) in (None, "")]
    if missing:
        raise ArgumentError(f"Missing required argument(s): {', '.join(missing)}")
