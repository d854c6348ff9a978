"""
Argument Coercion — raw tools/call arguments to typed parameters

Two stages:
  1. Every declared raw value is reduced by its JSON kind: strings stay strings,
     numbers become 32-bit integers, anything else is stringified.
  2. The tool's inputSchema is applied: required keys must be present,
     integer parameters must parse, string parameters take the text form.

Coercion is all-or-nothing: the first failure raises ArgumentError and no
partial mapping is returned.
"""

import json
import re
from typing import Any, Dict, Union

INT32_MIN = -2**31
INT32_MAX = 2**31 - 1

_INT_TEXT = re.compile(r"^\s*[+-]?\d+\s*$")

ArgValue = Union[str, int]


class ArgumentError(ValueError):
    """A tools/call argument is missing or has the wrong type."""


def stringify_loose_value(value: Any) -> str:
    """
    Render a non-string, non-numeric JSON value as text.

    This is the permissive fallback for booleans, null, objects and arrays:
    booleans become "true"/"false", null becomes "", containers become
    compact JSON.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return json.dumps(value, separators=(",", ":"))


def _to_int32(key: str, value: Any) -> int:
    if isinstance(value, float):
        if not value.is_integer():
            raise ArgumentError(f"Parameter '{key}' must be a valid integer")
        value = int(value)
    if not INT32_MIN <= value <= INT32_MAX:
        raise ArgumentError(f"Parameter '{key}' must be a valid integer")
    return value


def coerce_raw_value(key: str, value: Any) -> ArgValue:
    """Reduce one raw argument by its JSON kind."""
    if isinstance(value, str):
        return value
    # bool is an int subclass; it must take the stringify path
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return _to_int32(key, value)
    return stringify_loose_value(value)


def parse_int(key: str, value: ArgValue) -> int:
    """Interpret an already-reduced value as a 32-bit integer."""
    if isinstance(value, int):
        return value
    if _INT_TEXT.match(value):
        return _to_int32(key, int(value))
    raise ArgumentError(f"Parameter '{key}' must be a valid integer")


def coerce_arguments(raw: Any, input_schema: Dict[str, Any]) -> Dict[str, ArgValue]:
    """
    Validate and coerce a raw arguments mapping against a tool inputSchema.

    Keys not declared in the schema are dropped before any reduction, so their
    values never fail the call. Raises ArgumentError naming the offending key
    on the first failure.
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ArgumentError("Tool arguments must be a JSON object")

    properties = input_schema.get("properties", {})
    reduced = {
        key: coerce_raw_value(key, value)
        for key, value in raw.items()
        if key in properties
    }
    required = set(input_schema.get("required", []))
    typed: Dict[str, ArgValue] = {}

    for key, prop in properties.items():
        if key not in reduced:
            if key in required:
                raise ArgumentError(f"Required parameter '{key}' is missing")
            continue

        value = reduced[key]
        if prop.get("type") == "integer":
            typed[key] = parse_int(key, value)
        else:
            typed[key] = value if isinstance(value, str) else str(value)

    return typed
