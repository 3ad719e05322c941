"""Checks for model output against Gemini-style response schemas."""

from __future__ import annotations

import json
from typing import Any, Dict

_TYPE_CHECKS = {
    "OBJECT": lambda value: isinstance(value, dict),
    "ARRAY": lambda value: isinstance(value, list),
    "STRING": lambda value: isinstance(value, str),
    "BOOLEAN": lambda value: isinstance(value, bool),
    "INTEGER": lambda value: isinstance(value, int) and not isinstance(value, bool),
    "NUMBER": lambda value: isinstance(value, (int, float)) and not isinstance(value, bool),
}


class SchemaValidationError(ValueError):
    """Parsed JSON does not match the declared response schema."""

    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path


def validate(value: Any, schema: Dict[str, Any], path: str = "$") -> None:
    """Raise :class:`SchemaValidationError` at the first mismatch."""
    expected = (schema.get("type") or "").upper()
    check = _TYPE_CHECKS.get(expected)
    if check is not None and not check(value):
        raise SchemaValidationError(path, f"expected {expected.lower()}, got {type(value).__name__}")

    if "enum" in schema and value not in schema["enum"]:
        allowed = ", ".join(str(option) for option in schema["enum"])
        raise SchemaValidationError(path, f"{value!r} is not one of {allowed}")

    if expected == "OBJECT":
        for name in schema.get("required", []):
            if name not in value:
                raise SchemaValidationError(path, f"missing required field '{name}'")
        for name, subschema in (schema.get("properties") or {}).items():
            if name in value:
                validate(value[name], subschema, f"{path}.{name}")

    elif expected == "ARRAY":
        min_items = schema.get("minItems")
        max_items = schema.get("maxItems")
        if min_items is not None and len(value) < int(min_items):
            raise SchemaValidationError(path, f"expected at least {min_items} items, got {len(value)}")
        if max_items is not None and len(value) > int(max_items):
            raise SchemaValidationError(path, f"expected at most {max_items} items, got {len(value)}")
        item_schema = schema.get("items")
        if item_schema:
            for index, item in enumerate(value):
                validate(item, item_schema, f"{path}[{index}]")


def parse_json_response(text: str, schema: Dict[str, Any]) -> Any:
    """Decode schema-constrained model output; no partial recovery is attempted."""
    data = json.loads(text)
    validate(data, schema)
    return data
