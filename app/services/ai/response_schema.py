"""
Structured-output schemas for Gemini.

The SDK's ``response_schema`` takes an OpenAPI-style subset of JSON Schema
that maps one-to-one onto its ``Schema`` proto: upper-case type names, no
``$ref``/``$defs``, no ``title``/``default``/numeric bounds, string enums
flagged with ``format: "enum"``, and optional values marked ``nullable``
instead of ``anyOf [..., null]``. This module derives that subset from the
pydantic result models so the prompt contract and the validator never drift
apart.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import BaseModel

_KEPT_KEYS = frozenset({"type", "description", "nullable", "enum", "properties", "required", "items"})


def _resolve(node: Any, defs: dict[str, Any]) -> Any:
    if isinstance(node, list):
        return [_resolve(item, defs) for item in node]
    if not isinstance(node, dict):
        return node

    if "$ref" in node:
        target = defs[node["$ref"].rsplit("/", 1)[-1]]
        merged = {**target, **{k: v for k, v in node.items() if k != "$ref"}}
        return _resolve(merged, defs)

    if "anyOf" in node:
        options = [option for option in node["anyOf"] if option.get("type") != "null"]
        nullable = len(options) < len(node["anyOf"])
        base = _resolve(options[0], defs) if len(options) == 1 else {"type": "STRING"}
        extras = {k: v for k, v in node.items() if k != "anyOf"}
        resolved = {**base, **_resolve(extras, defs)}
        if nullable:
            resolved["nullable"] = True
        return resolved

    if "allOf" in node and len(node["allOf"]) == 1:
        merged = {**node["allOf"][0], **{k: v for k, v in node.items() if k != "allOf"}}
        return _resolve(merged, defs)

    result: dict[str, Any] = {}
    for key, value in node.items():
        if key == "properties":
            result[key] = {name: _resolve(prop, defs) for name, prop in value.items()}
        elif key == "type" and isinstance(value, str):
            result[key] = value.upper()
        elif key in _KEPT_KEYS:
            result[key] = _resolve(value, defs)
    if "enum" in result:
        result.setdefault("type", "STRING")
        result["format"] = "enum"
    return result


@lru_cache(maxsize=None)
def gemini_schema(model: type[BaseModel]) -> dict[str, Any]:
    """Return the Gemini ``response_schema`` for a pydantic model (camelCase keys)."""
    schema = model.model_json_schema(by_alias=True)
    defs = schema.pop("$defs", {})
    return _resolve(schema, defs)
