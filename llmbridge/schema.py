"""
Translation of JSON-Schema-like tool parameters into each vendor's dialect.

OpenAI and Anthropic take JSON Schema as-is. Gemini uses an OpenAPI subset
with upper-case type tokens and rejects a handful of JSON Schema keywords.
Anything not handled here is passed through unchanged.
"""
import copy
from typing import Any, Dict, List, Mapping, Optional

EMPTY_OBJECT_SCHEMA: Dict[str, Any] = {"type": "object", "properties": {}}

GEMINI_TYPES = {
    "string": "STRING",
    "number": "NUMBER",
    "integer": "INTEGER",
    "boolean": "BOOLEAN",
    "array": "ARRAY",
    "object": "OBJECT",
    "null": "NULL",
}

# Keywords the Gemini Schema type does not accept
GEMINI_DROPPED_KEYS = frozenset({
    "$schema",
    "$id",
    "$defs",
    "definitions",
    "additionalProperties",
    "strict",
})

# Keywords whose values are themselves schemas
_SCHEMA_LIST_KEYS = ("anyOf", "any_of", "oneOf", "allOf")


def to_json_schema(parameters: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Return a detached copy of the parameters, defaulting to an empty object schema.
    """
    if not parameters:
        return copy.deepcopy(EMPTY_OBJECT_SCHEMA)
    schema = copy.deepcopy(dict(parameters))
    schema.setdefault("type", "object")
    if schema["type"] == "object":
        schema.setdefault("properties", {})
    return schema


def _gemini_type(token: Any) -> Any:
    if isinstance(token, str):
        return GEMINI_TYPES.get(token.lower(), token.upper())
    return token


def to_gemini_schema(schema: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Rewrite a JSON schema, recursively, into the Gemini schema dialect.

    - type tokens become the Gemini enum (`integer` -> `INTEGER`)
    - `["string", "null"]` becomes `type: STRING, nullable: True`
    - unsupported keywords are dropped
    """
    if not schema:
        return {"type": "OBJECT", "properties": {}}

    converted: Dict[str, Any] = {}
    for key, value in schema.items():
        if key in GEMINI_DROPPED_KEYS:
            continue

        if key == "type":
            if isinstance(value, list):
                non_null = [t for t in value if t != "null"]
                if len(non_null) < len(value):
                    converted["nullable"] = True
                # Gemini takes a single type; keep the first concrete one
                converted["type"] = _gemini_type(non_null[0]) if non_null else "NULL"
            else:
                converted["type"] = _gemini_type(value)
        elif key == "properties" and isinstance(value, Mapping):
            converted["properties"] = {
                name: to_gemini_schema(prop) for name, prop in value.items()
            }
        elif key == "items" and isinstance(value, Mapping):
            converted["items"] = to_gemini_schema(value)
        elif key in _SCHEMA_LIST_KEYS and isinstance(value, list):
            converted[key] = [to_gemini_schema(s) for s in value]
        else:
            converted[key] = copy.deepcopy(value)

    return converted


def gemini_function_declarations(tools: List[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """
    Wrap already-converted function declarations in the single tool entry
    Gemini expects.
    """
    return [{"function_declarations": list(tools)}]
