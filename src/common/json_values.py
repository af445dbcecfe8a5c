from __future__ import annotations

import json
from typing import Any, Mapping


def parse_json_value(value: Any) -> Any:
    """Decode one JSON-encoded string value; non-strings pass through untouched."""
    if not isinstance(value, str):
        return value
    try:
        decoded = json.loads(value)
    except ValueError:
        return value
    if isinstance(decoded, (dict, list)):
        return parse_json_object(decoded)
    return decoded


def parse_json_object(obj: Any) -> Any:
    """
    Best-effort decode of JSON-encoded string values, recursively.

    The EBS stores substates as JSON strings inside JSON documents, so a
    response like ``{"viewer": "{\\"volume\\": 3}"}`` comes back as
    ``{"viewer": {"volume": 3}}``.

    - Mappings: every value is coerced, a new dict is returned.
    - Lists: every element is coerced, a new list is returned.
    - Anything else is returned unchanged.

    A string that is not valid JSON is kept verbatim. Values that are already
    dicts or lists are not descended into.
    """
    if isinstance(obj, Mapping):
        return {k: parse_json_value(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [parse_json_value(v) for v in obj]
    return obj


def parse_response_body(resp: Any) -> Any:
    """Decode an HTTP response body as JSON when possible, else keep the text."""
    try:
        body = resp.json()
    except ValueError:
        body = resp.text
    return parse_json_object(body)


__all__ = ["parse_json_object", "parse_json_value", "parse_response_body"]
