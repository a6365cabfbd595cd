from __future__ import annotations

from typing import Any

from flask import request


def json_object() -> dict[str, Any] | None:
    """The JSON body as a dict. Empty or unparsable bodies read as {}; arrays and scalars give None."""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    return payload if isinstance(payload, dict) else None


def text_field(payload: dict[str, Any], key: str) -> str:
    """String value of `key`; missing, null and non-string values read as ''."""
    value = payload.get(key)
    return value if isinstance(value, str) else ""
