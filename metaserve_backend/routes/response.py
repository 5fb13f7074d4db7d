"""
Response utilities for the metadata handler.
"""

import json
import math
from typing import Any

from aiohttp import web


def _sanitize_json_payload(value):
    """
    Normalize payload values so they are always valid strict JSON.
    - Converts NaN/Infinity floats to None.
    - Recurses through dict/list/tuple containers.
    """
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {k: _sanitize_json_payload(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_sanitize_json_payload(v) for v in value]
    if isinstance(value, tuple):
        return [_sanitize_json_payload(v) for v in value]
    return value


def dump_json(payload: Any) -> str:
    # Parser output is arbitrary; anything json cannot encode becomes its str().
    return json.dumps(_sanitize_json_payload(payload), ensure_ascii=False, allow_nan=False, default=str)


def json_response(payload: Any, status: int = 200) -> web.Response:
    """Build a JSON response with a strict, deterministic body."""
    return web.json_response(payload, status=status, dumps=dump_json)
