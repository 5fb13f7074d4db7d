"""HTTP response helpers."""

from .response import dump_json, json_response

__all__ = ["dump_json", "json_response"]
