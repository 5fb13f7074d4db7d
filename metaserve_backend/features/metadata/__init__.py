"""Metadata collection and parser supervision."""

from __future__ import annotations

from .collector import build_base_metadata, collect_metadata
from .registry import ParserFunction, PluginRegistry
from .supervisor import (
    PARSER_FAILED_WARNING,
    PARSER_TIMEOUT_WARNING,
    WARNING_FIELD,
    ParserSupervisor,
    run_parser,
)

__all__ = [
    "PluginRegistry",
    "ParserFunction",
    "ParserSupervisor",
    "run_parser",
    "collect_metadata",
    "build_base_metadata",
    "WARNING_FIELD",
    "PARSER_TIMEOUT_WARNING",
    "PARSER_FAILED_WARNING",
]
