"""
Configuration for MetaServe.

Values are fixed when a server instance is built; nothing here is re-read
per request.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from .utils import env_bool

logger = logging.getLogger(__name__)

DEFAULT_PARSER_TIMEOUT_MS = 1500
DEFAULT_MAX_FILE_SIZE = 200 * 1024 * 1024

ENV_DEBUG = "METASERVE_DEBUG"
ENV_PARSER_TIMEOUT_MS = "METASERVE_PARSER_TIMEOUT_MS"
ENV_MAX_FILE_SIZE = "METASERVE_MAX_FILE_SIZE"


def _env_raw(name: str) -> str | None:
    val = os.getenv(name)
    if val is None or str(val).strip() == "":
        return None
    return str(val).strip()


def _env_int(default: int, name: str, *, min_value: int | None = None, max_value: int | None = None) -> int:
    raw = _env_raw(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid integer for %s=%r, using default=%s", name, raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", name, value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", name, value, max_value)
        value = max_value
    return value


@dataclass(frozen=True)
class ServerConfig:
    """
    Per-instance settings.

    Attributes:
        debug: log rejections, resolution failures and parser errors.
        parser_timeout_ms: deadline applied to every parser invocation.
        max_file_size: files strictly larger than this (bytes) are refused
            before any parser runs.
    """

    debug: bool = False
    parser_timeout_ms: int = DEFAULT_PARSER_TIMEOUT_MS
    max_file_size: int = DEFAULT_MAX_FILE_SIZE

    def __post_init__(self) -> None:
        if isinstance(self.parser_timeout_ms, bool) or int(self.parser_timeout_ms) <= 0:
            raise ValueError(f"parser_timeout_ms must be a positive integer, got {self.parser_timeout_ms!r}")
        if isinstance(self.max_file_size, bool) or int(self.max_file_size) < 0:
            raise ValueError(f"max_file_size must be a non-negative integer, got {self.max_file_size!r}")
        object.__setattr__(self, "debug", bool(self.debug))
        object.__setattr__(self, "parser_timeout_ms", int(self.parser_timeout_ms))
        object.__setattr__(self, "max_file_size", int(self.max_file_size))

    @property
    def parser_timeout_s(self) -> float:
        return self.parser_timeout_ms / 1000.0

    @classmethod
    def from_env(
        cls,
        *,
        debug: bool | None = None,
        parser_timeout_ms: int | None = None,
        max_file_size: int | None = None,
    ) -> "ServerConfig":
        """
        Build a config from ``METASERVE_*`` environment variables.

        Keyword arguments that are not ``None`` take precedence over the
        environment. Invalid environment values are logged and replaced with
        the defaults.
        """
        return cls(
            debug=debug if debug is not None else env_bool(ENV_DEBUG, False),
            parser_timeout_ms=(
                parser_timeout_ms
                if parser_timeout_ms is not None
                else _env_int(DEFAULT_PARSER_TIMEOUT_MS, ENV_PARSER_TIMEOUT_MS, min_value=1)
            ),
            max_file_size=(
                max_file_size
                if max_file_size is not None
                else _env_int(DEFAULT_MAX_FILE_SIZE, ENV_MAX_FILE_SIZE, min_value=0)
            ),
        )
