"""Shared utilities for MetaServe."""
from .errors import sanitize_error_message
from .log import get_logger, log_structured, request_id_var
from .result import Result
from .time import format_timestamp, timer
from .types import IMAGE_EXTENSIONS, ErrorCode, extension_of, normalize_extension

__all__ = [
    "Result",
    "get_logger",
    "format_timestamp",
    "timer",
    "ErrorCode",
    "IMAGE_EXTENSIONS",
    "extension_of",
    "normalize_extension",
    "log_structured",
    "request_id_var",
    "sanitize_error_message",
]
