"""Backend-facing alias for shared utilities."""

from __future__ import annotations

import metaserve_shared as _root_shared

Result = _root_shared.Result
ErrorCode = _root_shared.ErrorCode
get_logger = _root_shared.get_logger
log_structured = _root_shared.log_structured
request_id_var = _root_shared.request_id_var
sanitize_error_message = _root_shared.sanitize_error_message
format_timestamp = _root_shared.format_timestamp
timer = _root_shared.timer
normalize_extension = _root_shared.normalize_extension
extension_of = _root_shared.extension_of
IMAGE_EXTENSIONS = _root_shared.IMAGE_EXTENSIONS

__all__ = [
    "Result",
    "ErrorCode",
    "get_logger",
    "log_structured",
    "request_id_var",
    "sanitize_error_message",
    "format_timestamp",
    "timer",
    "normalize_extension",
    "extension_of",
    "IMAGE_EXTENSIONS",
]
