"""
Request path decoding and root-confinement checks.

Resolution happens in two passes: a lexical join onto the configured root, then
canonicalization of both sides so a symlink inside the root that points
elsewhere is judged by where it lands, not where it appears to be.
"""

from __future__ import annotations

import asyncio
import os
import re
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote

from .shared import ErrorCode, Result, sanitize_error_message

_LEADING_SEPARATORS_RE = re.compile(r"^[/\\]+")
_BAD_PERCENT_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")


@dataclass(frozen=True)
class ResolvedRequest:
    """Canonical root and file path for one request."""

    real_root: Path
    real_path: Path
    is_inside: bool


def decode_request_path(raw_path: str) -> str:
    """
    Percent-decode a raw URL path.

    Raises:
        ValueError: on a stray ``%``, bytes that are not UTF-8, or a NUL.
    """
    raw = str(raw_path or "")
    if _BAD_PERCENT_RE.search(raw):
        raise ValueError("Malformed percent-encoding in request path")
    decoded = unquote(raw, encoding="utf-8", errors="strict")
    if "\x00" in decoded:
        raise ValueError("Null byte in request path")
    return decoded


def strip_leading_separators(value: str) -> str:
    # "/etc/passwd" must not replace the root on join.
    return _LEADING_SEPARATORS_RE.sub("", value)


def logical_file_path(logical_root: str, request_path: str) -> str:
    """Join onto the root and normalize lexically, without touching symlinks."""
    return os.path.abspath(os.path.join(logical_root, strip_leading_separators(request_path)))


def is_within_root(real_path: Path, real_root: Path) -> bool:
    """
    True when ``real_path`` is ``real_root`` or below it.

    Both arguments must already be canonical.
    """
    try:
        rel = os.path.relpath(real_path, real_root)
    except ValueError:
        # Different drives on Windows.
        return False
    if rel in ("", os.curdir):
        return True
    if rel == os.pardir or rel.startswith(os.pardir + os.sep):
        return False
    if os.altsep and rel.startswith(os.pardir + os.altsep):
        return False
    return not os.path.isabs(rel)


def _canonicalize(value: str | Path) -> Path:
    return Path(value).resolve(strict=True)


async def resolve_request_path(logical_root: str, request_path: str) -> Result[ResolvedRequest]:
    """
    Resolve ``request_path`` (already percent-decoded) under ``logical_root``.

    Returns:
        ``Ok(ResolvedRequest)`` for a path inside the root,
        ``Err(ACCESS_DENIED)`` with the resolved request in ``meta["resolved"]``
        when the canonical target escapes the root, or
        ``Err(NOT_FOUND)`` / ``Err(INVALID_INPUT)`` when the path cannot be
        canonicalized at all.
    """
    try:
        candidate = logical_file_path(logical_root, request_path)
    except (TypeError, ValueError) as exc:
        return Result.Err(ErrorCode.INVALID_INPUT, sanitize_error_message(exc, "Invalid request path"))

    try:
        real_root = await asyncio.to_thread(_canonicalize, logical_root)
        real_path = await asyncio.to_thread(_canonicalize, candidate)
    except FileNotFoundError as exc:
        return Result.Err(ErrorCode.NOT_FOUND, sanitize_error_message(exc, "Path not found"))
    except (OSError, RuntimeError, ValueError) as exc:
        return Result.Err(ErrorCode.INVALID_INPUT, sanitize_error_message(exc, "Failed to resolve path"))

    resolved = ResolvedRequest(
        real_root=real_root,
        real_path=real_path,
        is_inside=is_within_root(real_path, real_root),
    )
    if not resolved.is_inside:
        return Result.Err(ErrorCode.ACCESS_DENIED, "Access denied", resolved=resolved)
    return Result.Ok(resolved)
