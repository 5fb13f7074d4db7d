"""Base filesystem metadata with the maximum-size admission check."""
from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Any

from ...shared import ErrorCode, Result, extension_of, format_timestamp, sanitize_error_message


def _created_time(st: os.stat_result) -> float:
    # Birth time where the platform records it, inode change time otherwise.
    birth = getattr(st, "st_birthtime", None)
    if birth is not None:
        return float(birth)
    return float(st.st_ctime)


def build_base_metadata(path: Path | str, st: os.stat_result) -> dict[str, Any]:
    return {
        "size": int(st.st_size),
        "created": format_timestamp(_created_time(st)),
        "modified": format_timestamp(float(st.st_mtime)),
        "type": extension_of(str(path)),
    }


async def collect_metadata(path: Path, *, max_file_size: int) -> Result[dict[str, Any]]:
    """
    Stat ``path`` and build its base metadata.

    Returns:
        ``Ok(metadata)``,
        ``Err(FILE_TOO_LARGE, limit=max_file_size, size=...)`` when the file is
        larger than the limit, or ``Err(STAT_FAILED)`` when the stat fails
        (for example the file vanished after resolution).
    """
    try:
        st = await asyncio.to_thread(os.stat, path)
    except (OSError, ValueError) as exc:
        return Result.Err(ErrorCode.STAT_FAILED, sanitize_error_message(exc, "Failed to stat file"))

    if st.st_size > max_file_size:
        return Result.Err(
            ErrorCode.FILE_TOO_LARGE,
            "File too large",
            limit=max_file_size,
            size=int(st.st_size),
        )

    return Result.Ok(build_base_metadata(path, st))
