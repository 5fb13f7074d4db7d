"""
Time utilities for timestamps and performance measurement.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone


def format_timestamp(ts: float) -> str:
    """
    Format an epoch timestamp as UTC ISO 8601 with millisecond precision.

    Args:
        ts: Timestamp in seconds

    Returns:
        e.g. "2025-12-29T19:30:45.123Z". Depends only on ``ts``, so two
        stats of an unchanged file format identically.
    """
    dt = datetime.fromtimestamp(ts, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@contextmanager
def timer(label: str, logger: logging.Logger) -> Iterator[None]:
    """
    Context manager for timing operations.

    Usage:
        with timer("image parser", logger):
            ...
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        logger.debug("%s took %.3fs", label, elapsed)
