"""
Deadline-bound parser execution.

A parser is third-party code keyed by file extension. Whatever it does (hang,
raise, return garbage), the request still gets its base metadata; the only
visible trace is a ``_warning`` field.
"""
from __future__ import annotations

import asyncio
import inspect
import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ...routes.response import dump_json
from ...shared import ErrorCode, Result, get_logger, sanitize_error_message, timer
from .registry import ParserFunction, PluginRegistry

logger = get_logger(__name__)

WARNING_FIELD = "_warning"
PARSER_TIMEOUT_WARNING = "Parser timed out"
PARSER_FAILED_WARNING = "Parser failed"


async def _invoke(parser: ParserFunction, path: str) -> Any:
    if inspect.iscoroutinefunction(parser):
        return await parser(path)
    # Plain callables may block on file I/O; keep them off the event loop.
    result = await asyncio.to_thread(parser, path)
    if inspect.isawaitable(result):
        return await result
    return result


def _retrieve_late_result(task: asyncio.Future) -> None:
    # Abandoned parser tasks still finish; consume their outcome so asyncio
    # does not report "exception was never retrieved".
    if not task.cancelled():
        task.exception()


def _coerce_fields(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return {str(k): v for k, v in value.items()}
    raise TypeError(f"Parser returned {type(value).__name__}, expected a mapping")


async def run_parser(parser: ParserFunction, path: str, *, timeout_s: float) -> Result[dict[str, Any]]:
    """
    Run ``parser(path)`` with a deadline.

    Returns:
        ``Ok(fields)`` on success, ``Err(PARSER_TIMEOUT)`` when the deadline
        passes first, ``Err(PARSER_FAILED)`` when the parser raises or returns
        something other than a JSON-serializable mapping. Never raises (except cancellation of
        the caller).
    """
    task = asyncio.ensure_future(_invoke(parser, path))
    try:
        done, _pending = await asyncio.wait({task}, timeout=timeout_s)
    except BaseException:
        task.cancel()
        raise

    if not done:
        # Best effort: coroutines see CancelledError, threads run to completion
        # and their result is dropped.
        task.add_done_callback(_retrieve_late_result)
        task.cancel()
        return Result.Err(ErrorCode.PARSER_TIMEOUT, PARSER_TIMEOUT_WARNING)

    if task.cancelled():
        return Result.Err(ErrorCode.PARSER_FAILED, PARSER_FAILED_WARNING, detail="Parser was cancelled")

    exc = task.exception()
    if exc is not None:
        return Result.Err(
            ErrorCode.PARSER_FAILED,
            PARSER_FAILED_WARNING,
            detail=sanitize_error_message(exc, exc.__class__.__name__),
        )

    try:
        # Round-trip through the response encoder so whatever gets merged is
        # plain JSON and cannot fail later, at response time.
        fields = json.loads(dump_json(_coerce_fields(task.result())))
    except Exception as exc:
        return Result.Err(
            ErrorCode.PARSER_FAILED,
            PARSER_FAILED_WARNING,
            detail=sanitize_error_message(exc, "Unusable parser output"),
        )
    return Result.Ok(fields)


class ParserSupervisor:
    """Looks up the parser for an extension and merges its output."""

    def __init__(self, registry: PluginRegistry, *, timeout_s: float, debug: bool = False):
        self._registry = registry
        self._timeout_s = timeout_s
        self._debug = debug

    async def enrich(self, metadata: dict[str, Any], path: Path | str) -> dict[str, Any]:
        """
        Add parser fields (or a warning) to ``metadata`` in place and return it.

        Parser fields are merged last, so a parser may overwrite base fields.
        """
        ext = metadata.get("type") or ""
        parser = self._registry.lookup(ext)
        if parser is None:
            return metadata

        with timer(f"parser {ext}", logger):
            res = await run_parser(parser, str(path), timeout_s=self._timeout_s)

        if res.ok:
            metadata.update(res.data or {})
            return metadata

        metadata[WARNING_FIELD] = res.error
        if self._debug:
            logger.error("Parser error (%s): %s %s", ext, res.code, res.meta.get("detail", ""))
        return metadata
