"""
Observability helpers (request id + timing) for aiohttp apps hosting MetaServe.
"""

from __future__ import annotations

import os
import threading
import time
from typing import Any
from uuid import uuid4

from aiohttp import web

from .shared import get_logger, request_id_var
from .utils import env_float

logger = get_logger(__name__)

_APPKEY_OBS_INSTALLED = web.AppKey("metaserve_observability_installed", bool)

MS_PER_S = 1000.0
_DEFAULT_LOG_RATELIMIT_MS = 2000.0
_DEFAULT_SLOW_MS = 750.0

# Prevent log spam when a client polls the same failing path in a loop.
_LOG_RATELIMIT_LOCK = threading.Lock()
_LOG_RATELIMIT_STATE: dict[str, float] = {}
_LOG_RATELIMIT_MAX_KEYS = 4096

# Env is read at call time (tests monkeypatch it).


def _new_request_id() -> str:
    return uuid4().hex


def _get_request_id(request: web.Request) -> str:
    rid = (request.headers.get("X-Request-ID") or "").strip()
    return rid[:128] or _new_request_id()


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return str(raw).strip().lower() in ("1", "true", "yes", "on")


def _should_emit_log(key: str, *, window_ms: float) -> bool:
    """Return True if this log key should be emitted now (best-effort rate limit)."""
    now = time.monotonic() * MS_PER_S
    with _LOG_RATELIMIT_LOCK:
        last = _LOG_RATELIMIT_STATE.get(key, 0.0)
        if last and now - last < window_ms:
            return False
        if len(_LOG_RATELIMIT_STATE) >= _LOG_RATELIMIT_MAX_KEYS:
            _LOG_RATELIMIT_STATE.clear()
        _LOG_RATELIMIT_STATE[key] = now
    return True


def _should_log(*, status: int | None, duration_ms: float) -> bool:
    if _env_flag("METASERVE_OBS_LOG_ALL", default=False):
        return True
    if status is not None and status >= 400:
        return True
    if not _env_flag("METASERVE_OBS_LOG_SLOW", default=False):
        return False
    return duration_ms >= env_float("METASERVE_OBS_SLOW_MS", _DEFAULT_SLOW_MS)


def build_request_log_fields(
    request: web.Request,
    *,
    request_id: str | None = None,
    response_status: int | None = None,
    duration_ms: float | None = None,
) -> dict[str, Any]:
    """Build a JSON-serializable dict of request/response fields for logs."""
    return {
        "request_id": request_id,
        "method": request.method,
        "path": request.path,
        "query": dict(request.query),
        "status": response_status,
        "duration_ms": round(duration_ms, 2) if duration_ms is not None else None,
    }


def _emit_request_log(
    request: web.Request, *, request_id: str, status: int | None, duration_ms: float, error: str | None
) -> None:
    if not _should_log(status=status, duration_ms=duration_ms):
        return
    key = f"{request.method}:{request.path}:{status}"
    if not _should_emit_log(key, window_ms=env_float("METASERVE_OBS_RATELIMIT_MS", _DEFAULT_LOG_RATELIMIT_MS)):
        return
    fields = build_request_log_fields(
        request, request_id=request_id, response_status=status, duration_ms=duration_ms
    )
    if error:
        fields["error"] = error
    if status is not None and status >= 500:
        logger.error("Request handled %s", fields)
    elif status is not None and status >= 400:
        logger.warning("Request handled %s", fields)
    else:
        logger.info("Request handled %s", fields)


@web.middleware
async def request_context_middleware(request: web.Request, handler):
    """Add request-id correlation and lightweight request logging."""
    if _env_flag("METASERVE_OBS_DISABLE", default=False):
        return await handler(request)

    rid = _get_request_id(request)
    token = request_id_var.set(rid)
    start = time.perf_counter()
    status: int | None = None
    error: str | None = None
    try:
        response = await handler(request)
        status = int(getattr(response, "status", 200) or 200)
        response.headers["X-Request-ID"] = rid
        return response
    except web.HTTPException as exc:
        status = exc.status
        exc.headers["X-Request-ID"] = rid
        raise
    except Exception as exc:
        status = 500
        error = exc.__class__.__name__
        raise
    finally:
        duration_ms = (time.perf_counter() - start) * MS_PER_S
        request_id_var.reset(token)
        _emit_request_log(request, request_id=rid, status=status, duration_ms=duration_ms, error=error)


def ensure_observability(app: web.Application) -> None:
    """
    Install the request-context middleware once, ahead of any other middleware.
    """
    if app.get(_APPKEY_OBS_INSTALLED):
        return
    app[_APPKEY_OBS_INSTALLED] = True
    app.middlewares.insert(0, request_context_middleware)
