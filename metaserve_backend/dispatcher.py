"""
Metadata request dispatcher.

Per request: query marker -> path resolution -> stat and size check -> parser.
Each stage either hands the request on, refuses it (403 / 413), or gives up
and reports it as unhandled so the hosting app can fall back to its own
handling (typically a 404).
"""

from __future__ import annotations

import logging
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from aiohttp import web

from .config import ServerConfig
from .features.metadata import ParserFunction, ParserSupervisor, PluginRegistry, collect_metadata
from .path_utils import decode_request_path, resolve_request_path
from .routes.response import json_response
from .shared import ErrorCode, get_logger, log_structured, sanitize_error_message

logger = get_logger(__name__)

META_QUERY_PARAM = "meta"

ACCESS_DENIED_BODY = {"error": "Access denied"}
FILE_TOO_LARGE_ERROR = "File too large"


def is_metadata_request(request: web.Request) -> bool:
    """Any non-empty ``meta`` value claims the request, ``?meta=0`` included."""
    return any(request.query.getall(META_QUERY_PARAM, []))


class OutcomeKind(str, Enum):
    HANDLED = "handled"
    REJECTED = "rejected"
    UNHANDLED = "unhandled"


@dataclass(frozen=True)
class DispatchOutcome:
    """
    What the dispatcher decided for one request.

    ``HANDLED`` and ``REJECTED`` carry a status and JSON body to send;
    ``UNHANDLED`` carries only a reason for logs and tests.
    """

    kind: OutcomeKind
    status: int | None = None
    body: dict[str, Any] | None = None
    reason: str = ""
    meta: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def Handled(body: dict[str, Any]) -> "DispatchOutcome":
        return DispatchOutcome(OutcomeKind.HANDLED, status=200, body=body)

    @staticmethod
    def Rejected(status: int, body: dict[str, Any], reason: str = "") -> "DispatchOutcome":
        return DispatchOutcome(OutcomeKind.REJECTED, status=status, body=body, reason=reason)

    @staticmethod
    def Unhandled(reason: str = "", **meta: Any) -> "DispatchOutcome":
        return DispatchOutcome(OutcomeKind.UNHANDLED, reason=reason, meta=meta)

    @property
    def handled(self) -> bool:
        return self.kind is not OutcomeKind.UNHANDLED

    def to_response(self) -> web.Response | None:
        if not self.handled:
            return None
        return json_response(self.body or {}, status=int(self.status or 200))


class MetadataDispatcher:
    """Serves metadata requests for files under one root directory."""

    def __init__(self, root: str | os.PathLike[str], config: ServerConfig, registry: PluginRegistry):
        self.logical_root = os.path.abspath(os.fspath(root))
        self.config = config
        self._supervisor = ParserSupervisor(registry, timeout_s=config.parser_timeout_s, debug=config.debug)

    async def dispatch(self, request: web.Request) -> DispatchOutcome:
        if not is_metadata_request(request):
            return DispatchOutcome.Unhandled("not a metadata request")
        return await self.dispatch_path(request.rel_url.raw_path)

    async def dispatch_path(self, raw_path: str) -> DispatchOutcome:
        """Run the pipeline for a raw (still percent-encoded) URL path."""
        try:
            return await self._dispatch_path(raw_path)
        except Exception as exc:
            if self.config.debug:
                logger.error("Metadata request failed: %s", sanitize_error_message(exc, "Unexpected error"))
            return DispatchOutcome.Unhandled("internal error")

    async def _dispatch_path(self, raw_path: str) -> DispatchOutcome:
        try:
            request_path = decode_request_path(raw_path)
        except ValueError as exc:
            return self._unhandled(ErrorCode.INVALID_INPUT.value, sanitize_error_message(exc, "Bad request path"))

        resolved = await resolve_request_path(self.logical_root, request_path)
        if not resolved.ok:
            if resolved.code == ErrorCode.ACCESS_DENIED.value:
                if self.config.debug:
                    target = resolved.meta.get("resolved")
                    log_structured(
                        logger,
                        logging.WARNING,
                        "Access denied",
                        path=str(getattr(target, "real_path", request_path)),
                        root=str(getattr(target, "real_root", self.logical_root)),
                    )
                return DispatchOutcome.Rejected(403, dict(ACCESS_DENIED_BODY), reason="access denied")
            return self._unhandled(resolved.code, resolved.error)

        real_path = resolved.data.real_path
        collected = await collect_metadata(real_path, max_file_size=self.config.max_file_size)
        if not collected.ok:
            if collected.code == ErrorCode.FILE_TOO_LARGE.value:
                if self.config.debug:
                    logger.warning(
                        "File too large (%s > %s bytes): %s",
                        collected.meta.get("size"),
                        self.config.max_file_size,
                        real_path,
                    )
                return DispatchOutcome.Rejected(
                    413,
                    {"error": FILE_TOO_LARGE_ERROR, "limit": self.config.max_file_size},
                    reason="file too large",
                )
            return self._unhandled(collected.code, collected.error)

        metadata = await self._supervisor.enrich(collected.data or {}, real_path)
        return DispatchOutcome.Handled(metadata)

    def _unhandled(self, code: str, error: str | None) -> DispatchOutcome:
        if self.config.debug:
            logger.warning("Metadata request not handled (%s): %s", code, error)
        return DispatchOutcome.Unhandled(error or code, code=code)


Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


class MetaServe:
    """
    Owns the parser registry and configuration; builds per-root handlers.

    Usage:
        server = MetaServe(ServerConfig(debug=True))
        server.register(".jpg", image_parser)
        app = web.Application(middlewares=[server.middleware("/srv/media")])
    """

    def __init__(self, config: ServerConfig | None = None, registry: PluginRegistry | None = None):
        self.config = config if config is not None else ServerConfig()
        self.registry = registry if registry is not None else PluginRegistry()

    def register(self, extension: str, parser: ParserFunction) -> None:
        self.registry.register(extension, parser)

    def get_handler(self, root: str | os.PathLike[str]) -> MetadataDispatcher:
        return MetadataDispatcher(root, self.config, self.registry)

    def middleware(self, root: str | os.PathLike[str]):
        """aiohttp middleware: answers metadata requests, passes everything else on."""
        dispatcher = self.get_handler(root)

        @web.middleware
        async def metaserve_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
            outcome = await dispatcher.dispatch(request)
            response = outcome.to_response()
            if response is not None:
                return response
            return await handler(request)

        return metaserve_middleware

    def route_handler(self, root: str | os.PathLike[str]) -> Handler:
        """
        Plain aiohttp handler for a route table (``/{tail:.*}``).

        With no downstream handler to fall back to, unhandled requests get a
        JSON 404.
        """
        dispatcher = self.get_handler(root)

        async def metaserve_handler(request: web.Request) -> web.StreamResponse:
            outcome = await dispatcher.dispatch(request)
            response = outcome.to_response()
            if response is not None:
                return response
            return json_response({"error": "Not found"}, status=404)

        return metaserve_handler
