"""
Standalone aiohttp application serving metadata for one root directory.
"""

from __future__ import annotations

import argparse
import os
from collections.abc import Sequence

from aiohttp import web

from .config import ServerConfig
from .dispatcher import MetaServe
from .observability import ensure_observability
from .parsers import register_image_parsers
from .shared import get_logger

logger = get_logger(__name__)


def create_app(root: str | os.PathLike[str], server: MetaServe | None = None) -> web.Application:
    """
    Build an app where every ``?meta=1`` request is answered from ``root``.

    Anything the metadata handler does not claim falls through to the router,
    which has no routes and therefore answers 404.
    """
    if server is None:
        server = MetaServe(ServerConfig.from_env())
        register_image_parsers(server.registry)
    app = web.Application(middlewares=[server.middleware(root)])
    ensure_observability(app)
    return app


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="metaserve",
        description="Serve JSON file metadata for a directory over HTTP.",
    )
    parser.add_argument("root", help="Directory to serve metadata for")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--debug", action="store_true", default=None, help="Log rejections and parser errors")
    parser.add_argument("--timeout-ms", type=int, default=None, help="Parser deadline in milliseconds")
    parser.add_argument("--max-size", type=int, default=None, help="Largest file (bytes) to describe")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    root = os.path.abspath(args.root)
    if not os.path.isdir(root):
        logger.error("Root is not a directory: %s", root)
        return 2

    try:
        config = ServerConfig.from_env(
            debug=args.debug,
            parser_timeout_ms=args.timeout_ms,
            max_file_size=args.max_size,
        )
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    server = MetaServe(config)
    register_image_parsers(server.registry)
    logger.info(
        "Serving metadata for %s on http://%s:%s (parsers: %s)",
        root,
        args.host,
        args.port,
        ", ".join(server.registry.extensions()),
    )
    web.run_app(create_app(root, server), host=args.host, port=args.port, print=None)
    return 0
