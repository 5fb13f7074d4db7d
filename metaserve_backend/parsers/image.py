"""
Pillow-backed image parser.

Reads only the header (``Image.open`` is lazy), so dimensions are cheap even
for large files.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

from PIL import Image

from ..features.metadata.registry import PluginRegistry
from ..shared import IMAGE_EXTENSIONS

_EXIF_ORIENTATION_TAG = 0x0112


def _read_orientation(img: Any) -> Optional[int]:
    try:
        exif = img.getexif()
    except Exception:
        return None
    value = exif.get(_EXIF_ORIENTATION_TAG) if exif else None
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def read_image_info(path: str) -> Dict[str, Any]:
    """
    Return width, height, format and EXIF orientation for ``path``.

    Raises whatever Pillow raises for unreadable files; the supervisor turns
    that into a warning.
    """
    with Image.open(path) as img:
        return {
            "width": int(img.width),
            "height": int(img.height),
            "format": (img.format or "").lower() or None,
            "orientation": _read_orientation(img),
        }


async def image_parser(path: str) -> Dict[str, Any]:
    return await asyncio.to_thread(read_image_info, path)


def register_image_parsers(registry: PluginRegistry) -> None:
    registry.register_many(sorted(IMAGE_EXTENSIONS), image_parser)
