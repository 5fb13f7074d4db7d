"""
Shared types, enums, and constants.
"""
import os
from enum import Enum
from typing import Final


class ErrorCode(str, Enum):
    """Standardized error codes (string enum)."""

    # Client / validation
    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"

    # Refusals authored by the metadata handler
    ACCESS_DENIED = "ACCESS_DENIED"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"

    # Filesystem
    STAT_FAILED = "STAT_FAILED"

    # Parser supervision
    PARSER_TIMEOUT = "PARSER_TIMEOUT"
    PARSER_FAILED = "PARSER_FAILED"


# Raster formats handled by the bundled Pillow parser.
IMAGE_EXTENSIONS: Final[frozenset[str]] = frozenset(
    {".png", ".jpg", ".jpeg", ".webp", ".gif", ".bmp", ".tif", ".tiff"}
)


def normalize_extension(extension: str) -> str:
    """
    Normalize an extension to lowercase with exactly one leading dot.

    ``"JPG"`` -> ``".jpg"``, ``".Png"`` -> ``".png"``.

    Raises:
        ValueError: if nothing remains after stripping dots.
    """
    raw = str(extension or "").strip().lstrip(".").lower()
    if not raw:
        raise ValueError(f"Invalid extension: {extension!r}")
    return f".{raw}"


def extension_of(path: str) -> str:
    """Lowercase extension of ``path`` including the dot, ``""`` if none."""
    return os.path.splitext(path)[1].lower()
