"""Bundled example parsers."""

from .image import image_parser, read_image_info, register_image_parsers

__all__ = ["image_parser", "read_image_info", "register_image_parsers"]
