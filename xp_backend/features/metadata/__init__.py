"""Metadata extraction feature."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .service import MetadataService

__all__ = [
    "MetadataService",
    "extract_png_metadata",
    "extract_jpeg_metadata",
    "extract_webp_metadata",
    "extract_video_metadata",
]

_EXTRACTOR_NAMES = ("extract_png_metadata", "extract_jpeg_metadata", "extract_webp_metadata", "extract_video_metadata")


def __getattr__(name: str):
    if name == "MetadataService":
        from .service import MetadataService as _MetadataService

        return _MetadataService
    if name in _EXTRACTOR_NAMES:
        from . import extractors

        return getattr(extractors, name)
    raise AttributeError(name)
