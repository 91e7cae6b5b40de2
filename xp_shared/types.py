"""
Shared types, enums, and constants.
"""
import os
from enum import Enum
from typing import Final, Literal

# File type classifications
FileKind = Literal["image", "video", "unknown"]

# Error codes
class ErrorCode(str, Enum):
    """Standardized error codes (string enum)."""

    # Client / validation
    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Feature / tool availability
    UNSUPPORTED = "UNSUPPORTED"
    TOOL_MISSING = "TOOL_MISSING"
    TIMEOUT = "TIMEOUT"

    # Extraction
    METADATA_NOT_FOUND = "METADATA_NOT_FOUND"
    FILE_ACCESS_ERROR = "FILE_ACCESS_ERROR"
    EXTERNAL_COMMAND_ERROR = "EXTERNAL_COMMAND_ERROR"
    FFPROBE_ERROR = "FFPROBE_ERROR"
    PARSE_ERROR = "PARSE_ERROR"

    # Conversion / output
    CONVERSION_FAILED = "CONVERSION_FAILED"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    WRITE_FAILED = "WRITE_FAILED"

# File extensions by type
EXTENSIONS: Final[dict[FileKind, set[str]]] = {
    "image": {".png", ".jpg", ".jpeg", ".webp"},
    "video": {".mp4", ".mov", ".webm"},
    "unknown": set(),
}

SUPPORTED_FORMATS: Final[tuple[str, ...]] = ("png", "jpg", "jpeg", "webp", "mp4", "webm", "mov")

def classify_file(filename: str) -> FileKind:
    """
    Classify file by extension.

    Args:
        filename: File name or path

    Returns:
        File kind (image, video, unknown)
    """
    ext = os.path.splitext(filename)[1].lower()

    for kind, exts in EXTENSIONS.items():
        if ext in exts:
            return kind

    return "unknown"
