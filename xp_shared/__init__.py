"""Shared utilities for extract-prompts."""
from .errors import (
    ErrorSeverity,
    ExternalCommandError,
    ExtractionError,
    FileAccessError,
    MetadataNotFoundError,
    ParseError,
    UnsupportedFormatError,
    ValidationError,
    error_from_result,
    format_error_message,
    get_error_severity,
    sanitize_error_message,
    severity_for_code,
)
from .log import file_id_var, get_logger, log_structured, log_success, set_log_level
from .result import Result
from .time import now, timer
from .types import EXTENSIONS, SUPPORTED_FORMATS, ErrorCode, FileKind, classify_file

__all__ = [
    "Result",
    "get_logger",
    "set_log_level",
    "log_success",
    "log_structured",
    "file_id_var",
    "now",
    "timer",
    "FileKind",
    "ErrorCode",
    "EXTENSIONS",
    "SUPPORTED_FORMATS",
    "classify_file",
    "ErrorSeverity",
    "ExtractionError",
    "UnsupportedFormatError",
    "MetadataNotFoundError",
    "ParseError",
    "FileAccessError",
    "ExternalCommandError",
    "ValidationError",
    "get_error_severity",
    "severity_for_code",
    "format_error_message",
    "sanitize_error_message",
    "error_from_result",
]
