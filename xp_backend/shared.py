"""Backend-facing alias for shared utilities."""

from __future__ import annotations

import xp_shared as _root_shared

Result = _root_shared.Result
ErrorCode = _root_shared.ErrorCode
get_logger = _root_shared.get_logger
set_log_level = _root_shared.set_log_level
log_success = _root_shared.log_success
log_structured = _root_shared.log_structured
file_id_var = _root_shared.file_id_var
classify_file = _root_shared.classify_file
sanitize_error_message = _root_shared.sanitize_error_message
error_from_result = _root_shared.error_from_result
get_error_severity = _root_shared.get_error_severity
severity_for_code = _root_shared.severity_for_code
format_error_message = _root_shared.format_error_message
ExtractionError = _root_shared.ExtractionError
FileKind = _root_shared.FileKind
EXTENSIONS = _root_shared.EXTENSIONS
SUPPORTED_FORMATS = _root_shared.SUPPORTED_FORMATS
timer = _root_shared.timer

__all__ = [
    "Result",
    "ErrorCode",
    "get_logger",
    "set_log_level",
    "log_success",
    "log_structured",
    "file_id_var",
    "classify_file",
    "FileKind",
    "EXTENSIONS",
    "SUPPORTED_FORMATS",
    "sanitize_error_message",
    "error_from_result",
    "get_error_severity",
    "severity_for_code",
    "format_error_message",
    "ExtractionError",
    "timer",
]
