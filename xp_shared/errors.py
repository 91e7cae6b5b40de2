"""
Typed extraction errors and helpers for turning them into user-facing text.
"""
from __future__ import annotations

import os
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from .log import get_logger
from .types import SUPPORTED_FORMATS, ErrorCode

logger = get_logger(__name__)
_DEBUG_MODE = os.getenv("XP_DEBUG", "").strip().lower() in ("1", "true", "yes", "on")
_WINDOWS_PATH_RE = re.compile(r"[A-Za-z]:\\[^\s]+")
_UNC_PATH_RE = re.compile(r"\\\\[^\s\\]+\\[^\s]+")
_UNIX_PATH_RE = re.compile(r"(?<![A-Za-z0-9:/?&=#%])/(?!/)[^\s#?]+")
_RAW_DATA_PREVIEW = 200


class ErrorSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ExtractionError(Exception):
    """Base class for every error raised while extracting metadata from a file."""

    severity: ErrorSeverity = ErrorSeverity.CRITICAL

    def __init__(
        self,
        message: str,
        code: ErrorCode | str,
        file_path: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code.value if isinstance(code, ErrorCode) else str(code)
        self.file_path = file_path
        self.context = dict(context or {})
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable representation."""
        return {
            "name": type(self).__name__,
            "message": self.message,
            "code": self.code,
            "severity": get_error_severity(self).value,
            "filePath": self.file_path,
            "context": self.context,
            "timestamp": self.timestamp.isoformat().replace("+00:00", "Z"),
        }


class UnsupportedFormatError(ExtractionError):
    severity = ErrorSeverity.MEDIUM

    def __init__(self, file_path: str, extension: str, supported_formats: Optional[list[str]] = None):
        formats = list(supported_formats or SUPPORTED_FORMATS)
        message = f"Unsupported file format: {extension}. Supported formats: {', '.join(formats)}"
        super().__init__(
            message,
            ErrorCode.UNSUPPORTED,
            file_path,
            {"extension": extension, "supportedFormats": formats},
        )
        self.extension = extension
        self.supported_formats = formats


class MetadataNotFoundError(ExtractionError):
    severity = ErrorSeverity.LOW

    def __init__(self, file_path: str, file_type: str, searched_fields: Optional[list[str]] = None):
        fields = list(searched_fields or [])
        message = f"No workflow metadata found in {file_type} file: {file_path}"
        super().__init__(
            message,
            ErrorCode.METADATA_NOT_FOUND,
            file_path,
            {"fileType": file_type, "searchedFields": fields},
        )
        self.file_type = file_type
        self.searched_fields = fields


class ParseError(ExtractionError):
    severity = ErrorSeverity.MEDIUM

    def __init__(
        self,
        message: str,
        original_error: BaseException,
        raw_data: str,
        parse_type: str = "JSON",
        file_path: Optional[str] = None,
    ):
        super().__init__(
            f"{parse_type} parse error: {message}",
            ErrorCode.PARSE_ERROR,
            file_path,
            {
                "originalError": str(original_error),
                "rawData": str(raw_data)[:_RAW_DATA_PREVIEW],
                "parseType": parse_type,
            },
        )
        self.original_error = original_error
        self.raw_data = raw_data
        self.parse_type = parse_type


class FileAccessError(ExtractionError):
    severity = ErrorSeverity.HIGH

    def __init__(self, file_path: str, operation: str, system_error: BaseException):
        message = f"File access error during {operation}: {system_error}"
        super().__init__(
            message,
            ErrorCode.FILE_ACCESS_ERROR,
            file_path,
            {"operation": operation, "systemError": str(system_error)},
        )
        self.operation = operation
        self.system_error = system_error


class ExternalCommandError(ExtractionError):
    severity = ErrorSeverity.HIGH

    def __init__(
        self,
        command: str,
        args: list[str],
        exit_code: Optional[int],
        stderr: str,
        file_path: Optional[str] = None,
    ):
        shown = exit_code if exit_code is not None else "unknown"
        message = f"External command failed: {command} (exit code: {shown})"
        super().__init__(
            message,
            ErrorCode.EXTERNAL_COMMAND_ERROR,
            file_path,
            {"command": command, "args": list(args), "exitCode": exit_code, "stderr": stderr},
        )
        self.command = command
        self.args_list = list(args)
        self.exit_code = exit_code
        self.stderr = stderr


class ValidationError(ExtractionError):
    severity = ErrorSeverity.MEDIUM

    def __init__(
        self,
        message: str,
        validation_type: str,
        validation_details: Optional[dict[str, Any]] = None,
        file_path: Optional[str] = None,
    ):
        details = dict(validation_details or {})
        super().__init__(
            f"Validation error ({validation_type}): {message}",
            ErrorCode.VALIDATION_ERROR,
            file_path,
            {"validationType": validation_type, "validationDetails": details},
        )
        self.validation_type = validation_type
        self.validation_details = details


def get_error_severity(error: BaseException) -> ErrorSeverity:
    """Classify an error; anything outside the extraction hierarchy is critical."""
    if isinstance(error, ExtractionError):
        return error.severity
    return ErrorSeverity.CRITICAL


def format_error_message(error: BaseException) -> str:
    """Human readable message, suffixed with the offending file when known."""
    if isinstance(error, ExtractionError):
        if error.file_path:
            return f"{error.message} ({error.file_path})"
        return error.message
    return str(error)


_CODE_SEVERITY: dict[str, ErrorSeverity] = {
    ErrorCode.METADATA_NOT_FOUND.value: ErrorSeverity.LOW,
    ErrorCode.UNSUPPORTED.value: ErrorSeverity.MEDIUM,
    ErrorCode.PARSE_ERROR.value: ErrorSeverity.MEDIUM,
    ErrorCode.VALIDATION_ERROR.value: ErrorSeverity.MEDIUM,
    ErrorCode.INVALID_INPUT.value: ErrorSeverity.MEDIUM,
    ErrorCode.FILE_ACCESS_ERROR.value: ErrorSeverity.HIGH,
    ErrorCode.NOT_FOUND.value: ErrorSeverity.HIGH,
    ErrorCode.EXTERNAL_COMMAND_ERROR.value: ErrorSeverity.HIGH,
    ErrorCode.FFPROBE_ERROR.value: ErrorSeverity.HIGH,
    ErrorCode.TOOL_MISSING.value: ErrorSeverity.HIGH,
    ErrorCode.TIMEOUT.value: ErrorSeverity.HIGH,
}


def severity_for_code(code: ErrorCode | str) -> ErrorSeverity:
    """Severity of an error code carried by a `Result.Err`."""
    value = code.value if isinstance(code, ErrorCode) else str(code)
    return _CODE_SEVERITY.get(value, ErrorSeverity.CRITICAL)


def _mask_paths(value: str) -> str:
    """Mask path-looking substrings to avoid leaking filesystem structure."""
    cleaned = _WINDOWS_PATH_RE.sub("[path]", value)
    cleaned = _UNC_PATH_RE.sub("[path]", cleaned)
    cleaned = _UNIX_PATH_RE.sub("[path]", cleaned)
    return cleaned


def sanitize_error_message(exc: Any, fallback: str) -> str:
    """
    Build a safe error message for shared reports.

    Args:
        exc: Exception or raw value to sanitize.
        fallback: Fallback message to show when nothing meaningful remains.

    Returns:
        A single-line string with filesystem paths masked.
    """
    if not fallback:
        fallback = "An error occurred"

    if exc is None:
        return fallback

    raw = str(exc)
    if not raw:
        return fallback

    sanitized = _mask_paths(raw.replace(os.getcwd(), "[cwd]"))
    sanitized = " ".join(sanitized.splitlines()).strip()

    if _DEBUG_MODE:
        logger.debug("Sanitized error payload: %s", sanitized)

    if sanitized:
        return f"{fallback}: {sanitized[:200]}"
    return fallback


def error_from_result(result: Any, file_path: Optional[str] = None) -> ExtractionError:
    """
    Rebuild a typed error from a failed `Result`.

    `result.meta` may carry the details a specific error type needs
    (`extension`, `operation`, `command`/`args`/`exit_code`/`stderr`, ...).
    """
    meta = dict(getattr(result, "meta", None) or {})
    message = str(getattr(result, "error", None) or "Unknown error")
    code = str(getattr(result, "code", None) or "")
    path = file_path or meta.get("file_path")

    if code == ErrorCode.UNSUPPORTED.value:
        return UnsupportedFormatError(path or "", str(meta.get("extension") or ""), meta.get("supported_formats"))
    if code == ErrorCode.METADATA_NOT_FOUND.value:
        return MetadataNotFoundError(path or "", str(meta.get("file_type") or "unknown"), meta.get("searched_fields"))
    if code == ErrorCode.PARSE_ERROR.value:
        return ParseError(message, ValueError(message), str(meta.get("raw_data") or ""), str(meta.get("parse_type") or "JSON"), path)
    if code in (ErrorCode.FILE_ACCESS_ERROR.value, ErrorCode.NOT_FOUND.value):
        return FileAccessError(path or "", str(meta.get("operation") or "read"), OSError(message))
    if code in (ErrorCode.EXTERNAL_COMMAND_ERROR.value, ErrorCode.FFPROBE_ERROR.value, ErrorCode.TIMEOUT.value, ErrorCode.TOOL_MISSING.value):
        return ExternalCommandError(
            str(meta.get("command") or "ffprobe"),
            list(meta.get("args") or []),
            meta.get("exit_code"),
            str(meta.get("stderr") or message),
            path,
        )
    if code == ErrorCode.VALIDATION_ERROR.value:
        return ValidationError(message, str(meta.get("validation_type") or "input"), meta.get("validation_details"), path)
    return ExtractionError(message, code or "UNKNOWN_ERROR", path, meta)
