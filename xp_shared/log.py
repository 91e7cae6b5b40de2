"""
Logging utilities with consistent formatting and emoji indicators.
"""
import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Final

# Emoji indicators for log levels
EMOJI_MAP: Final[dict[str, str]] = {
    "DEBUG": "🔍",
    "INFO": "ℹ️",
    "WARNING": "⚠️",
    "ERROR": "❌",
    "CRITICAL": "🔥",
    "SUCCESS": "✅",
}

# Global logger prefix
PREFIX: Final[str] = "🧩 extract-prompts"
ROOT_LOGGER_NAME: Final[str] = "extract_prompts"

# Correlation id of the file currently being processed (set by the CLI loop).
file_id_var: ContextVar[str] = ContextVar("file_id", default="")


class CorrelationFilter(logging.Filter):
    """Inject `file_id` from `file_id_var` into each log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Attach `record.file_id` for correlation; always returns True."""
        record.file_id = file_id_var.get("")
        return True


class EmojiFormatter(logging.Formatter):
    """Custom formatter that adds emoji based on log level."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as a single line with a prefix and emoji."""
        emoji = EMOJI_MAP.get(record.levelname, "🧩")

        # Format: 🧩 extract-prompts [✅] module [file]: message
        fid = str(getattr(record, "file_id", "") or "").strip()
        fid_part = f" [{fid}]" if fid else ""
        log_format = f"{PREFIX} [{emoji}] %(name)s{fid_part}: %(message)s"
        formatter = logging.Formatter(log_format)
        return formatter.format(record)


def _ensure_correlation_filter(logger: logging.Logger) -> None:
    if any(isinstance(f, CorrelationFilter) for f in logger.filters):
        return
    logger.addFilter(CorrelationFilter())


def get_logger(name: str, level: int | None = None) -> logging.Logger:
    """
    Get a logger with the extract-prompts prefix and emoji indicators.

    Args:
        name: Logger name (usually __name__)
        level: Optional logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured logger instance with emoji formatting
    """
    # Clean name (drop the package prefix)
    if name.startswith("__main__"):
        name = "main"
    elif "." in name:
        parts = name.split(".")
        if parts[0] in ("xp_backend", "xp_shared"):
            name = ".".join(parts[1:]) or parts[0]

    logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
    _ensure_correlation_filter(logger)

    if level is not None:
        logger.setLevel(level)

    # Handler lives on the package root so `set_log_level` reaches every module.
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(EmojiFormatter())
        handler.addFilter(CorrelationFilter())
        root.addHandler(handler)
        root.setLevel(logging.WARNING)

        # Prevent propagation to avoid duplicate logs
        root.propagate = False

    return logger


def set_log_level(level: int | str) -> None:
    """Set the level of every extract-prompts logger at once."""
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        level = resolved if isinstance(resolved, int) else logging.WARNING
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(level)

# Add SUCCESS level
SUCCESS_LEVEL: Final[int] = 25  # Between INFO (20) and WARNING (30)
logging.addLevelName(SUCCESS_LEVEL, "SUCCESS")

def log_success(logger: logging.Logger, message: str) -> None:
    """
    Log a success message with ✅ emoji.

    Args:
        logger: Logger instance
        message: Success message
    """
    logger.log(SUCCESS_LEVEL, message)

def log_structured(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """Emit a structured JSON log entry with contextual fields."""
    payload = {
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "context": context,
    }
    logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))
