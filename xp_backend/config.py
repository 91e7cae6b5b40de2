"""
Configuration for extract-prompts.

Every value can be overridden through an `XP_*` environment variable; bad
values are logged and replaced by the default.
"""
import logging
import os

from .utils import env_bool

logger = logging.getLogger(__name__)


def _env_raw(*names: str, default: str | None = None) -> str | None:
    for name in names:
        if not name:
            continue
        val = os.getenv(name)
        if val is not None and str(val).strip() != "":
            return str(val).strip()
    return default


def _env_int(default: int, *names: str, min_value: int | None = None, max_value: int | None = None) -> int:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid integer for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, max_value)
        value = max_value
    return value


def _env_float(default: float, *names: str, min_value: float | None = None, max_value: float | None = None) -> float:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid float for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, max_value)
        value = max_value
    return value


def _env_bool(default: bool, *names: str) -> bool:
    for name in names:
        if name and name in os.environ:
            return env_bool(name, default)
    return default


# External tool overrides (bundled vs. system-wide)
FFPROBE_BIN = _env_raw("XP_FFPROBE_PATH", "XP_FFPROBE_BIN", default="ffprobe") or "ffprobe"
FFPROBE_TIMEOUT = _env_float(30.0, "XP_FFPROBE_TIMEOUT", min_value=1.0, max_value=300.0)
FFPROBE_MAX_WORKERS = _env_int(4, "XP_FFPROBE_MAX_WORKERS", min_value=1, max_value=32)

# Probe results are cached per path for this long (seconds)
METADATA_CACHE_TTL = _env_float(300.0, "XP_METADATA_CACHE_TTL", min_value=1.0)

# A1111 -> ComfyUI conversion defaults
DEFAULT_MODEL_NAME = _env_raw("XP_DEFAULT_MODEL", default="sd_xl_base_1.0.safetensors") or "sd_xl_base_1.0.safetensors"
DEFAULT_CANVAS_SIZE = _env_raw("XP_DEFAULT_SIZE", default="512x512") or "512x512"
DEFAULT_START_NODE_ID = _env_int(1, "XP_START_NODE_ID", min_value=1)

# Logging
LOG_LEVEL = (_env_raw("XP_LOG_LEVEL", default="WARNING") or "WARNING").upper()
DEBUG = _env_bool(False, "XP_DEBUG")
