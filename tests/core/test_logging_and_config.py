import json
import logging

from xp_backend import config
from xp_backend.utils import parse_bool
from xp_shared.log import (
    ROOT_LOGGER_NAME,
    CorrelationFilter,
    EmojiFormatter,
    file_id_var,
    get_logger,
    log_structured,
    set_log_level,
)


def test_get_logger_strips_package_prefix() -> None:
    logger = get_logger("xp_backend.features.metadata.service")
    assert logger.name == f"{ROOT_LOGGER_NAME}.features.metadata.service"
    assert any(isinstance(f, CorrelationFilter) for f in logger.filters)


def test_emoji_formatter_includes_file_id() -> None:
    record = logging.LogRecord("extract_prompts.cli", logging.WARNING, __file__, 1, "careful", None, None)
    token = file_id_var.set("image.png")
    try:
        CorrelationFilter().filter(record)
    finally:
        file_id_var.reset(token)
    line = EmojiFormatter().format(record)
    assert "extract-prompts" in line
    assert "[image.png]" in line
    assert line.endswith("careful")


def test_set_log_level_accepts_names() -> None:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    previous = root.level
    try:
        set_log_level("debug")
        assert root.level == logging.DEBUG
        set_log_level("not-a-level")
        assert root.level == logging.WARNING
    finally:
        root.setLevel(previous)


def test_log_structured_emits_json(caplog) -> None:
    logger = logging.getLogger("xp_structured_test")
    with caplog.at_level(logging.INFO, logger="xp_structured_test"):
        log_structured(logger, logging.INFO, "probe done", file_path="a.mp4", tool="ffprobe")
    payload = json.loads(caplog.records[-1].getMessage())
    assert payload["message"] == "probe done"
    assert payload["context"] == {"file_path": "a.mp4", "tool": "ffprobe"}


def test_env_helpers_fall_back_and_clamp(monkeypatch) -> None:
    monkeypatch.setenv("XP_TEST_INT", "abc")
    assert config._env_int(4, "XP_TEST_INT") == 4
    monkeypatch.setenv("XP_TEST_INT", "500")
    assert config._env_int(4, "XP_TEST_INT", min_value=1, max_value=32) == 32
    monkeypatch.setenv("XP_TEST_FLOAT", "0.1")
    assert config._env_float(30.0, "XP_TEST_FLOAT", min_value=1.0) == 1.0
    monkeypatch.setenv("XP_TEST_RAW", "  ")
    assert config._env_raw("XP_TEST_RAW", default="d") == "d"
    monkeypatch.setenv("XP_TEST_BOOL", "yes")
    assert config._env_bool(False, "XP_TEST_BOOL") is True


def test_parse_bool() -> None:
    assert parse_bool("on") is True
    assert parse_bool("disabled", True) is False
    assert parse_bool("2") is True
    assert parse_bool("maybe", True) is True
    assert parse_bool(0) is False
