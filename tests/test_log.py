import json
import logging

import pytest

from clashsub.log import log_level, setup_logging


@pytest.fixture
def configured(tmp_path):
    loggers = []

    def make(level="info"):
        logger = setup_logging(level, tmp_path)
        loggers.append(logger)
        return logger

    yield make
    for logger in loggers:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()


def _file_entries(logger, tmp_path):
    for handler in logger.handlers:
        handler.flush()
    lines = (tmp_path / "app.log").read_text(encoding="utf-8").splitlines()
    return [json.loads(line) for line in lines]


@pytest.mark.parametrize(
    "name, expected",
    [
        ("debug", logging.DEBUG),
        ("DEBUG", logging.DEBUG),
        ("warn", logging.WARNING),
        ("error", logging.ERROR),
        ("info", logging.INFO),
        ("verbose", logging.INFO),
    ],
)
def test_log_level(name, expected):
    assert log_level(name) == expected


def test_file_receives_json(configured, tmp_path):
    logger = configured("info")
    logger.info("hello", extra={"fields": {"url": "http://example.com"}})
    entries = _file_entries(logger, tmp_path)
    assert entries[-1]["msg"] == "hello"
    assert entries[-1]["level"] == "INFO"
    assert entries[-1]["url"] == "http://example.com"
    assert "ts" in entries[-1]


def test_warning_level_name(configured, tmp_path):
    logger = configured("warn")
    logger.warning("careful")
    assert _file_entries(logger, tmp_path)[-1]["level"] == "WARN"


def test_debug_filtered_at_info(configured, tmp_path):
    logger = configured("info")
    logger.debug("hidden")
    logger.info("shown")
    messages = [e["msg"] for e in _file_entries(logger, tmp_path)]
    assert messages == ["shown"]


def test_debug_kept_at_debug(configured, tmp_path):
    logger = configured("debug")
    logger.debug("visible")
    assert [e["msg"] for e in _file_entries(logger, tmp_path)] == ["visible"]


def test_console_output(configured, capsys):
    logger = configured("info")
    logger.error("broken")
    out = capsys.readouterr().out
    assert "\tERROR\tbroken" in out


def test_repeated_setup_does_not_duplicate(configured, tmp_path):
    configured("info")
    logger = configured("info")
    assert len(logger.handlers) == 2
    logger.info("once")
    assert [e["msg"] for e in _file_entries(logger, tmp_path)] == ["once"]