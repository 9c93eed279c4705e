"""Logging set-up: JSON lines to a rotating file, plain text to stdout."""

from __future__ import annotations

import gzip
import json
import logging
import os
import shutil
import sys
import time
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Union

LOGGER_NAME = "clashsub"
LOG_FILE = "app.log"
MAX_BYTES = 500 * 1024 * 1024
BACKUP_COUNT = 3
MAX_AGE_DAYS = 28

_LEVELS = {
    "debug": logging.DEBUG,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "info": logging.INFO,
}

_LEVEL_NAMES = {"WARNING": "WARN", "CRITICAL": "FATAL"}


def log_level(name: str) -> int:
    """Map a level name to a logging level; unknown names mean INFO."""
    return _LEVELS.get(name.lower(), logging.INFO)


def _timestamp(record: logging.LogRecord) -> str:
    return datetime.fromtimestamp(record.created).astimezone().isoformat(timespec="milliseconds")


def _level_name(record: logging.LogRecord) -> str:
    return _LEVEL_NAMES.get(record.levelname, record.levelname)


def _fields(record: logging.LogRecord) -> dict:
    fields = getattr(record, "fields", None)
    return dict(fields) if isinstance(fields, dict) else {}


class _JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {"level": _level_name(record), "ts": _timestamp(record), "msg": record.getMessage()}
        entry.update(_fields(record))
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class _ConsoleFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        parts = [_timestamp(record), _level_name(record), record.getMessage()]
        fields = _fields(record)
        if fields:
            parts.append(json.dumps(fields, ensure_ascii=False, default=str))
        line = "\t".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _compressed_name(name: str) -> str:
    return name + ".gz"


def _compress(source: str, dest: str) -> None:
    with open(source, "rb") as src, gzip.open(dest, "wb") as dst:
        shutil.copyfileobj(src, dst)
    os.remove(source)
    _prune_old_backups(Path(dest).parent, Path(source).name)


def _prune_old_backups(directory: Path, base_name: str) -> None:
    cutoff = time.time() - MAX_AGE_DAYS * 24 * 3600
    for backup in directory.glob(base_name + ".*.gz"):
        try:
            if backup.stat().st_mtime < cutoff:
                backup.unlink()
        except OSError:
            pass


def setup_logging(
    level: Union[str, int] = "info", log_dir: Union[str, "os.PathLike[str]"] = "logs"
) -> logging.Logger:
    """Configure and return the package logger; replaces earlier handlers."""
    numeric = log_level(level) if isinstance(level, str) else level
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    file_handler = RotatingFileHandler(
        directory / LOG_FILE, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8"
    )
    file_handler.namer = _compressed_name
    file_handler.rotator = _compress
    file_handler.setFormatter(_JSONFormatter())
    file_handler.setLevel(numeric)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(_ConsoleFormatter())
    console_handler.setLevel(numeric)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)
    logger.setLevel(numeric)
    logger.propagate = False
    return logger