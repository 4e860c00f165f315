"""Logging helpers for the mobiledoc-md command line."""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, TextIO

__all__ = [
    "JsonLogFormatter",
    "configure_logger",
]


class JsonLogFormatter(logging.Formatter):
    """Emit log records as structured JSON lines."""

    _RESERVED = {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "message",
        "asctime",
    }

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extras = {
            key: _coerce_value(value)
            for key, value in record.__dict__.items()
            if key not in self._RESERVED
        }
        if extras:
            payload["extra"] = extras
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info
        return json.dumps(payload, ensure_ascii=True)


def configure_logger(
    name: str,
    *,
    prog: str,
    level: str = "WARNING",
    log_file: Path | None = None,
    stream: TextIO | None = None,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> logging.Logger:
    """Configure and return a namespaced logger.

    Console output goes to ``stream`` (stderr by default) prefixed with
    ``prog``. When ``log_file`` is given, records are also written there as
    JSON lines at DEBUG level.
    """

    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(logging.DEBUG)

    console = _ensure_console_handler(logger, stream or sys.stderr)
    console.setLevel(_coerce_level(level))
    console.setFormatter(logging.Formatter(f"{prog}: %(message)s"))

    if log_file is not None:
        _ensure_file_handler(
            logger=logger,
            path=log_file.expanduser(),
            max_bytes=max_bytes,
            backup_count=backup_count,
        )
    else:
        _remove_file_handler(logger)

    return logger


def _coerce_level(level: str) -> int:
    name = level.upper()
    numeric = logging.getLevelName(name)
    if isinstance(numeric, int):
        return numeric
    return logging.WARNING


def _ensure_console_handler(
    logger: logging.Logger, stream: TextIO
) -> logging.StreamHandler:
    for handler in logger.handlers:
        if getattr(handler, "_mobiledoc_md_console", False):
            handler.setStream(stream)  # type: ignore[attr-defined]
            return handler  # type: ignore[return-value]
    console = logging.StreamHandler(stream=stream)
    console._mobiledoc_md_console = True  # type: ignore[attr-defined]
    logger.addHandler(console)
    return console


def _ensure_file_handler(
    *,
    logger: logging.Logger,
    path: Path,
    max_bytes: int,
    backup_count: int,
) -> RotatingFileHandler:
    for handler in logger.handlers:
        if getattr(handler, "_mobiledoc_md_file", False):
            if handler.baseFilename == os.path.abspath(path):  # type: ignore[attr-defined]
                return handler  # type: ignore[return-value]
            logger.removeHandler(handler)
            handler.close()
            break
    path.parent.mkdir(parents=True, exist_ok=True)
    managed = RotatingFileHandler(
        path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    managed.setLevel(logging.DEBUG)
    managed.setFormatter(JsonLogFormatter())
    managed._mobiledoc_md_file = True  # type: ignore[attr-defined]
    logger.addHandler(managed)
    return managed


def _remove_file_handler(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        if getattr(handler, "_mobiledoc_md_file", False):
            logger.removeHandler(handler)
            handler.close()


def _coerce_value(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(key): _coerce_value(val) for key, val in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_coerce_value(item) for item in value]
    return repr(value)
