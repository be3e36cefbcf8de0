from __future__ import annotations

import dataclasses
import json
import logging
import os
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Any, TextIO

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    parts = [f"event={event}"]
    for key, value in fields.items():
        parts.append(f"{key}={value}")
    logger.log(level, " ".join(parts))


class _ConsoleHandler(logging.StreamHandler):
    """The one console handler ``configure_logging`` owns on the root logger."""


def configure_logging(
    logger_name: str,
    default_level: str = "INFO",
    *,
    stream: TextIO | None = None,
) -> logging.Logger:
    # stdout carries command output (progress lines, --json); logs default to stderr
    level = _parse_level(os.environ.get("BD_LOG_LEVEL", default_level))
    root = logging.getLogger()
    root.setLevel(level)
    _install_console_handler(root, stream if stream is not None else sys.stderr, level)
    log_path = os.environ.get("BD_LOG_FILE")
    if log_path:
        _install_file_handler(root, os.path.abspath(log_path), level)
    _apply_level_overrides(os.environ.get("BD_LOG_LEVELS", ""))
    return logging.getLogger(logger_name)


def _parse_level(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def _install_console_handler(root: logging.Logger, stream: TextIO, level: int) -> None:
    for handler in root.handlers:
        if isinstance(handler, _ConsoleHandler):
            handler.setStream(stream)
            handler.setLevel(level)
            return
    handler = _ConsoleHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)


def _install_file_handler(root: logging.Logger, log_path: str, level: int) -> None:
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == log_path:
            handler.setLevel(level)
            return
    os.makedirs(os.path.dirname(log_path), exist_ok=True)
    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)


def _apply_level_overrides(overrides: str) -> None:
    for item in overrides.split(","):
        name, sep, level = item.partition("=")
        if not sep or not name.strip():
            continue
        logging.getLogger(name.strip()).setLevel(_parse_level(level))


def json_dumps(value: Any, *, indent: int | None = None) -> str:
    return json.dumps(value, default=_json_default, sort_keys=True, indent=indent, ensure_ascii=False)


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if isinstance(value, (set, tuple)):
        return list(value)
    return str(value)


def utc_now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()
