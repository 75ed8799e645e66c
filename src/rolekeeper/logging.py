# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Logging setup for rolekeeper.

Library modules only call ``logging.getLogger(__name__)`` and attach
structured context as ``extra={"extra_data": {...}}`` (role, account,
expiry, event fields). Installing handlers is left to the host application;
the CLI does it through :func:`configure_logging`.

Two output styles:
- JSON lines, with the structured context under ``"extra"``
- Plain text for terminals, with the context appended as ``key=value``
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

_LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}
_RESET = "\033[0m"


def _context(record: logging.LogRecord) -> dict[str, Any]:
    data = getattr(record, "extra_data", None)
    return data if isinstance(data, dict) else {}


class JSONFormatter(logging.Formatter):
    """Render each record as one JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = _context(record)
        if context:
            entry["extra"] = context
        if record.levelno >= logging.WARNING:
            entry["source"] = {"file": record.pathname, "line": record.lineno, "function": record.funcName}
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class StandardFormatter(logging.Formatter):
    """Single-line text output, colored when writing to a terminal."""

    def __init__(self, use_colors: bool = True):
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s", "%H:%M:%S")
        self.use_colors = use_colors and sys.stderr.isatty()

    def formatMessage(self, record: logging.LogRecord) -> str:  # noqa: N802 - logging API
        line = super().formatMessage(record)
        context = _context(record)
        if context:
            line += " " + " ".join(f"{key}={value}" for key, value in context.items())
        if self.use_colors:
            color = _LEVEL_COLORS.get(record.levelno, "")
            line = f"{color}{line}{_RESET}"
        return line


def _resolve_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _wants_json(log_format: str) -> bool:
    choice = log_format.strip().lower()
    if choice in ("json", "text"):
        return choice == "json"
    return not sys.stderr.isatty()


def configure_logging(
    level: str | int | None = None,
    json_format: bool | None = None,
    log_file: str | None = None,
) -> None:
    """Replace the root logger's handlers.

    Any argument left as None falls back to RoleKeeperSettings
    (``ROLEKEEPER_LOG_LEVEL``, ``ROLEKEEPER_LOG_FORMAT``, ``ROLEKEEPER_LOG_FILE``).
    With no format configured, JSON is used unless stderr is a terminal.
    A log file always receives JSON.
    """
    from .config import get_config

    config = get_config()
    if json_format is None:
        json_format = _wants_json(config.log_format)
    if log_file is None:
        log_file = config.log_file

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(JSONFormatter() if json_format else StandardFormatter())
    handlers: list[logging.Handler] = [console]
    if log_file:
        to_file = logging.FileHandler(log_file, encoding="utf-8")
        to_file.setFormatter(JSONFormatter())
        handlers.append(to_file)

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(_resolve_level(level if level is not None else config.log_level))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
