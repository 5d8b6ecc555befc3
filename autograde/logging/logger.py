# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Structured JSON logger for autograde.

Every log entry is a single JSON line with a timestamp, level, source module
and message, plus whatever structured context the caller attached via
`extra` (submission name, test name, elapsed time and so on).

How this works:
  - All loggers live under the "autograde" namespace. Only that package-level
    logger owns handlers; module loggers propagate to it, so changing the
    level once (from the CLI's --log-level) affects the whole package.
  - Output goes to stderr. Stdout is reserved for the score lines the CLI
    prints for each submission.
  - `get_logger` is the only way to create loggers in this codebase.

The JSON structure looks like:
  {"ts": "2026-...", "level": "INFO", "module": "autograde.evaluation.runner.executor", "msg": "...", ...}
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "autograde"


class JsonFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON objects.

    Each log entry contains four mandatory fields:
      ts     — ISO 8601 UTC timestamp
      level  — log level name
      module — the logger name (usually the Python module path)
      msg    — the formatted message string

    Fields passed through `extra` are merged into the object as-is.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "msg": record.getMessage(),
        }

        standard_attrs = {
            "name",
            "msg",
            "args",
            "created",
            "relativeCreated",
            "exc_info",
            "exc_text",
            "stack_info",
            "lineno",
            "funcName",
            "pathname",
            "filename",
            "module",
            "levelno",
            "levelname",
            "processName",
            "process",
            "threadName",
            "thread",
            "message",
            "msecs",
            "taskName",
        }
        for key, value in record.__dict__.items():
            if key not in standard_attrs and not key.startswith("_"):
                entry[key] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class _StderrHandler(logging.StreamHandler):
    """
    StreamHandler that always writes to the *current* sys.stderr.

    Binding the stream at construction time breaks as soon as something
    swaps sys.stderr out (pytest's capture does exactly that).
    """

    @property  # type: ignore[override]
    def stream(self):  # type: ignore[no-untyped-def]
        return sys.stderr

    @stream.setter
    def stream(self, value) -> None:  # type: ignore[no-untyped-def]
        pass


_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _resolve_log_level(level_name: str) -> int:
    """Turn a level name string into the corresponding logging constant."""
    upper = level_name.upper()
    if upper not in _VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid log level '{level_name}'. Must be one of: {', '.join(sorted(_VALID_LOG_LEVELS))}"
        )
    return getattr(logging, upper)


def _package_logger() -> logging.Logger:
    """Return the package logger, attaching the stderr handler on first use."""
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = _StderrHandler()
        handler.setFormatter(JsonFormatter())
        root.addHandler(handler)
        root.setLevel(logging.INFO)
        # Don't propagate to the interpreter's root logger; the package handlers own the output.
        root.propagate = False
    return root


def get_logger(
    name: str,
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Get a structured JSON logger.

    Every module calls this once at import time with its own `__name__`.
    The CLI calls it again with `log_level` (and optionally `log_file`) to
    reconfigure the whole package.

    Args:
        name: Logger name, typically __name__ of the calling module.
        log_level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL. Applies to
                   every autograde logger, not just this one.
        log_file: Optional path to a log file. If provided, logs go to both
                  stderr and the file.

    Returns:
        A logging.Logger that outputs structured JSON.
    """
    root = _package_logger()

    if log_level is not None:
        root.setLevel(_resolve_log_level(log_level))

    if log_file is not None:
        resolved = str(log_file.resolve())
        already_attached = any(
            isinstance(h, logging.FileHandler) and h.baseFilename == resolved
            for h in root.handlers
        )
        if not already_attached:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(resolved, encoding="utf-8")
            file_handler.setFormatter(JsonFormatter())
            root.addHandler(file_handler)

    return logging.getLogger(name)
