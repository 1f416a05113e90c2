# src/logging/logger.py - v3
"""Log setup for batch runs, with provider keys masked on every handler.

Every record carries the batch/document/step context of the task that
emitted it. Provider keys that end up in a message (an echoed request, an
exception text) are masked before any handler writes the line.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from casereview.logging.context import get_context

ROOT_LOGGER = "casereview"

NOISY_LOGGERS = ("httpx", "httpcore", "openai")

_API_KEY = re.compile(r"\bsk-(?:or-)?(?:v\d+-)?[A-Za-z0-9_-]{8,}")
REDACTED = "sk-***"


def redact(text: str) -> str:
    """Mask API keys in a log message."""
    return _API_KEY.sub(REDACTED, text)


class RedactKeysFilter(logging.Filter):
    """Rewrite the record message with API keys masked."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = redact(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def _timestamp(fmt: str | None = None) -> str:
    now = datetime.now(timezone.utc)
    return now.strftime(fmt) if fmt else now.isoformat()


class JsonFormatter(logging.Formatter):
    """One JSON object per line, context under ``context``."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": _timestamp(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = get_context().as_dict()
        if context:
            entry["context"] = context

        # logger.info(..., extra={"data": {...}})
        data = getattr(record, "data", None)
        if data:
            entry["data"] = data

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = redact(self.formatException(record.exc_info))

        return json.dumps(entry, default=str, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """``time [LEVEL] logger <batch> [document] (step) - message``."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        parts = [
            _timestamp("%Y-%m-%d %H:%M:%S"),
            f"[{record.levelname:8s}]",
            record.name,
        ]
        if ctx.batch_id:
            parts.append(f"<{ctx.batch_id}>")
        if ctx.document:
            parts.append(f"[{ctx.document}]")
        if ctx.step:
            parts.append(f"({ctx.step})")
        parts.append(f"- {record.getMessage()}")
        line = " ".join(parts)
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + redact(self.formatException(record.exc_info))
        return line


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    log_file: str | Path | None = None,
    rotation: str = "10MB",
    retention: int = 30,
) -> logging.Logger:
    """Configure the casereview logger tree.

    Safe to call again: previous handlers are replaced.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_format: "json" or "text".
        log_file: Optional log file, rotated by size.
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of rotated files to keep.

    Returns:
        The configured casereview logger.
    """
    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    formatter: logging.Formatter = JsonFormatter() if log_format == "json" else TextFormatter()
    redaction = RedactKeysFilter()

    # stdout carries command output
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        from casereview.logging.handlers import create_rotating_handler

        handlers.append(create_rotating_handler(str(log_file), rotation=rotation, retention=retention))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(redaction)
        root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger
