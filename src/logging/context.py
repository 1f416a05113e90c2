# src/logging/context.py - v3
"""Batch, document and step labels carried by every log line.

The labels live in one context variable holding a frozen record. asyncio
copies the variable into each task, so a document worker that sets its own
name leaves its siblings and the batch coroutine untouched.
"""

from __future__ import annotations

import contextvars
from dataclasses import asdict, dataclass, replace
from typing import Any


@dataclass(frozen=True)
class LogContext:
    batch_id: str | None = None
    document: str | None = None
    step: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Labels that are set, for the JSON ``context`` field."""
        return {key: value for key, value in asdict(self).items() if value is not None}


_EMPTY = LogContext()
_current: contextvars.ContextVar[LogContext] = contextvars.ContextVar("casereview_log_context", default=_EMPTY)


def get_context() -> LogContext:
    return _current.get()


def _update(**labels: str | None) -> None:
    _current.set(replace(_current.get(), **labels))


def set_batch_context(batch_id: str | None) -> None:
    _update(batch_id=batch_id)


def set_document_context(document: str | None) -> None:
    _update(document=document)


def set_step_context(step: str | None) -> None:
    _update(step=step)


def clear_context() -> None:
    _current.set(_EMPTY)
