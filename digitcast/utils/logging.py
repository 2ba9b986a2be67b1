from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from typing import Any, Dict

import numpy as np

SERVICE = "digitcast"

_RESERVED = {
    "args", "msg", "levelname", "levelno", "pathname", "filename", "module",
    "exc_info", "exc_text", "stack_info", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName", "processName", "process",
    "name", "taskName",
}

# Fields stamped on every record emitted while bound, e.g. the CLI command and history file.
_context: ContextVar[Dict[str, Any]] = ContextVar("digitcast_log_context", default={})


def bind_context(**fields: Any) -> None:
    _context.set({**_context.get(), **fields})


def clear_context() -> None:
    _context.set({})


def _jsonable(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    return str(value)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, Any] = {
            "level": record.levelname,
            "service": SERVICE,
            "logger": record.name,
            "message": record.getMessage(),
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
        }
        payload.update(_context.get())
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key in _RESERVED:
                continue
            payload[key] = value
        return json.dumps(payload, ensure_ascii=False, default=_jsonable)


def setup_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(level.upper())
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.handlers.clear()
    root.addHandler(handler)
