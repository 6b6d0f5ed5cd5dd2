# logging_utils.py
# Central structured logging for flightxp (single-line JSON, Loki friendly)

import json
import logging
import os
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Per-resolution correlation id
_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

SERVICE_NAME = os.getenv("SERVICE_NAME", "flightxp")
ENV = os.getenv("APP_ENV", "dev")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Optional file sink; stdout only when unset
LOG_FILE = os.getenv("LOG_FILE", "")

# Built-in LogRecord fields that must never be overwritten
_RESERVED_LOG_FIELDS = {
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
}


class JSONLogFormatter(logging.Formatter):
    """
    Format log records as single-line JSON.

    Each log line looks like:
        {
            "ts": "...",
            "level": "INFO",
            "logger": "flightxp.resolver",
            "service": "flightxp",
            "env": "dev",
            "message": "race_winner",
            "request_id": "...",
            ... plus all structured fields ...
        }
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace(
                "+00:00", "Z"
            ),
            "level": record.levelname,
            "logger": record.name,
            "service": SERVICE_NAME,
            "env": ENV,
            "message": record.getMessage(),
        }

        rid = _request_id.get()
        if rid:
            payload["request_id"] = rid

        for key, value in record.__dict__.items():
            if key.startswith("_"):
                continue
            if key in payload or key in _RESERVED_LOG_FIELDS:
                continue
            payload[key] = value

        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def configure_logging() -> None:
    """
    Configure root logging once for the whole process.
    Output -> JSON to stdout, plus LOG_FILE when it is set.
    """
    root = logging.getLogger()

    if getattr(root, "_flightxp_configured", False):
        return

    root.setLevel(LOG_LEVEL)
    formatter = JSONLogFormatter()

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    if LOG_FILE:
        try:
            log_dir = os.path.dirname(LOG_FILE)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(LOG_FILE)
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)
        except OSError as e:
            # Keep stdout logging only
            root.error(f"Failed to set up file logging: {e}")

    root._flightxp_configured = True  # type: ignore[attr-defined]


def new_request_id() -> str:
    rid = uuid.uuid4().hex
    _request_id.set(rid)
    return rid


def set_request_id(rid: Optional[str]) -> None:
    _request_id.set(rid)


def get_request_id() -> Optional[str]:
    return _request_id.get()


def log_event(
    logger: logging.Logger,
    event: str,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    """
    Structured logging helper.

    Ensures fields never collide with LogRecord built-ins:
        filename -> field_filename
        module   -> field_module
        etc.
    """
    safe_fields: Dict[str, Any] = {}

    for key, value in fields.items():
        if key in _RESERVED_LOG_FIELDS:
            safe_fields[f"field_{key}"] = value
        else:
            safe_fields[key] = value

    logger.log(level, event, extra={"event": event, **safe_fields})


class TimedLogger:
    """Logger wrapper with per-request named timers."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
        self.timers: Dict[str, float] = {}

    def start_timer(self, name: str) -> None:
        rid = _request_id.get() or "global"
        self.timers[f"{rid}:{name}"] = time.perf_counter()

    def end_timer(self, name: str) -> float:
        rid = _request_id.get() or "global"
        start = self.timers.pop(f"{rid}:{name}", None)
        if start is None:
            return 0.0
        return time.perf_counter() - start


def get_logger(name: str) -> TimedLogger:
    return TimedLogger(name)
