"""JSON logging for the operator: per-reconcile trace id, event-keyed rate limit."""

import logging
import sys
import time
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pythonjsonlogger import jsonlogger

from kmsannotator.app.config import get_settings

# One trace per reconcile pass
trace_id_ctx: ContextVar[str | None] = ContextVar("trace_id", default=None)

# Third-party loggers clamped to WARNING (watch/poll noise)
_NOISY_LOGGERS = ("kopf", "kubernetes_asyncio", "aiohttp", "urllib3", "google")


def get_trace_id() -> str | None:
    return trace_id_ctx.get()


def set_trace_id(trace_id: str | None = None) -> str:
    """Start a reconcile trace, generating a short id if none is given."""
    tid = trace_id or str(uuid4())[:8]
    trace_id_ctx.set(tid)
    return tid


def clear_trace_context() -> None:
    trace_id_ctx.set(None)


@dataclass
class _Window:
    started: float
    passed: int = 0
    dropped: int = 0


class RateLimitFilter(logging.Filter):
    """Caps repeated log lines per minute. ERROR and above always pass.

    Lines are keyed on their LogEvent and message template, not on the
    volume they mention: a resync that logs RECONCILE_SKIPPED for every
    unmanaged volume shares one budget. The first line of the next window
    carries a 'suppressed' field with the number of lines dropped.
    """

    WINDOW_S = 60.0

    def __init__(self, rate_per_minute: int = 100) -> None:
        super().__init__()
        self.rate_per_minute = rate_per_minute
        self._windows: dict[tuple[str, str], _Window] = {}

    @staticmethod
    def _key(record: logging.LogRecord) -> tuple[str, str]:
        event = getattr(record, "event", None)
        return (str(event) if event is not None else record.name, str(record.msg))

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno >= logging.ERROR:
            return True

        key = self._key(record)
        now = time.monotonic()
        window = self._windows.get(key)

        if window is None or now - window.started >= self.WINDOW_S:
            if window is not None and window.dropped:
                record.suppressed = window.dropped
            self._windows[key] = _Window(started=now, passed=1)
            return True

        if window.passed >= self.rate_per_minute:
            window.dropped += 1
            return False

        window.passed += 1
        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding service identity and the reconcile trace id.

    Fields: timestamp (UTC ISO 8601), level, logger, schema_version,
    service, trace_id (inside a reconcile pass only). Call-site fields
    such as event, component and volume_name come from 'extra'.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        logging_config = get_settings().logging
        self._static = {
            "schema_version": logging_config.schema_version,
            "service": logging_config.service_name,
        }

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record.update(
            timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            level=record.levelname,
            logger=record.name,
            **self._static,
        )
        if trace_id := get_trace_id():
            log_record["trace_id"] = trace_id


def setup_logging(level: int | None = None) -> None:
    """Route all logs as JSON to stdout.

    Args:
        level: Log level. If None, uses LOGGING_LEVEL from settings.
    """
    settings = get_settings()

    if level is None:
        level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter())
    handler.addFilter(RateLimitFilter(settings.logging.rate_limit_per_minute))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
