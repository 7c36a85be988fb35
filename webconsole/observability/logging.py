from __future__ import annotations

import logging
import secrets
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

LOGGER_NAME = "webconsole"
LOG_FORMAT = "%(asctime)s %(levelname)s trace_id=%(trace_id)s %(name)s %(message)s"

TRACE_HEADER = "X-Trace-Id"
_MAX_TRACE_ID_LENGTH = 128
_trace_id_ctx: ContextVar[str] = ContextVar("webconsole_trace_id", default="")


def new_trace_id() -> str:
    return f"tr_{secrets.token_hex(16)}"


def current_trace_id() -> str:
    return _trace_id_ctx.get()


@contextmanager
def trace_scope(raw_trace_id: str | None = None) -> Iterator[str]:
    """Bind a trace id for the duration of one request.

    A caller-supplied id is reused when it is non-blank and reasonably short,
    otherwise a fresh one is generated.
    """
    candidate = (raw_trace_id or "").strip()
    trace_id = candidate if 0 < len(candidate) <= _MAX_TRACE_ID_LENGTH else new_trace_id()
    token = _trace_id_ctx.set(trace_id)
    try:
        yield trace_id
    finally:
        _trace_id_ctx.reset(token)


class TraceIDFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = current_trace_id() or "-"
        return True


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    trace_filter = TraceIDFilter()

    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        if not any(isinstance(existing, TraceIDFilter) for existing in handler.filters):
            handler.addFilter(trace_filter)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    return logger


def get_logger(component: str | None = None) -> logging.Logger:
    if not component:
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{component}")
