"""
Logging for the journal.

Each CLI invocation gets a short trace id (``start_trace``) so that the
warnings a single command emits (a corrupt payload backed up, a legacy
upgrade, a failed write) can be grepped together from the log stream.
"""
import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Optional

from growthlens.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(trace_id)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

trace_id_ctx: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)


def start_trace(label: Optional[str] = None) -> str:
    """Begin a new trace, e.g. ``logs-add-3f9c2a1b``, and make it current."""
    tid = uuid.uuid4().hex[:8]
    if label:
        tid = f"{label}-{tid}"
    trace_id_ctx.set(tid)
    return tid


def get_trace_id() -> str:
    """The current trace id; library use outside the CLI starts one lazily."""
    return trace_id_ctx.get() or start_trace()


class TraceIDFilter(logging.Filter):
    def filter(self, record):
        record.trace_id = get_trace_id()
        return True


def configure_logging(level: str = "INFO"):
    root = logging.getLogger()
    root.setLevel(level.upper())

    for handler in list(root.handlers):
        if getattr(handler, "growthlens", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.growthlens = True
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    handler.addFilter(TraceIDFilter())
    root.addHandler(handler)

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger("growthlens")
