"""
Structured Logging

Logging setup for the MCP server with an optional JSON formatter and
correlation IDs.

Features:
- Handlers always write to stderr (stdout carries MCP protocol frames)
- Plain text format by default, JSON lines when enabled
- Correlation ID and per-call context attached to every record
- Idempotent configuration
"""

import contextvars
import json
import logging
import sys
import threading
import uuid
from datetime import datetime
from typing import Any

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Per-task context (e.g. tool_name) shared by all loggers
_log_context: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar(
    "rxnav_log_context", default={}
)


class CorrelationIdFilter(logging.Filter):
    """Logging filter that adds correlation ID to all log records."""

    def __init__(self, correlation_id: str | None = None):
        """Initialize filter with correlation ID.

        Args:
            correlation_id: Correlation ID to use (generates new one if None)
        """
        super().__init__()
        self.correlation_id = correlation_id or self.generate_correlation_id()

    @staticmethod
    def generate_correlation_id() -> str:
        """Generate a new correlation ID."""
        return str(uuid.uuid4())

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = self.correlation_id
        return True


class ContextFilter(logging.Filter):
    """Logging filter that copies the current log context onto records."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)

        if not hasattr(record, "timestamp"):
            record.timestamp = datetime.utcnow().isoformat() + "Z"

        return True


def set_log_context(**kwargs: Any) -> contextvars.Token:
    """Merge key-value pairs into the log context of the current task.

    Returns:
        Token to pass to reset_log_context()
    """
    return _log_context.set({**_log_context.get(), **kwargs})


def reset_log_context(token: contextvars.Token) -> None:
    """Restore the log context that was active before set_log_context()."""
    _log_context.reset(token)


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    CONTEXT_ATTRS = ("tool_name", "error_type")

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as a single JSON line.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_data = {
            "timestamp": getattr(record, "timestamp", datetime.utcnow().isoformat() + "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", None),
            "thread_name": record.threadName,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for attr in self.CONTEXT_ATTRS:
            value = getattr(record, attr, None)
            if value is not None:
                log_data[attr] = value

        return json.dumps(log_data, default=str, separators=(",", ":"), ensure_ascii=False)


_configure_lock = threading.Lock()
_configured = False


def configure_logging(level: str = "INFO", structured: bool = False, force: bool = False) -> None:
    """Configure the root logger once for the whole process.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        structured: Emit JSON lines instead of the text format
        force: Reconfigure even if logging was already configured
    """
    global _configured

    with _configure_lock:
        if _configured and not force:
            return

        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

        handler = logging.StreamHandler(sys.stderr)
        handler.addFilter(CorrelationIdFilter())
        handler.addFilter(ContextFilter())
        handler.setFormatter(JsonFormatter() if structured else logging.Formatter(TEXT_FORMAT))
        root_logger.addHandler(handler)

        # httpx logs every request at INFO; our client already does
        logging.getLogger("httpx").setLevel(logging.WARNING)

        _configured = True
