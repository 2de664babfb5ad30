"""Structured JSON logging with trace and cart owner correlation."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from storefront_core.observability.context import get_current_owner_id
from storefront_core.observability.tracing import get_current_span_id, get_current_trace_id

# Attributes every LogRecord has; anything else arrived through ``extra=``
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "extra", "owner_id", "trace_id", "span_id"}


class StructuredLogFormatter(logging.Formatter):
    """
    JSON log formatter with trace and owner correlation.

    Outputs logs in JSON format with:
    - Standard log fields (timestamp, level, message, logger)
    - Trace correlation (trace_id, span_id)
    - Cart owner context (owner_id)
    - Fields passed via ``extra=`` or LogContext
    - Exception information
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON."""
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        trace_id = get_current_trace_id()
        if trace_id:
            log_entry["trace_id"] = trace_id

        span_id = get_current_span_id()
        if span_id:
            log_entry["span_id"] = span_id

        owner_id = get_current_owner_id()
        if owner_id:
            log_entry["owner_id"] = owner_id

        log_entry["location"] = {
            "file": record.filename,
            "line": record.lineno,
            "function": record.funcName,
        }

        extra = {
            key: value for key, value in vars(record).items() if key not in _RESERVED_ATTRS
        }
        if getattr(record, "extra", None):
            extra.update(record.extra)
        if extra:
            log_entry["extra"] = extra

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class OwnerContextFilter(logging.Filter):
    """Adds owner_id and trace_id to every record for plain-text formats."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.owner_id = get_current_owner_id() or "-"
        record.trace_id = get_current_trace_id() or ""
        return True


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    module_levels: dict[str, str] | None = None,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        level: Default log level.
        json_format: If True, use JSON format. Otherwise, use standard format.
        module_levels: Per-module log levels (e.g., {"redis": "WARNING"}).
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)

    if json_format:
        handler.setFormatter(StructuredLogFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - [owner=%(owner_id)s] %(message)s"
        ))
    handler.addFilter(OwnerContextFilter())

    root_logger.addHandler(handler)

    if module_levels:
        for module, mod_level in module_levels.items():
            logging.getLogger(module).setLevel(getattr(logging, mod_level.upper()))

    # Reduce noise from common libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logging.info(
        f"Logging configured: level={level}, json={json_format}, "
        f"module_levels={module_levels or {}}"
    )


class LogContext:
    """
    Context manager for adding extra fields to logs.

    Usage:
        with LogContext(owner_id="sess-1", operation="add_item"):
            logger.info("Cart updated")  # Includes extra fields
    """

    def __init__(self, **kwargs: Any) -> None:
        self.extra = kwargs
        self._old_factory = None

    def __enter__(self) -> "LogContext":
        self._old_factory = logging.getLogRecordFactory()

        extra = self.extra
        old_factory = self._old_factory

        def record_factory(*args, **kwargs):
            record = old_factory(*args, **kwargs)
            record.extra = extra
            return record

        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, *args) -> None:
        if self._old_factory:
            logging.setLogRecordFactory(self._old_factory)
