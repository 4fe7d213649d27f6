"""JobBoard Logging Configuration.

Every record carries the current request id and, once the caller has been
authenticated, the token subject. Both live in context variables bound by
the request middleware and the authorization gate.
"""

import json
import logging
import sys
from contextvars import ContextVar
from typing import Literal

# Human-readable format for development
DEV_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(request_id)s | %(message)s"

# Placeholder for records logged outside a request
NO_CONTEXT = "-"

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
subject_var: ContextVar[str | None] = ContextVar("subject", default=None)


class RequestContextFilter(logging.Filter):
    """Copy the request id and subject from context onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or NO_CONTEXT
        record.subject = subject_var.get() or NO_CONTEXT
        return True


class JSONFormatter(logging.Formatter):
    """Structured JSON log formatter.

    Uses json.dumps() so quotes, backslashes and newlines in messages
    cannot break the output line. Request context fields are omitted for
    records logged outside a request.
    """

    def __init__(self):
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in ("request_id", "subject"):
            value = getattr(record, field, NO_CONTEXT)
            if value != NO_CONTEXT:
                log_entry[field] = value
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def setup_logging(
    level: str = "INFO",
    format_type: Literal["structured", "dev"] = "dev",
) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Log format - 'structured' for JSON, 'dev' for readable
    """
    if format_type == "structured":
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logging.root.handlers = [handler]
        logging.root.setLevel(getattr(logging, level.upper()))
    else:
        logging.basicConfig(
            level=getattr(logging, level.upper()),
            format=DEV_FORMAT,
            datefmt="%Y-%m-%d %H:%M:%S",
            stream=sys.stdout,
            force=True,
        )

    # Handler-level so records from every logger get the fields
    for root_handler in logging.root.handlers:
        root_handler.addFilter(RequestContextFilter())

    # Set third-party loggers to WARNING to reduce noise
    for logger_name in ["uvicorn", "uvicorn.error", "uvicorn.access", "httpx"]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    # Keep SQLAlchemy quiet unless debugging
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.DEBUG if level.upper() == "DEBUG" else logging.WARNING
    )

    logger = logging.getLogger("jobboard")
    logger.info(f"Logging configured: level={level}, format={format_type}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the jobboard prefix."""
    return logging.getLogger(f"jobboard.{name}")
