import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Optional

from igservice.core.config import Settings, get_settings

# Context variable for request tracking
request_id: ContextVar[str] = ContextVar("request_id", default="")


class ContextFilter(logging.Filter):
    """Injects the current request id into every record it sees."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id.get()
        return True


class StructuredLogFormatter(logging.Formatter):
    """
    Custom formatter for structured JSON logs.

    Creates a JSON-formatted log entry with standardized fields like
    timestamp, log level, message, request ID, etc.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        req_id = getattr(record, "request_id", "") or request_id.get()
        if req_id:
            log_data["request_id"] = req_id

        # Add exception info if available
        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info)
            }

        # Add extra data if available
        if hasattr(record, "data") and isinstance(record.data, dict):
            log_data.update(record.data)

        return json.dumps(log_data, default=str)


def configure_logging(settings: Optional[Settings] = None) -> logging.Handler:
    """
    Configure logging for the ``igservice`` logger tree.

    Uses structured JSON logging or formatted console logging depending
    on settings. Only the package logger is touched, so applications
    embedding the client keep their own root configuration.

    Returns:
        logging.Handler: The handler that was installed
    """
    settings = settings or get_settings()
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    package_logger = logging.getLogger("igservice")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)

    package_logger.setLevel(log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(ContextFilter())

    if settings.ENABLE_STRUCTURED_LOGGING:
        formatter = StructuredLogFormatter()
    else:
        formatter = logging.Formatter(
            "[%(asctime)s] [%(levelname)s] [%(name)s] [%(request_id)s] - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    handler.setFormatter(formatter)
    package_logger.addHandler(handler)
    return handler


def get_logger(name: str, **extra: Any) -> logging.Logger:
    """
    Get a logger with the given name and extra context data.

    Args:
        name: Logger name, typically the module name
        **extra: Additional context data to include in log records

    Returns:
        logging.Logger: Logger instance
    """
    logger = logging.getLogger(name)

    class _ExtraFilter(ContextFilter):
        def filter(self, record: logging.LogRecord) -> bool:
            super().filter(record)
            if extra:
                record.data = extra
            return True

    logger.addFilter(_ExtraFilter())
    return logger


def new_request_id() -> str:
    """Generate an id for one outbound call."""
    return uuid.uuid4().hex[:12]
