"""Structured JSON logging configuration.

Provides centralized logging setup with operation ID correlation and JSON
formatting. docflow itself only calls logging.getLogger(__name__); the
embedding process decides whether to call configure_logging.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Optional

from .operation_id import get_operation_id


class OperationIDFilter(logging.Filter):
    """Add operation_id to all log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.operation_id = get_operation_id()
        return True


class JSONFormatter(logging.Formatter):
    """Format log records as JSON."""

    def __init__(self, service_name: Optional[str] = None):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON string.

        Args:
            record: Log record to format

        Returns:
            str: JSON-formatted log message
        """
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "operation_id": getattr(record, "operation_id", "no-operation-id"),
            "module": record.module,
            "function": record.funcName,
            "message": record.getMessage(),
        }

        if self.service_name:
            log_data["service"] = self.service_name

        if record.exc_info:
            log_data["error"] = str(record.exc_info[1])
            log_data["traceback"] = self.formatException(record.exc_info)

        # Extra fields passed via logger.info(..., extra={...})
        for key in ("document_id", "user_id", "action_id", "group_id"):
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        return json.dumps(log_data)


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    service_name: Optional[str] = None,
) -> None:
    """Configure process-wide logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: If True, use JSON formatter; otherwise use simple format
        service_name: Optional name added to every JSON record
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper()))

    if json_format:
        formatter = JSONFormatter(service_name=service_name)
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - %(operation_id)s - %(name)s.%(funcName)s - %(message)s'
        )

    handler.setFormatter(formatter)
    handler.addFilter(OperationIDFilter())
    root_logger.addHandler(handler)

    # Suppress noisy third-party loggers
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def configure_logging_from_settings(settings) -> None:
    """Configure logging from a docflow Settings instance."""
    configure_logging(
        level=settings.LOG_LEVEL,
        json_format=settings.LOG_JSON,
        service_name=settings.SERVICE_NAME,
    )
