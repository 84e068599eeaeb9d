"""Logging and correlation helpers"""

from .logging_config import configure_logging, configure_logging_from_settings, JSONFormatter
from .operation_id import get_operation_id, operation_scope

__all__ = [
    "configure_logging",
    "configure_logging_from_settings",
    "JSONFormatter",
    "get_operation_id",
    "operation_scope",
]
