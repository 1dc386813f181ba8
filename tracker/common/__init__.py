# tracker/common/__init__.py
"""
Общие утилиты, константы, ошибки и логгер.
"""

from tracker.common.logger import get_logger, log_info, log_error, log_warning, log_debug, setup_logging
from tracker.common.constants import TypeMsg, RouteFormat, StorageMode
from tracker.common.errors import (
    TrackerError,
    MalformedInput,
    IOFailure,
    ValidationRejected,
)

__all__ = [
    "get_logger",
    "log_info",
    "log_error",
    "log_warning",
    "log_debug",
    "setup_logging",
    "TypeMsg",
    "RouteFormat",
    "StorageMode",
    "TrackerError",
    "MalformedInput",
    "IOFailure",
    "ValidationRejected",
]
