"""
LogiCRM 实用工具模块
"""

from .logger import get_logger, LogContext, setup_logging
from .errors import LogiCrmException, ValidationError, NotFoundError

__all__ = [
    "get_logger",
    "LogContext",
    "setup_logging",
    "LogiCrmException",
    "ValidationError",
    "NotFoundError",
]
