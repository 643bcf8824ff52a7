"""
Utility modules for the moderation bot.
"""

from .logger import get_logger, set_default_level, setup_logging
from .validation import ValidationUtils, ValidationResult
from .monitoring import Monitoring, HealthStatus
from .error_handler import ErrorHandler, get_error_handler, setup_error_handler

__all__ = [
    "get_logger",
    "set_default_level",
    "setup_logging",
    "ValidationUtils",
    "ValidationResult",
    "Monitoring",
    "HealthStatus",
    "ErrorHandler",
    "get_error_handler",
    "setup_error_handler",
]
