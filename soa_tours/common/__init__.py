# soa_tours/common/__init__.py
"""
Общие утилиты, константы, исключения и логгер.
"""

from soa_tours.common.logger import get_logger, log_info, log_error, log_warning, log_debug
from soa_tours.common.constants import TypeMsg
from soa_tours.common.exceptions import (
    TourServiceError,
    ValidationError,
    PreconditionError,
    AuthenticationError,
    PermissionDeniedError,
    NotFoundError,
    ConflictError,
    DependencyError,
)

__all__ = [
    "get_logger",
    "log_info",
    "log_error",
    "log_warning",
    "log_debug",
    "TypeMsg",
    "TourServiceError",
    "ValidationError",
    "PreconditionError",
    "AuthenticationError",
    "PermissionDeniedError",
    "NotFoundError",
    "ConflictError",
    "DependencyError",
]
