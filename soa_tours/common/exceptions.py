# soa_tours/common/exceptions.py
"""
Иерархия доменных ошибок Content Service.

Каждая ошибка знает свой HTTP-статус и машинный код, что позволяет
обработчикам FastAPI отдавать единый ErrorResponse.
"""

from __future__ import annotations

from functools import wraps
from typing import Any, Awaitable, Callable, TypeVar

import asyncpg
from redis.exceptions import RedisError


T = TypeVar("T")


class TourServiceError(Exception):
    """Базовая ошибка сервиса."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(TourServiceError):
    """Некорректные входные данные (координаты, пустой тур и т.п.)."""

    status_code = 400
    error_code = "validation_error"


class PreconditionError(TourServiceError):
    """Не выполнено предусловие операции (например, позиция не задана)."""

    status_code = 400
    error_code = "precondition_failed"


class AuthenticationError(TourServiceError):
    """Не передан или некорректен идентификатор пользователя."""

    status_code = 401
    error_code = "unauthorized"


class PermissionDeniedError(TourServiceError):
    """Операция над чужим ресурсом."""

    status_code = 403
    error_code = "permission_denied"


class NotFoundError(TourServiceError):
    """Сущность не найдена."""

    status_code = 404
    error_code = "not_found"


class ConflictError(TourServiceError):
    """Конфликт состояния (активный тур уже есть, тур не активен)."""

    status_code = 409
    error_code = "conflict"


class DependencyError(TourServiceError):
    """Хранилище или брокер недоступны."""

    status_code = 503
    error_code = "dependency_unavailable"


# Ошибки инфраструктуры, которые превращаются в DependencyError
STORE_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    RedisError,
    ConnectionError,
    TimeoutError,
    OSError,
)


def translate_store_errors(
    operation: str,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Декоратор: ошибки хранилищ превращаются в DependencyError.

    Доменные ошибки (TourServiceError) пробрасываются без изменений.

    Args:
        operation: Имя операции для сообщения об ошибке
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except TourServiceError:
                raise
            except STORE_ERRORS as e:
                raise DependencyError(
                    f"Хранилище недоступно: {operation}",
                    details={"operation": operation, "reason": str(e)},
                ) from e

        return wrapper

    return decorator
