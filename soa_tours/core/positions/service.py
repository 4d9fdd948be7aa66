# soa_tours/core/positions/service.py
"""
Сервис симулятора позиции.
Источник истины PostgreSQL. Redis хранит кэш чтения, запись позиции
сбрасывает ключ, следующее чтение заполняет его заново.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Optional

from asyncpg import Connection
from redis.exceptions import RedisError

from soa_tours.common.constants import TypeMsg
from soa_tours.common.exceptions import NotFoundError, ValidationError
from soa_tours.common.logger import log_info, log_warning
from soa_tours.core.positions.repository import PositionRepository
from soa_tours.infra.redis_client import RedisClient
from soa_tours.shared.models.position import Position


def validate_coordinates(latitude: float, longitude: float, accuracy: float | None = None) -> None:
    """
    Проверяет координаты.

    Raises:
        ValidationError: NaN/inf, широта вне [-90, 90], долгота вне [-180, 180]
            или отрицательная точность
    """
    values = {"latitude": latitude, "longitude": longitude}
    if accuracy is not None:
        values["accuracy"] = accuracy

    for field, value in values.items():
        if not isinstance(value, (int, float)) or isinstance(value, bool) or not math.isfinite(value):
            raise ValidationError(f"{field} must be a finite number", details={"field": field})

    if not -90.0 <= latitude <= 90.0:
        raise ValidationError(
            "latitude must be between -90 and 90",
            details={"field": "latitude", "value": latitude},
        )
    if not -180.0 <= longitude <= 180.0:
        raise ValidationError(
            "longitude must be between -180 and 180",
            details={"field": "longitude", "value": longitude},
        )
    if accuracy is not None and accuracy < 0:
        raise ValidationError(
            "accuracy must not be negative",
            details={"field": "accuracy", "value": accuracy},
        )


class PositionService:
    """Хранилище последней известной позиции пользователя."""

    def __init__(
        self,
        repository: PositionRepository,
        redis: RedisClient | None = None,
        cache_ttl: int = 300,
    ) -> None:
        self._repository = repository
        self._redis = redis
        self._cache_ttl = cache_ttl

    def _cache_key(self, user_id: int) -> str:
        """Ключ кэша позиции."""
        return f"position:{user_id}"

    async def _read_cache(self, user_id: int) -> Optional[Position]:
        if self._redis is None:
            return None
        try:
            return await self._redis.get_model(self._cache_key(user_id), Position)
        except RedisError as e:
            await log_warning(f"Кэш позиции недоступен (user_id={user_id}): {e}")
            return None

    async def _write_cache(self, position: Position) -> None:
        if self._redis is None:
            return
        try:
            await self._redis.set_model(self._cache_key(position.user_id), position, ttl=self._cache_ttl)
        except RedisError as e:
            await log_warning(f"Не удалось обновить кэш позиции (user_id={position.user_id}): {e}")

    async def _evict_cache(self, user_id: int) -> None:
        if self._redis is None:
            return
        try:
            await self._redis.delete(self._cache_key(user_id))
        except RedisError as e:
            await log_warning(f"Не удалось удалить кэш позиции (user_id={user_id}): {e}")

    async def find_position(self, user_id: int, conn: Connection | None = None) -> Optional[Position]:
        """
        Позиция пользователя или None (кэш, затем БД).

        Args:
            user_id: ID пользователя
            conn: Соединение открытой транзакции. Чтение идёт через него
                напрямую из БД, кэш не используется.
        """
        if conn is not None:
            return await self._repository.get(user_id, conn=conn)

        cached = await self._read_cache(user_id)
        if cached is not None:
            return cached

        position = await self._repository.get(user_id)
        if position is not None:
            await self._write_cache(position)
        return position

    async def get_position(self, user_id: int, conn: Connection | None = None) -> Position:
        """
        Позиция пользователя.

        Raises:
            NotFoundError: позиция не задана
        """
        position = await self.find_position(user_id, conn=conn)
        if position is None:
            raise NotFoundError("position not found", details={"user_id": user_id})
        return position

    async def set_position(
        self,
        user_id: int,
        latitude: float,
        longitude: float,
        accuracy: float | None = None,
    ) -> Position:
        """
        Создаёт или перезаписывает позицию, проставляя текущее время.

        Raises:
            ValidationError: некорректные координаты
        """
        validate_coordinates(latitude, longitude, accuracy)

        position = Position(
            user_id=user_id,
            latitude=float(latitude),
            longitude=float(longitude),
            accuracy=float(accuracy) if accuracy is not None else None,
            timestamp=datetime.now(timezone.utc),
        )
        saved = await self._repository.upsert(position)
        await self._evict_cache(user_id)

        await log_info(
            f"Позиция обновлена: user_id={user_id} ({saved.latitude}, {saved.longitude})",
            type_msg=TypeMsg.DEBUG,
        )
        return saved

    async def clear_position(self, user_id: int) -> None:
        """
        Удаляет позицию пользователя.

        Raises:
            NotFoundError: позиция не задана
        """
        deleted = await self._repository.delete(user_id)
        await self._evict_cache(user_id)
        if not deleted:
            raise NotFoundError("position not found", details={"user_id": user_id})

        await log_info(f"Позиция удалена: user_id={user_id}", type_msg=TypeMsg.DEBUG)

    async def list_positions(self) -> list[Position]:
        """Все сохранённые позиции."""
        return await self._repository.list_all()
