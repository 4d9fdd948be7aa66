# soa_tours/core/positions/repository.py
"""
Репозиторий позиций пользователей в БД.
"""

from __future__ import annotations

from typing import Any, Optional

from asyncpg import Connection

from soa_tours.common.exceptions import translate_store_errors
from soa_tours.infra.database import DatabaseManager
from soa_tours.shared.models.position import Position


class PositionRepository:
    """Репозиторий позиций (одна строка на пользователя)."""

    def __init__(self, db: DatabaseManager) -> None:
        """
        Args:
            db: Менеджер базы данных
        """
        self._db = db

    @translate_store_errors("positions.get")
    async def get(self, user_id: int, conn: Connection | None = None) -> Optional[Position]:
        """
        Позиция пользователя или None.

        Args:
            user_id: ID пользователя
            conn: Соединение текущей транзакции (если есть)
        """
        query = """
            SELECT user_id, latitude, longitude, accuracy, timestamp
            FROM positions
            WHERE user_id = $1
        """
        if conn is not None:
            row = await conn.fetchrow(query, user_id)
        else:
            row = await self._db.fetchrow(query, user_id)
        return self._row_to_position(row) if row else None

    @translate_store_errors("positions.upsert")
    async def upsert(self, position: Position) -> Position:
        """Создаёт или перезаписывает позицию пользователя."""
        row = await self._db.fetchrow(
            """
            INSERT INTO positions (user_id, latitude, longitude, accuracy, timestamp)
            VALUES ($1, $2, $3, $4, $5)
            ON CONFLICT (user_id) DO UPDATE
            SET latitude = EXCLUDED.latitude,
                longitude = EXCLUDED.longitude,
                accuracy = EXCLUDED.accuracy,
                timestamp = EXCLUDED.timestamp
            RETURNING user_id, latitude, longitude, accuracy, timestamp
            """,
            position.user_id,
            position.latitude,
            position.longitude,
            position.accuracy,
            position.timestamp,
        )
        return self._row_to_position(row)

    @translate_store_errors("positions.delete")
    async def delete(self, user_id: int) -> bool:
        """
        Удаляет позицию.

        Returns:
            True если запись существовала
        """
        status = await self._db.execute("DELETE FROM positions WHERE user_id = $1", user_id)
        return status == "DELETE 1"

    @translate_store_errors("positions.list")
    async def list_all(self) -> list[Position]:
        """Все позиции, свежие первыми."""
        rows = await self._db.fetch(
            """
            SELECT user_id, latitude, longitude, accuracy, timestamp
            FROM positions
            ORDER BY timestamp DESC
            """
        )
        return [self._row_to_position(row) for row in rows]

    @staticmethod
    def _row_to_position(row: Any) -> Position:
        return Position(
            user_id=row["user_id"],
            latitude=row["latitude"],
            longitude=row["longitude"],
            accuracy=row["accuracy"],
            timestamp=row["timestamp"],
        )
