# soa_tours/core/tours/repository.py
"""
Репозиторий туров и ключевых точек в БД.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from asyncpg import Connection

from soa_tours.common.exceptions import translate_store_errors
from soa_tours.infra.database import DatabaseManager
from soa_tours.shared.models.tour import Keypoint, Tour, TourSearchParams, TransportTime

TOUR_COLUMNS = """
    id, name, description, author_id, status, difficulty, price, distance_km,
    tags, transport_times, created_at, updated_at, published_at, archived_at
"""

KEYPOINT_COLUMNS = "id, tour_id, name, description, latitude, longitude, images, order_index"

# Поля тура, которые разрешено обновлять
UPDATABLE_TOUR_FIELDS = (
    "name", "description", "difficulty", "status", "price", "distance_km",
    "tags", "transport_times", "published_at", "archived_at",
)

UPDATABLE_KEYPOINT_FIELDS = ("name", "description", "latitude", "longitude", "images")


def _load_json(value: Any, default: Any) -> Any:
    """JSONB без кодека asyncpg приходит строкой."""
    if value is None:
        return default
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return value


class TourRepository:
    """Репозиторий туров."""

    def __init__(self, db: DatabaseManager) -> None:
        """
        Args:
            db: Менеджер базы данных
        """
        self._db = db

    # =========================================================================
    # ТУРЫ
    # =========================================================================

    @translate_store_errors("tours.create")
    async def create(self, tour: Tour) -> Tour:
        """Сохраняет новый тур (без ключевых точек)."""
        row = await self._db.fetchrow(
            f"""
            INSERT INTO tours (id, name, description, author_id, status, difficulty,
                               price, distance_km, tags, transport_times, created_at, updated_at)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $11)
            RETURNING {TOUR_COLUMNS}
            """,
            tour.id,
            tour.name,
            tour.description,
            tour.author_id,
            tour.status.value,
            tour.difficulty.value,
            tour.price,
            tour.distance_km,
            tour.tags,
            json.dumps([t.model_dump(mode="json") for t in tour.transport_times]),
            tour.created_at or datetime.now(timezone.utc),
        )
        return self._row_to_tour(row, [])

    @translate_store_errors("tours.get")
    async def get(self, tour_id: str) -> Optional[Tour]:
        """Тур с ключевыми точками или None."""
        row = await self._db.fetchrow(f"SELECT {TOUR_COLUMNS} FROM tours WHERE id = $1", tour_id)
        if row is None:
            return None

        keypoint_rows = await self._db.fetch(
            f"SELECT {KEYPOINT_COLUMNS} FROM tour_keypoints WHERE tour_id = $1 ORDER BY order_index",
            tour_id,
        )
        return self._row_to_tour(row, [self._row_to_keypoint(r) for r in keypoint_rows])

    @translate_store_errors("tours.list")
    async def list_tours(self, params: TourSearchParams) -> list[Tour]:
        """Туры по фильтрам, новые первыми."""
        conditions = []
        args: list[Any] = []

        if params.author_id is not None:
            args.append(params.author_id)
            conditions.append(f"author_id = ${len(args)}")
        if params.status is not None:
            args.append(params.status.value)
            conditions.append(f"status = ${len(args)}")
        if params.difficulty is not None:
            args.append(params.difficulty.value)
            conditions.append(f"difficulty = ${len(args)}")

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        rows = await self._db.fetch(
            f"SELECT {TOUR_COLUMNS} FROM tours {where} ORDER BY created_at DESC",
            *args,
        )
        if not rows:
            return []

        tour_ids = [row["id"] for row in rows]
        keypoint_rows = await self._db.fetch(
            f"""
            SELECT {KEYPOINT_COLUMNS} FROM tour_keypoints
            WHERE tour_id = ANY($1::text[])
            ORDER BY tour_id, order_index
            """,
            tour_ids,
        )

        keypoints_by_tour: dict[str, list[Keypoint]] = {tour_id: [] for tour_id in tour_ids}
        for kp_row in keypoint_rows:
            keypoints_by_tour[kp_row["tour_id"]].append(self._row_to_keypoint(kp_row))

        return [self._row_to_tour(row, keypoints_by_tour[row["id"]]) for row in rows]

    @translate_store_errors("tours.update")
    async def update(self, tour_id: str, fields: dict[str, Any]) -> Optional[Tour]:
        """
        Частично обновляет тур.

        Args:
            tour_id: ID тура
            fields: Поля из UPDATABLE_TOUR_FIELDS
        """
        assignments = []
        args: list[Any] = [tour_id]
        for name, value in fields.items():
            if name not in UPDATABLE_TOUR_FIELDS:
                raise KeyError(f"Поле {name} нельзя обновлять")
            if name == "transport_times":
                value = json.dumps([t.model_dump(mode="json") for t in value])
            elif hasattr(value, "value"):
                value = value.value
            args.append(value)
            assignments.append(f"{name} = ${len(args)}")

        assignments.append("updated_at = NOW()")
        status = await self._db.execute(
            f"UPDATE tours SET {', '.join(assignments)} WHERE id = $1",
            *args,
        )
        if status == "UPDATE 0":
            return None
        return await self.get(tour_id)

    # =========================================================================
    # КЛЮЧЕВЫЕ ТОЧКИ
    # =========================================================================

    @translate_store_errors("tours.get_keypoints")
    async def get_keypoints(self, tour_id: str, conn: Connection | None = None) -> list[Keypoint]:
        """
        Ключевые точки тура по возрастанию order.

        Args:
            tour_id: ID тура
            conn: Соединение текущей транзакции (если есть)
        """
        query = f"SELECT {KEYPOINT_COLUMNS} FROM tour_keypoints WHERE tour_id = $1 ORDER BY order_index"
        if conn is not None:
            rows = await conn.fetch(query, tour_id)
        else:
            rows = await self._db.fetch(query, tour_id)
        return [self._row_to_keypoint(row) for row in rows]

    @translate_store_errors("tours.add_keypoint")
    async def add_keypoint(self, tour_id: str, data: dict[str, Any]) -> Keypoint:
        """
        Добавляет точку в конец тура.

        order берётся из счётчика тура next_keypoint_order, но не меньше
        MAX(order_index) + 1, так что номер удалённой точки не достаётся новой.
        UPDATE блокирует строку тура до конца транзакции.
        """
        async with self._db.transaction() as conn:
            next_order = await conn.fetchval(
                """
                UPDATE tours SET
                    next_keypoint_order = GREATEST(
                        next_keypoint_order,
                        (SELECT COALESCE(MAX(order_index) + 1, 0) FROM tour_keypoints WHERE tour_id = $1)
                    ) + 1,
                    updated_at = NOW()
                WHERE id = $1
                RETURNING next_keypoint_order - 1
                """,
                tour_id,
            )

            row = await conn.fetchrow(
                f"""
                INSERT INTO tour_keypoints (id, tour_id, name, description, latitude, longitude, images, order_index)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                RETURNING {KEYPOINT_COLUMNS}
                """,
                str(uuid4()),
                tour_id,
                data["name"],
                data.get("description", ""),
                data["latitude"],
                data["longitude"],
                json.dumps(data.get("images", [])),
                next_order,
            )
        return self._row_to_keypoint(row)

    @translate_store_errors("tours.update_keypoint")
    async def update_keypoint(self, tour_id: str, order: int, fields: dict[str, Any]) -> Optional[Keypoint]:
        """Частично обновляет точку с данным order."""
        assignments = []
        args: list[Any] = [tour_id, order]
        for name, value in fields.items():
            if name not in UPDATABLE_KEYPOINT_FIELDS:
                raise KeyError(f"Поле {name} нельзя обновлять")
            if name == "images":
                value = json.dumps(value)
            args.append(value)
            assignments.append(f"{name} = ${len(args)}")

        if not assignments:
            row = await self._db.fetchrow(
                f"SELECT {KEYPOINT_COLUMNS} FROM tour_keypoints WHERE tour_id = $1 AND order_index = $2",
                tour_id,
                order,
            )
            return self._row_to_keypoint(row) if row else None

        async with self._db.transaction() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE tour_keypoints SET {', '.join(assignments)}
                WHERE tour_id = $1 AND order_index = $2
                RETURNING {KEYPOINT_COLUMNS}
                """,
                *args,
            )
            if row is not None:
                await conn.execute("UPDATE tours SET updated_at = NOW() WHERE id = $1", tour_id)
        return self._row_to_keypoint(row) if row else None

    @translate_store_errors("tours.remove_keypoint")
    async def remove_keypoint(self, tour_id: str, order: int) -> bool:
        """
        Удаляет точку. order и id оставшихся точек не меняются,
        в нумерации остаётся пропуск.

        Returns:
            True если точка существовала
        """
        async with self._db.transaction() as conn:
            await conn.execute("SELECT id FROM tours WHERE id = $1 FOR UPDATE", tour_id)
            status = await conn.execute(
                "DELETE FROM tour_keypoints WHERE tour_id = $1 AND order_index = $2",
                tour_id,
                order,
            )
            if status == "DELETE 0":
                return False

            await conn.execute("UPDATE tours SET updated_at = NOW() WHERE id = $1", tour_id)
        return True

    # =========================================================================
    # МАППИНГ
    # =========================================================================

    @staticmethod
    def _row_to_keypoint(row: Any) -> Keypoint:
        return Keypoint(
            id=row["id"],
            name=row["name"],
            description=row["description"] or "",
            latitude=row["latitude"],
            longitude=row["longitude"],
            images=_load_json(row["images"], []),
            order=row["order_index"],
        )

    @staticmethod
    def _row_to_tour(row: Any, keypoints: list[Keypoint]) -> Tour:
        return Tour(
            id=row["id"],
            name=row["name"],
            description=row["description"] or "",
            author_id=row["author_id"],
            status=row["status"],
            difficulty=row["difficulty"],
            price=row["price"],
            distance_km=row["distance_km"],
            tags=list(row["tags"] or []),
            keypoints=keypoints,
            transport_times=[TransportTime(**t) for t in _load_json(row["transport_times"], [])],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            published_at=row["published_at"],
            archived_at=row["archived_at"],
        )
