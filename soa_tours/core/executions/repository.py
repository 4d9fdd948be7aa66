# soa_tours/core/executions/repository.py
"""
Репозиторий прохождений туров в БД.

Изменение прохождения выполняется в транзакции с блокировкой строки
(SELECT ... FOR UPDATE): параллельные проверки одного прохождения
выполняются строго по очереди.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import asyncpg
from asyncpg import Connection

from soa_tours.common.constants import ExecutionStatus
from soa_tours.common.exceptions import ConflictError, translate_store_errors
from soa_tours.infra.database import DatabaseManager
from soa_tours.shared.models.execution import CompletedKeypoint, CurrentPosition, TourExecution

EXECUTION_COLUMNS = """
    id, user_id, tour_id, status, current_position, completed_keypoints,
    started_at, completed_at, abandoned_at, last_activity
"""


def _load_json(value: Any) -> Any:
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return value


class ExecutionRepository:
    """Репозиторий прохождений."""

    def __init__(self, db: DatabaseManager) -> None:
        """
        Args:
            db: Менеджер базы данных
        """
        self._db = db

    @translate_store_errors("executions.insert")
    async def insert(self, execution: TourExecution) -> TourExecution:
        """
        Сохраняет новое активное прохождение.

        Raises:
            ConflictError: у пользователя уже есть активное прохождение
                (сработал частичный уникальный индекс)
        """
        try:
            row = await self._db.fetchrow(
                f"""
                INSERT INTO tour_executions (id, user_id, tour_id, status, current_position,
                                             completed_keypoints, started_at, last_activity)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                RETURNING {EXECUTION_COLUMNS}
                """,
                execution.id,
                execution.user_id,
                execution.tour_id,
                execution.status.value,
                self._dump_position(execution.current_position),
                self._dump_completed(execution.completed_keypoints),
                execution.started_at,
                execution.last_activity,
            )
        except asyncpg.UniqueViolationError:
            existing = await self.get_active_for_user(execution.user_id)
            raise ConflictError(
                "active tour exists",
                details={"execution_id": existing.id if existing else None},
            )
        return self._row_to_execution(row)

    @translate_store_errors("executions.get")
    async def get(self, execution_id: str) -> Optional[TourExecution]:
        """Прохождение по ID или None."""
        row = await self._db.fetchrow(
            f"SELECT {EXECUTION_COLUMNS} FROM tour_executions WHERE id = $1",
            execution_id,
        )
        return self._row_to_execution(row) if row else None

    @translate_store_errors("executions.get_for_update")
    async def get_for_update(self, conn: Connection, execution_id: str) -> Optional[TourExecution]:
        """
        Прохождение с блокировкой строки до конца транзакции.

        Args:
            conn: Соединение открытой транзакции
            execution_id: ID прохождения
        """
        row = await conn.fetchrow(
            f"SELECT {EXECUTION_COLUMNS} FROM tour_executions WHERE id = $1 FOR UPDATE",
            execution_id,
        )
        return self._row_to_execution(row) if row else None

    @translate_store_errors("executions.get_active")
    async def get_active_for_user(self, user_id: int) -> Optional[TourExecution]:
        """Активное прохождение пользователя или None."""
        row = await self._db.fetchrow(
            f"""
            SELECT {EXECUTION_COLUMNS} FROM tour_executions
            WHERE user_id = $1 AND status = $2
            """,
            user_id,
            ExecutionStatus.ACTIVE.value,
        )
        return self._row_to_execution(row) if row else None

    @translate_store_errors("executions.list")
    async def list_for_user(self, user_id: int) -> list[TourExecution]:
        """Все прохождения пользователя, новые первыми."""
        rows = await self._db.fetch(
            f"""
            SELECT {EXECUTION_COLUMNS} FROM tour_executions
            WHERE user_id = $1
            ORDER BY started_at DESC
            """,
            user_id,
        )
        return [self._row_to_execution(row) for row in rows]

    @translate_store_errors("executions.save")
    async def save(self, conn: Connection, execution: TourExecution) -> None:
        """
        Записывает изменяемые поля прохождения в рамках транзакции.

        Args:
            conn: Соединение транзакции, в которой строка заблокирована
            execution: Новое состояние
        """
        await conn.execute(
            """
            UPDATE tour_executions
            SET status = $2,
                current_position = $3,
                completed_keypoints = $4,
                completed_at = $5,
                abandoned_at = $6,
                last_activity = $7
            WHERE id = $1
            """,
            execution.id,
            execution.status.value,
            self._dump_position(execution.current_position),
            self._dump_completed(execution.completed_keypoints),
            execution.completed_at,
            execution.abandoned_at,
            execution.last_activity,
        )

    # =========================================================================
    # МАППИНГ
    # =========================================================================

    @staticmethod
    def _dump_position(position: CurrentPosition | None) -> str | None:
        if position is None:
            return None
        return json.dumps(position.model_dump(mode="json"))

    @staticmethod
    def _dump_completed(completed: list[CompletedKeypoint]) -> str:
        return json.dumps([entry.model_dump(mode="json") for entry in completed])

    @staticmethod
    def _row_to_execution(row: Any) -> TourExecution:
        position = _load_json(row["current_position"])
        completed = _load_json(row["completed_keypoints"]) or []

        return TourExecution(
            id=row["id"],
            user_id=row["user_id"],
            tour_id=row["tour_id"],
            status=ExecutionStatus(row["status"]),
            current_position=CurrentPosition(**position) if position else None,
            completed_keypoints=[CompletedKeypoint(**entry) for entry in completed],
            started_at=row["started_at"],
            completed_at=row["completed_at"],
            abandoned_at=row["abandoned_at"],
            last_activity=row["last_activity"],
        )
