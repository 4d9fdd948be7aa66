# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import asyncio
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncGenerator
from unittest.mock import AsyncMock

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("DB_PASSWORD", "test_password")
os.environ.setdefault("REDIS_PASSWORD", "")

from soa_tours.common.constants import ExecutionStatus, TourStatus
from soa_tours.shared.models.execution import TourExecution
from soa_tours.shared.models.position import Position
from soa_tours.shared.models.tour import Keypoint, Tour


# =============================================================================
# ГЕОГРАФИЯ (Белград, демо-тур)
# =============================================================================

CITY_HALL = (44.8176, 20.4633)
MAIN_SQUARE = (44.8184, 20.4656)
# ~14 м от City Hall
NEAR_CITY_HALL = (44.8177, 20.4634)
# Сотни метров от обеих точек
FAR_AWAY = (44.8200, 20.4700)

DEMO_TOUR_ID = "a1b2c3d4-0000-4000-8000-000000000001"


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


# =============================================================================
# ФИКСТУРЫ ИНФРАСТРУКТУРЫ (МОКИ)
# =============================================================================

@pytest.fixture
def mock_db() -> AsyncMock:
    """Мок менеджера базы данных."""
    db = AsyncMock()
    db.fetchrow = AsyncMock(return_value=None)
    db.fetch = AsyncMock(return_value=[])
    db.execute = AsyncMock(return_value="INSERT 0 1")
    db.fetchval = AsyncMock(return_value=None)
    return db


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Мок клиента Redis."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock(return_value=True)
    redis.delete = AsyncMock(return_value=1)
    redis.get_model = AsyncMock(return_value=None)
    redis.set_model = AsyncMock(return_value=True)
    return redis


@pytest.fixture
def mock_event_bus() -> AsyncMock:
    """Мок шины событий."""
    event_bus = AsyncMock()
    event_bus.publish = AsyncMock(return_value=True)
    event_bus.is_connected = True
    return event_bus


class FakeDatabase:
    """
    DatabaseManager для тестов трекера.
    transaction() сериализует вызовы так же, как блокировка строки в PostgreSQL.
    """

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.transactions = 0

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[Any, None]:
        async with self.lock:
            self.transactions += 1
            yield object()


class FakeExecutionRepository:
    """In-memory ExecutionRepository с ограничением одного активного прохождения."""

    def __init__(self) -> None:
        self.rows: dict[str, TourExecution] = {}

    async def insert(self, execution: TourExecution) -> TourExecution:
        from soa_tours.common.exceptions import ConflictError

        active = await self.get_active_for_user(execution.user_id)
        if active is not None:
            raise ConflictError("active tour exists", details={"execution_id": active.id})
        self.rows[execution.id] = execution.model_copy(deep=True)
        return execution.model_copy(deep=True)

    async def get(self, execution_id: str) -> TourExecution | None:
        row = self.rows.get(execution_id)
        return row.model_copy(deep=True) if row else None

    async def get_for_update(self, conn: Any, execution_id: str) -> TourExecution | None:
        await asyncio.sleep(0)
        return await self.get(execution_id)

    async def get_active_for_user(self, user_id: int) -> TourExecution | None:
        for row in self.rows.values():
            if row.user_id == user_id and row.status == ExecutionStatus.ACTIVE:
                return row.model_copy(deep=True)
        return None

    async def list_for_user(self, user_id: int) -> list[TourExecution]:
        rows = [row for row in self.rows.values() if row.user_id == user_id]
        rows.sort(key=lambda row: row.started_at, reverse=True)
        return [row.model_copy(deep=True) for row in rows]

    async def save(self, conn: Any, execution: TourExecution) -> None:
        await asyncio.sleep(0)
        self.rows[execution.id] = execution.model_copy(deep=True)


class FakeTourRepository:
    """In-memory TourRepository (только чтение)."""

    def __init__(self, tours: list[Tour] | None = None) -> None:
        self.tours = {tour.id: tour for tour in tours or []}

    async def get(self, tour_id: str) -> Tour | None:
        tour = self.tours.get(tour_id)
        return tour.model_copy(deep=True) if tour else None

    async def get_keypoints(self, tour_id: str, conn: Any = None) -> list[Keypoint]:
        tour = self.tours.get(tour_id)
        if tour is None:
            return []
        return [kp.model_copy() for kp in tour.ordered_keypoints()]


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def fake_executions() -> FakeExecutionRepository:
    return FakeExecutionRepository()


# =============================================================================
# ФИКСТУРЫ МОДЕЛЕЙ
# =============================================================================

def make_position(user_id: int, point: tuple[float, float]) -> Position:
    """Позиция пользователя в точке."""
    return Position(
        user_id=user_id,
        latitude=point[0],
        longitude=point[1],
        timestamp=datetime.now(timezone.utc),
    )


@pytest.fixture
def city_hall() -> Keypoint:
    return Keypoint(
        id="a1b2c3d4-0000-4000-8000-0000000000a0",
        name="City Hall",
        description="Historic city hall building",
        latitude=CITY_HALL[0],
        longitude=CITY_HALL[1],
        order=0,
    )


@pytest.fixture
def main_square() -> Keypoint:
    return Keypoint(
        id="a1b2c3d4-0000-4000-8000-0000000000a1",
        name="Main Square",
        description="Central square of the old town",
        latitude=MAIN_SQUARE[0],
        longitude=MAIN_SQUARE[1],
        order=1,
    )


@pytest.fixture
def demo_tour(city_hall: Keypoint, main_square: Keypoint) -> Tour:
    """Демо-тур из migrations/init.sql."""
    return Tour(
        id=DEMO_TOUR_ID,
        name="Historic Downtown Walking Tour",
        author_id=1,
        status=TourStatus.PUBLISHED,
        keypoints=[city_hall, main_square],
        created_at=datetime.now(timezone.utc),
    )


@pytest.fixture
def empty_tour() -> Tour:
    """Тур без ключевых точек."""
    return Tour(id="tour-empty", name="Empty", author_id=1)


@pytest.fixture
def sample_execution_row() -> dict[str, Any]:
    """Строка tour_executions, как её возвращает asyncpg (JSONB строкой)."""
    now = datetime.now(timezone.utc)
    return {
        "id": "exec-1",
        "user_id": 42,
        "tour_id": DEMO_TOUR_ID,
        "status": "active",
        "current_position": '{"latitude": 44.8176, "longitude": 20.4633, '
                            '"timestamp": "2026-10-19T10:00:00Z", "accuracy": null}',
        "completed_keypoints": "[]",
        "started_at": now,
        "completed_at": None,
        "abandoned_at": None,
        "last_activity": now,
    }
