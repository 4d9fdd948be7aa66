# soa_tours/services/content_service/dependencies.py
"""
Dependency Injection для Content Service.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from soa_tours.config import Settings
    from soa_tours.core.executions.tracker import ExecutionTracker
    from soa_tours.core.positions.service import PositionService
    from soa_tours.core.tours.service import TourService
    from soa_tours.infra.database import DatabaseManager
    from soa_tours.infra.event_bus import EventBus
    from soa_tours.infra.redis_client import RedisClient


# Синглтоны
_db: "DatabaseManager | None" = None
_redis: "RedisClient | None" = None
_event_bus: "EventBus | None" = None
_position_service: "PositionService | None" = None
_tour_service: "TourService | None" = None
_execution_tracker: "ExecutionTracker | None" = None


async def init_dependencies(
    db: "DatabaseManager",
    settings: "Settings",
    redis: "RedisClient | None" = None,
    event_bus: "EventBus | None" = None,
) -> None:
    """Инициализировать зависимости при старте приложения."""
    global _db, _redis, _event_bus, _position_service, _tour_service, _execution_tracker
    _db = db
    _redis = redis
    _event_bus = event_bus

    from soa_tours.core.executions.repository import ExecutionRepository
    from soa_tours.core.executions.tracker import ExecutionTracker
    from soa_tours.core.positions.repository import PositionRepository
    from soa_tours.core.positions.service import PositionService
    from soa_tours.core.tours.repository import TourRepository
    from soa_tours.core.tours.service import TourService

    tour_repository = TourRepository(db)

    _position_service = PositionService(
        PositionRepository(db),
        redis=redis,
        cache_ttl=settings.redis_ttl.POSITION_TTL,
    )
    _tour_service = TourService(
        tour_repository,
        nearby_radius_m=settings.tracking.NEARBY_KEYPOINTS_RADIUS_M,
    )
    _execution_tracker = ExecutionTracker(
        db=db,
        executions=ExecutionRepository(db),
        tours=tour_repository,
        positions=_position_service,
        event_bus=event_bus,
        completion_radius_m=settings.tracking.KEYPOINT_COMPLETION_RADIUS_M,
    )


def get_database() -> "DatabaseManager":
    """Получить менеджер БД."""
    if _db is None:
        raise RuntimeError("БД не инициализирована. Вызовите init_dependencies()")
    return _db


def get_redis() -> "RedisClient | None":
    """Получить клиент Redis (None, если кэш отключён)."""
    return _redis


def get_event_bus() -> "EventBus | None":
    """Получить шину событий (None, если RabbitMQ отключён)."""
    return _event_bus


def get_position_service() -> "PositionService":
    """Получить сервис позиций."""
    if _position_service is None:
        raise RuntimeError("PositionService не инициализирован. Вызовите init_dependencies()")
    return _position_service


def get_tour_service() -> "TourService":
    """Получить сервис туров."""
    if _tour_service is None:
        raise RuntimeError("TourService не инициализирован. Вызовите init_dependencies()")
    return _tour_service


def get_execution_tracker() -> "ExecutionTracker":
    """Получить трекер прохождений."""
    if _execution_tracker is None:
        raise RuntimeError("ExecutionTracker не инициализирован. Вызовите init_dependencies()")
    return _execution_tracker


async def cleanup_dependencies() -> None:
    """Очистить ссылки при остановке приложения."""
    global _db, _redis, _event_bus, _position_service, _tour_service, _execution_tracker
    _db = None
    _redis = None
    _event_bus = None
    _position_service = None
    _tour_service = None
    _execution_tracker = None
