# soa_tours/shared/models/position.py
"""
DTO для симулированной позиции пользователя.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Position(BaseModel):
    """Последняя известная позиция пользователя (одна на пользователя)."""

    model_config = ConfigDict(from_attributes=True)

    user_id: int
    latitude: float
    longitude: float
    timestamp: datetime
    accuracy: float | None = None


class PositionUpdateRequest(BaseModel):
    """
    Запрос обновления позиции.
    Границы координат проверяет PositionService, чтобы ошибка
    возвращалась в едином формате ErrorResponse.
    """

    latitude: float
    longitude: float
    accuracy: float | None = None


class PositionListResponse(BaseModel):
    """Список позиций."""

    positions: list[Position]
    count: int
