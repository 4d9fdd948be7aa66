# soa_tours/shared/models/tour.py
"""
DTO туров и ключевых точек.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from soa_tours.common.constants import TourDifficulty, TourStatus


class TransportType(str, Enum):
    """Способ передвижения для оценки времени тура."""
    WALKING = "walking"
    BICYCLE = "bicycle"
    CAR = "car"


class TransportTime(BaseModel):
    """Оценка длительности тура для способа передвижения."""

    transport_type: TransportType
    duration_minutes: int = Field(..., gt=0)


class Keypoint(BaseModel):
    """
    Ключевая точка тура.

    id и order (0-based) стабильны: после удаления точки остальные
    не перенумеровываются, order определяет порядок прохождения
    и может идти с пропусками.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str = ""
    latitude: float
    longitude: float
    images: list[str] = Field(default_factory=list)
    order: int = Field(..., ge=0)


class Tour(BaseModel):
    """Тур с упорядоченными ключевыми точками."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str = ""
    author_id: int
    status: TourStatus = TourStatus.DRAFT
    difficulty: TourDifficulty = TourDifficulty.EASY
    price: float = 0.0
    distance_km: float = 0.0
    tags: list[str] = Field(default_factory=list)
    keypoints: list[Keypoint] = Field(default_factory=list)
    transport_times: list[TransportTime] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    published_at: datetime | None = None
    archived_at: datetime | None = None

    def ordered_keypoints(self) -> list[Keypoint]:
        """Ключевые точки по возрастанию order."""
        return sorted(self.keypoints, key=lambda kp: kp.order)


class TourCreateRequest(BaseModel):
    """Запрос на создание тура (всегда в статусе draft)."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    difficulty: TourDifficulty = TourDifficulty.EASY
    tags: list[str] = Field(default_factory=list)


class TourUpdateRequest(BaseModel):
    """Частичное обновление тура автором."""

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    difficulty: TourDifficulty | None = None
    status: TourStatus | None = None
    price: float | None = Field(None, ge=0)
    distance_km: float | None = Field(None, ge=0)
    tags: list[str] | None = None
    transport_times: list[TransportTime] | None = None


class TourSearchParams(BaseModel):
    """Фильтры списка туров."""

    author_id: int | None = None
    status: TourStatus | None = None
    difficulty: TourDifficulty | None = None


class KeypointCreateRequest(BaseModel):
    """Новая ключевая точка (добавляется в конец)."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    latitude: float
    longitude: float
    images: list[str] = Field(default_factory=list)


class KeypointUpdateRequest(BaseModel):
    """Частичное обновление ключевой точки."""

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    images: list[str] | None = None


class NearbyKeypoint(BaseModel):
    """Ключевая точка в радиусе подсказки с расстоянием до неё."""

    keypoint: Keypoint
    distance_m: float
