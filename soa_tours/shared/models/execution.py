# soa_tours/shared/models/execution.py
"""
DTO прохождения тура (tour execution).

Имена и типы полей совпадают с хранимой записью и ответами API.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from soa_tours.common.constants import ExecutionStatus


class CurrentPosition(BaseModel):
    """Позиция пользователя на момент последней проверки."""

    latitude: float
    longitude: float
    timestamp: datetime
    accuracy: float | None = None


class CompletedKeypoint(BaseModel):
    """Засчитанная ключевая точка."""

    keypoint_index: int = Field(..., ge=0)
    keypoint_id: str | None = None  # старые записи могут не содержать id
    completed_at: datetime
    latitude: float
    longitude: float


class TourExecution(BaseModel):
    """Прохождение тура пользователем."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: int
    tour_id: str
    status: ExecutionStatus = ExecutionStatus.ACTIVE
    current_position: CurrentPosition | None = None
    completed_keypoints: list[CompletedKeypoint] = Field(default_factory=list)
    started_at: datetime
    completed_at: datetime | None = None
    abandoned_at: datetime | None = None
    last_activity: datetime

    @property
    def is_active(self) -> bool:
        """Тур ещё проходится."""
        return self.status == ExecutionStatus.ACTIVE

    @property
    def is_terminal(self) -> bool:
        """Завершён или прерван."""
        return self.status in (ExecutionStatus.COMPLETED, ExecutionStatus.ABANDONED)


class ExecutionProgress(BaseModel):
    """Прогресс прохождения."""

    completed: int
    total: int
    percentage: float


class TourExecutionDetails(BaseModel):
    """Прохождение вместе с прогрессом по текущему составу тура."""

    tour_execution: TourExecution
    progress: ExecutionProgress


class StartExecutionRequest(BaseModel):
    """Запрос на начало тура."""

    tour_id: str = Field(..., min_length=1)


class StartExecutionResponse(BaseModel):
    """Ответ на начало тура."""

    message: str = "Tour started successfully"
    tour_execution: TourExecution


class ProximityCheckResult(BaseModel):
    """
    Результат проверки близости.

    keypoint_index, keypoint_name и distance_to_keypoint относятся к точке,
    засчитанной этой проверкой, либо, если ничего не засчитано, к следующей
    цели. next_keypoint_index и distance_to_next_keypoint всегда описывают
    цель после проверки (None, если тур завершён).
    """

    near_keypoint: bool
    keypoint_index: int | None = None
    keypoint_name: str | None = None
    distance_to_keypoint: float | None = None
    completed_keypoint: CompletedKeypoint | None = None
    next_keypoint_index: int | None = None
    distance_to_next_keypoint: float | None = None
    progress: ExecutionProgress
    tour_execution: TourExecution


class ExecutionListResponse(BaseModel):
    """Список прохождений пользователя."""

    executions: list[TourExecution]
    count: int
