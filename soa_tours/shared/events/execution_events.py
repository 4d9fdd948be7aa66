# soa_tours/shared/events/execution_events.py
"""
События домена прохождения тура (tour execution).
"""

from __future__ import annotations

from typing import Literal

from soa_tours.shared.events.base import DomainEvent


class TourExecutionStarted(DomainEvent):
    """Событие: пользователь начал тур."""

    event_type: Literal["tour_execution.started"] = "tour_execution.started"

    execution_id: str
    user_id: int
    tour_id: str
    keypoints_total: int


class KeypointCompleted(DomainEvent):
    """Событие: ключевая точка засчитана."""

    event_type: Literal["tour_execution.keypoint_completed"] = "tour_execution.keypoint_completed"

    execution_id: str
    user_id: int
    tour_id: str
    keypoint_index: int
    keypoint_id: str | None = None
    distance_m: float
    completed_count: int
    keypoints_total: int


class TourExecutionCompleted(DomainEvent):
    """Событие: все ключевые точки пройдены."""

    event_type: Literal["tour_execution.completed"] = "tour_execution.completed"

    execution_id: str
    user_id: int
    tour_id: str
    duration_seconds: float


class TourExecutionAbandoned(DomainEvent):
    """Событие: пользователь прервал тур."""

    event_type: Literal["tour_execution.abandoned"] = "tour_execution.abandoned"

    execution_id: str
    user_id: int
    tour_id: str
    completed_count: int
