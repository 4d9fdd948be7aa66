# soa_tours/shared/events/__init__.py
"""
Схемы событий для RabbitMQ.

Все события идемпотентны и содержат event_id для дедупликации.
"""

from soa_tours.shared.events.base import DomainEvent, EventMetadata
from soa_tours.shared.events.execution_events import (
    TourExecutionStarted,
    KeypointCompleted,
    TourExecutionCompleted,
    TourExecutionAbandoned,
)

__all__ = [
    "DomainEvent",
    "EventMetadata",
    "TourExecutionStarted",
    "KeypointCompleted",
    "TourExecutionCompleted",
    "TourExecutionAbandoned",
]
