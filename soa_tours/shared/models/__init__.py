# soa_tours/shared/models/__init__.py
"""
DTO и Pydantic-модели Content Service.
"""

from soa_tours.shared.models.common import ErrorResponse, HealthStatus, MessageResponse
from soa_tours.shared.models.position import Position, PositionUpdateRequest, PositionListResponse
from soa_tours.shared.models.tour import (
    Keypoint,
    Tour,
    TransportTime,
    TransportType,
    TourCreateRequest,
    TourUpdateRequest,
    TourSearchParams,
    KeypointCreateRequest,
    KeypointUpdateRequest,
    NearbyKeypoint,
)
from soa_tours.shared.models.execution import (
    CurrentPosition,
    CompletedKeypoint,
    TourExecution,
    ExecutionProgress,
    TourExecutionDetails,
    StartExecutionRequest,
    StartExecutionResponse,
    ProximityCheckResult,
    ExecutionListResponse,
)

__all__ = [
    # Common
    "ErrorResponse",
    "HealthStatus",
    "MessageResponse",
    # Position
    "Position",
    "PositionUpdateRequest",
    "PositionListResponse",
    # Tour
    "Keypoint",
    "Tour",
    "TransportTime",
    "TransportType",
    "TourCreateRequest",
    "TourUpdateRequest",
    "TourSearchParams",
    "KeypointCreateRequest",
    "KeypointUpdateRequest",
    "NearbyKeypoint",
    # Execution
    "CurrentPosition",
    "CompletedKeypoint",
    "TourExecution",
    "ExecutionProgress",
    "TourExecutionDetails",
    "StartExecutionRequest",
    "StartExecutionResponse",
    "ProximityCheckResult",
    "ExecutionListResponse",
]
