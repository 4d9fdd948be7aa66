# soa_tours/services/content_service/routes.py
"""
HTTP-маршруты Content Service (монтируются с префиксом /api/v1).

Пользователь определяется заголовком X-User-ID.
Доменные ошибки отдаются обработчиками из app.py в формате ErrorResponse.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Query, status
from pydantic import BaseModel

from soa_tours.common.constants import TourDifficulty, TourStatus
from soa_tours.common.exceptions import AuthenticationError
from soa_tours.core.executions.tracker import ExecutionTracker
from soa_tours.core.positions.service import PositionService
from soa_tours.core.tours.service import TourService
from soa_tours.services.content_service.dependencies import (
    get_execution_tracker,
    get_position_service,
    get_tour_service,
)
from soa_tours.shared.models.common import MessageResponse
from soa_tours.shared.models.execution import (
    ExecutionListResponse,
    ProximityCheckResult,
    StartExecutionRequest,
    StartExecutionResponse,
    TourExecutionDetails,
)
from soa_tours.shared.models.position import Position, PositionListResponse, PositionUpdateRequest
from soa_tours.shared.models.tour import (
    Keypoint,
    KeypointCreateRequest,
    KeypointUpdateRequest,
    NearbyKeypoint,
    Tour,
    TourCreateRequest,
    TourSearchParams,
    TourUpdateRequest,
)

# === AUTH DEPENDENCY ===

async def get_current_user_id(
    x_user_id: Annotated[str | None, Header(alias="X-User-ID")] = None,
) -> int:
    """
    ID пользователя из заголовка X-User-ID.

    Raises:
        AuthenticationError: заголовок отсутствует или не является положительным целым
    """
    if not x_user_id:
        raise AuthenticationError("user id required")
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise AuthenticationError("invalid user id", details={"x_user_id": x_user_id}) from None
    if user_id <= 0:
        raise AuthenticationError("invalid user id", details={"x_user_id": x_user_id})
    return user_id


CurrentUser = Annotated[int, Depends(get_current_user_id)]
Tracker = Annotated[ExecutionTracker, Depends(get_execution_tracker)]
Tours = Annotated[TourService, Depends(get_tour_service)]
Positions = Annotated[PositionService, Depends(get_position_service)]


# === RESPONSE MODELS ===

class TourListResponse(BaseModel):
    """Список туров."""
    tours: list[Tour]
    count: int


class NearbyKeypointsResponse(BaseModel):
    """Ключевые точки рядом с позицией."""
    keypoints: list[NearbyKeypoint]
    count: int


# =============================================================================
# ПРОХОЖДЕНИЕ ТУРОВ
# =============================================================================

executions_router = APIRouter(prefix="/tours", tags=["Tour Execution"])


@executions_router.post(
    "/start",
    response_model=StartExecutionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def start_tour(
    request: StartExecutionRequest,
    user_id: CurrentUser,
    tracker: Tracker,
) -> StartExecutionResponse:
    """Начать прохождение тура."""
    execution = await tracker.start_execution(user_id, request.tour_id)
    return StartExecutionResponse(tour_execution=execution)


@executions_router.post("/check-keypoints", response_model=ProximityCheckResult)
async def check_keypoints(user_id: CurrentUser, tracker: Tracker) -> ProximityCheckResult:
    """Проверить близость к следующей ключевой точке активного тура."""
    return await tracker.check_active_execution(user_id)


@executions_router.put("/{execution_id}/abandon", response_model=MessageResponse)
async def abandon_tour(execution_id: str, user_id: CurrentUser, tracker: Tracker) -> MessageResponse:
    """Прервать прохождение тура."""
    await tracker.abandon_execution(execution_id, user_id)
    return MessageResponse(message="Tour abandoned successfully")


@executions_router.get("/executions", response_model=ExecutionListResponse)
async def list_executions(user_id: CurrentUser, tracker: Tracker) -> ExecutionListResponse:
    """История прохождений пользователя."""
    executions = await tracker.list_executions(user_id)
    return ExecutionListResponse(executions=executions, count=len(executions))


@executions_router.get("/executions/active", response_model=TourExecutionDetails)
async def get_active_execution(user_id: CurrentUser, tracker: Tracker) -> TourExecutionDetails:
    """Активное прохождение с прогрессом."""
    return await tracker.get_active_execution(user_id)


@executions_router.get("/executions/{execution_id}", response_model=TourExecutionDetails)
async def get_execution(execution_id: str, user_id: CurrentUser, tracker: Tracker) -> TourExecutionDetails:
    """Прохождение с прогрессом."""
    return await tracker.get_execution(execution_id, user_id)


# =============================================================================
# ТУРЫ
# =============================================================================

tours_router = APIRouter(prefix="/tours", tags=["Tours"])


@tours_router.get("", response_model=TourListResponse)
async def list_tours(
    service: Tours,
    author_id: int | None = None,
    tour_status: Annotated[TourStatus | None, Query(alias="status")] = None,
    difficulty: TourDifficulty | None = None,
) -> TourListResponse:
    """Список туров с фильтрами."""
    tours = await service.list_tours(
        TourSearchParams(author_id=author_id, status=tour_status, difficulty=difficulty)
    )
    return TourListResponse(tours=tours, count=len(tours))


@tours_router.post("", response_model=Tour, status_code=status.HTTP_201_CREATED)
async def create_tour(request: TourCreateRequest, user_id: CurrentUser, service: Tours) -> Tour:
    """Создать тур-черновик."""
    return await service.create_tour(user_id, request)


@tours_router.get("/{tour_id}", response_model=Tour)
async def get_tour(tour_id: str, service: Tours) -> Tour:
    """Тур с ключевыми точками."""
    return await service.get_tour(tour_id)


@tours_router.put("/{tour_id}", response_model=Tour)
async def update_tour(
    tour_id: str,
    request: TourUpdateRequest,
    user_id: CurrentUser,
    service: Tours,
) -> Tour:
    """Обновить тур (только автор)."""
    return await service.update_tour(tour_id, user_id, request)


@tours_router.get("/{tour_id}/keypoints/nearby", response_model=NearbyKeypointsResponse)
async def get_nearby_keypoints(
    tour_id: str,
    service: Tours,
    latitude: float,
    longitude: float,
    radius_m: Annotated[float | None, Query(gt=0)] = None,
) -> NearbyKeypointsResponse:
    """Ключевые точки тура рядом с позицией."""
    nearby = await service.get_nearby_keypoints(tour_id, latitude, longitude, radius_m)
    return NearbyKeypointsResponse(keypoints=nearby, count=len(nearby))


@tours_router.post(
    "/{tour_id}/keypoints",
    response_model=Keypoint,
    status_code=status.HTTP_201_CREATED,
)
async def add_keypoint(
    tour_id: str,
    request: KeypointCreateRequest,
    user_id: CurrentUser,
    service: Tours,
) -> Keypoint:
    """Добавить ключевую точку в конец тура."""
    return await service.add_keypoint(tour_id, user_id, request)


@tours_router.put("/{tour_id}/keypoints/{order}", response_model=Keypoint)
async def update_keypoint(
    tour_id: str,
    order: int,
    request: KeypointUpdateRequest,
    user_id: CurrentUser,
    service: Tours,
) -> Keypoint:
    """Обновить ключевую точку."""
    return await service.update_keypoint(tour_id, user_id, order, request)


@tours_router.delete("/{tour_id}/keypoints/{order}", response_model=MessageResponse)
async def remove_keypoint(tour_id: str, order: int, user_id: CurrentUser, service: Tours) -> MessageResponse:
    """Удалить ключевую точку."""
    await service.remove_keypoint(tour_id, user_id, order)
    return MessageResponse(message="Keypoint removed successfully")


# =============================================================================
# СИМУЛЯТОР ПОЗИЦИИ
# =============================================================================

positions_router = APIRouter(prefix="/positions", tags=["Position Simulator"])


@positions_router.get("", response_model=PositionListResponse)
async def list_positions(service: Positions) -> PositionListResponse:
    """Все сохранённые позиции."""
    positions = await service.list_positions()
    return PositionListResponse(positions=positions, count=len(positions))


@positions_router.get("/{user_id}", response_model=Position)
async def get_position(user_id: int, service: Positions) -> Position:
    """Позиция пользователя."""
    return await service.get_position(user_id)


@positions_router.post("/{user_id}", response_model=Position)
async def set_position(user_id: int, request: PositionUpdateRequest, service: Positions) -> Position:
    """Задать позицию пользователя."""
    return await service.set_position(user_id, request.latitude, request.longitude, request.accuracy)


@positions_router.delete("/{user_id}", response_model=MessageResponse)
async def delete_position(user_id: int, service: Positions) -> MessageResponse:
    """Удалить позицию пользователя."""
    await service.clear_position(user_id)
    return MessageResponse(message="Position deleted successfully")


router = APIRouter()
# executions_router раньше tours_router: /tours/executions не должен попасть в /tours/{tour_id}
router.include_router(executions_router)
router.include_router(tours_router)
router.include_router(positions_router)
