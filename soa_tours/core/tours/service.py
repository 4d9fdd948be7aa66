# soa_tours/core/tours/service.py
"""
Бизнес-логика туров: создание, редактирование автором, ключевые точки.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from soa_tours.common.constants import TourStatus, TypeMsg
from soa_tours.common.exceptions import NotFoundError, PermissionDeniedError
from soa_tours.common.logger import log_info
from soa_tours.core.geo.proximity import keypoints_within_radius
from soa_tours.core.positions.service import validate_coordinates
from soa_tours.core.tours.repository import TourRepository
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


class TourService:
    """Сервис туров."""

    def __init__(self, repository: TourRepository, nearby_radius_m: float = 100.0) -> None:
        self._repository = repository
        self._nearby_radius_m = nearby_radius_m

    async def get_tour(self, tour_id: str) -> Tour:
        """
        Тур по ID.

        Raises:
            NotFoundError: тур не найден
        """
        tour = await self._repository.get(tour_id)
        if tour is None:
            raise NotFoundError("tour not found", details={"tour_id": tour_id})
        return tour

    async def list_tours(self, params: TourSearchParams) -> list[Tour]:
        """Список туров по фильтрам."""
        return await self._repository.list_tours(params)

    async def create_tour(self, author_id: int, request: TourCreateRequest) -> Tour:
        """Создаёт тур-черновик без ключевых точек."""
        tour = Tour(
            id=str(uuid4()),
            name=request.name,
            description=request.description,
            author_id=author_id,
            status=TourStatus.DRAFT,
            difficulty=request.difficulty,
            tags=request.tags,
            created_at=datetime.now(timezone.utc),
        )
        created = await self._repository.create(tour)

        await log_info(f"Тур создан: {created.id} (автор {author_id})", type_msg=TypeMsg.INFO)
        return created

    async def _get_own_tour(self, tour_id: str, author_id: int) -> Tour:
        tour = await self.get_tour(tour_id)
        if tour.author_id != author_id:
            raise PermissionDeniedError(
                "you can only modify your own tours",
                details={"tour_id": tour_id},
            )
        return tour

    async def update_tour(self, tour_id: str, author_id: int, request: TourUpdateRequest) -> Tour:
        """
        Обновляет тур автором.
        При первой публикации/архивации проставляет published_at/archived_at.

        Raises:
            NotFoundError: тур не найден
            PermissionDeniedError: тур принадлежит другому автору
        """
        tour = await self._get_own_tour(tour_id, author_id)

        fields = request.model_dump(exclude_unset=True, exclude_none=True)
        if request.transport_times is not None:
            fields["transport_times"] = request.transport_times

        now = datetime.now(timezone.utc)
        if request.status == TourStatus.PUBLISHED and tour.published_at is None:
            fields["published_at"] = now
        if request.status == TourStatus.ARCHIVED and tour.archived_at is None:
            fields["archived_at"] = now

        updated = await self._repository.update(tour_id, fields)
        if updated is None:
            raise NotFoundError("tour not found", details={"tour_id": tour_id})

        await log_info(f"Тур обновлён: {tour_id}, поля: {sorted(fields)}", type_msg=TypeMsg.DEBUG)
        return updated

    async def add_keypoint(self, tour_id: str, author_id: int, request: KeypointCreateRequest) -> Keypoint:
        """Добавляет ключевую точку в конец тура."""
        validate_coordinates(request.latitude, request.longitude)
        await self._get_own_tour(tour_id, author_id)

        keypoint = await self._repository.add_keypoint(tour_id, request.model_dump())
        await log_info(
            f"Ключевая точка добавлена: тур {tour_id}, order={keypoint.order}",
            type_msg=TypeMsg.DEBUG,
        )
        return keypoint

    async def update_keypoint(
        self,
        tour_id: str,
        author_id: int,
        order: int,
        request: KeypointUpdateRequest,
    ) -> Keypoint:
        """Частично обновляет ключевую точку по её order."""
        tour = await self._get_own_tour(tour_id, author_id)

        fields = request.model_dump(exclude_unset=True, exclude_none=True)
        current = next((kp for kp in tour.keypoints if kp.order == order), None)
        if current is None:
            raise NotFoundError("keypoint not found", details={"tour_id": tour_id, "order": order})

        validate_coordinates(
            fields.get("latitude", current.latitude),
            fields.get("longitude", current.longitude),
        )

        keypoint = await self._repository.update_keypoint(tour_id, order, fields)
        if keypoint is None:
            raise NotFoundError("keypoint not found", details={"tour_id": tour_id, "order": order})
        return keypoint

    async def remove_keypoint(self, tour_id: str, author_id: int, order: int) -> None:
        """Удаляет ключевую точку, order остальных точек не меняется."""
        await self._get_own_tour(tour_id, author_id)

        removed = await self._repository.remove_keypoint(tour_id, order)
        if not removed:
            raise NotFoundError("keypoint not found", details={"tour_id": tour_id, "order": order})

        await log_info(f"Ключевая точка удалена: тур {tour_id}, order={order}", type_msg=TypeMsg.DEBUG)

    async def get_nearby_keypoints(
        self,
        tour_id: str,
        latitude: float,
        longitude: float,
        radius_m: float | None = None,
    ) -> list[NearbyKeypoint]:
        """
        Ключевые точки тура в радиусе подсказки (по умолчанию 100 м).
        Не влияет на прохождение тура.
        """
        validate_coordinates(latitude, longitude)
        keypoints = await self._repository.get_keypoints(tour_id)
        if not keypoints and await self._repository.get(tour_id) is None:
            raise NotFoundError("tour not found", details={"tour_id": tour_id})

        return keypoints_within_radius(latitude, longitude, keypoints, radius_m or self._nearby_radius_m)
