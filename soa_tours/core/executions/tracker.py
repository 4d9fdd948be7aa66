# soa_tours/core/executions/tracker.py
"""
Трекер прохождения туров.

Жизненный цикл: start → (check)* → completed | abandoned.
Ключевые точки засчитываются строго по порядку: целью проверки всегда
является незасчитанная точка с наименьшим order. Точка засчитывается,
если расстояние до неё не больше радиуса завершения (по умолчанию 50 м).

Проверка и прерывание выполняются в транзакции с блокировкой строки
прохождения. События публикуются после фиксации транзакции.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from soa_tours.common.constants import DEFAULT_COMPLETION_RADIUS_M, ExecutionStatus, TypeMsg
from soa_tours.common.exceptions import ConflictError, NotFoundError, PreconditionError, ValidationError
from soa_tours.common.logger import log_info
from soa_tours.core.executions.repository import ExecutionRepository
from soa_tours.core.executions.state_machine import ExecutionStateMachine
from soa_tours.core.geo.proximity import haversine_distance_m, is_within_radius
from soa_tours.core.positions.service import PositionService
from soa_tours.core.tours.repository import TourRepository
from soa_tours.infra.database import DatabaseManager
from soa_tours.infra.event_bus import EventBus
from soa_tours.shared.events.base import DomainEvent
from soa_tours.shared.events.execution_events import (
    KeypointCompleted,
    TourExecutionAbandoned,
    TourExecutionCompleted,
    TourExecutionStarted,
)
from soa_tours.shared.models.execution import (
    CompletedKeypoint,
    CurrentPosition,
    ExecutionProgress,
    ProximityCheckResult,
    TourExecution,
    TourExecutionDetails,
)
from soa_tours.shared.models.position import Position
from soa_tours.shared.models.tour import Keypoint


# =============================================================================
# ЧИСТЫЕ ФУНКЦИИ
# =============================================================================


def is_keypoint_completed(keypoint: Keypoint, completed: list[CompletedKeypoint]) -> bool:
    """
    Засчитана ли точка.
    Записи с keypoint_id сопоставляются по id, записи без id по индексу.
    """
    for entry in completed:
        if entry.keypoint_id is not None:
            if entry.keypoint_id == keypoint.id:
                return True
        elif entry.keypoint_index == keypoint.order:
            return True
    return False


def next_target(keypoints: list[Keypoint], completed: list[CompletedKeypoint]) -> Optional[Keypoint]:
    """Незасчитанная точка с наименьшим order или None."""
    for keypoint in sorted(keypoints, key=lambda kp: kp.order):
        if not is_keypoint_completed(keypoint, completed):
            return keypoint
    return None


def calculate_progress(keypoints: list[Keypoint], completed: list[CompletedKeypoint]) -> ExecutionProgress:
    """Прогресс относительно текущего состава тура."""
    total = len(keypoints)
    done = sum(1 for kp in keypoints if is_keypoint_completed(kp, completed))
    percentage = round(done / total * 100, 1) if total else 0.0
    return ExecutionProgress(completed=done, total=total, percentage=percentage)


@dataclass
class ProximityOutcome:
    """Итог оценки одной проверки."""

    target: Keypoint | None = None
    distance_to_target: float | None = None
    completed_entry: CompletedKeypoint | None = None
    tour_completed: bool = False
    next_keypoint: Keypoint | None = None
    distance_to_next: float | None = None


def evaluate_proximity(
    execution: TourExecution,
    keypoints: list[Keypoint],
    position: Position,
    radius_m: float,
    now: datetime,
) -> ProximityOutcome:
    """
    Применяет одну проверку близости к прохождению (изменяет execution).

    Обновляет current_position и last_activity, засчитывает текущую цель,
    если она в радиусе, и переводит прохождение в completed, когда
    незасчитанных точек не осталось.
    """
    outcome = ProximityOutcome()

    execution.current_position = CurrentPosition(
        latitude=position.latitude,
        longitude=position.longitude,
        timestamp=position.timestamp,
        accuracy=position.accuracy,
    )
    execution.last_activity = now

    target = next_target(keypoints, execution.completed_keypoints)
    if target is not None:
        distance = haversine_distance_m(position.latitude, position.longitude, target.latitude, target.longitude)
        outcome.target = target
        outcome.distance_to_target = round(distance, 2)

        if is_within_radius(distance, radius_m):
            entry = CompletedKeypoint(
                keypoint_index=target.order,
                keypoint_id=target.id,
                completed_at=now,
                latitude=position.latitude,
                longitude=position.longitude,
            )
            execution.completed_keypoints.append(entry)
            outcome.completed_entry = entry

    next_keypoint = next_target(keypoints, execution.completed_keypoints)
    if next_keypoint is None:
        ExecutionStateMachine.validate_transition(execution.status, ExecutionStatus.COMPLETED, execution.id)
        execution.status = ExecutionStatus.COMPLETED
        execution.completed_at = now
        outcome.tour_completed = True
    else:
        outcome.next_keypoint = next_keypoint
        outcome.distance_to_next = round(
            haversine_distance_m(
                position.latitude, position.longitude, next_keypoint.latitude, next_keypoint.longitude
            ),
            2,
        )

    return outcome


# =============================================================================
# ТРЕКЕР
# =============================================================================


class ExecutionTracker:
    """Сервис прохождения туров."""

    def __init__(
        self,
        db: DatabaseManager,
        executions: ExecutionRepository,
        tours: TourRepository,
        positions: PositionService,
        event_bus: EventBus | None = None,
        completion_radius_m: float = DEFAULT_COMPLETION_RADIUS_M,
    ) -> None:
        self._db = db
        self._executions = executions
        self._tours = tours
        self._positions = positions
        self._event_bus = event_bus
        self._completion_radius_m = completion_radius_m

    async def _publish(self, events: list[DomainEvent]) -> None:
        if self._event_bus is None:
            return
        for event in events:
            await self._event_bus.publish(event)

    async def start_execution(self, user_id: int, tour_id: str) -> TourExecution:
        """
        Начинает прохождение тура.

        Raises:
            ConflictError: у пользователя уже есть активное прохождение
            PreconditionError: позиция пользователя не задана
            NotFoundError: тур не найден
            ValidationError: в туре нет ключевых точек
        """
        active = await self._executions.get_active_for_user(user_id)
        if active is not None:
            raise ConflictError("active tour exists", details={"execution_id": active.id})

        position = await self._positions.find_position(user_id)
        if position is None:
            raise PreconditionError(
                "no position set",
                details={"hint": "Please set your position using the Position Simulator before starting a tour"},
            )

        tour = await self._tours.get(tour_id)
        if tour is None:
            raise NotFoundError("tour not found", details={"tour_id": tour_id})
        if not tour.keypoints:
            raise ValidationError("tour has no keypoints", details={"tour_id": tour_id})

        now = datetime.now(timezone.utc)
        execution = TourExecution(
            id=str(uuid4()),
            user_id=user_id,
            tour_id=tour_id,
            status=ExecutionStatus.ACTIVE,
            current_position=CurrentPosition(
                latitude=position.latitude,
                longitude=position.longitude,
                timestamp=position.timestamp,
                accuracy=position.accuracy,
            ),
            completed_keypoints=[],
            started_at=now,
            last_activity=now,
        )
        created = await self._executions.insert(execution)

        await log_info(
            f"Тур начат: execution={created.id}, user_id={user_id}, tour={tour_id}",
            type_msg=TypeMsg.INFO,
        )
        await self._publish([
            TourExecutionStarted(
                execution_id=created.id,
                user_id=user_id,
                tour_id=tour_id,
                keypoints_total=len(tour.keypoints),
            ),
        ])
        return created

    async def check_proximity(self, execution_id: str, user_id: int) -> ProximityCheckResult:
        """
        Проверяет близость к текущей цели прохождения.

        Raises:
            NotFoundError: прохождение не найдено (или чужое), позиция не задана
            ConflictError: прохождение уже завершено или прервано
        """
        async with self._db.transaction() as conn:
            execution = await self._executions.get_for_update(conn, execution_id)
            if execution is None or execution.user_id != user_id:
                raise NotFoundError("execution not found", details={"execution_id": execution_id})
            ExecutionStateMachine.ensure_active(execution.status, execution.id)

            position = await self._positions.get_position(user_id, conn=conn)
            keypoints = await self._tours.get_keypoints(execution.tour_id, conn=conn)

            outcome = evaluate_proximity(
                execution,
                keypoints,
                position,
                self._completion_radius_m,
                datetime.now(timezone.utc),
            )
            await self._executions.save(conn, execution)

        progress = calculate_progress(keypoints, execution.completed_keypoints)
        events = self._outcome_events(execution, outcome, progress)

        if outcome.completed_entry is not None:
            await log_info(
                f"Ключевая точка засчитана: execution={execution.id}, "
                f"order={outcome.completed_entry.keypoint_index}, {outcome.distance_to_target} м",
                type_msg=TypeMsg.INFO,
            )
        if outcome.tour_completed:
            await log_info(f"Тур завершён: execution={execution.id}", type_msg=TypeMsg.INFO)
        await self._publish(events)

        reported = outcome.target

        return ProximityCheckResult(
            near_keypoint=outcome.completed_entry is not None,
            keypoint_index=reported.order if reported else None,
            keypoint_name=reported.name if reported else None,
            distance_to_keypoint=outcome.distance_to_target,
            completed_keypoint=outcome.completed_entry,
            next_keypoint_index=outcome.next_keypoint.order if outcome.next_keypoint else None,
            distance_to_next_keypoint=outcome.distance_to_next,
            progress=progress,
            tour_execution=execution,
        )

    @staticmethod
    def _outcome_events(
        execution: TourExecution,
        outcome: ProximityOutcome,
        progress: ExecutionProgress,
    ) -> list[DomainEvent]:
        events: list[DomainEvent] = []
        if outcome.completed_entry is not None:
            events.append(KeypointCompleted(
                execution_id=execution.id,
                user_id=execution.user_id,
                tour_id=execution.tour_id,
                keypoint_index=outcome.completed_entry.keypoint_index,
                keypoint_id=outcome.completed_entry.keypoint_id,
                distance_m=outcome.distance_to_target or 0.0,
                completed_count=progress.completed,
                keypoints_total=progress.total,
            ))
        if outcome.tour_completed and execution.completed_at is not None:
            events.append(TourExecutionCompleted(
                execution_id=execution.id,
                user_id=execution.user_id,
                tour_id=execution.tour_id,
                duration_seconds=(execution.completed_at - execution.started_at).total_seconds(),
            ))
        return events

    async def check_active_execution(self, user_id: int) -> ProximityCheckResult:
        """
        Проверка близости для активного прохождения пользователя.

        Raises:
            NotFoundError: активного прохождения нет
        """
        active = await self._executions.get_active_for_user(user_id)
        if active is None:
            raise NotFoundError("no active tour", details={"user_id": user_id})
        return await self.check_proximity(active.id, user_id)

    async def abandon_execution(self, execution_id: str, user_id: int) -> TourExecution:
        """
        Прерывает активное прохождение.

        Raises:
            NotFoundError: прохождение не найдено (или чужое)
            ConflictError: прохождение уже завершено или прервано
        """
        async with self._db.transaction() as conn:
            execution = await self._executions.get_for_update(conn, execution_id)
            if execution is None or execution.user_id != user_id:
                raise NotFoundError("execution not found", details={"execution_id": execution_id})

            ExecutionStateMachine.validate_transition(
                execution.status, ExecutionStatus.ABANDONED, execution.id
            )
            now = datetime.now(timezone.utc)
            execution.status = ExecutionStatus.ABANDONED
            execution.abandoned_at = now
            execution.last_activity = now
            await self._executions.save(conn, execution)

        await log_info(f"Тур прерван: execution={execution.id}", type_msg=TypeMsg.INFO)
        await self._publish([
            TourExecutionAbandoned(
                execution_id=execution.id,
                user_id=execution.user_id,
                tour_id=execution.tour_id,
                completed_count=len(execution.completed_keypoints),
            ),
        ])
        return execution

    async def list_executions(self, user_id: int) -> list[TourExecution]:
        """Все прохождения пользователя, новые первыми."""
        return await self._executions.list_for_user(user_id)

    async def get_execution(self, execution_id: str, user_id: int) -> TourExecutionDetails:
        """
        Прохождение с прогрессом.

        Raises:
            NotFoundError: прохождение не найдено (или чужое)
        """
        execution = await self._executions.get(execution_id)
        if execution is None or execution.user_id != user_id:
            raise NotFoundError("execution not found", details={"execution_id": execution_id})

        keypoints = await self._tours.get_keypoints(execution.tour_id)
        return TourExecutionDetails(
            tour_execution=execution,
            progress=calculate_progress(keypoints, execution.completed_keypoints),
        )

    async def get_active_execution(self, user_id: int) -> TourExecutionDetails:
        """
        Активное прохождение пользователя с прогрессом.

        Raises:
            NotFoundError: активного прохождения нет
        """
        execution = await self._executions.get_active_for_user(user_id)
        if execution is None:
            raise NotFoundError("no active tour", details={"user_id": user_id})

        keypoints = await self._tours.get_keypoints(execution.tour_id)
        return TourExecutionDetails(
            tour_execution=execution,
            progress=calculate_progress(keypoints, execution.completed_keypoints),
        )
