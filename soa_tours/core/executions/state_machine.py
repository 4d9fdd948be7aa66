# soa_tours/core/executions/state_machine.py
"""
State machine прохождения тура.

Допустимые переходы:
- active → completed (пройдены все ключевые точки)
- active → abandoned (пользователь прервал тур)

completed и abandoned терминальны: запись больше не изменяется.
"""

from __future__ import annotations

from soa_tours.common.constants import ExecutionStatus
from soa_tours.common.exceptions import ConflictError


class ExecutionStateMachine:
    """Переходы между статусами прохождения тура."""

    VALID_TRANSITIONS: dict[ExecutionStatus, list[ExecutionStatus]] = {
        ExecutionStatus.ACTIVE: [ExecutionStatus.COMPLETED, ExecutionStatus.ABANDONED],
        ExecutionStatus.COMPLETED: [],
        ExecutionStatus.ABANDONED: [],
    }

    @classmethod
    def can_transition(cls, from_status: ExecutionStatus, to_status: ExecutionStatus) -> bool:
        """Проверяет, допустим ли переход."""
        return to_status in cls.VALID_TRANSITIONS.get(from_status, [])

    @classmethod
    def validate_transition(
        cls,
        from_status: ExecutionStatus,
        to_status: ExecutionStatus,
        execution_id: str | None = None,
    ) -> None:
        """
        Проверяет переход.

        Raises:
            ConflictError: прохождение уже не активно
        """
        if not cls.can_transition(from_status, to_status):
            raise ConflictError(
                "execution not active",
                details={
                    "execution_id": execution_id,
                    "status": from_status.value,
                    "requested_status": to_status.value,
                },
            )

    @classmethod
    def ensure_active(cls, status: ExecutionStatus, execution_id: str | None = None) -> None:
        """
        Мутации допустимы только для активного прохождения.

        Raises:
            ConflictError: прохождение завершено или прервано
        """
        if status != ExecutionStatus.ACTIVE:
            raise ConflictError(
                "execution not active",
                details={"execution_id": execution_id, "status": status.value},
            )
