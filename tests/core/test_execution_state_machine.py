# tests/core/test_execution_state_machine.py
"""
Тесты state machine прохождения тура.
"""

from __future__ import annotations

import pytest

from soa_tours.common.constants import ExecutionStatus
from soa_tours.common.exceptions import ConflictError
from soa_tours.core.executions.state_machine import ExecutionStateMachine


class TestCanTransition:
    """Тесты для can_transition."""

    @pytest.mark.parametrize("target", [ExecutionStatus.COMPLETED, ExecutionStatus.ABANDONED])
    def test_active_can_finish(self, target: ExecutionStatus) -> None:
        assert ExecutionStateMachine.can_transition(ExecutionStatus.ACTIVE, target) is True

    @pytest.mark.parametrize("source", [ExecutionStatus.COMPLETED, ExecutionStatus.ABANDONED])
    @pytest.mark.parametrize("target", list(ExecutionStatus))
    def test_terminal_states_are_final(self, source: ExecutionStatus, target: ExecutionStatus) -> None:
        """Из completed и abandoned переходов нет."""
        assert ExecutionStateMachine.can_transition(source, target) is False

    def test_active_to_active_not_allowed(self) -> None:
        assert ExecutionStateMachine.can_transition(ExecutionStatus.ACTIVE, ExecutionStatus.ACTIVE) is False


class TestValidateTransition:
    """Тесты для validate_transition и ensure_active."""

    def test_valid_transition_passes(self) -> None:
        ExecutionStateMachine.validate_transition(ExecutionStatus.ACTIVE, ExecutionStatus.ABANDONED, "e1")

    def test_abandon_completed_raises_conflict(self) -> None:
        """Прервать завершённый тур нельзя."""
        with pytest.raises(ConflictError) as exc_info:
            ExecutionStateMachine.validate_transition(
                ExecutionStatus.COMPLETED, ExecutionStatus.ABANDONED, "e1"
            )

        assert exc_info.value.message == "execution not active"
        assert exc_info.value.details["execution_id"] == "e1"
        assert exc_info.value.details["status"] == "completed"

    def test_ensure_active(self) -> None:
        ExecutionStateMachine.ensure_active(ExecutionStatus.ACTIVE)

        with pytest.raises(ConflictError):
            ExecutionStateMachine.ensure_active(ExecutionStatus.ABANDONED, "e1")
