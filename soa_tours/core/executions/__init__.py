# soa_tours/core/executions/__init__.py
"""Прохождение туров: state machine, репозиторий, трекер."""

from soa_tours.core.executions.repository import ExecutionRepository
from soa_tours.core.executions.state_machine import ExecutionStateMachine
from soa_tours.core.executions.tracker import (
    ExecutionTracker,
    calculate_progress,
    evaluate_proximity,
    next_target,
)

__all__ = [
    "ExecutionRepository",
    "ExecutionStateMachine",
    "ExecutionTracker",
    "calculate_progress",
    "evaluate_proximity",
    "next_target",
]
