# tests/core/test_execution_repository.py
"""
Тесты ExecutionRepository: маппинг строк и ограничение одного активного тура.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import asyncpg
import pytest

from conftest import DEMO_TOUR_ID
from soa_tours.common.constants import ExecutionStatus
from soa_tours.common.exceptions import ConflictError, DependencyError
from soa_tours.core.executions.repository import ExecutionRepository
from soa_tours.shared.models.execution import CompletedKeypoint, CurrentPosition, TourExecution


def new_execution() -> TourExecution:
    now = datetime.now(timezone.utc)
    return TourExecution(
        id="exec-2",
        user_id=42,
        tour_id=DEMO_TOUR_ID,
        current_position=CurrentPosition(latitude=44.8176, longitude=20.4633, timestamp=now),
        started_at=now,
        last_activity=now,
    )


class TestRowMapping:
    """Маппинг строк tour_executions."""

    @pytest.mark.asyncio
    async def test_get_parses_jsonb_strings(self, mock_db, sample_execution_row) -> None:
        mock_db.fetchrow.return_value = sample_execution_row
        repo = ExecutionRepository(mock_db)

        execution = await repo.get("exec-1")

        assert execution.status == ExecutionStatus.ACTIVE
        assert execution.current_position.latitude == 44.8176
        assert execution.completed_keypoints == []

    @pytest.mark.asyncio
    async def test_get_accepts_decoded_jsonb(self, mock_db, sample_execution_row) -> None:
        sample_execution_row["completed_keypoints"] = [{
            "keypoint_index": 0,
            "completed_at": "2026-10-19T10:05:00Z",
            "latitude": 44.8176,
            "longitude": 20.4633,
        }]
        sample_execution_row["current_position"] = None
        mock_db.fetchrow.return_value = sample_execution_row
        repo = ExecutionRepository(mock_db)

        execution = await repo.get("exec-1")

        assert execution.current_position is None
        assert execution.completed_keypoints[0].keypoint_id is None
        assert execution.completed_keypoints[0].keypoint_index == 0

    @pytest.mark.asyncio
    async def test_get_missing(self, mock_db) -> None:
        repo = ExecutionRepository(mock_db)

        assert await repo.get("missing") is None

    @pytest.mark.asyncio
    async def test_list_for_user(self, mock_db, sample_execution_row) -> None:
        mock_db.fetch.return_value = [sample_execution_row]
        repo = ExecutionRepository(mock_db)

        executions = await repo.list_for_user(42)

        assert [e.id for e in executions] == ["exec-1"]
        assert "ORDER BY started_at DESC" in mock_db.fetch.call_args[0][0]


class TestInsert:
    """Тесты вставки прохождения."""

    @pytest.mark.asyncio
    async def test_insert(self, mock_db, sample_execution_row) -> None:
        mock_db.fetchrow.return_value = sample_execution_row
        repo = ExecutionRepository(mock_db)

        await repo.insert(new_execution())

        args = mock_db.fetchrow.call_args[0]
        assert args[4] == "active"
        assert json.loads(args[5])["latitude"] == 44.8176
        assert json.loads(args[6]) == []

    @pytest.mark.asyncio
    async def test_unique_violation_becomes_conflict(self, mock_db, sample_execution_row) -> None:
        """Второй активный тур отклоняется с ID уже активного."""
        mock_db.fetchrow.side_effect = [
            asyncpg.UniqueViolationError("duplicate key value"),
            sample_execution_row,
        ]
        repo = ExecutionRepository(mock_db)

        with pytest.raises(ConflictError) as exc_info:
            await repo.insert(new_execution())

        assert exc_info.value.message == "active tour exists"
        assert exc_info.value.details == {"execution_id": "exec-1"}

    @pytest.mark.asyncio
    async def test_store_failure(self, mock_db) -> None:
        mock_db.fetchrow.side_effect = ConnectionResetError("reset")
        repo = ExecutionRepository(mock_db)

        with pytest.raises(DependencyError):
            await repo.insert(new_execution())


class TestSave:
    """Тесты записи состояния."""

    @pytest.mark.asyncio
    async def test_save_writes_mutable_fields(self, mock_db) -> None:
        conn = AsyncMock()
        execution = new_execution()
        now = datetime.now(timezone.utc)
        execution.status = ExecutionStatus.COMPLETED
        execution.completed_at = now
        execution.completed_keypoints.append(CompletedKeypoint(
            keypoint_index=0, keypoint_id="kp-0", completed_at=now, latitude=1.0, longitude=2.0,
        ))
        repo = ExecutionRepository(mock_db)

        await repo.save(conn, execution)

        args = conn.execute.call_args[0]
        assert args[1] == "exec-2"
        assert args[2] == "completed"
        assert json.loads(args[4])[0]["keypoint_id"] == "kp-0"
        assert args[5] == now
        assert args[6] is None
        mock_db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_get_for_update_locks_row(self, mock_db, sample_execution_row) -> None:
        conn = AsyncMock()
        conn.fetchrow = AsyncMock(return_value=sample_execution_row)
        repo = ExecutionRepository(mock_db)

        execution = await repo.get_for_update(conn, "exec-1")

        assert execution.id == "exec-1"
        assert "FOR UPDATE" in conn.fetchrow.call_args[0][0]
