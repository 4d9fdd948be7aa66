# tests/web_client/test_poller.py
"""
Тесты поллера проверки ключевых точек.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from soa_tours.shared.models.execution import ProximityCheckResult
from soa_tours.web_client.poller import ExecutionPoller


def check_result(status: str = "active", near: bool = False) -> ProximityCheckResult:
    return ProximityCheckResult.model_validate({
        "near_keypoint": near,
        "progress": {"completed": 0, "total": 2, "percentage": 0.0},
        "tour_execution": {
            "id": "exec-1",
            "user_id": 42,
            "tour_id": "tour-1",
            "status": status,
            "started_at": "2026-10-19T10:00:00Z",
            "last_activity": "2026-10-19T10:00:00Z",
        },
    })


def http_error(status_code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "http://content/api/v1/tours/check-keypoints")
    return httpx.HTTPStatusError("error", request=request, response=httpx.Response(status_code, request=request))


@pytest.fixture
def client() -> MagicMock:
    client = MagicMock()
    client.check_keypoints = AsyncMock(return_value=check_result())
    return client


class TestExecutionPoller:
    """Тесты ExecutionPoller."""

    def test_interval_must_be_positive(self, client: MagicMock) -> None:
        with pytest.raises(ValueError):
            ExecutionPoller(client, interval=0)

    @pytest.mark.asyncio
    async def test_poll_once_active(self, client: MagicMock) -> None:
        received = []
        poller = ExecutionPoller(client, on_result=received.append, interval=0.01)

        assert await poller.poll_once() is True
        assert received == [poller.last_result]

    @pytest.mark.asyncio
    async def test_poll_once_async_callback(self, client: MagicMock) -> None:
        callback = AsyncMock()
        poller = ExecutionPoller(client, on_result=callback, interval=0.01)

        await poller.poll_once()

        callback.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", ["completed", "abandoned"])
    async def test_poll_once_terminal(self, client: MagicMock, status: str) -> None:
        client.check_keypoints.return_value = check_result(status)
        poller = ExecutionPoller(client, interval=0.01)

        assert await poller.poll_once() is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [404, 409])
    async def test_no_active_tour_stops(self, client: MagicMock, status_code: int) -> None:
        client.check_keypoints.side_effect = http_error(status_code)
        poller = ExecutionPoller(client, interval=0.01)

        assert await poller.poll_once() is False

    @pytest.mark.asyncio
    async def test_transient_errors_keep_polling(self, client: MagicMock) -> None:
        poller = ExecutionPoller(client, interval=0.01)

        client.check_keypoints.side_effect = http_error(503)
        assert await poller.poll_once() is True

        client.check_keypoints.side_effect = httpx.ConnectError("refused")
        assert await poller.poll_once() is True
        assert poller.last_result is None

    @pytest.mark.asyncio
    async def test_run_until_completed(self, client: MagicMock) -> None:
        client.check_keypoints.side_effect = [
            check_result(),
            check_result(near=True),
            check_result("completed", near=True),
        ]
        poller = ExecutionPoller(client, interval=0.01)

        await asyncio.wait_for(poller.run(), timeout=1.0)

        assert client.check_keypoints.await_count == 3
        assert poller.last_result.tour_execution.status == "completed"

    @pytest.mark.asyncio
    async def test_start_and_stop(self, client: MagicMock) -> None:
        poller = ExecutionPoller(client, interval=10.0)

        poller.start()
        await asyncio.sleep(0.01)
        assert poller.is_running is True

        await asyncio.wait_for(poller.stop(), timeout=1.0)

        assert poller.is_running is False
        assert client.check_keypoints.await_count == 1
