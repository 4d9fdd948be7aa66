# tests/web_client/test_tour_client.py
"""
Тесты HTTP-клиента Content Service на httpx.MockTransport.
"""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from soa_tours.web_client.tour_client import ContentServiceClient


EXECUTION = {
    "id": "exec-1",
    "user_id": 42,
    "tour_id": "tour-1",
    "status": "active",
    "current_position": None,
    "completed_keypoints": [],
    "started_at": "2026-10-19T10:00:00Z",
    "completed_at": None,
    "abandoned_at": None,
    "last_activity": "2026-10-19T10:00:00Z",
}

PROGRESS = {"completed": 0, "total": 2, "percentage": 0.0}


def make_client(handler: Callable[[httpx.Request], httpx.Response]) -> ContentServiceClient:
    return ContentServiceClient(
        user_id=42,
        base_url="http://content:8082/",
        transport=httpx.MockTransport(handler),
    )


class Recorder:
    """Запоминает запросы и отвечает заданным JSON."""

    def __init__(self, status_code: int = 200, body: Any = None) -> None:
        self.status_code = status_code
        self.body = body
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)


class TestContentServiceClient:
    """Тесты ContentServiceClient."""

    @pytest.mark.asyncio
    async def test_start_tour(self) -> None:
        recorder = Recorder(201, {"message": "Tour started successfully", "tour_execution": EXECUTION})
        client = make_client(recorder)
        try:
            response = await client.start_tour("tour-1")
        finally:
            await client.close()

        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url == "http://content:8082/api/v1/tours/start"
        assert request.headers["X-User-ID"] == "42"
        assert json.loads(request.content) == {"tour_id": "tour-1"}
        assert response.tour_execution.id == "exec-1"

    @pytest.mark.asyncio
    async def test_check_keypoints(self) -> None:
        recorder = Recorder(200, {
            "near_keypoint": False,
            "keypoint_index": 0,
            "keypoint_name": "City Hall",
            "distance_to_keypoint": 120.5,
            "next_keypoint_index": 0,
            "distance_to_next_keypoint": 120.5,
            "progress": PROGRESS,
            "tour_execution": EXECUTION,
        })
        client = make_client(recorder)
        try:
            result = await client.check_keypoints()
        finally:
            await client.close()

        assert recorder.requests[0].url.path == "/api/v1/tours/check-keypoints"
        assert result.near_keypoint is False
        assert result.distance_to_keypoint == 120.5

    @pytest.mark.asyncio
    async def test_abandon_tour(self) -> None:
        recorder = Recorder(200, {"message": "Tour abandoned successfully"})
        client = make_client(recorder)
        try:
            message = await client.abandon_tour("exec-1")
        finally:
            await client.close()

        assert recorder.requests[0].method == "PUT"
        assert recorder.requests[0].url.path == "/api/v1/tours/exec-1/abandon"
        assert message == "Tour abandoned successfully"

    @pytest.mark.asyncio
    async def test_list_executions(self) -> None:
        client = make_client(Recorder(200, {"executions": [EXECUTION], "count": 1}))
        try:
            response = await client.list_executions()
        finally:
            await client.close()

        assert response.count == 1

    @pytest.mark.asyncio
    async def test_active_execution_missing(self) -> None:
        client = make_client(Recorder(404, {"error_code": "not_found", "message": "no active tour"}))
        try:
            assert await client.get_active_execution() is None
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_conflict_is_raised(self) -> None:
        client = make_client(Recorder(409, {"error_code": "conflict", "message": "active tour exists"}))
        try:
            with pytest.raises(httpx.HTTPStatusError) as exc_info:
                await client.start_tour("tour-1")
        finally:
            await client.close()

        assert exc_info.value.response.status_code == 409

    @pytest.mark.asyncio
    async def test_set_position(self) -> None:
        recorder = Recorder(200, {
            "user_id": 42,
            "latitude": 44.8176,
            "longitude": 20.4633,
            "accuracy": 5.0,
            "timestamp": "2026-10-19T10:00:00Z",
        })
        client = make_client(recorder)
        try:
            position = await client.set_position(44.8176, 20.4633, accuracy=5.0)
        finally:
            await client.close()

        assert recorder.requests[0].url.path == "/api/v1/positions/42"
        assert json.loads(recorder.requests[0].content)["accuracy"] == 5.0
        assert position.latitude == 44.8176

    @pytest.mark.asyncio
    async def test_get_position_missing(self) -> None:
        client = make_client(Recorder(404, {"error_code": "not_found", "message": "position not found"}))
        try:
            assert await client.get_position() is None
        finally:
            await client.close()
