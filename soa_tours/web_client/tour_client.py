# soa_tours/web_client/tour_client.py
"""
HTTP-клиент Content Service (httpx).
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from soa_tours.shared.models.execution import (
    ExecutionListResponse,
    ProximityCheckResult,
    StartExecutionResponse,
    TourExecutionDetails,
)
from soa_tours.shared.models.position import Position
from soa_tours.shared.models.tour import Tour


class BaseClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        headers: Optional[dict[str, str]] = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    async def close(self):
        await self.client.aclose()

    async def _get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        response = await self.client.get(path, params=params)
        response.raise_for_status()
        return response.json()

    async def _post(self, path: str, json: Optional[dict[str, Any]] = None) -> Any:
        response = await self.client.post(path, json=json)
        response.raise_for_status()
        return response.json()

    async def _put(self, path: str, json: Optional[dict[str, Any]] = None) -> Any:
        response = await self.client.put(path, json=json)
        response.raise_for_status()
        return response.json()


class ContentServiceClient(BaseClient):
    """
    Клиент прохождения туров и симулятора позиции от имени одного пользователя.
    Ошибки HTTP пробрасываются как httpx.HTTPStatusError.
    """

    def __init__(
        self,
        user_id: int,
        base_url: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if base_url is None:
            from soa_tours.config import settings
            base_url = settings.deployment.content_service_url
        self.user_id = user_id
        super().__init__(
            f"{base_url.rstrip('/')}/api/v1",
            timeout=timeout,
            headers={"X-User-ID": str(user_id)},
            transport=transport,
        )

    async def start_tour(self, tour_id: str) -> StartExecutionResponse:
        data = await self._post("/tours/start", json={"tour_id": tour_id})
        return StartExecutionResponse(**data)

    async def check_keypoints(self) -> ProximityCheckResult:
        data = await self._post("/tours/check-keypoints", json={})
        return ProximityCheckResult(**data)

    async def abandon_tour(self, execution_id: str) -> str:
        data = await self._put(f"/tours/{execution_id}/abandon")
        return data["message"]

    async def list_executions(self) -> ExecutionListResponse:
        data = await self._get("/tours/executions")
        return ExecutionListResponse(**data)

    async def get_active_execution(self) -> Optional[TourExecutionDetails]:
        try:
            data = await self._get("/tours/executions/active")
            return TourExecutionDetails(**data)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return None
            raise

    async def get_tour(self, tour_id: str) -> Tour:
        data = await self._get(f"/tours/{tour_id}")
        return Tour(**data)

    async def set_position(self, latitude: float, longitude: float, accuracy: float | None = None) -> Position:
        """Задать позицию текущего пользователя в симуляторе."""
        payload: dict[str, Any] = {"latitude": latitude, "longitude": longitude}
        if accuracy is not None:
            payload["accuracy"] = accuracy
        data = await self._post(f"/positions/{self.user_id}", json=payload)
        return Position(**data)

    async def get_position(self) -> Optional[Position]:
        try:
            data = await self._get(f"/positions/{self.user_id}")
            return Position(**data)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return None
            raise
