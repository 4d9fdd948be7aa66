# soa_tours/web_client/poller.py
"""
Периодическая проверка ключевых точек активного тура.

Пока тур активен, поллер раз в interval секунд вызывает
POST /tours/check-keypoints и передаёт результат в callback.
Останавливается, когда прохождение перестаёт быть активным
(завершено, прервано или не найдено), либо по stop().
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Optional, Union

import httpx

from soa_tours.common.constants import DEFAULT_CHECK_INTERVAL_SECONDS, ExecutionStatus, TypeMsg
from soa_tours.common.logger import log_info, log_warning
from soa_tours.shared.models.execution import ProximityCheckResult
from soa_tours.web_client.tour_client import ContentServiceClient

ResultCallback = Callable[[ProximityCheckResult], Union[Awaitable[Any], Any]]

# Ответы, после которых проверять больше нечего
TERMINAL_STATUS_CODES = (404, 409)


class ExecutionPoller:
    """Поллер проверки близости для одного пользователя."""

    def __init__(
        self,
        client: ContentServiceClient,
        on_result: Optional[ResultCallback] = None,
        interval: float = DEFAULT_CHECK_INTERVAL_SECONDS,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval должен быть положительным")
        self._client = client
        self._on_result = on_result
        self._interval = interval
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None
        self.last_result: ProximityCheckResult | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def poll_once(self) -> bool:
        """
        Одна проверка.

        Returns:
            True если тур всё ещё активен и опрос нужно продолжать
        """
        try:
            result = await self._client.check_keypoints()
        except httpx.HTTPStatusError as e:
            if e.response.status_code in TERMINAL_STATUS_CODES:
                await log_info(
                    f"Опрос остановлен: активного тура нет (HTTP {e.response.status_code})",
                    type_msg=TypeMsg.DEBUG,
                )
                return False
            await log_warning(f"Ошибка проверки ключевых точек: HTTP {e.response.status_code}")
            return True
        except httpx.HTTPError as e:
            await log_warning(f"Content Service недоступен: {e}")
            return True

        self.last_result = result
        if self._on_result is not None:
            outcome = self._on_result(result)
            if inspect.isawaitable(outcome):
                await outcome

        return result.tour_execution.status == ExecutionStatus.ACTIVE

    async def run(self) -> None:
        """Опрашивает до завершения тура или вызова stop()."""
        while not self._stop_event.is_set():
            if not await self.poll_once():
                break
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                pass

    def start(self) -> asyncio.Task:
        """Запускает опрос фоновой задачей."""
        if not self.is_running:
            self._stop_event.clear()
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Останавливает опрос и дожидается завершения задачи."""
        self._stop_event.set()
        if self._task is not None:
            await self._task
            self._task = None
