#!/usr/bin/env python3
# main.py
"""
Главная точка входа SOA Tours.
Запускает Content Service, применяет схему БД или запускает
консольный трекер прохождения тура в зависимости от аргументов.
"""

from __future__ import annotations

import asyncio
import signal
import sys

from soa_tours.config import settings
from soa_tours.common.logger import setup_logging, log_info, log_error
from soa_tours.common.constants import TypeMsg


VALID_MODES = ("content_service", "migrate", "tracker")

# Глобальный флаг для graceful shutdown
_shutdown_event: asyncio.Event | None = None


def setup_signal_handlers() -> None:
    """Настраивает обработчики сигналов для graceful shutdown."""
    global _shutdown_event
    _shutdown_event = asyncio.Event()

    def signal_handler(sig: int) -> None:
        """Обработчик сигналов SIGINT и SIGTERM."""
        if _shutdown_event and not _shutdown_event.is_set():
            print(f"\nПолучен сигнал остановки (sig={sig}), завершаем работу...")
            _shutdown_event.set()

    try:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))
    except NotImplementedError:
        # Windows не поддерживает add_signal_handler
        signal.signal(signal.SIGINT, lambda s, f: signal_handler(s))
        signal.signal(signal.SIGTERM, lambda s, f: signal_handler(s))


async def run_content_service() -> None:
    """Запускает Content Service (туры, позиции, прохождение)."""
    import uvicorn

    await log_info(
        f"Запуск Content Service на порту {settings.deployment.CONTENT_SERVICE_PORT}...",
        type_msg=TypeMsg.INFO,
    )

    config = uvicorn.Config(
        "soa_tours.services.content_service.app:app",
        host="0.0.0.0",
        port=settings.deployment.CONTENT_SERVICE_PORT,
        log_level="debug" if settings.system.DEBUG else "info",
    )

    server = uvicorn.Server(config)
    try:
        await server.serve()
    except asyncio.CancelledError:
        await log_info("Content Service: graceful shutdown", type_msg=TypeMsg.DEBUG)
        await server.shutdown()


async def run_migrate() -> None:
    """Применяет migrations/init.sql и завершает работу."""
    from soa_tours.infra.database import init_db, close_db

    try:
        await init_db(apply_schema=True)
    finally:
        await close_db()


async def run_tracker(user_id: int, tour_id: str | None) -> None:
    """
    Консольный трекер: начинает тур (если передан tour_id) и опрашивает
    check-keypoints, пока тур активен.
    """
    from soa_tours.web_client import ContentServiceClient, ExecutionPoller

    def print_result(result) -> None:
        progress = result.progress
        line = f"[{progress.completed}/{progress.total}] {progress.percentage}%"
        if result.near_keypoint:
            line += f" ✅ засчитана точка #{result.keypoint_index} ({result.keypoint_name})"
        if result.next_keypoint_index is not None:
            line += f" → следующая #{result.next_keypoint_index}: {result.distance_to_next_keypoint} м"
        print(line)

    client = ContentServiceClient(user_id)
    try:
        if tour_id:
            started = await client.start_tour(tour_id)
            print(f"{started.message}: {started.tour_execution.id}")

        poller = ExecutionPoller(
            client,
            on_result=print_result,
            interval=settings.tracking.CHECK_INTERVAL_SECONDS,
        )
        poll_task = poller.start()

        waiter = asyncio.create_task(_shutdown_event.wait()) if _shutdown_event else None
        await asyncio.wait(
            [t for t in (poll_task, waiter) if t is not None],
            return_when=asyncio.FIRST_COMPLETED,
        )
        await poller.stop()
        if waiter is not None and not waiter.done():
            waiter.cancel()

        if poller.last_result is not None:
            print(f"Статус тура: {poller.last_result.tour_execution.status.value}")
    finally:
        await client.close()


async def main(mode: str | None = None, args: list[str] | None = None) -> None:
    """
    Главная функция запуска.

    Args:
        mode: Режим запуска. Если None, берётся COMPONENT_MODE из настроек.
        args: Дополнительные аргументы режима
    """
    args = args or []

    setup_logging()
    setup_signal_handlers()

    if mode is None:
        mode = settings.system.COMPONENT_MODE

    await log_info(
        f"SOA Tours v{settings.system.VERSION} — запуск в режиме '{mode}'",
        type_msg=TypeMsg.INFO,
    )

    try:
        if mode == "content_service":
            await run_content_service()
        elif mode == "migrate":
            await run_migrate()
        elif mode == "tracker":
            if not args:
                print_usage()
                sys.exit(1)
            await run_tracker(int(args[0]), args[1] if len(args) > 1 else None)
        else:
            await log_error(f"Неизвестный режим: {mode}")
    except asyncio.CancelledError:
        await log_info("Задача отменена, выполняется graceful shutdown", type_msg=TypeMsg.INFO)
    except Exception as e:
        await log_error(f"Критическая ошибка: {e}")
        raise
    finally:
        await log_info("Приложение остановлено", type_msg=TypeMsg.INFO)


def print_usage() -> None:
    """Выводит справку по использованию."""
    print("""
SOA Tours — Content Service и трекер прохождения туров

Использование:
    python main.py [mode] [args]

Режимы:
    content_service              — Content Service (:8082)
    migrate                      — применить migrations/init.sql
    tracker <user_id> [tour_id]  — консольный трекер прохождения тура

Примеры:
    python main.py                                    # режим из COMPONENT_MODE
    python main.py content_service
    python main.py tracker 42 a1b2c3d4-0000-4000-8000-000000000001
    """)


if __name__ == "__main__":
    mode = None

    if len(sys.argv) > 1:
        arg = sys.argv[1].lower()
        if arg in ("--help", "-h"):
            print_usage()
            sys.exit(0)
        elif arg in VALID_MODES:
            mode = arg
        else:
            print(f"Ошибка: неизвестный режим '{arg}'")
            print_usage()
            sys.exit(1)

    try:
        asyncio.run(main(mode, sys.argv[2:]))
    except KeyboardInterrupt:
        pass
