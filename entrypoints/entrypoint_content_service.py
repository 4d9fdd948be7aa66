#!/usr/bin/env python3
# entrypoint_content_service.py
"""
Точка входа для Content Service.
Порт: 8082
"""

import asyncio
import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

import uvicorn

from soa_tours.config import settings
from soa_tours.common.logger import log_info, setup_logging
from soa_tours.common.constants import TypeMsg


async def main() -> None:
    """Запуск Content Service."""
    setup_logging()
    await log_info(
        f"Запуск Content Service на порту {settings.deployment.CONTENT_SERVICE_PORT}",
        type_msg=TypeMsg.INFO,
    )

    config = uvicorn.Config(
        "soa_tours.services.content_service.app:app",
        host="0.0.0.0",
        port=settings.deployment.CONTENT_SERVICE_PORT,
        reload=settings.system.DEBUG,
        log_level="debug" if settings.system.DEBUG else "info",
    )

    server = uvicorn.Server(config)
    await server.serve()


if __name__ == "__main__":
    asyncio.run(main())
