# soa_tours/services/content_service/app.py
"""
FastAPI приложение Content Service.

Endpoints (префикс /api/v1):
- POST /tours/start - начать тур
- POST /tours/check-keypoints - проверить близость к ключевой точке
- PUT /tours/{execution_id}/abandon - прервать тур
- GET /tours/executions - история прохождений
- GET /tours/executions/active, /tours/executions/{id} - прохождение с прогрессом
- /tours, /tours/{tour_id}, /tours/{tour_id}/keypoints - туры и ключевые точки
- /positions - симулятор позиции

GET /health - состояние сервиса и зависимостей.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from soa_tours import __version__
from soa_tours.common.constants import TypeMsg
from soa_tours.common.exceptions import TourServiceError
from soa_tours.common.logger import log_error, log_info, log_warning, setup_logging
from soa_tours.config import settings
from soa_tours.infra.database import close_db, init_db
from soa_tours.infra.event_bus import close_event_bus, init_event_bus
from soa_tours.infra.redis_client import close_redis, init_redis
from soa_tours.services.content_service.dependencies import (
    cleanup_dependencies,
    get_database,
    get_event_bus,
    get_redis,
    init_dependencies,
)
from soa_tours.services.content_service.routes import router
from soa_tours.shared.models.common import ErrorResponse, HealthStatus


SERVICE_NAME = "content_service"


# === LIFESPAN ===

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Жизненный цикл приложения."""
    setup_logging()
    await log_info("Запуск Content Service...", type_msg=TypeMsg.INFO)

    db = await init_db()

    # Кэш и шина событий необязательны: без них сервис работает через БД
    redis = None
    try:
        redis = await init_redis()
    except Exception as e:
        await log_warning(f"Redis недоступен, кэш позиций отключён: {e}")

    event_bus = None
    try:
        event_bus = await init_event_bus()
    except Exception as e:
        await log_warning(f"RabbitMQ недоступен, события не публикуются: {e}")

    await init_dependencies(db=db, settings=settings, redis=redis, event_bus=event_bus)

    yield

    await log_info("Остановка Content Service...", type_msg=TypeMsg.INFO)
    await cleanup_dependencies()
    if event_bus is not None:
        await close_event_bus()
    if redis is not None:
        await close_redis()
    await close_db()


# === APP ===

app = FastAPI(
    title="Content Service",
    description="Туры, симулятор позиции и прохождение туров по ключевым точкам.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.deployment.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# === ERROR HANDLERS ===

@app.exception_handler(TourServiceError)
async def tour_service_error_handler(request: Request, exc: TourServiceError) -> JSONResponse:
    """Доменная ошибка → ErrorResponse с HTTP-статусом ошибки."""
    if exc.status_code >= 500:
        await log_error(f"{request.method} {request.url.path}: {exc.error_code}: {exc.message}")
    else:
        await log_info(
            f"{request.method} {request.url.path}: {exc.error_code}: {exc.message}",
            type_msg=TypeMsg.DEBUG,
        )

    body = ErrorResponse(
        error_code=exc.error_code,
        message=exc.message,
        details=exc.details or None,
        request_id=request.headers.get("X-Request-ID"),
    )
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(body))


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Некорректное тело или параметры запроса → 400."""
    body = ErrorResponse(
        error_code="validation_error",
        message="invalid request",
        details={"errors": jsonable_encoder(exc.errors())},
        request_id=request.headers.get("X-Request-ID"),
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=jsonable_encoder(body))


# === HEALTH CHECK ===

@app.get("/health", response_model=HealthStatus, tags=["Health"])
async def health_check() -> HealthStatus:
    """Проверка здоровья сервиса и зависимостей."""
    dependencies: dict[str, str] = {}

    try:
        dependencies["postgres"] = "ok" if await get_database().health_check() else "unavailable"
    except RuntimeError:
        dependencies["postgres"] = "unavailable"

    redis = get_redis()
    if redis is None:
        dependencies["redis"] = "disabled"
    else:
        dependencies["redis"] = "ok" if await redis.health_check() else "unavailable"

    event_bus = get_event_bus()
    if event_bus is None:
        dependencies["rabbitmq"] = "disabled"
    else:
        dependencies["rabbitmq"] = "ok" if await event_bus.health_check() else "unavailable"

    return HealthStatus(
        service=SERVICE_NAME,
        status="healthy" if dependencies["postgres"] == "ok" else "degraded",
        version=__version__,
        dependencies=dependencies,
    )


app.include_router(router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "soa_tours.services.content_service.app:app",
        host="0.0.0.0",
        port=settings.deployment.CONTENT_SERVICE_PORT,
    )
