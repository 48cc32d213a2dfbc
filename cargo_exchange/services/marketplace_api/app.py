# cargo_exchange/services/marketplace_api/app.py
"""
FastAPI приложение биржи перевозок.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cargo_exchange.common.constants import TypeMsg
from cargo_exchange.common.exceptions import (
    CargoExchangeError,
    ConcurrencyConflictError,
    GeocoderUnavailableError,
    GeocodingError,
    InsufficientCapacityError,
    InvalidStatusTransitionError,
    NoProposedPriceError,
    OrderNotFoundError,
    PersistenceError,
    ValidationError,
    VehicleNotFoundError,
)
from cargo_exchange.common.logger import log_error, log_info, log_warning
from cargo_exchange.config import settings
from cargo_exchange.services.marketplace_api.routes import router
from cargo_exchange.services.marketplace_api.schemas import ErrorResponse, HealthStatus


# HTTP коды доменных ошибок. Порядок важен: первым совпадает подкласс.
ERROR_STATUS_CODES: list[tuple[type[CargoExchangeError], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (OrderNotFoundError, status.HTTP_404_NOT_FOUND),
    (VehicleNotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidStatusTransitionError, status.HTTP_409_CONFLICT),
    (ConcurrencyConflictError, status.HTTP_409_CONFLICT),
    (NoProposedPriceError, status.HTTP_409_CONFLICT),
    (InsufficientCapacityError, status.HTTP_409_CONFLICT),
    (GeocodingError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (GeocoderUnavailableError, status.HTTP_502_BAD_GATEWAY),
    (PersistenceError, status.HTTP_502_BAD_GATEWAY),
]


def status_code_for(exc: CargoExchangeError) -> int:
    for error_class, code in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


# =============================================================================
# LIFESPAN
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Жизненный цикл приложения."""
    await log_info(
        "Marketplace API запускается...",
        type_msg=TypeMsg.INFO,
    )

    from cargo_exchange.services.marketplace_api.dependencies import (
        close_dependencies,
        init_dependencies,
    )
    await init_dependencies()

    yield

    await close_dependencies()
    await log_info(
        "Marketplace API остановлен",
        type_msg=TypeMsg.INFO,
    )


# =============================================================================
# ПРИЛОЖЕНИЕ
# =============================================================================

app = FastAPI(
    title="Cargo Exchange Marketplace API",
    description="Биржа грузоперевозок: подбор транспорта, расчёт цены и жизненный цикл заказа",
    version=settings.system.VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix=settings.api.API_PREFIX)


@app.exception_handler(CargoExchangeError)
async def domain_error_handler(request: Request, exc: CargoExchangeError) -> JSONResponse:
    """Переводит доменную ошибку в ErrorResponse."""
    code = status_code_for(exc)
    if code >= 500:
        await log_error(f"{request.method} {request.url.path}: {exc.code}: {exc.message}")
    else:
        await log_warning(f"{request.method} {request.url.path}: {exc.code}: {exc.message}")

    body = ErrorResponse(error_code=exc.code, message=exc.message)
    return JSONResponse(status_code=code, content=body.model_dump())


# =============================================================================
# HEALTH CHECK
# =============================================================================

@app.get("/health", response_model=HealthStatus, tags=["Health"])
async def health_check() -> HealthStatus:
    """Проверка здоровья сервиса."""
    from cargo_exchange.services.marketplace_api.dependencies import dependency_status

    deps = dependency_status()
    overall = "healthy" if "disconnected" not in deps.values() else "degraded"

    return HealthStatus(
        service="marketplace_api",
        status=overall,
        version=settings.system.VERSION,
        dependencies=deps,
    )
