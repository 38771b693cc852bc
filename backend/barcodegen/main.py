"""
Точка входа FastAPI приложения Barcodegen.

Генерация штрихкодов и печатных листов для удалённого режима.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from barcodegen.api.routes import barcodes, health
from barcodegen.config import get_settings
from barcodegen.logging_config import setup_logging
from barcodegen.services.error_messages import friendly_for
from barcodegen.services.errors import GenerationError
from barcodegen.services.fonts import FontRegistry

settings = get_settings()
logger = logging.getLogger(__name__)

# Вид ошибки → HTTP статус
ERROR_STATUS: dict[str, int] = {
    "validation": status.HTTP_400_BAD_REQUEST,
    "symbology": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "layout_infeasible": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "remote_unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
    "io": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifecycle приложения.

    Логирование и реестр шрифтов настраиваются один раз при старте.
    """
    setup_logging(settings)
    logger.info(f"[START] {settings.app_name} v{settings.app_version}")

    app.state.fonts = FontRegistry.load(settings.fonts_dir)

    yield

    logger.info(f"[STOP] {settings.app_name}")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
## Barcodegen API

Генерация штрихкодов (Code 128, QR, EAN-13, EAN-8, UPC-A, Code 39) заданного
физического размера.

### Возможности:

* **ZIP архив** — PNG для каждого значения, dual-режим и вертикальная ориентация
* **Печатный лист** — сетка с рамками для резки в PNG или PDF
* **Мелкие этикетки** — рендер с 3x разрешением для читаемого текста
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "Content-Length", "X-Failed-Count"],
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    """Ошибки валидации запроса: 400 с путём к каждому полю."""
    details = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        details.append({"path": ".".join(loc), "message": error.get("msg", "")})

    logger.info(f"[API] Запрос отклонён: {len(details)} ошибок валидации")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": "Ошибка валидации", "details": details},
    )


@app.exception_handler(GenerationError)
async def generation_error_handler(_request: Request, exc: GenerationError) -> JSONResponse:
    """Ошибки генерации: статус по виду ошибки, понятное сообщение и подсказка."""
    status_code = ERROR_STATUS.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= 500:
        logger.error(f"[API] {exc.kind}: {exc.message}")
    else:
        logger.warning(f"[API] {exc.kind}: {exc.message}")

    friendly = friendly_for(exc)
    content = {
        "success": False,
        "error": friendly.message,
        "kind": exc.kind,
        "details": exc.to_dict(),
    }
    if friendly.hint:
        content["hint"] = friendly.hint
    return JSONResponse(status_code=status_code, content=content)


# Подключение роутеров
app.include_router(health.router, tags=["Health"])
app.include_router(barcodes.router)


@app.get("/", include_in_schema=False)
async def root() -> dict[str, str]:
    """Корневой эндпоинт — ссылка на документацию."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
