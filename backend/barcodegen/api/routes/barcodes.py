"""
API эндпоинты генерации штрихкодов.

- POST /api/barcode/generate — ZIP архив PNG файлов
- POST /api/barcode/generate-pdf — печатный лист PNG
- POST /api/barcode/generate-pdf-document — печатный лист PDF
- GET /api/barcode/fonts — доступные шрифты

Обработчики синхронные: рендер нагружает CPU, FastAPI выполняет их
в пуле потоков.
"""

import logging
import time
from typing import Annotated

from fastapi import APIRouter, Depends, Response

from barcodegen.api.dependencies import (
    get_batch_renderer,
    get_font_registry,
    get_print_sheet_generator,
)
from barcodegen.config import Settings, get_settings
from barcodegen.models.schemas import (
    ErrorResponse,
    FontsResponse,
    GenerateBarcodeRequest,
    PrintReadyRequest,
)
from barcodegen.services.archive import zip_images
from barcodegen.services.batch_renderer import BatchRenderer
from barcodegen.services.errors import ItemCountError
from barcodegen.services.fonts import FontRegistry
from barcodegen.services.print_sheet import PrintSheet, PrintSheetGenerator, SheetFormat

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/barcode", tags=["Barcodes"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Неверные входные данные"},
    422: {"model": ErrorResponse, "description": "Значение нельзя закодировать или штрихкод не помещается"},
    500: {"model": ErrorResponse, "description": "Ошибка записи файла"},
}


def _attachment(content: bytes, media_type: str, filename: str, extra: dict[str, str] | None = None) -> Response:
    headers = {
        "Content-Disposition": f'attachment; filename="{filename}"',
        "Content-Length": str(len(content)),
    }
    if extra:
        headers.update(extra)
    return Response(content=content, media_type=media_type, headers=headers)


def _check_batch_size(count: int, settings: Settings) -> None:
    if count > settings.max_batch_size:
        raise ItemCountError(count, maximum=settings.max_batch_size)


@router.post(
    "/generate",
    response_class=Response,
    responses={200: {"content": {"application/zip": {}}}, **ERROR_RESPONSES},
    summary="Сгенерировать ZIP архив штрихкодов",
)
def generate_zip(
    request: GenerateBarcodeRequest,
    batch_renderer: Annotated[BatchRenderer, Depends(get_batch_renderer)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Response:
    """
    Сгенерировать PNG для каждого значения и упаковать в ZIP.

    Значения, которые нельзя закодировать, пропускаются; их количество
    возвращается в заголовке X-Failed-Count. Если не удалось ни одно —
    ошибка 422.
    """
    config = request.config
    _check_batch_size(len(request.data), settings)
    logger.info(f"[API] ZIP: {len(request.data)} значений, {config.barcode_type.value}")

    result = batch_renderer.render(
        request.data,
        config.primary_style(),
        config.render_options(),
        secondary_style=config.secondary_style(),
        strict=False,
    )
    if not result.images and result.failures:
        raise result.failures[0].error

    archive = zip_images(result.images)
    filename = f"barcodes_{int(time.time() * 1000)}.zip"
    return _attachment(
        archive,
        "application/zip",
        filename,
        extra={"X-Failed-Count": str(len(result.failures))},
    )


def _print_ready(
    request: PrintReadyRequest,
    generator: PrintSheetGenerator,
    settings: Settings,
    sheet_format: SheetFormat,
) -> Response:
    # Минимум листа задаётся только настройками, схема требует лишь непустой список
    if len(request.data) < settings.print_ready_min_items:
        raise ItemCountError(len(request.data), minimum=settings.print_ready_min_items)
    _check_batch_size(len(request.data), settings)
    logger.info(f"[API] Печатный лист {sheet_format.upper()}: {len(request.data)} значений")

    sheet: PrintSheet = generator.generate(
        request.data,
        request.config,
        layout_overrides=request.layout_config,
        sheet_format=sheet_format,
    )
    stem, ext = sheet.filename.rsplit(".", 1)
    return _attachment(sheet.content, sheet.media_type, f"{stem}_{int(time.time() * 1000)}.{ext}")


@router.post(
    "/generate-pdf",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}, **ERROR_RESPONSES},
    summary="Печатный лист PNG",
)
def generate_print_ready_png(
    request: PrintReadyRequest,
    generator: Annotated[PrintSheetGenerator, Depends(get_print_sheet_generator)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Response:
    """
    Печатный лист в PNG (96 DPI) с красными рамками для резки.

    Минимум 20 значений. Любое ошибочное значение прерывает генерацию.
    """
    return _print_ready(request, generator, settings, "png")


@router.post(
    "/generate-pdf-document",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}, **ERROR_RESPONSES},
    summary="Печатный лист PDF",
)
def generate_print_ready_pdf(
    request: PrintReadyRequest,
    generator: Annotated[PrintSheetGenerator, Depends(get_print_sheet_generator)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Response:
    """Печатный лист в PDF: векторные рамки и встроенные изображения."""
    return _print_ready(request, generator, settings, "pdf")


@router.get("/fonts", response_model=FontsResponse, summary="Доступные шрифты")
async def list_fonts(
    fonts: Annotated[FontRegistry, Depends(get_font_registry)],
) -> FontsResponse:
    """Список загруженных семейств шрифтов."""
    available = fonts.available_fonts()
    return FontsResponse(fonts=available, count=len(available))
