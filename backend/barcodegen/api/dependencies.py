"""
Dependencies для FastAPI эндпоинтов.

Реестр шрифтов создаётся один раз при старте (app.state.fonts),
рендереры собираются на каждый запрос вокруг него.
"""

from typing import Annotated

from fastapi import Depends, Request

from barcodegen.config import Settings, get_settings
from barcodegen.services.barcode_renderer import BarcodeRenderer
from barcodegen.services.batch_renderer import BatchRenderer
from barcodegen.services.fonts import FontRegistry
from barcodegen.services.print_sheet import PrintSheetGenerator


def get_font_registry(request: Request) -> FontRegistry:
    """Реестр шрифтов приложения (пустой, если lifespan не запускался)."""
    fonts = getattr(request.app.state, "fonts", None)
    if fonts is None:
        fonts = FontRegistry()
        request.app.state.fonts = fonts
    return fonts


def get_batch_renderer(
    fonts: Annotated[FontRegistry, Depends(get_font_registry)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> BatchRenderer:
    return BatchRenderer(BarcodeRenderer(fonts=fonts), max_workers=settings.render_workers)


def get_print_sheet_generator(
    batch_renderer: Annotated[BatchRenderer, Depends(get_batch_renderer)],
) -> PrintSheetGenerator:
    return PrintSheetGenerator(batch_renderer)
