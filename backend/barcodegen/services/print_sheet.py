"""
Печатный лист: рендер → раскладка → отрисовка.

Рендер строгий: одно ошибочное значение прерывает всю генерацию,
потому что неполная сетка непригодна для печати.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Literal

from barcodegen.models.barcode_types import RenderedImage, SheetLayout
from barcodegen.models.schemas import BarcodeConfig, PrintLayoutConfig, PrintLayoutOverrides
from barcodegen.services import compositor
from barcodegen.services.batch_renderer import BatchRenderer
from barcodegen.services.layout_planner import merge_layout_config, plan_layout

logger = logging.getLogger(__name__)

SheetFormat = Literal["png", "pdf"]


@dataclass
class PrintSheet:
    """Готовый печатный лист."""

    content: bytes
    media_type: str
    filename: str
    layout: SheetLayout
    images_count: int


class PrintSheetGenerator:
    """Генератор печатных листов PNG и PDF."""

    def __init__(self, batch_renderer: BatchRenderer | None = None):
        self.batch_renderer = batch_renderer or BatchRenderer()

    def render_images(
        self,
        data: list[str],
        config: BarcodeConfig,
        cancel_event: threading.Event | None = None,
    ) -> list[RenderedImage]:
        """Отрендерить все значения строго (ошибка прерывает пакет)."""
        secondary = config.dual_variant().primary_style() if config.dual_mode else None
        result = self.batch_renderer.render(
            data,
            config.primary_style(),
            config.render_options(),
            secondary_style=secondary,
            strict=True,
            cancel_event=cancel_event,
        )
        return result.images

    def generate(
        self,
        data: list[str],
        config: BarcodeConfig,
        layout_overrides: PrintLayoutOverrides | None = None,
        sheet_format: SheetFormat = "png",
        cancel_event: threading.Event | None = None,
    ) -> PrintSheet:
        """
        Сгенерировать печатный лист.

        Args:
            data: Значения штрихкодов
            config: Конфигурация штрихкода
            layout_overrides: Частичная конфигурация листа
            sheet_format: "png" или "pdf"
            cancel_event: Внешний сигнал отмены

        Returns:
            PrintSheet с файлом и раскладкой

        Raises:
            SymbologyError: Значение нельзя закодировать
            LayoutInfeasibleError: Штрихкод не помещается по ширине
            ArchiveWriteError: Ошибка записи PNG/PDF
        """
        layout_config = self._layout_config(config, layout_overrides)
        images = self.render_images(data, config, cancel_event)
        layout = plan_layout(images, layout_config)

        if sheet_format == "pdf":
            content = compositor.render_pdf(images, layout, layout_config.border_color)
            media_type = "application/pdf"
            filename = "barcodes-print-ready.pdf"
        else:
            content = compositor.render_png(images, layout, layout_config.border_color)
            media_type = "image/png"
            filename = "barcodes-print-ready.png"

        logger.info(
            f"[PRINT] {sheet_format.upper()} готов: {len(images)} штрихкодов, {len(content)} байт"
        )
        return PrintSheet(
            content=content,
            media_type=media_type,
            filename=filename,
            layout=layout,
            images_count=len(images),
        )

    def _layout_config(
        self,
        config: BarcodeConfig,
        overrides: PrintLayoutOverrides | None,
    ) -> PrintLayoutConfig:
        """continuousMode из конфигурации штрихкода, если в листе он не задан."""
        layout_config = merge_layout_config(overrides)
        if config.continuous_mode and (overrides is None or overrides.continuous_mode is None):
            layout_config = layout_config.model_copy(update={"continuous_mode": True})
        return layout_config
