"""
Раскладка отрендеренных штрихкодов на печатном листе.

Два режима:
- continuous: одна строка, ширина листа растёт с количеством (рулонные принтеры)
- paged: фиксированная ширина листа, перенос по строкам

Все размеры в миллиметрах. Пиксели изображений переводятся в мм при DPI,
с которым они были отрендерены.
"""

import logging
import math
from collections.abc import Sequence
from typing import Any

from barcodegen.models.barcode_types import LayoutCell, RenderedImage, SheetLayout
from barcodegen.models.schemas import PrintLayoutConfig, PrintLayoutOverrides
from barcodegen.services.errors import LayoutInfeasibleError
from barcodegen.services.units import pixels_to_mm, to_millimeters

logger = logging.getLogger(__name__)

# Отступ между содержимым и рамкой (мм), одинаковый для PNG и PDF
INTERNAL_PADDING_MM = 2.0

DEFAULT_LAYOUT = PrintLayoutConfig()


def merge_layout_config(
    overrides: PrintLayoutOverrides | dict[str, Any] | None,
    defaults: PrintLayoutConfig = DEFAULT_LAYOUT,
) -> PrintLayoutConfig:
    """
    Наложить частичную конфигурацию на значения по умолчанию.

    Слияние поле за полем, включая вложенные поля marginsMm: не заданная
    сторона берётся из defaults.

    Args:
        overrides: Частичная конфигурация (модель, dict в camelCase или None)
        defaults: Базовая конфигурация

    Returns:
        Полная PrintLayoutConfig
    """
    if overrides is None:
        return defaults.model_copy(deep=True)
    if isinstance(overrides, dict):
        overrides = PrintLayoutOverrides.model_validate(overrides)

    explicit = overrides.model_dump(exclude_none=True)
    margins = defaults.margins_mm.model_dump()
    margins.update(explicit.pop("margins_mm", {}))

    merged = defaults.model_dump()
    merged.update(explicit)
    merged["margins_mm"] = margins
    return PrintLayoutConfig.model_validate(merged)


def plan_layout(images: Sequence[RenderedImage], config: PrintLayoutConfig) -> SheetLayout:
    """
    Рассчитать положение каждого изображения на листе.

    Ширина ячейки одинакова для всех и берётся по самому широкому изображению;
    высота строки — по самой высокой ячейке в строке. Пары dual-режима идут
    подряд и могут разорваться переносом строки.

    Args:
        images: Изображения в порядке вывода
        config: Полная конфигурация листа

    Returns:
        SheetLayout с ячейками и размером листа

    Raises:
        LayoutInfeasibleError: Ни одна ячейка не помещается по ширине
    """
    margins = config.margins_mm
    spacing = config.spacing_mm
    border = config.border_width_mm
    padding = INTERNAL_PADDING_MM

    if not images:
        return SheetLayout(
            canvas_width_mm=margins.left + margins.right,
            canvas_height_mm=margins.top + margins.bottom,
            columns_per_row=0,
            cells=[],
            internal_padding_mm=padding,
            border_width_mm=border,
        )

    max_image_width_mm = max(pixels_to_mm(image.width_px, image.dpi) for image in images)
    max_cell_width_mm = max_image_width_mm + 2 * padding + 2 * border
    stride_mm = max_cell_width_mm + spacing

    if config.continuous_mode:
        columns_per_row = len(images)
        canvas_width_mm = margins.left + margins.right + stride_mm * len(images)
    else:
        canvas_width_mm = to_millimeters(config.canvas_width_cm, "cm")
        available_mm = canvas_width_mm - margins.left - margins.right
        columns_per_row = math.floor(available_mm / stride_mm) if available_mm > 0 else 0
        if columns_per_row < 1:
            logger.warning(
                f"[LAYOUT] Ячейка {max_cell_width_mm:.2f} мм не помещается в {available_mm:.2f} мм"
            )
            raise LayoutInfeasibleError(max_cell_width_mm, available_mm)

    cells: list[LayoutCell] = []
    current_x = margins.left
    current_y = margins.top
    row = 0
    column = 0
    row_height = 0.0

    for image in images:
        width_mm = pixels_to_mm(image.width_px, image.dpi)
        height_mm = pixels_to_mm(image.height_px, image.dpi)
        cell_height_mm = height_mm + 2 * padding + 2 * border

        cells.append(
            LayoutCell(
                x_mm=current_x,
                y_mm=current_y,
                width_mm=width_mm,
                height_mm=height_mm,
                is_primary=image.is_primary,
                row=row,
                column=column,
            )
        )

        row_height = max(row_height, cell_height_mm)
        column += 1
        current_x += stride_mm

        # Continuous режим никогда не переносит строку
        if not config.continuous_mode and column >= columns_per_row:
            current_y += row_height + spacing
            current_x = margins.left
            row += 1
            column = 0
            row_height = 0.0

    if row_height == 0.0:
        # Последняя строка заполнена целиком: лишний перенос не считаем
        last = cells[-1]
        last_row = [cell for cell in cells if cell.row == last.row]
        row_height = max(cell.height_mm + 2 * padding + 2 * border for cell in last_row)
        current_y = last.y_mm

    canvas_height_mm = current_y + row_height + margins.bottom

    layout = SheetLayout(
        canvas_width_mm=canvas_width_mm,
        canvas_height_mm=canvas_height_mm,
        columns_per_row=columns_per_row,
        cells=cells,
        internal_padding_mm=padding,
        border_width_mm=border,
    )
    logger.info(
        f"[LAYOUT] {len(cells)} ячеек, {columns_per_row} в строке, {layout.rows} строк, "
        f"лист {canvas_width_mm:.1f}x{canvas_height_mm:.1f} мм"
        f"{' (continuous)' if config.continuous_mode else ''}"
    )
    return layout
