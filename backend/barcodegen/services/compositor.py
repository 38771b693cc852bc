"""
Отрисовка печатного листа по готовой раскладке.

Растровый вариант (Pillow, PNG при 96 DPI) и векторный (ReportLab, PDF в пунктах).
Геометрия одна и та же: рамка = изображение + 2 × отступ + 2 × толщина рамки,
изображение сдвинуто внутрь на толщину рамки + отступ.
"""

import logging
from collections.abc import Sequence
from io import BytesIO

from PIL import Image, ImageDraw
from reportlab.lib.colors import HexColor
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from barcodegen.config import RENDER
from barcodegen.models.barcode_types import RenderedImage, SheetLayout
from barcodegen.services.errors import ArchiveWriteError
from barcodegen.services.units import mm_to_pixels, mm_to_points, pixels_to_points

logger = logging.getLogger(__name__)


def _check_sizes(images: Sequence[RenderedImage], layout: SheetLayout) -> None:
    if len(images) != len(layout.cells):
        raise ValueError(
            f"Количество изображений ({len(images)}) не совпадает с раскладкой ({len(layout.cells)})"
        )


def render_png(
    images: Sequence[RenderedImage],
    layout: SheetLayout,
    border_color: str,
    dpi: int = RENDER.STANDARD_DPI,
) -> bytes:
    """
    Собрать лист в PNG.

    Args:
        images: Изображения в том же порядке, что и ячейки раскладки
        layout: Раскладка листа
        border_color: Цвет рамки (#RRGGBB)
        dpi: Разрешение листа

    Returns:
        bytes: PNG файл

    Raises:
        ArchiveWriteError: Если не удалось собрать или сохранить PNG
    """
    _check_sizes(images, layout)

    width_px = mm_to_pixels(layout.canvas_width_mm, dpi)
    height_px = mm_to_pixels(layout.canvas_height_mm, dpi)
    border_px = mm_to_pixels(layout.border_width_mm, dpi)
    padding_px = mm_to_pixels(layout.internal_padding_mm, dpi)
    outline_px = max(1, border_px)

    logger.info(f"[PNG] Лист {width_px}x{height_px}px ({dpi} DPI), {len(images)} штрихкодов")

    try:
        sheet = Image.new("RGB", (width_px, height_px), "white")
        draw = ImageDraw.Draw(sheet)

        for image, cell in zip(images, layout.cells, strict=True):
            x = mm_to_pixels(cell.x_mm, dpi)
            y = mm_to_pixels(cell.y_mm, dpi)
            box_width = image.width_px + 2 * padding_px + 2 * border_px
            box_height = image.height_px + 2 * padding_px + 2 * border_px

            # Рамка по внешнему краю ячейки
            draw.rectangle(
                [x, y, x + box_width - 1, y + box_height - 1],
                outline=border_color,
                width=outline_px,
            )

            with Image.open(BytesIO(image.data)) as content:
                sheet.paste(content.convert("RGB"), (x + border_px + padding_px, y + border_px + padding_px))

        buffer = BytesIO()
        sheet.save(buffer, format="PNG", compress_level=9, dpi=(dpi, dpi))
    except OSError as e:
        logger.error(f"[PNG] Ошибка сборки листа: {e}")
        raise ArchiveWriteError(f"Не удалось собрать PNG: {e}") from e

    return buffer.getvalue()


def render_pdf(
    images: Sequence[RenderedImage],
    layout: SheetLayout,
    border_color: str,
    title: str = "Barcodes",
) -> bytes:
    """
    Собрать лист в PDF (одна страница размером с лист).

    Рамка — векторный прямоугольник, штрихкоды — встроенные PNG.
    Начало координат PDF в левом нижнем углу, поэтому Y переворачивается.

    Args:
        images: Изображения в том же порядке, что и ячейки раскладки
        layout: Раскладка листа
        border_color: Цвет рамки (#RRGGBB)
        title: Заголовок документа

    Returns:
        bytes: PDF файл

    Raises:
        ArchiveWriteError: Если не удалось собрать PDF
    """
    _check_sizes(images, layout)

    page_width = mm_to_points(layout.canvas_width_mm)
    page_height = mm_to_points(layout.canvas_height_mm)
    border_pt = mm_to_points(layout.border_width_mm)
    padding_pt = mm_to_points(layout.internal_padding_mm)
    half_border = border_pt / 2

    logger.info(
        f"[PDF] Лист {layout.canvas_width_mm:.1f}x{layout.canvas_height_mm:.1f} мм, "
        f"{len(images)} штрихкодов"
    )

    buffer = BytesIO()
    try:
        c = canvas.Canvas(buffer, pagesize=(page_width, page_height))
        c.setTitle(title)
        c.setStrokeColor(HexColor(border_color))
        c.setLineWidth(border_pt)

        for image, cell in zip(images, layout.cells, strict=True):
            image_width = pixels_to_points(image.width_px, image.dpi)
            image_height = pixels_to_points(image.height_px, image.dpi)
            box_width = image_width + 2 * padding_pt + 2 * border_pt
            box_height = image_height + 2 * padding_pt + 2 * border_pt

            x = mm_to_points(cell.x_mm)
            # Верх ячейки в координатах PDF
            top = page_height - mm_to_points(cell.y_mm)

            # Линия рисуется по центру контура, поэтому сдвиг на половину толщины
            c.rect(
                x + half_border,
                top - box_height + half_border,
                box_width - border_pt,
                box_height - border_pt,
                stroke=1,
                fill=0,
            )

            c.drawImage(
                ImageReader(BytesIO(image.data)),
                x + border_pt + padding_pt,
                top - border_pt - padding_pt - image_height,
                width=image_width,
                height=image_height,
            )

        c.showPage()
        c.save()
    except OSError as e:
        logger.error(f"[PDF] Ошибка сборки листа: {e}")
        raise ArchiveWriteError(f"Не удалось собрать PDF: {e}") from e

    return buffer.getvalue()
