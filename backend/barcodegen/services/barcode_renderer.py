# backend/barcodegen/services/barcode_renderer.py
"""
Рендер одного штрихкода в одном варианте.

Шаги:
1. Отрезаем игнорируемые символы (один раз, результат и кодируется, и печатается)
2. Считаем целевой размер в пикселях при DPI, выбранном для мелких этикеток
3. Символ с подписью под целевой размер — через SymbologyEncoder
4. Холст целевого размера: растянуть (stretch) или отцентрировать
5. Для вертикальной ориентации — поворот на 90° по часовой
6. Для мелких этикеток — уменьшение до 96 DPI с резкостью
"""

import logging
import re
from io import BytesIO

from PIL import Image

from barcodegen.config import RENDER
from barcodegen.models.barcode_types import (
    DigitsPosition,
    IgnoreDigitsRule,
    RenderedImage,
    RenderOptions,
    RenderStyle,
    Variant,
)
from barcodegen.services import small_label
from barcodegen.services.fonts import FontRegistry
from barcodegen.services.symbology import GeometryHints, SymbologyEncoder
from barcodegen.services.units import to_pixels

logger = logging.getLogger(__name__)

# Символы, недопустимые в имени файла внутри архива
_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\s]')


def process_value(value: str, rule: IgnoreDigitsRule | None) -> str:
    """
    Отрезать игнорируемые символы.

    Args:
        value: Исходное значение
        rule: Правило (None или выключено — без изменений)

    Returns:
        Обработанное значение
    """
    if rule is None or not rule.enabled or rule.count <= 0:
        return value

    if rule.position == DigitsPosition.START:
        return value[rule.count :]
    return value[: -rule.count]


def _format_size(size: float) -> str:
    return f"{size:g}"


def build_filename(processed: str, style: RenderStyle) -> str:
    """Имя файла: barcode_<значение>_<ширина>x<высота><единица>.png"""
    safe_value = _UNSAFE_FILENAME_CHARS.sub("_", processed)
    unit = getattr(style.unit, "value", style.unit)
    return (
        f"barcode_{safe_value}_{_format_size(style.width)}x{_format_size(style.height)}{unit}.png"
    )


class BarcodeRenderer:
    """Рендерер одного значения в PNG заданного размера."""

    def __init__(
        self,
        encoder: SymbologyEncoder | None = None,
        fonts: FontRegistry | None = None,
    ):
        self.encoder = encoder or SymbologyEncoder(fonts)

    def render(
        self,
        value: str,
        style: RenderStyle,
        options: RenderOptions,
        variant: Variant = Variant.PRIMARY,
    ) -> RenderedImage:
        """
        Отрендерить одно значение.

        Args:
            value: Значение штрихкода
            style: Размеры и шрифт варианта
            options: Тип, текст, растяжение, игнорируемые символы, ориентация
            variant: Основной или дополнительный вариант

        Returns:
            RenderedImage с PNG и итоговыми размерами

        Raises:
            SymbologyError: Если значение нельзя закодировать
        """
        processed = process_value(value, options.ignore_digits)
        image = self.render_image(processed, style, options)

        buffer = BytesIO()
        image.save(
            buffer,
            format="PNG",
            compress_level=9,
            dpi=(RENDER.STANDARD_DPI, RENDER.STANDARD_DPI),
        )

        return RenderedImage(
            data=buffer.getvalue(),
            width_px=image.width,
            height_px=image.height,
            filename=build_filename(processed, style),
            value=processed,
            variant=variant,
            dpi=RENDER.STANDARD_DPI,
        )

    def render_image(
        self,
        processed: str,
        style: RenderStyle,
        options: RenderOptions,
    ) -> Image.Image:
        """
        Отрендерить уже обработанное значение в PIL Image.

        Повторно ignoreDigits не применяется.
        """
        plan = small_label.plan_for(style)
        dpi = plan.render_dpi

        target_width = to_pixels(style.width, style.unit, dpi)
        target_height = to_pixels(style.height, style.unit, dpi)

        # Для вертикали стороны холста до поворота переставлены
        if options.is_vertical:
            canvas_width, canvas_height = target_height, target_width
        else:
            canvas_width, canvas_height = target_width, target_height

        hints = self._geometry_hints(plan, options, style, canvas_width, canvas_height)
        symbol = self.encoder.encode(processed, options.barcode_type, hints)

        canvas = self._compose(symbol, canvas_width, canvas_height, options.stretch)

        if options.is_vertical:
            # ROTATE_270 (против часовой) = 90° по часовой
            canvas = canvas.transpose(Image.Transpose.ROTATE_270)

        if plan.needs_downscale:
            final_size = (
                to_pixels(style.width, style.unit, plan.output_dpi),
                to_pixels(style.height, style.unit, plan.output_dpi),
            )
            canvas = small_label.downscale(canvas, final_size)

        logger.debug(
            f"[RENDER] {options.barcode_type.value} «{processed}»: "
            f"{canvas.width}x{canvas.height}px (render {dpi} DPI)"
        )
        return canvas

    def _geometry_hints(
        self,
        plan: small_label.SmallLabelPlan,
        options: RenderOptions,
        style: RenderStyle,
        canvas_width: int,
        canvas_height: int,
    ) -> GeometryHints:
        """Подсказки геометрии для символики (высоту штрихов считает кодировщик)."""
        if options.stretch:
            module_width = canvas_width / RENDER.STRETCH_MODULE_DIVISOR
        else:
            module_width = RENDER.NARROW_MODULE_PX * plan.scale

        return GeometryHints(
            render_dpi=plan.render_dpi,
            module_width_px=module_width,
            target_width_px=canvas_width,
            target_height_px=canvas_height,
            show_text=options.show_text,
            font_family=style.font_family,
            font_size_px=plan.font_size_px,
            text_margin_px=plan.text_margin_px,
            quiet_zone_px=round(RENDER.SYMBOL_QUIET_ZONE_PX * plan.scale),
        )

    def _compose(
        self,
        symbol: Image.Image,
        width: int,
        height: int,
        stretch: bool,
    ) -> Image.Image:
        """Разместить символ на белом холсте заданного размера."""
        canvas = Image.new("RGB", (width, height), "white")

        if stretch:
            # Растягиваем без сохранения пропорций
            canvas.paste(symbol.resize((width, height), Image.Resampling.LANCZOS), (0, 0))
            return canvas

        if symbol.width > width or symbol.height > height:
            # Не обрезаем: уменьшаем с сохранением пропорций
            ratio = min(width / symbol.width, height / symbol.height)
            new_size = (max(1, int(symbol.width * ratio)), max(1, int(symbol.height * ratio)))
            symbol = symbol.resize(new_size, Image.Resampling.LANCZOS)

        x = (width - symbol.width) // 2
        y = (height - symbol.height) // 2
        canvas.paste(symbol, (x, y))
        return canvas
