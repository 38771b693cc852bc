"""
Подстройка геометрии для мелких этикеток (высота < 1 см).

При 96 DPI штрихи и текст мелкой этикетки занимают единицы пикселей.
Поэтому символ рендерится с 3x разрешением (288 DPI), шрифт уменьшается
до 70% (но не меньше 6 px), отступ текста сокращается до 6 px, а результат
уменьшается обратно до размера при 96 DPI с резкостью без ореолов.
"""

from dataclasses import dataclass

from PIL import Image, ImageFilter

from barcodegen.config import RENDER
from barcodegen.models.barcode_types import RenderStyle
from barcodegen.services.units import to_centimeters

# Точность сравнения с порогом: 0.3937 дюйма = 0.999998 см считается мелкой
_HEIGHT_PRECISION = 6


@dataclass(frozen=True)
class SharpenProfile:
    """
    Параметры резкости после уменьшения.

    flat — усиление на плоских участках (1.0 не даёт ореолов),
    jagged — усиление на краях, растёт с кратностью уменьшения.
    """

    sigma: float = 0.5
    flat: float = 1.0
    jagged: float = 0.5

    def to_filter(self) -> ImageFilter.UnsharpMask:
        return ImageFilter.UnsharpMask(
            radius=self.sigma,
            percent=round(self.jagged * 100),
            threshold=round(self.flat * 2),
        )


@dataclass(frozen=True)
class SmallLabelPlan:
    """Итоговые параметры рендера одного варианта."""

    is_small: bool
    adjusted: bool  # Подстройка реально применена
    render_dpi: int
    output_dpi: int
    font_size_px: float  # В пикселях при 96 DPI
    text_margin_px: int  # В пикселях при 96 DPI

    @property
    def scale(self) -> float:
        """Во сколько раз рендер крупнее итогового изображения."""
        return self.render_dpi / self.output_dpi

    @property
    def needs_downscale(self) -> bool:
        return self.render_dpi != self.output_dpi


def is_small_label(height: float, unit: str) -> bool:
    """Мелкая этикетка: высота строго меньше 1 см."""
    height_cm = round(to_centimeters(height, unit), _HEIGHT_PRECISION)
    return height_cm < RENDER.SMALL_LABEL_HEIGHT_CM


def adjust_font_size(font_size: float, small: bool, auto_adjust: bool = True) -> float:
    """Размер шрифта с учётом мелкой этикетки."""
    if small and auto_adjust:
        return max(font_size * RENDER.SMALL_FONT_SCALE, RENDER.SMALL_FONT_MIN_PX)
    return font_size


def plan_for(style: RenderStyle) -> SmallLabelPlan:
    """
    Выбрать DPI, шрифт и отступ для варианта штрихкода.

    Args:
        style: Размеры и шрифт варианта

    Returns:
        SmallLabelPlan с параметрами рендера
    """
    small = is_small_label(style.height, style.unit)
    adjusted = small and style.auto_adjust_font

    return SmallLabelPlan(
        is_small=small,
        adjusted=adjusted,
        render_dpi=RENDER.SMALL_LABEL_DPI if adjusted else RENDER.STANDARD_DPI,
        output_dpi=RENDER.STANDARD_DPI,
        font_size_px=adjust_font_size(style.font_size, small, style.auto_adjust_font),
        text_margin_px=RENDER.SMALL_TEXT_MARGIN_PX if adjusted else RENDER.STANDARD_TEXT_MARGIN_PX,
    )


def sharpen_profile(scale: float) -> SharpenProfile:
    """
    Профиль резкости по кратности уменьшения.

    2x и меньше — мягкий край (0.5), 3x и больше — полный (1.0).
    """
    aggressiveness = min(max((scale - 1.0) / 2.0, 0.0), 1.0)
    return SharpenProfile(jagged=0.5 + 0.5 * aggressiveness)


def downscale(image: Image.Image, size: tuple[int, int]) -> Image.Image:
    """
    Уменьшить изображение с высоким качеством и подчеркнуть края.

    Args:
        image: Изображение, отрендеренное с повышенным DPI
        size: Итоговый размер (ширина, высота) при 96 DPI

    Returns:
        Уменьшенное изображение точно заданного размера
    """
    if image.size == size:
        return image

    scale = max(image.width / size[0], image.height / size[1])
    resized = image.resize(size, Image.Resampling.LANCZOS)
    return resized.filter(sharpen_profile(scale).to_filter())
