# backend/barcodegen/models/barcode_types.py
"""
Типы данных для рендеринга и раскладки штрихкодов.
"""

from dataclasses import dataclass
from enum import Enum


class BarcodeType(str, Enum):
    """Поддерживаемые типы штрихкодов."""

    CODE128 = "code128"
    QR = "qr"
    EAN13 = "ean13"
    EAN8 = "ean8"
    UPCA = "upca"
    CODE39 = "code39"

    @property
    def is_2d(self) -> bool:
        """Двумерный символ (квадратный, без штрихов)."""
        return self is BarcodeType.QR


class DimensionUnit(str, Enum):
    """Единицы физического размера этикетки."""

    CM = "cm"
    INCHES = "inches"


class Orientation(str, Enum):
    """Ориентация этикетки."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class DigitsPosition(str, Enum):
    """С какой стороны отрезать символы."""

    START = "start"
    END = "end"


class Variant(str, Enum):
    """Вариант рендера для dual-режима."""

    PRIMARY = "primary"
    SECONDARY = "secondary"


class GenerationMode(str, Enum):
    """Где выполнять генерацию."""

    LOCAL = "local"
    REMOTE = "remote"


@dataclass(frozen=True)
class RenderStyle:
    """
    Размеры и шрифт одного варианта штрихкода.

    Для основного варианта берётся dimensions/font, для дополнительного —
    dualDimensions/dualFont.
    """

    width: float
    height: float
    unit: DimensionUnit
    font_family: str
    font_size: int
    auto_adjust_font: bool = True


@dataclass(frozen=True)
class IgnoreDigitsRule:
    """Отрезать count символов с начала или конца значения."""

    enabled: bool = False
    position: DigitsPosition = DigitsPosition.END
    count: int = 0


@dataclass(frozen=True)
class RenderOptions:
    """Общие для всех вариантов параметры рендера."""

    barcode_type: BarcodeType = BarcodeType.CODE128
    show_text: bool = True
    stretch: bool = False
    ignore_digits: IgnoreDigitsRule | None = None
    orientation: Orientation = Orientation.HORIZONTAL

    @property
    def is_vertical(self) -> bool:
        return self.orientation is Orientation.VERTICAL


@dataclass
class RenderedImage:
    """Результат рендера одного значения в одном варианте."""

    data: bytes  # PNG
    width_px: int
    height_px: int
    filename: str
    value: str
    variant: Variant = Variant.PRIMARY
    dpi: int = 96

    @property
    def is_primary(self) -> bool:
        return self.variant is Variant.PRIMARY


@dataclass(frozen=True)
class LayoutCell:
    """Положение одного изображения на листе (всё в мм)."""

    x_mm: float
    y_mm: float
    width_mm: float
    height_mm: float
    is_primary: bool
    row: int
    column: int


@dataclass(frozen=True)
class SheetLayout:
    """Рассчитанная раскладка листа."""

    canvas_width_mm: float
    canvas_height_mm: float
    columns_per_row: int
    cells: list[LayoutCell]
    internal_padding_mm: float
    border_width_mm: float

    @property
    def rows(self) -> int:
        if not self.cells:
            return 0
        return self.cells[-1].row + 1


@dataclass(frozen=True)
class RoutingDecision:
    """Решение роутера: локально или на сервере."""

    mode: GenerationMode
    reason: str
    threshold: int
    complexity_factor: float = 1.0
