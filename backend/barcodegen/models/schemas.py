"""
Pydantic схемы для API.

Модели запросов и ответов. Имена полей в JSON — camelCase (алиасы),
в Python — snake_case.
"""

from typing import Annotated, Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from barcodegen.config import RENDER
from barcodegen.models.barcode_types import (
    BarcodeType,
    DigitsPosition,
    DimensionUnit,
    IgnoreDigitsRule,
    Orientation,
    RenderOptions,
    RenderStyle,
)


class CamelModel(BaseModel):
    """Базовая модель с camelCase алиасами."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# === Конфигурация штрихкода ===


class Dimensions(CamelModel):
    """Физический размер этикетки."""

    width: float = Field(ge=RENDER.DIMENSION_MIN, le=RENDER.DIMENSION_MAX, description="Ширина")
    height: float = Field(ge=RENDER.DIMENSION_MIN, le=RENDER.DIMENSION_MAX, description="Высота")
    unit: DimensionUnit = Field(default=DimensionUnit.CM, description="cm или inches")


class FontConfig(CamelModel):
    """Шрифт подписи."""

    family: str = Field(min_length=1, description="Семейство шрифта")
    size: int = Field(ge=RENDER.FONT_SIZE_MIN, le=RENDER.FONT_SIZE_MAX, description="Размер в px")
    auto_adjust_font: bool = Field(
        default=True,
        validation_alias=AliasChoices("autoAdjustFont", "autoAdjust", "auto_adjust_font"),
        description="Подстройка шрифта для мелких этикеток",
    )


class IgnoreDigits(CamelModel):
    """Отрезать символы с начала или конца значения."""

    enabled: bool = Field(default=False)
    position: DigitsPosition = Field(default=DigitsPosition.END)
    count: int = Field(default=0, ge=0, le=RENDER.IGNORE_DIGITS_MAX)

    def to_rule(self) -> IgnoreDigitsRule:
        return IgnoreDigitsRule(enabled=self.enabled, position=self.position, count=self.count)


class BarcodeOptions(CamelModel):
    """Параметры отображения."""

    show_text: bool = Field(default=True, description="Печатать значение под штрихкодом")
    stretch: bool = Field(default=False, description="Растянуть на всю этикетку")
    ignore_digits: IgnoreDigits | None = Field(default=None)


class BarcodeConfig(CamelModel):
    """
    Полная конфигурация штрихкода.

    dualDimensions обязателен при dualMode=true; dualFont необязателен
    (по умолчанию font). При dualMode=false оба поля должны отсутствовать.
    """

    barcode_type: BarcodeType = Field(alias="type", description="Тип штрихкода")
    dimensions: Dimensions
    font: FontConfig
    options: BarcodeOptions = Field(default_factory=BarcodeOptions)
    dual_mode: bool = Field(default=False)
    dual_dimensions: Dimensions | None = Field(default=None)
    dual_font: FontConfig | None = Field(default=None)
    orientation: Orientation = Field(default=Orientation.HORIZONTAL)
    continuous_mode: bool = Field(default=False)
    max_barcode_limit: int | None = Field(default=None, ge=1, le=RENDER.MAX_ITEMS_LIMIT)

    @model_validator(mode="after")
    def check_dual_fields(self) -> "BarcodeConfig":
        if self.dual_mode and self.dual_dimensions is None:
            raise ValueError("dualDimensions обязателен при dualMode=true")
        if not self.dual_mode and (self.dual_dimensions is not None or self.dual_font is not None):
            raise ValueError("dualDimensions и dualFont допустимы только при dualMode=true")
        return self

    def primary_style(self) -> RenderStyle:
        return _style(self.dimensions, self.font)

    def secondary_style(self) -> RenderStyle | None:
        """Стиль дополнительного варианта (None без dual-режима)."""
        if not self.dual_mode or self.dual_dimensions is None:
            return None
        return _style(self.dual_dimensions, self.dual_font or self.font)

    def dual_variant(self) -> "BarcodeConfig":
        """
        Конфигурация дополнительного варианта как самостоятельная.

        dualMode выключен, чтобы вариант не размножался повторно.
        """
        if not self.dual_mode or self.dual_dimensions is None:
            raise ValueError("Конфигурация без dual-режима")
        return self.model_copy(
            update={
                "dimensions": self.dual_dimensions,
                "font": self.dual_font or self.font,
                "dual_mode": False,
                "dual_dimensions": None,
                "dual_font": None,
            }
        )

    def render_options(self) -> RenderOptions:
        ignore = self.options.ignore_digits
        return RenderOptions(
            barcode_type=self.barcode_type,
            show_text=self.options.show_text,
            stretch=self.options.stretch,
            ignore_digits=ignore.to_rule() if ignore else None,
            orientation=self.orientation,
        )

    @property
    def images_per_item(self) -> int:
        return 2 if self.dual_mode else 1


def _style(dimensions: Dimensions, font: FontConfig) -> RenderStyle:
    return RenderStyle(
        width=dimensions.width,
        height=dimensions.height,
        unit=dimensions.unit,
        font_family=font.family,
        font_size=font.size,
        auto_adjust_font=font.auto_adjust_font,
    )


# === Раскладка печатного листа ===


class Margins(CamelModel):
    """Поля листа в мм."""

    top: float = Field(default=10.0, ge=0)
    bottom: float = Field(default=10.0, ge=0)
    left: float = Field(default=10.0, ge=0)
    right: float = Field(default=10.0, ge=0)


class PrintLayoutConfig(CamelModel):
    """Полная конфигурация печатного листа (все поля заданы)."""

    canvas_width_cm: float = Field(default=100.0, gt=0, description="Игнорируется в continuousMode")
    margins_mm: Margins = Field(default_factory=Margins)
    spacing_mm: float = Field(default=5.0, ge=0)
    border_width_mm: float = Field(default=0.5, gt=0)
    border_color: str = Field(default="#FF0000", pattern=r"^#[0-9A-Fa-f]{6}$")
    continuous_mode: bool = Field(default=False)


class MarginsOverrides(CamelModel):
    """Частичные поля листа."""

    top: float | None = Field(default=None, ge=0)
    bottom: float | None = Field(default=None, ge=0)
    left: float | None = Field(default=None, ge=0)
    right: float | None = Field(default=None, ge=0)


class PrintLayoutOverrides(CamelModel):
    """Частичная конфигурация листа из запроса. None — взять значение по умолчанию."""

    canvas_width_cm: float | None = Field(default=None, gt=0)
    margins_mm: MarginsOverrides | None = Field(default=None)
    spacing_mm: float | None = Field(default=None, ge=0)
    border_width_mm: float | None = Field(default=None, gt=0)
    border_color: str | None = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    continuous_mode: bool | None = Field(default=None)


# === Запросы ===

_CONFIG_ALIASES = AliasChoices("configuration", "config")

# Значение штрихкода: непустая строка
DataItem = Annotated[str, Field(min_length=1)]


class GenerateBarcodeRequest(CamelModel):
    """Запрос на генерацию ZIP архива."""

    data: list[DataItem] = Field(min_length=1, max_length=RENDER.MAX_ITEMS_LIMIT)
    config: BarcodeConfig = Field(validation_alias=_CONFIG_ALIASES)

    @model_validator(mode="after")
    def check_items(self) -> "GenerateBarcodeRequest":
        _check_limit(self.data, self.config)
        return self


class PrintReadyRequest(CamelModel):
    """Запрос на печатный лист (PNG или PDF)."""

    # Минимум листа проверяется по Settings.print_ready_min_items
    data: list[DataItem] = Field(min_length=1, max_length=RENDER.MAX_ITEMS_LIMIT)
    config: BarcodeConfig = Field(validation_alias=_CONFIG_ALIASES)
    layout_config: PrintLayoutOverrides | None = Field(default=None)

    @model_validator(mode="after")
    def check_items(self) -> "PrintReadyRequest":
        _check_limit(self.data, self.config)
        return self


def _check_limit(data: list[str], config: BarcodeConfig) -> None:
    if config.max_barcode_limit is not None and len(data) > config.max_barcode_limit:
        raise ValueError(
            f"Слишком много значений: {len(data)}, максимум {config.max_barcode_limit}"
        )


# === Ответы ===


class FontsResponse(BaseModel):
    """Список доступных шрифтов."""

    fonts: list[str] = Field(description="Загруженные семейства")
    count: int = Field(description="Количество")


class ErrorDetail(BaseModel):
    """Ошибка одного поля."""

    path: str
    message: str


class ErrorResponse(BaseModel):
    """Ответ с ошибкой."""

    success: bool = False
    error: str
    kind: str | None = None
    details: list[ErrorDetail] | dict[str, Any] | None = None
