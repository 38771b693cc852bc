"""
Кодирование значений в изображения штрихкодов.

Линейные типы (Code128, EAN-13, EAN-8, UPC-A, Code39) — через python-barcode,
QR — через qrcode. Подпись под символом рисуется через Pillow по реальным
размерам глифов, чтобы штрихи не вытеснялись текстом на низких этикетках.
"""

import math
from dataclasses import dataclass
from io import BytesIO

import qrcode
from barcode import get_barcode_class
from barcode.writer import ImageWriter
from PIL import Image, ImageDraw, ImageFont, ImageOps

from barcodegen.config import RENDER
from barcodegen.models.barcode_types import BarcodeType
from barcodegen.services.errors import SymbologyError
from barcodegen.services.fonts import FontRegistry
from barcodegen.services.units import pixels_to_mm

# Тип штрихкода → идентификатор символики
SYMBOLOGY_IDS: dict[BarcodeType, str] = {
    BarcodeType.CODE128: "code128",
    BarcodeType.QR: "qrcode",
    BarcodeType.EAN13: "ean13",
    BarcodeType.EAN8: "ean8",
    BarcodeType.UPCA: "upca",
    BarcodeType.CODE39: "code39",
}


def symbology_id(barcode_type: BarcodeType) -> str:
    """Идентификатор символики для типа штрихкода."""
    return SYMBOLOGY_IDS[BarcodeType(barcode_type)]


@dataclass(frozen=True)
class GeometryHints:
    """
    Подсказки по геометрии символа.

    module_width_px, quiet_zone_px, target_*_px заданы при render_dpi;
    font_size_px и text_margin_px — при 96 DPI (физический размер).
    """

    render_dpi: int
    module_width_px: float
    target_width_px: int
    target_height_px: int
    show_text: bool = True
    font_family: str = ""
    font_size_px: float = 12.0
    text_margin_px: int = RENDER.STANDARD_TEXT_MARGIN_PX
    quiet_zone_px: int = RENDER.SYMBOL_QUIET_ZONE_PX

    @property
    def scale(self) -> float:
        return self.render_dpi / RENDER.STANDARD_DPI


@dataclass(frozen=True)
class Caption:
    """Подпись под символом, подогнанная под высоту этикетки (пиксели при render_dpi)."""

    text: str
    font: ImageFont.FreeTypeFont | ImageFont.ImageFont
    size_px: int
    margin_px: int
    width_px: int
    glyph_height_px: int
    left: int
    top: int

    @property
    def height_px(self) -> int:
        return self.glyph_height_px + self.margin_px


class SymbologyEncoder:
    """
    Генератор изображений символов под целевой размер.

    Ошибки библиотек оборачиваются в SymbologyError с исходным значением.
    """

    def __init__(self, fonts: FontRegistry | None = None):
        self.fonts = fonts or FontRegistry()

    def encode(self, value: str, barcode_type: BarcodeType, hints: GeometryHints) -> Image.Image:
        """
        Создать изображение символа.

        Args:
            value: Значение (уже без отрезанных символов)
            barcode_type: Тип штрихкода
            hints: Подсказки по геометрии

        Returns:
            PIL Image в режиме RGB

        Raises:
            SymbologyError: Если значение нельзя закодировать
        """
        barcode_type = BarcodeType(barcode_type)
        if not value:
            raise SymbologyError(value, barcode_type.value, "пустое значение")

        try:
            if barcode_type.is_2d:
                return self._encode_qr(value, hints)
            return self._encode_linear(value, barcode_type, hints)
        except SymbologyError:
            raise
        except Exception as e:
            raise SymbologyError(value, barcode_type.value, str(e) or type(e).__name__) from e

    def fit_caption(self, text: str, hints: GeometryHints) -> Caption | None:
        """
        Подобрать подпись, оставляющую символу не меньше MIN_SYMBOL_SHARE высоты.

        Сначала уменьшается отступ от штрихов, затем кегль.
        """
        if not hints.show_text:
            return None

        limit = hints.target_height_px * (RENDER.BAR_HEIGHT_RATIO - RENDER.MIN_SYMBOL_SHARE)
        size_px = max(1, round(hints.font_size_px * hints.scale))
        margin = round(hints.text_margin_px * hints.scale)
        min_margin = max(1, round(hints.scale))

        while True:
            font = self.fonts.pil_font(hints.font_family, size_px)
            left, top, right, bottom = font.getbbox(text)
            glyph_height = bottom - top
            margin = max(min_margin, min(margin, int(limit - glyph_height)))
            if glyph_height + margin <= limit or size_px == 1:
                break
            size_px -= 1

        return Caption(
            text=text,
            font=font,
            size_px=size_px,
            margin_px=margin,
            width_px=right - left,
            glyph_height_px=glyph_height,
            left=left,
            top=top,
        )

    def _encode_linear(
        self,
        value: str,
        barcode_type: BarcodeType,
        hints: GeometryHints,
    ) -> Image.Image:
        """Линейный штрихкод: штрихи через python-barcode ImageWriter, подпись через Pillow."""
        dpi = hints.render_dpi
        barcode_class = get_barcode_class(symbology_id(barcode_type))
        barcode = barcode_class(value, writer=ImageWriter())
        caption = self.fit_caption(barcode.get_fullcode(), hints)

        bar_height = hints.target_height_px * RENDER.BAR_HEIGHT_RATIO
        if caption is not None:
            bar_height -= caption.height_px

        # Узкий модуль уменьшается, если символ не влезает по ширине
        modules = len(barcode_class(value).build()[0])
        fit_width = (hints.target_width_px - 2 * hints.quiet_zone_px) / modules
        module_width = hints.module_width_px
        if fit_width < module_width:
            module_width = float(math.floor(fit_width)) if fit_width >= 1 else fit_width

        # python-barcode считает размеры в мм, пиксели пересчитываем
        options = {
            "module_width": pixels_to_mm(module_width, dpi),
            "module_height": pixels_to_mm(max(1.0, bar_height), dpi),
            "quiet_zone": pixels_to_mm(hints.quiet_zone_px, dpi),
            "write_text": False,
            "background": RENDER.COLOR_WHITE,
            "foreground": RENDER.COLOR_BLACK,
            "dpi": dpi,
        }

        buffer = BytesIO()
        barcode.write(buffer, options=options)
        buffer.seek(0)

        bars = _trim_vertical(Image.open(buffer).convert("RGB"))
        if caption is None:
            return bars
        return _with_caption(bars, caption)

    def _encode_qr(self, value: str, hints: GeometryHints) -> Image.Image:
        """QR код (уровень коррекции M), квадратный, с подписью по запросу."""
        qr = qrcode.QRCode(
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            border=RENDER.QR_BORDER_MODULES,
        )
        qr.add_data(value)
        qr.make(fit=True)

        caption = self.fit_caption(value, hints)
        caption_height = caption.height_px if caption is not None else 0

        # Подбираем размер модуля так, чтобы символ влез в этикетку
        modules = qr.modules_count + 2 * RENDER.QR_BORDER_MODULES
        available = min(hints.target_width_px, hints.target_height_px - caption_height)
        qr.box_size = max(1, available // modules)

        symbol = qr.make_image(fill_color="black", back_color="white").convert("RGB")
        if caption is None:
            return symbol
        return _with_caption(symbol, caption)


def _trim_vertical(image: Image.Image) -> Image.Image:
    """Убрать белые поля сверху и снизу, горизонтальные поля сохраняются."""
    bbox = ImageOps.invert(image.convert("L")).getbbox()
    if bbox is None:
        return image
    return image.crop((0, bbox[1], image.width, bbox[3]))


def _with_caption(symbol: Image.Image, caption: Caption) -> Image.Image:
    """Символ с подписью по центру под ним."""
    width = max(symbol.width, caption.width_px)
    img = Image.new("RGB", (width, symbol.height + caption.height_px), "white")
    img.paste(symbol, ((width - symbol.width) // 2, 0))

    draw = ImageDraw.Draw(img)
    draw.text(
        ((width - caption.width_px) // 2 - caption.left, symbol.height + caption.margin_px - caption.top),
        caption.text,
        fill="black",
        font=caption.font,
    )
    return img
