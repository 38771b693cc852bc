"""
Тесты рендера одного штрихкода.

Покрывает:
- Размер изображения по физическим размерам
- Вертикальную ориентацию
- Игнорируемые символы
- Мелкие этикетки (рендер 288 DPI, уменьшение, высота штрихов)
- Ошибки кодирования и содержимое символов
"""

from io import BytesIO
from unittest.mock import MagicMock

import pytest
from PIL import Image

from barcodegen.models.barcode_types import (
    BarcodeType,
    DigitsPosition,
    DimensionUnit,
    IgnoreDigitsRule,
    Orientation,
    RenderOptions,
    RenderStyle,
    Variant,
)
from barcodegen.services.barcode_renderer import BarcodeRenderer, build_filename, process_value
from barcodegen.services.errors import SymbologyError
from barcodegen.services.symbology import SYMBOLOGY_IDS, GeometryHints, SymbologyEncoder, symbology_id

# === Fixtures ===


@pytest.fixture
def renderer() -> BarcodeRenderer:
    """Рендерер с реальными библиотеками штрихкодов."""
    return BarcodeRenderer()


@pytest.fixture
def style() -> RenderStyle:
    """Этикетка 5×3 см."""
    return RenderStyle(width=5, height=3, unit=DimensionUnit.CM, font_family="Roboto", font_size=12)


@pytest.fixture
def fake_encoder() -> MagicMock:
    """Кодировщик, возвращающий чёрный прямоугольник 50×20."""
    encoder = MagicMock(spec=SymbologyEncoder)
    encoder.encode.return_value = Image.new("RGB", (50, 20), "black")
    return encoder


def _open(data: bytes) -> Image.Image:
    return Image.open(BytesIO(data))


def _dark_mask(image: Image.Image) -> list[list[bool]]:
    """Маска тёмных пикселей по строкам."""
    gray = image.convert("L")
    pixels = gray.load()
    return [[pixels[x, y] < 128 for x in range(gray.width)] for y in range(gray.height)]


def _dark_runs(image: Image.Image) -> list[int]:
    """Самый длинный вертикальный отрезок тёмных пикселей в каждом столбце."""
    mask = _dark_mask(image)
    runs = []
    for x in range(image.width):
        best = run = 0
        for row in mask:
            run = run + 1 if row[x] else 0
            best = max(best, run)
        runs.append(best)
    return runs


def _bar_columns(image: Image.Image, share: float) -> int:
    """Число столбцов со штрихом не короче share высоты этикетки."""
    return sum(1 for run in _dark_runs(image) if run >= image.height * share)


def _assert_finder_patterns(image: Image.Image) -> None:
    """Три угловых поисковых узора QR: рамка 7×7, белое кольцо, центр 3×3."""
    gray = image.convert("L")
    mask = _dark_mask(gray)
    rows = [y for y, row in enumerate(mask) if any(row)]
    cols = [x for x in range(gray.width) if any(row[x] for row in mask)]
    left, top, right, bottom = cols[0], rows[0], cols[-1], rows[-1]

    edge = 0
    while mask[top][left + edge]:
        edge += 1
    module = edge / 7

    def dark(x: float, y: float) -> bool:
        return gray.getpixel((int(x), int(y))) < 128

    for x0, y0 in ((left, top), (right + 1 - edge, top), (left, bottom + 1 - edge)):
        assert dark(x0 + module / 2, y0 + module / 2)
        assert not dark(x0 + 1.5 * module, y0 + 1.5 * module)
        assert dark(x0 + 3.5 * module, y0 + 3.5 * module)


class TestProcessValue:
    def test_cut_from_end(self):
        rule = IgnoreDigitsRule(enabled=True, position=DigitsPosition.END, count=3)
        assert process_value("123456789", rule) == "123456"

    def test_cut_from_start(self):
        rule = IgnoreDigitsRule(enabled=True, position=DigitsPosition.START, count=2)
        assert process_value("123456789", rule) == "3456789"

    def test_disabled_rule(self):
        rule = IgnoreDigitsRule(enabled=False, position=DigitsPosition.END, count=3)
        assert process_value("123456789", rule) == "123456789"

    def test_zero_count_keeps_value(self):
        """count=0 не меняет значение ни с начала, ни с конца"""
        for position in DigitsPosition:
            rule = IgnoreDigitsRule(enabled=True, position=position, count=0)
            assert process_value("12345", rule) == "12345"

    def test_no_rule(self):
        assert process_value("ABC", None) == "ABC"


class TestFilename:
    def test_format(self, style):
        assert build_filename("4006381333931", style) == "barcode_4006381333931_5x3cm.png"

    def test_unsafe_chars_replaced(self, style):
        assert build_filename("a/b c", style) == "barcode_a_b_c_5x3cm.png"


class TestRender:
    def test_standard_size(self, renderer, style):
        """Code128 5×3 см — 189×113 px"""
        image = renderer.render("HELLO-123", style, RenderOptions(barcode_type=BarcodeType.CODE128))

        assert image.width_px == 189
        assert image.height_px == 113
        assert image.variant == Variant.PRIMARY
        assert image.dpi == 96
        assert _open(image.data).size == (189, 113)

    def test_vertical_keeps_configured_size(self, renderer, style):
        """Вертикальная ориентация: итог совпадает с заданной шириной и высотой"""
        options = RenderOptions(barcode_type=BarcodeType.CODE128, orientation=Orientation.VERTICAL)
        image = renderer.render("HELLO", style, options)

        assert (image.width_px, image.height_px) == (189, 113)

    def test_vertical_canvas_swapped_before_rotation(self, fake_encoder, style):
        """До поворота холст имеет переставленные стороны"""
        renderer = BarcodeRenderer(encoder=fake_encoder)
        renderer.render("X", style, RenderOptions(orientation=Orientation.VERTICAL))

        hints = fake_encoder.encode.call_args[0][2]
        assert (hints.target_width_px, hints.target_height_px) == (113, 189)

    def test_qr_render(self, renderer):
        qr_style = RenderStyle(width=3, height=3, unit=DimensionUnit.CM, font_family="Roboto", font_size=10)
        image = renderer.render("https://example.com", qr_style, RenderOptions(barcode_type=BarcodeType.QR))

        assert (image.width_px, image.height_px) == (113, 113)

    def test_ignore_digits_applied_once(self, fake_encoder, style):
        """Кодируется и печатается уже обрезанное значение, повторно не режется"""
        renderer = BarcodeRenderer(encoder=fake_encoder)
        rule = IgnoreDigitsRule(enabled=True, position=DigitsPosition.END, count=3)

        image = renderer.render("123456789", style, RenderOptions(ignore_digits=rule))

        assert fake_encoder.encode.call_args[0][0] == "123456"
        assert image.value == "123456"
        assert image.filename == "barcode_123456_5x3cm.png"

    def test_stretch_fills_canvas(self, fake_encoder, style):
        renderer = BarcodeRenderer(encoder=fake_encoder)
        image = _open(renderer.render("X", style, RenderOptions(stretch=True)).data).convert("RGB")

        assert image.getpixel((0, 0)) == (0, 0, 0)
        assert image.getpixel((188, 112)) == (0, 0, 0)

    def test_centered_without_scaling(self, fake_encoder, style):
        renderer = BarcodeRenderer(encoder=fake_encoder)
        image = _open(renderer.render("X", style, RenderOptions()).data).convert("RGB")

        assert image.getpixel((0, 0)) == (255, 255, 255)
        assert image.getpixel((94, 56)) == (0, 0, 0)
        # Символ 50 px шириной по центру: края холста белые
        assert image.getpixel((60, 56)) == (255, 255, 255)

    def test_oversized_symbol_shrunk_not_cropped(self, fake_encoder, style):
        fake_encoder.encode.return_value = Image.new("RGB", (1000, 1000), "black")
        renderer = BarcodeRenderer(encoder=fake_encoder)
        image = _open(renderer.render("X", style, RenderOptions()).data).convert("RGB")

        assert image.size == (189, 113)
        # Квадрат 113×113 по центру, слева белое поле
        assert image.getpixel((5, 56)) == (255, 255, 255)
        assert image.getpixel((94, 56)) == (0, 0, 0)

    def test_secondary_variant(self, renderer, style):
        image = renderer.render("ABC", style, RenderOptions(), Variant.SECONDARY)
        assert not image.is_primary


class TestSmallLabel:
    def test_small_label_rendered_at_288_dpi(self, fake_encoder):
        fake_encoder.encode.return_value = Image.new("RGB", (300, 60), "black")
        renderer = BarcodeRenderer(encoder=fake_encoder)
        small = RenderStyle(width=5, height=0.8, unit=DimensionUnit.CM, font_family="Roboto", font_size=12)

        image = renderer.render("123", small, RenderOptions())

        hints = fake_encoder.encode.call_args[0][2]
        assert hints.render_dpi == 288
        assert hints.font_size_px == pytest.approx(8.4)
        assert hints.text_margin_px == 6
        # Итог уменьшен до размера при 96 DPI
        assert (image.width_px, image.height_px) == (189, 30)

    def test_small_label_without_auto_adjust(self, fake_encoder):
        renderer = BarcodeRenderer(encoder=fake_encoder)
        small = RenderStyle(
            width=5,
            height=0.8,
            unit=DimensionUnit.CM,
            font_family="Roboto",
            font_size=12,
            auto_adjust_font=False,
        )

        image = renderer.render("123", small, RenderOptions())

        hints = fake_encoder.encode.call_args[0][2]
        assert hints.render_dpi == 96
        assert hints.font_size_px == 12
        assert (image.width_px, image.height_px) == (189, 30)

    def test_real_small_label(self, renderer):
        small = RenderStyle(width=4, height=0.6, unit=DimensionUnit.CM, font_family="Roboto", font_size=10)
        image = renderer.render("12345678", small, RenderOptions())

        assert (image.width_px, image.height_px) == (151, 23)

    @pytest.mark.parametrize("height_cm", [0.5, 0.8, 1.0])
    def test_low_label_keeps_bars(self, renderer, height_cm):
        """Подпись не вытесняет штрихи: они выше 40% этикетки"""
        low = RenderStyle(width=5, height=height_cm, unit=DimensionUnit.CM, font_family="Roboto", font_size=12)
        image = _open(renderer.render("12345678", low, RenderOptions()).data)

        assert _bar_columns(image, 0.4) >= 20

    def test_low_label_caption_budget(self):
        """Отступ и кегль уменьшаются, подпись укладывается в 40% высоты"""
        hints = GeometryHints(
            render_dpi=288,
            module_width_px=6,
            target_width_px=567,
            target_height_px=57,
            font_size_px=8.4,
            text_margin_px=6,
        )

        caption = SymbologyEncoder().fit_caption("12345678", hints)

        assert caption.height_px <= 57 * 0.4
        assert caption.margin_px < 18
        assert caption.size_px >= 1

    def test_caption_untouched_on_tall_label(self):
        hints = GeometryHints(render_dpi=96, module_width_px=2, target_width_px=189, target_height_px=113)

        caption = SymbologyEncoder().fit_caption("12345678", hints)

        assert caption.size_px == 12
        assert caption.margin_px == 16

    def test_no_caption_without_text(self):
        hints = GeometryHints(
            render_dpi=96, module_width_px=2, target_width_px=189, target_height_px=113, show_text=False
        )
        assert SymbologyEncoder().fit_caption("12345678", hints) is None


class TestSymbology:
    def test_all_types_mapped(self):
        assert set(SYMBOLOGY_IDS) == set(BarcodeType)
        assert symbology_id(BarcodeType.QR) == "qrcode"
        assert symbology_id("ean13") == "ean13"

    def test_invalid_ean13_names_value(self, renderer, style):
        """Буквы в EAN-13 — SymbologyError с исходным значением"""
        with pytest.raises(SymbologyError) as exc_info:
            renderer.render("ABCDEF", style, RenderOptions(barcode_type=BarcodeType.EAN13))

        assert exc_info.value.value == "ABCDEF"
        assert exc_info.value.kind == "symbology"
        assert "ABCDEF" in exc_info.value.message

    def test_empty_after_ignore_digits(self, renderer, style):
        rule = IgnoreDigitsRule(enabled=True, position=DigitsPosition.START, count=5)
        with pytest.raises(SymbologyError):
            renderer.render("123", style, RenderOptions(ignore_digits=rule))

    @pytest.mark.parametrize(
        ("barcode_type", "value"),
        [
            (BarcodeType.CODE128, "Hello World"),
            (BarcodeType.EAN13, "400638133393"),
            (BarcodeType.EAN8, "9638507"),
            (BarcodeType.UPCA, "03600029145"),
            (BarcodeType.CODE39, "CODE39"),
        ],
    )
    def test_every_linear_type_has_bars(self, renderer, style, barcode_type, value):
        """Штрихи видны и занимают больше половины высоты"""
        image = renderer.render(value, style, RenderOptions(barcode_type=barcode_type))
        pixels = _open(image.data)

        assert (image.width_px, image.height_px) == (189, 113)
        assert _bar_columns(pixels, 0.45) >= 20

    def test_qr_finder_patterns(self, renderer, style):
        options = RenderOptions(barcode_type=BarcodeType.QR, show_text=False)
        image = renderer.render("QR-12345", style, options)

        assert (image.width_px, image.height_px) == (189, 113)
        _assert_finder_patterns(_open(image.data))

    def test_qr_with_caption(self, renderer, style):
        image = renderer.render("QR-12345", style, RenderOptions(barcode_type=BarcodeType.QR))
        pixels = _open(image.data).convert("L")

        assert (image.width_px, image.height_px) == (189, 113)
        # Под символом есть подпись: тёмные пиксели в нижней части
        lower = pixels.crop((0, int(pixels.height * 0.75), pixels.width, pixels.height))
        assert lower.getextrema()[0] < 128

    def test_text_hidden(self, renderer, style):
        image = renderer.render("ABC", style, RenderOptions(show_text=False))
        assert (image.width_px, image.height_px) == (189, 113)
