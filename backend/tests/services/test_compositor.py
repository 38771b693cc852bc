"""
Тесты отрисовки печатного листа compositor.py.

При 96 DPI: поле 10 мм = 38 px, рамка 0.5 мм = 2 px, отступ 2 мм = 8 px.
Содержимое первой ячейки начинается с 38 + 2 + 8 = 48 px.
"""

from io import BytesIO

import pikepdf
import pytest
from PIL import Image

from barcodegen.models.barcode_types import RenderedImage, Variant
from barcodegen.services.compositor import render_pdf, render_png
from barcodegen.services.layout_planner import DEFAULT_LAYOUT, merge_layout_config, plan_layout
from barcodegen.services.units import mm_to_pixels, mm_to_points

COLORS = ["blue", "green", "yellow", "purple", "orange", "cyan"]


def _png(color: str, size: tuple[int, int] = (96, 96)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def images() -> list[RenderedImage]:
    """Три разноцветных квадрата 96×96 (25.4 мм)."""
    return [
        RenderedImage(
            data=_png(COLORS[i]),
            width_px=96,
            height_px=96,
            filename=f"{i}.png",
            value=str(i),
            variant=Variant.PRIMARY,
        )
        for i in range(3)
    ]


class TestRenderPng:
    def test_canvas_size_matches_layout(self, images):
        layout = plan_layout(images, DEFAULT_LAYOUT)
        sheet = Image.open(BytesIO(render_png(images, layout, "#FF0000")))

        assert sheet.size == (
            mm_to_pixels(layout.canvas_width_mm, 96),
            mm_to_pixels(layout.canvas_height_mm, 96),
        )
        assert sheet.info["dpi"] == pytest.approx((96, 96), abs=0.1)

    def test_border_padding_and_content(self, images):
        layout = plan_layout(images, DEFAULT_LAYOUT)
        sheet = Image.open(BytesIO(render_png(images, layout, "#FF0000"))).convert("RGB")

        # Поле листа
        assert sheet.getpixel((10, 10)) == (255, 255, 255)
        # Левая граница рамки первой ячейки
        assert sheet.getpixel((38, 60)) == (255, 0, 0)
        # Внутренний отступ между рамкой и штрихкодом
        assert sheet.getpixel((44, 60)) == (255, 255, 255)
        # Содержимое первой ячейки
        assert sheet.getpixel((48, 48)) == (0, 0, 255)
        assert sheet.getpixel((143, 143)) == (0, 0, 255)

    def test_second_cell_offset_by_stride(self, images):
        layout = plan_layout(images, DEFAULT_LAYOUT)
        sheet = Image.open(BytesIO(render_png(images, layout, "#FF0000"))).convert("RGB")

        x = mm_to_pixels(layout.cells[1].x_mm, 96) + 2 + 8
        assert sheet.getpixel((x + 5, 60)) == (0, 128, 0)

    def test_border_color(self, images):
        config = merge_layout_config({"borderColor": "#00FF00"})
        layout = plan_layout(images, config)
        sheet = Image.open(BytesIO(render_png(images, layout, config.border_color))).convert("RGB")

        assert sheet.getpixel((38, 60)) == (0, 255, 0)

    def test_mismatched_counts(self, images):
        layout = plan_layout(images, DEFAULT_LAYOUT)
        with pytest.raises(ValueError):
            render_png(images[:2], layout, "#FF0000")


class TestRenderPdf:
    def test_single_page_sized_to_sheet(self, images):
        layout = plan_layout(images, DEFAULT_LAYOUT)
        data = render_pdf(images, layout, "#FF0000")

        assert data.startswith(b"%PDF")
        with pikepdf.open(BytesIO(data)) as pdf:
            assert len(pdf.pages) == 1
            box = [float(v) for v in pdf.pages[0].mediabox]
            assert box[2] - box[0] == pytest.approx(mm_to_points(layout.canvas_width_mm), abs=0.01)
            assert box[3] - box[1] == pytest.approx(mm_to_points(layout.canvas_height_mm), abs=0.01)

    def test_every_image_embedded(self, images):
        layout = plan_layout(images, DEFAULT_LAYOUT)
        data = render_pdf(images, layout, "#FF0000")

        with pikepdf.open(BytesIO(data)) as pdf:
            assert len(pdf.pages[0].images) == 3

    def test_title(self, images):
        layout = plan_layout(images, DEFAULT_LAYOUT)
        data = render_pdf(images, layout, "#FF0000", title="Print sheet")

        with pikepdf.open(BytesIO(data)) as pdf:
            assert str(pdf.docinfo["/Title"]) == "Print sheet"

    def test_continuous_sheet(self, images):
        config = merge_layout_config({"continuousMode": True})
        layout = plan_layout(images, config)
        data = render_pdf(images, layout, config.border_color)

        with pikepdf.open(BytesIO(data)) as pdf:
            box = [float(v) for v in pdf.pages[0].mediabox]
            assert box[2] == pytest.approx(mm_to_points(20 + 3 * 35.4), abs=0.01)

    def test_mismatched_counts(self, images):
        layout = plan_layout(images[:1], DEFAULT_LAYOUT)
        with pytest.raises(ValueError):
            render_pdf(images, layout, "#FF0000")
