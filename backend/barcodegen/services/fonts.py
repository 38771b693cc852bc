"""
Реестр шрифтов для подписей под штрихкодами.

Создаётся один раз при старте приложения и передаётся в рендереры.
Отсутствующие файлы пропускаются: для них используется DejaVuSans или
встроенный шрифт Pillow.
"""

import logging
import os

from PIL import ImageFont

from barcodegen.config import RENDER

logger = logging.getLogger(__name__)


class FontRegistry:
    """Соответствие семейства шрифта и файла TTF."""

    def __init__(self, paths: dict[str, str] | None = None):
        self._paths: dict[str, str] = dict(paths or {})

    @classmethod
    def load(
        cls,
        fonts_dir: str,
        font_files: dict[str, str] | None = None,
    ) -> "FontRegistry":
        """
        Загрузить шрифты из директории.

        Args:
            fonts_dir: Директория с TTF файлами
            font_files: Семейство → имя файла (по умолчанию RENDER.FONT_FILES)

        Returns:
            FontRegistry с найденными шрифтами
        """
        font_files = font_files if font_files is not None else RENDER.FONT_FILES
        paths: dict[str, str] = {}

        logger.info(f"[FONTS] Загрузка шрифтов из {fonts_dir}")
        for family, filename in font_files.items():
            font_path = os.path.join(fonts_dir, filename)
            if not os.path.exists(font_path):
                logger.warning(f"[FONTS] Файл шрифта не найден: {font_path}")
                continue
            try:
                # Проверяем, что файл действительно читается как TTF
                ImageFont.truetype(font_path, 10)
            except OSError as e:
                logger.warning(f"[FONTS] Не удалось загрузить {family}: {e}")
                continue
            paths[family] = font_path
            logger.info(f"[FONTS] Загружен шрифт: {family}")

        logger.info(f"[FONTS] Загружено {len(paths)}/{len(font_files)} шрифтов")
        if not paths:
            logger.warning("[FONTS] Ни один шрифт не загружен, используется шрифт по умолчанию")

        return cls(paths)

    def font_path(self, family: str) -> str | None:
        """Путь к TTF для семейства (None — шрифт по умолчанию)."""
        return self._paths.get(family)

    def available_fonts(self) -> list[str]:
        """Список загруженных семейств."""
        return sorted(self._paths)

    def pil_font(self, family: str, size_px: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
        """Шрифт PIL для рисования текста вручную."""
        size_px = max(1, size_px)
        path = self.font_path(family)
        if path:
            return ImageFont.truetype(path, size_px)
        try:
            return ImageFont.truetype("DejaVuSans.ttf", size_px)
        except OSError:
            return ImageFont.load_default(size_px)

    def __contains__(self, family: str) -> bool:
        return family in self._paths

    def __len__(self) -> int:
        return len(self._paths)
