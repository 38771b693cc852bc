"""
Упаковка отрендеренных штрихкодов в ZIP архив.

Архив собирается целиком в памяти: при ошибке вызывающий получает
исключение, а не обрезанный файл.
"""

import logging
import os
import zipfile
from collections.abc import Iterable, Sequence
from io import BytesIO

from barcodegen.models.barcode_types import RenderedImage
from barcodegen.services.errors import ArchiveWriteError

logger = logging.getLogger(__name__)

# Уровень сжатия DEFLATE (PNG уже сжат, выше смысла нет)
ZIP_COMPRESS_LEVEL = 6

# Доля исходного размера после сжатия (оценка для UI)
ZIP_SIZE_RATIO = 0.75

DEFAULT_ZIP_FILENAME = "barcodes.zip"


def unique_filenames(filenames: Iterable[str]) -> list[str]:
    """
    Сделать имена уникальными суффиксом _<n>.

    Пример: a.png, a.png, a.png → a.png, a_2.png, a_3.png
    """
    seen: dict[str, int] = {}
    taken: set[str] = set()
    result: list[str] = []

    for filename in filenames:
        name = filename
        if name in taken:
            stem, ext = os.path.splitext(filename)
            counter = seen.get(filename, 1)
            while name in taken:
                counter += 1
                name = f"{stem}_{counter}{ext}"
            seen[filename] = counter
        taken.add(name)
        result.append(name)

    return result


def build_zip(entries: Sequence[tuple[bytes, str]]) -> bytes:
    """
    Собрать ZIP из пар (данные, имя файла) в заданном порядке.

    Args:
        entries: Упорядоченный список (bytes, filename)

    Returns:
        bytes: ZIP архив

    Raises:
        ArchiveWriteError: Если архив не удалось записать
    """
    names = unique_filenames(name for _, name in entries)
    buffer = BytesIO()

    try:
        with zipfile.ZipFile(
            buffer,
            "w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=ZIP_COMPRESS_LEVEL,
        ) as zf:
            for (data, _), name in zip(entries, names, strict=True):
                zf.writestr(name, data)
    except (OSError, ValueError, zipfile.BadZipFile) as e:
        logger.error(f"[ZIP] Ошибка записи архива: {e}")
        raise ArchiveWriteError(f"Не удалось записать ZIP архив: {e}") from e

    archive = buffer.getvalue()
    logger.info(f"[ZIP] Архив готов: {len(entries)} файлов, {len(archive)} байт")
    return archive


def zip_images(images: Sequence[RenderedImage]) -> bytes:
    """ZIP из отрендеренных изображений (имя файла берётся из изображения)."""
    return build_zip([(image.data, image.filename) for image in images])


def estimate_zip_size(images: Sequence[RenderedImage]) -> int:
    """Примерный размер ZIP в байтах: 75% суммы размеров PNG."""
    total = sum(len(image.data) for image in images)
    return round(total * ZIP_SIZE_RATIO)
