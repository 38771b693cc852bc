"""
Конвертация физических размеров в пиксели и пункты.

Чистые функции без состояния. Пиксели округляются до целого,
миллиметры и пункты сохраняют дробную часть.
"""

MM_PER_INCH = 25.4
POINTS_PER_INCH = 72.0

# Сколько мм в одной единице
MM_PER_UNIT: dict[str, float] = {
    "mm": 1.0,
    "cm": 10.0,
    "inches": MM_PER_INCH,
}


def _mm_per_unit(unit: str) -> float:
    try:
        return MM_PER_UNIT[str(getattr(unit, "value", unit))]
    except KeyError:
        raise ValueError(f"Неизвестная единица измерения: {unit}") from None


def to_millimeters(value: float, unit: str) -> float:
    """Длина в мм (без округления)."""
    return value * _mm_per_unit(unit)


def to_centimeters(value: float, unit: str) -> float:
    """Длина в см (без округления)."""
    return to_millimeters(value, unit) / 10.0


def to_inches(value: float, unit: str) -> float:
    return to_millimeters(value, unit) / MM_PER_INCH


def to_pixels(value: float, unit: str, dpi: int) -> int:
    """
    Длина в пикселях при заданном DPI.

    Args:
        value: Длина
        unit: "cm", "inches" или "mm"
        dpi: Разрешение

    Returns:
        Количество пикселей, округлённое до ближайшего целого
    """
    return round(to_inches(value, unit) * dpi)


def mm_to_pixels(mm: float, dpi: int) -> int:
    """Миллиметры → пиксели."""
    return to_pixels(mm, "mm", dpi)


def pixels_to_mm(px: float, dpi: int) -> float:
    """Пиксели → миллиметры (без округления)."""
    return px / dpi * MM_PER_INCH


def pixels_to_points(px: float, dpi: int) -> float:
    """Пиксели при dpi → пункты PDF (72 на дюйм)."""
    return px / dpi * POINTS_PER_INCH


def mm_to_points(mm: float) -> float:
    """Миллиметры → пункты PDF."""
    return mm / MM_PER_INCH * POINTS_PER_INCH
