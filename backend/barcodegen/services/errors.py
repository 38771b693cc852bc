"""
Ошибки движка генерации.

У каждой ошибки есть тег вида (kind) и понятное сообщение.
"""

from typing import Any


class GenerationError(Exception):
    """Базовая ошибка генерации штрихкодов."""

    kind: str = "generation"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def details(self) -> dict[str, Any]:
        """Дополнительные поля для ответа API."""
        return {}

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"kind": self.kind, "message": self.message}
        result.update(self.details())
        return result


class ValidationError(GenerationError):
    """Входные данные нарушают ограничение (до начала рендера)."""

    kind = "validation"

    def __init__(self, message: str, field_path: str):
        super().__init__(message)
        self.field_path = field_path

    def details(self) -> dict[str, Any]:
        return {"path": self.field_path}


class ItemCountError(ValidationError):
    """Слишком мало значений для печатного листа или слишком много для пакета."""

    def __init__(self, count: int, minimum: int | None = None, maximum: int | None = None):
        if minimum is not None:
            message = f"Для печатного листа нужно минимум {minimum} значений, получено {count}"
        else:
            message = f"Слишком много значений: {count}, максимум {maximum}"
        super().__init__(message, field_path="data")
        self.count = count
        self.minimum = minimum
        self.maximum = maximum

    @property
    def too_few(self) -> bool:
        return self.minimum is not None

    def details(self) -> dict[str, Any]:
        result = super().details()
        result["count"] = self.count
        if self.minimum is not None:
            result["min_items"] = self.minimum
        if self.maximum is not None:
            result["max_items"] = self.maximum
        return result


class SymbologyError(GenerationError):
    """Значение нельзя закодировать выбранным типом штрихкода."""

    kind = "symbology"

    def __init__(
        self,
        value: str,
        barcode_type: str,
        reason: str,
        index: int | None = None,
    ):
        super().__init__(f"Не удалось сгенерировать {barcode_type} для «{value}»: {reason}")
        self.value = value
        self.barcode_type = barcode_type
        self.reason = reason
        self.index = index

    def details(self) -> dict[str, Any]:
        result: dict[str, Any] = {"value": self.value, "type": self.barcode_type}
        if self.index is not None:
            result["index"] = self.index
        return result


class LayoutInfeasibleError(GenerationError):
    """Штрихкод шире печатной области листа."""

    kind = "layout_infeasible"

    def __init__(self, cell_width_mm: float, available_width_mm: float):
        super().__init__(
            f"Штрихкод слишком широкий для листа: ячейка {cell_width_mm:.2f} мм, "
            f"доступно {available_width_mm:.2f} мм с учётом полей"
        )
        self.cell_width_mm = cell_width_mm
        self.available_width_mm = available_width_mm

    def details(self) -> dict[str, Any]:
        return {
            "cell_width_mm": round(self.cell_width_mm, 3),
            "available_width_mm": round(self.available_width_mm, 3),
        }


class RemoteUnavailableError(GenerationError):
    """Сервер генерации недоступен. Никогда не фатальна для роутера."""

    kind = "remote_unavailable"


class ArchiveWriteError(GenerationError):
    """Ошибка сериализации ZIP/PNG/PDF. Частичный результат не отдаётся."""

    kind = "io"


class GenerationCancelledError(GenerationError):
    """Генерация прервана внешним сигналом."""

    kind = "cancelled"

    def __init__(self, completed: int, total: int):
        super().__init__(f"Генерация отменена после {completed} из {total} значений")
        self.completed = completed
        self.total = total

    def details(self) -> dict[str, Any]:
        return {"completed": self.completed, "total": self.total}
