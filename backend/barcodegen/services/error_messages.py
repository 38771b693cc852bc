"""
Дружелюбные сообщения об ошибках.

Вместо технических сообщений пользователь видит понятные подсказки.
"""

from barcodegen.services.errors import GenerationError, ItemCountError, SymbologyError


class FriendlyError:
    """Человекопонятная ошибка с подсказкой."""

    def __init__(self, message: str, hint: str | None = None, details: str | None = None):
        self.message = message
        self.hint = hint
        self.details = details  # Техническая инфа для поддержки

    def to_dict(self) -> dict:
        result = {"message": self.message}
        if self.hint:
            result["hint"] = self.hint
        if self.details:
            result["details"] = self.details
        return result


# === Ошибки входных данных ===

INVALID_REQUEST = FriendlyError(
    message="Проверьте параметры штрихкода",
    hint="Ширина и высота от 0.1 до 50, шрифт от 8 до 48, игнорируемых символов не больше 20",
)

TOO_FEW_ITEMS = FriendlyError(
    message="Для печатного листа нужно минимум {min_items} значений",
    hint="Для небольшого количества скачайте ZIP архив",
)

TOO_MANY_ITEMS = FriendlyError(
    message="Слишком много значений, максимум {max_items}",
    hint="Разбейте список на несколько частей и сгенерируйте их по очереди",
)


# === Ошибки кодирования ===

INVALID_VALUE = FriendlyError(
    message="Значение «{value}» нельзя закодировать как {barcode_type}",
    hint="EAN-13, EAN-8 и UPC-A принимают только цифры нужной длины. Для произвольного текста выберите Code 128",
)


# === Ошибки раскладки ===

LAYOUT_TOO_WIDE = FriendlyError(
    message="Штрихкод не помещается на лист",
    hint="Уменьшите ширину штрихкода или поля листа, либо включите непрерывный режим",
)


# === Удалённая генерация ===

REMOTE_UNAVAILABLE = FriendlyError(
    message="Сервер генерации недоступен",
    hint="Генерация выполнится на этом устройстве, это может занять больше времени",
)


# === Серверные ошибки ===

ARCHIVE_FAILED = FriendlyError(
    message="Не удалось сохранить файл",
    hint="Попробуйте ещё раз. Если ошибка повторяется, уменьшите количество штрихкодов",
)

CANCELLED = FriendlyError(
    message="Генерация отменена",
)

INTERNAL_ERROR = FriendlyError(
    message="Что-то пошло не так",
    hint="Попробуйте ещё раз. Если ошибка повторяется, обратитесь в поддержку",
)


def get_friendly_error(error_key: str, **kwargs) -> FriendlyError:
    """
    Получить дружелюбную ошибку по ключу.

    Args:
        error_key: Ключ ошибки (например, "invalid_value")
        **kwargs: Параметры для форматирования (например, value="ABC123")

    Returns:
        FriendlyError с заполненными параметрами
    """
    errors = {
        "validation": INVALID_REQUEST,
        "too_few_items": TOO_FEW_ITEMS,
        "too_many_items": TOO_MANY_ITEMS,
        "symbology": INVALID_VALUE,
        "layout_infeasible": LAYOUT_TOO_WIDE,
        "remote_unavailable": REMOTE_UNAVAILABLE,
        "io": ARCHIVE_FAILED,
        "cancelled": CANCELLED,
        "internal_error": INTERNAL_ERROR,
    }

    error = errors.get(error_key, INTERNAL_ERROR)

    if kwargs:
        message = error.message.format(**kwargs) if "{" in error.message else error.message
        hint = error.hint.format(**kwargs) if error.hint and "{" in error.hint else error.hint
        return FriendlyError(message=message, hint=hint, details=error.details)

    return error


def friendly_for(exc: GenerationError) -> FriendlyError:
    """Дружелюбная ошибка для исключения генерации."""
    key = exc.kind
    params: dict[str, str | int] = {}
    if isinstance(exc, ItemCountError):
        if exc.too_few:
            key, params = "too_few_items", {"min_items": exc.minimum}
        else:
            key, params = "too_many_items", {"max_items": exc.maximum}
    elif isinstance(exc, SymbologyError):
        params = {"value": exc.value, "barcode_type": exc.barcode_type}
    friendly = get_friendly_error(key, **params)
    return FriendlyError(message=friendly.message, hint=friendly.hint, details=exc.message)
