"""
Выбор места генерации: локально или на сервере.

Маленькие пакеты всегда рендерятся локально (без сетевого запроса).
Для остальных проверяется доступность сервера; если он не отвечает,
генерация всё равно выполняется локально.
"""

import logging
import math
from collections.abc import Awaitable, Callable

from barcodegen.config import Settings, get_settings
from barcodegen.models.barcode_types import BarcodeType, GenerationMode, RoutingDecision
from barcodegen.models.schemas import BarcodeConfig
from barcodegen.services.units import to_centimeters

logger = logging.getLogger(__name__)

HealthCheck = Callable[[], Awaitable[bool]]

# Множители сложности
QR_FACTOR = 1.5
DUAL_FACTOR = 2.0
LARGE_DIMENSION_FACTOR = 1.2
STRETCH_FACTOR = 1.1
LARGE_DIMENSION_CM = 10.0

# Оценка времени (мс)
PER_ITEM_MS = {GenerationMode.LOCAL: 50, GenerationMode.REMOTE: 30}
OVERHEAD_MS = {GenerationMode.LOCAL: 500, GenerationMode.REMOTE: 1000}


def calculate_complexity_factor(config: BarcodeConfig) -> float:
    """
    Коэффициент сложности конфигурации.

    QR ×1.5, dual-режим ×2, средняя сторона больше 10 см ×1.2,
    растяжение ×1.1. Не меньше 1.
    """
    factor = 1.0

    if config.barcode_type is BarcodeType.QR:
        factor *= QR_FACTOR

    if config.dual_mode:
        factor *= DUAL_FACTOR

    dims = config.dimensions
    average_cm = (to_centimeters(dims.width, dims.unit) + to_centimeters(dims.height, dims.unit)) / 2
    if average_cm > LARGE_DIMENSION_CM:
        factor *= LARGE_DIMENSION_FACTOR

    if config.options.stretch:
        factor *= STRETCH_FACTOR

    return max(1.0, factor)


def adjusted_threshold(config: BarcodeConfig, base_threshold: int) -> int:
    """Порог локальной генерации с учётом сложности."""
    return math.floor(base_threshold / calculate_complexity_factor(config))


async def _is_remote_available(health_check: HealthCheck) -> bool:
    """Ошибка проверки означает «сервер недоступен», а не падение."""
    try:
        return bool(await health_check())
    except Exception as e:
        logger.warning(f"[ROUTER] Проверка сервера не удалась: {type(e).__name__}: {e}")
        return False


async def determine_generation_mode(
    item_count: int,
    config: BarcodeConfig,
    health_check: HealthCheck | None = None,
    settings: Settings | None = None,
) -> RoutingDecision:
    """
    Решить, где выполнять генерацию.

    Args:
        item_count: Количество значений
        config: Конфигурация штрихкода
        health_check: Проверка доступности сервера (по умолчанию GET /health)
        settings: Настройки (пороги, URL сервера)

    Returns:
        RoutingDecision с режимом, причиной и порогом
    """
    settings = settings or get_settings()
    factor = calculate_complexity_factor(config)
    threshold = adjusted_threshold(config, settings.local_threshold)

    def decide(mode: GenerationMode, reason: str) -> RoutingDecision:
        logger.info(
            f"[ROUTER] {item_count} значений, сложность {factor:.2f}, порог {threshold}: "
            f"{mode.value} ({reason})"
        )
        return RoutingDecision(mode=mode, reason=reason, threshold=threshold, complexity_factor=factor)

    if item_count <= threshold:
        return decide(
            GenerationMode.LOCAL,
            f"Небольшой пакет ({item_count} шт.), локальная генерация быстрее",
        )

    if health_check is None:
        from barcodegen.client.api_client import BarcodeAPIClient

        health_check = BarcodeAPIClient(settings.remote_api_url, settings=settings).check_health

    available = await _is_remote_available(health_check)

    if item_count > settings.high_volume_threshold:
        if available:
            return decide(
                GenerationMode.REMOTE,
                f"Большой пакет ({item_count} шт.), на сервере эффективнее",
            )
        return decide(
            GenerationMode.LOCAL,
            "Сервер недоступен, генерация переключена на локальную",
        )

    if available:
        return decide(
            GenerationMode.REMOTE,
            f"Средний пакет ({item_count} шт.), сервер быстрее",
        )
    return decide(GenerationMode.LOCAL, "Сервер недоступен, используется локальная генерация")


def estimate_generation_time(item_count: int, mode: GenerationMode, config: BarcodeConfig) -> int:
    """
    Оценка времени генерации в миллисекундах (только для отображения).
    """
    mode = GenerationMode(mode)
    factor = calculate_complexity_factor(config)
    total = item_count * PER_ITEM_MS[mode] * factor + OVERHEAD_MS[mode]
    return round(total)


def _genitive(n: int, singular: str, plural: str) -> str:
    """Родительный падеж после «около»: около 1 секунды, около 5 секунд."""
    if n % 10 == 1 and n % 100 != 11:
        return singular
    return plural


def format_time_estimate(milliseconds: int) -> str:
    """Текст оценки времени: «Меньше секунды», «Около 5 секунд», «Около 2 минут»."""
    if milliseconds < 1000:
        return "Меньше секунды"

    seconds = math.ceil(milliseconds / 1000)
    if seconds < 60:
        return f"Около {seconds} {_genitive(seconds, 'секунды', 'секунд')}"

    minutes = math.ceil(seconds / 60)
    return f"Около {minutes} {_genitive(minutes, 'минуты', 'минут')}"
