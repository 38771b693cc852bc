"""
Конфигурация сервиса генерации штрихкодов.

Все настройки в одном месте (SSOT — Single Source of Truth).
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RenderSettings:
    """
    Константы рендеринга штрихкодов.

    Значения совпадают с превью в браузере (96 DPI = CSS пиксель).
    """

    # Стандартное разрешение экрана/превью
    STANDARD_DPI: int = 96

    # Мелкие этикетки рендерим с 3x разрешением, потом уменьшаем
    SMALL_LABEL_DPI: int = 288

    # Порог "мелкой" этикетки по высоте (строго меньше)
    SMALL_LABEL_HEIGHT_CM: float = 1.0

    # Подстройка шрифта для мелких этикеток
    SMALL_FONT_SCALE: float = 0.7
    SMALL_FONT_MIN_PX: float = 6.0

    # Отступ текста от штрихов (в пикселях при 96 DPI)
    STANDARD_TEXT_MARGIN_PX: int = 16
    SMALL_TEXT_MARGIN_PX: int = 6

    # Геометрия символа
    SYMBOL_QUIET_ZONE_PX: int = 10  # Поля вокруг символа
    NARROW_MODULE_PX: int = 2  # Ширина узкого модуля без растяжения
    STRETCH_MODULE_DIVISOR: int = 100  # Ширина модуля при растяжении = ширина / 100
    BAR_HEIGHT_RATIO: float = 0.9  # Символ с подписью занимает 90% высоты
    MIN_SYMBOL_SHARE: float = 0.5  # Штрихи (или QR) не меньше половины высоты
    QR_BORDER_MODULES: int = 2

    # Цвета (чёрный на белом)
    COLOR_BLACK: str = "#000000"
    COLOR_WHITE: str = "#FFFFFF"

    # === Ограничения входных данных ===
    DIMENSION_MIN: float = 0.1
    DIMENSION_MAX: float = 50.0
    FONT_SIZE_MIN: int = 8
    FONT_SIZE_MAX: int = 48
    IGNORE_DIGITS_MAX: int = 20
    MAX_ITEMS_LIMIT: int = 1000

    # Шрифты: название семейства → файл TTF
    FONT_FILES: dict[str, str] = {
        "Roboto": "Roboto-Regular.ttf",
        "Open Sans": "OpenSans-Regular.ttf",
        "Lato": "Lato-Regular.ttf",
        "Montserrat": "Montserrat-Regular.ttf",
        "Courier Prime": "CourierPrime-Regular.ttf",
    }


class Settings(BaseSettings):
    """
    Настройки приложения из переменных окружения.

    Загружаются из .env файла или переменных окружения.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Приложение ===
    app_name: str = "Barcodegen API"
    app_version: str = "0.1.0"
    debug: bool = False

    # === CORS ===
    allowed_origins: list[str] = Field(default=["http://localhost:3000"])

    # === Шрифты ===
    fonts_dir: str = Field(default="fonts")

    # === Лимиты ===
    max_batch_size: int = 1000  # Максимум значений за запрос
    print_ready_min_items: int = 20  # Печатный лист имеет смысл от 20 штук
    render_workers: int = 1  # 1 = последовательный рендер

    # === Удалённая генерация ===
    remote_api_url: str = Field(default="http://localhost:4000")
    remote_health_timeout: float = 5.0  # секунды
    remote_request_timeout: float = 120.0

    # === Роутинг local/remote ===
    local_threshold: int = 20
    high_volume_threshold: int = 100

    # === Логирование ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


@lru_cache
def get_settings() -> Settings:
    """
    Получить настройки приложения (singleton).

    Использует кэширование для избежания повторного чтения .env
    """
    return Settings()


# Экспорт констант рендеринга для удобства
RENDER = RenderSettings()
