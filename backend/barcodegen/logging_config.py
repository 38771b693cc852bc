"""
Логирование сервиса генерации.

Строки логов начинаются с тега этапа ([RENDER], [LAYOUT], [ZIP], [ROUTER]...).
В JSON тег выносится в отдельное поле, чтобы фильтровать этапы в агрегаторе.
При debug=True вывод человекочитаемый.
"""

import json
import logging
import re
import sys
from datetime import UTC, datetime
from typing import Any

from barcodegen.config import Settings, get_settings

_STANDARD_ATTRS = set(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {"message", "asctime"}

_TAG_PATTERN = re.compile(r"^\[([A-Z_]+)\]\s*")

_QUIET_LOGGERS = ("httpx", "httpcore", "PIL", "uvicorn.access")


class JSONFormatter(logging.Formatter):
    """
    Одна JSON строка на запись.

    {"timestamp": "...", "level": "INFO", "logger": "barcodegen.services.archive",
     "tag": "ZIP", "message": "Архив готов", "extra": {...}}
    """

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }

        match = _TAG_PATTERN.match(message)
        if match:
            log_data["tag"] = match.group(1)
            message = message[match.end() :]
        log_data["message"] = message

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = {k: v for k, v in record.__dict__.items() if k not in _STANDARD_ATTRS}
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, ensure_ascii=False, default=str)


class HumanFormatter(logging.Formatter):
    def __init__(self):
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%H:%M:%S",
        )


def setup_logging(settings: Settings | None = None) -> None:
    """Вывод в stdout: DEBUG и человекочитаемый формат при debug, иначе JSON и log_level."""
    settings = settings or get_settings()

    log_level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(HumanFormatter() if settings.debug else JSONFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("barcodegen").setLevel(log_level)
