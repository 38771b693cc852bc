"""
Health check эндпоинт.

Используется клиентом для проверки доступности сервера перед
удалённой генерацией.
"""

from datetime import UTC, datetime

from fastapi import APIRouter

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """
    Базовая проверка состояния сервиса.

    Returns:
        Статус "ok" и время сервера (ISO 8601)
    """
    return {"status": "ok", "timestamp": datetime.now(UTC).isoformat()}
