"""
HTTP клиент для удалённой генерации штрихкодов.

Ответ читается потоком: при известном Content-Length прогресс считается
в процентах, иначе передаётся None (неопределённый прогресс).
Повторных попыток нет, ошибки передаются вызывающему.
"""

import logging
from collections.abc import Callable
from typing import Any

import httpx

from barcodegen.config import Settings, get_settings
from barcodegen.models.schemas import BarcodeConfig, PrintLayoutOverrides
from barcodegen.services.errors import GenerationError, RemoteUnavailableError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float | None], None]


class RemoteGenerationError(GenerationError):
    """Сервер ответил ошибкой."""

    kind = "remote"

    def __init__(self, status_code: int, message: str, payload: dict[str, Any] | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {}

    def details(self) -> dict[str, Any]:
        return {"status_code": self.status_code, "response": self.payload}


class BarcodeAPIClient:
    """
    Клиент API генерации.

    Использует httpx для асинхронных запросов.
    """

    def __init__(
        self,
        base_url: str | None = None,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = settings or get_settings()
        self.base_url = (base_url or settings.remote_api_url).rstrip("/")
        self.health_timeout = settings.remote_health_timeout
        self.timeout = settings.remote_request_timeout
        self._transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=self._transport)

    async def check_health(self) -> bool:
        """
        Проверка доступности сервера (GET /health).

        Returns:
            True если сервер ответил 200 и status == "ok"
        """
        try:
            async with self._client(self.health_timeout) as client:
                response = await client.get("/health")
        except httpx.HTTPError as e:
            logger.info(f"[API] Сервер недоступен: {type(e).__name__}")
            return False

        if response.status_code != 200:
            return False
        try:
            return response.json().get("status") == "ok"
        except ValueError:
            return False

    async def generate_zip(
        self,
        data: list[str],
        config: BarcodeConfig,
        progress: ProgressCallback | None = None,
    ) -> bytes:
        """
        Сгенерировать ZIP на сервере.

        Raises:
            RemoteUnavailableError: Сервер не ответил
            RemoteGenerationError: Сервер ответил ошибкой
        """
        payload = {"data": data, "config": self._dump_config(config)}
        return await self._download("/api/barcode/generate", payload, progress)

    async def generate_print_ready_png(
        self,
        data: list[str],
        config: BarcodeConfig,
        layout_config: PrintLayoutOverrides | None = None,
        progress: ProgressCallback | None = None,
    ) -> bytes:
        """Печатный лист PNG (минимум 20 значений)."""
        payload = self._print_payload(data, config, layout_config)
        return await self._download("/api/barcode/generate-pdf", payload, progress)

    async def generate_print_ready_pdf(
        self,
        data: list[str],
        config: BarcodeConfig,
        layout_config: PrintLayoutOverrides | None = None,
        progress: ProgressCallback | None = None,
    ) -> bytes:
        """Печатный лист PDF (минимум 20 значений)."""
        payload = self._print_payload(data, config, layout_config)
        return await self._download("/api/barcode/generate-pdf-document", payload, progress)

    def _dump_config(self, config: BarcodeConfig) -> dict[str, Any]:
        return config.model_dump(mode="json", by_alias=True, exclude_none=True)

    def _print_payload(
        self,
        data: list[str],
        config: BarcodeConfig,
        layout_config: PrintLayoutOverrides | None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"data": data, "config": self._dump_config(config)}
        if layout_config is not None:
            payload["layoutConfig"] = layout_config.model_dump(
                mode="json", by_alias=True, exclude_none=True
            )
        return payload

    async def _download(
        self,
        path: str,
        payload: dict[str, Any],
        progress: ProgressCallback | None,
    ) -> bytes:
        """
        POST запрос с потоковым чтением ответа.

        Args:
            path: Путь эндпоинта
            payload: JSON тело запроса
            progress: Колбэк прогресса (0..100 или None)

        Returns:
            Тело ответа целиком
        """
        logger.info(f"[API] POST {path}: {len(payload['data'])} значений")
        try:
            async with self._client(self.timeout) as client:
                async with client.stream("POST", path, json=payload) as response:
                    if response.status_code != 200:
                        await response.aread()
                        raise self._error_from(response)
                    return await self._read_body(response, progress)
        except httpx.TransportError as e:
            logger.warning(f"[API] Ошибка соединения: {type(e).__name__}")
            raise RemoteUnavailableError(f"Сервер генерации недоступен: {e}") from e

    async def _read_body(self, response: httpx.Response, progress: ProgressCallback | None) -> bytes:
        total_header = response.headers.get("Content-Length")
        total = int(total_header) if total_header and total_header.isdigit() else None

        chunks: list[bytes] = []
        received = 0
        async for chunk in response.aiter_bytes():
            chunks.append(chunk)
            received += len(chunk)
            if progress is not None:
                if total:
                    progress(min(100.0, received / total * 100))
                else:
                    progress(None)

        body = b"".join(chunks)
        logger.info(f"[API] Получено {len(body)} байт")
        return body

    def _error_from(self, response: httpx.Response) -> RemoteGenerationError:
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        message = payload.get("error") or f"HTTP {response.status_code}"
        logger.warning(f"[API] Сервер ответил {response.status_code}: {message}")
        return RemoteGenerationError(response.status_code, message, payload)
