"""
Тесты HTTP клиента удалённой генерации.

Сервер подменяется httpx.MockTransport.
"""

import json

import httpx
import pytest

from barcodegen.client.api_client import BarcodeAPIClient, RemoteGenerationError
from barcodegen.config import Settings
from barcodegen.models.schemas import BarcodeConfig, PrintLayoutOverrides
from barcodegen.services.errors import RemoteUnavailableError

CONFIG = BarcodeConfig.model_validate(
    {
        "type": "code128",
        "dimensions": {"width": 5, "height": 3, "unit": "cm"},
        "font": {"family": "Roboto", "size": 12},
    }
)


def _client(handler) -> BarcodeAPIClient:
    settings = Settings(remote_api_url="http://remote.test/")
    return BarcodeAPIClient(settings=settings, transport=httpx.MockTransport(handler))


class TestCheckHealth:
    @pytest.mark.asyncio
    async def test_ok(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/health"
            return httpx.Response(200, json={"status": "ok", "timestamp": "2026-01-01T00:00:00+00:00"})

        assert await _client(handler).check_health() is True

    @pytest.mark.asyncio
    async def test_server_error(self):
        assert await _client(lambda request: httpx.Response(503)).check_health() is False

    @pytest.mark.asyncio
    async def test_not_json(self):
        assert await _client(lambda request: httpx.Response(200, text="<html>")).check_health() is False

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        assert await _client(handler).check_health() is False


class TestDownload:
    @pytest.mark.asyncio
    async def test_zip_payload_and_progress(self):
        """Content-Length известен: прогресс в процентах до 100"""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["path"] = request.url.path
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, content=b"PK" + b"\x00" * 98)

        progress: list[float | None] = []
        content = await _client(handler).generate_zip(["A", "B"], CONFIG, progress=progress.append)

        assert len(content) == 100
        assert captured["path"] == "/api/barcode/generate"
        assert captured["body"]["data"] == ["A", "B"]
        assert captured["body"]["config"]["type"] == "code128"
        assert captured["body"]["config"]["dimensions"] == {"width": 5.0, "height": 3.0, "unit": "cm"}
        assert "dualDimensions" not in captured["body"]["config"]
        assert progress[-1] == pytest.approx(100.0)

    @pytest.mark.asyncio
    async def test_unknown_length_progress(self):
        """Без Content-Length прогресс неопределённый (None)"""

        async def body():
            yield b"%PDF-"
            yield b"1.4"

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=body())

        progress: list[float | None] = []
        content = await _client(handler).generate_print_ready_pdf(
            ["A"] * 20, CONFIG, progress=progress.append
        )

        assert content == b"%PDF-1.4"
        assert progress
        assert all(value is None for value in progress)

    @pytest.mark.asyncio
    async def test_print_payload_layout(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["path"] = request.url.path
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, content=b"\x89PNG")

        layout = PrintLayoutOverrides.model_validate({"marginsMm": {"top": 3}, "continuousMode": True})
        await _client(handler).generate_print_ready_png(["A"] * 20, CONFIG, layout)

        assert captured["path"] == "/api/barcode/generate-pdf"
        assert captured["body"]["layoutConfig"] == {"marginsMm": {"top": 3.0}, "continuousMode": True}

    @pytest.mark.asyncio
    async def test_server_error_response(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                422,
                json={"success": False, "error": "Значение «abc» нельзя закодировать", "kind": "symbology"},
            )

        with pytest.raises(RemoteGenerationError) as exc_info:
            await _client(handler).generate_zip(["abc"], CONFIG)

        assert exc_info.value.status_code == 422
        assert exc_info.value.payload["kind"] == "symbology"
        assert "abc" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RemoteUnavailableError) as exc_info:
            await _client(handler).generate_zip(["A"], CONFIG)

        assert exc_info.value.kind == "remote_unavailable"
