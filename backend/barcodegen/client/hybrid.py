"""
Гибридная генерация: роутер решает, рендерить локально или на сервере.

Локальный ZIP терпим к ошибкам (ошибочные значения пропускаются и
возвращаются в failures), печатный лист всегда строгий.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass, field

from barcodegen.client.api_client import BarcodeAPIClient, ProgressCallback
from barcodegen.config import Settings, get_settings
from barcodegen.models.barcode_types import GenerationMode, RoutingDecision
from barcodegen.models.schemas import BarcodeConfig, PrintLayoutOverrides
from barcodegen.services.archive import zip_images
from barcodegen.services.batch_renderer import BatchRenderer, ItemFailure
from barcodegen.services.print_sheet import PrintSheetGenerator, SheetFormat
from barcodegen.services.routing import (
    adjusted_threshold,
    calculate_complexity_factor,
    determine_generation_mode,
    estimate_generation_time,
    format_time_estimate,
)

logger = logging.getLogger(__name__)


@dataclass
class HybridResult:
    """Результат гибридной генерации."""

    content: bytes
    decision: RoutingDecision
    estimate_ms: int
    failures: list[ItemFailure] = field(default_factory=list)

    @property
    def estimate_text(self) -> str:
        return format_time_estimate(self.estimate_ms)


class HybridGenerator:
    """Генерация с выбором места выполнения."""

    def __init__(
        self,
        client: BarcodeAPIClient | None = None,
        batch_renderer: BatchRenderer | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.client = client or BarcodeAPIClient(settings=self.settings)
        self.batch_renderer = batch_renderer or BatchRenderer(max_workers=self.settings.render_workers)

    async def decide(self, item_count: int, config: BarcodeConfig) -> RoutingDecision:
        return await determine_generation_mode(
            item_count,
            config,
            health_check=self.client.check_health,
            settings=self.settings,
        )

    async def generate_zip(
        self,
        data: list[str],
        config: BarcodeConfig,
        progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> HybridResult:
        """
        Сгенерировать ZIP архив.

        Args:
            data: Значения штрихкодов
            config: Конфигурация штрихкода
            progress: Колбэк прогресса (0..100 или None)
            cancel_event: Сигнал отмены для локального рендера

        Returns:
            HybridResult с архивом, решением роутера и ошибками значений
        """
        decision = await self.decide(len(data), config)
        estimate = estimate_generation_time(len(data), decision.mode, config)
        logger.info(f"[HYBRID] ZIP {decision.mode.value}, оценка {format_time_estimate(estimate)}")

        if decision.mode is GenerationMode.REMOTE:
            content = await self.client.generate_zip(data, config, progress=progress)
            return HybridResult(content=content, decision=decision, estimate_ms=estimate)

        def on_progress(done: int, total: int) -> None:
            if progress is not None:
                progress(done / total * 100)

        def render_local() -> tuple[bytes, list[ItemFailure]]:
            result = self.batch_renderer.render(
                data,
                config.primary_style(),
                config.render_options(),
                secondary_style=config.secondary_style(),
                strict=False,
                cancel_event=cancel_event,
                on_progress=on_progress,
            )
            return zip_images(result.images), result.failures

        content, failures = await asyncio.to_thread(render_local)
        return HybridResult(content=content, decision=decision, estimate_ms=estimate, failures=failures)

    async def generate_print_ready(
        self,
        data: list[str],
        config: BarcodeConfig,
        layout_config: PrintLayoutOverrides | None = None,
        sheet_format: SheetFormat = "png",
        progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> HybridResult:
        """
        Сгенерировать печатный лист PNG или PDF.

        Лист меньше print_ready_min_items сервер отклоняет, поэтому такой лист
        собирается локально без проверки сервера.
        """
        min_items = self.settings.print_ready_min_items
        if len(data) < min_items:
            decision = RoutingDecision(
                mode=GenerationMode.LOCAL,
                reason=f"Меньше {min_items} значений, лист собирается локально",
                threshold=adjusted_threshold(config, self.settings.local_threshold),
                complexity_factor=calculate_complexity_factor(config),
            )
        else:
            decision = await self.decide(len(data), config)
        estimate = estimate_generation_time(len(data), decision.mode, config)
        logger.info(
            f"[HYBRID] Лист {sheet_format.upper()} {decision.mode.value}, "
            f"оценка {format_time_estimate(estimate)}"
        )

        if decision.mode is GenerationMode.REMOTE:
            if sheet_format == "pdf":
                content = await self.client.generate_print_ready_pdf(
                    data, config, layout_config, progress=progress
                )
            else:
                content = await self.client.generate_print_ready_png(
                    data, config, layout_config, progress=progress
                )
            return HybridResult(content=content, decision=decision, estimate_ms=estimate)

        generator = PrintSheetGenerator(self.batch_renderer)
        sheet = await asyncio.to_thread(
            generator.generate,
            data,
            config,
            layout_config,
            sheet_format,
            cancel_event,
        )
        if progress is not None:
            progress(100.0)
        return HybridResult(content=sheet.content, decision=decision, estimate_ms=estimate)
