"""
Пакетный рендер штрихкодов.

Порядок результата совпадает с порядком входных значений; в dual-режиме
дополнительный вариант идёт сразу за основным.
"""

import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from barcodegen.models.barcode_types import RenderedImage, RenderOptions, RenderStyle, Variant
from barcodegen.services.barcode_renderer import BarcodeRenderer
from barcodegen.services.errors import GenerationCancelledError, SymbologyError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass
class ItemFailure:
    """Значение, которое не удалось отрендерить."""

    index: int
    value: str
    variant: Variant
    error: SymbologyError


@dataclass
class BatchResult:
    """Результат пакетного рендера."""

    images: list[RenderedImage] = field(default_factory=list)
    failures: list[ItemFailure] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failures


@dataclass(frozen=True)
class _RenderJob:
    slot: int
    index: int
    value: str
    style: RenderStyle
    variant: Variant


@dataclass
class _SlotResult:
    job: _RenderJob
    image: RenderedImage | None = None
    error: SymbologyError | None = None


class BatchRenderer:
    """
    Рендер списка значений.

    strict=False (ZIP): ошибка значения записывается в failures, рендер идёт дальше.
    strict=True (печатный лист): первая ошибка прерывает весь пакет.
    """

    def __init__(self, renderer: BarcodeRenderer | None = None, max_workers: int = 1):
        self.renderer = renderer or BarcodeRenderer()
        self.max_workers = max(1, max_workers)

    def render(
        self,
        values: list[str],
        primary_style: RenderStyle,
        options: RenderOptions,
        secondary_style: RenderStyle | None = None,
        strict: bool = False,
        cancel_event: threading.Event | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> BatchResult:
        """
        Отрендерить все значения.

        Args:
            values: Значения в порядке вывода
            primary_style: Основной вариант
            options: Общие параметры рендера
            secondary_style: Дополнительный вариант (dual-режим) или None
            strict: Прерывать пакет на первой ошибке
            cancel_event: Внешний сигнал отмены (проверяется между значениями)
            on_progress: Колбэк (готово, всего) после каждого значения

        Returns:
            BatchResult с изображениями и ошибками

        Raises:
            SymbologyError: В strict режиме
            GenerationCancelledError: Если сработал cancel_event
        """
        jobs = self._build_jobs(values, primary_style, secondary_style)
        logger.info(
            f"[RENDER] Пакет: {len(values)} значений, {len(jobs)} изображений "
            f"({options.barcode_type.value}, workers={self.max_workers})"
        )

        if self.max_workers == 1:
            slots = self._render_sequential(jobs, options, len(values), strict, cancel_event, on_progress)
        else:
            slots = self._render_parallel(jobs, options, len(values), strict, cancel_event, on_progress)

        result = BatchResult()
        for slot in slots:
            if slot.image is not None:
                result.images.append(slot.image)
            elif slot.error is not None:
                result.failures.append(
                    ItemFailure(
                        index=slot.job.index,
                        value=slot.job.value,
                        variant=slot.job.variant,
                        error=slot.error,
                    )
                )

        if result.failures:
            logger.warning(f"[RENDER] Не удалось отрендерить {len(result.failures)} изображений")
        logger.info(f"[RENDER] Готово: {len(result.images)} изображений")
        return result

    def _build_jobs(
        self,
        values: list[str],
        primary_style: RenderStyle,
        secondary_style: RenderStyle | None,
    ) -> list[_RenderJob]:
        """Задания в порядке вывода: основной, затем дополнительный."""
        jobs: list[_RenderJob] = []
        for index, value in enumerate(values):
            jobs.append(_RenderJob(len(jobs), index, value, primary_style, Variant.PRIMARY))
            if secondary_style is not None:
                jobs.append(_RenderJob(len(jobs), index, value, secondary_style, Variant.SECONDARY))
        return jobs

    def _render_job(self, job: _RenderJob, options: RenderOptions, strict: bool) -> _SlotResult:
        try:
            image = self.renderer.render(job.value, job.style, options, job.variant)
        except SymbologyError as e:
            e.index = job.index
            if strict:
                raise
            logger.warning(f"[RENDER] Значение #{job.index} пропущено: {e.message}")
            return _SlotResult(job=job, error=e)
        return _SlotResult(job=job, image=image)

    def _render_sequential(
        self,
        jobs: list[_RenderJob],
        options: RenderOptions,
        total: int,
        strict: bool,
        cancel_event: threading.Event | None,
        on_progress: ProgressCallback | None,
    ) -> list[_SlotResult]:
        slots: list[_SlotResult] = []
        done_values = 0

        for job in jobs:
            if job.variant is Variant.PRIMARY:
                if cancel_event is not None and cancel_event.is_set():
                    logger.info(f"[RENDER] Отмена после {done_values}/{total}")
                    raise GenerationCancelledError(done_values, total)

            slots.append(self._render_job(job, options, strict))

            # Значение готово, когда отрендерен его последний вариант
            is_last_variant = job.slot + 1 == len(jobs) or jobs[job.slot + 1].index != job.index
            if is_last_variant:
                done_values += 1
                if on_progress is not None:
                    on_progress(done_values, total)

        return slots

    def _render_parallel(
        self,
        jobs: list[_RenderJob],
        options: RenderOptions,
        total: int,
        strict: bool,
        cancel_event: threading.Event | None,
        on_progress: ProgressCallback | None,
    ) -> list[_SlotResult]:
        """
        Параллельный рендер в ThreadPoolExecutor.

        Результаты пишутся в слоты по индексу, порядок не зависит от потоков.
        """
        slots: list[_SlotResult | None] = [None] * len(jobs)
        remaining = [0] * total
        for job in jobs:
            remaining[job.index] += 1
        lock = threading.Lock()
        done_values = 0

        def run(job: _RenderJob) -> None:
            nonlocal done_values
            if cancel_event is not None and cancel_event.is_set():
                return
            slots[job.slot] = self._render_job(job, options, strict)
            with lock:
                remaining[job.index] -= 1
                if remaining[job.index] == 0:
                    done_values += 1
                    if on_progress is not None:
                        on_progress(done_values, total)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(run, job) for job in jobs]
            errors: list[tuple[int, SymbologyError]] = []
            for slot_index, future in enumerate(futures):
                if future.cancelled():
                    continue
                try:
                    future.result()
                except SymbologyError as e:
                    errors.append((slot_index, e))
                    # Остальные задания уже не нужны
                    for pending in futures[slot_index + 1 :]:
                        pending.cancel()

        if errors:
            # Первая ошибка по порядку вывода
            raise min(errors, key=lambda item: item[0])[1]

        if cancel_event is not None and cancel_event.is_set():
            completed = sum(1 for count in remaining if count == 0)
            logger.info(f"[RENDER] Отмена после {completed}/{total}")
            raise GenerationCancelledError(completed, total)

        return [slot for slot in slots if slot is not None]
