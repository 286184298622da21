"""Consistent sequence generator: runs a segment plan against a provider."""

import asyncio
import logging
from collections.abc import Callable

from reelsmith.config import get_settings
from reelsmith.generation.provider import Consistency, GenerationProvider
from reelsmith.generation.retry import retry_with_backoff
from reelsmith.models.errors import SegmentGenerationFailed
from reelsmith.models.job import JobConfig, SegmentResult, SegmentStatus
from reelsmith.models.segments import SegmentPlan, SegmentSpec

logger = logging.getLogger(__name__)


class ConsistentSequenceGenerator:
    """Generates every planned segment while keeping them visually coherent.

    When a character reference is supplied and
    ``prefer_reference_over_description`` is set, every segment is prompted
    with the reference description itself instead of its own visual
    description. This trades per-segment specificity for continuity.
    """

    def __init__(
        self,
        provider: GenerationProvider,
        max_fan_out: int | None = None,
        max_retries: int | None = None,
        backoff_base: float | None = None,
        backoff_max: float | None = None,
        timeout_secs: float | None = None,
        prefer_reference_over_description: bool | None = None,
        consistency: Consistency | None = None,
    ):
        settings = get_settings()
        self.provider = provider
        self.max_fan_out = max_fan_out if max_fan_out is not None else settings.max_fan_out
        self.max_retries = max_retries if max_retries is not None else settings.provider_max_retries
        self.backoff_base = (
            backoff_base if backoff_base is not None else settings.provider_backoff_base
        )
        self.backoff_max = backoff_max if backoff_max is not None else settings.provider_backoff_max
        self.timeout_secs = timeout_secs if timeout_secs is not None else settings.provider_timeout_secs
        self.prefer_reference_over_description = (
            prefer_reference_over_description
            if prefer_reference_over_description is not None
            else settings.prefer_reference_over_description
        )
        self.consistency = consistency or settings.consistency
        if self.max_fan_out < 1:
            raise ValueError("max_fan_out must be at least 1")

    def fan_out(self, count: int) -> int:
        return max(1, min(self.max_fan_out, count))

    def build_prompt(self, spec: SegmentSpec, config: JobConfig) -> str:
        """Prompt for one segment under the consistency rule."""
        if (
            self.prefer_reference_over_description
            and spec.depends_on_reference
            and config.character_reference
        ):
            return config.character_reference
        return spec.visual_description

    async def generate(
        self,
        plan: SegmentPlan,
        config: JobConfig,
        existing: list[SegmentResult] | None = None,
        on_result: Callable[[SegmentResult], None] | None = None,
        is_cancelled: Callable[[], bool] | None = None,
    ) -> list[SegmentResult]:
        """Generate all segments not already done; return results in plan order.

        ``on_result`` is invoked once per finished segment, in completion
        order. Segments never dispatched stay ``pending``. When a segment
        fails, every segment after it produced in this run is put back to
        ``pending`` (and reported again through ``on_result``), so the job
        only keeps a done prefix up to the failure. Raises
        SegmentGenerationFailed for the lowest failed index.
        """
        cancelled = is_cancelled or (lambda: False)
        results: dict[int, SegmentResult] = {
            r.index: r
            for r in existing or []
            if r.status == SegmentStatus.DONE and r.index < len(plan)
        }
        todo = [spec for spec in plan.segments if spec.index not in results]
        if results:
            logger.info(f"Reusing {len(results)} generated segments, {len(todo)} remaining")

        semaphore = asyncio.Semaphore(self.fan_out(len(todo)))
        stop = asyncio.Event()
        failed_at: list[int] = []

        async def run_one(spec: SegmentSpec) -> None:
            async with semaphore:
                if stop.is_set() or cancelled():
                    return
                result = await self._generate_segment(spec, config)
                if cancelled():
                    return
                if result.status == SegmentStatus.FAILED:
                    failed_at.append(spec.index)
                    stop.set()
                elif failed_at and spec.index > min(failed_at):
                    return
                results[spec.index] = result
                if on_result:
                    on_result(result)

        tasks = [asyncio.create_task(run_one(spec)) for spec in todo]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        if failed_at and not cancelled():
            first = min(failed_at)
            for spec in todo:
                if spec.index > first and spec.index in results:
                    reset = SegmentResult(index=spec.index, duration_secs=spec.duration_secs)
                    results[spec.index] = reset
                    if on_result:
                        on_result(reset)

        ordered = [
            results.get(spec.index)
            or SegmentResult(index=spec.index, duration_secs=spec.duration_secs)
            for spec in plan.segments
        ]
        failed = [r for r in ordered if r.status == SegmentStatus.FAILED]
        if failed and not cancelled():
            first = failed[0]
            raise SegmentGenerationFailed(first.index, details={"error": first.error or ""})
        return ordered

    async def _generate_segment(self, spec: SegmentSpec, config: JobConfig) -> SegmentResult:
        prompt = self.build_prompt(spec, config)
        style_reference = config.style_reference if spec.depends_on_reference else None
        attempts = 0

        async def call() -> str:
            nonlocal attempts
            attempts += 1
            return await self.provider.generate(
                prompt, style_reference, spec.duration_secs, self.consistency
            )

        try:
            ref = await retry_with_backoff(
                call,
                max_retries=self.max_retries,
                base_delay=self.backoff_base,
                max_delay=self.backoff_max,
                timeout=self.timeout_secs,
            )
        except Exception as e:
            logger.warning(f"Segment {spec.index} failed after {attempts} attempts: {e!r}")
            return SegmentResult(
                index=spec.index,
                duration_secs=spec.duration_secs,
                status=SegmentStatus.FAILED,
                attempts=attempts,
                error=str(e) or type(e).__name__,
            )
        return SegmentResult(
            index=spec.index,
            provider_artifact_ref=ref,
            duration_secs=spec.duration_secs,
            status=SegmentStatus.DONE,
            attempts=attempts,
        )
