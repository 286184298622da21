"""Pipeline manager: drives jobs from submission to a terminal state."""

import asyncio
import logging

from reelsmith.config import get_settings
from reelsmith.formatting.formatter import PlatformFormatter
from reelsmith.generation.provider import DryRunGenerationProvider, GenerationProvider
from reelsmith.generation.sequence import ConsistentSequenceGenerator
from reelsmith.models.errors import FormatError, InvalidTransition, NotFound, ReelsmithError
from reelsmith.models.job import Job, JobConfig, JobStatus, PlatformFailure
from reelsmith.models.platform import PlatformMetadata, PlatformOutput
from reelsmith.pipeline.registry import JobRegistry
from reelsmith.planning.planner import SegmentPlanner
from reelsmith.rendering.assembler import VideoAssembler
from reelsmith.rendering.backend import DryRunRenderBackend, RenderBackend
from reelsmith.rendering.engine import FFmpegRenderBackend
from reelsmith.storage.job_store import JobStore

logger = logging.getLogger(__name__)


class JobInterrupted(Exception):
    """Raised at a yield point once a job is cancelled or deleted."""


class PipelineManager:
    """Manages the end-to-end generation pipeline.

    Strict ordering per job: plan → generate → assemble → format. Each job
    runs as its own asyncio task; stage code only talks to the registry.
    ``submit`` and ``retry`` must be called from a running event loop.
    """

    def __init__(
        self,
        registry: JobRegistry | None = None,
        planner: SegmentPlanner | None = None,
        provider: GenerationProvider | None = None,
        generator: ConsistentSequenceGenerator | None = None,
        backend: RenderBackend | None = None,
        assembler: VideoAssembler | None = None,
        formatter: PlatformFormatter | None = None,
    ):
        settings = get_settings()
        if registry is None:
            store = JobStore(settings.job_store_dir) if settings.job_store_dir else None
            registry = JobRegistry(store=store)
        if backend is None and settings.render_backend == "ffmpeg":
            backend = FFmpegRenderBackend()
        backend = backend or DryRunRenderBackend()
        self.registry = registry
        self.planner = planner or SegmentPlanner()
        self.generator = generator or ConsistentSequenceGenerator(
            provider or DryRunGenerationProvider()
        )
        self.assembler = assembler or VideoAssembler(backend)
        self.formatter = formatter or PlatformFormatter(backend)
        self._tasks: dict[str, asyncio.Task] = {}

    # -- public contract -------------------------------------------------

    def submit(self, config: JobConfig) -> str:
        """Create a pending job and schedule it; returns without waiting."""
        job = self.registry.create(config)
        self._schedule(job.id)
        return job.id

    def get_status(self, job_id: str) -> Job:
        return self.registry.snapshot(job_id)

    def list_jobs(self) -> list[Job]:
        return self.registry.list_jobs()

    def cancel(self, job_id: str) -> Job:
        """Request cancellation; the running task stops at its next yield point."""
        return self.registry.cancel(job_id)

    def retry(self, job_id: str) -> Job:
        """Resume a failed job at the stage it failed in."""
        job = self.registry.reopen(job_id)
        self._schedule(job_id)
        return job

    def delete(self, job_id: str) -> None:
        self.registry.delete(job_id)

    async def wait(self, job_id: str) -> Job:
        """Wait for the job's current run, if any, then return its snapshot."""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.shield(task)
        return self.registry.snapshot(job_id)

    # -- execution -------------------------------------------------------

    def _schedule(self, job_id: str) -> None:
        loop = asyncio.get_running_loop()
        task = loop.create_task(self.run(job_id), name=f"job-{job_id}")
        self._tasks[job_id] = task

        def _forget(t: asyncio.Task) -> None:
            if self._tasks.get(job_id) is t:
                del self._tasks[job_id]

        task.add_done_callback(_forget)

    async def run(self, job_id: str) -> None:
        """Execute the job from its current stage until it reaches a terminal state."""
        try:
            await self._run_stages(job_id)
        except JobInterrupted:
            logger.info(f"Job {job_id} stopped after cancellation")
        except ReelsmithError as e:
            self._fail(job_id, e)
        except Exception as e:
            logger.exception(f"Unexpected error in job {job_id}")
            self._fail(job_id, ReelsmithError(f"Pipeline failed: {e}", component="pipeline"))

    async def _run_stages(self, job_id: str) -> None:
        job = self.registry.snapshot(job_id)
        stage = job.status

        if stage == JobStatus.PENDING:
            self.planner.validate(job.config)
            stage = JobStatus.PLANNING

        if stage == JobStatus.PLANNING:
            self._checkpoint(job_id)
            self.registry.transition(job_id, JobStatus.PLANNING, "Planning segments...")
            plan = await asyncio.to_thread(self.planner.plan, job.config)
            self._checkpoint(job_id)
            self.registry.record_plan(job_id, plan)
            stage = JobStatus.GENERATING

        if stage == JobStatus.GENERATING:
            self._checkpoint(job_id)
            job = self.registry.start_generation(job_id)
            await self.generator.generate(
                job.plan,
                job.config,
                existing=job.segments,
                on_result=lambda result: self.registry.record_segment(job_id, result),
                is_cancelled=lambda: self.registry.is_cancelled(job_id),
            )
            stage = JobStatus.ASSEMBLING

        if stage == JobStatus.ASSEMBLING:
            self._checkpoint(job_id)
            job = self.registry.transition(job_id, JobStatus.ASSEMBLING, "Assembling video...")
            assembled = await self.assembler.assemble(job.segments, len(job.plan))
            self._checkpoint(job_id)
            self.registry.record_assembly(job_id, assembled)
            stage = JobStatus.FORMATTING

        if stage == JobStatus.FORMATTING:
            self._checkpoint(job_id)
            job = self.registry.start_formatting(job_id)
            outputs = await self._format_platforms(job)
            self._checkpoint(job_id)
            self.registry.complete(job_id, outputs)

    async def _format_platforms(self, job: Job) -> dict[str, PlatformOutput]:
        """Format each requested platform in turn; per-platform failures are recorded."""
        metadata = PlatformMetadata(hashtags=job.config.hashtags, description=job.config.description)
        platforms = job.config.platforms
        outputs: dict[str, PlatformOutput] = {}
        for done, platform in enumerate(platforms, start=1):
            self._checkpoint(job.id)
            try:
                output = await self.formatter.format_for_platform(job.assembled, platform, metadata)
            except FormatError as e:
                logger.warning(f"Job {job.id}: {platform} skipped: {e.message}")
                self._checkpoint(job.id)
                failure = PlatformFailure(
                    platform=platform, error_type=type(e).__name__, message=e.message
                )
                self.registry.record_platform_failure(job.id, failure, done, len(platforms))
                continue
            self._checkpoint(job.id)
            outputs[output.platform.value] = output
            self.registry.record_output(job.id, output.platform.value, done, len(platforms))

        if not outputs:
            raise FormatError(
                "No platform output could be produced",
                details={"platforms": platforms},
            )
        return outputs

    def _checkpoint(self, job_id: str) -> None:
        if self.registry.is_cancelled(job_id):
            raise JobInterrupted(job_id)

    def _fail(self, job_id: str, exc: ReelsmithError) -> None:
        try:
            self.registry.fail(job_id, exc)
        except (InvalidTransition, NotFound):
            # Cancelled or deleted while the failing call was in flight.
            logger.info(f"Job {job_id} no longer running; dropping error: {exc.message}")
