"""Job registry: the single writer of job state."""

import logging
import threading
import uuid
from datetime import UTC, datetime, timedelta

from reelsmith.models.errors import InvalidTransition, NotFound, ReelsmithError
from reelsmith.models.job import (
    PIPELINE_ORDER,
    Job,
    JobConfig,
    JobError,
    JobStatus,
    PlatformFailure,
    SegmentResult,
    SegmentStatus,
)
from reelsmith.models.platform import PlatformOutput
from reelsmith.models.segments import SegmentPlan
from reelsmith.models.video import AssembledVideo
from reelsmith.storage.job_store import JobStore

logger = logging.getLogger(__name__)

# Progress bands: planning 0-10, generating 10-70, assembling 70-80, formatting 80-95.
PLANNED_PROGRESS = 10.0
GENERATION_SPAN = 60.0
ASSEMBLING_PROGRESS = 70.0
FORMATTING_PROGRESS = 80.0
FORMATTING_SPAN = 15.0
TERMINAL_PROGRESS = 100.0

STAGE_FLOOR = {
    JobStatus.PENDING: 0.0,
    JobStatus.PLANNING: 0.0,
    JobStatus.GENERATING: PLANNED_PROGRESS,
    JobStatus.ASSEMBLING: ASSEMBLING_PROGRESS,
    JobStatus.FORMATTING: FORMATTING_PROGRESS,
}


def generation_progress(completed: int, total: int) -> float:
    """Progress while generating: 10 + 60 * completed / total."""
    if total <= 0:
        return PLANNED_PROGRESS
    return round(PLANNED_PROGRESS + GENERATION_SPAN * completed / total, 4)


class JobRegistry:
    """Owns every job record and is the only place status and progress change.

    All mutations run under one lock and replace the stored record as a
    whole, so readers always receive a consistent snapshot. Snapshots are
    deep copies and never alias the stored record.
    """

    def __init__(self, store: JobStore | None = None):
        self._lock = threading.RLock()
        self._jobs: dict[str, Job] = {}
        self.store = store
        if store is not None:
            self._restore()

    # -- reads -----------------------------------------------------------

    def snapshot(self, job_id: str) -> Job:
        with self._lock:
            return self._get(job_id).model_copy(deep=True)

    def list_jobs(self) -> list[Job]:
        """All jobs, newest first."""
        with self._lock:
            jobs = sorted(self._jobs.values(), key=lambda j: j.created_at, reverse=True)
            return [j.model_copy(deep=True) for j in jobs]

    def is_cancelled(self, job_id: str) -> bool:
        """True when the job was cancelled or no longer exists."""
        with self._lock:
            job = self._jobs.get(job_id)
            return job is None or job.status == JobStatus.CANCELLED

    def __contains__(self, job_id: str) -> bool:
        with self._lock:
            return job_id in self._jobs

    # -- lifecycle -------------------------------------------------------

    def create(self, config: JobConfig) -> Job:
        now = datetime.now(UTC)
        job = Job(
            id=str(uuid.uuid4()),
            config=config,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._jobs[job.id] = job
            self._persist(job)
        logger.info(f"Created job {job.id} for platforms {config.platforms}")
        return job.model_copy(deep=True)

    def transition(self, job_id: str, status: JobStatus, step: str) -> Job:
        """Move a job forward by one stage, or refresh the step of its current stage."""
        with self._lock:
            job = self._get(job_id)
            if not self._is_forward(job.status, status):
                raise InvalidTransition(job_id, job.status.value, status.value)
            return self._commit(
                job,
                status=status,
                current_step=step,
                progress=max(job.progress, STAGE_FLOOR.get(status, job.progress)),
            )

    def record_plan(self, job_id: str, plan: SegmentPlan) -> Job:
        with self._lock:
            job = self._require(job_id, JobStatus.PLANNING, "record_plan")
            return self._commit(
                job,
                plan=plan,
                current_step=f"Planned {len(plan)} segments",
                progress=max(job.progress, PLANNED_PROGRESS),
            )

    def start_generation(self, job_id: str) -> Job:
        """Enter generating with one slot per planned segment; done results are kept."""
        with self._lock:
            job = self._get(job_id)
            if job.plan is None:
                raise InvalidTransition(job_id, job.status.value, JobStatus.GENERATING.value)
            if not self._is_forward(job.status, JobStatus.GENERATING):
                raise InvalidTransition(job_id, job.status.value, JobStatus.GENERATING.value)
            done = {s.index: s for s in job.segments if s.status == SegmentStatus.DONE}
            segments = [
                done.get(spec.index)
                or SegmentResult(index=spec.index, duration_secs=spec.duration_secs)
                for spec in job.plan.segments
            ]
            completed = len(done)
            return self._commit(
                job,
                status=JobStatus.GENERATING,
                segments=segments,
                current_step=f"Generating segments ({completed}/{len(segments)})",
                progress=max(job.progress, generation_progress(completed, len(segments))),
            )

    def record_segment(self, job_id: str, result: SegmentResult) -> Job:
        with self._lock:
            job = self._require(job_id, JobStatus.GENERATING, "record_segment")
            total = len(job.plan.segments) if job.plan else 0
            if not 0 <= result.index < total:
                raise ReelsmithError(
                    f"Segment index {result.index} outside plan of {total}",
                    component="registry",
                    details={"index": result.index, "planned": total},
                )
            segments = list(job.segments)
            segments[result.index] = result
            completed = sum(1 for s in segments if s.status == SegmentStatus.DONE)
            return self._commit(
                job,
                segments=segments,
                current_step=f"Generating segments ({completed}/{total})",
                progress=max(job.progress, generation_progress(completed, total)),
            )

    def record_assembly(self, job_id: str, assembled: AssembledVideo) -> Job:
        with self._lock:
            job = self._require(job_id, JobStatus.ASSEMBLING, "record_assembly")
            return self._commit(
                job,
                assembled=assembled,
                current_step=f"Assembled {assembled.duration_secs}s video",
            )

    def start_formatting(self, job_id: str) -> Job:
        """Enter formatting with cleared outputs and diagnostics."""
        with self._lock:
            job = self._get(job_id)
            if job.assembled is None or not self._is_forward(job.status, JobStatus.FORMATTING):
                raise InvalidTransition(job_id, job.status.value, JobStatus.FORMATTING.value)
            return self._commit(
                job,
                status=JobStatus.FORMATTING,
                outputs={},
                diagnostics=[],
                current_step=f"Formatting for {len(job.config.platforms)} platforms",
                progress=max(job.progress, FORMATTING_PROGRESS),
            )

    def record_output(self, job_id: str, platform: str, done: int, total: int) -> Job:
        """Advance formatting progress; outputs are published by complete()."""
        with self._lock:
            job = self._require(job_id, JobStatus.FORMATTING, "record_output")
            return self._commit(
                job,
                current_step=f"Formatted {platform} ({done}/{total})",
                progress=max(job.progress, self._formatting_progress(done, total)),
            )

    def record_platform_failure(
        self, job_id: str, failure: PlatformFailure, done: int, total: int
    ) -> Job:
        with self._lock:
            job = self._require(job_id, JobStatus.FORMATTING, "record_platform_failure")
            return self._commit(
                job,
                diagnostics=[*job.diagnostics, failure],
                current_step=f"Skipped {failure.platform} ({done}/{total})",
                progress=max(job.progress, self._formatting_progress(done, total)),
            )

    def complete(self, job_id: str, outputs: dict[str, PlatformOutput]) -> Job:
        """Publish the platform outputs and complete the job in one commit."""
        with self._lock:
            job = self._require(job_id, JobStatus.FORMATTING, JobStatus.COMPLETED.value)
            if not outputs:
                raise InvalidTransition(job_id, job.status.value, JobStatus.COMPLETED.value)
            logger.info(f"Job {job_id} completed with outputs for {sorted(outputs)}")
            return self._commit(
                job,
                status=JobStatus.COMPLETED,
                outputs=dict(outputs),
                current_step="Video generation complete!",
                progress=TERMINAL_PROGRESS,
            )

    def fail(self, job_id: str, exc: ReelsmithError) -> Job:
        """Record a fatal error at the job's current stage."""
        with self._lock:
            job = self._get(job_id)
            if job.is_terminal:
                raise InvalidTransition(job_id, job.status.value, JobStatus.FAILED.value)
            error = JobError(
                stage=job.status,
                error_type=type(exc).__name__,
                message=exc.message,
                detail=exc.details,
            )
            logger.error(f"Job {job_id} failed during {job.status.value}: {exc.message}")
            return self._commit(
                job,
                status=JobStatus.FAILED,
                error=error,
                outputs={},
                current_step=f"Failed during {job.status.value}",
                progress=TERMINAL_PROGRESS,
            )

    def cancel(self, job_id: str) -> Job:
        """Cancel a non-terminal job and discard its produced segments."""
        with self._lock:
            job = self._get(job_id)
            if job.is_terminal:
                raise InvalidTransition(job_id, job.status.value, JobStatus.CANCELLED.value)
            logger.info(f"Job {job_id} cancelled during {job.status.value}")
            return self._commit(
                job,
                status=JobStatus.CANCELLED,
                segments=[],
                assembled=None,
                outputs={},
                current_step="Job cancelled",
                progress=TERMINAL_PROGRESS,
            )

    def reopen(self, job_id: str) -> Job:
        """Put a failed job back at the stage it failed in."""
        with self._lock:
            job = self._get(job_id)
            if job.status != JobStatus.FAILED or job.error is None:
                raise InvalidTransition(job_id, job.status.value, "retry")
            stage = job.error.stage
            if stage == JobStatus.GENERATING and job.plan is not None:
                done = sum(1 for s in job.segments if s.status == SegmentStatus.DONE)
                progress = generation_progress(done, len(job.plan))
            else:
                progress = STAGE_FLOOR.get(stage, 0.0)
            logger.info(f"Retrying job {job_id} from {stage.value}")
            return self._commit(
                job,
                status=stage,
                error=None,
                outputs={},
                diagnostics=[],
                current_step=f"Retrying from {stage.value}",
                progress=progress,
            )

    def delete(self, job_id: str) -> None:
        with self._lock:
            job = self._get(job_id)
            if not job.is_terminal:
                raise InvalidTransition(job_id, job.status.value, "deleted")
            del self._jobs[job_id]
            if self.store is not None:
                self.store.delete(job_id)
        logger.info(f"Deleted job {job_id}")

    # -- internals -------------------------------------------------------

    def _get(self, job_id: str) -> Job:
        job = self._jobs.get(job_id)
        if job is None:
            raise NotFound(job_id)
        return job

    def _require(self, job_id: str, status: JobStatus, requested: str) -> Job:
        job = self._get(job_id)
        if job.status != status:
            raise InvalidTransition(job_id, job.status.value, requested)
        return job

    @staticmethod
    def _is_forward(current: JobStatus, target: JobStatus) -> bool:
        """Same stage, or exactly the next stage of the pipeline."""
        if current.is_terminal or target not in PIPELINE_ORDER:
            return False
        cur, nxt = PIPELINE_ORDER.index(current), PIPELINE_ORDER.index(target)
        return nxt in (cur, cur + 1) and target != JobStatus.COMPLETED

    @staticmethod
    def _formatting_progress(done: int, total: int) -> float:
        if total <= 0:
            return FORMATTING_PROGRESS
        return round(FORMATTING_PROGRESS + FORMATTING_SPAN * done / total, 4)

    def _commit(self, job: Job, **updates) -> Job:
        """Replace the stored record; updated_at strictly advances."""
        now = datetime.now(UTC)
        if now <= job.updated_at:
            now = job.updated_at + timedelta(microseconds=1)
        new = job.model_copy(update={**updates, "updated_at": now})
        self._jobs[new.id] = new
        self._persist(new)
        logger.debug(f"Job {new.id} -> {new.status.value} ({new.progress:.1f}%): {new.current_step}")
        return new.model_copy(deep=True)

    def _persist(self, job: Job) -> None:
        if self.store is not None:
            self.store.save(job)

    def _restore(self) -> None:
        """Load stored jobs; ones interrupted mid-run come back as failed."""
        for job in self.store.load_all():
            if not job.is_terminal:
                job = job.model_copy(
                    update={
                        "status": JobStatus.FAILED,
                        "progress": TERMINAL_PROGRESS,
                        "current_step": f"Interrupted during {job.status.value}",
                        "error": JobError(
                            stage=job.status,
                            error_type="Interrupted",
                            message="Process stopped while the job was running",
                        ),
                    }
                )
                self.store.save(job)
            self._jobs[job.id] = job
        if self._jobs:
            logger.info(f"Restored {len(self._jobs)} jobs from {self.store.base_dir}")
