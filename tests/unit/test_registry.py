"""Tests for JobRegistry state transitions and snapshots."""

import pytest

from reelsmith.formatting.formatter import PlatformFormatter
from reelsmith.models.errors import (
    FormatError,
    InvalidTransition,
    NotFound,
    ReelsmithError,
    SegmentGenerationFailed,
)
from reelsmith.models.job import JobConfig, JobStatus, PlatformFailure, SegmentResult, SegmentStatus
from reelsmith.models.platform import PlatformMetadata
from reelsmith.models.video import AssembledVideo
from reelsmith.pipeline.registry import JobRegistry, generation_progress
from reelsmith.storage.job_store import JobStore


@pytest.fixture
def registry():
    return JobRegistry()


@pytest.fixture
def job_id(registry, tiktok_config):
    return registry.create(tiktok_config).id


def done(index: int) -> SegmentResult:
    return SegmentResult(
        index=index,
        provider_artifact_ref=f"mem://clip/{index}",
        duration_secs=4.0,
        status=SegmentStatus.DONE,
        attempts=1,
    )


def to_generating(registry, job_id, planner, config):
    registry.transition(job_id, JobStatus.PLANNING, "Planning segments")
    registry.record_plan(job_id, planner.plan(config))
    return registry.start_generation(job_id)


def to_formatting(registry, job_id, planner, config):
    to_generating(registry, job_id, planner, config)
    for i in range(3):
        registry.record_segment(job_id, done(i))
    registry.transition(job_id, JobStatus.ASSEMBLING, "Assembling video")
    registry.record_assembly(
        job_id,
        AssembledVideo(
            video_ref="mem://assembled/1",
            source_segments=[f"mem://clip/{i}" for i in range(3)],
            duration_secs=12.0,
        ),
    )
    return registry.start_formatting(job_id)


def tiktok_output(registry, job_id):
    job = registry.snapshot(job_id)
    return PlatformFormatter().layout(job.assembled, "tiktok", PlatformMetadata())


class TestGenerationProgress:
    def test_formula(self):
        assert generation_progress(0, 3) == 10.0
        assert generation_progress(3, 3) == 70.0
        assert generation_progress(1, 4) == 25.0


class TestCreateAndRead:
    def test_create_is_pending(self, registry, tiktok_config):
        job = registry.create(tiktok_config)
        assert job.status == JobStatus.PENDING
        assert job.progress == 0.0
        assert job.current_step == "Queued"
        assert job.id in registry

    def test_ids_are_unique(self, registry, tiktok_config):
        ids = {registry.create(tiktok_config).id for _ in range(20)}
        assert len(ids) == 20

    def test_unknown_job(self, registry):
        with pytest.raises(NotFound):
            registry.snapshot("missing")
        assert registry.is_cancelled("missing")

    def test_snapshot_is_a_copy(self, registry, job_id, planner, tiktok_config):
        to_generating(registry, job_id, planner, tiktok_config)
        snapshot = registry.snapshot(job_id)
        snapshot.segments.clear()
        assert len(registry.snapshot(job_id).segments) == 3

    def test_repeated_snapshots_are_identical(self, registry, job_id):
        assert (
            registry.snapshot(job_id).model_dump_json()
            == registry.snapshot(job_id).model_dump_json()
        )

    def test_list_jobs_newest_first(self, registry, tiktok_config):
        first = registry.create(tiktok_config)
        second = registry.create(tiktok_config)
        assert [j.id for j in registry.list_jobs()][:2] == [second.id, first.id]


class TestTransitions:
    def test_forward_by_one_stage(self, registry, job_id):
        job = registry.transition(job_id, JobStatus.PLANNING, "Planning segments")
        assert job.status == JobStatus.PLANNING
        assert job.current_step == "Planning segments"

    def test_skipping_a_stage_rejected(self, registry, job_id):
        with pytest.raises(InvalidTransition) as exc_info:
            registry.transition(job_id, JobStatus.GENERATING, "skip")
        assert exc_info.value.details["current"] == "pending"

    def test_backwards_rejected(self, registry, job_id):
        registry.transition(job_id, JobStatus.PLANNING, "Planning")
        with pytest.raises(InvalidTransition):
            registry.transition(job_id, JobStatus.PENDING, "back")

    def test_completed_only_via_complete(self, registry, job_id, planner, tiktok_config):
        to_formatting(registry, job_id, planner, tiktok_config)
        with pytest.raises(InvalidTransition):
            registry.transition(job_id, JobStatus.COMPLETED, "done")

    def test_complete_requires_outputs(self, registry, job_id, planner, tiktok_config):
        to_formatting(registry, job_id, planner, tiktok_config)
        with pytest.raises(InvalidTransition):
            registry.complete(job_id, {})

    def test_generation_requires_plan(self, registry, job_id):
        registry.transition(job_id, JobStatus.PLANNING, "Planning")
        with pytest.raises(InvalidTransition):
            registry.start_generation(job_id)

    def test_updated_at_strictly_advances(self, registry, job_id):
        before = registry.snapshot(job_id).updated_at
        after = registry.transition(job_id, JobStatus.PLANNING, "Planning").updated_at
        again = registry.transition(job_id, JobStatus.PLANNING, "Still planning").updated_at
        assert before < after < again

    def test_full_happy_path(self, registry, job_id, planner, tiktok_config):
        to_formatting(registry, job_id, planner, tiktok_config)
        job = registry.record_output(job_id, "tiktok", 1, 1)
        assert job.progress == 95.0
        assert job.outputs == {}
        job = registry.complete(job_id, {"tiktok": tiktok_output(registry, job_id)})
        assert job.status == JobStatus.COMPLETED
        assert job.progress == 100.0
        assert set(job.outputs) == {"tiktok"}


class TestSegments:
    def test_start_generation_creates_pending_slots(self, registry, job_id, planner, tiktok_config):
        job = to_generating(registry, job_id, planner, tiktok_config)
        assert [s.status for s in job.segments] == [SegmentStatus.PENDING] * 3
        assert job.progress == 10.0

    def test_record_segment_updates_progress(self, registry, job_id, planner, tiktok_config):
        to_generating(registry, job_id, planner, tiktok_config)
        job = registry.record_segment(job_id, done(1))
        assert job.segments[1].status == SegmentStatus.DONE
        assert job.progress == 30.0
        assert job.current_step == "Generating segments (1/3)"

    def test_record_segment_out_of_range(self, registry, job_id, planner, tiktok_config):
        to_generating(registry, job_id, planner, tiktok_config)
        with pytest.raises(ReelsmithError):
            registry.record_segment(job_id, done(7))

    def test_record_segment_outside_generating(self, registry, job_id):
        with pytest.raises(InvalidTransition):
            registry.record_segment(job_id, done(0))


class TestFailCancel:
    def test_fail_records_stage(self, registry, job_id, planner, tiktok_config):
        to_generating(registry, job_id, planner, tiktok_config)
        registry.record_segment(job_id, done(0))
        job = registry.fail(job_id, SegmentGenerationFailed(1, details={"error": "boom"}))
        assert job.status == JobStatus.FAILED
        assert job.error.stage == JobStatus.GENERATING
        assert job.error.error_type == "SegmentGenerationFailed"
        assert job.error.detail["index"] == 1
        assert job.segments[0].status == SegmentStatus.DONE
        assert job.progress == 100.0

    def test_fail_terminal_rejected(self, registry, job_id):
        registry.cancel(job_id)
        with pytest.raises(InvalidTransition):
            registry.fail(job_id, ReelsmithError("late"))

    def test_cancel_discards_work(self, registry, job_id, planner, tiktok_config):
        to_formatting(registry, job_id, planner, tiktok_config)
        registry.record_output(job_id, "tiktok", 1, 1)
        job = registry.cancel(job_id)
        assert job.status == JobStatus.CANCELLED
        assert job.segments == []
        assert job.assembled is None
        assert job.outputs == {}
        assert registry.is_cancelled(job_id)

    def test_cancel_twice_rejected(self, registry, job_id):
        registry.cancel(job_id)
        with pytest.raises(InvalidTransition):
            registry.cancel(job_id)

    def test_cancelled_job_cannot_advance(self, registry, job_id):
        registry.cancel(job_id)
        with pytest.raises(InvalidTransition):
            registry.transition(job_id, JobStatus.PLANNING, "Planning")

    def test_platform_failure_recorded(self, registry, job_id, planner, tiktok_config):
        to_formatting(registry, job_id, planner, tiktok_config)
        failure = PlatformFailure(platform="vine", error_type="UnsupportedPlatform", message="no")
        job = registry.record_platform_failure(job_id, failure, 1, 2)
        assert job.diagnostics == [failure]
        assert job.progress == 87.5


class TestReopen:
    def test_reopen_generating_keeps_done_segments(self, registry, job_id, planner, tiktok_config):
        to_generating(registry, job_id, planner, tiktok_config)
        registry.record_segment(job_id, done(0))
        registry.fail(job_id, SegmentGenerationFailed(1))
        job = registry.reopen(job_id)
        assert job.status == JobStatus.GENERATING
        assert job.error is None
        assert job.progress == 30.0
        job = registry.start_generation(job_id)
        assert job.segments[0].provider_artifact_ref == "mem://clip/0"
        assert job.segments[1].status == SegmentStatus.PENDING

    def test_reopen_formatting(self, registry, job_id, planner, tiktok_config):
        to_formatting(registry, job_id, planner, tiktok_config)
        registry.fail(job_id, FormatError("all platforms failed"))
        job = registry.reopen(job_id)
        assert job.status == JobStatus.FORMATTING
        assert job.assembled is not None
        assert job.progress == 80.0

    def test_reopen_requires_failed(self, registry, job_id):
        with pytest.raises(InvalidTransition):
            registry.reopen(job_id)


class TestDelete:
    def test_delete_terminal(self, registry, job_id):
        registry.cancel(job_id)
        registry.delete(job_id)
        assert job_id not in registry
        with pytest.raises(NotFound):
            registry.snapshot(job_id)

    def test_delete_running_rejected(self, registry, job_id):
        with pytest.raises(InvalidTransition):
            registry.delete(job_id)


class TestPersistence:
    def test_snapshots_written_and_restored(self, tmp_path, tiktok_config):
        store = JobStore(tmp_path)
        registry = JobRegistry(store)
        job = registry.create(tiktok_config)
        registry.cancel(job.id)

        restored = JobRegistry(JobStore(tmp_path))
        assert restored.snapshot(job.id).status == JobStatus.CANCELLED

    def test_interrupted_jobs_restored_as_failed(self, tmp_path, planner, tiktok_config):
        registry = JobRegistry(JobStore(tmp_path))
        job = registry.create(tiktok_config)
        to_generating(registry, job.id, planner, tiktok_config)

        restored = JobRegistry(JobStore(tmp_path)).snapshot(job.id)
        assert restored.status == JobStatus.FAILED
        assert restored.error.stage == JobStatus.GENERATING
        assert restored.error.error_type == "Interrupted"

    def test_delete_removes_snapshot(self, tmp_path, tiktok_config):
        registry = JobRegistry(JobStore(tmp_path))
        job = registry.create(tiktok_config)
        registry.cancel(job.id)
        registry.delete(job.id)
        assert not (tmp_path / f"{job.id}.json").exists()


def test_job_config_survives_snapshot(registry):
    config = JobConfig(topic="t", platforms=["reels"], character_reference="fox")
    job = registry.create(config)
    assert registry.snapshot(job.id).config == config
