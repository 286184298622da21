"""Shared test fixtures, fake collaborators and pipeline helpers."""

import asyncio
from collections.abc import Callable

import pytest

from reelsmith.generation.provider import GenerationProvider
from reelsmith.generation.sequence import ConsistentSequenceGenerator
from reelsmith.models.errors import ProviderError
from reelsmith.models.job import Job, JobConfig
from reelsmith.models.platform import PlatformSpec
from reelsmith.models.video import AssembledVideo
from reelsmith.pipeline.manager import PipelineManager
from reelsmith.pipeline.registry import JobRegistry
from reelsmith.planning.planner import SegmentPlanner
from reelsmith.rendering.backend import RenderBackend


class FakeProvider(GenerationProvider):
    """Records every call; fails or delays calls whose prompt matches."""

    def __init__(
        self,
        fail_when: Callable[[str], bool] | None = None,
        delays: Callable[[str], float] | None = None,
        hang_when: Callable[[str], bool] | None = None,
    ):
        self.fail_when = fail_when or (lambda prompt: False)
        self.delays = delays or (lambda prompt: 0.0)
        self.hang_when = hang_when or (lambda prompt: False)
        self.calls: list[dict] = []
        self.completed: list[str] = []

    async def generate(self, prompt, style_reference, duration_secs, consistency):
        self.calls.append(
            {
                "prompt": prompt,
                "style_reference": style_reference,
                "duration_secs": duration_secs,
                "consistency": consistency,
            }
        )
        if self.hang_when(prompt):
            await asyncio.sleep(3600)
        delay = self.delays(prompt)
        if delay:
            await asyncio.sleep(delay)
        if self.fail_when(prompt):
            raise ProviderError(f"provider rejected: {prompt[:30]}")
        self.completed.append(prompt)
        return f"mem://clip/{len(self.calls)}"


class FakeBackend(RenderBackend):
    """In-memory render backend with switchable reformat failures."""

    def __init__(self, fail_platforms: set[str] | None = None, fail_concat: bool = False):
        self.fail_platforms = set(fail_platforms or ())
        self.fail_concat = fail_concat
        self.concatenated: list[list[str]] = []
        self.reformatted: list[str] = []

    async def concatenate(self, artifact_refs):
        if self.fail_concat:
            raise RuntimeError("encoder crashed")
        self.concatenated.append(list(artifact_refs))
        return f"mem://assembled/{len(self.concatenated)}"

    async def reformat(self, video: AssembledVideo, spec: PlatformSpec):
        if spec.platform.value in self.fail_platforms:
            raise RuntimeError(f"cannot render {spec.platform.value}")
        self.reformatted.append(spec.platform.value)
        return f"{video.video_ref}/{spec.platform.value}"


class RecordingRegistry(JobRegistry):
    """Registry that keeps every committed snapshot, in order."""

    def __init__(self, *args, **kwargs):
        self.history: list[Job] = []
        super().__init__(*args, **kwargs)

    def create(self, config):
        job = super().create(config)
        self.history.append(job)
        return job

    def _commit(self, job, **updates):
        snapshot = super()._commit(job, **updates)
        self.history.append(snapshot)
        return snapshot


def make_generator(provider: GenerationProvider, **overrides) -> ConsistentSequenceGenerator:
    """Generator with zero backoff so retry tests run instantly."""
    options = {
        "max_fan_out": 4,
        "max_retries": 2,
        "backoff_base": 0.0,
        "backoff_max": 0.0,
        "timeout_secs": 5.0,
        "prefer_reference_over_description": True,
        "consistency": "high",
    }
    options.update(overrides)
    return ConsistentSequenceGenerator(provider, **options)


def make_manager(
    provider: GenerationProvider | None = None,
    backend: RenderBackend | None = None,
    registry: JobRegistry | None = None,
    **generator_overrides,
) -> PipelineManager:
    provider = provider or FakeProvider()
    backend = backend or FakeBackend()
    return PipelineManager(
        registry=registry or RecordingRegistry(),
        planner=SegmentPlanner(client=None, target_segment_duration=4.0, max_duration_secs=600.0),
        generator=make_generator(provider, **generator_overrides),
        backend=backend,
    )


def run_job(manager: PipelineManager, config: JobConfig) -> Job:
    """Submit a job and wait for its run to finish."""

    async def scenario():
        job_id = manager.submit(config)
        return await manager.wait(job_id)

    return asyncio.run(scenario())


@pytest.fixture
def tiktok_config():
    return JobConfig(
        topic="x",
        platforms=["tiktok"],
        duration_secs=12,
        hashtags=[f"#tag{i}" for i in range(8)],
        description="A short explainer",
    )


@pytest.fixture
def three_platform_config():
    return JobConfig(
        topic="black holes",
        platforms=["tiktok", "reels", "shorts"],
        style="cinematic",
        duration_secs=10,
        hashtags=[f"#space{i}" for i in range(20)],
        description="What happens at the event horizon",
    )


@pytest.fixture
def planner():
    return SegmentPlanner(client=None, target_segment_duration=4.0, max_duration_secs=600.0)


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def sample_assembled():
    return AssembledVideo(
        video_ref="mem://assembled/1",
        source_segments=["mem://clip/1", "mem://clip/2"],
        duration_secs=75.0,
    )
