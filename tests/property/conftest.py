"""Hypothesis strategies for property-based testing."""

from hypothesis import strategies as st

from reelsmith.models.job import JobConfig
from reelsmith.models.segments import SegmentPlan, SegmentSpec
from reelsmith.models.video import AssembledVideo

PLATFORM_NAMES = ["tiktok", "reels", "shorts"]


@st.composite
def generate_job_config(draw, max_duration: float = 240.0):
    """Generate a random valid JobConfig."""
    platforms = draw(st.lists(st.sampled_from(PLATFORM_NAMES), min_size=1, max_size=3, unique=True))
    duration = draw(st.floats(min_value=0.5, max_value=max_duration, allow_nan=False))
    n_tags = draw(st.integers(min_value=0, max_value=25))
    return JobConfig(
        topic=draw(st.text(alphabet="abcdefghijklmnopqrstuvwxyz ", min_size=1, max_size=30)),
        platforms=platforms,
        duration_secs=round(duration, 3),
        hashtags=[f"#tag{i}" for i in range(n_tags)],
        character_reference=draw(st.none() | st.just("a small green dragon")),
    )


@st.composite
def generate_segment_plan(draw, max_segments: int = 8):
    """Generate a contiguous SegmentPlan with random durations."""
    n = draw(st.integers(min_value=1, max_value=max_segments))
    durations = draw(
        st.lists(
            st.floats(min_value=0.5, max_value=4.0, allow_nan=False),
            min_size=n,
            max_size=n,
        )
    )
    return SegmentPlan(
        segments=[
            SegmentSpec(index=i, visual_description=f"shot-{i}", duration_secs=round(d, 3))
            for i, d in enumerate(durations)
        ],
        target_segment_duration=4.0,
    )


@st.composite
def generate_assembled_video(draw):
    """Generate a random AssembledVideo."""
    n = draw(st.integers(min_value=1, max_value=30))
    return AssembledVideo(
        video_ref="mem://assembled/1",
        source_segments=[f"mem://clip/{i}" for i in range(n)],
        duration_secs=round(draw(st.floats(min_value=1.0, max_value=300.0)), 3),
    )
