"""Segment plan data models."""

from enum import StrEnum

from pydantic import BaseModel, Field, field_validator


class SegmentRole(StrEnum):
    """Narrative role of a segment within the video."""

    HOOK = "hook"
    BODY = "body"
    CALL_TO_ACTION = "call_to_action"


class SegmentSpec(BaseModel):
    """A single planned segment."""

    model_config = {"frozen": True}

    index: int = Field(..., ge=0)
    visual_description: str = Field(..., min_length=1)
    duration_secs: float = Field(..., gt=0)
    depends_on_reference: bool = Field(
        default=True, description="Segment inherits the shared style/character reference"
    )
    role: SegmentRole = Field(default=SegmentRole.BODY)


class SegmentPlan(BaseModel):
    """Ordered list of segments for one job."""

    model_config = {"frozen": True}

    segments: list[SegmentSpec] = Field(..., min_length=1)
    target_segment_duration: float = Field(..., gt=0)

    @field_validator("segments")
    @classmethod
    def validate_contiguous_indices(cls, v: list[SegmentSpec]) -> list[SegmentSpec]:
        for expected, seg in enumerate(v):
            if seg.index != expected:
                raise ValueError(f"Segment at position {expected} has index {seg.index}")
        return v

    @property
    def total_duration(self) -> float:
        return sum(seg.duration_secs for seg in self.segments)

    def __len__(self) -> int:
        return len(self.segments)
