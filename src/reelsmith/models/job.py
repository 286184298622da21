"""Job lifecycle data models."""

from datetime import datetime
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from reelsmith.models.platform import PlatformOutput
from reelsmith.models.segments import SegmentPlan
from reelsmith.models.video import AssembledVideo


class JobStatus(StrEnum):
    """Stages of a generation job."""

    PENDING = "pending"
    PLANNING = "planning"
    GENERATING = "generating"
    ASSEMBLING = "assembling"
    FORMATTING = "formatting"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED})

# Forward order of the pipeline; failed/cancelled sit outside it.
PIPELINE_ORDER = (
    JobStatus.PENDING,
    JobStatus.PLANNING,
    JobStatus.GENERATING,
    JobStatus.ASSEMBLING,
    JobStatus.FORMATTING,
    JobStatus.COMPLETED,
)


class SegmentStatus(StrEnum):
    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"


class JobConfig(BaseModel):
    """Immutable snapshot of the originating content request."""

    model_config = {"frozen": True}

    topic: str = Field(..., min_length=1)
    platforms: list[str] = Field(..., min_length=1, description="Target platform identifiers")
    style: str = Field(default="educational")
    duration_secs: float = Field(default=60.0, description="Requested total duration")
    language: str = Field(default="en", min_length=2)
    quality: Literal["draft", "standard", "high"] = Field(default="standard")
    target_audience: str | None = None
    style_reference: str | None = Field(
        default=None, description="Style reference passed to the provider with every segment"
    )
    character_reference: str | None = Field(
        default=None, description="Shared character description used to keep segments coherent"
    )
    hashtags: list[str] = Field(default_factory=list)
    description: str = Field(default="")

    @field_validator("platforms")
    @classmethod
    def normalize_platforms(cls, v: list[str]) -> list[str]:
        seen: list[str] = []
        for name in v:
            key = name.strip().lower()
            if key and key not in seen:
                seen.append(key)
        if not seen:
            raise ValueError("At least one platform is required")
        return seen


class SegmentResult(BaseModel):
    """Outcome of generating one planned segment."""

    index: int = Field(..., ge=0)
    provider_artifact_ref: str | None = None
    duration_secs: float = Field(..., gt=0)
    status: SegmentStatus = Field(default=SegmentStatus.PENDING)
    attempts: int = Field(default=0, ge=0)
    error: str | None = None


class JobError(BaseModel):
    """Structured cause of a failed job."""

    stage: JobStatus
    error_type: str
    message: str
    detail: dict = Field(default_factory=dict)


class PlatformFailure(BaseModel):
    """Non-fatal per-platform formatting failure."""

    platform: str
    error_type: str
    message: str


class Job(BaseModel):
    """Execution record of one generation request."""

    id: str = Field(..., min_length=1)
    status: JobStatus = Field(default=JobStatus.PENDING)
    progress: float = Field(default=0.0, ge=0, le=100)
    current_step: str = Field(default="Queued")
    config: JobConfig
    plan: SegmentPlan | None = None
    segments: list[SegmentResult] = Field(default_factory=list)
    assembled: AssembledVideo | None = None
    outputs: dict[str, PlatformOutput] = Field(default_factory=dict)
    diagnostics: list[PlatformFailure] = Field(default_factory=list)
    error: JobError | None = None
    created_at: datetime
    updated_at: datetime

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def completed_segments(self) -> int:
        return sum(1 for s in self.segments if s.status == SegmentStatus.DONE)
