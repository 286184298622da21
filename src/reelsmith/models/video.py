"""Assembled video data model."""

from pydantic import BaseModel, Field


class AssembledVideo(BaseModel):
    """Concatenation of a job's segments, before any per-platform trimming."""

    model_config = {"frozen": True}

    video_ref: str = Field(..., min_length=1, description="Backend reference to the merged video")
    source_segments: list[str] = Field(..., min_length=1, description="Artifact refs in plan order")
    duration_secs: float = Field(..., gt=0)
