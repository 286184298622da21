"""Data models for Reelsmith."""

from reelsmith.models.errors import (
    AssemblyError,
    ErrorResponse,
    FormatError,
    InvalidConfig,
    InvalidTransition,
    NotFound,
    ProviderError,
    ReelsmithError,
    SegmentGenerationFailed,
    UnsupportedPlatform,
)
from reelsmith.models.job import (
    Job,
    JobConfig,
    JobError,
    JobStatus,
    PlatformFailure,
    SegmentResult,
    SegmentStatus,
)
from reelsmith.models.platform import (
    BrandPosition,
    Platform,
    PlatformMetadata,
    PlatformOutput,
    PlatformSpec,
    SafeZone,
)
from reelsmith.models.segments import SegmentPlan, SegmentRole, SegmentSpec
from reelsmith.models.video import AssembledVideo

__all__ = [
    "AssembledVideo",
    "AssemblyError",
    "BrandPosition",
    "ErrorResponse",
    "FormatError",
    "InvalidConfig",
    "InvalidTransition",
    "Job",
    "JobConfig",
    "JobError",
    "JobStatus",
    "NotFound",
    "Platform",
    "PlatformFailure",
    "PlatformMetadata",
    "PlatformOutput",
    "PlatformSpec",
    "ProviderError",
    "ReelsmithError",
    "SafeZone",
    "SegmentGenerationFailed",
    "SegmentPlan",
    "SegmentResult",
    "SegmentRole",
    "SegmentSpec",
    "SegmentStatus",
    "UnsupportedPlatform",
]
