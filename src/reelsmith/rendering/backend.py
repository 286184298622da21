"""Codec/render backend capability."""

import hashlib
from abc import ABC, abstractmethod

from reelsmith.models.platform import PlatformSpec
from reelsmith.models.video import AssembledVideo


class RenderBackend(ABC):
    """Black-box encoder used for concatenation and per-platform reformatting."""

    @abstractmethod
    async def concatenate(self, artifact_refs: list[str]) -> str:
        """Merge artifacts in the given order and return a reference to the result."""
        ...

    @abstractmethod
    async def reformat(self, video: AssembledVideo, spec: PlatformSpec) -> str:
        """Render one platform variant of an assembled video and return its reference."""
        ...


class DryRunRenderBackend(RenderBackend):
    """Produces deterministic references without encoding anything."""

    async def concatenate(self, artifact_refs: list[str]) -> str:
        digest = hashlib.sha1("\n".join(artifact_refs).encode()).hexdigest()[:12]
        return f"dryrun://assembled/{digest}"

    async def reformat(self, video: AssembledVideo, spec: PlatformSpec) -> str:
        return f"{video.video_ref}/{spec.platform.value}"
