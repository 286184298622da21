"""Video assembler: merges generated segments in plan order."""

import logging

from reelsmith.models.errors import AssemblyError, ReelsmithError
from reelsmith.models.job import SegmentResult, SegmentStatus
from reelsmith.models.video import AssembledVideo
from reelsmith.rendering.backend import DryRunRenderBackend, RenderBackend

logger = logging.getLogger(__name__)


class VideoAssembler:
    """Concatenates segments through the render backend.

    Assembly keeps the full content; trimming to a platform's cap happens
    during formatting.
    """

    def __init__(self, backend: RenderBackend | None = None):
        self.backend = backend or DryRunRenderBackend()

    @staticmethod
    def validate_segments(segments: list[SegmentResult], expected_count: int) -> None:
        """Require exactly indices 0..N-1, in order, all done with an artifact."""
        if not segments:
            raise AssemblyError("No segments to assemble")
        if len(segments) != expected_count:
            raise AssemblyError(
                f"Expected {expected_count} segments, got {len(segments)}",
                details={"expected": expected_count, "actual": len(segments)},
            )
        for position, seg in enumerate(segments):
            if seg.index != position:
                raise AssemblyError(
                    f"Segment out of order at position {position} (index {seg.index})",
                    details={"position": position, "index": seg.index},
                )
            if seg.status != SegmentStatus.DONE or not seg.provider_artifact_ref:
                raise AssemblyError(
                    f"Segment {seg.index} is not ready (status {seg.status.value})",
                    details={"index": seg.index, "status": seg.status.value},
                )

    async def assemble(
        self, segments: list[SegmentResult], expected_count: int | None = None
    ) -> AssembledVideo:
        """Merge segments into one video whose duration is the sum of theirs."""
        self.validate_segments(segments, len(segments) if expected_count is None else expected_count)
        refs = [seg.provider_artifact_ref for seg in segments]
        try:
            video_ref = await self.backend.concatenate(refs)
        except AssemblyError:
            raise
        except ReelsmithError as e:
            raise AssemblyError(e.message, details=e.details)
        except Exception as e:
            raise AssemblyError(f"Concatenation failed: {e}", details={"error": str(e)})

        duration = round(sum(seg.duration_secs for seg in segments), 4)
        logger.info(f"Assembled {len(segments)} segments into {duration}s video")
        return AssembledVideo(video_ref=video_ref, source_segments=refs, duration_secs=duration)
