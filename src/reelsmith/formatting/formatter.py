"""Platform formatter: one assembled video in, one output per platform out."""

import logging

from reelsmith.formatting.registry import get_platform_spec
from reelsmith.models.errors import FormatError, ReelsmithError
from reelsmith.models.platform import PlatformMetadata, PlatformOutput, PlatformSpec
from reelsmith.models.video import AssembledVideo
from reelsmith.rendering.backend import DryRunRenderBackend, RenderBackend

logger = logging.getLogger(__name__)


class PlatformFormatter:
    """Maps an assembled video onto each platform's constraints.

    Layout decisions are pure functions of the assembled video and the
    platform table; only the final render goes through the backend.
    """

    def __init__(self, backend: RenderBackend | None = None):
        self.backend = backend or DryRunRenderBackend()

    def layout(
        self, assembled: AssembledVideo, platform: str, metadata: PlatformMetadata
    ) -> PlatformOutput:
        """Compute the platform output without rendering it.

        Raises UnsupportedPlatform for identifiers missing from the table.
        """
        spec = get_platform_spec(platform)
        return PlatformOutput(
            platform=spec.platform,
            aspect_ratio=spec.aspect_ratio,
            duration_secs=min(assembled.duration_secs, spec.max_duration_secs),
            caption_style=spec.caption_style,
            safe_zone=spec.safe_zone,
            brand_position=spec.brand_position,
            metadata=self.optimize_metadata(metadata, spec),
        )

    @staticmethod
    def optimize_metadata(metadata: PlatformMetadata, spec: PlatformSpec) -> PlatformMetadata:
        """Truncate hashtags to the platform ceiling, keeping their order."""
        return metadata.model_copy(update={"hashtags": metadata.hashtags[: spec.max_hashtags]})

    async def format_for_platform(
        self, assembled: AssembledVideo, platform: str, metadata: PlatformMetadata
    ) -> PlatformOutput:
        """Lay out and render one platform output."""
        output = self.layout(assembled, platform, metadata)
        spec = get_platform_spec(output.platform)
        try:
            output_ref = await self.backend.reformat(assembled, spec)
        except ReelsmithError as e:
            if isinstance(e, FormatError):
                raise
            raise FormatError(e.message, platform=spec.platform.value, details=e.details)
        except Exception as e:
            logger.warning(f"Backend reformat failed for {spec.platform.value}: {e}")
            raise FormatError(f"Reformat failed: {e}", platform=spec.platform.value)
        return output.model_copy(update={"output_ref": output_ref})
