"""Static per-platform formatting constraints."""

from types import MappingProxyType

from reelsmith.models.errors import UnsupportedPlatform
from reelsmith.models.platform import BrandPosition, Platform, PlatformSpec, SafeZone

# One row per platform. Adding a platform means adding a Platform member and a row here.
PLATFORM_SPECS: MappingProxyType[Platform, PlatformSpec] = MappingProxyType(
    {
        Platform.TIKTOK: PlatformSpec(
            platform=Platform.TIKTOK,
            aspect_ratio="9:16",
            max_duration_secs=60.0,
            caption_style="large-centered",
            safe_zone=SafeZone(top=0.15, bottom=0.15, left=0.05, right=0.05),
            max_hashtags=5,
            brand_position=BrandPosition(x=0.05, y=0.9),
        ),
        Platform.REELS: PlatformSpec(
            platform=Platform.REELS,
            aspect_ratio="9:16",
            max_duration_secs=90.0,
            caption_style="bottom-aligned",
            safe_zone=SafeZone(top=0.05, bottom=0.2, left=0.05, right=0.05),
            max_hashtags=15,
            brand_position=BrandPosition(x=0.95, y=0.05),
        ),
        Platform.SHORTS: PlatformSpec(
            platform=Platform.SHORTS,
            aspect_ratio="9:16",
            max_duration_secs=60.0,
            caption_style="side-aligned",
            safe_zone=SafeZone(top=0.07, bottom=0.15, left=0.05, right=0.05),
            max_hashtags=10,
            brand_position=BrandPosition(x=0.05, y=0.05),
        ),
    }
)


def get_platform_spec(platform: str | Platform) -> PlatformSpec:
    """Look up the constraints for a platform identifier."""
    try:
        key = Platform(str(platform).strip().lower())
    except ValueError:
        raise UnsupportedPlatform(str(platform))
    spec = PLATFORM_SPECS.get(key)
    if spec is None:
        raise UnsupportedPlatform(str(platform))
    return spec


def supported_platforms() -> list[Platform]:
    """Platforms with a row in the table, in declaration order."""
    return list(PLATFORM_SPECS)
