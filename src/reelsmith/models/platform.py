"""Platform constraint and platform output models."""

from enum import StrEnum

from pydantic import BaseModel, Field, field_validator


class Platform(StrEnum):
    """Distribution platforms with a row in the platform table."""

    TIKTOK = "tiktok"
    REELS = "reels"
    SHORTS = "shorts"


class SafeZone(BaseModel):
    """Fractions of the frame kept clear of text on each edge."""

    model_config = {"frozen": True}

    top: float = Field(..., ge=0, lt=0.5)
    bottom: float = Field(..., ge=0, lt=0.5)
    left: float = Field(..., ge=0, lt=0.5)
    right: float = Field(..., ge=0, lt=0.5)


class BrandPosition(BaseModel):
    """Normalized anchor point for brand overlays."""

    model_config = {"frozen": True}

    x: float = Field(..., ge=0, le=1)
    y: float = Field(..., ge=0, le=1)


class PlatformSpec(BaseModel):
    """Formatting constraints for one distribution platform."""

    model_config = {"frozen": True}

    platform: Platform
    aspect_ratio: str = Field(..., pattern=r"^\d+:\d+$")
    max_duration_secs: float = Field(..., gt=0)
    caption_style: str = Field(..., min_length=1)
    safe_zone: SafeZone
    max_hashtags: int = Field(..., ge=0)
    brand_position: BrandPosition

    @property
    def resolution(self) -> tuple[int, int]:
        """Output (width, height) with the short edge at 1080px."""
        w, h = (int(p) for p in self.aspect_ratio.split(":"))
        if w <= h:
            return 1080, round(1080 * h / w)
        return round(1080 * w / h), 1080


class PlatformMetadata(BaseModel):
    """Post metadata shared by every platform output."""

    hashtags: list[str] = Field(default_factory=list)
    description: str = Field(default="")

    @field_validator("hashtags")
    @classmethod
    def strip_hashtags(cls, v: list[str]) -> list[str]:
        return [tag.strip() for tag in v if tag.strip()]


class PlatformOutput(BaseModel):
    """One formatted output for one platform."""

    platform: Platform
    output_ref: str | None = Field(default=None, description="Backend reference to the rendered file")
    aspect_ratio: str
    duration_secs: float = Field(..., ge=0)
    caption_style: str
    safe_zone: SafeZone
    brand_position: BrandPosition
    metadata: PlatformMetadata
