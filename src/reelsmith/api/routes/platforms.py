"""Platform table endpoint."""

from fastapi import APIRouter

from reelsmith.formatting.registry import PLATFORM_SPECS
from reelsmith.models.platform import PlatformSpec

router = APIRouter(prefix="/api/v1", tags=["platforms"])


@router.get("/platforms")
async def list_platforms() -> list[PlatformSpec]:
    """Formatting constraints for every supported platform."""
    return list(PLATFORM_SPECS.values())
