"""Video generation provider capability."""

import hashlib
import itertools
from abc import ABC, abstractmethod
from typing import Literal

Consistency = Literal["low", "medium", "high"]


class GenerationProvider(ABC):
    """Network video-synthesis service, reduced to one call.

    Implementations may raise any exception; callers treat every failure
    as retryable.
    """

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        style_reference: str | None,
        duration_secs: float,
        consistency: Consistency,
    ) -> str:
        """Generate one clip and return the provider's artifact reference."""
        ...


class DryRunGenerationProvider(GenerationProvider):
    """Returns deterministic artifact references without calling any service."""

    def __init__(self):
        self._counter = itertools.count()

    async def generate(
        self,
        prompt: str,
        style_reference: str | None,
        duration_secs: float,
        consistency: Consistency,
    ) -> str:
        key = f"{prompt}|{style_reference or ''}|{duration_secs:.3f}|{consistency}"
        digest = hashlib.sha1(key.encode()).hexdigest()[:12]
        return f"dryrun://segment/{digest}-{next(self._counter)}"
