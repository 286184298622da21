"""Dependency injection providers for FastAPI."""

from functools import lru_cache

from reelsmith.pipeline.manager import PipelineManager


@lru_cache
def get_pipeline_manager() -> PipelineManager:
    return PipelineManager()
