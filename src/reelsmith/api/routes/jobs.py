"""Job submission and status endpoints."""

from fastapi import APIRouter, Depends, Response

from reelsmith.api.dependencies import get_pipeline_manager
from reelsmith.models.job import Job, JobConfig
from reelsmith.pipeline.manager import PipelineManager

router = APIRouter(prefix="/api/v1", tags=["jobs"])


@router.post("/jobs", status_code=202)
async def submit_job(
    config: JobConfig,
    manager: PipelineManager = Depends(get_pipeline_manager),
):
    """Submit a content request; processing continues in the background."""
    job_id = manager.submit(config)
    return {
        "job_id": job_id,
        "status": "pending",
        "message": "Video generation started",
    }


@router.get("/jobs")
async def list_jobs(manager: PipelineManager = Depends(get_pipeline_manager)) -> list[Job]:
    """List all jobs, newest first."""
    return manager.list_jobs()


@router.get("/jobs/{job_id}")
async def get_job(job_id: str, manager: PipelineManager = Depends(get_pipeline_manager)) -> Job:
    """Get the current snapshot of a job."""
    return manager.get_status(job_id)


@router.post("/jobs/{job_id}/cancel")
async def cancel_job(job_id: str, manager: PipelineManager = Depends(get_pipeline_manager)) -> Job:
    """Cancel a running job."""
    return manager.cancel(job_id)


@router.post("/jobs/{job_id}/retry", status_code=202)
async def retry_job(job_id: str, manager: PipelineManager = Depends(get_pipeline_manager)) -> Job:
    """Resume a failed job from the stage it failed in."""
    return manager.retry(job_id)


@router.delete("/jobs/{job_id}", status_code=204)
async def delete_job(job_id: str, manager: PipelineManager = Depends(get_pipeline_manager)):
    """Delete a finished job."""
    manager.delete(job_id)
    return Response(status_code=204)
