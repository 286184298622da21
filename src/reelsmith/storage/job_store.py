"""Job snapshot persistence (JSON-based)."""

import logging
from pathlib import Path

from reelsmith.models.job import Job

logger = logging.getLogger(__name__)


class JobStore:
    """Stores and retrieves job snapshots as one JSON file per job."""

    def __init__(self, base_dir: Path):
        self.base_dir = base_dir
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, job_id: str) -> Path:
        return self.base_dir / f"{job_id}.json"

    def save(self, job: Job) -> Path:
        """Write a snapshot, replacing any previous one atomically."""
        path = self._path(job.id)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(job.model_dump_json(indent=2))
        tmp.replace(path)
        return path

    def load(self, job_id: str) -> Job:
        path = self._path(job_id)
        if not path.exists():
            raise FileNotFoundError(f"Job snapshot not found: {path}")
        return Job.model_validate_json(path.read_text())

    def load_all(self) -> list[Job]:
        """Load every readable snapshot; unreadable files are skipped."""
        jobs = []
        for path in sorted(self.base_dir.glob("*.json")):
            try:
                jobs.append(Job.model_validate_json(path.read_text()))
            except ValueError as e:
                logger.warning(f"Skipping unreadable job snapshot {path.name}: {e}")
        return jobs

    def delete(self, job_id: str) -> None:
        path = self._path(job_id)
        if path.exists():
            path.unlink()
            logger.info(f"Deleted stored snapshot for job {job_id}")
