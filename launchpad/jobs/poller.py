"""Read-only status view of a job, safe to poll at any frequency."""

from typing import Any, Dict, Optional

from .errors import JobNotFoundError
from .lifecycle import JobLifecycleManager
from .models import JobRecord, JobStatus, JobType


def status_payload(job: JobRecord) -> Dict[str, Any]:
    """Shape a job record into the payload the frontend polls for."""
    payload: Dict[str, Any] = {
        "job_id": job.id,
        "job_type": job.job_type.value,
        "status": job.status.value,
        "progress": job.progress_percent,
        "completed_units": job.completed_units,
        "total_units": job.total_units,
        "current_unit_label": job.current_unit_label,
        "retry_count": job.retry_count,
    }

    if job.status == JobStatus.COMPLETE:
        payload["result"] = job.result
        payload["completed_at"] = job.completed_at.isoformat() if job.completed_at else None

    if job.status == JobStatus.FAILED:
        payload["error"] = job.error_message
        payload["failed_at_unit"] = job.failed_at_unit
        payload["partial_result"] = job.partial_result
        payload["can_resume"] = bool(job.completed_unit_outputs) or bool(
            (job.partial_result or {}).get("prepared")
        )

    return payload


class StatusPoller:
    def __init__(self, lifecycle: JobLifecycleManager):
        self.lifecycle = lifecycle

    async def status(self, job_id: str, job_type: Optional[JobType] = None) -> Dict[str, Any]:
        """
        Get the status payload for a job.

        Raises:
            JobNotFoundError: Unknown id, or the job belongs to another job type
        """
        job = await self.lifecycle.read(job_id)
        if job_type is not None and job.job_type != JobType(job_type):
            raise JobNotFoundError(job_id)
        return status_payload(job)
