"""
Job Lifecycle Manager

Creates, reads, and transitions generation job records. Every
transition is a conditional write that only applies when the record is
still in one of the states it may legally be entered from, so a late
update can never move a job out of a terminal state.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any, Iterable
from uuid import uuid4

from launchpad.database.jobs import JobStore
from launchpad.utils.logging import job_logger as log
from .errors import JobNotFoundError, PersistenceError
from .models import ALLOWED_SOURCES, JobRecord, JobStatus, JobType


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class JobLifecycleManager:
    """Owns every read and write of generation job records."""

    def __init__(self, store: JobStore):
        self.store = store

    # =========================================================================
    # Creation / Retrieval
    # =========================================================================

    async def create(
        self,
        job_type: JobType,
        input_data: Dict[str, Any],
        owner_id: Optional[str],
        *,
        partial_result: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Insert a new pending job and return its id.

        Raises:
            PersistenceError: If the store could not be written
        """
        job_id = str(uuid4())
        row = {
            "id": job_id,
            "user_id": owner_id,
            "job_type": JobType(job_type).value,
            "status": JobStatus.PENDING.value,
            "input_data": input_data,
            "total_units": 0,
            "completed_units": 0,
            "retry_count": 0,
            "partial_result": partial_result,
        }
        await self.store.insert(row)
        log.info(f"Created {JobType(job_type).value} job", job_id=job_id, user_id=owner_id)
        return job_id

    async def read(self, job_id: str) -> JobRecord:
        """
        Get a job record.

        Raises:
            JobNotFoundError: If no job has this id
            PersistenceError: If the store could not be read
        """
        row = await self.store.get(job_id)
        if row is None:
            raise JobNotFoundError(job_id)
        return JobRecord.from_row(row)

    # =========================================================================
    # Transitions
    # =========================================================================

    async def transition(
        self,
        job_id: str,
        new_status: JobStatus,
        fields: Optional[Dict[str, Any]] = None,
        *,
        status_in: Optional[Iterable[JobStatus]] = None,
        unclaimed_only: bool = False,
    ) -> Optional[JobRecord]:
        """
        Move a job to new_status and set any of its progress/result/error fields.

        Returns the updated record, or None when the job was not in an
        allowed source state or the store write failed. Store failures
        are logged, never raised.
        """
        new_status = JobStatus(new_status)
        fields = dict(fields or {})

        if new_status == JobStatus.PENDING:
            raise ValueError("Jobs cannot be transitioned back to pending")
        if "result" in fields and new_status != JobStatus.COMPLETE:
            raise ValueError("result may only be set on complete")
        if "error_message" in fields and new_status != JobStatus.FAILED:
            raise ValueError("error_message may only be set on failed")

        allowed = tuple(status_in) if status_in is not None else ALLOWED_SOURCES[new_status]
        data = {"status": new_status.value, **fields}
        if new_status.is_terminal:
            data.setdefault("completed_at", _now())

        try:
            row = await self.store.update(
                job_id,
                data,
                status_in=[s.value for s in allowed],
                unclaimed_only=unclaimed_only,
                completed_units_at_most=fields.get("completed_units"),
            )
        except PersistenceError as e:
            log.error(
                f"Transition to {new_status.value} not saved: {e}",
                job_id=job_id
            )
            return None

        if row is None:
            log.warning(
                f"Transition to {new_status.value} skipped; job not in {[s.value for s in allowed]}",
                job_id=job_id
            )
            return None
        return JobRecord.from_row(row)

    async def claim(self, job_id: str) -> Optional[JobRecord]:
        """Claim a job for a worker. None if another worker already started it."""
        return await self.transition(
            job_id,
            JobStatus.PROCESSING,
            {"started_at": _now(), "current_unit_label": "Starting..."},
            unclaimed_only=True,
        )

    async def mark_dispatched(self, job_id: str) -> Optional[JobRecord]:
        """Optimistically show a job as processing after an unacknowledged dispatch."""
        return await self.transition(
            job_id,
            JobStatus.PROCESSING,
            status_in=(JobStatus.PENDING,),
        )

    async def update_label(
        self,
        job_id: str,
        label: str,
        *,
        retry_count: Optional[int] = None
    ) -> Optional[JobRecord]:
        fields: Dict[str, Any] = {"current_unit_label": label}
        if retry_count is not None:
            fields["retry_count"] = retry_count
        return await self.transition(job_id, JobStatus.PROCESSING, fields)

    async def record_progress(
        self,
        job_id: str,
        completed_units: int,
        *,
        total_units: Optional[int] = None,
        partial_result: Optional[Dict[str, Any]] = None,
        retry_count: Optional[int] = None,
        label: Optional[str] = None,
    ) -> Optional[JobRecord]:
        """Write progress; completed_units and partial_result land in one write."""
        fields: Dict[str, Any] = {"completed_units": completed_units}
        if total_units is not None:
            fields["total_units"] = total_units
        if partial_result is not None:
            fields["partial_result"] = partial_result
        if retry_count is not None:
            fields["retry_count"] = retry_count
        if label is not None:
            fields["current_unit_label"] = label
        return await self.transition(job_id, JobStatus.PROCESSING, fields)

    async def complete(
        self,
        job_id: str,
        result: Dict[str, Any],
        *,
        retry_count: Optional[int] = None
    ) -> Optional[JobRecord]:
        fields: Dict[str, Any] = {
            "result": result,
            "current_unit_label": "Complete",
        }
        if retry_count is not None:
            fields["retry_count"] = retry_count
        record = await self.transition(job_id, JobStatus.COMPLETE, fields)
        if record:
            log.info("Job complete", job_id=job_id)
        return record

    async def fail(
        self,
        job_id: str,
        error_message: str,
        *,
        failed_at_unit: Optional[str] = None,
        partial_result: Optional[Dict[str, Any]] = None,
        retry_count: Optional[int] = None,
    ) -> Optional[JobRecord]:
        fields: Dict[str, Any] = {"error_message": error_message}
        if failed_at_unit is not None:
            fields["failed_at_unit"] = failed_at_unit
        if partial_result is not None:
            fields["partial_result"] = partial_result
        if retry_count is not None:
            fields["retry_count"] = retry_count
        record = await self.transition(job_id, JobStatus.FAILED, fields)
        if record:
            log.error(f"Job failed: {error_message}", job_id=job_id, failed_at_unit=failed_at_unit)
        return record
