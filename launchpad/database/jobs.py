"""
Job Store

Persists generation job records in the Supabase `generation_jobs` table.
All writes are scoped to one job id and guarded by the caller's
expectations about the row (status, claim, progress), so a late write
can never overwrite a newer state.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any, List, Iterable
from uuid import UUID

from supabase import Client

from launchpad.jobs.errors import PersistenceError
from .client import get_supabase_admin_client

TABLE = "generation_jobs"

STATUS_COLUMNS = (
    "id, user_id, job_type, status, total_units, completed_units, "
    "current_unit_label, retry_count, error_message, failed_at_unit, "
    "created_at, updated_at, started_at, completed_at"
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _is_uuid(value: str) -> bool:
    try:
        UUID(str(value))
        return True
    except ValueError:
        return False


class JobStore:
    """
    Service class for job record persistence.

    Every method raises PersistenceError when the store is unreachable
    or rejects the query; callers decide whether that is fatal.
    """

    def __init__(self, client: Optional[Client] = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_admin_client()
        return self._client

    # =========================================================================
    # Creation
    # =========================================================================

    async def insert(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a new job row and return it as stored."""
        now = _now()
        data = {"created_at": now, "updated_at": now, **row}
        try:
            result = self.client.table(TABLE).insert(data).execute()
        except Exception as e:
            raise PersistenceError(f"Failed to create job: {e}") from e

        if not result.data:
            raise PersistenceError("Failed to create job: store returned no row")
        return result.data[0]

    # =========================================================================
    # Retrieval
    # =========================================================================

    async def get(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Get a job by id, or None if no such job exists."""
        # Postgres rejects malformed uuids with an error; that is a miss, not an outage
        if not _is_uuid(job_id):
            return None

        try:
            result = (
                self.client.table(TABLE)
                .select("*")
                .eq("id", str(job_id))
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Failed to read job {job_id}: {e}") from e

        return result.data[0] if result.data else None

    async def get_recent(
        self,
        user_id: Optional[str] = None,
        limit: int = 20
    ) -> List[Dict[str, Any]]:
        """Get recent jobs, optionally for one owner."""
        try:
            query = (
                self.client.table(TABLE)
                .select(STATUS_COLUMNS)
                .order("created_at", desc=True)
                .limit(limit)
            )
            if user_id:
                query = query.eq("user_id", user_id)
            result = query.execute()
        except Exception as e:
            raise PersistenceError(f"Failed to list jobs: {e}") from e
        return result.data

    async def get_status_counts(self) -> Dict[str, int]:
        """Count jobs by status for the admin dashboard."""
        try:
            result = self.client.table(TABLE).select("status").execute()
        except Exception as e:
            raise PersistenceError(f"Failed to count jobs: {e}") from e

        counts = {"pending": 0, "processing": 0, "complete": 0, "failed": 0}
        for row in result.data:
            status = row.get("status")
            if status in counts:
                counts[status] += 1
        return {"total": len(result.data), **counts}

    # =========================================================================
    # Conditional Updates
    # =========================================================================

    async def update(
        self,
        job_id: str,
        fields: Dict[str, Any],
        *,
        status_in: Optional[Iterable[str]] = None,
        unclaimed_only: bool = False,
        completed_units_at_most: Optional[int] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Update a job row if it still matches the given guards.

        Args:
            job_id: Job to update
            fields: Columns to set (updated_at is added)
            status_in: Only update if the current status is one of these
            unclaimed_only: Only update if no worker has claimed the job yet
            completed_units_at_most: Only update if progress would not go backwards

        Returns:
            The updated row, or None if no row matched the guards
        """
        data = {**fields, "updated_at": _now()}
        try:
            query = self.client.table(TABLE).update(data).eq("id", str(job_id))
            if status_in is not None:
                query = query.in_("status", list(status_in))
            if unclaimed_only:
                query = query.is_("started_at", "null")
            if completed_units_at_most is not None:
                query = query.lte("completed_units", completed_units_at_most)
            result = query.execute()
        except Exception as e:
            raise PersistenceError(f"Failed to update job {job_id}: {e}") from e

        return result.data[0] if result.data else None
