"""Job record data model for async generation."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class JobStatus(str, Enum):
    """Status values for generation jobs"""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETE, JobStatus.FAILED)


class JobType(str, Enum):
    """Closed set of job types; each maps to one handler."""
    LEAD_MAGNET_CONTENT = "lead_magnet_content"
    LEAD_MAGNET_IDEAS = "lead_magnet_ideas"
    FUNNEL = "funnel"
    FUNNEL_PRODUCT = "funnel_product"
    SUPPLEMENTARY_CONTENT = "supplementary_content"
    EMAIL_SEQUENCES = "email_sequences"

    @property
    def slug(self) -> str:
        """URL form used by the start/check routes (lead-magnet-content)."""
        return self.value.replace("_", "-")

    @classmethod
    def from_slug(cls, slug: str) -> "JobType":
        return cls(slug.replace("-", "_"))


# Which statuses each status may be entered from.
# processing -> processing is a progress update, not a state change.
ALLOWED_SOURCES: Dict[JobStatus, tuple] = {
    JobStatus.PENDING: (),
    JobStatus.PROCESSING: (JobStatus.PENDING, JobStatus.PROCESSING),
    JobStatus.COMPLETE: (JobStatus.PROCESSING,),
    JobStatus.FAILED: (JobStatus.PENDING, JobStatus.PROCESSING),
}


class JobRecord(BaseModel):
    """Tracks the lifecycle of one generation job (a generation_jobs row)."""
    id: str
    user_id: Optional[str] = None
    job_type: JobType
    status: JobStatus = JobStatus.PENDING
    input_data: Dict[str, Any] = Field(default_factory=dict)
    total_units: int = 0
    completed_units: int = 0
    current_unit_label: Optional[str] = None
    partial_result: Optional[Dict[str, Any]] = None
    result: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None
    failed_at_unit: Optional[str] = None
    retry_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "JobRecord":
        """Build from a store row; NULL counters come back as None."""
        data = dict(row)
        for key in ("total_units", "completed_units", "retry_count"):
            if data.get(key) is None:
                data[key] = 0
        if data.get("input_data") is None:
            data["input_data"] = {}
        return cls.model_validate(data)

    @property
    def progress_percent(self) -> int:
        if self.total_units > 0:
            # Round half up in integer arithmetic
            percent = (200 * self.completed_units + self.total_units) // (2 * self.total_units)
            return min(100, percent)
        return 100 if self.status == JobStatus.COMPLETE else 0

    @property
    def completed_unit_outputs(self) -> Dict[str, Any]:
        """Outputs of the units finished so far, keyed by unit name."""
        if not self.partial_result:
            return {}
        return dict(self.partial_result.get("units") or {})
