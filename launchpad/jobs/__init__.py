"""
Async generation jobs.

A start request creates a pending job record, the dispatcher hands it to
a worker, the worker runs the job's sub-tasks and records progress, and
the client polls the record until it reaches complete or failed.

Submodules:
- models: job record, status and type enums, allowed transitions
- errors: error taxonomy
- lifecycle: conditional reads and writes of job records
- dispatcher: HTTP and RQ hand-off with an acknowledgment window
- worker: sub-task execution with retries and partial results
- poller: read-only status payloads
- handlers: per-job-type generation logic
"""

from .errors import (
    DispatchError,
    FatalJobError,
    InputValidationError,
    JobError,
    JobNotFoundError,
    MalformedProviderResponse,
    OutputValidationError,
    PersistenceError,
    ProviderError,
)
from .models import ALLOWED_SOURCES, JobRecord, JobStatus, JobType

__all__ = [
    "ALLOWED_SOURCES",
    "JobRecord",
    "JobStatus",
    "JobType",
    "JobError",
    "InputValidationError",
    "JobNotFoundError",
    "PersistenceError",
    "DispatchError",
    "ProviderError",
    "MalformedProviderResponse",
    "OutputValidationError",
    "FatalJobError",
]
