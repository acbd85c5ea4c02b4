"""
Error taxonomy for the generation job system.

Every failure that reaches a user is surfaced through the job record
(status=failed + error_message); these classes decide which failures
are retried, which are logged and skipped, and which end the job.
"""

from typing import Optional


# Provider status codes that will not succeed on retry
PERMANENT_FAILURE_CODES = frozenset({400, 401, 403, 404, 413})


class JobError(Exception):
    """Base class for job system errors."""
    pass


class InputValidationError(JobError):
    """Raised when a start request is malformed. No job is created."""
    pass


class JobNotFoundError(JobError):
    """Raised when a job id does not resolve to a record."""

    def __init__(self, job_id: str):
        super().__init__(f"Job not found: {job_id}")
        self.job_id = job_id


class PersistenceError(JobError):
    """Raised when a write to or read from the durable store fails."""
    pass


class DispatchError(JobError):
    """Raised when handing a job to the worker failed outright."""
    pass


class ProviderError(JobError):
    """
    A call to an external generation provider failed.

    Retryable unless the provider answered with a status code that
    cannot succeed on a second attempt (auth, bad request, too large).
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        retryable: Optional[bool] = None
    ):
        super().__init__(message)
        self.status_code = status_code
        if retryable is None:
            retryable = status_code not in PERMANENT_FAILURE_CODES
        self.retryable = retryable


class MalformedProviderResponse(ProviderError):
    """The provider answered, but the answer could not be decoded as JSON."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message, retryable=True)
        self.raw_text = raw_text


class OutputValidationError(ProviderError):
    """Generated content failed structural or length checks."""

    def __init__(self, message: str, failures: Optional[list[str]] = None):
        super().__init__(message, retryable=True)
        self.failures = failures or []


class FatalJobError(JobError):
    """A mandatory sub-task exhausted its retries; the job fails."""

    def __init__(
        self,
        message: str,
        unit: Optional[str] = None,
        retry_count: int = 0
    ):
        super().__init__(message)
        self.unit = unit
        self.retry_count = retry_count
