"""
Job handler interface.

A handler turns one job type's input into an ordered list of sub-tasks,
then assembles their outputs into the final result and writes it onto
the owning domain record.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from launchpad.jobs.errors import InputValidationError
from launchpad.jobs.models import JobRecord, JobType

T = TypeVar("T")

# run(outputs) receives the outputs of the units finished before it
UnitRunner = Callable[[Dict[str, Any]], Awaitable[Any]]
RetryRunner = Callable[[str, Callable[[], Awaitable[Any]]], Awaitable[Any]]


@dataclass
class SubTask:
    """One named, ordered unit of work within a job."""
    name: str
    label: str
    run: UnitRunner
    optional: bool = False
    validate: Optional[Callable[[Any], None]] = None


@dataclass
class JobContext:
    """What a handler sees of the job it is working on."""
    job: JobRecord
    retry: RetryRunner
    # Unit outputs finished so far, kept current by the worker
    outputs: Dict[str, Any] = field(default_factory=dict)

    @property
    def job_id(self) -> str:
        return self.job.id

    @property
    def user_id(self) -> Optional[str]:
        return self.job.user_id

    @property
    def input_data(self) -> Dict[str, Any]:
        return self.job.input_data

    @property
    def language(self) -> str:
        return self.input_data.get("language") or "English"


def require(data: Dict[str, Any], *path: str) -> Any:
    """Get a nested input value or raise InputValidationError naming it."""
    value: Any = data
    for key in path:
        if not isinstance(value, dict) or value.get(key) in (None, "", [], {}):
            raise InputValidationError(f"Missing required field: {'.'.join(path)}")
        value = value[key]
    return value


class JobHandler(ABC):
    job_type: JobType

    def validate(self, input_data: Dict[str, Any]) -> None:
        """Raise InputValidationError if input_data cannot start a job."""
        if not isinstance(input_data, dict):
            raise InputValidationError("input_data must be an object")

    async def prepare(self, ctx: JobContext) -> Dict[str, Any]:
        """Work that decides the unit list (e.g. an outline). Stored for resumption."""
        return {}

    @abstractmethod
    def plan(self, ctx: JobContext, prepared: Dict[str, Any]) -> List[SubTask]:
        ...

    @abstractmethod
    def assemble(
        self,
        ctx: JobContext,
        prepared: Dict[str, Any],
        outputs: Dict[str, Any]
    ) -> Dict[str, Any]:
        ...

    async def persist(self, ctx: JobContext, result: Dict[str, Any]) -> Optional[bool]:
        """
        Write the result onto the owning domain record.

        Returns None when this job type has nothing to write.
        Raises PersistenceError when the write fails.
        """
        return None
