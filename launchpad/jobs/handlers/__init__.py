"""Job handlers, one per job type."""

from .base import JobContext, JobHandler, SubTask
from .registry import build_handlers

__all__ = ["JobContext", "JobHandler", "SubTask", "build_handlers"]
