"""
Centralized logging system for Launchpad.

Every AppLogger call goes to Python logging and to an in-memory buffer.
The buffer also keeps a short timeline per job id, so the admin
dashboard can show what happened to one job (dispatch, claim, each
unit, retries, outcome) without external log aggregation.
"""

import logging
from collections import OrderedDict, deque
from datetime import datetime, timezone
from enum import Enum
from threading import Lock
from typing import Any, Deque, Dict, List, Optional


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def is_error(self) -> bool:
        return self in (LogLevel.ERROR, LogLevel.CRITICAL)


class LogEntry:
    """A single log entry; job_id is lifted out of the metadata when present."""

    __slots__ = ("timestamp", "level", "message", "source", "metadata", "job_id")

    def __init__(
        self,
        level: LogLevel,
        message: str,
        source: str = "system",
        metadata: Optional[Dict[str, Any]] = None
    ):
        self.timestamp = datetime.now(timezone.utc)
        self.level = level
        self.message = message
        self.source = source
        self.metadata = metadata or {}
        job_id = self.metadata.get("job_id")
        self.job_id = str(job_id) if job_id else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "level": self.level.value,
            "source": self.source,
            "job_id": self.job_id,
            "message": self.message,
            "metadata": self.metadata,
        }


class LogBuffer:
    """
    Thread-safe ring buffer of recent entries plus per-job timelines.

    Background tasks and the RQ task share the process-wide buffer with
    the API. Timelines are kept for the most recent max_jobs jobs only.
    """

    def __init__(self, max_size: int = 1000, max_jobs: int = 200, per_job: int = 100):
        self._buffer: Deque[LogEntry] = deque(maxlen=max_size)
        self._jobs: "OrderedDict[str, Deque[LogEntry]]" = OrderedDict()
        self._max_jobs = max_jobs
        self._per_job = per_job
        self._lock = Lock()
        self._counts: Dict[LogLevel, int] = {level: 0 for level in LogLevel}

    def add(self, entry: LogEntry) -> None:
        with self._lock:
            self._buffer.append(entry)
            self._counts[entry.level] += 1
            if entry.job_id:
                timeline = self._jobs.get(entry.job_id)
                if timeline is None:
                    timeline = self._jobs[entry.job_id] = deque(maxlen=self._per_job)
                    if len(self._jobs) > self._max_jobs:
                        self._jobs.popitem(last=False)
                else:
                    self._jobs.move_to_end(entry.job_id)
                timeline.append(entry)

    def get_recent(
        self,
        limit: int = 100,
        level: Optional[LogLevel] = None,
        source: Optional[str] = None,
        job_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Most recent entries first, optionally filtered."""
        with self._lock:
            if job_id:
                entries = list(self._jobs.get(job_id, ()))
            else:
                entries = list(self._buffer)

        if level:
            entries = [e for e in entries if e.level == level]
        if source:
            entries = [e for e in entries if e.source == source]

        return [e.to_dict() for e in reversed(entries)][:limit]

    def get_job_timeline(self, job_id: str) -> List[Dict[str, Any]]:
        """Every retained entry for one job, oldest first."""
        with self._lock:
            entries = list(self._jobs.get(job_id, ()))
        return [e.to_dict() for e in entries]

    def get_errors(self, limit: int = 50) -> List[Dict[str, Any]]:
        with self._lock:
            entries = [e for e in self._buffer if e.level.is_error]
        return [e.to_dict() for e in reversed(entries)][:limit]

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            by_source: Dict[str, int] = {}
            for entry in self._buffer:
                by_source[entry.source] = by_source.get(entry.source, 0) + 1
            return {
                "total": len(self._buffer),
                "by_level": {level.value: n for level, n in self._counts.items() if n},
                "by_source": by_source,
                "error_count": self._counts[LogLevel.ERROR] + self._counts[LogLevel.CRITICAL],
                "warning_count": self._counts[LogLevel.WARNING],
                "jobs_tracked": len(self._jobs),
            }

    def clear(self) -> None:
        with self._lock:
            self._buffer.clear()
            self._jobs.clear()
            self._counts = {level: 0 for level in LogLevel}


_log_buffer = LogBuffer()


def get_log_buffer() -> LogBuffer:
    return _log_buffer


class AppLogger:
    """
    Logs to both Python logging and the in-memory buffer.

    Keyword arguments become entry metadata; pass job_id=... to put the
    entry on that job's timeline.
    """

    def __init__(self, source: str):
        self.source = source
        self._logger = logging.getLogger(f"launchpad.{source}")

    def _log(self, level: LogLevel, message: str, metadata: Dict[str, Any]) -> None:
        _log_buffer.add(LogEntry(level, message, self.source, metadata))
        if metadata:
            context = " ".join(f"{k}={v}" for k, v in metadata.items())
            message = f"{message} | {context}"
        self._logger.log(getattr(logging, level.name), message)

    def debug(self, message: str, **metadata):
        self._log(LogLevel.DEBUG, message, metadata)

    def info(self, message: str, **metadata):
        self._log(LogLevel.INFO, message, metadata)

    def warning(self, message: str, **metadata):
        self._log(LogLevel.WARNING, message, metadata)

    def error(self, message: str, **metadata):
        self._log(LogLevel.ERROR, message, metadata)

    def critical(self, message: str, **metadata):
        self._log(LogLevel.CRITICAL, message, metadata)


def get_logger(source: str) -> AppLogger:
    return AppLogger(source)


def configure_logging(level: str = "INFO") -> None:
    """Attach a stream handler to the package logger (idempotent)."""
    package_logger = logging.getLogger("launchpad")
    package_logger.setLevel(level.upper())
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s [%(name)s] %(message)s"
        ))
        package_logger.addHandler(handler)


# Loggers per stage of a job's life
job_logger = AppLogger("job_lifecycle")
dispatch_logger = AppLogger("dispatch")
worker_logger = AppLogger("worker")
provider_logger = AppLogger("provider")
api_logger = AppLogger("api")
