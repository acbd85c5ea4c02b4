"""Test fixtures: in-memory job store, scripted generator and dispatcher.

FakeJobStore applies the same guards as the Supabase-backed JobStore
(status_in, unclaimed_only, completed_units_at_most), so lifecycle and
worker tests exercise the real conditional-write behaviour without a
database. FakeGenerator answers by system prompt from a script of
values and exceptions.
"""

import copy
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from launchpad.jobs.dispatcher import Dispatcher, DispatchOutcome, DispatchResult
from launchpad.jobs.errors import PersistenceError
from launchpad.jobs.lifecycle import JobLifecycleManager
from launchpad.jobs.retry import RetryPolicy


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class FakeJobStore:
    """In-memory stand-in for launchpad.database.jobs.JobStore."""

    def __init__(self):
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.updates: List[Dict[str, Any]] = []
        self.fail_writes = False
        self.fail_reads = False

    async def insert(self, row: Dict[str, Any]) -> Dict[str, Any]:
        if self.fail_writes:
            raise PersistenceError("store unavailable")
        stored = {
            "started_at": None,
            "completed_at": None,
            "current_unit_label": None,
            "result": None,
            "error_message": None,
            "failed_at_unit": None,
            **copy.deepcopy(row),
            "created_at": _now(),
            "updated_at": _now(),
        }
        self.rows[row["id"]] = stored
        return copy.deepcopy(stored)

    async def get(self, job_id: str) -> Optional[Dict[str, Any]]:
        if self.fail_reads:
            raise PersistenceError("store unavailable")
        row = self.rows.get(job_id)
        return copy.deepcopy(row) if row else None

    async def get_recent(self, user_id: Optional[str] = None, limit: int = 20) -> List[Dict[str, Any]]:
        rows = [r for r in self.rows.values() if not user_id or r["user_id"] == user_id]
        rows.sort(key=lambda r: r["created_at"], reverse=True)
        return copy.deepcopy(rows[:limit])

    async def get_status_counts(self) -> Dict[str, int]:
        counts = {"pending": 0, "processing": 0, "complete": 0, "failed": 0}
        for row in self.rows.values():
            counts[row["status"]] += 1
        return {"total": len(self.rows), **counts}

    async def update(
        self,
        job_id: str,
        fields: Dict[str, Any],
        *,
        status_in=None,
        unclaimed_only: bool = False,
        completed_units_at_most: Optional[int] = None,
    ) -> Optional[Dict[str, Any]]:
        if self.fail_writes:
            raise PersistenceError("store unavailable")
        row = self.rows.get(job_id)
        if row is None:
            return None
        if status_in is not None and row["status"] not in list(status_in):
            return None
        if unclaimed_only and row.get("started_at") is not None:
            return None
        if completed_units_at_most is not None and row["completed_units"] > completed_units_at_most:
            return None

        row.update(copy.deepcopy(fields))
        row["updated_at"] = _now()
        self.updates.append(copy.deepcopy(fields))
        return copy.deepcopy(row)

    def labels(self) -> List[str]:
        return [u["current_unit_label"] for u in self.updates if "current_unit_label" in u]


class FakeGenerator:
    """
    Scripted ContentGenerator.

    script maps a system prompt to a list of outcomes. Each call pops the
    next outcome; the last one repeats. Exceptions are raised, callables
    are called with the prompt, anything else is returned.
    """

    def __init__(self, script: Optional[Dict[str, List[Any]]] = None):
        self.script = {k: list(v) for k, v in (script or {}).items()}
        self.calls: List[Dict[str, Any]] = []

    def _next(self, prompt: str, system: Optional[str]) -> Any:
        self.calls.append({"prompt": prompt, "system": system})
        outcomes = self.script.get(system)
        if not outcomes:
            raise AssertionError(f"Unscripted generator call for system prompt: {system!r:.60}")
        outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return outcome(prompt)
        return copy.deepcopy(outcome)

    async def generate_json(self, prompt, *, system=None, max_tokens=4000, expect=dict):
        return self._next(prompt, system)

    async def complete(self, prompt, *, system=None, max_tokens=4000):
        return self._next(prompt, system)

    def calls_for(self, system: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["system"] == system]


class FakeDispatcher(Dispatcher):
    def __init__(self, outcome: DispatchOutcome = DispatchOutcome.ACKNOWLEDGED, reason: Optional[str] = None):
        self.outcome = outcome
        self.reason = reason
        self.dispatched: List[str] = []

    async def dispatch(self, job_id, payload=None):
        self.dispatched.append(job_id)
        return DispatchResult(self.outcome, self.reason)


class RecordingSleep:
    """Replaces asyncio.sleep in retry loops; records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def words(n: int, word: str = "lorem") -> str:
    return " ".join([word] * n)


@pytest.fixture
def store() -> FakeJobStore:
    return FakeJobStore()


@pytest.fixture
def lifecycle(store) -> JobLifecycleManager:
    return JobLifecycleManager(store)


@pytest.fixture
def policy() -> RetryPolicy:
    return RetryPolicy(max_attempts=3, initial_delay=5.0, multiplier=2.0, max_delay=60.0, timeout=None)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()
