"""
Worker executor for generation jobs.

Claims a job, runs its sub-tasks in order with bounded retries, writes
progress after each one, and finishes the job as complete or failed.
execute() never raises: every outcome ends up on the job record.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from launchpad.utils.logging import worker_logger as log
from .errors import FatalJobError, InputValidationError, JobNotFoundError, PersistenceError
from .handlers.base import JobContext, JobHandler, SubTask
from .lifecycle import JobLifecycleManager
from .models import JobRecord, JobType
from .retry import RetriesExhausted, RetryPolicy, run_with_retry


@dataclass
class ExecutionState:
    """Everything the worker has produced so far for one job."""
    prepared: Optional[Dict[str, Any]] = None
    outputs: Dict[str, Any] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)
    retry_count: int = 0

    @classmethod
    def from_job(cls, job: JobRecord) -> "ExecutionState":
        partial = job.partial_result or {}
        return cls(
            prepared=partial.get("prepared"),
            outputs=dict(partial.get("units") or {}),
            skipped=list(partial.get("skipped") or []),
            retry_count=job.retry_count,
        )

    def partial_result(self) -> Dict[str, Any]:
        return {
            "prepared": self.prepared,
            "units": dict(self.outputs),
            "skipped": list(self.skipped),
        }

    def is_done(self, unit: SubTask) -> bool:
        return unit.name in self.outputs or unit.name in self.skipped


class WorkerExecutor:
    """Runs one job to completion or failure."""

    def __init__(
        self,
        lifecycle: JobLifecycleManager,
        handlers: Mapping[JobType, JobHandler],
        policy: Optional[RetryPolicy] = None,
        *,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ):
        self.lifecycle = lifecycle
        self.handlers = handlers
        self.policy = policy or RetryPolicy.from_config()
        self._sleep = sleep

    async def execute(self, job_id: str) -> None:
        start_time = time.time()

        try:
            job = await self.lifecycle.read(job_id)
        except JobNotFoundError:
            log.error("Worker received unknown job", job_id=job_id)
            return
        except PersistenceError as e:
            log.error(f"Worker could not read job: {e}", job_id=job_id)
            return

        if job.status.is_terminal:
            log.info(f"Job already {job.status.value}, skipping", job_id=job_id)
            return

        handler = self.handlers.get(job.job_type)
        if handler is None:
            await self.lifecycle.fail(job_id, f"No handler for job type {job.job_type.value}")
            return

        try:
            handler.validate(job.input_data)
        except InputValidationError as e:
            await self.lifecycle.fail(job_id, f"Invalid input: {e}")
            return

        claimed = await self.lifecycle.claim(job_id)
        if claimed is None:
            log.info("Job already claimed by another worker", job_id=job_id)
            return

        state = ExecutionState.from_job(claimed)
        log.info(
            f"Processing {job.job_type.value} job",
            job_id=job_id,
            resumed_units=len(state.outputs)
        )

        try:
            await self._run(claimed, handler, state)
        except FatalJobError as e:
            await self.lifecycle.fail(
                job_id,
                str(e),
                failed_at_unit=e.unit,
                partial_result=state.partial_result(),
                retry_count=state.retry_count,
            )
        except Exception as e:
            log.error(f"Unexpected worker error: {e!r}", job_id=job_id)
            await self.lifecycle.fail(
                job_id,
                f"Generation failed: {e}",
                partial_result=state.partial_result(),
                retry_count=state.retry_count,
            )
        finally:
            log.info(f"Worker finished in {time.time() - start_time:.1f}s", job_id=job_id)

    async def _run(self, job: JobRecord, handler: JobHandler, state: ExecutionState) -> None:
        job_id = job.id

        async def retry(label: str, fn: Callable[[], Awaitable[Any]]) -> Any:
            return await self._attempt(job_id, label, fn, state)

        ctx = JobContext(job=job, retry=retry, outputs=state.outputs)

        if state.prepared is None:
            try:
                state.prepared = await handler.prepare(ctx)
            except RetriesExhausted as e:
                raise FatalJobError(
                    f"Preparation failed: {e.last_error}",
                    unit="prepare",
                    retry_count=state.retry_count,
                ) from e.last_error
            await self.lifecycle.record_progress(
                job_id, 0, partial_result=state.partial_result()
            )

        units = handler.plan(ctx, state.prepared)
        completed = sum(1 for unit in units if state.is_done(unit))
        await self.lifecycle.record_progress(job_id, completed, total_units=len(units))

        for unit in units:
            if state.is_done(unit):
                continue

            await self.lifecycle.update_label(job_id, unit.label)
            try:
                value = await self._attempt(
                    job_id, unit.label, lambda unit=unit: self._run_unit(unit, state), state
                )
            except RetriesExhausted as e:
                if not unit.optional:
                    raise FatalJobError(
                        f"{unit.label} failed after {e.attempts} attempt(s): {e.last_error}",
                        unit=unit.name,
                        retry_count=state.retry_count,
                    ) from e.last_error
                log.warning(
                    f"Optional unit {unit.name} skipped: {e.last_error}",
                    job_id=job_id
                )
                state.skipped.append(unit.name)
            else:
                state.outputs[unit.name] = value

            completed += 1
            await self.lifecycle.record_progress(
                job_id,
                completed,
                total_units=len(units),
                partial_result=state.partial_result(),
                retry_count=state.retry_count,
            )

        await self.lifecycle.update_label(job_id, "Saving...")
        result = handler.assemble(ctx, state.prepared, dict(state.outputs))
        if state.skipped:
            result["skipped_units"] = list(state.skipped)

        try:
            persisted = await handler.persist(ctx, result)
        except PersistenceError as e:
            log.error(f"Domain write failed: {e}", job_id=job_id)
            result["persisted"] = False
        else:
            if persisted is not None:
                result["persisted"] = bool(persisted)

        await self.lifecycle.complete(job_id, result, retry_count=state.retry_count)

    async def _run_unit(self, unit: SubTask, state: ExecutionState) -> Any:
        value = await unit.run(dict(state.outputs))
        if unit.validate is not None:
            unit.validate(value)
        return value

    async def _attempt(
        self,
        job_id: str,
        label: str,
        fn: Callable[[], Awaitable[Any]],
        state: ExecutionState,
    ) -> Any:
        async def on_retry(retry_number: int, error: BaseException) -> None:
            state.retry_count += 1
            log.warning(
                f"{label} attempt {retry_number} failed: {error}",
                job_id=job_id
            )
            await self.lifecycle.update_label(
                job_id,
                f"{label} (Retry {retry_number}/{self.policy.max_retries})",
                retry_count=state.retry_count,
            )

        kwargs: Dict[str, Any] = {"on_retry": on_retry}
        if self._sleep is not None:
            kwargs["sleep"] = self._sleep
        value, _ = await run_with_retry(fn, self.policy, **kwargs)
        return value
