"""
Dispatcher

Hands a created job to the worker without waiting for the work itself.
Only a short acknowledgment window is waited for; the outcome says
whether the worker accepted the job, may have accepted it, or
certainly did not.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

import httpx
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from launchpad.utils.logging import dispatch_logger as log
from .errors import DispatchError
from .lifecycle import JobLifecycleManager

WORKER_TASK = "launchpad.queue.tasks.execute_job_task"


class DispatchOutcome(str, Enum):
    ACKNOWLEDGED = "acknowledged"
    TIMED_OUT = "timed_out"  # the worker may still be running
    FAILED = "failed"


@dataclass
class DispatchResult:
    outcome: DispatchOutcome
    reason: Optional[str] = None


class Dispatcher(ABC):
    """Sends a job to the worker entry point."""

    @abstractmethod
    async def dispatch(
        self,
        job_id: str,
        payload: Optional[Dict[str, Any]] = None
    ) -> DispatchResult:
        ...


class HttpDispatcher(Dispatcher):
    """
    POSTs the job id to the worker endpoint.

    The endpoint schedules the work and answers 202, so any 2xx is an
    acknowledgment. A connection that cannot be opened is a failure; a
    request that was sent but not answered in time may still be running.
    """

    def __init__(
        self,
        worker_url: str,
        *,
        api_key: Optional[str] = None,
        ack_timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.worker_url = worker_url
        self.api_key = api_key
        self.ack_timeout = ack_timeout
        self._client = client

    async def dispatch(
        self,
        job_id: str,
        payload: Optional[Dict[str, Any]] = None
    ) -> DispatchResult:
        body = {**(payload or {}), "job_id": job_id}
        headers = {"X-API-Key": self.api_key} if self.api_key else {}

        try:
            if self._client is not None:
                response = await self._client.post(
                    self.worker_url, json=body, headers=headers, timeout=self.ack_timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.ack_timeout) as client:
                    response = await client.post(self.worker_url, json=body, headers=headers)
        except (httpx.ConnectTimeout, httpx.PoolTimeout) as e:
            return DispatchResult(DispatchOutcome.FAILED, f"Worker unreachable: {e!r}")
        except httpx.TimeoutException:
            return DispatchResult(
                DispatchOutcome.TIMED_OUT,
                f"No acknowledgment within {self.ack_timeout:g}s"
            )
        except httpx.HTTPError as e:
            return DispatchResult(DispatchOutcome.FAILED, f"Worker request failed: {e!r}")

        if response.status_code == 504:
            # Gateway gave up waiting; the function behind it may be running
            return DispatchResult(DispatchOutcome.TIMED_OUT, "Worker gateway timeout")
        if response.is_success:
            return DispatchResult(DispatchOutcome.ACKNOWLEDGED)
        return DispatchResult(
            DispatchOutcome.FAILED,
            f"Worker rejected job: HTTP {response.status_code}"
        )


class QueueDispatcher(Dispatcher):
    """
    Enqueues the job on an RQ queue; the enqueue returning is the acknowledgment.

    get_queue is called on every dispatch.
    """

    def __init__(
        self,
        get_queue: Callable[[], Any],
        *,
        ack_timeout: float = 5.0,
        job_timeout: int = 900,
    ):
        self.get_queue = get_queue
        self.ack_timeout = ack_timeout
        self.job_timeout = job_timeout

    async def dispatch(
        self,
        job_id: str,
        payload: Optional[Dict[str, Any]] = None
    ) -> DispatchResult:
        try:
            await asyncio.wait_for(
                asyncio.to_thread(self._enqueue, job_id),
                timeout=self.ack_timeout,
            )
        except (asyncio.TimeoutError, RedisTimeoutError):
            # The enqueue may have landed after we stopped waiting
            return DispatchResult(
                DispatchOutcome.TIMED_OUT,
                f"Enqueue not confirmed within {self.ack_timeout:g}s"
            )
        except RedisConnectionError as e:
            return DispatchResult(DispatchOutcome.FAILED, f"Queue unavailable: {e}")
        except Exception as e:
            return DispatchResult(DispatchOutcome.FAILED, f"Enqueue failed: {e}")

        return DispatchResult(DispatchOutcome.ACKNOWLEDGED)

    def _enqueue(self, job_id: str):
        return self.get_queue().enqueue(
            WORKER_TASK,
            job_id,
            job_timeout=self.job_timeout,
            description=f"generation job {job_id}",
        )


async def dispatch_job(
    lifecycle: JobLifecycleManager,
    dispatcher: Dispatcher,
    job_id: str,
    payload: Optional[Dict[str, Any]] = None,
) -> DispatchResult:
    """
    Dispatch a job and apply the outcome to its record.

    ACKNOWLEDGED leaves the job for the worker to claim. TIMED_OUT marks
    it processing, since the worker may be running. FAILED marks it failed.
    """
    try:
        result = await dispatcher.dispatch(job_id, payload)
    except DispatchError as e:
        result = DispatchResult(DispatchOutcome.FAILED, str(e))

    if result.outcome == DispatchOutcome.ACKNOWLEDGED:
        log.info("Worker acknowledged job", job_id=job_id)
    elif result.outcome == DispatchOutcome.TIMED_OUT:
        log.warning(f"Dispatch unconfirmed, assuming running: {result.reason}", job_id=job_id)
        await lifecycle.mark_dispatched(job_id)
    else:
        log.error(f"Dispatch failed: {result.reason}", job_id=job_id)
        await lifecycle.fail(job_id, f"Failed to start generation: {result.reason}")

    return result
