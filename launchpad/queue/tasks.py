"""
RQ task definitions.

These functions run in the RQ worker process. RQ workers are synchronous,
so each task drives the async worker executor with asyncio.run.
"""

import asyncio

from rq import get_current_job

from launchpad.utils.logging import worker_logger as logger


def execute_job_task(job_id: str) -> str:
    """
    RQ task for one generation job.

    The job record carries the outcome; the return value is only for
    the RQ dashboard.
    """
    rq_job = get_current_job()
    logger.info(
        "RQ worker picked up generation job",
        job_id=job_id,
        rq_job_id=rq_job.id if rq_job else None
    )
    return asyncio.run(_execute_job_async(job_id))


async def _execute_job_async(job_id: str) -> str:
    from launchpad.api.dependencies import get_services

    services = get_services()
    await services.worker.execute(job_id)
    job = await services.lifecycle.read(job_id)
    return job.status.value
