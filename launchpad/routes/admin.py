"""
Admin Dashboard API Routes

Provides endpoints for the admin dashboard to view:
- Generation job statistics, recent jobs, and one job with its log timeline
- Logs from the in-memory buffer, filterable by job
- Dispatch backend status (RQ queue depth when DISPATCH_BACKEND=rq)
"""

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from launchpad.api.dependencies import Services, get_services
from launchpad.config import config
from launchpad.jobs.errors import JobNotFoundError, PersistenceError
from launchpad.security import require_service_key
from launchpad.utils.logging import LogLevel, get_log_buffer, get_logger

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[require_service_key])
logger = get_logger("admin")


# ===== Jobs =====

@router.get("/jobs/stats")
async def get_job_stats(services: Services = Depends(get_services)):
    """Count generation jobs by status."""
    try:
        by_status = await services.lifecycle.store.get_status_counts()
    except PersistenceError as e:
        logger.error(f"Failed to fetch job stats: {e}")
        raise HTTPException(status_code=503, detail=str(e))

    finished = by_status["complete"] + by_status["failed"]
    success_rate = round(by_status["complete"] / finished * 100, 1) if finished else None
    return {"by_status": by_status, "success_rate": success_rate}


@router.get("/jobs/recent")
async def get_recent_jobs(
    limit: int = Query(20, ge=1, le=100),
    user_id: Optional[str] = Query(None),
    services: Services = Depends(get_services),
):
    """List the most recently created jobs."""
    try:
        jobs = await services.lifecycle.store.get_recent(user_id=user_id, limit=limit)
    except PersistenceError as e:
        logger.error(f"Failed to fetch recent jobs: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    return {"jobs": jobs, "count": len(jobs)}


@router.get("/jobs/{job_id}")
async def get_job_detail(job_id: str, services: Services = Depends(get_services)):
    """One job's full record and its log timeline, oldest entry first."""
    try:
        job = await services.lifecycle.read(job_id)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return {
        "job": job.model_dump(mode="json"),
        "timeline": get_log_buffer().get_job_timeline(job_id),
    }


# ===== Logs =====

@router.get("/logs")
async def get_logs(
    limit: int = Query(100, ge=1, le=500),
    level: Optional[str] = Query(None, description="Filter by level (debug, info, warning, error, critical)"),
    source: Optional[str] = Query(None, description="Filter by source"),
    job_id: Optional[str] = Query(None, description="Filter by job id"),
):
    """Get recent log entries from the in-memory buffer."""
    log_buffer = get_log_buffer()

    level_filter = None
    if level:
        try:
            level_filter = LogLevel(level.lower())
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid log level: {level}")

    logs = log_buffer.get_recent(limit=limit, level=level_filter, source=source, job_id=job_id)
    stats = log_buffer.get_stats()

    return {
        "logs": logs,
        "stats": stats
    }


@router.get("/logs/errors")
async def get_error_logs(limit: int = Query(50, ge=1, le=200)):
    """Get recent error and critical log entries."""
    log_buffer = get_log_buffer()
    errors = log_buffer.get_errors(limit=limit)

    return {"errors": errors}


# ===== Dispatch =====

@router.get("/dispatch")
async def get_dispatch_status():
    """Dispatch backend in use; for rq, the generation queue's depth."""
    status = {
        "backend": config.DISPATCH_BACKEND,
        "ack_timeout_seconds": config.DISPATCH_ACK_TIMEOUT_SECONDS,
    }
    if config.DISPATCH_BACKEND == "rq":
        from launchpad.queue.connection import queue_status

        status["queue"] = await asyncio.to_thread(queue_status)
    else:
        status["worker_url"] = config.worker_url
    return status
