"""
Generation Job Routes

Start endpoints create a job and dispatch it; check endpoints are the
read-only status surface the frontend polls every few seconds.

    POST /api/start-generation              {job_type, input_data, resume_from?}
    POST /api/start-{job-type}              {input_data, resume_from?}
    POST /api/check-job-status              {job_id}
    GET  /api/check-{job-type}-status       ?job_id=
    POST /api/check-{job-type}-status       {job_id}
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from launchpad.api.dependencies import Services, get_services
from launchpad.jobs.dispatcher import DispatchOutcome, dispatch_job
from launchpad.jobs.errors import InputValidationError, JobNotFoundError, PersistenceError
from launchpad.jobs.models import JobStatus, JobType
from launchpad.utils.logging import api_logger as logger
from .auth import get_current_user_id

router = APIRouter(prefix="/api", tags=["jobs"])


# =============================================================================
# Request/Response Models
# =============================================================================

class StartJobRequest(BaseModel):
    input_data: Dict[str, Any] = Field(default_factory=dict)
    resume_from: Optional[str] = Field(
        default=None,
        description="Id of a failed job whose finished units should be reused"
    )


class StartGenerationRequest(StartJobRequest):
    job_type: str


class StatusRequest(BaseModel):
    job_id: Optional[str] = None


STATUS_AFTER_DISPATCH = {
    DispatchOutcome.ACKNOWLEDGED: JobStatus.PENDING,
    DispatchOutcome.TIMED_OUT: JobStatus.PROCESSING,
    DispatchOutcome.FAILED: JobStatus.FAILED,
}

START_MESSAGES = {
    JobStatus.PENDING: "Generation started",
    JobStatus.PROCESSING: "Generation started; worker acknowledgment pending",
    JobStatus.FAILED: "Generation could not be started",
}


def resolve_job_type(value: str) -> JobType:
    try:
        return JobType.from_slug(value)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown job type: {value}")


# =============================================================================
# Start
# =============================================================================

async def start_job(
    services: Services,
    job_type: JobType,
    request: StartJobRequest,
    user_id: str,
) -> JSONResponse:
    handler = services.handlers.get(job_type)
    if handler is None:
        raise HTTPException(status_code=404, detail=f"Unknown job type: {job_type.slug}")

    input_data = request.input_data
    partial_result = None

    if request.resume_from:
        try:
            source = await services.lifecycle.read(request.resume_from)
        except JobNotFoundError:
            raise HTTPException(status_code=404, detail="Job to resume not found")
        except PersistenceError as e:
            raise HTTPException(status_code=503, detail=str(e))

        if source.job_type != job_type or source.user_id != user_id:
            raise HTTPException(status_code=404, detail="Job to resume not found")
        if source.status != JobStatus.FAILED:
            raise HTTPException(status_code=409, detail="Only failed jobs can be resumed")

        input_data = source.input_data
        partial_result = source.partial_result

    try:
        handler.validate(input_data)
    except InputValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        job_id = await services.lifecycle.create(
            job_type, input_data, user_id, partial_result=partial_result
        )
    except PersistenceError as e:
        logger.error(f"Failed to create job: {e}", user_id=user_id)
        raise HTTPException(status_code=503, detail="Failed to create job")

    dispatched = await dispatch_job(services.lifecycle, services.dispatcher, job_id)
    status = STATUS_AFTER_DISPATCH[dispatched.outcome]

    body = {
        "job_id": job_id,
        "status": status.value,
        "message": START_MESSAGES[status],
    }
    if request.resume_from:
        body["resumed_from"] = request.resume_from
    if dispatched.outcome == DispatchOutcome.FAILED:
        body["error"] = dispatched.reason
    return JSONResponse(status_code=202, content=body)


@router.post("/start-generation", status_code=202)
async def start_generation(
    request: StartGenerationRequest,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
):
    """Start a job of the type named in the body."""
    job_type = resolve_job_type(request.job_type)
    return await start_job(services, job_type, request, user_id)


@router.post("/start-{job_type}", status_code=202)
async def start_typed_job(
    job_type: str,
    request: StartJobRequest,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
):
    """Start a job of the type named in the path, e.g. /start-lead-magnet-content."""
    return await start_job(services, resolve_job_type(job_type), request, user_id)


# =============================================================================
# Status
# =============================================================================

async def job_status(
    services: Services,
    job_id: Optional[str],
    job_type: Optional[JobType] = None,
) -> Dict[str, Any]:
    if not job_id:
        raise HTTPException(status_code=400, detail="job_id is required")
    try:
        return await services.poller.status(job_id, job_type)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.post("/check-job-status")
async def check_job_status(
    request: StatusRequest,
    services: Services = Depends(get_services),
):
    return await job_status(services, request.job_id)


@router.get("/check-{job_type}-status")
async def check_typed_status(
    job_type: str,
    job_id: Optional[str] = Query(None),
    services: Services = Depends(get_services),
):
    return await job_status(services, job_id, resolve_job_type(job_type))


@router.post("/check-{job_type}-status")
async def check_typed_status_post(
    job_type: str,
    request: StatusRequest,
    services: Services = Depends(get_services),
):
    return await job_status(services, request.job_id, resolve_job_type(job_type))
