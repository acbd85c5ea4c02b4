"""
Worker Entry Point

The HTTP dispatcher posts here. The job is scheduled as a background
task and the request is acknowledged at once, so the dispatcher's short
acknowledgment window is not spent on generation.
"""

from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from launchpad.api.dependencies import Services, get_services
from launchpad.security import require_service_key
from launchpad.utils.logging import api_logger as logger

router = APIRouter(prefix="/api/worker", tags=["worker"])


class ProcessGenerationRequest(BaseModel):
    job_id: str


@router.post("/process-generation", status_code=202, dependencies=[require_service_key])
async def process_generation(
    request: ProcessGenerationRequest,
    background_tasks: BackgroundTasks,
    services: Services = Depends(get_services),
):
    """Accept a job for execution."""
    logger.info("Worker accepted job", job_id=request.job_id)
    background_tasks.add_task(services.worker.execute, request.job_id)
    return JSONResponse(
        status_code=202,
        content={"job_id": request.job_id, "status": "accepted"},
    )
