"""
FastAPI application for the Launchpad generation API.

This module sets up the main FastAPI app with routes, middleware,
and configuration.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from launchpad.config import config
from launchpad.routes.admin import router as admin_router
from launchpad.routes.auth import router as auth_router
from launchpad.routes.jobs import router as jobs_router
from launchpad.routes.knowledge import router as knowledge_router
from launchpad.routes.worker import router as worker_router
from launchpad.utils.logging import api_logger as logger, configure_logging

configure_logging(config.LOG_LEVEL)

# Create FastAPI app
app = FastAPI(
    title="Launchpad API",
    description="Async generation jobs for funnels, lead magnets, supplementary content, and email sequences",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(jobs_router)
app.include_router(worker_router)
app.include_router(knowledge_router)
app.include_router(admin_router)


@app.get("/api")
async def api_info():
    """API information endpoint."""
    return {
        "name": "Launchpad API",
        "version": "1.0.0",
        "status": "operational",
        "docs": "/docs",
        "endpoints": {
            "start": "POST /api/start-{job-type} (returns job_id immediately)",
            "start_generic": "POST /api/start-generation",
            "status": "GET|POST /api/check-{job-type}-status",
            "status_generic": "POST /api/check-job-status",
            "worker": "POST /api/worker/process-generation",
            "vector_search": "POST /api/vector-search",
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint - must be fast and never touch external services."""
    return {
        "status": "healthy",
        "dispatch_backend": config.DISPATCH_BACKEND,
        "supabase_configured": config.supabase_configured,
    }


# ===== Error Handlers =====

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler."""
    logger.error(f"Unhandled error on {request.url.path}: {exc!r}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc) if config.DEV_MODE else "An error occurred",
            "type": type(exc).__name__
        }
    )


# ===== Startup Event =====

@app.on_event("startup")
async def startup_event():
    logger.info(
        "Launchpad API starting",
        environment=config.ENVIRONMENT,
        dispatch_backend=config.DISPATCH_BACKEND,
        worker_url=config.worker_url if config.DISPATCH_BACKEND == "http" else None,
    )
    if not config.supabase_configured:
        logger.warning("Supabase is not configured; job endpoints will fail")
    if not config.ANTHROPIC_API_KEY:
        logger.warning("ANTHROPIC_API_KEY is not set; generation will fail")
