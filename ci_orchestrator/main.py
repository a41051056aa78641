"""
File: ci_orchestrator/main.py
Purpose: FastAPI application entry point -- creates the app instance, registers the selection and
    runs routers, configures CORS middleware, and provides health/status endpoints.
When Used: Loaded by Uvicorn ('uvicorn ci_orchestrator.main:app') or via `ci-orchestrator serve`.
    The lifespan handler configures logging and reports the loaded catalog at startup.
Why Created: Acts as the composition root for the HTTP surface of the orchestrator under a
    consistent prefix (/api/v1).

Endpoints:
- GET  /health                       liveness
- GET  /api/v1/status                catalog size and Jenkins reachability
- GET  /api/v1/services              service catalog
- POST /api/v1/services/select       resolve a mode to services
- POST /api/v1/runs                  select and run the pipeline in the background
- GET  /api/v1/runs/{run_id}         run progress
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ci_orchestrator.config import settings
from ci_orchestrator.errors import InvalidServiceError, OrchestratorError
from ci_orchestrator.integrations.jenkins import JenkinsIntegration
from ci_orchestrator.logging_config import configure_logging
from ci_orchestrator.models.schemas import ToolStatus
from ci_orchestrator.routers import runs, selection
from ci_orchestrator.services.service_selector import service_selection

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    # Startup
    configure_logging(settings.log_level, settings.log_json)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Loaded {len(service_selection.catalog)} services (source root '{settings.source_root}')")
    yield
    # Shutdown
    logger.info("Shutting down...")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=__doc__,
    lifespan=lifespan,
)

# The API is read-mostly and called from CI jobs and dashboards
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Liveness check"""
    return {"status": "healthy", "version": settings.app_version, "services": len(service_selection.catalog)}


@app.get(f"{settings.api_prefix}/status")
async def api_status():
    """Catalog and Jenkins status"""
    jenkins = JenkinsIntegration(service_selection.settings.jenkins_tool())
    try:
        jenkins_status = await jenkins.health_check()
        jenkins_version = await jenkins.get_version() if jenkins_status == ToolStatus.HEALTHY else None
    finally:
        await jenkins.close()
    return {
        "services": len(service_selection.catalog),
        "source_root": service_selection.settings.source_root,
        "base_ref": service_selection.settings.base_ref,
        "jenkins": jenkins_status,
        "jenkins_version": jenkins_version,
    }


app.include_router(selection.router, prefix=settings.api_prefix)
app.include_router(runs.router, prefix=settings.api_prefix)


@app.exception_handler(OrchestratorError)
async def orchestrator_error_handler(request: Request, exc: OrchestratorError):
    """Orchestrator errors raised outside the routers' own mapping (e.g. a bad catalog file on /health)"""
    logger.error(f"{type(exc).__name__} on {request.url.path}: {exc}")
    status_code = 400 if isinstance(exc, InvalidServiceError) else 500
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"detail": str(exc) if settings.debug else "Internal server error"},
    )
