"""
File: runs.py
Purpose: Starts pipeline runs (select services, then build/scan/push them with the local or
    Jenkins backend as a background task) and reports their progress.
When Used: POST /runs from CI triggers or the operator; GET /runs/{run_id} polled by clients
    until `completed` is true.
Why Created: A run can take many minutes per service, so the request returns the run id and the
    selection immediately and the progress store carries the rest.
"""
import logging

from fastapi import APIRouter, HTTPException, BackgroundTasks

from ci_orchestrator.errors import CatalogError, InvalidServiceError
from ci_orchestrator.models.schemas import PipelineRunResult, RunAccepted, RunRequest, RunStatus
from ci_orchestrator.services.pipeline_runner import create_runner
from ci_orchestrator.services.run_progress import progress_store
from ci_orchestrator.services.service_selector import service_selection

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/runs", tags=["Pipeline Runs"])


async def _execute_run(run_id: str, services: list, request: RunRequest):
    """Background task: run the pipeline and record the outcome."""
    def on_progress(stage, message, service=None):
        progress_store.update(run_id, stage, message, service)

    try:
        runner = create_runner(
            request.backend,
            settings=service_selection.settings,
            progress=on_progress,
            dry_run=request.dry_run,
        )
        result = await runner.run(services)
    except Exception as e:
        logger.exception(f"Run {run_id} could not be executed")
        result = PipelineRunResult(status=RunStatus.FAILED, error=f"{type(e).__name__}: {e}")
    progress_store.complete(run_id, result)
    logger.info(f"Run {run_id} finished: {result.status.value}")


@router.post("", response_model=RunAccepted, status_code=202)
async def start_run(request: RunRequest, background_tasks: BackgroundTasks):
    """
    Select services and start a pipeline run.

    An unknown explicit service is rejected with 400 before anything is queued. An empty
    selection is accepted and completes immediately with status no_work.
    """
    try:
        selection = await service_selection.select(
            request.mode,
            base_ref=request.base_ref,
            changed_paths=request.changed_paths,
        )
    except InvalidServiceError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CatalogError as e:
        raise HTTPException(status_code=500, detail=str(e))

    progress = progress_store.create(selection.services)
    background_tasks.add_task(_execute_run, progress.run_id, selection.services, request)

    return RunAccepted(
        run_id=progress.run_id,
        selection=selection,
        status=RunStatus.NO_WORK if selection.no_work else RunStatus.PENDING,
    )


@router.get("/{run_id}")
async def get_run(run_id: str):
    """Get progress (and, once completed, the result) of a run"""
    progress = progress_store.get(run_id)
    if progress is None:
        raise HTTPException(status_code=404, detail=f"Run not found: {run_id}")
    return progress.to_dict()
