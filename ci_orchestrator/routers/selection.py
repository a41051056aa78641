"""
File: selection.py
Purpose: Exposes the service catalog and the change-driven service selector over HTTP.
When Used: Called by CI jobs and dashboards that want to know which services a change affects
    (GET /services, POST /services/select) without starting a pipeline run.
Why Created: Lets non-Python callers (Jenkins `httpRequest`, scripts) use the same selection logic
    as the CLI.
"""
from fastapi import APIRouter, HTTPException

from ci_orchestrator.errors import CatalogError, InvalidServiceError
from ci_orchestrator.models.schemas import CatalogResponse, SelectRequest, SelectionResult
from ci_orchestrator.services.service_selector import service_selection

router = APIRouter(prefix="/services", tags=["Service Selection"])


@router.get("", response_model=CatalogResponse)
async def list_services():
    """List the service catalog in catalog order"""
    return CatalogResponse(
        services=list(service_selection.catalog),
        source_root=service_selection.settings.source_root,
        catalog_path=service_selection.settings.services_catalog_path,
    )


@router.post("/select", response_model=SelectionResult)
async def select_services(request: SelectRequest):
    """
    Resolve a selection mode to the services to build.

    Args:
        mode: all | none | auto | <service name>
        base_ref: Branch/commit to diff against in auto mode (default: configured base_ref)
        changed_paths: Use these paths instead of running git diff
    """
    try:
        return await service_selection.select(
            request.mode,
            base_ref=request.base_ref,
            changed_paths=request.changed_paths,
        )
    except InvalidServiceError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CatalogError as e:
        raise HTTPException(status_code=500, detail=str(e))
