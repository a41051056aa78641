"""
File: ci_orchestrator/models/schemas.py
Purpose: Pydantic schemas for the orchestrator's request/response contracts -- service selection
    requests and results, pipeline run requests, and the per-stage / per-service / per-run results
    the runner produces.
When Used: Imported by the routers (request bodies and response models), the CLI (JSON output),
    the selection service and both pipeline runner backends.
Why Created: Keeps the data contracts in one module so the HTTP API, the CLI's --json output and
    the runners all describe a selection or a run the same way.
"""
from typing import List, Optional
from pydantic import BaseModel, Field
from enum import Enum


# ============================================================================
# Common Schemas
# ============================================================================

class ToolStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


class CatalogResponse(BaseModel):
    services: List[str]
    source_root: str
    catalog_path: Optional[str] = None


# ============================================================================
# Selection Schemas
# ============================================================================

class SelectRequest(BaseModel):
    mode: str = Field(..., description="all | none | auto | <service name>")
    base_ref: Optional[str] = None
    changed_paths: Optional[List[str]] = Field(
        default=None,
        description="Use these paths instead of running git diff (auto mode only)",
    )


class SelectionResult(BaseModel):
    mode: str
    services: List[str] = Field(default_factory=list)
    no_work: bool = False
    base_ref: Optional[str] = None
    changed_paths_count: int = 0
    ignored_candidates: List[str] = Field(default_factory=list)


# ============================================================================
# Pipeline Run Schemas
# ============================================================================

class RunBackend(str, Enum):
    LOCAL = "local"
    JENKINS = "jenkins"


class RunStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    NO_WORK = "no_work"


class RunRequest(SelectRequest):
    backend: RunBackend = RunBackend.LOCAL
    dry_run: Optional[bool] = None


class StageResult(BaseModel):
    name: str
    command: Optional[str] = None
    exit_code: Optional[int] = None
    success: bool
    skipped: bool = False
    duration_sec: float = 0.0
    report_path: Optional[str] = None
    detail: Optional[str] = None


class ServiceRunResult(BaseModel):
    service: str
    success: bool
    stages: List[StageResult] = Field(default_factory=list)
    build_url: Optional[str] = None


class PipelineRunResult(BaseModel):
    status: RunStatus
    services: List[ServiceRunResult] = Field(default_factory=list)
    repository_stages: List[StageResult] = Field(default_factory=list)
    failed_stage: Optional[str] = None
    failed_service: Optional[str] = None
    error: Optional[str] = None
    duration_sec: float = 0.0

    @property
    def success(self) -> bool:
        return self.status in (RunStatus.SUCCEEDED, RunStatus.NO_WORK)


class RunAccepted(BaseModel):
    run_id: str
    selection: SelectionResult
    status: RunStatus
