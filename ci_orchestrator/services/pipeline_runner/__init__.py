"""
File: __init__.py
Purpose: Package initializer for the pipeline runner. Exposes the local and Jenkins backends and
    a factory that picks one from a RunBackend value.
When Used: Imported by the CLI `run` command and the runs router.
Why Created: Callers choose a backend by name without importing backend modules directly.
"""
from typing import Optional

from ci_orchestrator.config import Settings
from ci_orchestrator.models.schemas import RunBackend
from ci_orchestrator.services.pipeline_runner.jenkins_runner import JenkinsPipelineRunner
from ci_orchestrator.services.pipeline_runner.runner import (
    BasePipelineRunner,
    LocalPipelineRunner,
    ProgressCallback,
)


def create_runner(
    backend: RunBackend = RunBackend.LOCAL,
    settings: Optional[Settings] = None,
    progress: Optional[ProgressCallback] = None,
    dry_run: Optional[bool] = None,
) -> BasePipelineRunner:
    """Build the runner for `backend`"""
    if RunBackend(backend) == RunBackend.JENKINS:
        return JenkinsPipelineRunner(settings=settings, progress=progress, dry_run=dry_run)
    return LocalPipelineRunner(settings=settings, progress=progress, dry_run=dry_run)


__all__ = [
    "BasePipelineRunner",
    "LocalPipelineRunner",
    "JenkinsPipelineRunner",
    "ProgressCallback",
    "create_runner",
]
