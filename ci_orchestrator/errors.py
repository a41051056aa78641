"""
File: errors.py
Purpose: Exception hierarchy for the orchestrator -- selection errors (unknown service, bad catalog),
    collaborator errors (git diff unavailable, Jenkins failures), and pipeline stage failures.
When Used: Raised by the service selector, catalog loader, git diff provider, pipeline runner and
    Jenkins integration; translated to HTTP status codes by the routers and to exit codes by the CLI.
Why Created: Gives callers one base class to catch while keeping the "bad input" errors
    (InvalidServiceError, CatalogError) distinguishable from runtime failures.
"""
from typing import Optional


class OrchestratorError(Exception):
    """Base exception for all orchestrator errors"""


class InvalidServiceError(OrchestratorError, ValueError):
    """An explicit selection named a service that is not in the catalog"""

    def __init__(self, name: str, known: Optional[list] = None):
        self.name = name
        self.known = list(known or [])
        if not name:
            message = "Service name must not be empty"
        else:
            message = f"Unknown service '{name}'"
            if self.known:
                message += f" (valid: {', '.join(self.known)})"
        super().__init__(message)


class CatalogError(OrchestratorError, ValueError):
    """The service catalog file or its entries are invalid"""


class DiffUnavailableError(OrchestratorError):
    """The changed-path set could not be computed (unresolvable base ref, no git, not a repo)"""


class StageFailedError(OrchestratorError):
    """A pipeline stage exited non-zero"""

    def __init__(self, stage: str, exit_code: int, service: Optional[str] = None, detail: str = ""):
        self.stage = stage
        self.exit_code = exit_code
        self.service = service
        self.detail = detail
        target = f" for {service}" if service else ""
        message = f"Stage '{stage}'{target} failed with exit code {exit_code}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class JenkinsError(OrchestratorError):
    """Jenkins rejected a trigger, a poll failed, or a build did not finish in time"""
