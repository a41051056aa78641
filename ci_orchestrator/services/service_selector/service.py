"""
File: service.py
Purpose: Facade that wires the catalog, the git diff provider and the pure selector together:
    parses the operator's mode string, fetches changed paths only when auto mode needs them, and
    packages the outcome as a SelectionResult (with an explicit no_work flag).
When Used: Called by the CLI (`select`, `run`), the selection router and the runs router; the
    singleton lives in the package __init__.
Why Created: Keeps I/O (catalog file, git) out of select() while giving every entry point the
    same fail-fast behaviour -- an unknown explicit service is rejected before anything runs.
"""
import logging
from typing import Iterable, Optional

from ci_orchestrator.config import Settings, settings as default_settings
from ci_orchestrator.integrations.git import GitDiffProvider
from ci_orchestrator.models.schemas import SelectionResult
from ci_orchestrator.services.service_selector.catalog import ServiceCatalog, load_catalog
from ci_orchestrator.services.service_selector.selector import (
    SelectionMode,
    SelectionModeKind,
    select_with_details,
)

logger = logging.getLogger(__name__)


class ServiceSelectionService:
    """Selection entry point shared by the CLI and the API."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        catalog: Optional[ServiceCatalog] = None,
        diff_provider: Optional[GitDiffProvider] = None,
    ):
        self.settings = settings or default_settings
        self._catalog = catalog
        self._diff_provider = diff_provider

    @property
    def catalog(self) -> ServiceCatalog:
        """Loaded on first use, then fixed for the life of the process."""
        if self._catalog is None:
            self._catalog = load_catalog(
                self.settings.services_catalog_path,
                default=self.settings.default_services,
            )
        return self._catalog

    @property
    def diff_provider(self) -> GitDiffProvider:
        if self._diff_provider is None:
            self._diff_provider = GitDiffProvider(
                repo_dir=self.settings.repo_dir,
                source_root=self.settings.source_root,
            )
        return self._diff_provider

    async def select(
        self,
        mode: str,
        base_ref: Optional[str] = None,
        changed_paths: Optional[Iterable[str]] = None,
    ) -> SelectionResult:
        """
        Resolve `mode` to a SelectionResult.

        In auto mode, `changed_paths` (when given) is used as-is; otherwise git is asked for the
        diff against `base_ref` (default: settings.base_ref). Other modes never touch git.
        Raises InvalidServiceError for an unknown explicit service.
        """
        selection_mode = SelectionMode.parse(mode)
        effective_ref = None
        paths = None

        if selection_mode.kind == SelectionModeKind.AUTO:
            effective_ref = base_ref or self.settings.base_ref
            if changed_paths is not None:
                paths = set(changed_paths)
            else:
                paths = await self.diff_provider.changed_paths(effective_ref)

        services, ignored = select_with_details(
            selection_mode,
            self.catalog,
            paths,
            source_root=self.settings.source_root,
        )

        result = SelectionResult(
            mode=str(selection_mode),
            services=list(services),
            no_work=not services,
            base_ref=effective_ref,
            changed_paths_count=len(paths) if paths is not None else 0,
            ignored_candidates=list(ignored),
        )
        if result.no_work:
            logger.info(f"Selection '{result.mode}': no services to build")
        else:
            logger.info(f"Selection '{result.mode}': {', '.join(result.services)}")
        return result
