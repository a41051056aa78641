"""
File: __init__.py
Purpose: Package initializer for the service selector. Exposes the pure selection function and
    its types, the catalog loader, and the ServiceSelectionService facade with a singleton
    instance built from the global settings.
When Used: Imported by the CLI and the routers for every selection request.
Why Created: Keeps import paths short (`from ci_orchestrator.services.service_selector import
    select`) while the pure logic, the catalog and the I/O facade live in separate modules.
"""
from ci_orchestrator.services.service_selector.catalog import ServiceCatalog, load_catalog
from ci_orchestrator.services.service_selector.selector import (
    SelectionMode,
    SelectionModeKind,
    extract_candidate,
    extract_candidates,
    select,
    select_with_details,
)
from ci_orchestrator.services.service_selector.service import ServiceSelectionService

# Singleton instance
service_selection = ServiceSelectionService()

__all__ = [
    "ServiceCatalog",
    "load_catalog",
    "SelectionMode",
    "SelectionModeKind",
    "extract_candidate",
    "extract_candidates",
    "select",
    "select_with_details",
    "ServiceSelectionService",
    "service_selection",
]
