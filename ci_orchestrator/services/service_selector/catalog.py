"""
File: catalog.py
Purpose: The service catalog -- the fixed, ordered set of service names the pipeline knows how to
    build -- and the loader that reads it from a YAML or JSON file, falling back to the
    configured default list.
When Used: Loaded once at startup by the selection service facade; passed to select() on every
    selection and served read-only by GET /services.
Why Created: The catalog used to be a hardcoded choice list in the Jenkins job parameters. Loading
    it from a file keeps it testable without a CI host and lets repos add services without a
    code change.
"""
import json
import logging
import os
import re
from typing import Iterable, Iterator, List, Optional, Sequence

import yaml

from ci_orchestrator.errors import CatalogError

logger = logging.getLogger(__name__)

SERVICE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")

# Mode keywords; a service with one of these names could never be selected explicitly
RESERVED_NAMES = frozenset({"all", "none", "auto"})


class ServiceCatalog:
    """Immutable, ordered set of valid service identifiers."""

    __slots__ = ("_services", "_index")

    def __init__(self, services: Iterable[str]):
        ordered: List[str] = []
        seen = set()
        for entry in services:
            if not isinstance(entry, str) or not entry:
                raise CatalogError(f"Catalog entries must be non-empty strings, got {entry!r}")
            if not SERVICE_NAME_PATTERN.match(entry):
                raise CatalogError(f"Invalid service name '{entry}': must be a plain directory name")
            if entry.lower() in RESERVED_NAMES:
                raise CatalogError(f"Service name '{entry}' is reserved as a selection mode")
            if entry in seen:
                raise CatalogError(f"Duplicate service '{entry}' in catalog")
            seen.add(entry)
            ordered.append(entry)
        self._services = tuple(ordered)
        self._index = frozenset(ordered)

    @property
    def services(self) -> Sequence[str]:
        return self._services

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._services)

    def __len__(self) -> int:
        return len(self._services)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ServiceCatalog):
            return self._services == other._services
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._services)

    def __repr__(self) -> str:
        return f"ServiceCatalog({list(self._services)!r})"


def _parse_catalog_document(document, path: str) -> List[str]:
    if isinstance(document, dict):
        document = document.get("services")
    if not isinstance(document, list):
        raise CatalogError(f"{path}: expected a list of services or a mapping with a 'services' list")
    return document


def load_catalog(path: Optional[str], default: Optional[Iterable[str]] = None) -> ServiceCatalog:
    """
    Load the service catalog from a YAML/JSON file.

    Accepts either a bare list or {"services": [...]}. A missing file (or no path) falls back to
    `default`; a file that exists but can't be parsed is an error, never a silent fallback.
    """
    if not path or not os.path.exists(path):
        if path:
            logger.info(f"Catalog file {path} not found, using default service list")
        return ServiceCatalog(default or [])

    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.endswith(".json"):
                document = json.load(f)
            else:
                document = yaml.safe_load(f)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise CatalogError(f"Could not read catalog {path}: {e}") from e

    catalog = ServiceCatalog(_parse_catalog_document(document, path))
    logger.info(f"Loaded {len(catalog)} services from {path}")
    return catalog
