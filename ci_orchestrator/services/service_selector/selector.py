"""
File: selector.py
Purpose: Change-driven service selection. Turns a selection mode (all / none / auto / explicit
    service name) plus, for auto mode, the set of changed file paths into the ordered list of
    services the pipeline should build.
When Used: Called once per pipeline run by the selection service facade (CLI `select`/`run`,
    POST /services/select, POST /runs) before any build, scan or push step is invoked.
Why Created: Pulled out of the pipeline's shell interpolation (`git diff | awk -F'/' ...`) into a
    pure function so the decision can be unit tested without git or a CI host.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Set, Tuple

from ci_orchestrator.errors import InvalidServiceError
from ci_orchestrator.services.service_selector.catalog import ServiceCatalog

logger = logging.getLogger(__name__)


class SelectionModeKind(str, Enum):
    ALL = "all"
    NONE = "none"
    AUTO = "auto"
    EXPLICIT = "explicit"


@dataclass(frozen=True)
class SelectionMode:
    """Tagged selection mode; `name` is set only for EXPLICIT."""
    kind: SelectionModeKind
    name: Optional[str] = None

    @classmethod
    def all(cls) -> "SelectionMode":
        return cls(SelectionModeKind.ALL)

    @classmethod
    def none(cls) -> "SelectionMode":
        return cls(SelectionModeKind.NONE)

    @classmethod
    def auto(cls) -> "SelectionMode":
        return cls(SelectionModeKind.AUTO)

    @classmethod
    def explicit(cls, name: str) -> "SelectionMode":
        return cls(SelectionModeKind.EXPLICIT, name)

    @classmethod
    def parse(cls, value: str) -> "SelectionMode":
        """
        Parse an operator-supplied mode string.

        The keywords all/none/auto are case-insensitive; anything else is taken as a service
        name verbatim (membership is checked by select(), not here).
        """
        text = (value or "").strip()
        if not text:
            raise InvalidServiceError("")
        keyword = text.lower()
        if keyword == SelectionModeKind.ALL.value:
            return cls.all()
        if keyword == SelectionModeKind.NONE.value:
            return cls.none()
        if keyword == SelectionModeKind.AUTO.value:
            return cls.auto()
        return cls.explicit(text)

    def __str__(self) -> str:
        if self.kind == SelectionModeKind.EXPLICIT:
            return self.name or ""
        return self.kind.value


def _split(path: str) -> List[str]:
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return [segment for segment in normalized.split("/") if segment and segment != "."]


def extract_candidate(path: str, source_root: str = "src") -> Optional[str]:
    """
    Return the service directory a changed path belongs to, or None.

    For source_root "src", "src/frontend/main.go" -> "frontend". Paths outside the root, the
    root itself, and files directly under the root ("src/README.md") produce no candidate.
    """
    root = _split(source_root)
    segments = _split(path)
    if segments[:len(root)] != root:
        return None
    rest = segments[len(root):]
    # Need <service>/<something>; a lone segment is a file sitting directly in the root
    if len(rest) < 2:
        return None
    return rest[0]


def extract_candidates(changed_paths: Iterable[str], source_root: str = "src") -> Set[str]:
    """Distinct candidate service directories across all changed paths."""
    candidates = set()
    for path in changed_paths:
        candidate = extract_candidate(path, source_root)
        if candidate is not None:
            candidates.add(candidate)
    return candidates


def select_with_details(
    mode: SelectionMode,
    catalog: ServiceCatalog,
    changed_paths: Optional[Iterable[str]] = None,
    source_root: str = "src",
) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    """
    Same as select(), also returning the auto-mode candidates dropped for not being in the
    catalog (sorted, for stable reporting).
    """
    if mode.kind == SelectionModeKind.ALL:
        return tuple(catalog), ()

    if mode.kind == SelectionModeKind.NONE:
        return (), ()

    if mode.kind == SelectionModeKind.EXPLICIT:
        if not mode.name or mode.name not in catalog:
            raise InvalidServiceError(mode.name or "", list(catalog))
        return (mode.name,), ()

    candidates = extract_candidates(changed_paths or (), source_root)
    # Catalog order, not diff order
    selected = tuple(service for service in catalog if service in candidates)
    ignored = tuple(sorted(c for c in candidates if c not in catalog))
    if ignored:
        logger.debug(f"Ignoring changed directories not in catalog: {', '.join(ignored)}")
    return selected, ignored


def select(
    mode: SelectionMode,
    catalog: ServiceCatalog,
    changed_paths: Optional[Iterable[str]] = None,
    source_root: str = "src",
) -> Tuple[str, ...]:
    """
    Resolve a selection mode to the ordered, de-duplicated services to process.

    - ALL: every catalog entry in catalog order
    - NONE: empty
    - EXPLICIT(name): [name], or InvalidServiceError if name is not in the catalog
    - AUTO: services whose directory under `source_root` appears in `changed_paths`,
      in catalog order; an empty result means "no work", not an error
    """
    selected, _ = select_with_details(mode, catalog, changed_paths, source_root)
    return selected
