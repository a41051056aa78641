"""
File: git.py
Purpose: Version-control diff provider. Resolves a base ref (branch, tag or commit; falling back
    to origin/<ref>) and returns the repository-relative paths changed on HEAD since its merge
    base, limited to the configured source root.
When Used: Called by the selection service in auto mode, once per pipeline run, to feed the
    changed-path set into the service selector.
Why Created: Replaces the inline `git diff --name-only ... | awk -F'/' ...` shell snippet with a
    narrow changed_paths(base_ref) interface, so the selector itself does no I/O and a missing
    base branch degrades to "nothing to build" instead of a broken pipeline.
"""
import logging
from typing import Optional, Set

from ci_orchestrator.errors import DiffUnavailableError
from ci_orchestrator.integrations.shell import CommandExecutor

logger = logging.getLogger(__name__)


class GitDiffProvider:
    """Computes changed paths with the git CLI"""

    def __init__(
        self,
        repo_dir: str = ".",
        source_root: str = "src",
        executor: Optional[CommandExecutor] = None,
    ):
        self.repo_dir = repo_dir
        self.source_root = source_root
        # Diff retrieval is read-only, so it never honours dry-run
        self.executor = executor or CommandExecutor(timeout=120)

    async def resolve_base_ref(self, base_ref: str) -> str:
        """Resolve base_ref (or origin/<base_ref>) to a commit SHA."""
        candidates = [base_ref]
        if not base_ref.startswith("origin/"):
            candidates.append(f"origin/{base_ref}")

        for ref in candidates:
            result = await self.executor.run(
                ["git", "rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"],
                cwd=self.repo_dir,
            )
            if result.ok and result.stdout.strip():
                return result.stdout.strip()

        raise DiffUnavailableError(f"Cannot resolve base ref '{base_ref}' in {self.repo_dir}")

    async def diff_paths(self, base_ref: str) -> Set[str]:
        """Changed paths since the merge base; raises DiffUnavailableError on any git failure."""
        base_sha = await self.resolve_base_ref(base_ref)
        # -z: NUL-separated, unquoted paths (non-ASCII names are C-quoted otherwise)
        argv = ["git", "diff", "--name-only", "-z", f"{base_sha}...HEAD"]
        if self.source_root:
            argv += ["--", self.source_root]

        result = await self.executor.run(argv, cwd=self.repo_dir)
        if not result.ok:
            raise DiffUnavailableError(
                f"git diff against {base_ref} failed (exit {result.exit_code}): {result.stderr.strip()}"
            )
        return {path for path in result.stdout.split("\0") if path}

    async def changed_paths(self, base_ref: Optional[str]) -> Set[str]:
        """
        Changed paths against base_ref, or an empty set when the diff can't be computed.

        Never raises for "no changes" or for an unresolvable base ref: both mean there is
        nothing to build.
        """
        if not base_ref:
            logger.warning("No base ref given; treating changed paths as empty")
            return set()
        try:
            paths = await self.diff_paths(base_ref)
        except DiffUnavailableError as e:
            logger.warning(f"Diff unavailable, no services will be selected: {e}")
            return set()

        logger.info(f"{len(paths)} changed paths under '{self.source_root or '.'}' since {base_ref}")
        return paths
