"""
File: shell.py
Purpose: Async subprocess executor for the external CLI tools the orchestrator drives (git,
    gitleaks, checkov, semgrep, docker, trivy, aws). Runs an argv list, optionally feeding stdin,
    and returns exit code, output and timing instead of raising on non-zero exits.
When Used: Used by the git diff provider to compute changed paths and by the local pipeline runner
    for every stage command. Tests substitute a recording fake with the same run() signature.
Why Created: Every stage of the old Jenkins job was an `sh` step; funnelling them through one
    executor gives consistent logging, timeouts and dry-run handling, and one seam to stub.
"""
import asyncio
import logging
import shlex
import time
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

logger = logging.getLogger(__name__)

EXIT_TIMEOUT = 124
EXIT_NOT_FOUND = 127


@dataclass
class CommandResult:
    argv: Sequence[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    duration_sec: float = 0.0
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def command(self) -> str:
        return format_command(self.argv)


def format_command(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(str(a)) for a in argv)


class CommandExecutor:
    """
    Runs commands with `asyncio.create_subprocess_exec`.

    A missing binary is reported as exit code 127 and a timeout as 124 (the process is killed),
    mirroring what a shell would return, so callers only ever branch on exit codes.
    """

    def __init__(self, timeout: Optional[float] = None, dry_run: bool = False):
        self.timeout = timeout
        self.dry_run = dry_run

    async def run(
        self,
        argv: Sequence[str],
        cwd: Optional[str] = None,
        input_data: Optional[bytes] = None,
        env: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        command = format_command(argv)
        if self.dry_run:
            logger.info(f"[dry-run] {command}")
            return CommandResult(argv=list(argv), exit_code=0)

        logger.info(f"Running: {command}")
        start_time = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=cwd,
                env=env,
                stdin=asyncio.subprocess.PIPE if input_data is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            logger.error(f"Command not found: {argv[0]}")
            return CommandResult(
                argv=list(argv),
                exit_code=EXIT_NOT_FOUND,
                stderr=f"{argv[0]}: command not found",
                duration_sec=time.monotonic() - start_time,
            )

        effective_timeout = timeout if timeout is not None else self.timeout
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(input=input_data),
                timeout=effective_timeout,
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            logger.error(f"Command timed out after {effective_timeout}s: {command}")
            return CommandResult(
                argv=list(argv),
                exit_code=EXIT_TIMEOUT,
                stderr=f"timed out after {effective_timeout}s",
                duration_sec=time.monotonic() - start_time,
                timed_out=True,
            )

        result = CommandResult(
            argv=list(argv),
            exit_code=process.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            duration_sec=time.monotonic() - start_time,
        )
        if not result.ok:
            logger.warning(f"Exit {result.exit_code}: {command}: {result.stderr.strip()[:500]}")
        return result
