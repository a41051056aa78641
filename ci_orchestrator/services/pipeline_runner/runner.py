"""
File: runner.py
Purpose: Runs the build/scan/push pipeline for a list of selected services. The base class owns
    the run lifecycle (no-work short circuit, fail-fast, timing, progress events); the local
    backend executes the stage commands on this machine: gitleaks and checkov once per run, then
    per service semgrep -> docker build -> trivy -> ECR push, with docker rmi cleanup in finally.
When Used: Called by the CLI `run` command and the runs router (as a background task) after the
    service selector has produced its list.
Why Created: Replaces the per-service Jenkinsfile's try/finally stage sequence with one runner
    that processes any number of services sequentially, in selection order, and stops the whole
    run at the first failing stage.
"""
import logging
import os
import time
from typing import Callable, List, Optional, Sequence

from ci_orchestrator.config import Settings, settings as default_settings
from ci_orchestrator.errors import StageFailedError
from ci_orchestrator.integrations.shell import CommandExecutor, CommandResult
from ci_orchestrator.models.schemas import (
    PipelineRunResult,
    RunStatus,
    ServiceRunResult,
    StageResult,
)
from ci_orchestrator.services.pipeline_runner import stages
from ci_orchestrator.services.pipeline_runner.constants import (
    CHECKOV_REPORT,
    FAILURE_HINTS,
    GITLEAKS_REPORT,
    STAGE_BUILD,
    STAGE_CLEANUP,
    STAGE_IAC,
    STAGE_IMAGE_SCAN,
    STAGE_PUSH,
    STAGE_SAST,
    STAGE_SECRETS,
    semgrep_report,
    trivy_report,
)

logger = logging.getLogger(__name__)

# (stage, message, service)
ProgressCallback = Callable[[str, str, Optional[str]], None]


def _no_progress(stage: str, message: str, service: Optional[str] = None) -> None:
    return None


class BasePipelineRunner:
    """Run lifecycle shared by the local and Jenkins backends."""

    def __init__(self, settings: Optional[Settings] = None, progress: Optional[ProgressCallback] = None):
        self.settings = settings or default_settings
        self.progress = progress or _no_progress

    def _report(self, stage: str, message: str, service: Optional[str] = None) -> None:
        logger.info(message, extra={"service": service, "stage": stage})
        self.progress(stage, message, service)

    async def _execute(self, services: Sequence[str], result: PipelineRunResult) -> None:
        raise NotImplementedError

    async def run(self, services: Sequence[str]) -> PipelineRunResult:
        """Process `services` in order; the first failed stage fails the whole run."""
        start_time = time.monotonic()
        if not services:
            self._report("selection", "No services selected; nothing to do")
            return PipelineRunResult(status=RunStatus.NO_WORK)

        result = PipelineRunResult(status=RunStatus.RUNNING)
        self._report("start", f"Pipeline started for {', '.join(services)}")
        try:
            await self._execute(services, result)
        except StageFailedError as e:
            result.status = RunStatus.FAILED
            result.failed_stage = e.stage
            result.failed_service = e.service
            result.error = str(e)
            logger.error(str(e), extra={"service": e.service, "stage": e.stage})
            self.progress(e.stage, str(e), e.service)
        except Exception as e:
            # Unexpected errors still end the run as failed
            current = result.services[-1].service if result.services and not result.services[-1].success else None
            result.status = RunStatus.FAILED
            result.failed_service = current
            result.error = f"{type(e).__name__}: {e}"
            logger.exception(f"Pipeline aborted: {result.error}", extra={"service": current})
            self.progress("error", result.error, current)
        else:
            result.status = RunStatus.SUCCEEDED
            self._report("finish", f"Pipeline succeeded for {len(services)} service(s)")
        finally:
            result.duration_sec = round(time.monotonic() - start_time, 3)
        return result


class LocalPipelineRunner(BasePipelineRunner):
    """Executes every stage with the external CLIs on this host."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        executor: Optional[CommandExecutor] = None,
        progress: Optional[ProgressCallback] = None,
        dry_run: Optional[bool] = None,
    ):
        super().__init__(settings, progress)
        dry = self.settings.dry_run if dry_run is None else dry_run
        self.executor = executor or CommandExecutor(timeout=self.settings.stage_timeout, dry_run=dry)

    @property
    def dry_run(self) -> bool:
        return bool(getattr(self.executor, "dry_run", False))

    async def _execute(self, services: Sequence[str], result: PipelineRunResult) -> None:
        if not self.dry_run:
            os.makedirs(stages.artifacts_path(self.settings), exist_ok=True)

        await self._repository_stages(result.repository_stages)
        for service in services:
            service_result = ServiceRunResult(service=service, success=False)
            result.services.append(service_result)
            await self._run_service(service, service_result)
            service_result.success = True

    # ========================================================================
    # Stage execution
    # ========================================================================

    async def _stage(
        self,
        stage: str,
        steps: List[List[str]],
        results: List[StageResult],
        service: Optional[str] = None,
        report: Optional[str] = None,
        pipe_first: bool = False,
    ) -> StageResult:
        """
        Run `steps` in order, stopping at the first non-zero exit. With pipe_first, the first
        step's stdout is fed to the second step's stdin (`a | b`).

        Appends the StageResult to `results`, then raises StageFailedError if the stage failed.
        """
        self._report(stage, f"Stage {stage} started", service)
        executed: List[CommandResult] = []
        for index, argv in enumerate(steps):
            input_data = None
            if pipe_first and index == 1 and executed:
                input_data = executed[0].stdout.encode("utf-8")
            command_result = await self.executor.run(argv, cwd=self.settings.repo_dir, input_data=input_data)
            executed.append(command_result)
            if not command_result.ok:
                break

        last = executed[-1]
        report_path = None
        if report:
            candidate = stages.artifacts_path(self.settings, report)
            # A missing report is fine (the tool may not write one on a clean run)
            if os.path.exists(candidate):
                report_path = candidate

        stage_result = StageResult(
            name=stage,
            command=" && ".join(r.command for r in executed),
            exit_code=last.exit_code,
            success=last.ok,
            duration_sec=round(sum(r.duration_sec for r in executed), 3),
            report_path=report_path,
        )
        if not last.ok:
            stage_result.detail = FAILURE_HINTS.get(stage) or last.stderr.strip()[:500]
        results.append(stage_result)

        if not stage_result.success:
            raise StageFailedError(stage, last.exit_code, service=service, detail=stage_result.detail or "")
        self._report(stage, f"Stage {stage} passed", service)
        return stage_result

    @staticmethod
    def _skipped(stage: str, reason: str, results: List[StageResult]) -> StageResult:
        stage_result = StageResult(name=stage, success=True, skipped=True, detail=reason)
        results.append(stage_result)
        logger.info(f"Stage {stage} skipped: {reason}", extra={"stage": stage})
        return stage_result

    async def _repository_stages(self, results: List[StageResult]) -> None:
        s = self.settings
        if s.enable_secret_scan:
            await self._stage(STAGE_SECRETS, [stages.secrets_scan_command(s)], results, report=GITLEAKS_REPORT)
        else:
            self._skipped(STAGE_SECRETS, "disabled", results)

        terraform_dir = os.path.join(s.repo_dir, s.terraform_dir)
        if not s.enable_iac_scan:
            self._skipped(STAGE_IAC, "disabled", results)
        elif not os.path.isdir(terraform_dir):
            self._skipped(STAGE_IAC, f"no {s.terraform_dir} directory", results)
        else:
            await self._stage(STAGE_IAC, [stages.iac_scan_command(s)], results, report=CHECKOV_REPORT)

    async def _run_service(self, service: str, service_result: ServiceRunResult) -> None:
        s = self.settings
        results = service_result.stages

        if s.enable_sast:
            await self._stage(STAGE_SAST, [stages.sast_command(s, service)], results, service, report=semgrep_report(service))
        else:
            self._skipped(STAGE_SAST, "disabled", results)

        try:
            await self._stage(STAGE_BUILD, [stages.build_command(s, service)], results, service)

            if s.enable_image_scan:
                await self._stage(
                    STAGE_IMAGE_SCAN,
                    [stages.image_scan_command(s, service)],
                    results,
                    service,
                    report=trivy_report(service),
                )
            else:
                self._skipped(STAGE_IMAGE_SCAN, "disabled", results)

            if not s.enable_push:
                self._skipped(STAGE_PUSH, "disabled", results)
            elif not s.ecr_registry:
                self._skipped(STAGE_PUSH, "no registry configured", results)
            else:
                await self._stage(
                    STAGE_PUSH,
                    [
                        stages.registry_password_command(s),
                        stages.registry_login_command(s),
                        stages.tag_command(s, service),
                        stages.push_command(s, service),
                    ],
                    results,
                    service,
                    pipe_first=True,
                )
        finally:
            await self._cleanup(service, results)

    async def _cleanup(self, service: str, results: List[StageResult]) -> None:
        """docker rmi; a failure here is recorded but never fails the run (`|| true`)."""
        command_result = await self.executor.run(stages.cleanup_command(self.settings, service), cwd=self.settings.repo_dir)
        results.append(StageResult(
            name=STAGE_CLEANUP,
            command=command_result.command,
            exit_code=command_result.exit_code,
            success=command_result.ok,
            duration_sec=round(command_result.duration_sec, 3),
            detail=None if command_result.ok else "image removal failed (ignored)",
        ))
        self._report(STAGE_CLEANUP, f"Cleanup finished for {service}", service)
