"""
File: jenkins_runner.py
Purpose: Jenkins backend for the pipeline runner -- for each selected service, in order, triggers
    the service's parameterized Jenkins job (SERVICE_NAME, SERVICE_REPO, AWS_REGION, ECR_REGISTRY)
    and waits for the build to finish before moving to the next service.
When Used: Selected with `--backend jenkins` on the CLI or `"backend": "jenkins"` on POST /runs,
    when build/scan/push should keep running inside the existing per-service Jenkins jobs.
Why Created: The per-service Jenkinsfiles already encode build/scan/push; this backend lets the
    selector decide which of them to run without duplicating their stages locally.
"""
import logging
import time
from typing import Dict, Optional, Sequence

from ci_orchestrator.config import Settings
from ci_orchestrator.errors import JenkinsError, StageFailedError
from ci_orchestrator.integrations.jenkins import JenkinsIntegration
from ci_orchestrator.models.schemas import PipelineRunResult, ServiceRunResult, StageResult
from ci_orchestrator.services.pipeline_runner.constants import STAGE_JENKINS
from ci_orchestrator.services.pipeline_runner.runner import BasePipelineRunner, ProgressCallback

logger = logging.getLogger(__name__)


class JenkinsPipelineRunner(BasePipelineRunner):
    """Hands each selected service to its Jenkins job, sequentially and fail-fast."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        jenkins: Optional[JenkinsIntegration] = None,
        progress: Optional[ProgressCallback] = None,
        dry_run: Optional[bool] = None,
    ):
        super().__init__(settings, progress)
        self.jenkins = jenkins
        self.dry_run = self.settings.dry_run if dry_run is None else dry_run

    def job_name(self, service: str) -> str:
        return self.settings.jenkins_job_template.format(service=service)

    def build_parameters(self, service: str) -> Dict[str, str]:
        """Same parameter names the per-service Jenkinsfile declares."""
        params = {
            "SERVICE_NAME": service,
            "SERVICE_REPO": self.settings.service_repo,
            "AWS_REGION": self.settings.aws_region,
        }
        if self.settings.ecr_registry:
            params["ECR_REGISTRY"] = self.settings.ecr_registry
        return params

    async def _execute(self, services: Sequence[str], result: PipelineRunResult) -> None:
        owns_client = self.jenkins is None
        jenkins = self.jenkins or JenkinsIntegration(self.settings.jenkins_tool())
        try:
            for service in services:
                service_result = ServiceRunResult(service=service, success=False)
                result.services.append(service_result)
                await self._run_service(jenkins, service, service_result)
                service_result.success = True
        finally:
            if owns_client:
                await jenkins.close()

    async def _run_service(self, jenkins: JenkinsIntegration, service: str, service_result: ServiceRunResult) -> None:
        job = self.job_name(service)
        command = f"{job} {self.build_parameters(service)}"

        if self.dry_run:
            service_result.stages.append(StageResult(
                name=STAGE_JENKINS, command=command, success=True, skipped=True,
                detail=f"dry run: would trigger {job}",
            ))
            self._report(STAGE_JENKINS, f"[dry-run] would trigger {job}", service)
            return

        self._report(STAGE_JENKINS, f"Triggering {job}", service)
        start_time = time.monotonic()
        try:
            queue_url = await jenkins.trigger_build(job, self.build_parameters(service))
            build = await jenkins.wait_for_build(
                queue_url,
                poll_interval=self.settings.jenkins_poll_interval,
                timeout=self.settings.jenkins_wait_timeout,
            )
        except JenkinsError as e:
            service_result.stages.append(StageResult(
                name=STAGE_JENKINS, command=command, success=False,
                duration_sec=round(time.monotonic() - start_time, 3), detail=str(e),
            ))
            raise StageFailedError(STAGE_JENKINS, 1, service=service, detail=str(e)) from e

        success = build["status"] == "success"
        service_result.build_url = build.get("url") or None
        service_result.stages.append(StageResult(
            name=STAGE_JENKINS,
            command=command,
            exit_code=0 if success else 1,
            success=success,
            duration_sec=round(time.monotonic() - start_time, 3),
            detail=f"build #{build.get('build_number')} {build['status']}",
        ))
        if not success:
            raise StageFailedError(
                STAGE_JENKINS, 1, service=service,
                detail=f"{job} #{build.get('build_number')} finished {build['status'].upper()} ({build.get('url')})",
            )
        self._report(STAGE_JENKINS, f"{job} #{build.get('build_number')} succeeded", service)
