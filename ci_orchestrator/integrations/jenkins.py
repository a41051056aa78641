"""
File: jenkins.py
Purpose: Jenkins REST API client for the trigger backend -- triggers parameterized per-service
    jobs (with CSRF crumb handling), follows the queue item to the build it starts, and polls the
    build until it finishes.
When Used: Called by the Jenkins pipeline runner once per selected service, and by the /status
    endpoint for a health check.
Why Created: Lets the orchestrator hand each selected service to the existing per-service Jenkins
    job (build/scan/push stays in Jenkins) instead of running the tools locally.
"""
import asyncio
import logging
import time
from typing import Optional, Dict, Any

import httpx

from ci_orchestrator.config import ToolConfig
from ci_orchestrator.errors import JenkinsError
from ci_orchestrator.integrations.base import BaseIntegration
from ci_orchestrator.models.schemas import ToolStatus

logger = logging.getLogger(__name__)


def job_path(job_name: str) -> str:
    """'team/adservice-pipeline' -> 'job/team/job/adservice-pipeline' (folder jobs)"""
    return "/".join(f"job/{part}" for part in job_name.strip("/").split("/") if part)


class JenkinsIntegration(BaseIntegration):
    """Jenkins REST API integration"""

    def __init__(self, config: ToolConfig, client: Optional[httpx.AsyncClient] = None):
        super().__init__(config, client)

    @property
    def name(self) -> str:
        return "jenkins"

    async def health_check(self) -> ToolStatus:
        try:
            response = await self.get("/api/json")
            if response.status_code == 200:
                return ToolStatus.HEALTHY
            # 403 with X-Jenkins header means Jenkins is running but requires auth
            if response.status_code == 403 and response.headers.get("X-Jenkins"):
                return ToolStatus.HEALTHY
            return ToolStatus.UNHEALTHY
        except httpx.HTTPError:
            return ToolStatus.UNHEALTHY

    async def get_version(self) -> Optional[str]:
        try:
            response = await self.get("/api/json")
            return response.headers.get("X-Jenkins")
        except httpx.HTTPError:
            return None

    async def _get_crumb(self) -> Dict[str, str]:
        """Get Jenkins crumb token for CSRF protection; empty when the crumb issuer is off."""
        try:
            response = await self.get("/crumbIssuer/api/json")
            if response.status_code == 200:
                data = response.json()
                return {data["crumbRequestField"]: data["crumb"]}
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.debug(f"No Jenkins crumb available: {e}")
        return {}

    async def trigger_build(self, job_name: str, parameters: Optional[Dict[str, str]] = None) -> str:
        """Trigger a build; returns the queue item URL from the Location header."""
        endpoint = f"/{job_path(job_name)}/buildWithParameters" if parameters else f"/{job_path(job_name)}/build"
        headers = await self._get_crumb()

        try:
            response = await self.request("POST", endpoint, params=parameters, headers=headers)
        except httpx.HTTPError as e:
            raise JenkinsError(f"Failed to trigger {job_name}: {e}") from e

        # Jenkins returns 201 (or 302 on older versions) on success
        if response.status_code not in (200, 201, 302):
            raise JenkinsError(f"Failed to trigger {job_name}: HTTP {response.status_code}")

        queue_url = response.headers.get("Location", "")
        if not queue_url:
            raise JenkinsError(f"Jenkins accepted {job_name} but returned no queue location")
        logger.info(f"Triggered {job_name}: {queue_url}")
        return queue_url

    async def _get_json(self, url: str) -> Dict[str, Any]:
        try:
            response = await self.get(url)
        except httpx.HTTPError as e:
            raise JenkinsError(f"Request to {url} failed: {e}") from e
        if response.status_code == 404:
            raise JenkinsError(f"Not found: {url}")
        if response.status_code != 200:
            raise JenkinsError(f"HTTP {response.status_code} from {url}")
        try:
            return response.json()
        except ValueError as e:
            raise JenkinsError(f"Invalid JSON from {url}: {e}") from e

    async def get_queue_item(self, queue_url: str) -> Dict[str, Any]:
        return await self._get_json(f"{queue_url.rstrip('/')}/api/json")

    async def get_build_status(self, job_name: str, build_number: Optional[int] = None) -> Dict[str, Any]:
        """Status of one build of a job (the last build when no number is given)."""
        build = str(build_number) if build_number else "lastBuild"
        return self._summarize_build(await self._get_json(f"/{job_path(job_name)}/{build}/api/json"))

    @staticmethod
    def _summarize_build(data: Dict[str, Any]) -> Dict[str, Any]:
        building = bool(data.get("building"))
        return {
            "build_number": data.get("number"),
            "status": "building" if building else (data.get("result") or "UNKNOWN").lower(),
            "duration": data.get("duration", 0),
            "url": data.get("url", ""),
            "building": building,
        }

    async def wait_for_build(
        self,
        queue_url: str,
        poll_interval: float = 5.0,
        timeout: float = 3600,
    ) -> Dict[str, Any]:
        """
        Follow a queue item to its build and wait for the build to finish.

        Returns the build summary (status is the lower-cased Jenkins result). Raises JenkinsError
        if the item is cancelled or the deadline passes.
        """
        deadline = time.monotonic() + timeout

        build_url = None
        while build_url is None:
            item = await self.get_queue_item(queue_url)
            if item.get("cancelled"):
                raise JenkinsError(f"Queue item {queue_url} was cancelled")
            executable = item.get("executable") or {}
            build_url = executable.get("url")
            if build_url is None:
                if time.monotonic() >= deadline:
                    raise JenkinsError(f"Timed out waiting for {queue_url} to start")
                await asyncio.sleep(poll_interval)

        while True:
            summary = self._summarize_build(await self._get_json(f"{build_url.rstrip('/')}/api/json"))
            if not summary["building"]:
                summary["url"] = summary["url"] or build_url
                return summary
            if time.monotonic() >= deadline:
                raise JenkinsError(f"Timed out waiting for build {build_url}")
            await asyncio.sleep(poll_interval)
