"""
File: base.py
Purpose: Shared HTTP plumbing for REST integrations -- one httpx.AsyncClient per integration,
    JSON Accept header, bearer token or basic auth from ToolConfig, and relative-or-absolute
    endpoint resolution.
When Used: Subclassed by JenkinsIntegration; the /status endpoint and the Jenkins runner backend
    create one per request or per run and close it afterwards.
Why Created: Keeps auth and URL handling out of the Jenkins client so it only deals with the
    Jenkins API itself (crumbs, queue items, builds).
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from ci_orchestrator.config import ToolConfig
from ci_orchestrator.models.schemas import ToolStatus


class BaseIntegration(ABC):
    """Base class for REST tool integrations"""

    def __init__(self, config: ToolConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self.client = client or httpx.AsyncClient(timeout=30.0)

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name used in logs"""

    @abstractmethod
    async def health_check(self) -> ToolStatus:
        """Reachability of the tool"""

    @abstractmethod
    async def get_version(self) -> Optional[str]:
        """Tool version, when the API exposes it"""

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.config.token:
            headers["Authorization"] = f"Bearer {self.config.token}"
        if extra:
            headers.update(extra)
        return headers

    def _auth(self) -> Optional[httpx.BasicAuth]:
        # A bearer token takes precedence over username/password
        if self.config.token or not (self.config.username and self.config.password):
            return None
        return httpx.BasicAuth(self.config.username, self.config.password)

    def _url(self, endpoint: str) -> str:
        # Jenkins hands back absolute URLs (queue items, builds); use them as-is
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        return f"{self.config.base_url.rstrip('/')}/{endpoint.lstrip('/')}"

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """Send a request; transport errors propagate as httpx.HTTPError."""
        kwargs: Dict[str, Any] = {"params": params, "headers": self._headers(headers)}
        auth = self._auth()
        if auth is not None:
            kwargs["auth"] = auth
        return await self.client.request(method, self._url(endpoint), **kwargs)

    async def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        return await self.request("GET", endpoint, params=params)

    async def close(self) -> None:
        await self.client.aclose()
