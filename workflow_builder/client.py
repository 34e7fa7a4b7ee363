"""
Persistence Client
Async HTTP client for the workflow persistence boundary
(GET /workflows/{id}, POST /workflows, PUT /workflows/{id}).

Any transport failure, non-2xx answer or unreadable body is raised as
PersistenceError.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from .config import settings
from .domain.errors import PersistenceError

logger = logging.getLogger(__name__)


class WorkflowClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token: str = "",
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._http = httpx.AsyncClient(
            base_url=base_url or settings.persistence_base_url,
            headers=headers,
            timeout=timeout if timeout is not None else settings.persistence_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "WorkflowClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def get_workflow(self, workflow_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/workflows/{workflow_id}")

    async def create_workflow(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/workflows", json=payload)

    async def update_workflow(self, workflow_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/workflows/{workflow_id}", json=payload)

    async def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise PersistenceError(f"{method} {url} failed: {exc}") from exc

        if response.is_error:
            logger.warning("%s %s -> %s", method, url, response.status_code)
            raise PersistenceError(
                f"{method} {url} returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            logger.warning("%s %s -> %s with a non-JSON body", method, url, response.status_code)
            raise PersistenceError(
                f"{method} {url} returned a non-JSON body",
                status_code=response.status_code,
            ) from exc
