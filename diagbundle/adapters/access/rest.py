"""REST access-control adapter.

Implements AccessControlPort by asking a remote permission service whether
a user holds operation permission on a project.

Expected endpoint:
    GET /api/access/projects/{project}/operation?user={user}
    -> 200 {"granted": true|false}
A 403 response is treated as a denial.
"""

import logging
import urllib.parse

import httpx

from diagbundle.core.errors import PermissionDeniedError
from diagbundle.core.ports import AccessControlPort

logger = logging.getLogger(__name__)


class RESTAccessControlAdapter(AccessControlPort):
    """Permission checks against a REST permission service."""

    def __init__(
        self,
        api_url: str,
        api_key: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the access-control adapter.

        Args:
            api_url: Base URL of the permission service.
            api_key: Optional bearer token for the service.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.client = httpx.AsyncClient(
            base_url=self.api_url,
            headers=self._get_headers(),
            timeout=timeout,
            transport=transport,
        )

    def _get_headers(self) -> dict[str, str]:
        """Build request headers."""
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def close(self) -> None:
        """Close the httpx client."""
        await self.client.aclose()

    async def check_project_operation_permission(
        self, project: str, user: str
    ) -> None:
        """Raise PermissionDeniedError unless the service grants access."""
        path = f"/api/access/projects/{urllib.parse.quote(project, safe='')}/operation"
        try:
            response = await self.client.get(path, params={"user": user})
            if response.status_code == 403:
                raise PermissionDeniedError(project, user)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Failed to check permission for project {project}: {e}")
            raise

        if not data.get("granted", False):
            raise PermissionDeniedError(project, user)
