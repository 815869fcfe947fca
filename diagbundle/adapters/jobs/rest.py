"""REST job-lookup adapter.

Implements JobLookupPort by querying the job-metadata service and
normalizing its job records into core domain models.

Expected endpoint:
    GET /api/jobs/{job_id}
    -> 200 {"uuid": ..., "name": ..., "related_project"|"project": ..., "job_status": ...}
    -> 404 when the job is unknown
"""

import logging
import urllib.parse
from typing import Any

import httpx

from diagbundle.core.models import JobInstance, JobStatus
from diagbundle.core.ports import JobLookupPort

logger = logging.getLogger(__name__)


class RESTJobLookupAdapter(JobLookupPort):
    """Job metadata lookups via the job service REST API."""

    def __init__(
        self,
        api_url: str,
        api_key: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the job-lookup adapter.

        Args:
            api_url: Base URL of the job service.
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

    async def get_job(self, job_id: str) -> JobInstance | None:
        """Return the job with the given ID, or None if the service does not know it."""
        try:
            response = await self.client.get(
                f"/api/jobs/{urllib.parse.quote(job_id, safe='')}"
            )
            if response.status_code == 404:
                return None
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch job {job_id}: {e}")
            raise

        return self._parse_job(job_id, data)

    def _parse_job(self, job_id: str, data: dict[str, Any]) -> JobInstance | None:
        """Convert a job service record into a JobInstance.

        Records without a project cannot be permission-checked and are
        treated as unknown jobs.
        """
        project = data.get("related_project") or data.get("project")
        if not project:
            logger.warning(f"Job {job_id} has no owning project")
            return None

        status_raw = str(data.get("job_status", "NEW")).upper()
        try:
            status = JobStatus(status_raw)
        except ValueError:
            logger.warning(f"Unknown status '{status_raw}' for job {job_id}")
            status = JobStatus.NEW

        return JobInstance(
            job_id=data.get("uuid") or job_id,
            name=data.get("name", ""),
            project=project,
            status=status,
        )
