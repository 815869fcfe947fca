"""Permission gating for diagnosis requests.

The gate runs before anything else in the pipeline: no workspace is
allocated and no process is spawned until it has passed.
"""

import logging

from .errors import JobNotFoundError, PermissionDeniedError
from .models import JobInstance
from .ports import AccessControlPort, JobLookupPort

logger = logging.getLogger(__name__)


class AccessGate:
    """Checks project-scoped operation permission for a caller."""

    def __init__(self, access_control: AccessControlPort, jobs: JobLookupPort):
        self.access_control = access_control
        self.jobs = jobs

    async def check_project_access(self, project: str, user: str) -> None:
        """Raise PermissionDeniedError unless user may operate on project."""
        try:
            await self.access_control.check_project_operation_permission(project, user)
        except PermissionDeniedError:
            logger.warning(
                f"Permission denied for user {user} on project {project}",
                extra={"project": project, "user": user},
            )
            raise

    async def check_job_access(self, job_id: str, user: str) -> JobInstance:
        """Resolve a job to its project and check access to that project.

        Returns:
            The resolved JobInstance.

        Raises:
            JobNotFoundError: If the job is unknown.
            PermissionDeniedError: If the user lacks access to the job's project.
        """
        job = await self.jobs.get_job(job_id)
        if job is None:
            raise JobNotFoundError(job_id)

        await self.check_project_access(job.project, user)
        return job
