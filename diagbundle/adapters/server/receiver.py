"""Request receiver for the diagnosis transport.

Sits between the HTTP server and the DiagnosisPort: invokes operations,
shapes results, and translates pipeline failures into status codes and
messages that are safe to return to clients.
"""

import logging
from typing import Any

from diagbundle.core.errors import (
    DiagnosisError,
    JobNotFoundError,
    PermissionDeniedError,
)
from diagbundle.core.ports import DiagnosisPort

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Internal server error"


class DiagnosisRequestReceiver:
    """Forwards transport requests to the DiagnosisPort."""

    def __init__(self, diagnosis_port: DiagnosisPort, timeout: float | None = None):
        """Initialize the receiver.

        Args:
            diagnosis_port: DiagnosisPort implementation to call.
            timeout: Per-request script timeout passed to the port.
                None uses the port's default.
        """
        self.diagnosis_port = diagnosis_port
        self.timeout = timeout

    async def handle_bad_query_request(self, project: str, user: str) -> dict[str, Any]:
        """Return a project's bad-query history as a JSON-ready dict."""
        history = await self.diagnosis_port.get_bad_query_history(project, user)
        return {
            "status": "success",
            "operation": "bad_queries",
            "project": history.project,
            "entries": [
                {
                    "query_id": entry.query_id,
                    "sql": entry.sql,
                    "adj": entry.adj,
                    "server": entry.server,
                    "thread": entry.thread,
                    "user": entry.user,
                    "start_time": entry.start_time,
                    "running_seconds": entry.running_seconds,
                }
                for entry in history.entries
            ],
        }

    async def handle_project_bundle_request(self, project: str, user: str) -> str:
        """Generate a project bundle and return its path."""
        bundle_path = await self.diagnosis_port.dump_project_diagnosis(
            project, user, timeout=self.timeout
        )
        logger.info(
            "Project diagnosis requested via HTTP",
            extra={"project": project, "user": user},
        )
        return bundle_path

    async def handle_job_bundle_request(self, job_id: str, user: str) -> str:
        """Generate a job bundle and return its path."""
        bundle_path = await self.diagnosis_port.dump_job_diagnosis(
            job_id, user, timeout=self.timeout
        )
        logger.info(
            "Job diagnosis requested via HTTP",
            extra={"job_id": job_id, "user": user},
        )
        return bundle_path

    async def release_bundle(self, bundle_path: str) -> None:
        """Release the workspace of a delivered bundle."""
        await self.diagnosis_port.release_bundle(bundle_path)

    @staticmethod
    def error_response(error: Exception) -> tuple[int, dict[str, Any]]:
        """Map an exception to an HTTP status and response body.

        Only DiagnosisError messages reach the client; anything else is
        reported generically.
        """
        if isinstance(error, PermissionDeniedError):
            status = 403
        elif isinstance(error, JobNotFoundError):
            status = 404
        elif isinstance(error, DiagnosisError):
            status = 400
        elif isinstance(error, ValueError):
            return 400, {"status": "error", "message": str(error)}
        else:
            return 500, {"status": "error", "message": GENERIC_ERROR_MESSAGE}
        return status, {"status": "error", "message": error.message}
