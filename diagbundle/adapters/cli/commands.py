"""CLI command implementations for diagbundle.

Provides operator actions through a command-line interface.

This adapter maps CLI commands (project, job, bad-queries, sweep) to
DiagnosisPort operations. It handles CLI-specific formatting and error
reporting. Bundles generated from the CLI are left in place for the
operator to collect; the janitor removes them after the retention window.
"""

import logging
from typing import Any

from diagbundle.adapters.scheduler.janitor import WorkspaceJanitor
from diagbundle.core.errors import DiagnosisError
from diagbundle.core.ports import DiagnosisPort

logger = logging.getLogger(__name__)


class CLICommandHandler:
    """Handles CLI commands by delegating to DiagnosisPort."""

    def __init__(
        self,
        diagnosis: DiagnosisPort,
        user: str,
        janitor: WorkspaceJanitor | None = None,
        timeout: float | None = None,
    ):
        """Initialize the CLI command handler.

        Args:
            diagnosis: DiagnosisPort implementation to execute commands.
            user: Identity the operator acts as for permission checks.
            janitor: Optional WorkspaceJanitor for on-demand sweeps.
            timeout: Script timeout for bundle generation (None = port default).
        """
        self.diagnosis = diagnosis
        self.user = user
        self.janitor = janitor
        self.timeout = timeout

    async def dump_project(self, project: str, verbose: bool = False) -> dict[str, Any]:
        """Generate a diagnosis package for a project via CLI.

        Returns:
            Dictionary with status, and bundle_path on success.
        """
        try:
            bundle_path = await self.diagnosis.dump_project_diagnosis(
                project, self.user, timeout=self.timeout
            )
        except DiagnosisError as e:
            logger.error(f"Failed to generate diagnosis package for project {project}: {e}")
            return {
                "status": "error",
                "operation": "project",
                "project": project,
                "message": e.message,
            }

        if verbose:
            logger.info(
                f"Generated diagnosis package for project {project}",
                extra={"bundle_path": bundle_path, "verbose": True},
            )

        return {
            "status": "success",
            "operation": "project",
            "project": project,
            "bundle_path": bundle_path,
        }

    async def dump_job(self, job_id: str, verbose: bool = False) -> dict[str, Any]:
        """Generate a diagnosis package for a job via CLI.

        Returns:
            Dictionary with status, and bundle_path on success.
        """
        try:
            bundle_path = await self.diagnosis.dump_job_diagnosis(
                job_id, self.user, timeout=self.timeout
            )
        except DiagnosisError as e:
            logger.error(f"Failed to generate diagnosis package for job {job_id}: {e}")
            return {
                "status": "error",
                "operation": "job",
                "job_id": job_id,
                "message": e.message,
            }

        if verbose:
            logger.info(
                f"Generated diagnosis package for job {job_id}",
                extra={"bundle_path": bundle_path, "verbose": True},
            )

        return {
            "status": "success",
            "operation": "job",
            "job_id": job_id,
            "bundle_path": bundle_path,
        }

    async def bad_queries(
        self, project: str, output_format: str = "json"
    ) -> dict[str, Any]:
        """List a project's bad queries via CLI.

        Args:
            project: Project name.
            output_format: Output format ('json', 'text'). Default 'json'.

        Returns:
            Dictionary with entries (json) or a formatted report (text).
        """
        try:
            history = await self.diagnosis.get_bad_query_history(project, self.user)
        except DiagnosisError as e:
            logger.error(f"Failed to read bad queries for project {project}: {e}")
            return {
                "status": "error",
                "operation": "bad_queries",
                "project": project,
                "message": e.message,
            }

        if output_format == "text":
            lines = [f"Bad queries for {project}: {len(history)}"]
            for entry in history.entries:
                lines.append(
                    f"  [{entry.adj}] {entry.query_id} by {entry.user} "
                    f"({entry.running_seconds:.1f}s): {entry.sql}"
                )
            return {
                "status": "success",
                "operation": "bad_queries",
                "project": project,
                "report": "\n".join(lines),
            }

        if output_format != "json":
            return {
                "status": "error",
                "operation": "bad_queries",
                "message": f"Unknown format: {output_format}. Use 'json' or 'text'.",
            }

        return {
            "status": "success",
            "operation": "bad_queries",
            "project": project,
            "count": len(history),
            "entries": [
                {
                    "query_id": entry.query_id,
                    "adj": entry.adj,
                    "user": entry.user,
                    "start_time": entry.start_time,
                    "running_seconds": entry.running_seconds,
                    "sql": entry.sql,
                }
                for entry in history.entries
            ],
        }

    async def sweep(self) -> dict[str, Any]:
        """Remove expired workspaces now."""
        if self.janitor is None:
            return {
                "status": "error",
                "operation": "sweep",
                "message": "Workspace janitor not configured",
            }

        removed = await self.janitor.run_once()
        return {
            "status": "success",
            "operation": "sweep",
            "removed": [str(path) for path in removed],
        }
