"""Diagnosis service: implements DiagnosisPort for bundle generation.

This is a core service that orchestrates the diagnosis pipeline
(permission gate, script execution, bundle discovery) for project and job
requests, plus the permission-gated bad-query history lookup. Every
step short-circuits on failure; no partial results are returned.
"""

import logging

from .access_gate import AccessGate
from .models import BadQueryHistory, DiagnosisKind, DiagnosisRequest
from .ports import BadQueryStorePort, DiagnosisPort
from .runner import DiagnosticRunner
from .workspace import WorkspaceManager

logger = logging.getLogger(__name__)


class DiagnosisService(DiagnosisPort):
    """Core implementation of DiagnosisPort."""

    def __init__(
        self,
        gate: AccessGate,
        runner: DiagnosticRunner,
        workspaces: WorkspaceManager,
        bad_queries: BadQueryStorePort,
    ):
        """Initialize the diagnosis service.

        Args:
            gate: AccessGate consulted before any other step.
            runner: DiagnosticRunner that produces bundles.
            workspaces: WorkspaceManager used to release delivered bundles.
            bad_queries: BadQueryStorePort for bad-query history lookups.
        """
        self.gate = gate
        self.runner = runner
        self.workspaces = workspaces
        self.bad_queries = bad_queries

    async def get_bad_query_history(self, project: str, user: str) -> BadQueryHistory:
        """Return the bad-query history of a project."""
        await self.gate.check_project_access(project, user)
        return await self.bad_queries.get_bad_queries_for_project(project)

    async def dump_project_diagnosis(
        self, project: str, user: str, timeout: float | None = None
    ) -> str:
        """Generate a diagnostic bundle for a project."""
        request = DiagnosisRequest(target=project, kind=DiagnosisKind.PROJECT, user=user)
        await self.gate.check_project_access(request.target, request.user)
        return await self._generate(request, timeout)

    async def dump_job_diagnosis(
        self, job_id: str, user: str, timeout: float | None = None
    ) -> str:
        """Generate a diagnostic bundle for a job."""
        request = DiagnosisRequest(target=job_id, kind=DiagnosisKind.JOB, user=user)
        job = await self.gate.check_job_access(request.target, request.user)
        logger.debug(f"Job {job_id} belongs to project {job.project}")
        return await self._generate(request, timeout)

    async def release_bundle(self, bundle_path: str) -> None:
        """Delete the workspace that holds a delivered bundle."""
        self.workspaces.release(bundle_path)

    async def _generate(self, request: DiagnosisRequest, timeout: float | None) -> str:
        logger.info(
            f"Generating diagnosis package for {request.kind.value} {request.target}",
            extra={"target": request.target, "kind": request.kind.value, "user": request.user},
        )
        bundle_path = await self.runner.run(request.target, timeout=timeout)
        logger.info(
            f"Diagnosis package ready for {request.kind.value} {request.target}",
            extra={"target": request.target, "bundle_path": bundle_path},
        )
        return bundle_path
