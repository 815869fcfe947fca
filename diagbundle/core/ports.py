"""Port interfaces for the diagbundle orchestration system.

These abstract base classes define the boundaries between core
domain logic and external adapters. Implementations live in the
adapters/ package.

Port Interface Categories:

1. **Driven Ports** (core calls out to adapters)
   - AccessControlPort: Project-scoped authorization checks
   - JobLookupPort: Resolve job IDs to job metadata
   - CommandExecutorPort: Run a shell command line to completion
   - BadQueryStorePort: Read and record bad-query history

2. **Driving Ports** (adapters/external systems call into core)
   - DiagnosisPort: Bundle generation and bad-query lookups
"""

from abc import ABC, abstractmethod

from .models import BadQueryEntry, BadQueryHistory, CommandResult, JobInstance


# ============================================================================
# DRIVEN PORTS (Core calls out to adapters)
# ============================================================================


class AccessControlPort(ABC):
    """Port for consulting the permission service.

    The core never decides permissions itself; it only asks.
    """

    @abstractmethod
    async def check_project_operation_permission(
        self, project: str, user: str
    ) -> None:
        """Verify that a user may perform operations on a project.

        Args:
            project: Project name.
            user: Caller identity.

        Raises:
            PermissionDeniedError: If the user lacks operation permission.
            Exception: If the permission service is unreachable.
        """


class JobLookupPort(ABC):
    """Port for the job-metadata service."""

    @abstractmethod
    async def get_job(self, job_id: str) -> JobInstance | None:
        """Retrieve a job by ID.

        Args:
            job_id: Job identifier.

        Returns:
            JobInstance if found, None otherwise.

        Raises:
            Exception: If the job service is unreachable.
        """


class CommandExecutorPort(ABC):
    """Port for executing shell command lines.

    Implementations must run the command to completion and report its exit
    code with stdout and stderr combined. When a timeout expires or the
    awaiting task is cancelled, the process and every child it spawned
    must be terminated before control returns.
    """

    @abstractmethod
    async def execute(
        self, command: str, timeout: float | None = None
    ) -> CommandResult:
        """Run a command line and wait for it to finish.

        Args:
            command: Full command line, interpreted by the shell.
            timeout: Seconds to wait before killing the process.
                None waits indefinitely.

        Returns:
            CommandResult with exit code and combined output.

        Raises:
            TimeoutError: If the timeout expired (process already killed).
            asyncio.CancelledError: If the awaiting task was cancelled
                (process already killed).
        """


class BadQueryStorePort(ABC):
    """Port for the bad-query history store."""

    @abstractmethod
    async def get_bad_queries_for_project(self, project: str) -> BadQueryHistory:
        """Return the bad-query history of a project.

        Args:
            project: Project name.

        Returns:
            BadQueryHistory, possibly with no entries.

        Raises:
            Exception: If the store is unavailable.
        """

    @abstractmethod
    async def add_entry(self, project: str, entry: BadQueryEntry) -> None:
        """Record a bad query for a project.

        Re-adding an entry with the same query_id replaces it.

        Raises:
            Exception: If the store is unavailable.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release any resources held by the store."""


# ============================================================================
# DRIVING PORTS (External systems call into core)
# ============================================================================


class DiagnosisPort(ABC):
    """Port for diagnostic bundle operations.

    Called by the HTTP server and CLI adapters.
    """

    @abstractmethod
    async def get_bad_query_history(self, project: str, user: str) -> BadQueryHistory:
        """Return the bad-query history of a project after a permission check.

        Raises:
            PermissionDeniedError: If the user lacks permission.
        """

    @abstractmethod
    async def dump_project_diagnosis(
        self, project: str, user: str, timeout: float | None = None
    ) -> str:
        """Generate a diagnostic bundle for a project.

        Returns:
            Absolute path of the generated archive.

        Raises:
            DiagnosisError: On permission denial, missing script,
                failed or timed-out execution, or missing archive.
        """

    @abstractmethod
    async def dump_job_diagnosis(
        self, job_id: str, user: str, timeout: float | None = None
    ) -> str:
        """Generate a diagnostic bundle for a job.

        Returns:
            Absolute path of the generated archive.

        Raises:
            JobNotFoundError: If the job ID is unknown.
            DiagnosisError: Same failure modes as dump_project_diagnosis.
        """

    @abstractmethod
    async def release_bundle(self, bundle_path: str) -> None:
        """Delete the workspace holding a previously returned bundle.

        Called by transports once the archive has been delivered.
        """
