"""Error taxonomy for the diagnosis pipeline.

Every failure in the pipeline is a DiagnosisError carrying a message that
is safe to show to the caller. Transport adapters map these onto their own
response shapes; nothing else from the failure is surfaced.
"""


class DiagnosisError(Exception):
    """Base class for all pipeline failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PermissionDeniedError(DiagnosisError):
    """Caller lacks operational permission on the target project."""

    def __init__(self, project: str, user: str):
        super().__init__(
            f"Access denied. User '{user}' lacks operation permission on project '{project}'."
        )
        self.project = project
        self.user = user


class JobNotFoundError(DiagnosisError):
    """Job ID does not resolve to a known job."""

    def __init__(self, job_id: str):
        super().__init__(f"Can't find job '{job_id}'.")
        self.job_id = job_id


class ScriptNotFoundError(DiagnosisError):
    """Diagnostic script is missing or not executable."""

    def __init__(self, path: str):
        super().__init__(f"diag.sh not found at {path}.")
        self.path = path


class DiagnosisExecutionError(DiagnosisError):
    """Diagnostic script ran and failed.

    The message is deliberately generic; script output goes to logs only.
    """

    def __init__(self, exit_code: int | None = None):
        super().__init__("Can't generate diagnosis package.")
        self.exit_code = exit_code


class DiagnosisTimeoutError(DiagnosisExecutionError):
    """Diagnostic script exceeded its time limit and was killed."""

    def __init__(self, timeout_seconds: float):
        super().__init__(exit_code=None)
        self.timeout_seconds = timeout_seconds


class PackageNotAvailableError(DiagnosisError):
    """Workspace directory could not be listed."""

    def __init__(self, path: str):
        super().__init__(f"Diagnosis package is not available in directory: {path}.")
        self.path = path


class PackageNotFoundError(DiagnosisError):
    """Script reported success but left no archive behind."""

    def __init__(self, path: str):
        super().__init__(f"Can't find diagnosis package in directory: {path}.")
        self.path = path


__all__ = [
    "DiagnosisError",
    "DiagnosisExecutionError",
    "DiagnosisTimeoutError",
    "JobNotFoundError",
    "PackageNotAvailableError",
    "PackageNotFoundError",
    "PermissionDeniedError",
    "ScriptNotFoundError",
]
