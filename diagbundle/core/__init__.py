"""Core domain logic for the diagbundle orchestration system.

This package contains zero external dependencies and represents
the pure business logic of the application. All adapters and
external integrations are handled by the adapters package.
"""

from .errors import (
    DiagnosisError,
    DiagnosisExecutionError,
    DiagnosisTimeoutError,
    JobNotFoundError,
    PackageNotAvailableError,
    PackageNotFoundError,
    PermissionDeniedError,
    ScriptNotFoundError,
)
from .models import (
    BadQueryEntry,
    BadQueryHistory,
    CommandResult,
    DiagnosisKind,
    DiagnosisRequest,
    JobInstance,
    JobStatus,
)

__all__ = [
    "BadQueryEntry",
    "BadQueryHistory",
    "CommandResult",
    "DiagnosisError",
    "DiagnosisExecutionError",
    "DiagnosisKind",
    "DiagnosisRequest",
    "DiagnosisTimeoutError",
    "JobInstance",
    "JobNotFoundError",
    "JobStatus",
    "PackageNotAvailableError",
    "PackageNotFoundError",
    "PermissionDeniedError",
    "ScriptNotFoundError",
]
