"""Domain models for the diagbundle orchestration system.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain.
"""

from dataclasses import dataclass, field
from enum import Enum


class DiagnosisKind(Enum):
    """Scope of a diagnosis request."""

    PROJECT = "project"
    JOB = "job"


@dataclass(frozen=True)
class DiagnosisRequest:
    """A single request to produce a diagnostic bundle.

    Constructed per call and never persisted. The target is a project
    name for PROJECT requests and a job ID for JOB requests.
    """

    target: str
    kind: DiagnosisKind
    user: str

    def __post_init__(self) -> None:
        """Validate request invariants on creation."""
        if not self.target or not self.target.strip():
            raise ValueError("target must be a non-empty string")
        if not self.user or not self.user.strip():
            raise ValueError("user must be a non-empty string")


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external command execution.

    output holds stdout and stderr interleaved as the process wrote them.
    """

    exit_code: int
    output: str

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


class JobStatus(Enum):
    """Lifecycle states reported by the job-metadata service."""

    NEW = "NEW"
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    FINISHED = "FINISHED"
    ERROR = "ERROR"
    DISCARDED = "DISCARDED"
    STOPPED = "STOPPED"


@dataclass(frozen=True)
class JobInstance:
    """A job as known to the job-metadata service."""

    job_id: str
    name: str
    project: str
    status: JobStatus

    def __post_init__(self) -> None:
        """Validate job invariants on creation."""
        if not self.job_id or not self.job_id.strip():
            raise ValueError("job_id must be a non-empty string")
        if not self.project or not self.project.strip():
            raise ValueError("project must be a non-empty string")


@dataclass(frozen=True)
class BadQueryEntry:
    """A query flagged as problematic by the query engine.

    adj is the reason the query was flagged (e.g. "Slow", "Killed").
    start_time is epoch milliseconds.
    """

    query_id: str
    sql: str
    adj: str
    server: str
    thread: str
    user: str
    start_time: int
    running_seconds: float

    def __post_init__(self) -> None:
        """Validate entry invariants on creation."""
        if self.running_seconds < 0:
            raise ValueError(
                f"running_seconds must be non-negative, got {self.running_seconds}"
            )


@dataclass(frozen=True)
class BadQueryHistory:
    """Bad queries recorded for one project, ordered by start time."""

    project: str
    entries: tuple[BadQueryEntry, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        """Keep entries ordered by start time."""
        ordered = tuple(sorted(self.entries, key=lambda e: e.start_time))
        object.__setattr__(self, "entries", ordered)

    def __len__(self) -> int:
        return len(self.entries)
