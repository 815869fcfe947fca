"""Unit tests for domain model invariants."""

import dataclasses

import pytest

from diagbundle.core.models import (
    BadQueryEntry,
    BadQueryHistory,
    CommandResult,
    DiagnosisKind,
    DiagnosisRequest,
    JobInstance,
    JobStatus,
)


def _entry(query_id: str, start_time: int) -> BadQueryEntry:
    return BadQueryEntry(
        query_id=query_id,
        sql="select 1",
        adj="Slow",
        server="node-1",
        thread="Query-1",
        user="analyst",
        start_time=start_time,
        running_seconds=1.0,
    )


def test_request_is_immutable() -> None:
    request = DiagnosisRequest(target="sales_cube", kind=DiagnosisKind.PROJECT, user="analyst")

    with pytest.raises(dataclasses.FrozenInstanceError):
        request.target = "other"  # type: ignore[misc]


@pytest.mark.parametrize("target", ["", "   "])
def test_request_rejects_blank_target(target: str) -> None:
    with pytest.raises(ValueError, match="target"):
        DiagnosisRequest(target=target, kind=DiagnosisKind.JOB, user="analyst")


def test_request_rejects_blank_user() -> None:
    with pytest.raises(ValueError, match="user"):
        DiagnosisRequest(target="sales_cube", kind=DiagnosisKind.PROJECT, user="")


def test_command_result_success() -> None:
    assert CommandResult(exit_code=0, output="").succeeded
    assert not CommandResult(exit_code=3, output="boom").succeeded


def test_job_requires_project() -> None:
    with pytest.raises(ValueError, match="project"):
        JobInstance(job_id="job-42", name="build", project="", status=JobStatus.RUNNING)


def test_bad_query_entry_rejects_negative_duration() -> None:
    with pytest.raises(ValueError):
        BadQueryEntry(
            query_id="q",
            sql="select 1",
            adj="Slow",
            server="",
            thread="",
            user="",
            start_time=0,
            running_seconds=-1,
        )


def test_history_orders_entries_by_start_time() -> None:
    late, early = _entry("late", 200), _entry("early", 100)

    history = BadQueryHistory(project="sales_cube", entries=(late, early))

    assert [e.query_id for e in history.entries] == ["early", "late"]
    assert len(history) == 2
