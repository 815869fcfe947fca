"""Unit tests for CLI commands.

Tests verify that the CLI handler:
- Acts as the configured user
- Returns JSON-ready dicts with status "success" or "error"
- Reports diagnosis failures without raising
"""

from unittest.mock import AsyncMock

import pytest

from diagbundle.adapters.cli.commands import CLICommandHandler
from diagbundle.adapters.scheduler.janitor import WorkspaceJanitor
from diagbundle.core.errors import DiagnosisTimeoutError, PermissionDeniedError
from diagbundle.core.models import BadQueryEntry, BadQueryHistory
from diagbundle.main import _execute_cli_command
from diagbundle.tests.fakes import FakeDiagnosisPort


@pytest.fixture
def diagnosis() -> FakeDiagnosisPort:
    return FakeDiagnosisPort(bundle_path="/tmp/diag_1/pkg/diag.zip")


@pytest.fixture
def handler(diagnosis: FakeDiagnosisPort) -> CLICommandHandler:
    return CLICommandHandler(diagnosis, user="ADMIN", timeout=120)


@pytest.fixture
def history() -> BadQueryHistory:
    return BadQueryHistory(
        project="sales_cube",
        entries=(
            BadQueryEntry(
                query_id="q-1",
                sql="select sum(price) from sales",
                adj="Slow",
                server="node-1",
                thread="Query-3",
                user="analyst",
                start_time=1_700_000_000_000,
                running_seconds=93.5,
            ),
        ),
    )


# ============================================================================
# project / job
# ============================================================================


class TestDumpCommands:
    """Bundle generation commands."""

    @pytest.mark.asyncio
    async def test_project_success(
        self, handler: CLICommandHandler, diagnosis: FakeDiagnosisPort
    ) -> None:
        result = await handler.dump_project("sales_cube")

        assert result == {
            "status": "success",
            "operation": "project",
            "project": "sales_cube",
            "bundle_path": "/tmp/diag_1/pkg/diag.zip",
        }
        assert diagnosis.project_calls == [("sales_cube", "ADMIN", 120)]

    @pytest.mark.asyncio
    async def test_project_denied(
        self, handler: CLICommandHandler, diagnosis: FakeDiagnosisPort
    ) -> None:
        diagnosis.set_error(PermissionDeniedError("sales_cube", "ADMIN"))

        result = await handler.dump_project("sales_cube")

        assert result["status"] == "error"
        assert "sales_cube" in result["message"]

    @pytest.mark.asyncio
    async def test_job_success(
        self, handler: CLICommandHandler, diagnosis: FakeDiagnosisPort
    ) -> None:
        result = await handler.dump_job("job-42", verbose=True)

        assert result["status"] == "success"
        assert result["job_id"] == "job-42"
        assert diagnosis.job_calls == [("job-42", "ADMIN", 120)]

    @pytest.mark.asyncio
    async def test_job_timeout(
        self, handler: CLICommandHandler, diagnosis: FakeDiagnosisPort
    ) -> None:
        diagnosis.set_error(DiagnosisTimeoutError(120))

        result = await handler.dump_job("job-42")

        assert result["status"] == "error"
        assert result["operation"] == "job"

    @pytest.mark.asyncio
    async def test_bundles_are_not_released(
        self, handler: CLICommandHandler, diagnosis: FakeDiagnosisPort
    ) -> None:
        await handler.dump_project("sales_cube")

        assert diagnosis.released == []


# ============================================================================
# bad-queries
# ============================================================================


class TestBadQueries:
    """Bad-query listing command."""

    @pytest.mark.asyncio
    async def test_json_format(
        self,
        handler: CLICommandHandler,
        diagnosis: FakeDiagnosisPort,
        history: BadQueryHistory,
    ) -> None:
        diagnosis.history = history

        result = await handler.bad_queries("sales_cube")

        assert result["status"] == "success"
        assert result["count"] == 1
        assert result["entries"][0]["query_id"] == "q-1"

    @pytest.mark.asyncio
    async def test_text_format(
        self,
        handler: CLICommandHandler,
        diagnosis: FakeDiagnosisPort,
        history: BadQueryHistory,
    ) -> None:
        diagnosis.history = history

        result = await handler.bad_queries("sales_cube", output_format="text")

        assert "Bad queries for sales_cube: 1" in result["report"]
        assert "[Slow] q-1 by analyst (93.5s)" in result["report"]

    @pytest.mark.asyncio
    async def test_unknown_format(self, handler: CLICommandHandler) -> None:
        result = await handler.bad_queries("sales_cube", output_format="xml")

        assert result["status"] == "error"
        assert "xml" in result["message"]

    @pytest.mark.asyncio
    async def test_denied(
        self, handler: CLICommandHandler, diagnosis: FakeDiagnosisPort
    ) -> None:
        diagnosis.set_error(PermissionDeniedError("sales_cube", "ADMIN"))

        result = await handler.bad_queries("sales_cube")

        assert result["status"] == "error"


# ============================================================================
# sweep
# ============================================================================


class TestSweep:
    """On-demand workspace sweep."""

    @pytest.mark.asyncio
    async def test_without_janitor(self, handler: CLICommandHandler) -> None:
        result = await handler.sweep()

        assert result["status"] == "error"

    @pytest.mark.asyncio
    async def test_with_janitor(self, diagnosis: FakeDiagnosisPort) -> None:
        janitor = AsyncMock(spec=WorkspaceJanitor)
        janitor.run_once.return_value = []
        handler = CLICommandHandler(diagnosis, user="ADMIN", janitor=janitor)

        result = await handler.sweep()

        assert result == {"status": "success", "operation": "sweep", "removed": []}
        janitor.run_once.assert_awaited_once()


# ============================================================================
# Command dispatch
# ============================================================================


class TestExecuteCommand:
    """Dispatch from parsed command lines to the handler."""

    @pytest.mark.asyncio
    async def test_dispatches_project(
        self, handler: CLICommandHandler, diagnosis: FakeDiagnosisPort
    ) -> None:
        result = await _execute_cli_command(handler, "project", {"project": "sales_cube"})

        assert result["status"] == "success"
        assert diagnosis.project_calls[0][0] == "sales_cube"

    @pytest.mark.asyncio
    async def test_dispatches_bad_queries_format(
        self, handler: CLICommandHandler
    ) -> None:
        result = await _execute_cli_command(
            handler, "bad-queries", {"project": "sales_cube", "format": "text"}
        )

        assert "report" in result

    @pytest.mark.asyncio
    @pytest.mark.parametrize("command", ["project", "job", "bad-queries"])
    async def test_missing_parameter(self, handler: CLICommandHandler, command: str) -> None:
        with pytest.raises(ValueError, match="Missing required parameter"):
            await _execute_cli_command(handler, command, {})

    @pytest.mark.asyncio
    async def test_unknown_command(self, handler: CLICommandHandler) -> None:
        with pytest.raises(ValueError, match="Unknown command"):
            await _execute_cli_command(handler, "cube", {})
