"""Shared fixtures for the diagbundle test suite."""

from pathlib import Path

import pytest

from diagbundle.core.access_gate import AccessGate
from diagbundle.core.diagnosis_service import DiagnosisService
from diagbundle.core.locator import BundleLocator
from diagbundle.core.runner import DiagnosticRunner
from diagbundle.core.workspace import WorkspaceManager
from diagbundle.tests.scripts import write_script
from diagbundle.tests.fakes import (
    FakeAccessControlPort,
    FakeBadQueryStore,
    FakeCommandExecutor,
    FakeJobLookupPort,
)


@pytest.fixture
def installation_home(tmp_path: Path) -> Path:
    """Installation home with an executable (no-op) diag.sh."""
    home = tmp_path / "home"
    write_script(home, "exit 0\n")
    return home


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    """Directory that holds all workspaces created during a test."""
    return tmp_path / "workspaces"


@pytest.fixture
def workspaces(workspace_root: Path) -> WorkspaceManager:
    return WorkspaceManager(root=str(workspace_root))


@pytest.fixture
def executor() -> FakeCommandExecutor:
    return FakeCommandExecutor()


@pytest.fixture
def access() -> FakeAccessControlPort:
    return FakeAccessControlPort()


@pytest.fixture
def jobs() -> FakeJobLookupPort:
    return FakeJobLookupPort()


@pytest.fixture
def bad_queries() -> FakeBadQueryStore:
    return FakeBadQueryStore()


@pytest.fixture
def runner(
    executor: FakeCommandExecutor,
    workspaces: WorkspaceManager,
    installation_home: Path,
) -> DiagnosticRunner:
    return DiagnosticRunner(
        executor=executor,
        workspaces=workspaces,
        locator=BundleLocator(),
        installation_home=str(installation_home),
    )


@pytest.fixture
def service(
    access: FakeAccessControlPort,
    jobs: FakeJobLookupPort,
    runner: DiagnosticRunner,
    workspaces: WorkspaceManager,
    bad_queries: FakeBadQueryStore,
) -> DiagnosisService:
    return DiagnosisService(
        gate=AccessGate(access, jobs),
        runner=runner,
        workspaces=workspaces,
        bad_queries=bad_queries,
    )
