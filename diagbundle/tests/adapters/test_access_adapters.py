"""Tests for access-control and job-lookup adapters."""

import httpx
import pytest

from diagbundle.adapters.access.rest import RESTAccessControlAdapter
from diagbundle.adapters.access.static import StaticAccessControlAdapter
from diagbundle.adapters.jobs.rest import RESTJobLookupAdapter
from diagbundle.core.errors import PermissionDeniedError
from diagbundle.core.models import JobStatus


# ============================================================================
# StaticAccessControlAdapter
# ============================================================================


class TestStaticAccessControl:
    """Allow-list based permission checks."""

    @pytest.mark.asyncio
    async def test_listed_project_is_granted(self) -> None:
        adapter = StaticAccessControlAdapter.from_entries(["analyst:sales_cube"])

        await adapter.check_project_operation_permission("sales_cube", "analyst")

    @pytest.mark.asyncio
    async def test_unlisted_project_is_denied(self) -> None:
        adapter = StaticAccessControlAdapter.from_entries(["analyst:sales_cube"])

        with pytest.raises(PermissionDeniedError):
            await adapter.check_project_operation_permission("hr_cube", "analyst")

    @pytest.mark.asyncio
    async def test_other_user_is_denied(self) -> None:
        adapter = StaticAccessControlAdapter.from_entries(["analyst:sales_cube"])

        with pytest.raises(PermissionDeniedError):
            await adapter.check_project_operation_permission("sales_cube", "guest")

    @pytest.mark.asyncio
    async def test_wildcards(self) -> None:
        adapter = StaticAccessControlAdapter.from_entries(["ADMIN:*", "*:demo"])

        await adapter.check_project_operation_permission("anything", "ADMIN")
        await adapter.check_project_operation_permission("demo", "guest")
        with pytest.raises(PermissionDeniedError):
            await adapter.check_project_operation_permission("sales_cube", "guest")

    @pytest.mark.asyncio
    async def test_empty_allow_list_denies_everything(self) -> None:
        adapter = StaticAccessControlAdapter.from_entries([])

        with pytest.raises(PermissionDeniedError):
            await adapter.check_project_operation_permission("sales_cube", "ADMIN")

    @pytest.mark.parametrize("entry", ["no-separator", ":project", "user:"])
    def test_malformed_entry_rejected(self, entry: str) -> None:
        with pytest.raises(ValueError):
            StaticAccessControlAdapter.from_entries([entry])


# ============================================================================
# RESTAccessControlAdapter
# ============================================================================


def _access_adapter(handler) -> RESTAccessControlAdapter:
    return RESTAccessControlAdapter(
        api_url="http://acl.local/",
        api_key="secret",
        transport=httpx.MockTransport(handler),
    )


class TestRESTAccessControl:
    """Permission checks against a mocked permission service."""

    @pytest.mark.asyncio
    async def test_granted(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"granted": True})

        adapter = _access_adapter(handler)
        await adapter.check_project_operation_permission("sales cube", "analyst")
        await adapter.close()

        assert seen[0].url.raw_path == b"/api/access/projects/sales%20cube/operation"
        assert seen[0].url.params["user"] == "analyst"
        assert seen[0].headers["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_not_granted(self) -> None:
        adapter = _access_adapter(lambda r: httpx.Response(200, json={"granted": False}))

        with pytest.raises(PermissionDeniedError):
            await adapter.check_project_operation_permission("sales_cube", "analyst")
        await adapter.close()

    @pytest.mark.asyncio
    async def test_forbidden_status_is_denial(self) -> None:
        adapter = _access_adapter(lambda r: httpx.Response(403))

        with pytest.raises(PermissionDeniedError):
            await adapter.check_project_operation_permission("sales_cube", "analyst")
        await adapter.close()

    @pytest.mark.asyncio
    async def test_server_error_propagates(self) -> None:
        adapter = _access_adapter(lambda r: httpx.Response(503))

        with pytest.raises(httpx.HTTPStatusError):
            await adapter.check_project_operation_permission("sales_cube", "analyst")
        await adapter.close()


# ============================================================================
# RESTJobLookupAdapter
# ============================================================================


def _job_adapter(handler) -> RESTJobLookupAdapter:
    return RESTJobLookupAdapter(
        api_url="http://jobs.local",
        transport=httpx.MockTransport(handler),
    )


class TestRESTJobLookup:
    """Job lookups against a mocked job service."""

    @pytest.mark.asyncio
    async def test_job_found(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/jobs/job-42"
            return httpx.Response(
                200,
                json={
                    "uuid": "job-42",
                    "name": "BUILD CUBE - sales_cube",
                    "related_project": "sales_cube",
                    "job_status": "finished",
                },
            )

        adapter = _job_adapter(handler)
        job = await adapter.get_job("job-42")
        await adapter.close()

        assert job is not None
        assert job.project == "sales_cube"
        assert job.status == JobStatus.FINISHED

    @pytest.mark.asyncio
    async def test_job_id_is_percent_encoded(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(404)

        adapter = _job_adapter(handler)
        await adapter.get_job("job/42 x")
        await adapter.close()

        assert seen[0].url.raw_path == b"/api/jobs/job%2F42%20x"

    @pytest.mark.asyncio
    async def test_job_missing(self) -> None:
        adapter = _job_adapter(lambda r: httpx.Response(404))

        assert await adapter.get_job("job-missing") is None
        await adapter.close()

    @pytest.mark.asyncio
    async def test_job_without_project_is_unknown(self) -> None:
        adapter = _job_adapter(lambda r: httpx.Response(200, json={"uuid": "job-1"}))

        assert await adapter.get_job("job-1") is None
        await adapter.close()

    @pytest.mark.asyncio
    async def test_unknown_status_defaults_to_new(self) -> None:
        adapter = _job_adapter(
            lambda r: httpx.Response(200, json={"project": "sales_cube", "job_status": "WEIRD"})
        )

        job = await adapter.get_job("job-7")
        await adapter.close()

        assert job is not None
        assert job.job_id == "job-7"
        assert job.status == JobStatus.NEW

    @pytest.mark.asyncio
    async def test_server_error_propagates(self) -> None:
        adapter = _job_adapter(lambda r: httpx.Response(500))

        with pytest.raises(httpx.HTTPStatusError):
            await adapter.get_job("job-42")
        await adapter.close()
