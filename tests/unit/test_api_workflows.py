"""Unit tests for Workflows and Runs API routes.

Uses a minimal app with the workflows and runs routers, the application
error handlers and a mocked runner -- no real database or lifespan.
"""

from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from conduit.api.rate_limit import limiter
from conduit.exceptions import NotFoundError, ValidationError
from conduit.storage.entities.workflow import Workflow
from conduit.storage.entities.workflow_run import WorkflowRun
from tests.factories import WorkflowFactory, WorkflowRunFactory

HEADERS = {"X-Organization-ID": "org-1"}


def _make_test_app(settings, runner):
    """Create a minimal FastAPI app with the workflow and run routers."""
    from fastapi import FastAPI

    from conduit.api.main import _register_exception_handlers
    from conduit.api.routes.runs import router as runs_router
    from conduit.api.routes.workflows import router as workflows_router

    app = FastAPI()
    app.include_router(workflows_router, prefix="/api/v1")
    app.include_router(runs_router, prefix="/api/v1")
    app.state.runner = runner

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]
    _register_exception_handlers(app, settings)

    return app


@pytest.fixture(autouse=True)
def _reset_limiter():
    limiter.reset()


@pytest.fixture
def runner():
    runner = MagicMock()
    runner.start = AsyncMock(return_value=SimpleNamespace(id="run-1", status="pending"))
    return runner


@pytest.fixture
async def client(test_settings, runner):
    async with AsyncClient(
        transport=ASGITransport(app=_make_test_app(test_settings, runner)),
        base_url="http://test",
    ) as client:
        yield client


def _workflow(**overrides) -> Workflow:
    fields = WorkflowFactory(id="wf-1", name="Welcome")
    fields.update(overrides)
    return Workflow(**fields)


@pytest.fixture
def scheduler():
    scheduler = MagicMock()
    scheduler.sync_jobs = AsyncMock()
    with patch("conduit.scheduler.service.SchedulerService.get_instance", return_value=scheduler):
        yield scheduler


@pytest.fixture
def mocks(session_factory, scheduler):
    with (
        patch("conduit.api.routes.workflows.get_session", side_effect=session_factory),
        patch("conduit.api.routes.runs.get_session", side_effect=session_factory),
        patch("conduit.api.routes.workflows.WorkflowService") as MockService,
        patch("conduit.api.routes.workflows.WorkflowRepository") as MockRepo,
        patch("conduit.api.routes.workflows.WorkflowRunRepository") as MockRuns,
        patch("conduit.api.routes.runs.WorkflowRunRepository") as MockRunLookup,
    ):
        MockService.return_value.get = AsyncMock(return_value=_workflow())
        MockService.return_value.create = AsyncMock(side_effect=lambda **kw: _workflow(**kw))
        MockService.return_value.update = AsyncMock(return_value=_workflow(name="Renamed"))
        MockService.return_value.delete = AsyncMock()
        MockRepo.return_value.list_by_org = AsyncMock(return_value=[_workflow()])
        MockRuns.return_value.list_for_workflow = AsyncMock(return_value=[])
        MockRunLookup.return_value.get_for_org = AsyncMock(return_value=None)
        yield SimpleNamespace(
            service=MockService.return_value,
            repo=MockRepo.return_value,
            runs=MockRuns.return_value,
            run_lookup=MockRunLookup.return_value,
        )


class TestWorkflowCrud:
    """Tests for workflow definition endpoints."""

    async def test_list_with_filters(self, client, mocks):
        response = await client.get(
            "/api/v1/workflows?enabled_only=true&trigger_type=event", headers=HEADERS
        )

        assert response.status_code == 200
        assert response.json()[0]["id"] == "wf-1"
        mocks.repo.list_by_org.assert_awaited_once_with("org-1", enabled_only=True, trigger_type="event")

    async def test_create_manual(self, client, mocks, scheduler, mock_db_session):
        response = await client.post(
            "/api/v1/workflows",
            headers=HEADERS,
            json={"name": "Welcome", "steps": [{"type": "get_customer"}]},
        )

        assert response.status_code == 201
        kwargs = mocks.service.create.await_args.kwargs
        assert kwargs["organization_id"] == "org-1"
        assert kwargs["trigger_type"] == "manual"
        mock_db_session.commit.assert_awaited_once()
        scheduler.sync_jobs.assert_not_awaited()

    async def test_create_schedule_syncs_jobs(self, client, mocks, scheduler):
        response = await client.post(
            "/api/v1/workflows",
            headers=HEADERS,
            json={"name": "Nightly", "trigger_type": "schedule", "trigger_config": {"frequency": "daily"}},
        )

        assert response.status_code == 201
        assert response.json()["trigger_config"] == {"frequency": "daily"}
        scheduler.sync_jobs.assert_awaited_once()

    async def test_create_rejects_unknown_trigger_type(self, client, mocks):
        response = await client.post(
            "/api/v1/workflows", headers=HEADERS, json={"name": "x", "trigger_type": "cron"}
        )
        assert response.status_code == 422

    async def test_create_invalid_steps(self, client, mocks):
        mocks.service.create.side_effect = ValidationError("Step 0 has no type")

        response = await client.post(
            "/api/v1/workflows", headers=HEADERS, json={"name": "x", "steps": [{"config": {}}]}
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Step 0 has no type"

    async def test_get_missing(self, client, mocks):
        mocks.service.get.side_effect = NotFoundError("Workflow not found")
        response = await client.get("/api/v1/workflows/nope", headers=HEADERS)
        assert response.status_code == 404

    async def test_update_partial(self, client, mocks, scheduler):
        response = await client.put("/api/v1/workflows/wf-1", headers=HEADERS, json={"name": "Renamed"})

        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"
        mocks.service.update.assert_awaited_once_with("org-1", "wf-1", name="Renamed")
        scheduler.sync_jobs.assert_awaited_once()

    async def test_update_without_fields(self, client, mocks):
        response = await client.put("/api/v1/workflows/wf-1", headers=HEADERS, json={})

        assert response.status_code == 400
        mocks.service.update.assert_not_awaited()

    async def test_delete(self, client, mocks, scheduler):
        response = await client.delete("/api/v1/workflows/wf-1", headers=HEADERS)

        assert response.status_code == 204
        mocks.service.delete.assert_awaited_once_with("org-1", "wf-1")
        scheduler.sync_jobs.assert_awaited_once()


class TestManualRun:
    """Tests for POST /workflows/{id}/run."""

    async def test_returns_before_completion(self, client, mocks, runner):
        response = await client.post(
            "/api/v1/workflows/wf-1/run",
            headers=HEADERS,
            json={"payload": {"customer_id": 42}, "actor_id": "user-9"},
        )

        assert response.status_code == 202
        assert response.json() == {"run_id": "run-1", "workflow_id": "wf-1", "status": "pending"}
        request = runner.start.await_args.args[0]
        assert request.trigger_source == "manual"
        assert request.trigger_payload == {"customer_id": 42}
        assert request.actor_id == "user-9"

    async def test_without_body(self, client, mocks, runner):
        response = await client.post("/api/v1/workflows/wf-1/run", headers=HEADERS)

        assert response.status_code == 202
        request = runner.start.await_args.args[0]
        assert request.trigger_payload == {}
        assert request.actor_id == "user-1"

    async def test_unknown_workflow(self, client, mocks, runner):
        mocks.service.get.side_effect = NotFoundError("Workflow not found")

        response = await client.post("/api/v1/workflows/nope/run", headers=HEADERS)

        assert response.status_code == 404
        runner.start.assert_not_awaited()


class TestRuns:
    """Tests for run history and lookup."""

    def _run(self, **overrides) -> WorkflowRun:
        fields = WorkflowRunFactory(id="run-1", workflow_id="wf-1", status="succeeded")
        fields.update(overrides)
        return WorkflowRun(**fields)

    async def test_history_limit_is_capped(self, client, mocks):
        mocks.runs.list_for_workflow.return_value = [self._run()]

        response = await client.get("/api/v1/workflows/wf-1/runs?limit=1000", headers=HEADERS)

        assert response.status_code == 200
        assert response.json()[0]["status"] == "succeeded"
        mocks.runs.list_for_workflow.assert_awaited_once_with("wf-1", limit=200)

    async def test_get_run(self, client, mocks):
        started = datetime(2026, 3, 1, 10, 0, tzinfo=UTC)
        mocks.run_lookup.get_for_org.return_value = self._run(
            status="failed",
            total_steps=2,
            steps_completed=1,
            step_results=[{"status": "succeeded"}, {"status": "failed", "error": "HTTP 503"}],
            error_message="Step 1 failed",
            started_at=started,
            duration_ms=1500,
        )

        response = await client.get("/api/v1/runs/run-1", headers=HEADERS)

        body = response.json()
        assert body["status"] == "failed"
        assert body["steps_completed"] == 1
        assert body["step_results"][1]["error"] == "HTTP 503"
        assert body["started_at"] == started.isoformat()
        mocks.run_lookup.get_for_org.assert_awaited_once_with("org-1", "run-1")

    async def test_run_of_other_organization(self, client, mocks):
        response = await client.get("/api/v1/runs/run-1", headers={"X-Organization-ID": "org-2"})
        assert response.status_code == 404
