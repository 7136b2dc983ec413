"""Unit tests for workflow, run and schedule repositories."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from conduit.dal.workflow_runs import WorkflowRunRepository
from conduit.dal.workflow_schedules import WorkflowScheduleRepository
from conduit.dal.workflows import WorkflowRepository
from conduit.exceptions import DALError
from conduit.storage.entities.workflow import Workflow
from conduit.storage.entities.workflow_run import WorkflowRun
from conduit.storage.entities.workflow_schedule import WorkflowSchedule
from tests.factories import WorkflowFactory, WorkflowRunFactory


@pytest.fixture
def mock_session():
    """Create mock async session."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.add = MagicMock()
    session.flush = AsyncMock()
    session.delete = AsyncMock()
    session.get = AsyncMock(return_value=None)
    return session


def scalar_result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def schedule_row(**overrides):
    fields = {
        "id": "sched-1",
        "workflow_id": "wf-1",
        "organization_id": "org-1",
        "cron_expression": "0 * * * *",
        "timezone": "UTC",
        "is_active": True,
        "next_run_at": datetime(2026, 1, 1, tzinfo=UTC),
    }
    fields.update(overrides)
    return WorkflowSchedule(**fields)


class TestWorkflowRepository:
    """Tests for WorkflowRepository."""

    async def test_create(self, mock_session):
        workflow = await WorkflowRepository(mock_session).create(
            organization_id="org-1",
            name="Welcome",
            trigger_type="event",
            trigger_config={"trigger_id": "t-1"},
            steps=[{"type": "get_customer"}],
            is_enabled=True,
        )

        assert workflow.id
        assert workflow.steps == [{"type": "get_customer"}]
        mock_session.add.assert_called_once_with(workflow)
        mock_session.flush.assert_awaited_once()

    async def test_create_defaults(self, mock_session):
        workflow = await WorkflowRepository(mock_session).create(organization_id="org-1", name="x")
        assert workflow.trigger_config == {}
        assert workflow.steps == []
        assert workflow.is_enabled is False

    async def test_update(self, mock_session):
        workflow = Workflow(**WorkflowFactory(name="Old"))
        mock_session.get.return_value = workflow

        updated = await WorkflowRepository(mock_session).update(workflow.id, name="New", is_enabled=False)

        assert updated.name == "New"
        assert updated.is_enabled is False

    async def test_record_run_success(self, mock_session):
        workflow = Workflow(**WorkflowFactory())
        mock_session.get.return_value = workflow
        finished = datetime.now(UTC)

        await WorkflowRepository(mock_session).record_run(workflow.id, "succeeded", finished)

        assert workflow.last_run_status == "succeeded"
        assert workflow.last_successful_run_at == finished

    async def test_record_run_failure_keeps_last_success(self, mock_session):
        earlier = datetime(2026, 1, 1, tzinfo=UTC)
        workflow = Workflow(**WorkflowFactory(last_successful_run_at=earlier))
        mock_session.get.return_value = workflow

        await WorkflowRepository(mock_session).record_run(workflow.id, "failed", datetime.now(UTC))

        assert workflow.last_run_status == "failed"
        assert workflow.last_successful_run_at == earlier

    async def test_record_run_deleted_workflow(self, mock_session):
        await WorkflowRepository(mock_session).record_run("gone", "failed", datetime.now(UTC))
        mock_session.flush.assert_not_awaited()


class TestWorkflowRunRepository:
    """Tests for WorkflowRunRepository."""

    async def test_create_pending(self, mock_session):
        run = await WorkflowRunRepository(mock_session).create(
            workflow_id="wf-1",
            organization_id="org-1",
            trigger_source="manual",
            total_steps=3,
            context={"triggerPayload": {}},
            workflow_name="Welcome",
        )

        assert run.status == "pending"
        assert run.step_results == []
        assert run.total_steps == 3
        mock_session.add.assert_called_once_with(run)

    async def test_mark_running(self, mock_session):
        run = WorkflowRun(**WorkflowRunFactory())
        mock_session.get.return_value = run

        await WorkflowRunRepository(mock_session).mark_running(run.id)

        assert run.status == "running"
        assert run.started_at is not None

    async def test_update_progress_counts_successes(self, mock_session):
        run = WorkflowRun(**WorkflowRunFactory(status="running", total_steps=3))
        mock_session.get.return_value = run
        results = [{"status": "succeeded"}, {"status": "failed"}]

        await WorkflowRunRepository(mock_session).update_progress(run.id, results, {"x": 1})

        assert run.step_results == results
        assert run.steps_completed == 1
        assert run.context == {"x": 1}

    async def test_update_progress_rejects_too_many_results(self, mock_session):
        run = WorkflowRun(**WorkflowRunFactory(status="running", total_steps=1))
        mock_session.get.return_value = run

        with pytest.raises(DALError):
            await WorkflowRunRepository(mock_session).update_progress(
                run.id, [{"status": "succeeded"}, {"status": "succeeded"}], {}
            )

    async def test_finalize(self, mock_session):
        started = datetime.now(UTC) - timedelta(seconds=2)
        run = WorkflowRun(**WorkflowRunFactory(status="running", started_at=started))
        mock_session.get.return_value = run

        await WorkflowRunRepository(mock_session).finalize(
            run.id,
            status="failed",
            step_results=[{"status": "failed"}],
            context={},
            error_message="Step 0 failed",
        )

        assert run.status == "failed"
        assert run.error_message == "Step 0 failed"
        assert run.completed_at is not None
        assert run.duration_ms >= 2000

    async def test_terminal_run_is_immutable(self, mock_session):
        run = WorkflowRun(**WorkflowRunFactory(status="succeeded"))
        mock_session.get.return_value = run

        with pytest.raises(DALError):
            await WorkflowRunRepository(mock_session).finalize(run.id, "failed", [], {})
        assert run.status == "succeeded"

    async def test_missing_run(self, mock_session):
        with pytest.raises(DALError):
            await WorkflowRunRepository(mock_session).mark_running("nope")


class TestWorkflowScheduleRepository:
    """Tests for WorkflowScheduleRepository."""

    async def test_get(self, mock_session):
        row = schedule_row()
        mock_session.get.return_value = row

        assert await WorkflowScheduleRepository(mock_session).get("sched-1") is row
        mock_session.get.assert_awaited_once_with(WorkflowSchedule, "sched-1")

    async def test_upsert_creates(self, mock_session):
        mock_session.execute.return_value = scalar_result(None)

        schedule, created = await WorkflowScheduleRepository(mock_session).upsert(
            "wf-1", "org-1", "0 0 * * 0", "UTC", True
        )

        assert created is True
        assert schedule.cron_expression == "0 0 * * 0"
        mock_session.add.assert_called_once_with(schedule)

    async def test_upsert_new_cron_clears_next_run(self, mock_session):
        existing = schedule_row()
        mock_session.execute.return_value = scalar_result(existing)

        schedule, created = await WorkflowScheduleRepository(mock_session).upsert(
            "wf-1", "org-1", "0 0 * * *", "Europe/London", True
        )

        assert created is False
        assert schedule is existing
        assert schedule.cron_expression == "0 0 * * *"
        assert schedule.timezone == "Europe/London"
        assert schedule.next_run_at is None

    async def test_upsert_same_cron_keeps_next_run(self, mock_session):
        existing = schedule_row()
        mock_session.execute.return_value = scalar_result(existing)

        schedule, _ = await WorkflowScheduleRepository(mock_session).upsert(
            "wf-1", "org-1", "0 * * * *", "UTC", False
        )

        assert schedule.next_run_at is not None
        assert schedule.is_active is False

    async def test_deactivate_keeps_row(self, mock_session):
        existing = schedule_row()
        mock_session.execute.return_value = scalar_result(existing)

        schedule = await WorkflowScheduleRepository(mock_session).deactivate("wf-1")

        assert schedule.is_active is False
        mock_session.delete.assert_not_awaited()

    async def test_deactivate_without_schedule(self, mock_session):
        mock_session.execute.return_value = scalar_result(None)
        assert await WorkflowScheduleRepository(mock_session).deactivate("wf-1") is None

    @pytest.mark.parametrize(("rowcount", "expected"), [(1, True), (0, False)])
    async def test_claim_tick(self, mock_session, rowcount, expected):
        result = MagicMock()
        result.rowcount = rowcount
        mock_session.execute.return_value = result

        claimed = await WorkflowScheduleRepository(mock_session).claim_tick(
            "sched-1", datetime(2026, 1, 1, tzinfo=UTC)
        )

        assert claimed is expected
        mock_session.execute.assert_awaited_once()
