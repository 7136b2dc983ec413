"""Repository for WorkflowRun records."""

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.exceptions import DALError
from conduit.storage.entities.workflow_run import WorkflowRun


class WorkflowRunRepository:
    """Repository for WorkflowRun records.

    Terminal runs are immutable: :meth:`update_progress` and
    :meth:`finalize` refuse to touch them.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        workflow_id: str,
        organization_id: str,
        trigger_source: str,
        total_steps: int,
        context: dict[str, Any] | None = None,
        workflow_name: str | None = None,
    ) -> WorkflowRun:
        """Create a pending run."""
        run = WorkflowRun(
            id=str(uuid4()),
            workflow_id=workflow_id,
            organization_id=organization_id,
            workflow_name=workflow_name,
            status="pending",
            trigger_source=trigger_source,
            context=context or {},
            step_results=[],
            total_steps=total_steps,
            steps_completed=0,
        )
        self.session.add(run)
        await self.session.flush()
        return run

    async def get(self, run_id: str) -> WorkflowRun | None:
        return await self.session.get(WorkflowRun, run_id)

    async def get_for_org(self, organization_id: str, run_id: str) -> WorkflowRun | None:
        stmt = select(WorkflowRun).where(
            WorkflowRun.id == run_id,
            WorkflowRun.organization_id == organization_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_workflow(self, workflow_id: str, limit: int = 50) -> list[WorkflowRun]:
        """List a workflow's runs, newest first."""
        stmt = (
            select(WorkflowRun)
            .where(WorkflowRun.workflow_id == workflow_id)
            .order_by(WorkflowRun.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def mark_running(self, run_id: str) -> WorkflowRun:
        run = await self._get_mutable(run_id)
        run.status = "running"
        run.started_at = datetime.now(UTC)
        await self.session.flush()
        return run

    async def update_progress(
        self,
        run_id: str,
        step_results: list[dict[str, Any]],
        context: dict[str, Any],
    ) -> WorkflowRun:
        """Store the step results recorded so far."""
        run = await self._get_mutable(run_id)
        if len(step_results) > run.total_steps:
            raise DALError(f"Run {run_id} has more step results than steps")
        run.step_results = list(step_results)
        run.steps_completed = sum(1 for r in step_results if r.get("status") == "succeeded")
        run.context = context
        await self.session.flush()
        return run

    async def finalize(
        self,
        run_id: str,
        status: str,
        step_results: list[dict[str, Any]],
        context: dict[str, Any],
        error_message: str | None = None,
    ) -> WorkflowRun:
        """Write the terminal status of a run."""
        run = await self.update_progress(run_id, step_results, context)
        completed_at = datetime.now(UTC)
        run.status = status
        run.error_message = error_message
        run.completed_at = completed_at
        if run.started_at is not None:
            run.duration_ms = int((completed_at - run.started_at).total_seconds() * 1000)
        await self.session.flush()
        return run

    async def _get_mutable(self, run_id: str) -> WorkflowRun:
        run = await self.get(run_id)
        if run is None:
            raise DALError(f"Workflow run {run_id} not found")
        if run.is_terminal:
            raise DALError(f"Workflow run {run_id} is already {run.status}")
        return run
