"""Repository for Workflow CRUD operations."""

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.storage.entities.workflow import Workflow


class WorkflowRepository:
    """Repository for Workflow CRUD operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        organization_id: str,
        name: str,
        trigger_type: str = "manual",
        trigger_config: dict[str, Any] | None = None,
        steps: list[dict[str, Any]] | None = None,
        description: str | None = None,
        assigned_user_id: str | None = None,
        is_enabled: bool = False,
    ) -> Workflow:
        """Create a new workflow."""
        workflow = Workflow(
            id=str(uuid4()),
            organization_id=organization_id,
            name=name,
            description=description,
            trigger_type=trigger_type,
            trigger_config=trigger_config or {},
            steps=steps or [],
            assigned_user_id=assigned_user_id,
            is_enabled=is_enabled,
        )
        self.session.add(workflow)
        await self.session.flush()
        return workflow

    async def get(self, workflow_id: str) -> Workflow | None:
        """Get a workflow by ID."""
        return await self.session.get(Workflow, workflow_id)

    async def get_for_org(self, organization_id: str, workflow_id: str) -> Workflow | None:
        stmt = select(Workflow).where(
            Workflow.id == workflow_id,
            Workflow.organization_id == organization_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_org(
        self,
        organization_id: str,
        enabled_only: bool = False,
        trigger_type: str | None = None,
    ) -> list[Workflow]:
        """List an organization's workflows with optional filtering."""
        stmt = (
            select(Workflow)
            .where(Workflow.organization_id == organization_id)
            .order_by(Workflow.created_at.desc())
        )
        if enabled_only:
            stmt = stmt.where(Workflow.is_enabled == True)  # noqa: E712
        if trigger_type:
            stmt = stmt.where(Workflow.trigger_type == trigger_type)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update(self, workflow_id: str, **fields: Any) -> Workflow | None:
        """Update a workflow's fields."""
        workflow = await self.get(workflow_id)
        if not workflow:
            return None
        for key, value in fields.items():
            if hasattr(workflow, key):
                setattr(workflow, key, value)
        workflow.updated_at = datetime.now(UTC)
        await self.session.flush()
        return workflow

    async def delete(self, workflow_id: str) -> bool:
        """Delete a workflow. Runs keep their rows with workflow_id nulled."""
        workflow = await self.get(workflow_id)
        if not workflow:
            return False
        await self.session.delete(workflow)
        await self.session.flush()
        return True

    async def record_run(self, workflow_id: str, status: str, finished_at: datetime) -> None:
        """Record the outcome of a run on the workflow row."""
        workflow = await self.get(workflow_id)
        if not workflow:
            return
        workflow.last_run_at = finished_at
        workflow.last_run_status = status
        if status == "succeeded":
            workflow.last_successful_run_at = finished_at
        await self.session.flush()
