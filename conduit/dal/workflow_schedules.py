"""Repository for WorkflowSchedule rows."""

from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.storage.entities.workflow_schedule import WorkflowSchedule


class WorkflowScheduleRepository:
    """Repository for WorkflowSchedule rows (one per workflow)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, schedule_id: str) -> WorkflowSchedule | None:
        return await self.session.get(WorkflowSchedule, schedule_id)

    async def get_for_workflow(self, workflow_id: str) -> WorkflowSchedule | None:
        stmt = select(WorkflowSchedule).where(WorkflowSchedule.workflow_id == workflow_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_active(self) -> list[WorkflowSchedule]:
        """List all active schedules."""
        stmt = (
            select(WorkflowSchedule)
            .where(WorkflowSchedule.is_active == True)  # noqa: E712
            .order_by(WorkflowSchedule.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def upsert(
        self,
        workflow_id: str,
        organization_id: str,
        cron_expression: str,
        timezone: str,
        is_active: bool,
    ) -> tuple[WorkflowSchedule, bool]:
        """Create or update the workflow's single schedule row.

        Returns:
            Tuple of (schedule, created)
        """
        existing = await self.get_for_workflow(workflow_id)
        if existing:
            if existing.cron_expression != cron_expression:
                existing.next_run_at = None
            existing.cron_expression = cron_expression
            existing.timezone = timezone
            existing.is_active = is_active
            existing.updated_at = datetime.now(UTC)
            await self.session.flush()
            return existing, False

        schedule = WorkflowSchedule(
            id=str(uuid4()),
            workflow_id=workflow_id,
            organization_id=organization_id,
            cron_expression=cron_expression,
            timezone=timezone,
            is_active=is_active,
        )
        self.session.add(schedule)
        await self.session.flush()
        return schedule, True

    async def deactivate(self, workflow_id: str) -> WorkflowSchedule | None:
        """Deactivate (not delete) the workflow's schedule, if it has one."""
        schedule = await self.get_for_workflow(workflow_id)
        if schedule is None:
            return None
        schedule.is_active = False
        schedule.updated_at = datetime.now(UTC)
        await self.session.flush()
        return schedule

    async def delete_for_workflow(self, workflow_id: str) -> bool:
        schedule = await self.get_for_workflow(workflow_id)
        if schedule is None:
            return False
        await self.session.delete(schedule)
        await self.session.flush()
        return True

    async def claim_tick(
        self,
        schedule_id: str,
        fire_time: datetime,
        next_run_at: datetime | None = None,
    ) -> bool:
        """Atomically claim a cron tick.

        Succeeds only when the schedule is active and has not yet fired
        at or after ``fire_time``, so concurrent runners (or a misfire
        replay) cannot start the same tick twice.

        Returns:
            True if this caller owns the tick.
        """
        stmt = (
            update(WorkflowSchedule)
            .where(WorkflowSchedule.id == schedule_id)
            .where(WorkflowSchedule.is_active == True)  # noqa: E712
            .where(
                or_(
                    WorkflowSchedule.last_fired_at.is_(None),
                    WorkflowSchedule.last_fired_at < fire_time,
                )
            )
            .values(last_fired_at=fire_time, next_run_at=next_run_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return (result.rowcount or 0) == 1
