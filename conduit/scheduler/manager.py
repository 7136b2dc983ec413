"""Keeps a workflow's schedule row in step with its trigger settings."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from conduit.dal.workflow_schedules import WorkflowScheduleRepository
from conduit.scheduler.frequency import frequency_to_cron
from conduit.settings import get_settings
from conduit.storage.entities.workflow import Workflow, WorkflowTriggerType
from conduit.storage.entities.workflow_schedule import WorkflowSchedule

logger = logging.getLogger(__name__)


class ScheduleManager:
    """Applies workflow saves to the workflow_schedules table."""

    def __init__(self, session: AsyncSession):
        self.schedules = WorkflowScheduleRepository(session)

    async def sync_for_workflow(self, workflow: Workflow) -> WorkflowSchedule | None:
        """Upsert or deactivate the workflow's schedule after a save.

        - ``schedule`` trigger with a frequency: upsert the single row with
          the derived cron expression and ``is_active = workflow.is_enabled``.
        - any other trigger type: deactivate the existing row, if any.

        Returns:
            The affected schedule row, or None if nothing was touched.
        """
        if workflow.trigger_type == WorkflowTriggerType.SCHEDULE.value:
            frequency = workflow.frequency
            if not frequency:
                logger.debug("Workflow %s has a schedule trigger but no frequency", workflow.id)
                return None
            timezone = (workflow.trigger_config or {}).get("timezone") or get_settings().scheduler_timezone
            schedule, created = await self.schedules.upsert(
                workflow_id=workflow.id,
                organization_id=workflow.organization_id,
                cron_expression=frequency_to_cron(frequency),
                timezone=timezone,
                is_active=workflow.is_enabled,
            )
            logger.info(
                "%s schedule for workflow %s: %s (%s, active=%s)",
                "Created" if created else "Updated",
                workflow.id,
                schedule.cron_expression,
                timezone,
                schedule.is_active,
            )
            return schedule

        schedule = await self.schedules.deactivate(workflow.id)
        if schedule is not None:
            logger.info("Deactivated schedule for workflow %s", workflow.id)
        return schedule
