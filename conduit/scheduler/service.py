"""APScheduler-based cron runner for scheduled workflows.

Uses APScheduler 3.x with AsyncIOScheduler. Jobs are synced from the
workflow_schedules table on startup and after any workflow save. Each
tick is claimed in the database before the run starts, so a tick fires
once even when several scheduler processes are running.
"""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime, timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from conduit.dal.workflow_schedules import WorkflowScheduleRepository
from conduit.dal.workflows import WorkflowRepository
from conduit.settings import Settings, get_settings
from conduit.storage import get_session
from conduit.storage.entities.workflow import WorkflowTriggerType
from conduit.workflow.runner import RunRequest, WorkflowRunner

logger = logging.getLogger(__name__)

JOB_PREFIX = "workflow_schedule:"

_DOW_NAMES = ["sun", "mon", "tue", "wed", "thu", "fri", "sat", "sun"]


def _dow_to_names(field: str) -> str:
    # APScheduler counts weekdays from Monday; crontab counts from Sunday.
    # Step values after "/" are counts, not days.
    return re.sub(r"(?<![/\d])\d+", lambda m: _DOW_NAMES[int(m.group()) % 8], field)


def crontab_trigger(expression: str, timezone: str) -> CronTrigger:
    """Build a CronTrigger from a standard five-field crontab expression.

    Raises:
        ValueError: If the expression is not five fields or a field is invalid.
    """
    fields = expression.split()
    if len(fields) != 5:
        raise ValueError(f"Expected 5 cron fields, got {len(fields)}: {expression!r}")
    minute, hour, day, month, day_of_week = fields
    return CronTrigger(
        minute=minute,
        hour=hour,
        day=day,
        month=month,
        day_of_week=_dow_to_names(day_of_week),
        timezone=timezone,
    )


def latest_tick(
    trigger: CronTrigger,
    now: datetime,
    window: timedelta,
) -> tuple[datetime | None, datetime | None]:
    """Most recent scheduled time within ``window`` before ``now``, and the next one after it."""
    tick: datetime | None = None
    candidate = trigger.get_next_fire_time(None, now - window)
    while candidate is not None and candidate <= now:
        tick = candidate
        candidate = trigger.get_next_fire_time(candidate, candidate + timedelta(seconds=1))
    return tick, candidate


class SchedulerService:
    """Fires scheduled workflows via APScheduler.

    Lifecycle:
        scheduler = SchedulerService(runner)
        await scheduler.start()    # Called in lifespan startup
        ...
        await scheduler.stop()     # Called in lifespan shutdown

    Job sync:
        After saving or deleting a workflow, call ``sync_jobs()`` to
        reconcile APScheduler with the database.
    """

    _instance: SchedulerService | None = None

    def __init__(self, runner: WorkflowRunner, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.runner = runner
        self._scheduler = AsyncIOScheduler(timezone=self.settings.scheduler_timezone)
        self._running = False

    @classmethod
    def get_instance(cls) -> SchedulerService | None:
        """Get the running scheduler (None if not started)."""
        return cls._instance

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the scheduler and load jobs from the database.

        Respects CONDUIT_ROLE: API-only processes never fire schedules.
        """
        if self.settings.conduit_role == "api":
            logger.info(
                "Scheduler skipped: CONDUIT_ROLE=%s (only 'all' or 'scheduler' fire schedules)",
                self.settings.conduit_role,
            )
            return

        if not self.settings.scheduler_enabled:
            logger.info("Scheduler disabled via settings")
            return

        self._scheduler.start()
        self._running = True
        SchedulerService._instance = self

        await self.sync_jobs()
        logger.info("Scheduler started")

    async def stop(self) -> None:
        """Gracefully shut down the scheduler."""
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            SchedulerService._instance = None
            logger.info("Scheduler stopped")

    async def sync_jobs(self) -> None:
        """Sync APScheduler jobs with active workflow schedules.

        Adds or reschedules a job for every active schedule and removes
        jobs whose schedule is gone or inactive.
        """
        async with get_session() as session:
            schedules = await WorkflowScheduleRepository(session).list_active()

        expected_ids = set()

        for schedule in schedules:
            job_id = f"{JOB_PREFIX}{schedule.id}"
            try:
                trigger = crontab_trigger(schedule.cron_expression, schedule.timezone)
            except ValueError:
                logger.error(
                    "Invalid cron expression for schedule %s: %s",
                    schedule.id,
                    schedule.cron_expression,
                )
                continue
            expected_ids.add(job_id)

            existing = self._scheduler.get_job(job_id)
            if existing:
                existing.reschedule(trigger)
                logger.debug("Updated schedule job %s", job_id)
            else:
                self._scheduler.add_job(
                    self.fire_schedule,
                    trigger=trigger,
                    id=job_id,
                    args=[schedule.id],
                    replace_existing=True,
                    name=f"workflow:{schedule.workflow_id}",
                    misfire_grace_time=self.settings.scheduler_misfire_grace_seconds,
                    coalesce=True,
                )
                logger.info("Added schedule job %s (%s)", job_id, schedule.cron_expression)

        for job in self._scheduler.get_jobs():
            if job.id.startswith(JOB_PREFIX) and job.id not in expected_ids:
                job.remove()
                logger.info("Removed stale schedule job %s", job.id)

    async def fire_schedule(self, schedule_id: str, now: datetime | None = None) -> str | None:
        """Handle one due tick of a schedule.

        Claims the tick, then starts a run with trigger source
        ``schedule`` exactly as a manual invocation would.

        Returns:
            The started run id, or None if the tick was skipped.
        """
        now = now or datetime.now(UTC)
        window = timedelta(seconds=self.settings.scheduler_misfire_grace_seconds)

        async with get_session() as session:
            schedules = WorkflowScheduleRepository(session)
            schedule = await schedules.get(schedule_id)
            if schedule is None or not schedule.is_active:
                logger.warning("Schedule %s not found or inactive, skipping", schedule_id)
                return None

            workflow = await WorkflowRepository(session).get(schedule.workflow_id)
            if (
                workflow is None
                or not workflow.is_enabled
                or workflow.trigger_type != WorkflowTriggerType.SCHEDULE.value
            ):
                logger.warning("Workflow for schedule %s is gone or not schedulable, skipping", schedule_id)
                return None

            try:
                trigger = crontab_trigger(schedule.cron_expression, schedule.timezone)
            except ValueError:
                logger.error("Invalid cron expression for schedule %s", schedule_id)
                return None
            tick, next_run_at = latest_tick(trigger, now, window)
            if tick is None:
                logger.debug("No due tick for schedule %s at %s", schedule_id, now.isoformat())
                return None

            claimed = await schedules.claim_tick(schedule.id, tick, next_run_at)
            await session.commit()
            if not claimed:
                logger.info("Tick %s of schedule %s already fired", tick.isoformat(), schedule_id)
                return None

            request = RunRequest.from_workflow(
                workflow,
                trigger_source="schedule",
                trigger_payload={"scheduleId": schedule.id, "scheduledFor": tick.isoformat()},
            )

        run = await self.runner.start(request)
        return run.id
