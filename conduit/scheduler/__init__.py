"""Scheduling: frequency mapping, schedule rows and the cron runner."""

from conduit.scheduler.frequency import FREQUENCY_CRON, frequency_to_cron
from conduit.scheduler.manager import ScheduleManager
from conduit.scheduler.service import SchedulerService

__all__ = ["FREQUENCY_CRON", "ScheduleManager", "SchedulerService", "frequency_to_cron"]
