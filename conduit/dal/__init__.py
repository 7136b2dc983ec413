"""Data Access Layer for Conduit.

Repositories take an AsyncSession and flush; callers own the commit.
"""

from conduit.dal.integrations import (
    IntegrationActionRepository,
    IntegrationRepository,
    IntegrationTriggerRepository,
)
from conduit.dal.workflow_runs import WorkflowRunRepository
from conduit.dal.workflow_schedules import WorkflowScheduleRepository
from conduit.dal.workflows import WorkflowRepository

__all__ = [
    # Integrations
    "IntegrationRepository",
    "IntegrationTriggerRepository",
    "IntegrationActionRepository",
    # Workflows
    "WorkflowRepository",
    "WorkflowRunRepository",
    "WorkflowScheduleRepository",
]
