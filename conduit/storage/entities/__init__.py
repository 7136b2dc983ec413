"""SQLAlchemy entity models."""

from conduit.storage.entities.integration import ConnectionStatus, Integration, PlatformType
from conduit.storage.entities.integration_action import IntegrationAction
from conduit.storage.entities.integration_trigger import IntegrationTrigger
from conduit.storage.entities.workflow import Workflow, WorkflowTriggerType
from conduit.storage.entities.workflow_run import TERMINAL_STATUSES, WorkflowRun
from conduit.storage.entities.workflow_schedule import WorkflowSchedule

__all__ = [
    "TERMINAL_STATUSES",
    "ConnectionStatus",
    "Integration",
    "IntegrationAction",
    "IntegrationTrigger",
    "PlatformType",
    "Workflow",
    "WorkflowRun",
    "WorkflowSchedule",
    "WorkflowTriggerType",
]
