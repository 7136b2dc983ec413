"""Workflow definitions: validated saves that keep the schedule row in step."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.dal.workflow_schedules import WorkflowScheduleRepository
from conduit.dal.workflows import WorkflowRepository
from conduit.exceptions import NotFoundError, ValidationError
from conduit.scheduler.manager import ScheduleManager
from conduit.storage.entities.workflow import Workflow, WorkflowTriggerType
from conduit.workflow.steps import Step

logger = logging.getLogger(__name__)

TRIGGER_TYPES = frozenset(t.value for t in WorkflowTriggerType)

_UPDATABLE = {
    "name",
    "description",
    "trigger_type",
    "trigger_config",
    "steps",
    "assigned_user_id",
    "is_enabled",
}


def validate_steps(raw_steps: list[Any]) -> list[dict[str, Any]]:
    """Validate step records and return them in stored form.

    Raises:
        ValidationError: naming the first invalid step.
    """
    records = []
    for index, raw in enumerate(raw_steps):
        try:
            step = Step.model_validate(raw)
        except PydanticValidationError as e:
            raise ValidationError(f"Step {index} is invalid: {e.errors()[0]['msg']}") from e
        if not step.type:
            raise ValidationError(f"Step {index} has no action type")
        records.append(step.to_record())
    return records


class WorkflowService:
    """Create, update and delete workflows. Flushes; caller commits."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.workflows = WorkflowRepository(session)
        self.schedules = ScheduleManager(session)

    async def get(self, organization_id: str, workflow_id: str) -> Workflow:
        workflow = await self.workflows.get_for_org(organization_id, workflow_id)
        if workflow is None:
            raise NotFoundError(f"Workflow {workflow_id} not found", resource="workflow")
        return workflow

    async def create(
        self,
        organization_id: str,
        name: str,
        trigger_type: str = WorkflowTriggerType.MANUAL.value,
        trigger_config: dict[str, Any] | None = None,
        steps: list[Any] | None = None,
        description: str | None = None,
        assigned_user_id: str | None = None,
        is_enabled: bool = False,
    ) -> Workflow:
        if trigger_type not in TRIGGER_TYPES:
            raise ValidationError(f"Unknown trigger type: {trigger_type}")
        workflow = await self.workflows.create(
            organization_id=organization_id,
            name=name,
            trigger_type=trigger_type,
            trigger_config=trigger_config or {},
            steps=validate_steps(steps or []),
            description=description,
            assigned_user_id=assigned_user_id,
            is_enabled=is_enabled,
        )
        await self.schedules.sync_for_workflow(workflow)
        logger.info("Created workflow %s (%s)", workflow.id, trigger_type)
        return workflow

    async def update(self, organization_id: str, workflow_id: str, **fields: Any) -> Workflow:
        """Apply a partial update, then re-sync the schedule row."""
        workflow = await self.get(organization_id, workflow_id)
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        if "trigger_type" in fields and fields["trigger_type"] not in TRIGGER_TYPES:
            raise ValidationError(f"Unknown trigger type: {fields['trigger_type']}")
        if "steps" in fields:
            fields["steps"] = validate_steps(fields["steps"] or [])

        await self.workflows.update(workflow.id, **fields)
        await self.schedules.sync_for_workflow(workflow)
        return workflow

    async def delete(self, organization_id: str, workflow_id: str) -> None:
        """Delete a workflow and its schedule. Past runs are kept."""
        workflow = await self.get(organization_id, workflow_id)
        await WorkflowScheduleRepository(self.session).delete_for_workflow(workflow.id)
        await self.workflows.delete(workflow.id)
        logger.info("Deleted workflow %s", workflow.id)
