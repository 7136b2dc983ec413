"""Workflows API: definitions, manual runs and run history."""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from conduit.api.deps import OrganizationId, Runner
from conduit.api.routes.runs import RunResponse, serialize_run
from conduit.dal.workflow_runs import WorkflowRunRepository
from conduit.dal.workflows import WorkflowRepository
from conduit.services.workflows import WorkflowService
from conduit.storage import get_session
from conduit.workflow.runner import RunRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workflows", tags=["Workflows"])


# ─── Request / Response Schemas ───────────────────────────────────────────────


class WorkflowCreate(BaseModel):
    """Request body for creating a workflow."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    trigger_type: str = Field(
        default="manual",
        description="'event', 'schedule' or 'manual'",
        pattern="^(event|schedule|manual)$",
    )
    trigger_config: dict[str, Any] = Field(
        default_factory=dict,
        description="Event: {trigger_id} or {integration_id, trigger_key}. Schedule: {frequency, timezone}",
    )
    steps: list[dict[str, Any]] = Field(default_factory=list)
    assigned_user_id: str | None = None
    is_enabled: bool = False


class WorkflowUpdate(BaseModel):
    """Request body for updating a workflow (partial)."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    trigger_type: str | None = Field(default=None, pattern="^(event|schedule|manual)$")
    trigger_config: dict[str, Any] | None = None
    steps: list[dict[str, Any]] | None = None
    assigned_user_id: str | None = None
    is_enabled: bool | None = None


class WorkflowResponse(BaseModel):
    id: str
    organization_id: str
    name: str
    description: str | None
    trigger_type: str
    trigger_config: dict[str, Any]
    steps: list[dict[str, Any]]
    assigned_user_id: str | None
    is_enabled: bool
    last_run_at: str | None
    last_run_status: str | None
    last_successful_run_at: str | None
    created_at: str
    updated_at: str


class ManualRunRequest(BaseModel):
    payload: dict[str, Any] = Field(default_factory=dict, description="Exposed to steps as triggerPayload")
    actor_id: str | None = None


class RunAccepted(BaseModel):
    run_id: str
    workflow_id: str
    status: str


# ─── Endpoints ────────────────────────────────────────────────────────────────


@router.get("", response_model=list[WorkflowResponse])
async def list_workflows(
    organization_id: OrganizationId,
    enabled_only: bool = False,
    trigger_type: str | None = None,
) -> list[WorkflowResponse]:
    async with get_session() as session:
        workflows = await WorkflowRepository(session).list_by_org(
            organization_id,
            enabled_only=enabled_only,
            trigger_type=trigger_type,
        )
        return [WorkflowResponse(**_serialize(w)) for w in workflows]


@router.post("", response_model=WorkflowResponse, status_code=201)
async def create_workflow(body: WorkflowCreate, organization_id: OrganizationId) -> WorkflowResponse:
    """Create a workflow. Schedule-triggered workflows get their schedule row here."""
    async with get_session() as session:
        workflow = await WorkflowService(session).create(organization_id=organization_id, **body.model_dump())
        await session.commit()
        response = WorkflowResponse(**_serialize(workflow))

    if body.trigger_type == "schedule":
        await _sync_scheduler()
    return response


@router.get("/{workflow_id}", response_model=WorkflowResponse)
async def get_workflow(workflow_id: str, organization_id: OrganizationId) -> WorkflowResponse:
    async with get_session() as session:
        workflow = await WorkflowService(session).get(organization_id, workflow_id)
        return WorkflowResponse(**_serialize(workflow))


@router.put("/{workflow_id}", response_model=WorkflowResponse)
async def update_workflow(
    workflow_id: str,
    body: WorkflowUpdate,
    organization_id: OrganizationId,
) -> WorkflowResponse:
    fields = body.model_dump(exclude_unset=True)
    if not fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    async with get_session() as session:
        workflow = await WorkflowService(session).update(organization_id, workflow_id, **fields)
        await session.commit()
        response = WorkflowResponse(**_serialize(workflow))

    await _sync_scheduler()
    return response


@router.delete("/{workflow_id}", status_code=204)
async def delete_workflow(workflow_id: str, organization_id: OrganizationId) -> None:
    """Delete a workflow and its schedule. Its runs stay queryable."""
    async with get_session() as session:
        await WorkflowService(session).delete(organization_id, workflow_id)
        await session.commit()

    await _sync_scheduler()


@router.post("/{workflow_id}/run", response_model=RunAccepted, status_code=202)
async def run_workflow(
    workflow_id: str,
    organization_id: OrganizationId,
    runner: Runner,
    body: ManualRunRequest | None = None,
) -> RunAccepted:
    """Start a manual run. Returns as soon as the run exists; poll the run for its outcome."""
    body = body or ManualRunRequest()
    async with get_session() as session:
        workflow = await WorkflowService(session).get(organization_id, workflow_id)
        request = RunRequest.from_workflow(
            workflow,
            trigger_source="manual",
            trigger_payload=body.payload,
            actor_id=body.actor_id,
        )

    run = await runner.start(request)
    logger.info("Manual run %s started for workflow %s", run.id, workflow_id)
    return RunAccepted(run_id=run.id, workflow_id=workflow_id, status=run.status)


@router.get("/{workflow_id}/runs", response_model=list[RunResponse])
async def list_workflow_runs(
    workflow_id: str,
    organization_id: OrganizationId,
    limit: int = 50,
) -> list[RunResponse]:
    async with get_session() as session:
        await WorkflowService(session).get(organization_id, workflow_id)
        runs = await WorkflowRunRepository(session).list_for_workflow(workflow_id, limit=min(limit, 200))
        return [RunResponse(**serialize_run(r)) for r in runs]


# ─── Helpers ──────────────────────────────────────────────────────────────────


def _iso(value: Any) -> str | None:
    return value.isoformat() if value else None


def _serialize(workflow: Any) -> dict[str, Any]:
    return {
        "id": workflow.id,
        "organization_id": workflow.organization_id,
        "name": workflow.name,
        "description": workflow.description,
        "trigger_type": workflow.trigger_type,
        "trigger_config": workflow.trigger_config or {},
        "steps": list(workflow.steps or []),
        "assigned_user_id": workflow.assigned_user_id,
        "is_enabled": workflow.is_enabled,
        "last_run_at": _iso(workflow.last_run_at),
        "last_run_status": workflow.last_run_status,
        "last_successful_run_at": _iso(workflow.last_successful_run_at),
        "created_at": _iso(workflow.created_at) or "",
        "updated_at": _iso(workflow.updated_at) or "",
    }


async def _sync_scheduler() -> None:
    """Sync APScheduler jobs after a workflow change."""
    from conduit.scheduler.service import SchedulerService

    scheduler = SchedulerService.get_instance()
    if scheduler:
        await scheduler.sync_jobs()
