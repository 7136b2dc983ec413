"""Runs API: the only place a run's outcome is observable."""

from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from conduit.api.deps import OrganizationId
from conduit.dal.workflow_runs import WorkflowRunRepository
from conduit.storage import get_session

router = APIRouter(prefix="/runs", tags=["Runs"])


class RunResponse(BaseModel):
    id: str
    workflow_id: str | None
    workflow_name: str | None
    status: str
    trigger_source: str
    total_steps: int
    steps_completed: int
    step_results: list[dict[str, Any]]
    context: dict[str, Any]
    error_message: str | None
    created_at: str
    started_at: str | None
    completed_at: str | None
    duration_ms: int | None


@router.get("/{run_id}", response_model=RunResponse)
async def get_run(run_id: str, organization_id: OrganizationId) -> RunResponse:
    async with get_session() as session:
        run = await WorkflowRunRepository(session).get_for_org(organization_id, run_id)
        if not run:
            raise HTTPException(status_code=404, detail="Run not found")
        return RunResponse(**serialize_run(run))


def serialize_run(run: Any) -> dict[str, Any]:
    return {
        "id": run.id,
        "workflow_id": run.workflow_id,
        "workflow_name": run.workflow_name,
        "status": run.status,
        "trigger_source": run.trigger_source,
        "total_steps": run.total_steps or 0,
        "steps_completed": run.steps_completed or 0,
        "step_results": list(run.step_results or []),
        "context": run.context or {},
        "error_message": run.error_message,
        "created_at": run.created_at.isoformat() if run.created_at else "",
        "started_at": run.started_at.isoformat() if run.started_at else None,
        "completed_at": run.completed_at.isoformat() if run.completed_at else None,
        "duration_ms": run.duration_ms,
    }
