"""Inbound webhook receiver.

External platforms are configured with a trigger's webhook address,
``/webhooks/{platform_type}/{integration_id}/{trigger_key}``. A delivery
starts one run per enabled event workflow bound to that trigger, with
the delivered JSON as the trigger payload. The response only confirms
that runs were created; their outcomes live on the run rows.
"""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from conduit.api.deps import Runner
from conduit.api.rate_limit import WEBHOOK_LIMIT, limiter
from conduit.dal.integrations import IntegrationRepository, IntegrationTriggerRepository
from conduit.dal.workflows import WorkflowRepository
from conduit.storage import get_session
from conduit.storage.entities.workflow import WorkflowTriggerType
from conduit.workflow.runner import RunRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


class WebhookResponse(BaseModel):
    """Response after accepting a delivery."""

    status: str
    matched_workflows: int
    run_ids: list[str]


@router.post("/{platform_type}/{integration_id}/{trigger_key}", response_model=WebhookResponse, status_code=202)
@limiter.limit(WEBHOOK_LIMIT)
async def receive_webhook(
    request: Request,
    platform_type: str,
    integration_id: str,
    trigger_key: str,
    runner: Runner,
) -> WebhookResponse:
    """Receive a vendor webhook and start the workflows listening to it."""
    payload = await _read_payload(request)

    async with get_session() as session:
        integration = await IntegrationRepository(session).get(integration_id)
        if not integration or integration.platform_type != platform_type:
            raise HTTPException(status_code=404, detail="Unknown webhook address")

        triggers = IntegrationTriggerRepository(session)
        trigger = await triggers.get_by_key(integration_id, trigger_key)
        if not trigger or not trigger.webhook_address:
            raise HTTPException(status_code=404, detail="Unknown webhook address")
        if not trigger.is_active or not integration.is_enabled:
            logger.info("Ignoring delivery to inactive trigger %s/%s", integration_id, trigger_key)
            await triggers.record_delivery(trigger, started_runs=0)
            await session.commit()
            return WebhookResponse(status="ignored", matched_workflows=0, run_ids=[])

        workflows = await WorkflowRepository(session).list_by_org(
            integration.organization_id,
            enabled_only=True,
            trigger_type=WorkflowTriggerType.EVENT.value,
        )
        requests = [
            RunRequest.from_workflow(workflow, trigger_source="webhook", trigger_payload=payload)
            for workflow in workflows
            if workflow.matches_trigger(trigger.id, integration.id, trigger.trigger_key)
        ]
        await triggers.record_delivery(trigger, started_runs=len(requests))
        await session.commit()

    run_ids = []
    for run_request in requests:
        run = await runner.start(run_request)
        run_ids.append(run.id)

    logger.info(
        "Webhook %s/%s/%s started %d runs",
        platform_type,
        integration_id,
        trigger_key,
        len(run_ids),
    )
    return WebhookResponse(status="accepted", matched_workflows=len(requests), run_ids=run_ids)


async def _read_payload(request: Request) -> dict[str, Any]:
    """Delivered JSON body; non-object bodies are wrapped under ``data``."""
    body = await request.body()
    if not body:
        return {}
    try:
        parsed = await request.json()
    except ValueError as e:
        raise HTTPException(status_code=400, detail="Webhook body must be JSON") from e
    if isinstance(parsed, dict):
        return parsed
    return {"data": parsed}
