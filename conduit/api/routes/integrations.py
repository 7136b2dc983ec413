"""Integrations API: credentials, connection tests and imported catalogs."""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from conduit.api.deps import Adapters, OrganizationId, Vault
from conduit.api.rate_limit import EXPENSIVE_LIMIT, limiter
from conduit.catalog.importer import CatalogImporter
from conduit.catalog.registry import find_catalog, supported_platforms
from conduit.dal.integrations import (
    IntegrationActionRepository,
    IntegrationRepository,
    IntegrationTriggerRepository,
)
from conduit.services.integrations import IntegrationService
from conduit.settings import get_settings
from conduit.storage import get_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/integrations", tags=["Integrations"])


# ─── Request / Response Schemas ───────────────────────────────────────────────


class IntegrationSave(BaseModel):
    """Request body for creating or updating an integration."""

    platform_type: str = Field(..., description="splynx, vapi, airtable, openai, xero, outlook")
    name: str = Field(..., min_length=1, max_length=255)
    credentials: dict[str, Any] = Field(
        ...,
        description="Vendor credentials; stored encrypted and never returned",
    )
    is_enabled: bool = True
    metadata: dict[str, Any] | None = None


class IntegrationResponse(BaseModel):
    id: str
    organization_id: str
    platform_type: str
    name: str
    connection_status: str
    is_enabled: bool
    has_credentials: bool
    last_tested_at: str | None
    test_result: dict[str, Any]
    metadata: dict[str, Any]
    created_at: str
    updated_at: str


class IntegrationSaveResponse(BaseModel):
    integration: IntegrationResponse
    created: bool
    imported: dict[str, int] | None = None


class ConnectionTestResponse(BaseModel):
    success: bool
    connection_status: str
    status_code: int | None
    error: str | None
    discovered_triggers: list[str]


class TriggerResponse(BaseModel):
    id: str
    trigger_key: str
    name: str
    description: str | None
    category: str | None
    event_type: str
    resource_type: str | None
    webhook_address: str | None
    webhook_url: str | None
    available_fields: list[str]
    is_active: bool
    is_configured: bool
    webhook_event_count: int
    last_webhook_at: str | None
    last_triggered_at: str | None


class ActionResponse(BaseModel):
    id: str
    action_key: str
    name: str
    description: str | None
    category: str | None
    http_method: str
    endpoint: str
    required_fields: list[str]
    optional_fields: list[str]
    is_active: bool
    usage_count: int
    last_used_at: str | None


# ─── Endpoints ────────────────────────────────────────────────────────────────


@router.get("/catalog", response_model=list[str])
async def list_catalog_platforms() -> list[str]:
    """Platform types that ship a trigger/action catalog."""
    return supported_platforms()


@router.get("/catalog/{platform_type}", response_model=dict)
async def preview_catalog(platform_type: str) -> dict[str, Any]:
    """Preview what an integration of this platform type would import."""
    catalog = find_catalog(platform_type)
    if catalog is None:
        raise HTTPException(status_code=404, detail=f"No catalog for platform '{platform_type}'")
    return {
        "platform_type": catalog.platform_type,
        "triggers": [t.model_dump(mode="json") for t in catalog.triggers],
        "actions": [a.model_dump(mode="json") for a in catalog.actions],
    }


@router.get("", response_model=list[IntegrationResponse])
async def list_integrations(organization_id: OrganizationId) -> list[IntegrationResponse]:
    async with get_session() as session:
        integrations = await IntegrationRepository(session).list_by_org(organization_id)
        return [IntegrationResponse(**_serialize(i)) for i in integrations]


@router.post("", response_model=IntegrationSaveResponse, status_code=201)
async def create_integration(
    body: IntegrationSave,
    organization_id: OrganizationId,
    vault: Vault,
    adapters: Adapters,
) -> IntegrationSaveResponse:
    """Create an integration and import its platform catalog."""
    async with get_session() as session:
        outcome = await IntegrationService(session, vault, adapters).save(
            organization_id=organization_id,
            platform_type=body.platform_type,
            name=body.name,
            credentials=body.credentials,
            is_enabled=body.is_enabled,
            metadata=body.metadata,
        )
        await session.commit()
        return IntegrationSaveResponse(
            integration=IntegrationResponse(**_serialize(outcome.integration)),
            created=True,
            imported=outcome.imported.to_dict() if outcome.imported else None,
        )


@router.put("/{integration_id}", response_model=IntegrationSaveResponse)
async def update_integration(
    integration_id: str,
    body: IntegrationSave,
    organization_id: OrganizationId,
    vault: Vault,
    adapters: Adapters,
) -> IntegrationSaveResponse:
    """Replace an integration's credentials and settings."""
    async with get_session() as session:
        outcome = await IntegrationService(session, vault, adapters).save(
            organization_id=organization_id,
            platform_type=body.platform_type,
            name=body.name,
            credentials=body.credentials,
            integration_id=integration_id,
            is_enabled=body.is_enabled,
            metadata=body.metadata,
        )
        await session.commit()
        return IntegrationSaveResponse(
            integration=IntegrationResponse(**_serialize(outcome.integration)),
            created=False,
        )


@router.get("/{integration_id}", response_model=IntegrationResponse)
async def get_integration(integration_id: str, organization_id: OrganizationId) -> IntegrationResponse:
    async with get_session() as session:
        integration = await _get_or_404(session, organization_id, integration_id)
        return IntegrationResponse(**_serialize(integration))


@router.delete("/{integration_id}", status_code=204)
async def delete_integration(integration_id: str, organization_id: OrganizationId) -> None:
    async with get_session() as session:
        integration = await _get_or_404(session, organization_id, integration_id)
        await IntegrationRepository(session).delete(integration.id)
        await session.commit()
    logger.info("Deleted integration %s (%s)", integration_id, integration.platform_type)


@router.post("/{integration_id}/test", response_model=ConnectionTestResponse)
@limiter.limit(EXPENSIVE_LIMIT)
async def test_integration(
    request: Request,
    integration_id: str,
    organization_id: OrganizationId,
    vault: Vault,
    adapters: Adapters,
) -> ConnectionTestResponse:
    """Probe the vendor; a first successful test discovers triggers."""
    async with get_session() as session:
        service = IntegrationService(session, vault, adapters)
        outcome = await service.test_connection(organization_id, integration_id)
        await session.commit()
        return ConnectionTestResponse(
            success=outcome.success,
            connection_status=outcome.integration.connection_status,
            status_code=outcome.result.status_code,
            error=outcome.result.error,
            discovered_triggers=[t.trigger_key for t in outcome.discovered],
        )


@router.post("/{integration_id}/import", response_model=dict)
@limiter.limit(EXPENSIVE_LIMIT)
async def import_integration_catalog(
    request: Request,
    integration_id: str,
    organization_id: OrganizationId,
) -> dict[str, int]:
    """Re-import the platform catalog into this integration."""
    async with get_session() as session:
        integration = await _get_or_404(session, organization_id, integration_id)
        result = await CatalogImporter(session).import_catalog(integration)
        await session.commit()
        return result.to_dict()


@router.get("/{integration_id}/triggers", response_model=list[TriggerResponse])
async def list_triggers(
    integration_id: str,
    organization_id: OrganizationId,
    active_only: bool = False,
) -> list[TriggerResponse]:
    base_url = get_settings().public_base_url.rstrip("/")
    async with get_session() as session:
        await _get_or_404(session, organization_id, integration_id)
        triggers = await IntegrationTriggerRepository(session).list_for_integration(
            integration_id,
            active_only=active_only,
        )
        return [TriggerResponse(**_serialize_trigger(t, base_url)) for t in triggers]


@router.get("/{integration_id}/actions", response_model=list[ActionResponse])
async def list_actions(integration_id: str, organization_id: OrganizationId) -> list[ActionResponse]:
    async with get_session() as session:
        await _get_or_404(session, organization_id, integration_id)
        actions = await IntegrationActionRepository(session).list_for_integration(integration_id)
        return [ActionResponse(**_serialize_action(a)) for a in actions]


# ─── Helpers ──────────────────────────────────────────────────────────────────


async def _get_or_404(session: Any, organization_id: str, integration_id: str) -> Any:
    integration = await IntegrationRepository(session).get_for_org(organization_id, integration_id)
    if not integration:
        raise HTTPException(status_code=404, detail="Integration not found")
    return integration


def _iso(value: Any) -> str | None:
    return value.isoformat() if value else None


def _serialize(integration: Any) -> dict[str, Any]:
    """Serialize an Integration for the response model. Credentials never leave."""
    return {
        "id": integration.id,
        "organization_id": integration.organization_id,
        "platform_type": integration.platform_type,
        "name": integration.name,
        "connection_status": integration.connection_status,
        "is_enabled": integration.is_enabled,
        "has_credentials": integration.has_credentials,
        "last_tested_at": _iso(integration.last_tested_at),
        "test_result": integration.test_result or {},
        "metadata": integration.metadata_ or {},
        "created_at": _iso(integration.created_at) or "",
        "updated_at": _iso(integration.updated_at) or "",
    }


def _serialize_trigger(trigger: Any, base_url: str) -> dict[str, Any]:
    return {
        "id": trigger.id,
        "trigger_key": trigger.trigger_key,
        "name": trigger.name,
        "description": trigger.description,
        "category": trigger.category,
        "event_type": trigger.event_type,
        "resource_type": trigger.resource_type,
        "webhook_address": trigger.webhook_address,
        "webhook_url": f"{base_url}{trigger.webhook_address}" if trigger.webhook_address else None,
        "available_fields": list(trigger.available_fields or []),
        "is_active": trigger.is_active,
        "is_configured": trigger.is_configured,
        "webhook_event_count": trigger.webhook_event_count or 0,
        "last_webhook_at": _iso(trigger.last_webhook_at),
        "last_triggered_at": _iso(trigger.last_triggered_at),
    }


def _serialize_action(action: Any) -> dict[str, Any]:
    return {
        "id": action.id,
        "action_key": action.action_key,
        "name": action.name,
        "description": action.description,
        "category": action.category,
        "http_method": action.http_method,
        "endpoint": action.endpoint,
        "required_fields": list(action.required_fields or []),
        "optional_fields": list(action.optional_fields or []),
        "is_active": action.is_active,
        "usage_count": action.usage_count or 0,
        "last_used_at": _iso(action.last_used_at),
    }
