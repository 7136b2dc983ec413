"""Database-backed action catalog for the executor."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from conduit.catalog.models import ActionDefinition
from conduit.dal.integrations import IntegrationActionRepository, IntegrationRepository
from conduit.exceptions import CredentialError
from conduit.storage.entities.integration import Integration
from conduit.storage.entities.integration_action import IntegrationAction
from conduit.vault import CredentialVault
from conduit.workflow.executor import ResolvedAction
from conduit.workflow.steps import Step


def definition_from_row(row: IntegrationAction) -> ActionDefinition:
    """Rebuild the action contract from an imported row."""
    return ActionDefinition(
        key=row.action_key,
        name=row.name,
        description=row.description or "",
        category=row.category,
        http_method=row.http_method,
        endpoint=row.endpoint,
        parameter_schema=row.parameter_schema or {},
        response_schema=row.response_schema or {},
        required_fields=list(row.required_fields or []),
        optional_fields=list(row.optional_fields or []),
        idempotent=row.idempotent,
        resource_type=row.resource_type,
        docs_url=row.docs_url,
    )


class StoredActionCatalog:
    """Resolves step actions from imported IntegrationAction rows.

    Only enabled integrations of the run's organization and active
    action rows are considered.
    """

    def __init__(self, session: AsyncSession, vault: CredentialVault):
        self.vault = vault
        self.integrations = IntegrationRepository(session)
        self.actions = IntegrationActionRepository(session)
        self._blobs: dict[str, str | None] = {}

    async def _candidates(self, organization_id: str, step: Step) -> list[Integration]:
        if step.integration_id:
            integration = await self.integrations.get_for_org(organization_id, step.integration_id)
            return [integration] if integration else []
        return await self.integrations.list_by_org(organization_id)

    async def resolve_action(self, organization_id: str, step: Step) -> ResolvedAction | None:
        for integration in await self._candidates(organization_id, step):
            if not integration.is_enabled:
                continue
            row = await self.actions.get_by_key(integration.id, step.type)
            if row is None or not row.is_active:
                continue
            self._blobs[integration.id] = integration.credentials_encrypted
            return ResolvedAction(
                action=definition_from_row(row),
                platform_type=integration.platform_type,
                integration_id=integration.id,
                record=row,
            )
        return None

    async def load_credentials(self, resolved: ResolvedAction) -> dict[str, Any]:
        blob = self._blobs.get(resolved.integration_id)
        if not blob:
            raise CredentialError(
                f"Integration {resolved.integration_id} has no stored credentials",
                reason="malformed",
            )
        return self.vault.decrypt_json(blob)

    async def record_use(self, resolved: ResolvedAction) -> None:
        if isinstance(resolved.record, IntegrationAction):
            await self.actions.record_use(resolved.record)
