"""Integration lifecycle: save, connection test, catalog import, delete."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from conduit.adapters.base import AdapterResult
from conduit.adapters.registry import AdapterRegistry
from conduit.catalog.discovery import TriggerDiscoveryService
from conduit.catalog.importer import CatalogImporter, ImportResult
from conduit.dal.integrations import IntegrationRepository
from conduit.exceptions import CredentialError, NotFoundError, ValidationError
from conduit.storage.entities.integration import ConnectionStatus, Integration, PlatformType
from conduit.storage.entities.integration_trigger import IntegrationTrigger
from conduit.vault import CredentialVault

logger = logging.getLogger(__name__)

PLATFORM_TYPES = frozenset(p.value for p in PlatformType)


@dataclass
class SaveOutcome:
    integration: Integration
    created: bool
    imported: ImportResult | None = None


@dataclass
class ConnectionTestOutcome:
    """Result of probing a vendor, plus any triggers discovered as a consequence."""

    integration: Integration
    result: AdapterResult
    discovered: list[IntegrationTrigger] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.result.success


class IntegrationService:
    """Coordinates the vault, the catalog and the vendor adapters for one session.

    Methods flush but never commit; the caller owns the transaction.
    """

    def __init__(self, session: AsyncSession, vault: CredentialVault, adapters: AdapterRegistry):
        self.session = session
        self.vault = vault
        self.adapters = adapters
        self.integrations = IntegrationRepository(session)

    async def get(self, organization_id: str, integration_id: str) -> Integration:
        integration = await self.integrations.get_for_org(organization_id, integration_id)
        if integration is None:
            raise NotFoundError(f"Integration {integration_id} not found", resource="integration")
        return integration

    async def save(
        self,
        organization_id: str,
        platform_type: str,
        name: str,
        credentials: dict[str, Any],
        integration_id: str | None = None,
        is_enabled: bool = True,
        metadata: dict[str, Any] | None = None,
    ) -> SaveOutcome:
        """Create or update an integration with freshly encrypted credentials.

        A new integration gets its platform catalog imported right away.
        Saving credentials resets the connection status to ``active``
        until the next connection test.
        """
        if platform_type not in PLATFORM_TYPES:
            raise ValidationError(f"Unsupported platform type: {platform_type}")
        if not credentials:
            raise ValidationError("Credentials must not be empty")

        blob = self.vault.encrypt_json(credentials)

        if integration_id:
            integration = await self.get(organization_id, integration_id)
            if integration.platform_type != platform_type:
                raise ValidationError("Platform type of an existing integration cannot change")
            fields: dict[str, Any] = {
                "name": name,
                "credentials_encrypted": blob,
                "connection_status": ConnectionStatus.ACTIVE.value,
                "is_enabled": is_enabled,
            }
            if metadata is not None:
                fields["metadata"] = metadata
            await self.integrations.update(integration.id, **fields)
            logger.info("Updated %s integration %s", platform_type, integration.id)
            return SaveOutcome(integration=integration, created=False)

        integration = await self.integrations.create(
            organization_id=organization_id,
            platform_type=platform_type,
            name=name,
            credentials_encrypted=blob,
            connection_status=ConnectionStatus.ACTIVE.value,
            is_enabled=is_enabled,
            metadata=metadata,
        )
        logger.info("Created %s integration %s", platform_type, integration.id)
        imported = await CatalogImporter(self.session).import_catalog(integration)
        return SaveOutcome(integration=integration, created=True, imported=imported)

    async def test_connection(self, organization_id: str, integration_id: str) -> ConnectionTestOutcome:
        """Probe the vendor with the stored credentials.

        Credential problems are raised to the caller, who has to re-enter
        them. A transition into ``connected`` runs trigger discovery.

        Raises:
            NotFoundError: Unknown integration
            CredentialError: Stored blob missing, malformed or undecryptable
        """
        integration = await self.get(organization_id, integration_id)
        if not integration.has_credentials:
            raise CredentialError(
                f"Integration {integration_id} has no stored credentials",
                reason="malformed",
            )
        credentials = self.vault.decrypt_json(integration.credentials_encrypted)

        adapter = self.adapters.get(integration.platform_type)
        if adapter is None:
            result = AdapterResult(
                success=False,
                error=f"No adapter available for platform '{integration.platform_type}'",
            )
        else:
            result = await adapter.test_connection(credentials)

        was_connected = integration.connection_status == ConnectionStatus.CONNECTED.value
        detail: dict[str, Any] = {"statusCode": result.status_code}
        if not result.success:
            detail["error"] = result.error
        integration.record_test(result.success, detail)
        await self.session.flush()

        discovered: list[IntegrationTrigger] = []
        if result.success and not was_connected:
            discovered = await TriggerDiscoveryService(self.session).discover(
                integration.id,
                integration.platform_type,
            )

        logger.info(
            "Connection test for %s integration %s: %s",
            integration.platform_type,
            integration.id,
            "connected" if result.success else "error",
        )
        return ConnectionTestOutcome(integration=integration, result=result, discovered=discovered)

    async def import_catalog(self, organization_id: str, integration_id: str) -> ImportResult:
        integration = await self.get(organization_id, integration_id)
        return await CatalogImporter(self.session).import_catalog(integration)

    async def delete(self, organization_id: str, integration_id: str) -> None:
        """Delete an integration together with its triggers and actions."""
        integration = await self.get(organization_id, integration_id)
        await self.integrations.delete(integration.id)
        logger.info("Deleted %s integration %s", integration.platform_type, integration.id)
