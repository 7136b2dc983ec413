"""Trigger discovery.

Registers a platform's trigger definitions against one integration.
Safe to call on every successful connection test: triggers that already
exist for the integration are skipped, and only new ones are returned.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.catalog.models import EventType, TriggerDefinition
from conduit.catalog.registry import find_catalog
from conduit.dal.integrations import IntegrationTriggerRepository
from conduit.storage.entities.integration_trigger import IntegrationTrigger

logger = logging.getLogger(__name__)

WEBHOOK_PATH_PREFIX = "/webhooks"


def webhook_address(platform_type: str, integration_id: str, trigger_key: str) -> str:
    """Stable inbound address for a webhook trigger.

    Deterministic in its inputs, so re-discovery for the same
    integration always reproduces the same address.
    """
    return f"{WEBHOOK_PATH_PREFIX}/{platform_type}/{integration_id}/{trigger_key}"


def trigger_row(definition: TriggerDefinition, platform_type: str, integration_id: str) -> dict:
    """Column values for a trigger row, including its webhook address."""
    row = definition.to_row()
    row["webhook_address"] = (
        webhook_address(platform_type, integration_id, definition.key)
        if definition.event_type == EventType.WEBHOOK
        else None
    )
    return row


class TriggerDiscoveryService:
    """Creates IntegrationTrigger rows for a platform's trigger catalog."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.triggers = IntegrationTriggerRepository(session)

    async def discover(self, integration_id: str, platform_type: str) -> list[IntegrationTrigger]:
        """Register missing triggers for an integration.

        Args:
            integration_id: Integration to register against
            platform_type: Platform whose trigger catalog to use

        Returns:
            The newly created triggers only.
        """
        catalog = find_catalog(platform_type)
        if catalog is None or not catalog.triggers:
            logger.debug("No triggers to discover for platform %s", platform_type)
            return []

        existing = {t.trigger_key for t in await self.triggers.list_for_integration(integration_id)}
        created: list[IntegrationTrigger] = []

        for definition in catalog.triggers:
            if definition.key in existing:
                continue
            try:
                async with self.session.begin_nested():
                    trigger = await self.triggers.create(
                        integration_id,
                        definition.key,
                        **trigger_row(definition, platform_type, integration_id),
                    )
            except IntegrityError:
                # Registered concurrently by another discovery pass
                logger.debug(
                    "Trigger %s already registered for integration %s",
                    definition.key,
                    integration_id,
                )
                continue
            created.append(trigger)

        if created:
            logger.info(
                "Discovered %d new %s triggers for integration %s",
                len(created),
                platform_type,
                integration_id,
            )
        return created
