"""Catalog importer.

Upserts a platform's trigger and action definitions into the rows of
one integration, keyed by (integration_id, key). Re-importing refreshes
definition columns in place and leaves instance state (``is_configured``,
``configuration``, usage counters) untouched.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from conduit.catalog.discovery import trigger_row
from conduit.catalog.registry import find_catalog
from conduit.dal.integrations import IntegrationActionRepository, IntegrationTriggerRepository
from conduit.storage.entities.integration import Integration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportResult:
    """Counts of definitions written by one import."""

    triggers_imported: int = 0
    actions_imported: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "triggersImported": self.triggers_imported,
            "actionsImported": self.actions_imported,
        }


class CatalogImporter:
    """Copies static catalogs into per-integration rows."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.triggers = IntegrationTriggerRepository(session)
        self.actions = IntegrationActionRepository(session)

    async def import_catalog(self, integration: Integration) -> ImportResult:
        """Import the integration's platform catalog.

        Platform types without a catalog import nothing; that is not an
        error.
        """
        catalog = find_catalog(integration.platform_type)
        if catalog is None:
            logger.info("No catalog for platform %s, nothing imported", integration.platform_type)
            return ImportResult()

        for definition in catalog.triggers:
            await self.triggers.upsert(
                integration.id,
                definition.key,
                trigger_row(definition, integration.platform_type, integration.id),
            )
        for action in catalog.actions:
            await self.actions.upsert(integration.id, action.key, action.to_row())

        result = ImportResult(
            triggers_imported=len(catalog.triggers),
            actions_imported=len(catalog.actions),
        )
        logger.info(
            "Imported %d triggers and %d actions for %s integration %s",
            result.triggers_imported,
            result.actions_imported,
            integration.platform_type,
            integration.id,
        )
        return result
