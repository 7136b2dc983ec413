"""Repositories for integrations and their imported triggers/actions."""

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.storage.entities.integration import Integration
from conduit.storage.entities.integration_action import IntegrationAction
from conduit.storage.entities.integration_trigger import IntegrationTrigger


class IntegrationRepository:
    """Repository for Integration CRUD operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        organization_id: str,
        platform_type: str,
        name: str,
        credentials_encrypted: str | None = None,
        connection_status: str = "disconnected",
        is_enabled: bool = False,
        metadata: dict[str, Any] | None = None,
    ) -> Integration:
        """Create a new integration."""
        integration = Integration(
            id=str(uuid4()),
            organization_id=organization_id,
            platform_type=platform_type,
            name=name,
            credentials_encrypted=credentials_encrypted,
            connection_status=connection_status,
            is_enabled=is_enabled,
            test_result={},
            metadata_=metadata or {},
        )
        self.session.add(integration)
        await self.session.flush()
        return integration

    async def get(self, integration_id: str) -> Integration | None:
        """Get an integration by ID."""
        return await self.session.get(Integration, integration_id)

    async def get_for_org(self, organization_id: str, integration_id: str) -> Integration | None:
        """Get an integration only if it belongs to the organization."""
        stmt = select(Integration).where(
            Integration.id == integration_id,
            Integration.organization_id == organization_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_platform(self, organization_id: str, platform_type: str) -> Integration | None:
        """Get the organization's integration for a platform type, if configured."""
        stmt = (
            select(Integration)
            .where(Integration.organization_id == organization_id)
            .where(Integration.platform_type == platform_type)
            .order_by(Integration.created_at)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_org(self, organization_id: str) -> list[Integration]:
        """List an organization's integrations."""
        stmt = (
            select(Integration)
            .where(Integration.organization_id == organization_id)
            .order_by(Integration.platform_type, Integration.name)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update(self, integration_id: str, **fields: Any) -> Integration | None:
        """Update an integration's fields."""
        integration = await self.get(integration_id)
        if not integration:
            return None
        for key, value in fields.items():
            if key == "metadata":
                key = "metadata_"
            if hasattr(integration, key):
                setattr(integration, key, value)
        integration.updated_at = datetime.now(UTC)
        await self.session.flush()
        return integration

    async def delete(self, integration_id: str) -> bool:
        """Delete an integration and, by cascade, its triggers and actions."""
        integration = await self.get(integration_id)
        if not integration:
            return False
        await self.session.delete(integration)
        await self.session.flush()
        return True


class IntegrationTriggerRepository:
    """Repository for IntegrationTrigger rows."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, trigger_id: str) -> IntegrationTrigger | None:
        return await self.session.get(IntegrationTrigger, trigger_id)

    async def get_by_key(self, integration_id: str, trigger_key: str) -> IntegrationTrigger | None:
        stmt = select(IntegrationTrigger).where(
            IntegrationTrigger.integration_id == integration_id,
            IntegrationTrigger.trigger_key == trigger_key,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_integration(
        self,
        integration_id: str,
        active_only: bool = False,
    ) -> list[IntegrationTrigger]:
        stmt = (
            select(IntegrationTrigger)
            .where(IntegrationTrigger.integration_id == integration_id)
            .order_by(IntegrationTrigger.trigger_key)
        )
        if active_only:
            stmt = stmt.where(IntegrationTrigger.is_active == True)  # noqa: E712
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, integration_id: str, trigger_key: str, **fields: Any) -> IntegrationTrigger:
        """Create a trigger row for an integration."""
        trigger = IntegrationTrigger(
            id=str(uuid4()),
            integration_id=integration_id,
            trigger_key=trigger_key,
            **fields,
        )
        self.session.add(trigger)
        await self.session.flush()
        return trigger

    async def upsert(
        self,
        integration_id: str,
        trigger_key: str,
        definition: dict[str, Any],
    ) -> tuple[IntegrationTrigger, bool]:
        """Create or refresh a trigger keyed by (integration_id, trigger_key).

        Only the columns in ``definition`` are written on update, so
        instance state such as ``is_configured`` is left alone.

        Returns:
            Tuple of (trigger, created)
        """
        existing = await self.get_by_key(integration_id, trigger_key)
        if existing:
            for key, value in definition.items():
                if hasattr(existing, key) and key not in ("id", "integration_id", "trigger_key"):
                    setattr(existing, key, value)
            existing.updated_at = datetime.now(UTC)
            await self.session.flush()
            return existing, False

        created = await self.create(integration_id, trigger_key, **definition)
        return created, True

    async def record_delivery(self, trigger: IntegrationTrigger, started_runs: int) -> None:
        trigger.record_delivery(started_runs)
        await self.session.flush()


class IntegrationActionRepository:
    """Repository for IntegrationAction rows."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_key(self, integration_id: str, action_key: str) -> IntegrationAction | None:
        stmt = select(IntegrationAction).where(
            IntegrationAction.integration_id == integration_id,
            IntegrationAction.action_key == action_key,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_integration(
        self,
        integration_id: str,
        active_only: bool = False,
    ) -> list[IntegrationAction]:
        stmt = (
            select(IntegrationAction)
            .where(IntegrationAction.integration_id == integration_id)
            .order_by(IntegrationAction.action_key)
        )
        if active_only:
            stmt = stmt.where(IntegrationAction.is_active == True)  # noqa: E712
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def upsert(
        self,
        integration_id: str,
        action_key: str,
        definition: dict[str, Any],
    ) -> tuple[IntegrationAction, bool]:
        """Create or refresh an action keyed by (integration_id, action_key).

        Returns:
            Tuple of (action, created)
        """
        now = datetime.now(UTC)
        existing = await self.get_by_key(integration_id, action_key)
        if existing:
            for key, value in definition.items():
                if hasattr(existing, key) and key not in ("id", "integration_id", "action_key"):
                    setattr(existing, key, value)
            existing.last_synced_at = now
            existing.updated_at = now
            await self.session.flush()
            return existing, False

        action = IntegrationAction(
            id=str(uuid4()),
            integration_id=integration_id,
            action_key=action_key,
            last_synced_at=now,
            **definition,
        )
        self.session.add(action)
        await self.session.flush()
        return action, True

    async def record_use(self, action: IntegrationAction) -> None:
        action.record_use()
        await self.session.flush()
