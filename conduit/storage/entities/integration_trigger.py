"""IntegrationTrigger model: a catalog trigger bound to one integration."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from conduit.storage.models import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from conduit.storage.entities.integration import Integration


class IntegrationTrigger(Base, UUIDMixin, TimestampMixin):
    """A TriggerDefinition registered against a specific Integration.

    One row per (integration_id, trigger_key). Definition columns are
    refreshed on catalog re-import; ``is_configured``, ``is_active`` and
    ``configuration`` belong to the user and survive re-import.
    """

    __tablename__ = "integration_triggers"
    __table_args__ = (UniqueConstraint("integration_id", "trigger_key"),)

    integration_id: Mapped[str] = mapped_column(
        ForeignKey("integrations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    trigger_key: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    # Definition (refreshed by re-import)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    event_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        doc="'webhook', 'polling' or 'api_call'",
    )
    resource_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    payload_schema: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    sample_payload: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    available_fields: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)
    docs_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Instance state
    webhook_address: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
        index=True,
        doc="/webhooks/{platform}/{integration_id}/{trigger_key} for webhook triggers",
    )
    configuration: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_configured: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        doc="Whether the webhook has been registered with the vendor",
    )
    last_webhook_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_triggered_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Last time a delivery started a workflow run",
    )
    webhook_event_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    integration: Mapped[Integration] = relationship(back_populates="triggers")

    def __repr__(self) -> str:
        return f"<IntegrationTrigger {self.trigger_key} integration={self.integration_id}>"

    def record_delivery(self, started_runs: int = 0) -> None:
        """Record an inbound webhook delivery."""
        now = datetime.now(UTC)
        self.last_webhook_at = now
        self.webhook_event_count = (self.webhook_event_count or 0) + 1
        if started_runs:
            self.last_triggered_at = now
