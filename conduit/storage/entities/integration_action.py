"""IntegrationAction model: a catalog action imported for one integration."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from conduit.storage.models import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from conduit.storage.entities.integration import Integration


class IntegrationAction(Base, UUIDMixin, TimestampMixin):
    """An ActionDefinition imported for a specific Integration.

    One row per (integration_id, action_key). Read-only at execution time
    apart from the usage counters.
    """

    __tablename__ = "integration_actions"
    __table_args__ = (UniqueConstraint("integration_id", "action_key"),)

    integration_id: Mapped[str] = mapped_column(
        ForeignKey("integrations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    action_key: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    http_method: Mapped[str] = mapped_column(String(10), nullable=False)
    endpoint: Mapped[str] = mapped_column(String(500), nullable=False)
    parameter_schema: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    response_schema: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    required_fields: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)
    optional_fields: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)
    idempotent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    resource_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    docs_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    integration: Mapped[Integration] = relationship(back_populates="actions")

    def __repr__(self) -> str:
        return f"<IntegrationAction {self.action_key} {self.http_method} {self.endpoint}>"

    def record_use(self) -> None:
        self.usage_count = (self.usage_count or 0) + 1
        self.last_used_at = datetime.now(UTC)
