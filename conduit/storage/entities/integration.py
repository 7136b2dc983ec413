"""Integration model: one configured connection to an external platform."""

from __future__ import annotations

import enum
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from conduit.storage.models import Base, OrganizationMixin, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from conduit.storage.entities.integration_action import IntegrationAction
    from conduit.storage.entities.integration_trigger import IntegrationTrigger


class PlatformType(str, enum.Enum):
    """External platforms Conduit knows about."""

    SPLYNX = "splynx"  # Billing / CRM
    VAPI = "vapi"  # Voice AI
    AIRTABLE = "airtable"  # Spreadsheet-like data source
    OPENAI = "openai"  # LLM provider
    XERO = "xero"
    OUTLOOK = "outlook"


class ConnectionStatus(str, enum.Enum):
    """Connection state of an integration."""

    DISCONNECTED = "disconnected"  # Never configured or credentials cleared
    ACTIVE = "active"  # Credentials saved, not yet tested
    CONNECTED = "connected"  # Last connection test succeeded
    ERROR = "error"  # Last connection test failed


class Integration(Base, UUIDMixin, OrganizationMixin, TimestampMixin):
    """A configured connection to one external platform for one organization.

    ``credentials_encrypted`` is a vault blob and is never decrypted
    outside :class:`conduit.vault.CredentialVault`.
    """

    __tablename__ = "integrations"

    platform_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    credentials_encrypted: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        doc="Vault blob: hex(nonce):hex(ciphertext)",
    )
    connection_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ConnectionStatus.DISCONNECTED.value,
        server_default=ConnectionStatus.DISCONNECTED.value,
    )
    is_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_tested_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    test_result: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        server_default="{}",
    )
    metadata_: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSONB,
        nullable=False,
        default=dict,
        server_default="{}",
        doc="Platform-specific defaults (e.g. Airtable base id, default assistant)",
    )

    triggers: Mapped[list[IntegrationTrigger]] = relationship(
        back_populates="integration",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    actions: Mapped[list[IntegrationAction]] = relationship(
        back_populates="integration",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return (
            f"<Integration {self.id[:8] if self.id else '?'} "
            f"platform={self.platform_type} status={self.connection_status}>"
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.credentials_encrypted)

    def record_test(self, success: bool, detail: dict[str, Any]) -> None:
        """Record the outcome of a connection test."""
        self.last_tested_at = datetime.now(UTC)
        self.connection_status = (
            ConnectionStatus.CONNECTED.value if success else ConnectionStatus.ERROR.value
        )
        self.test_result = {"success": success, **detail}
