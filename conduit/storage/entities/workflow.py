"""Workflow model: a named, ordered list of action steps."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from conduit.storage.models import Base, OrganizationMixin, TimestampMixin, UUIDMixin


class WorkflowTriggerType(str, enum.Enum):
    """How a workflow is started."""

    EVENT = "event"  # Inbound webhook delivery for a bound trigger
    SCHEDULE = "schedule"  # Cron runner tick
    MANUAL = "manual"  # Explicit API call


class Workflow(Base, UUIDMixin, OrganizationMixin, TimestampMixin):
    """User-authored automation.

    ``steps`` holds the raw step records (``{"type", "name", "config",
    ...}``) exactly as saved; they are parsed into
    :class:`conduit.workflow.steps.Step` at run time.

    ``trigger_config`` depends on ``trigger_type``:
    - schedule: ``{"frequency": "daily", "timezone": "Europe/London"}``
    - event: ``{"trigger_id": ...}`` or ``{"integration_id": ..., "trigger_key": ...}``
    - manual: ``{}``
    """

    __tablename__ = "workflows"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    trigger_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=WorkflowTriggerType.MANUAL.value,
        doc="'event', 'schedule' or 'manual'",
    )
    trigger_config: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        server_default="{}",
    )
    steps: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        server_default="[]",
    )

    assigned_user_id: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        doc="Human owner; becomes the actor of unattended runs",
    )
    is_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)

    # Execution tracking
    last_run_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_run_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    last_successful_run_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Workflow {self.name!r} trigger={self.trigger_type} enabled={self.is_enabled}>"

    @property
    def frequency(self) -> str | None:
        """Chosen schedule frequency, if any."""
        value = (self.trigger_config or {}).get("frequency")
        return str(value) if value else None

    def matches_trigger(self, trigger_id: str, integration_id: str, trigger_key: str) -> bool:
        """Whether an inbound delivery for a trigger should start this workflow."""
        if self.trigger_type != WorkflowTriggerType.EVENT.value or not self.is_enabled:
            return False
        config = self.trigger_config or {}
        if config.get("trigger_id"):
            return config["trigger_id"] == trigger_id
        return config.get("integration_id") == integration_id and config.get("trigger_key") == trigger_key
