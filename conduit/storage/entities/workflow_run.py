"""WorkflowRun model: one execution attempt of a workflow."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from conduit.storage.models import Base, OrganizationMixin, UUIDMixin

TERMINAL_STATUSES = frozenset({"succeeded", "failed", "partial"})


class WorkflowRun(Base, UUIDMixin, OrganizationMixin):
    """Persisted record of a workflow execution.

    ``workflow_id`` is nulled when the workflow is deleted so that run
    history survives for audit. Once ``status`` is terminal the row is
    not written again.
    """

    __tablename__ = "workflow_runs"

    workflow_id: Mapped[str | None] = mapped_column(
        ForeignKey("workflows.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    workflow_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        index=True,
        doc="pending, running, succeeded, failed, partial",
    )
    trigger_source: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        doc="'manual', 'webhook' or 'schedule'",
    )

    context: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        doc="Context snapshot (trigger payload, actor, step outputs)",
    )
    step_results: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        doc="Ordered [{stepIndex, status, output|error, errorKind, durationMs}]",
    )
    total_steps: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    steps_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    duration_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<WorkflowRun {self.id[:8] if self.id else '?'} status={self.status}>"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
