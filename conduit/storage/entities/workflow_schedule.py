"""WorkflowSchedule model: the cron binding of a schedule-triggered workflow."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from conduit.storage.models import Base, OrganizationMixin, TimestampMixin, UUIDMixin


class WorkflowSchedule(Base, UUIDMixin, OrganizationMixin, TimestampMixin):
    """At most one row per workflow.

    Switching the workflow's trigger away from ``schedule`` sets
    ``is_active`` to False; the row and its firing history are kept.
    """

    __tablename__ = "workflow_schedules"

    workflow_id: Mapped[str] = mapped_column(
        ForeignKey("workflows.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    cron_expression: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Five-field cron expression, e.g. '0 0 * * 0'",
    )
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    last_fired_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Scheduled time of the last claimed tick",
    )
    next_run_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<WorkflowSchedule workflow={self.workflow_id} cron={self.cron_expression!r} "
            f"active={self.is_active}>"
        )
