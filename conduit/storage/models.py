"""SQLAlchemy base model and the mixins shared by Conduit entities."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime, MetaData, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Constraint names stay stable across create_all runs
NAMING_CONVENTION: dict[str, str] = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Base class for all Conduit tables."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class UUIDMixin:
    """String UUID primary key, assigned client-side.

    Integration ids appear in webhook addresses, so they are generated
    before the row is flushed.
    """

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )


class OrganizationMixin:
    """Tenant scope. Every query made on behalf of a caller filters on it."""

    organization_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


__all__ = [
    "Base",
    "NAMING_CONVENTION",
    "OrganizationMixin",
    "TimestampMixin",
    "UUIDMixin",
]
