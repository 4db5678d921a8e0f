"""
SQLAlchemy mixins for soft delete functionality.

These mixins give a record kind the two trash fields (``is_deleted`` and
``deleted_at``) plus the in-memory transitions between the active and
deleted states. Persisting the change is the job of a record store.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime
from sqlalchemy.orm import Mapped, Query, Session, declared_attr, mapped_column

SOFT_DELETE_FIELDS = ("is_deleted", "deleted_at")


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the format stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SoftDeleteMixin:
    """
    Mixin to add soft delete functionality to SQLAlchemy models.

    Provides:
    - Soft delete fields (is_deleted, deleted_at)
    - A check constraint keeping the two fields consistent
    - Methods for marking and clearing the deleted state
    - Query helpers for active and deleted rows

    Usage:
        class Note(Base, SoftDeleteMixin):
            __tablename__ = 'notes'
            id: Mapped[int] = mapped_column(Integer, primary_key=True)
            title: Mapped[str] = mapped_column(String(200))
    """

    is_deleted: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False, index=True
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    @declared_attr
    def __table_args__(cls: Any) -> Any:
        """Add the deletion consistency check constraint."""
        table_name = getattr(cls, "__tablename__", cls.__name__.lower())
        return (
            CheckConstraint(
                "(is_deleted = false AND deleted_at IS NULL) OR "
                "(is_deleted = true AND deleted_at IS NOT NULL)",
                name=f"ck_{table_name}_deletion_consistency",
            ),
        )

    def mark_deleted(self, when: datetime) -> bool:
        """
        Move this record to the trash.

        Args:
            when: Deletion timestamp to record

        Returns:
            True if the state changed, False if the record was already deleted
            (the original deletion time is kept)
        """
        if self.is_deleted:
            return False

        self.is_deleted = True
        self.deleted_at = when
        return True

    def clear_deleted(self) -> bool:
        """
        Take this record out of the trash.

        Returns:
            True if the state changed, False if the record was already active
        """
        if not self.is_deleted:
            return False

        self.is_deleted = False
        self.deleted_at = None
        return True

    @property
    def entity_key(self) -> str:
        """Identifier used in logs and error messages."""
        return str(getattr(self, "id", None) or "unsaved")

    @classmethod
    def query_active(cls, session: Session) -> Query[Any]:
        """Return query for active (non-deleted) records only."""
        return session.query(cls).filter(cls.is_deleted.is_(False))

    @classmethod
    def query_deleted(cls, session: Session) -> Query[Any]:
        """Return query for deleted records only."""
        return session.query(cls).filter(cls.is_deleted.is_(True))

    def to_dict(self, include_deleted_fields: bool = True) -> Dict[str, Any]:
        """
        Convert model to dictionary representation.

        Args:
            include_deleted_fields: Whether to include soft delete fields

        Returns:
            Dictionary representation of the model
        """
        result: Dict[str, Any] = {}

        table = getattr(self, "__table__", None)
        if table is None:
            return result

        for column in table.columns:
            if hasattr(self, column.key):
                value = getattr(self, column.key)
                if isinstance(value, datetime):
                    value = value.isoformat()
                result[column.key] = value

        if not include_deleted_fields:
            for field in SOFT_DELETE_FIELDS:
                result.pop(field, None)

        return result
