"""
Record stores used by the soft delete lifecycle.

Provides the abstract repository interface the lifecycle services depend on,
a SQLAlchemy-backed implementation and an in-memory implementation.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .exceptions import NotFoundError, PersistenceError
from .models import RecordQuery

logger = logging.getLogger(__name__)


class RecordStore(ABC):
    """Abstract base class for record storage backends.

    Each store holds exactly one record kind. ``save`` and ``delete`` are
    individually atomic; no cross-record transaction is offered.
    """

    entity_type: str

    @abstractmethod
    async def fetch(self, query: Optional[RecordQuery] = None) -> List[Any]:
        """
        Fetch records matching a query.

        Args:
            query: Criteria to match, all records when omitted

        Returns:
            Snapshot list of matching records, in no particular order

        Raises:
            PersistenceError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def get(self, record_id: Any) -> Optional[Any]:
        """
        Get a single record by ID.

        Returns:
            The record, or None if it does not exist
        """
        pass

    @abstractmethod
    async def save(self, record: Any) -> Any:
        """
        Insert a new record or update an existing one.

        Args:
            record: Record to persist; records without an ID are inserted

        Returns:
            The persisted record, with its ID assigned

        Raises:
            NotFoundError: If the record has an ID that no longer exists
            PersistenceError: If the write fails
        """
        pass

    @abstractmethod
    async def delete(self, record: Any) -> None:
        """
        Permanently remove a record.

        Raises:
            NotFoundError: If the record is not in the store
            PersistenceError: If the delete fails
        """
        pass


class SQLRecordStore(RecordStore):
    """SQL database storage backend for one mapped record class."""

    def __init__(self, model: Type[Any], session_factory: sessionmaker):  # type: ignore[type-arg]
        """
        Initialize SQL record storage.

        Args:
            model: Mapped class stored by this backend
            session_factory: Session factory bound to the database engine.
                Sessions must be created with ``expire_on_commit=False`` so
                returned records stay readable once detached.
        """
        self.model = model
        self.entity_type = model.__name__
        self.SessionLocal = session_factory

    def _column(self, name: str) -> Any:
        column = getattr(self.model, name, None)
        if column is None:
            raise ValueError(f"{self.entity_type} has no field named {name!r}")
        return column

    async def fetch(self, query: Optional[RecordQuery] = None) -> List[Any]:
        """Fetch records matching a query."""
        query = query or RecordQuery()

        try:
            with self.SessionLocal() as session:
                q = session.query(self.model)

                if query.is_deleted is not None:
                    q = q.filter(self.model.is_deleted.is_(query.is_deleted))
                if query.deleted_before is not None:
                    q = q.filter(self.model.deleted_at < query.deleted_before)
                for name, value in query.filters.items():
                    q = q.filter(self._column(name) == value)

                return q.all()
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to fetch {self.entity_type} records: {e}"
            ) from e

    async def get(self, record_id: Any) -> Optional[Any]:
        """Get a single record by ID."""
        try:
            with self.SessionLocal() as session:
                return session.get(self.model, record_id)
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to load {self.entity_type} {record_id}: {e}",
                entity_id=str(record_id),
            ) from e

    async def save(self, record: Any) -> Any:
        """Insert or update a record in its own transaction."""
        try:
            with self.SessionLocal() as session:
                if record.id is None:
                    session.add(record)
                else:
                    # Never resurrect a row that was purged concurrently
                    if session.get(self.model, record.id) is None:
                        raise NotFoundError(self.entity_type, str(record.id))
                    session.merge(record)
                session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to save {self.entity_type} {record.id}: {e}",
                entity_id=str(record.id),
            ) from e

        return record

    async def delete(self, record: Any) -> None:
        """Delete a record in its own transaction."""
        if record.id is None:
            raise NotFoundError(self.entity_type, "unsaved")

        try:
            with self.SessionLocal() as session:
                existing = session.get(self.model, record.id)
                if existing is None:
                    raise NotFoundError(self.entity_type, str(record.id))
                session.delete(existing)
                session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to delete {self.entity_type} {record.id}: {e}",
                entity_id=str(record.id),
            ) from e


class MemoryRecordStore(RecordStore):
    """In-process storage backend, mainly for tests and ephemeral sessions."""

    def __init__(self, entity_type: str):
        self.entity_type = entity_type
        self._records: Dict[int, Any] = {}
        self._next_id = 1

    def __len__(self) -> int:
        return len(self._records)

    def _matches(self, record: Any, query: RecordQuery) -> bool:
        if query.is_deleted is not None and bool(record.is_deleted) != query.is_deleted:
            return False
        if query.deleted_before is not None:
            if record.deleted_at is None or record.deleted_at >= query.deleted_before:
                return False
        for name, value in query.filters.items():
            if not hasattr(record, name):
                raise ValueError(f"{self.entity_type} has no field named {name!r}")
            if getattr(record, name) != value:
                return False
        return True

    async def fetch(self, query: Optional[RecordQuery] = None) -> List[Any]:
        """Fetch records matching a query."""
        query = query or RecordQuery()
        return [r for r in self._records.values() if self._matches(r, query)]

    async def get(self, record_id: Any) -> Optional[Any]:
        """Get a single record by ID."""
        return self._records.get(record_id)

    async def save(self, record: Any) -> Any:
        """Insert or update a record."""
        if record.id is None:
            record.id = self._next_id
            self._next_id += 1
        elif record.id not in self._records:
            raise NotFoundError(self.entity_type, str(record.id))

        self._records[record.id] = record
        return record

    async def delete(self, record: Any) -> None:
        """Delete a record."""
        if self._records.pop(record.id, None) is None:
            raise NotFoundError(self.entity_type, str(record.id))
        logger.debug(f"Removed {self.entity_type} {record.id} from memory store")
