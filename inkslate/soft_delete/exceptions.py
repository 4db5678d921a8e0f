"""Exceptions for soft delete operations."""

from typing import Optional


class SoftDeleteError(Exception):
    """Base exception for soft delete operations."""

    def __init__(self, message: str, entity_id: Optional[str] = None):
        self.entity_id = entity_id
        super().__init__(message)


class NotFoundError(SoftDeleteError):
    """Raised when the targeted record is no longer present in the store."""

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        super().__init__(
            f"{entity_type} {entity_id} does not exist in the store",
            entity_id=entity_id,
        )


class InvalidStateError(SoftDeleteError):
    """Raised when an operation is not valid for the record's current state."""

    def __init__(self, entity_id: str, reason: str):
        self.reason = reason
        super().__init__(
            f"Entity {entity_id} is in an invalid state: {reason}",
            entity_id=entity_id,
        )


class PersistenceError(SoftDeleteError):
    """Raised when the underlying store fails to save, delete or fetch."""

    def __init__(self, message: str, entity_id: Optional[str] = None):
        super().__init__(message, entity_id=entity_id)
