"""
Soft Delete Module - trash lifecycle for deletable records.

Provides the mixin, record stores, lifecycle service and periodic sweeper
that move records to the trash, restore them and purge them once their
retention period has passed.
"""

from .exceptions import (
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    SoftDeleteError,
)
from .mixins import SoftDeleteMixin, utcnow
from .models import (
    PurgeFailure,
    RecordQuery,
    RetentionPolicy,
    SweepResult,
    TrashSummary,
)
from .scheduler import PeriodicSweeper
from .services import SoftDeleteService, TrashManager
from .storage import MemoryRecordStore, RecordStore, SQLRecordStore

__all__ = [
    # Mixins
    "SoftDeleteMixin",
    "utcnow",
    # Services
    "SoftDeleteService",
    "TrashManager",
    "PeriodicSweeper",
    # Storage
    "RecordStore",
    "SQLRecordStore",
    "MemoryRecordStore",
    # Models
    "RecordQuery",
    "RetentionPolicy",
    "SweepResult",
    "PurgeFailure",
    "TrashSummary",
    # Exceptions
    "SoftDeleteError",
    "NotFoundError",
    "InvalidStateError",
    "PersistenceError",
]
