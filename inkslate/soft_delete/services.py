"""
Service layer for soft delete operations.

Provides the trash lifecycle for a record kind (delete, restore, purge,
emptying the trash and expiry sweeps) and a registry that sweeps every
managed record kind at once.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from .exceptions import InvalidStateError, NotFoundError, PersistenceError
from .mixins import SoftDeleteMixin, utcnow
from .models import RecordQuery, RetentionPolicy, SweepResult, TrashSummary
from .storage import RecordStore

logger = logging.getLogger(__name__)


class SoftDeleteService:
    """
    Service managing the trash lifecycle of one record kind.

    Records move between two states, active and deleted. Only deleted
    records can be purged, either one at a time, by emptying the trash, or
    by an expiry sweep once they are older than the retention period.

    The service keeps no state of its own besides its configuration; the
    record store owns storage and identity.
    """

    def __init__(
        self,
        store: RecordStore,
        policy: Optional[RetentionPolicy] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the soft delete service.

        Args:
            store: Record store for the managed record kind
            policy: Retention policy, 30 days by default
            clock: Callable returning the current naive UTC time
        """
        self.store = store
        self.policy = policy or RetentionPolicy(entity_type=store.entity_type)
        self.clock = clock or utcnow

    @property
    def entity_type(self) -> str:
        return self.policy.entity_type

    async def soft_delete(self, record: SoftDeleteMixin) -> SoftDeleteMixin:
        """
        Move a record to the trash.

        Deleting a record that is already in the trash is a no-op; the
        original deletion time is preserved.

        Args:
            record: Active record to delete

        Returns:
            The record in its deleted state

        Raises:
            NotFoundError: If the record no longer exists
            PersistenceError: If the store fails to save
        """
        if getattr(record, "id", None) is None:
            raise NotFoundError(self.entity_type, record.entity_key)

        if not record.mark_deleted(self.clock()):
            logger.debug(f"{self.entity_type} {record.entity_key} already in trash")
            return record

        try:
            saved = await self.store.save(record)
        except (NotFoundError, PersistenceError):
            record.clear_deleted()
            raise

        logger.info(f"Moved {self.entity_type} {record.entity_key} to trash")
        return saved

    async def restore(self, record: SoftDeleteMixin) -> Optional[SoftDeleteMixin]:
        """
        Take a record out of the trash.

        Args:
            record: Deleted record to restore

        Returns:
            The restored record, or None if it was purged in the meantime

        Raises:
            PersistenceError: If the store fails to save
        """
        deleted_at = record.deleted_at
        if not record.clear_deleted():
            logger.debug(f"{self.entity_type} {record.entity_key} is not in trash")
            return record

        try:
            saved = await self.store.save(record)
        except NotFoundError:
            logger.info(
                f"{self.entity_type} {record.entity_key} was purged before restore"
            )
            return None
        except PersistenceError:
            record.mark_deleted(deleted_at or self.clock())
            raise

        logger.info(f"Restored {self.entity_type} {record.entity_key} from trash")
        return saved

    async def purge(self, record: SoftDeleteMixin) -> None:
        """
        Permanently remove a record from the trash.

        Args:
            record: Deleted record to purge

        Raises:
            InvalidStateError: If the record was never moved to the trash
            PersistenceError: If the store fails to delete
        """
        if not record.is_deleted:
            raise InvalidStateError(
                record.entity_key,
                f"{self.entity_type} must be moved to trash before it is purged",
            )

        try:
            await self.store.delete(record)
        except NotFoundError:
            logger.debug(f"{self.entity_type} {record.entity_key} already purged")
            return

        logger.info(f"Purged {self.entity_type} {record.entity_key}")

    async def empty_trash(self, scope: Optional[Dict[str, Any]] = None) -> SweepResult:
        """
        Purge every record in the trash.

        Args:
            scope: Optional equality filters restricting the purge,
                e.g. ``{"folder_id": 3}``

        Returns:
            Aggregate result; per-record failures are recorded, not raised

        Raises:
            PersistenceError: If the trash cannot be read
        """
        started_at = self.clock()
        records = await self.store.fetch(
            RecordQuery(is_deleted=True, filters=scope or {})
        )
        result = await self._purge_all(records, "empty_trash", started_at)

        logger.info(
            f"Emptied {self.entity_type} trash: {result.succeeded} of "
            f"{result.attempted} purged"
        )
        return result

    async def sweep_expired(
        self, retention_period: Optional[timedelta] = None
    ) -> SweepResult:
        """
        Purge deleted records older than the retention period.

        A record is expired once strictly more than ``retention_period`` has
        passed since its deletion. The candidates are fetched once up front;
        the sweep then runs to completion against that snapshot.

        Args:
            retention_period: Override for the policy's retention period

        Returns:
            Aggregate result; per-record failures are recorded, not raised

        Raises:
            PersistenceError: If the trash cannot be read
        """
        period = (
            retention_period
            if retention_period is not None
            else self.policy.retention_period
        )
        started_at = self.clock()

        if not self.policy.auto_purge:
            logger.info(f"Automatic purge disabled for {self.entity_type}")
            result = SweepResult(
                entity_type=self.entity_type,
                operation="sweep_expired",
                started_at=started_at,
            )
            result.completed_at = self.clock()
            return result

        records = await self.store.fetch(
            RecordQuery(is_deleted=True, deleted_before=started_at - period)
        )
        result = await self._purge_all(records, "sweep_expired", started_at)

        if result.attempted:
            logger.info(
                f"Swept expired {self.entity_type} records: {result.succeeded} of "
                f"{result.attempted} purged, {result.failed} failed"
            )
        else:
            logger.info(f"No expired {self.entity_type} records to clean up")
        return result

    async def _purge_all(
        self, records: List[Any], operation: str, started_at: datetime
    ) -> SweepResult:
        """Purge each record in turn, collecting failures instead of raising."""
        result = SweepResult(
            entity_type=self.entity_type,
            operation=operation,
            started_at=started_at,
        )

        for record in records:
            try:
                await self.purge(record)
            except (InvalidStateError, PersistenceError) as e:
                logger.warning(
                    f"Failed to purge {self.entity_type} {record.entity_key}: {e}"
                )
                result.record_failure(record.entity_key, e)
            else:
                result.record_success()

        result.completed_at = self.clock()
        return result

    async def list_trash(self, scope: Optional[Dict[str, Any]] = None) -> List[Any]:
        """Deleted records, most recently deleted first."""
        records = await self.store.fetch(
            RecordQuery(is_deleted=True, filters=scope or {})
        )
        return sorted(records, key=lambda r: r.deleted_at, reverse=True)

    async def list_active(self, scope: Optional[Dict[str, Any]] = None) -> List[Any]:
        """Records that are not in the trash."""
        return await self.store.fetch(
            RecordQuery(is_deleted=False, filters=scope or {})
        )

    def days_until_purge(self, record: SoftDeleteMixin) -> int:
        """
        Whole days left before a trashed record becomes eligible for purge.

        Raises:
            InvalidStateError: If the record is not in the trash
        """
        if not record.is_deleted or record.deleted_at is None:
            raise InvalidStateError(record.entity_key, "record is not in the trash")
        return self.policy.days_remaining(record.deleted_at, self.clock())

    async def summarize_trash(self) -> TrashSummary:
        """Count trashed records and those about to expire."""
        records = await self.store.fetch(RecordQuery(is_deleted=True))
        summary = TrashSummary(entity_type=self.entity_type, total_items=len(records))

        if records:
            summary.oldest_deleted_at = min(r.deleted_at for r in records)
            summary.expiring_soon = sum(
                1
                for r in records
                if self.days_until_purge(r) <= self.policy.expiry_warning_days
            )

        return summary


class TrashManager:
    """Registry of soft delete services, one per managed record kind."""

    def __init__(self) -> None:
        self.services: Dict[str, SoftDeleteService] = {}

    def register(self, service: SoftDeleteService) -> None:
        """
        Register the lifecycle service for a record kind.

        Args:
            service: Service to register under its entity type
        """
        self.services[service.entity_type] = service

    def get(self, entity_type: str) -> SoftDeleteService:
        """Look up the service for a record kind, ignoring case."""
        for name, service in self.services.items():
            if name.lower() == entity_type.lower():
                return service

        known = ", ".join(sorted(self.services)) or "none"
        raise KeyError(f"Unknown record kind {entity_type!r} (managed: {known})")

    async def sweep_all(
        self, retention_period: Optional[timedelta] = None
    ) -> List[SweepResult]:
        """
        Run an expiry sweep for every registered record kind.

        A kind whose trash cannot be read is reported as a failed result and
        the remaining kinds still run.

        Args:
            retention_period: Override for every policy's retention period
        """
        results = []

        for entity_type, service in self.services.items():
            try:
                results.append(await service.sweep_expired(retention_period))
            except PersistenceError as e:
                logger.exception(f"Expiry sweep for {entity_type} could not run")
                failed = SweepResult(
                    entity_type=entity_type,
                    operation="sweep_expired",
                    started_at=service.clock(),
                    error=str(e),
                )
                failed.completed_at = service.clock()
                results.append(failed)

        return results
