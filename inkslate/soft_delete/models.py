"""
Data models for soft delete operations.

These models describe retention policies, store queries and the outcome of
batch purges (emptying the trash and expiry sweeps).
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_RETENTION_DAYS = 30
DEFAULT_EXPIRY_WARNING_DAYS = 3


class RetentionPolicy(BaseModel):
    """Defines how long deleted records of one kind stay in the trash."""

    entity_type: str = Field(..., description="Record kind this policy applies to")
    retention_days: int = Field(
        DEFAULT_RETENTION_DAYS,
        description="Days a deleted record is kept before automatic purge",
        gt=0,
    )
    auto_purge: bool = Field(
        True, description="Whether expiry sweeps purge this record kind"
    )
    expiry_warning_days: int = Field(
        DEFAULT_EXPIRY_WARNING_DAYS,
        description="Remaining days at which a trashed record counts as expiring",
        ge=0,
    )

    @property
    def retention_period(self) -> timedelta:
        """Retention window as a timedelta."""
        return timedelta(days=self.retention_days)

    def expires_at(self, deleted_at: datetime) -> datetime:
        """Moment after which a record deleted at ``deleted_at`` may be purged."""
        return deleted_at + self.retention_period

    def is_expired(self, deleted_at: datetime, now: datetime) -> bool:
        """
        Check if a deleted record is past its retention window.

        Args:
            deleted_at: When the record was soft deleted
            now: Reference time

        Returns:
            True once strictly more than the retention period has elapsed
        """
        return now - deleted_at > self.retention_period

    def days_remaining(self, deleted_at: datetime, now: datetime) -> int:
        """Whole days left before expiry, never negative."""
        return max(0, (self.expires_at(deleted_at) - now).days)


class RecordQuery(BaseModel):
    """Criteria for fetching records from a record store."""

    is_deleted: Optional[bool] = Field(
        None, description="Match only deleted (True) or active (False) records"
    )
    deleted_before: Optional[datetime] = Field(
        None, description="Match records deleted strictly before this time"
    )
    filters: Dict[str, Any] = Field(
        default_factory=dict, description="Equality filters on record attributes"
    )

    @field_validator("filters")
    @classmethod
    def validate_filter_names(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        """Reject filter keys that cannot be attribute names."""
        for key in v:
            if not key.isidentifier():
                raise ValueError(f"Invalid filter field name: {key!r}")
        return v


class PurgeFailure(BaseModel):
    """A record that could not be purged during a batch operation."""

    entity_id: str = Field(..., description="ID of the record that failed")
    error: str = Field(..., description="Error reported by the store")


class SweepResult(BaseModel):
    """Aggregate outcome of emptying the trash or sweeping expired records."""

    model_config = ConfigDict(validate_assignment=True)

    entity_type: str = Field(..., description="Record kind that was processed")
    operation: str = Field(
        ...,
        description="Batch operation that produced this result",
        pattern="^(empty_trash|sweep_expired)$",
    )
    started_at: datetime = Field(..., description="When the batch started")
    completed_at: Optional[datetime] = Field(None, description="When it finished")
    attempted: int = Field(0, description="Records the batch tried to purge", ge=0)
    succeeded: int = Field(0, description="Records actually purged", ge=0)
    failures: List[PurgeFailure] = Field(
        default_factory=list, description="Per-record purge failures"
    )
    error: Optional[str] = Field(
        None, description="Error that prevented the batch from running at all"
    )

    @property
    def failed(self) -> int:
        """Number of records that could not be purged."""
        return len(self.failures)

    @property
    def has_errors(self) -> bool:
        """Whether anything went wrong during the batch."""
        return bool(self.failures) or self.error is not None

    def record_success(self) -> None:
        """Count one purged record."""
        self.attempted += 1
        self.succeeded += 1

    def record_failure(self, entity_id: str, error: Exception) -> None:
        """Count one record whose purge failed."""
        self.attempted += 1
        self.failures.append(PurgeFailure(entity_id=entity_id, error=str(error)))


class TrashSummary(BaseModel):
    """Statistics about the trash of one record kind."""

    entity_type: str
    total_items: int = 0
    oldest_deleted_at: Optional[datetime] = None
    expiring_soon: int = Field(
        0, description="Items within the expiry warning window"
    )
