"""Collaborator protocols injected into the inventory totals maintainer."""

from __future__ import annotations

from typing import Optional, Protocol, Sequence, runtime_checkable

from inventory_totals.records import AdjustmentRecord, Subject


class LedgerStore(Protocol):
    """Append-only adjustment ledger queryable by subject."""

    def list_adjustments(self, subject_id: int) -> Sequence[AdjustmentRecord]:
        """Return every adjustment for the subject, tombstoned rows included."""

    def load(self, adjustment_id: int) -> Optional[AdjustmentRecord]:
        """Load one adjustment by id."""

    def append(
        self,
        subject_id: int,
        quantity_delta: int,
        *,
        change_reason: str = "other",
        change_memo: str | None = None,
    ) -> AdjustmentRecord:
        """Append a new adjustment and return it."""

    def soft_delete(self, adjustment_id: int) -> Optional[AdjustmentRecord]:
        """Tombstone an adjustment; returns the tombstoned record."""


@runtime_checkable
class SummingLedgerStore(LedgerStore, Protocol):
    """Ledger backend able to sum deltas without loading individual rows."""

    def sum_deltas(self, subject_id: int) -> int:
        """Sum quantity deltas over non-deleted adjustments for the subject."""


class SubjectStore(Protocol):
    """Persistence for subjects and their cached aggregate."""

    def load(self, subject_id: int) -> Optional[Subject]:
        """Load a subject or return None."""

    def save(self, subject: Subject) -> None:
        """Overwrite the cached count and value of the subject."""

    def list_subject_ids(self, after_id: int = 0, limit: int | None = None) -> Sequence[int]:
        """List inventory-tracking subject ids greater than ``after_id``, ascending."""


class NamedLock(Protocol):
    """Advisory non-blocking lock keyed by name and bounded by a TTL."""

    def try_acquire(self, name: str, ttl_seconds: float) -> bool:
        """Acquire without waiting; False when another holder owns the lock."""

    def release(self, name: str) -> None:
        """Release a lock held by this instance."""


class ProgressCursor(Protocol):
    """Persisted key/value slot."""

    def get(self, key: str, default: str | None = None) -> str | None:
        """Read a value."""

    def set(self, key: str, value: str) -> None:
        """Write a value."""
