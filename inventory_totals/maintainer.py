"""Cached inventory aggregate maintenance: delta, recalculation and rolling checks."""

from __future__ import annotations

from dataclasses import replace
import logging

from inventory_totals.records import RecalculationSummary, Subject
from inventory_totals.stores import (
    LedgerStore,
    NamedLock,
    ProgressCursor,
    SubjectStore,
    SummingLedgerStore,
)
from inventory_totals.totals_config import TotalsConfig
from inventory_totals.value_format import format_inventory_value

logger = logging.getLogger(__name__)

CURSOR_START = 0


class InventoryTotalsMaintainer:
    """Keeps each subject's cached count and value in line with the adjustment ledger.

    Every read-modify-write on a subject runs under that subject's named lock.
    Lock contention skips the operation; the rolling consistency check repairs
    whatever the skipped write left behind.
    """

    def __init__(
        self,
        *,
        subjects: SubjectStore,
        ledger: LedgerStore,
        lock: NamedLock,
        cursor: ProgressCursor,
        config: TotalsConfig | None = None,
    ) -> None:
        self._subjects = subjects
        self._ledger = ledger
        self._lock = lock
        self._cursor = cursor
        self._config = config or TotalsConfig()

    def apply_delta(self, subject_id: int, delta: int) -> None:
        """Apply a known quantity change to the cached totals."""
        if delta == 0:
            return

        if not self._acquire_lock(subject_id):
            logger.warning("Unable to acquire inventory lock for subject %s; update skipped.", subject_id)
            return

        try:
            subject = self._load_subject(subject_id)
            if subject is None:
                return

            stored_count = subject.inventory_count if subject.inventory_count is not None else 0
            self._persist_totals(subject, stored_count + delta)
        finally:
            self._release_lock(subject_id)

    def recalculate(self, subject_id: int, persist: bool = True) -> RecalculationSummary | None:
        """Recompute totals from the ledger and report drift.

        Returns None when the subject was skipped (lock contention, unknown
        subject, or a subject that does not track inventory).
        """
        if not self._acquire_lock(subject_id):
            logger.warning(
                "Unable to acquire inventory lock for subject %s during rebuild; skipping.",
                subject_id,
            )
            return None

        try:
            subject = self._load_subject(subject_id)
            if subject is None:
                return None

            calculated_count = self._calculate_quantity(subject_id)
            calculated_value = format_inventory_value(calculated_count, subject.unit_price)

            mismatch = _as_text(subject.inventory_count) != _as_text(calculated_count) or _as_text(
                subject.inventory_value
            ) != _as_text(calculated_value)

            if persist and mismatch:
                self._persist_totals(subject, calculated_count)

            return RecalculationSummary(
                stored_count=subject.inventory_count,
                stored_value=subject.inventory_value,
                calculated_count=calculated_count,
                calculated_value=calculated_value,
                mismatch=mismatch,
            )
        finally:
            self._release_lock(subject_id)

    def run_consistency_check(self, limit: int = 20) -> dict[int, RecalculationSummary | None]:
        """Recalculate the next batch of subjects after the persisted cursor.

        The cursor wraps to the start once no subjects remain past it, so
        repeated calls sweep the whole population.
        """
        if limit <= 0:
            return {}

        cursor_key = self._config.cursor_key
        last_processed = int(self._cursor.get(cursor_key, str(CURSOR_START)) or CURSOR_START)

        subject_ids = sorted(int(sid) for sid in self._subjects.list_subject_ids(last_processed, limit))
        if not subject_ids:
            self._cursor.set(cursor_key, str(CURSOR_START))
            return {}

        summaries: dict[int, RecalculationSummary | None] = {}
        for subject_id in subject_ids:
            try:
                summary = self.recalculate(subject_id, persist=True)
            except Exception:
                logger.exception("Inventory recalculation failed for subject %s during consistency check.", subject_id)
                summary = None
            summaries[subject_id] = summary

            if summary is not None and summary.mismatch:
                logger.warning(
                    "Inventory mismatch detected for subject %s during consistency check. "
                    "Stored count %s (value %s), recalculated %s (value %s).",
                    subject_id,
                    summary.stored_count,
                    summary.stored_value,
                    summary.calculated_count,
                    summary.calculated_value,
                )

        self._cursor.set(cursor_key, str(max(subject_ids)))
        return summaries

    def lock_name(self, subject_id: int) -> str:
        """Build the per-subject lock name."""
        return f"{self._config.lock_namespace}:{subject_id}"

    def _acquire_lock(self, subject_id: int) -> bool:
        try:
            return self._lock.try_acquire(self.lock_name(subject_id), self._config.lock_ttl_seconds)
        except Exception:
            logger.warning("Lock backend failed while locking subject %s.", subject_id, exc_info=True)
            return False

    def _release_lock(self, subject_id: int) -> None:
        try:
            self._lock.release(self.lock_name(subject_id))
        except Exception:
            logger.warning(
                "Lock backend failed while releasing subject %s; lock expires after its TTL.",
                subject_id,
                exc_info=True,
            )

    def _load_subject(self, subject_id: int) -> Subject | None:
        subject = self._subjects.load(subject_id)
        if subject is None:
            logger.warning("Attempted to update inventory for unknown subject %s.", subject_id)
            return None

        if not subject.tracks_inventory:
            logger.warning(
                "Subject %s does not track inventory totals; skipping inventory total update.",
                subject_id,
            )
            return None

        if subject.unit_price is None or str(subject.unit_price).strip() == "":
            logger.warning("Subject %s has no unit price; inventory value will default to zero.", subject_id)
        return subject

    def _persist_totals(self, subject: Subject, count: int) -> None:
        formatted_value = format_inventory_value(count, subject.unit_price)

        count_changed = _as_text(subject.inventory_count) != _as_text(count)
        value_changed = _as_text(subject.inventory_value) != formatted_value
        if not count_changed and not value_changed:
            return

        self._subjects.save(replace(subject, inventory_count=count, inventory_value=formatted_value))

    def _calculate_quantity(self, subject_id: int) -> int:
        if isinstance(self._ledger, SummingLedgerStore):
            return int(self._ledger.sum_deltas(subject_id))
        return self._calculate_quantity_from_records(subject_id)

    def _calculate_quantity_from_records(self, subject_id: int) -> int:
        total = 0
        for record in self._ledger.list_adjustments(subject_id):
            if record.deleted:
                continue
            total += int(record.quantity_delta)
        return total


def _as_text(value: object) -> str | None:
    return None if value is None else str(value)
