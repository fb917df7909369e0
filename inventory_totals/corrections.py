"""Physical stock-count corrections recorded as ledger adjustments."""

from __future__ import annotations

from dataclasses import dataclass
import logging

from inventory_totals.errors import SubjectNotFoundError
from inventory_totals.hooks import AdjustmentHooks
from inventory_totals.maintainer import InventoryTotalsMaintainer
from inventory_totals.stores import LedgerStore, SubjectStore

logger = logging.getLogger(__name__)

REASON_LOSSAGE = "lossage"
REASON_OTHER = "other"
CORRECTION_MEMO_PREFIX = "Inventory correction: "


@dataclass(frozen=True)
class CountCorrection:
    """Outcome of reconciling a physical count against the system count."""

    subject_id: int
    previous_count: int
    new_total: int
    delta: int
    reason: str | None
    adjustment_id: int | None
    changed: bool

    @property
    def is_positive_correction(self) -> bool:
        """Positive corrections usually point at a missed restock entry."""
        return self.delta > 0


class CountCorrectionService:
    """Turns an operator's physical count into a signed ledger adjustment."""

    def __init__(
        self,
        *,
        maintainer: InventoryTotalsMaintainer,
        subjects: SubjectStore,
        ledger: LedgerStore,
        hooks: AdjustmentHooks | None = None,
    ) -> None:
        self._maintainer = maintainer
        self._subjects = subjects
        self._ledger = ledger
        self._hooks = hooks or AdjustmentHooks(maintainer)

    def current_count(self, subject_id: int) -> int:
        """Ledger-derived count, or the cached count when recalculation is skipped."""
        subject = self._subjects.load(subject_id)
        if subject is None or not subject.tracks_inventory:
            raise SubjectNotFoundError(subject_id)

        summary = self._maintainer.recalculate(subject_id, persist=False)
        if summary is not None:
            return summary.calculated_count
        return subject.inventory_count if subject.inventory_count is not None else 0

    def record_count_correction(
        self,
        subject_id: int,
        actual_total: int,
        notes: str | None = None,
    ) -> CountCorrection:
        previous_count = self.current_count(subject_id)
        delta = int(actual_total) - previous_count
        if delta == 0:
            logger.info("No inventory change for subject %s (counts match at %s).", subject_id, previous_count)
            return CountCorrection(
                subject_id=subject_id,
                previous_count=previous_count,
                new_total=int(actual_total),
                delta=0,
                reason=None,
                adjustment_id=None,
                changed=False,
            )

        reason = REASON_LOSSAGE if delta < 0 else REASON_OTHER
        memo = notes.strip() if notes else ""
        if not memo and delta > 0:
            memo = CORRECTION_MEMO_PREFIX

        record = self._ledger.append(
            subject_id,
            delta,
            change_reason=reason,
            change_memo=memo or None,
        )
        self._hooks.on_created(record)
        logger.info("Inventory updated for subject %s. Adjustment: %+d.", subject_id, delta)

        return CountCorrection(
            subject_id=subject_id,
            previous_count=previous_count,
            new_total=int(actual_total),
            delta=delta,
            reason=reason,
            adjustment_id=record.adjustment_id,
            changed=True,
        )
