"""Ledger write triggers that keep cached totals in step with adjustments."""

from __future__ import annotations

import logging

from inventory_totals.maintainer import InventoryTotalsMaintainer
from inventory_totals.records import AdjustmentRecord, RecalculationSummary

logger = logging.getLogger(__name__)


class AdjustmentHooks:
    """Maps ledger create/update/delete events onto maintainer operations.

    Creation carries an exact delta and takes the fast path. Edits and
    deletes fall back to a full recalculation because the effective delta is
    not reliably known afterwards.
    """

    def __init__(self, maintainer: InventoryTotalsMaintainer) -> None:
        self._maintainer = maintainer

    def on_created(self, record: AdjustmentRecord) -> None:
        if record.deleted:
            return
        self._maintainer.apply_delta(record.subject_id, int(record.quantity_delta))

    def on_updated(
        self,
        record: AdjustmentRecord,
        previous: AdjustmentRecord | None = None,
    ) -> dict[int, RecalculationSummary | None]:
        subject_ids = [record.subject_id]
        if previous is not None and previous.subject_id != record.subject_id:
            subject_ids.insert(0, previous.subject_id)
        return {subject_id: self._maintainer.recalculate(subject_id, persist=True) for subject_id in subject_ids}

    def on_deleted(self, record: AdjustmentRecord) -> RecalculationSummary | None:
        return self._maintainer.recalculate(record.subject_id, persist=True)
