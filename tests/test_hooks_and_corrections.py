"""Unit tests for ledger triggers and physical count corrections."""

from __future__ import annotations

from dataclasses import replace

import pytest

from inventory_totals.corrections import CORRECTION_MEMO_PREFIX, CountCorrectionService
from inventory_totals.errors import SubjectNotFoundError
from inventory_totals.hooks import AdjustmentHooks
from inventory_totals.maintainer import InventoryTotalsMaintainer
from tests.utils.fakes import (
    InMemoryLedgerStore,
    InMemoryNamedLock,
    InMemoryProgressCursor,
    InMemorySubjectStore,
    make_subject,
)


def _wire(subjects: InMemorySubjectStore, ledger: InMemoryLedgerStore, lock: InMemoryNamedLock | None = None):  # type: ignore[no-untyped-def]
    maintainer = InventoryTotalsMaintainer(
        subjects=subjects,
        ledger=ledger,
        lock=lock or InMemoryNamedLock(),
        cursor=InMemoryProgressCursor(),
    )
    hooks = AdjustmentHooks(maintainer)
    service = CountCorrectionService(maintainer=maintainer, subjects=subjects, ledger=ledger, hooks=hooks)
    return maintainer, hooks, service


def test_created_adjustment_takes_the_delta_path() -> None:
    subjects = InMemorySubjectStore([make_subject(1, count=10, value="10.00")])
    ledger = InMemoryLedgerStore()
    _, hooks, _ = _wire(subjects, ledger)

    (record,) = ledger.add(1, -3)
    hooks.on_created(record)

    assert subjects.subjects[1].inventory_count == 7
    assert ledger.sum_calls == []


def test_created_tombstone_is_ignored() -> None:
    subjects = InMemorySubjectStore([make_subject(1, count=10, value="10.00")])
    ledger = InMemoryLedgerStore()
    lock = InMemoryNamedLock()
    _, hooks, _ = _wire(subjects, ledger, lock)

    (record,) = ledger.add(1, 5)
    hooks.on_created(replace(record, deleted=True))
    assert lock.acquired == []


def test_deleted_adjustment_recalculates() -> None:
    subjects = InMemorySubjectStore([make_subject(1, count=12, value="12.00")])
    ledger = InMemoryLedgerStore()
    _, hooks, _ = _wire(subjects, ledger)

    keep, drop = ledger.add(1, 10, 2)
    tombstoned = ledger.soft_delete(drop.adjustment_id)
    summary = hooks.on_deleted(tombstoned)  # type: ignore[arg-type]

    assert summary is not None and summary.mismatch is True
    assert subjects.subjects[1].inventory_count == keep.quantity_delta


def test_updated_adjustment_moved_between_subjects_recalculates_both() -> None:
    subjects = InMemorySubjectStore([make_subject(1, count=4, value="4.00"), make_subject(2, count=0, value="0.00")])
    ledger = InMemoryLedgerStore()
    _, hooks, _ = _wire(subjects, ledger)

    (record,) = ledger.add(1, 4)
    moved = replace(record, subject_id=2)
    ledger.records[record.adjustment_id] = moved

    summaries = hooks.on_updated(moved, previous=record)

    assert list(summaries) == [1, 2]
    assert subjects.subjects[1].inventory_count == 0
    assert subjects.subjects[2].inventory_count == 4


def test_updated_adjustment_same_subject_recalculates_once() -> None:
    subjects = InMemorySubjectStore([make_subject(1, count=4, value="4.00")])
    ledger = InMemoryLedgerStore()
    _, hooks, _ = _wire(subjects, ledger)

    (record,) = ledger.add(1, 4)
    edited = replace(record, quantity_delta=6)
    ledger.records[record.adjustment_id] = edited

    summaries = hooks.on_updated(edited, previous=record)
    assert list(summaries) == [1]
    assert subjects.subjects[1].inventory_count == 6


def test_count_correction_records_lossage() -> None:
    subjects = InMemorySubjectStore([make_subject(1, count=9, value="18.00", unit_price="2.00")])
    ledger = InMemoryLedgerStore()
    ledger.add(1, 10, -3, 2)
    _, _, service = _wire(subjects, ledger)

    correction = service.record_count_correction(1, 6, notes="  water damage ")

    assert correction.changed is True
    assert correction.previous_count == 9
    assert correction.delta == -3
    assert correction.reason == "lossage"
    assert correction.is_positive_correction is False
    appended = ledger.records[correction.adjustment_id]  # type: ignore[index]
    assert appended.change_memo == "water damage"
    assert subjects.subjects[1].inventory_count == 6
    assert subjects.subjects[1].inventory_value == "12.00"


def test_positive_count_correction_gets_memo_prefix() -> None:
    subjects = InMemorySubjectStore([make_subject(1, count=0, value="0.00")])
    ledger = InMemoryLedgerStore()
    _, _, service = _wire(subjects, ledger)

    correction = service.record_count_correction(1, 5)

    assert correction.reason == "other"
    assert correction.is_positive_correction is True
    assert ledger.records[correction.adjustment_id].change_memo == CORRECTION_MEMO_PREFIX  # type: ignore[index]
    assert subjects.subjects[1].inventory_count == 5


def test_matching_count_writes_nothing() -> None:
    subjects = InMemorySubjectStore([make_subject(1, count=3, value="3.00")])
    ledger = InMemoryLedgerStore()
    ledger.add(1, 3)
    _, _, service = _wire(subjects, ledger)

    correction = service.record_count_correction(1, 3)

    assert correction.changed is False
    assert correction.adjustment_id is None
    assert len(ledger.records) == 1
    assert subjects.saves == []


def test_correction_uses_ledger_count_not_stale_cache() -> None:
    subjects = InMemorySubjectStore([make_subject(1, count=50, value="50.00")])
    ledger = InMemoryLedgerStore()
    ledger.add(1, 8)
    _, _, service = _wire(subjects, ledger)

    assert service.current_count(1) == 8
    assert subjects.saves == []


def test_correction_falls_back_to_cached_count_when_locked() -> None:
    subjects = InMemorySubjectStore([make_subject(1, count=50, value="50.00")])
    ledger = InMemoryLedgerStore()
    ledger.add(1, 8)
    lock = InMemoryNamedLock()
    lock.hold("inventory_totals:1")
    _, _, service = _wire(subjects, ledger, lock)

    assert service.current_count(1) == 50


def test_correction_unknown_subject_raises() -> None:
    _, _, service = _wire(InMemorySubjectStore([make_subject(2, tracks_inventory=False)]), InMemoryLedgerStore())
    with pytest.raises(SubjectNotFoundError):
        service.record_count_correction(1, 5)
    with pytest.raises(SubjectNotFoundError):
        service.record_count_correction(2, 5)
