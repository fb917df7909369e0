"""Error taxonomy for inventory totals maintenance."""

from __future__ import annotations


class InventoryTotalsError(RuntimeError):
    """Base class for inventory totals failures."""


class SubjectNotFoundError(InventoryTotalsError):
    """Raised when a subject is unknown or does not track inventory."""

    def __init__(self, subject_id: int) -> None:
        super().__init__(f"Subject {subject_id} is unknown or does not track inventory.")
        self.subject_id = subject_id


class PersistFailureError(InventoryTotalsError):
    """Raised when a write to the subject store or ledger fails."""
