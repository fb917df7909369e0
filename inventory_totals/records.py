"""Value objects exchanged between the maintainer and its stores."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class Subject:
    """Subject snapshot with its cached inventory aggregate."""

    subject_id: int
    label: str
    tracks_inventory: bool
    unit_price: Decimal | None
    inventory_count: int | None
    inventory_value: str | None


@dataclass(frozen=True)
class AdjustmentRecord:
    """Immutable ledger entry recording a signed quantity change."""

    adjustment_id: int
    subject_id: int
    quantity_delta: int
    created_at_utc: datetime
    deleted: bool = False
    change_reason: str = "other"
    change_memo: str | None = None


@dataclass(frozen=True)
class RecalculationSummary:
    """Stored versus ledger-derived totals for one subject."""

    stored_count: int | None
    stored_value: str | None
    calculated_count: int
    calculated_value: str
    mismatch: bool
