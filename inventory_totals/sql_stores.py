"""PostgreSQL-backed implementations of the maintainer's collaborators."""

from __future__ import annotations

from datetime import timedelta
import logging
import os
import socket
from typing import Any, Mapping, Optional, Sequence
import uuid

from inventory_totals.common import TotalsClock, TotalsDatabase, as_decimal
from inventory_totals.errors import PersistFailureError
from inventory_totals.records import AdjustmentRecord, Subject
from inventory_totals.value_format import normalize_stored_value

logger = logging.getLogger(__name__)

_ADJUSTMENT_COLUMNS = """
    adjustment_id,
    subject_id,
    quantity_delta,
    created_at_utc,
    deleted,
    change_reason,
    change_memo
"""


def _adjustment_from_row(row: Mapping[str, Any]) -> AdjustmentRecord:
    return AdjustmentRecord(
        adjustment_id=int(row["adjustment_id"]),
        subject_id=int(row["subject_id"]),
        quantity_delta=int(row["quantity_delta"]),
        created_at_utc=row["created_at_utc"],
        deleted=bool(row["deleted"]),
        change_reason=str(row["change_reason"]),
        change_memo=None if row.get("change_memo") is None else str(row["change_memo"]),
    )


def _subject_from_row(row: Mapping[str, Any]) -> Subject:
    unit_price = row.get("unit_price")
    count = row.get("inventory_count")
    return Subject(
        subject_id=int(row["subject_id"]),
        label=str(row["label"]),
        tracks_inventory=bool(row["tracks_inventory"]),
        unit_price=None if unit_price is None else as_decimal(unit_price),
        inventory_count=None if count is None else int(count),
        inventory_value=normalize_stored_value(row.get("inventory_value")),
    )


class SqlLedgerStore:
    """Adjustment ledger on the ``inventory_adjustment`` table."""

    def __init__(self, db: TotalsDatabase) -> None:
        self._db = db

    def sum_deltas(self, subject_id: int) -> int:
        row = self._db.fetch_one(
            """
            SELECT COALESCE(SUM(quantity_delta), 0) AS quantity_total
            FROM inventory_adjustment
            WHERE subject_id = :subject_id
              AND deleted = FALSE
            """,
            {"subject_id": subject_id},
        )
        return int(row["quantity_total"]) if row is not None else 0

    def list_adjustments(self, subject_id: int) -> Sequence[AdjustmentRecord]:
        rows = self._db.fetch_all(
            f"""
            SELECT {_ADJUSTMENT_COLUMNS}
            FROM inventory_adjustment
            WHERE subject_id = :subject_id
            ORDER BY adjustment_id ASC
            """,
            {"subject_id": subject_id},
        )
        return [_adjustment_from_row(row) for row in rows]

    def load(self, adjustment_id: int) -> Optional[AdjustmentRecord]:
        row = self._db.fetch_one(
            f"""
            SELECT {_ADJUSTMENT_COLUMNS}
            FROM inventory_adjustment
            WHERE adjustment_id = :adjustment_id
            """,
            {"adjustment_id": adjustment_id},
        )
        return None if row is None else _adjustment_from_row(row)

    def append(
        self,
        subject_id: int,
        quantity_delta: int,
        *,
        change_reason: str = "other",
        change_memo: str | None = None,
    ) -> AdjustmentRecord:
        try:
            row = self._db.fetch_one(
                f"""
                INSERT INTO inventory_adjustment (
                    subject_id, quantity_delta, change_reason, change_memo
                ) VALUES (
                    :subject_id, :quantity_delta, :change_reason, :change_memo
                )
                RETURNING {_ADJUSTMENT_COLUMNS}
                """,
                {
                    "subject_id": subject_id,
                    "quantity_delta": int(quantity_delta),
                    "change_reason": change_reason,
                    "change_memo": change_memo,
                },
            )
        except Exception as exc:
            raise PersistFailureError(f"Failed to append adjustment for subject {subject_id}") from exc
        if row is None:
            raise PersistFailureError(f"Adjustment insert for subject {subject_id} returned no row")
        return _adjustment_from_row(row)

    def soft_delete(self, adjustment_id: int) -> Optional[AdjustmentRecord]:
        try:
            row = self._db.fetch_one(
                f"""
                UPDATE inventory_adjustment
                SET deleted = TRUE
                WHERE adjustment_id = :adjustment_id
                RETURNING {_ADJUSTMENT_COLUMNS}
                """,
                {"adjustment_id": adjustment_id},
            )
        except Exception as exc:
            raise PersistFailureError(f"Failed to tombstone adjustment {adjustment_id}") from exc
        return None if row is None else _adjustment_from_row(row)


class SqlSubjectStore:
    """Subject reads and cached-total writes on the ``subject`` table."""

    def __init__(self, db: TotalsDatabase) -> None:
        self._db = db

    def load(self, subject_id: int) -> Optional[Subject]:
        row = self._db.fetch_one(
            """
            SELECT subject_id, label, tracks_inventory, unit_price, inventory_count, inventory_value
            FROM subject
            WHERE subject_id = :subject_id
            """,
            {"subject_id": subject_id},
        )
        return None if row is None else _subject_from_row(row)

    def save(self, subject: Subject) -> None:
        try:
            self._db.execute(
                """
                UPDATE subject
                SET inventory_count = :inventory_count,
                    inventory_value = CAST(:inventory_value AS NUMERIC(14,2)),
                    updated_at_utc = now()
                WHERE subject_id = :subject_id
                """,
                {
                    "subject_id": subject.subject_id,
                    "inventory_count": subject.inventory_count,
                    "inventory_value": subject.inventory_value,
                },
            )
        except Exception as exc:
            raise PersistFailureError(f"Failed to save inventory totals for subject {subject.subject_id}") from exc

    def list_subject_ids(self, after_id: int = 0, limit: int | None = None) -> Sequence[int]:
        params: dict[str, Any] = {"after_id": after_id}
        limit_clause = ""
        if limit is not None and limit > 0:
            limit_clause = "LIMIT :limit"
            params["limit"] = int(limit)
        rows = self._db.fetch_all(
            f"""
            SELECT subject_id
            FROM subject
            WHERE tracks_inventory = TRUE
              AND subject_id > :after_id
            ORDER BY subject_id ASC
            {limit_clause}
            """,
            params,
        )
        return [int(row["subject_id"]) for row in rows]


class SqlProgressCursor:
    """Key/value slots on the ``runtime_state`` table."""

    def __init__(self, db: TotalsDatabase) -> None:
        self._db = db

    def get(self, key: str, default: str | None = None) -> str | None:
        row = self._db.fetch_one(
            """
            SELECT state_value
            FROM runtime_state
            WHERE state_key = :state_key
            """,
            {"state_key": key},
        )
        if row is None or row.get("state_value") is None:
            return default
        return str(row["state_value"])

    def set(self, key: str, value: str) -> None:
        self._db.execute(
            """
            INSERT INTO runtime_state (state_key, state_value, updated_at_utc)
            VALUES (:state_key, :state_value, now())
            ON CONFLICT (state_key) DO UPDATE
            SET state_value = EXCLUDED.state_value,
                updated_at_utc = EXCLUDED.updated_at_utc
            """,
            {"state_key": key, "state_value": str(value)},
        )


class SqlNamedLock:
    """TTL-bound advisory locks on the ``named_lock`` table.

    An expired row is taken over by the next acquirer, so a holder that dies
    without releasing blocks others for at most the TTL.
    """

    def __init__(self, db: TotalsDatabase, clock: TotalsClock | None = None, owner: str | None = None) -> None:
        self._db = db
        self._clock = clock or TotalsClock()
        self._owner = owner or f"{socket.gethostname()}:{os.getpid()}:{uuid.uuid4().hex}"

    @property
    def owner(self) -> str:
        return self._owner

    def try_acquire(self, name: str, ttl_seconds: float) -> bool:
        now_utc = self._clock.now_utc()
        row = self._db.fetch_one(
            """
            INSERT INTO named_lock (lock_name, lock_owner, expires_at_utc)
            VALUES (:lock_name, :lock_owner, :expires_at_utc)
            ON CONFLICT (lock_name) DO UPDATE
            SET lock_owner = EXCLUDED.lock_owner,
                expires_at_utc = EXCLUDED.expires_at_utc
            WHERE named_lock.expires_at_utc <= :now_utc
            RETURNING lock_name
            """,
            {
                "lock_name": name,
                "lock_owner": self._owner,
                "expires_at_utc": now_utc + timedelta(seconds=float(ttl_seconds)),
                "now_utc": now_utc,
            },
        )
        return row is not None

    def release(self, name: str) -> None:
        self._db.execute(
            """
            DELETE FROM named_lock
            WHERE lock_name = :lock_name
              AND lock_owner = :lock_owner
            """,
            {"lock_name": name, "lock_owner": self._owner},
        )
