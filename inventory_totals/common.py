"""Shared protocols and helpers for inventory totals maintenance."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Mapping, Optional, Protocol, Sequence


class TotalsDatabase(Protocol):
    """Minimal DB protocol used by the SQL-backed stores."""

    def fetch_one(self, sql: str, params: Mapping[str, Any]) -> Optional[Mapping[str, Any]]:
        """Fetch one row."""

    def fetch_all(self, sql: str, params: Mapping[str, Any]) -> Sequence[Mapping[str, Any]]:
        """Fetch rows."""

    def execute(self, sql: str, params: Mapping[str, Any]) -> None:
        """Execute mutation statement."""


@dataclass(frozen=True)
class TotalsClock:
    """Injectable UTC clock for deterministic testing."""

    def now_utc(self) -> datetime:
        """Return current UTC timestamp."""
        return datetime.now(tz=timezone.utc)


def utc_iso(ts: datetime) -> str:
    """Normalize timestamp to UTC RFC3339 string."""
    return ts.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def as_decimal(value: Any) -> Decimal:
    """Convert DB/driver values to Decimal without passing through binary floats."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value).strip())
