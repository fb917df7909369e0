"""Environment-backed configuration for inventory totals maintenance."""

from __future__ import annotations

from dataclasses import dataclass
import os


@dataclass(frozen=True)
class TotalsConfig:
    """Canonical configuration surface for the maintainer, CLI and daemon."""

    lock_namespace: str = "inventory_totals"
    lock_ttl_seconds: float = 30.0
    consistency_check_limit: int = 20
    consistency_interval_seconds: int = 3600
    cursor_key: str = "inventory_totals.last_checked_subject_id"
    daemon_failure_backoff_seconds: int = 60
    daemon_max_consecutive_failures: int = 5


def _read_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip()
    if value == "":
        raise RuntimeError(f"Blank value for environment variable: {name}")
    return value


def _read_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise RuntimeError(f"Invalid integer value for {name}: {raw}") from exc
    return value


def _read_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw.strip())
    except ValueError as exc:
        raise RuntimeError(f"Invalid float value for {name}: {raw}") from exc
    return value


def load_totals_config() -> TotalsConfig:
    """Load and validate inventory totals configuration from environment."""
    cfg = TotalsConfig(
        lock_namespace=_read_str("INVENTORY_TOTALS_LOCK_NAMESPACE", "inventory_totals"),
        lock_ttl_seconds=_read_float("INVENTORY_TOTALS_LOCK_TTL_SECONDS", 30.0),
        consistency_check_limit=_read_int("INVENTORY_TOTALS_CHECK_LIMIT", 20),
        consistency_interval_seconds=_read_int("INVENTORY_TOTALS_CHECK_INTERVAL_SECONDS", 3600),
        cursor_key=_read_str("INVENTORY_TOTALS_CURSOR_KEY", "inventory_totals.last_checked_subject_id"),
        daemon_failure_backoff_seconds=_read_int("INVENTORY_TOTALS_DAEMON_FAILURE_BACKOFF_SECONDS", 60),
        daemon_max_consecutive_failures=_read_int("INVENTORY_TOTALS_DAEMON_MAX_CONSECUTIVE_FAILURES", 5),
    )
    if cfg.lock_ttl_seconds <= 0:
        raise RuntimeError("INVENTORY_TOTALS_LOCK_TTL_SECONDS must be positive")
    if cfg.consistency_check_limit < 0:
        raise RuntimeError("INVENTORY_TOTALS_CHECK_LIMIT must not be negative")
    if cfg.consistency_interval_seconds <= 0:
        raise RuntimeError("INVENTORY_TOTALS_CHECK_INTERVAL_SECONDS must be positive")
    if cfg.daemon_failure_backoff_seconds < 0:
        raise RuntimeError("INVENTORY_TOTALS_DAEMON_FAILURE_BACKOFF_SECONDS must not be negative")
    if cfg.daemon_max_consecutive_failures <= 0:
        raise RuntimeError("INVENTORY_TOTALS_DAEMON_MAX_CONSECUTIVE_FAILURES must be positive")
    return cfg
