"""Cached inventory aggregate maintenance package."""

from inventory_totals.consistency_daemon import CheckCycleResult, ConsistencyCheckDaemon
from inventory_totals.corrections import CountCorrection, CountCorrectionService
from inventory_totals.errors import InventoryTotalsError, PersistFailureError, SubjectNotFoundError
from inventory_totals.hooks import AdjustmentHooks
from inventory_totals.maintainer import InventoryTotalsMaintainer
from inventory_totals.rebuild import RebuildReport, RebuildStatus, SubjectRebuildOutcome, rebuild_totals
from inventory_totals.records import AdjustmentRecord, RecalculationSummary, Subject
from inventory_totals.sql_stores import SqlLedgerStore, SqlNamedLock, SqlProgressCursor, SqlSubjectStore
from inventory_totals.totals_config import TotalsConfig, load_totals_config
from inventory_totals.value_format import format_inventory_value

__all__ = [
    "AdjustmentHooks",
    "AdjustmentRecord",
    "CheckCycleResult",
    "ConsistencyCheckDaemon",
    "CountCorrection",
    "CountCorrectionService",
    "InventoryTotalsError",
    "InventoryTotalsMaintainer",
    "PersistFailureError",
    "RebuildReport",
    "RebuildStatus",
    "RecalculationSummary",
    "SqlLedgerStore",
    "SqlNamedLock",
    "SqlProgressCursor",
    "SqlSubjectStore",
    "Subject",
    "SubjectNotFoundError",
    "SubjectRebuildOutcome",
    "TotalsConfig",
    "format_inventory_value",
    "load_totals_config",
    "rebuild_totals",
]
