"""Periodic driver for the rolling inventory consistency check."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import time

from inventory_totals.common import TotalsClock, utc_iso
from inventory_totals.maintainer import InventoryTotalsMaintainer
from inventory_totals.totals_config import TotalsConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckCycleResult:
    """Counts from one consistency-check batch."""

    started_at_utc: str
    checked: int
    corrected: int
    skipped: int
    wrapped: bool


class ConsistencyCheckDaemon:
    """Runs bounded consistency-check batches on a fixed interval."""

    def __init__(
        self,
        *,
        maintainer: InventoryTotalsMaintainer,
        config: TotalsConfig,
        limit: int | None = None,
        clock: TotalsClock | None = None,
    ) -> None:
        self._maintainer = maintainer
        self._config = config
        self._limit = config.consistency_check_limit if limit is None else int(limit)
        self._clock = clock or TotalsClock()

    def run_once(self) -> CheckCycleResult:
        """Run one consistency-check batch."""
        started = utc_iso(self._clock.now_utc())
        summaries = self._maintainer.run_consistency_check(self._limit)
        result = CheckCycleResult(
            started_at_utc=started,
            checked=len(summaries),
            corrected=sum(1 for summary in summaries.values() if summary is not None and summary.mismatch),
            skipped=sum(1 for summary in summaries.values() if summary is None),
            wrapped=self._limit > 0 and not summaries,
        )
        logger.info(
            "Consistency check at %s: checked=%s corrected=%s skipped=%s wrapped=%s",
            result.started_at_utc,
            result.checked,
            result.corrected,
            result.skipped,
            result.wrapped,
        )
        return result

    def daemon_loop(self, *, max_cycles: int | None = None) -> None:
        """Run until interrupted or max_cycles reached."""
        logger.info(
            "Consistency daemon started (limit=%s, interval=%ss, max_cycles=%s).",
            self._limit,
            self._config.consistency_interval_seconds,
            max_cycles if max_cycles is not None else "infinite",
        )
        cycles = 0
        consecutive_failures = 0
        try:
            while True:
                try:
                    self.run_once()
                    consecutive_failures = 0
                except Exception as exc:
                    consecutive_failures += 1
                    logger.warning(
                        "Consistency check cycle failed (failure_count=%s, error=%s:%s).",
                        consecutive_failures,
                        type(exc).__name__,
                        exc,
                    )
                    if consecutive_failures >= self._config.daemon_max_consecutive_failures:
                        raise RuntimeError(
                            "Consistency daemon exceeded max consecutive failures "
                            f"({self._config.daemon_max_consecutive_failures})"
                        ) from exc
                    time.sleep(self._config.daemon_failure_backoff_seconds)
                    continue

                cycles += 1
                if max_cycles is not None and cycles >= max_cycles:
                    return
                time.sleep(self._config.consistency_interval_seconds)
        finally:
            logger.info("Consistency daemon stopped (completed_cycles=%s).", cycles)
