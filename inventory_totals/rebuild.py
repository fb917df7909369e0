"""Bulk rebuild of cached totals with per-subject outcome reporting."""

from __future__ import annotations

from dataclasses import dataclass
import enum
import logging

from inventory_totals.maintainer import InventoryTotalsMaintainer
from inventory_totals.stores import SubjectStore

logger = logging.getLogger(__name__)


class RebuildStatus(str, enum.Enum):
    """Per-subject rebuild outcome."""

    CORRECTED = "CORRECTED"
    ACCURATE = "ACCURATE"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class SubjectRebuildOutcome:
    subject_id: int
    status: RebuildStatus
    stored_count: int | None = None
    calculated_count: int | None = None
    error: str | None = None


@dataclass(frozen=True)
class RebuildReport:
    outcomes: tuple[SubjectRebuildOutcome, ...]
    processed: int

    def count(self, status: RebuildStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)


def rebuild_totals(
    maintainer: InventoryTotalsMaintainer,
    subjects: SubjectStore,
    *,
    subject_id: int | None = None,
    limit: int | None = None,
) -> RebuildReport:
    """Recalculate one subject, or every tracked subject in ascending id order."""
    if subject_id is not None:
        subject_ids = [int(subject_id)]
    else:
        subject_ids = list(subjects.list_subject_ids(0, limit if limit is not None and limit > 0 else None))

    if not subject_ids:
        logger.info("No subjects matched the provided criteria.")
        return RebuildReport(outcomes=(), processed=0)

    outcomes: list[SubjectRebuildOutcome] = []
    for current_id in subject_ids:
        try:
            summary = maintainer.recalculate(current_id, persist=True)
        except Exception as exc:
            logger.exception("Rebuild failed for subject %s.", current_id)
            outcomes.append(
                SubjectRebuildOutcome(
                    subject_id=current_id,
                    status=RebuildStatus.FAILED,
                    error=f"{type(exc).__name__}:{exc}",
                )
            )
            continue

        if summary is None:
            logger.warning("Skipped subject %s because it could not be loaded or locked.", current_id)
            outcomes.append(SubjectRebuildOutcome(subject_id=current_id, status=RebuildStatus.SKIPPED))
            continue

        if summary.mismatch:
            logger.info(
                "Subject %s totals corrected from %s to %s.",
                current_id,
                summary.stored_count,
                summary.calculated_count,
            )
            status = RebuildStatus.CORRECTED
        else:
            logger.info("Subject %s totals already accurate (count: %s).", current_id, summary.calculated_count)
            status = RebuildStatus.ACCURATE
        outcomes.append(
            SubjectRebuildOutcome(
                subject_id=current_id,
                status=status,
                stored_count=summary.stored_count,
                calculated_count=summary.calculated_count,
            )
        )

    logger.info("Processed %s subjects.", len(outcomes))
    return RebuildReport(outcomes=tuple(outcomes), processed=len(outcomes))
