#!/usr/bin/env python3
"""Inventory totals maintenance CLI: rebuild, consistency check and daemon."""

from __future__ import annotations

import argparse
import json
import logging
import os
from pathlib import Path
import re
import sys
from typing import Any, Mapping, Optional, Sequence

import psycopg
from psycopg.rows import dict_row

# Ensure repository root is importable when script is executed by path.
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from inventory_totals.consistency_daemon import ConsistencyCheckDaemon
from inventory_totals.corrections import CountCorrectionService
from inventory_totals.maintainer import InventoryTotalsMaintainer
from inventory_totals.rebuild import rebuild_totals
from inventory_totals.sql_stores import SqlLedgerStore, SqlNamedLock, SqlProgressCursor, SqlSubjectStore
from inventory_totals.totals_config import TotalsConfig, load_totals_config


_NAMED_PARAM_RE = re.compile(r"(?<!:):([a-zA-Z_][a-zA-Z0-9_]*)")


def _convert_named_params(sql: str) -> str:
    return _NAMED_PARAM_RE.sub(r"%(\1)s", sql)


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid integer: {value}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("Value must be a positive integer.")
    return parsed


class PsycopgTotalsDB:
    """Minimal DB adapter implementing the inventory totals store protocol."""

    def __init__(self, conn: psycopg.Connection[Any]) -> None:
        self.conn = conn

    def fetch_one(self, sql: str, params: Mapping[str, Any]) -> Optional[Mapping[str, Any]]:
        rows = self.fetch_all(sql, params)
        return rows[0] if rows else None

    def fetch_all(self, sql: str, params: Mapping[str, Any]) -> Sequence[Mapping[str, Any]]:
        converted = _convert_named_params(sql)
        with self.conn.cursor(row_factory=dict_row) as cur:
            cur.execute(converted, dict(params))
            return [dict(row) for row in cur.fetchall()]

    def execute(self, sql: str, params: Mapping[str, Any]) -> None:
        converted = _convert_named_params(sql)
        with self.conn.cursor() as cur:
            cur.execute(converted, dict(params))


def _resolve_connection(args: argparse.Namespace) -> psycopg.Connection[Any]:
    # Autocommit keeps lock rows visible to other workers and isolates each subject's write.
    if args.dsn:
        return psycopg.connect(args.dsn, autocommit=True)

    host = args.host or os.getenv("DB_HOST")
    port = args.port or os.getenv("DB_PORT")
    dbname = args.dbname or os.getenv("DB_NAME")
    user = args.user or os.getenv("DB_USER")
    password = args.password or os.getenv("DB_PASSWORD")

    missing = [
        key
        for key, value in (("host", host), ("port", port), ("dbname", dbname), ("user", user), ("password", password))
        if not value
    ]
    if missing:
        raise SystemExit(
            "Missing DB connection args. Provide --dsn or set --host/--port/--dbname/--user/--password "
            f"(missing: {', '.join(missing)})."
        )

    return psycopg.connect(host=host, port=port, dbname=dbname, user=user, password=password, autocommit=True)


def _build_maintainer(db: PsycopgTotalsDB, cfg: TotalsConfig) -> InventoryTotalsMaintainer:
    return InventoryTotalsMaintainer(
        subjects=SqlSubjectStore(db),
        ledger=SqlLedgerStore(db),
        lock=SqlNamedLock(db),
        cursor=SqlProgressCursor(db),
        config=cfg,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inventory totals maintenance CLI")
    parser.add_argument("--dsn", help="PostgreSQL DSN (optional)")
    parser.add_argument("--host", help="DB host")
    parser.add_argument("--port", help="DB port")
    parser.add_argument("--dbname", help="DB name")
    parser.add_argument("--user", help="DB user")
    parser.add_argument("--password", help="DB password")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    rebuild = subparsers.add_parser("rebuild", help="Rebuild cached totals for one or all subjects")
    rebuild.add_argument("--subject-id", type=_positive_int, default=None)
    rebuild.add_argument("--limit", type=_positive_int, default=None)

    check = subparsers.add_parser("check", help="Run one rolling consistency-check batch")
    check.add_argument("--limit", type=int, default=None)

    daemon = subparsers.add_parser("daemon", help="Run the consistency check on a fixed interval")
    daemon.add_argument("--limit", type=int, default=None)
    daemon.add_argument("--max-cycles", type=int, default=None)

    apply_delta = subparsers.add_parser("apply-delta", help="Apply a known quantity change to cached totals")
    apply_delta.add_argument("--subject-id", type=_positive_int, required=True)
    apply_delta.add_argument("--delta", type=int, required=True)

    recalculate = subparsers.add_parser("recalculate", help="Recalculate one subject and print the summary")
    recalculate.add_argument("--subject-id", type=_positive_int, required=True)
    recalculate.add_argument("--dry-run", action="store_true", help="Report drift without writing")

    correct = subparsers.add_parser("correct-count", help="Record a physical count as a ledger adjustment")
    correct.add_argument("--subject-id", type=_positive_int, required=True)
    correct.add_argument("--actual-total", type=int, required=True)
    correct.add_argument("--notes", default=None)

    return parser


def _dispatch(args: argparse.Namespace, db: PsycopgTotalsDB, cfg: TotalsConfig) -> int:
    maintainer = _build_maintainer(db, cfg)

    if args.command == "rebuild":
        report = rebuild_totals(
            maintainer,
            SqlSubjectStore(db),
            subject_id=args.subject_id,
            limit=args.limit,
        )
        for outcome in report.outcomes:
            print(
                json.dumps(
                    {
                        "subject_id": outcome.subject_id,
                        "status": outcome.status.value,
                        "stored_count": outcome.stored_count,
                        "calculated_count": outcome.calculated_count,
                        "error": outcome.error,
                    },
                    sort_keys=True,
                )
            )
        print(json.dumps({"processed": report.processed}, sort_keys=True))
        return 0

    if args.command == "check":
        limit = cfg.consistency_check_limit if args.limit is None else args.limit
        summaries = maintainer.run_consistency_check(limit)
        print(
            json.dumps(
                {
                    "checked": len(summaries),
                    "corrected": sorted(sid for sid, s in summaries.items() if s is not None and s.mismatch),
                    "skipped": sorted(sid for sid, s in summaries.items() if s is None),
                },
                sort_keys=True,
            )
        )
        return 0

    if args.command == "daemon":
        ConsistencyCheckDaemon(maintainer=maintainer, config=cfg, limit=args.limit).daemon_loop(
            max_cycles=args.max_cycles
        )
        return 0

    if args.command == "apply-delta":
        maintainer.apply_delta(args.subject_id, args.delta)
        return 0

    if args.command == "recalculate":
        summary = maintainer.recalculate(args.subject_id, persist=not args.dry_run)
        if summary is None:
            print(json.dumps({"subject_id": args.subject_id, "skipped": True}, sort_keys=True))
            return 1
        print(
            json.dumps(
                {
                    "subject_id": args.subject_id,
                    "stored_count": summary.stored_count,
                    "stored_value": summary.stored_value,
                    "calculated_count": summary.calculated_count,
                    "calculated_value": summary.calculated_value,
                    "mismatch": summary.mismatch,
                },
                sort_keys=True,
            )
        )
        return 0

    if args.command == "correct-count":
        service = CountCorrectionService(maintainer=maintainer, subjects=SqlSubjectStore(db), ledger=SqlLedgerStore(db))
        correction = service.record_count_correction(args.subject_id, args.actual_total, args.notes)
        print(
            json.dumps(
                {
                    "subject_id": correction.subject_id,
                    "previous_count": correction.previous_count,
                    "new_total": correction.new_total,
                    "delta": correction.delta,
                    "reason": correction.reason,
                    "adjustment_id": correction.adjustment_id,
                    "changed": correction.changed,
                },
                sort_keys=True,
            )
        )
        return 0

    raise SystemExit(f"Unknown command: {args.command}")


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    cfg = load_totals_config()
    conn = _resolve_connection(args)
    db = PsycopgTotalsDB(conn)
    try:
        return _dispatch(args, db, cfg)
    finally:
        conn.close()


if __name__ == "__main__":
    raise SystemExit(main())
