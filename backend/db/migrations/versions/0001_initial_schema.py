"""Initial schema for cached inventory totals and the adjustment ledger."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from alembic import op

logger = logging.getLogger(__name__)

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


TABLE_DDL: tuple[str, ...] = (
    """
    CREATE TABLE subject (
        subject_id BIGINT GENERATED BY DEFAULT AS IDENTITY,
        label TEXT NOT NULL,
        tracks_inventory BOOLEAN NOT NULL DEFAULT TRUE,
        unit_price NUMERIC(18,6),
        inventory_count INTEGER,
        inventory_value NUMERIC(14,2),
        updated_at_utc TIMESTAMPTZ NOT NULL DEFAULT now(),
        CONSTRAINT pk_subject PRIMARY KEY (subject_id),
        CONSTRAINT ck_subject_label_not_blank CHECK (length(btrim(label)) > 0),
        CONSTRAINT ck_subject_unit_price_non_negative CHECK (unit_price IS NULL OR unit_price >= 0)
    );
    """,
    """
    CREATE TABLE inventory_adjustment (
        adjustment_id BIGINT GENERATED ALWAYS AS IDENTITY,
        subject_id BIGINT NOT NULL,
        quantity_delta INTEGER NOT NULL,
        change_reason TEXT NOT NULL DEFAULT 'other',
        change_memo TEXT,
        created_at_utc TIMESTAMPTZ NOT NULL DEFAULT now(),
        deleted BOOLEAN NOT NULL DEFAULT FALSE,
        CONSTRAINT pk_inventory_adjustment PRIMARY KEY (adjustment_id),
        CONSTRAINT fk_inventory_adjustment_subject FOREIGN KEY (subject_id)
            REFERENCES subject (subject_id) ON UPDATE RESTRICT ON DELETE RESTRICT,
        CONSTRAINT ck_inventory_adjustment_reason_not_blank CHECK (length(btrim(change_reason)) > 0)
    );
    """,
    """
    CREATE TABLE runtime_state (
        state_key TEXT NOT NULL,
        state_value TEXT NOT NULL,
        updated_at_utc TIMESTAMPTZ NOT NULL DEFAULT now(),
        CONSTRAINT pk_runtime_state PRIMARY KEY (state_key),
        CONSTRAINT ck_runtime_state_key_not_blank CHECK (length(btrim(state_key)) > 0)
    );
    """,
    """
    CREATE TABLE named_lock (
        lock_name TEXT NOT NULL,
        lock_owner TEXT NOT NULL,
        expires_at_utc TIMESTAMPTZ NOT NULL,
        CONSTRAINT pk_named_lock PRIMARY KEY (lock_name),
        CONSTRAINT ck_named_lock_name_not_blank CHECK (length(btrim(lock_name)) > 0)
    );
    """,
)

INDEX_DDL: tuple[str, ...] = (
    "CREATE INDEX idx_subject_tracks_inventory ON subject USING btree (tracks_inventory, subject_id);",
    "CREATE INDEX idx_inventory_adjustment_subject_live ON inventory_adjustment USING btree (subject_id) WHERE deleted = FALSE;",
    "CREATE INDEX idx_named_lock_expires_at ON named_lock USING btree (expires_at_utc);",
)

TOMBSTONE_ONLY_DDL: tuple[str, ...] = (
    """
    CREATE OR REPLACE FUNCTION fn_forbid_physical_delete()
    RETURNS TRIGGER
    LANGUAGE plpgsql
    AS $$
    BEGIN
        RAISE EXCEPTION 'physical delete on table % is not allowed; set deleted = TRUE instead', TG_TABLE_NAME;
    END;
    $$;
    """,
    """
    CREATE TRIGGER trg_inventory_adjustment_no_delete
    BEFORE DELETE ON inventory_adjustment
    FOR EACH ROW EXECUTE FUNCTION fn_forbid_physical_delete();
    """,
)


def _execute_all(statements: Sequence[str]) -> None:
    """Execute an ordered sequence of SQL statements."""

    for statement in statements:
        try:
            op.execute(statement)
        except Exception:
            logger.exception("Migration statement failed.")
            raise


def upgrade() -> None:
    """Apply the initial schema migration."""

    logger.info("Starting initial schema migration upgrade.")
    _execute_all(TABLE_DDL)
    _execute_all(INDEX_DDL)
    _execute_all(TOMBSTONE_ONLY_DDL)
    logger.info("Completed initial schema migration upgrade.")


def downgrade() -> None:
    """Revert the initial schema migration."""

    logger.info("Starting initial schema migration downgrade.")
    _execute_all(
        (
            "DROP TRIGGER IF EXISTS trg_inventory_adjustment_no_delete ON inventory_adjustment;",
            "DROP FUNCTION IF EXISTS fn_forbid_physical_delete();",
            "DROP TABLE IF EXISTS named_lock;",
            "DROP TABLE IF EXISTS runtime_state;",
            "DROP TABLE IF EXISTS inventory_adjustment;",
            "DROP TABLE IF EXISTS subject;",
        )
    )
    logger.info("Completed initial schema migration downgrade.")
