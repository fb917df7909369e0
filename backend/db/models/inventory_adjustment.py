"""Append-only inventory adjustment ledger model definitions."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKeyConstraint,
    Identity,
    Index,
    Integer,
    PrimaryKeyConstraint,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from backend.db.base import Base

logger = logging.getLogger(__name__)


class InventoryAdjustment(Base):
    """Signed quantity change recorded against a subject; soft-deleted only."""

    __tablename__ = "inventory_adjustment"
    __table_args__ = (
        PrimaryKeyConstraint("adjustment_id", name="pk_inventory_adjustment"),
        ForeignKeyConstraint(
            ["subject_id"],
            ["subject.subject_id"],
            name="fk_inventory_adjustment_subject",
            onupdate="RESTRICT",
            ondelete="RESTRICT",
        ),
        CheckConstraint(
            "length(btrim(change_reason)) > 0",
            name="ck_inventory_adjustment_reason_not_blank",
        ),
        Index(
            "idx_inventory_adjustment_subject_live",
            "subject_id",
            postgresql_where=text("deleted = FALSE"),
        ),
    )

    adjustment_id: Mapped[int] = mapped_column(
        BigInteger,
        Identity(always=True),
        primary_key=True,
    )
    subject_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    quantity_delta: Mapped[int] = mapped_column(Integer, nullable=False)
    change_reason: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        server_default=text("'other'"),
    )
    change_memo: Mapped[str | None] = mapped_column(Text)
    created_at_utc: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    deleted: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("FALSE"),
    )
