"""Tracked subject model definitions."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    Identity,
    Index,
    Integer,
    Numeric,
    PrimaryKeyConstraint,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from backend.db.base import Base

logger = logging.getLogger(__name__)


class Subject(Base):
    """Subject carrying a cached inventory count and value."""

    __tablename__ = "subject"
    __table_args__ = (
        PrimaryKeyConstraint("subject_id", name="pk_subject"),
        CheckConstraint("length(btrim(label)) > 0", name="ck_subject_label_not_blank"),
        CheckConstraint(
            "unit_price IS NULL OR unit_price >= 0",
            name="ck_subject_unit_price_non_negative",
        ),
        Index("idx_subject_tracks_inventory", "tracks_inventory", "subject_id"),
    )

    subject_id: Mapped[int] = mapped_column(
        BigInteger,
        Identity(),
        primary_key=True,
    )
    label: Mapped[str] = mapped_column(Text, nullable=False)
    tracks_inventory: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("TRUE"),
    )
    unit_price: Mapped[Decimal | None] = mapped_column(Numeric(18, 6))
    inventory_count: Mapped[int | None] = mapped_column(Integer)
    inventory_value: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    updated_at_utc: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
