"""Runtime key/value state and advisory lock model definitions."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Index,
    PrimaryKeyConstraint,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from backend.db.base import Base

logger = logging.getLogger(__name__)


class RuntimeState(Base):
    """Small persisted key/value slots such as the consistency-check cursor."""

    __tablename__ = "runtime_state"
    __table_args__ = (
        PrimaryKeyConstraint("state_key", name="pk_runtime_state"),
        CheckConstraint("length(btrim(state_key)) > 0", name="ck_runtime_state_key_not_blank"),
    )

    state_key: Mapped[str] = mapped_column(Text, primary_key=True)
    state_value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at_utc: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )


class NamedLockRow(Base):
    """Advisory TTL-bound lock rows keyed by lock name."""

    __tablename__ = "named_lock"
    __table_args__ = (
        PrimaryKeyConstraint("lock_name", name="pk_named_lock"),
        CheckConstraint("length(btrim(lock_name)) > 0", name="ck_named_lock_name_not_blank"),
        Index("idx_named_lock_expires_at", "expires_at_utc"),
    )

    lock_name: Mapped[str] = mapped_column(Text, primary_key=True)
    lock_owner: Mapped[str] = mapped_column(Text, nullable=False)
    expires_at_utc: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
