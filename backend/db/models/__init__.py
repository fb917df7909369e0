"""Model module imports for SQLAlchemy metadata registration."""

from __future__ import annotations

import logging

from backend.db.models.inventory_adjustment import InventoryAdjustment
from backend.db.models.runtime_state import NamedLockRow, RuntimeState
from backend.db.models.subject import Subject

logger = logging.getLogger(__name__)

__all__ = [
    "InventoryAdjustment",
    "NamedLockRow",
    "RuntimeState",
    "Subject",
]
