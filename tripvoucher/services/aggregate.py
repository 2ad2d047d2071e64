"""Voucher aggregate maintenance: derived total and status transitions.

Both functions run on the cursor of the caller's transaction. The voucher
total is only ever written here, and always from a fresh read of the
voucher's expenses, so the stored total matches the committed expense set as
soon as the transaction that changed it commits.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Dict, Mapping

from tripvoucher.core.errors import InvalidTransition
from tripvoucher.db.dal import Database
from tripvoucher.models.constants import ALLOWED_TRANSITIONS, VOUCHER_STATUSES
from tripvoucher.services.money import sum_money

logger = logging.getLogger("tripvoucher.aggregate")


def recompute_total(db: Database, cur: sqlite3.Cursor, voucher_id: str) -> Dict[str, Any]:
    """Sum the voucher's current expenses, store the total, return the voucher."""
    total = sum_money(row["amount"] for row in db.list_expenses(cur, voucher_id))
    db.update_voucher_total(cur, voucher_id, total)
    voucher = db.find_voucher(cur, voucher_id)
    if voucher is None:  # pragma: no cover - update above would have raised
        raise ValueError("voucher not found")
    logger.debug("voucher %s total recomputed: %s", voucher_id, total)
    return voucher


def transition(
    db: Database,
    cur: sqlite3.Cursor,
    voucher: Mapping[str, Any],
    target: str,
    allow_empty: bool,
) -> Dict[str, Any]:
    """Move ``voucher`` to ``target`` status.

    Only draft -> submitted exists. When ``allow_empty`` is false a voucher
    without expenses cannot be submitted.
    """
    current = voucher["status"]
    if target not in VOUCHER_STATUSES or (current, target) not in ALLOWED_TRANSITIONS:
        raise InvalidTransition(f"cannot move voucher from {current} to {target}")
    if not allow_empty and db.count_expenses(cur, voucher["id"]) == 0:
        raise InvalidTransition("cannot submit a voucher without expenses")
    db.set_voucher_status(cur, voucher["id"], target)
    # Refresh the total in the same unit so the submitted snapshot is exact
    updated = recompute_total(db, cur, voucher["id"])
    logger.info("voucher %s moved %s -> %s", voucher["id"], current, target)
    return updated
