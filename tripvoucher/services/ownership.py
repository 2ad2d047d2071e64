"""Tenant isolation for vouchers and expenses.

A voucher that does not exist and a voucher owned by somebody else produce
the same ``NotFound``, so ids of other users' resources cannot be probed.
Expense lookups resolve the parent voucher first and apply the same rule.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Dict, Tuple

from tripvoucher.core.errors import NotFound
from tripvoucher.db.dal import Database

logger = logging.getLogger("tripvoucher.ownership")


def authorize(db: Database, cur: sqlite3.Cursor, user_id: str, voucher_id: str) -> Dict[str, Any]:
    voucher = db.find_voucher(cur, voucher_id)
    if voucher is None or voucher["user_id"] != user_id:
        if voucher is not None:
            logger.warning("user %s denied access to voucher %s", user_id, voucher_id)
        raise NotFound("voucher not found")
    return voucher


def authorize_expense(
    db: Database, cur: sqlite3.Cursor, user_id: str, expense_id: str
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Return ``(expense, parent_voucher)`` when ``user_id`` owns the parent."""
    expense = db.get_expense(cur, expense_id)
    if expense is None:
        raise NotFound("expense not found")
    try:
        voucher = authorize(db, cur, user_id, expense["voucher_id"])
    except NotFound:
        raise NotFound("expense not found") from None
    return expense, voucher
