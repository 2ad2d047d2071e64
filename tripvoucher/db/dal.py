"""Data Access Layer for users, vouchers and expenses.

Responsibilities
----------------
- Own the SQLite connection lifecycle and the transaction boundary
  (``Database.transaction``). Every other method takes the cursor of an open
  transaction so a service can group "write expense, recompute total" into
  one atomic unit.
- Translate rows to plain dicts; money stays a decimal string until the
  service layer converts it.
- Perform no authorization. Callers reach these methods only through the
  services, which run the ownership guard first.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime, timezone
from decimal import Decimal
import logging
from pathlib import Path
import sqlite3
from typing import Any, Dict, Iterable, Iterator, List, Optional
import uuid

from tripvoucher.core.errors import StoreFailure

logger = logging.getLogger("tripvoucher.db")

USER_FIELDS = {"email", "first_name", "last_name", "department"}
VOUCHER_DETAIL_FIELDS = {"name", "description", "start_date", "end_date"}
EXPENSE_FIELDS = {"description", "transport_type", "amount", "distance", "datetime", "notes"}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _to_db(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat(timespec="microseconds")
    if isinstance(value, date):
        return value.isoformat()
    return value


class Database:
    def __init__(self, db_path: Path, busy_timeout: float = 5.0):
        self.db_path = db_path
        self.busy_timeout = busy_timeout

    # ------------------------------------------------------------------
    # Connection helpers
    def _connect(self) -> sqlite3.Connection:
        # Autocommit mode; transactions are opened explicitly below.
        conn = sqlite3.connect(
            self.db_path, timeout=self.busy_timeout, isolation_level=None
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def transaction(self, write: bool = True) -> Iterator[sqlite3.Cursor]:
        """Yield a cursor inside one transaction.

        Write transactions start with ``BEGIN IMMEDIATE`` so the write lock is
        taken before any read; two writers on the same voucher are serialized
        and the second one recomputes from the first one's committed rows.
        Any exception rolls the whole unit back. ``sqlite3.Error`` surfaces as
        ``StoreFailure``.
        """
        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            logger.exception("failed to open database %s", self.db_path)
            raise StoreFailure("could not open database") from exc
        try:
            conn.execute("BEGIN IMMEDIATE" if write else "BEGIN")
            cur = conn.cursor()
            try:
                yield cur
            except BaseException:
                conn.rollback()
                raise
            conn.commit()
        except sqlite3.Error as exc:
            if conn.in_transaction:
                conn.rollback()
            logger.exception("store operation failed")
            raise StoreFailure(str(exc)) from exc
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Users
    def get_user(self, cur: sqlite3.Cursor, user_id: str) -> Optional[Dict[str, Any]]:
        cur.execute("SELECT * FROM users WHERE id = ?", (user_id,))
        row = cur.fetchone()
        return dict(row) if row else None

    def find_user_by_email(self, cur: sqlite3.Cursor, email: str) -> Optional[Dict[str, Any]]:
        cur.execute("SELECT * FROM users WHERE email = ?", (email,))
        row = cur.fetchone()
        return dict(row) if row else None

    def insert_user(
        self,
        cur: sqlite3.Cursor,
        user_id: str,
        email: str,
        department: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> None:
        now = utc_now_iso()
        cur.execute(
            """
            INSERT INTO users (id, email, first_name, last_name, department, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (user_id, email, first_name, last_name, department, now, now),
        )

    def update_user(self, cur: sqlite3.Cursor, user_id: str, fields: Dict[str, Any]) -> None:
        invalid = set(fields) - USER_FIELDS
        if invalid:
            raise ValueError(f"Invalid user fields: {sorted(invalid)}")
        if not fields:
            return
        assignments = ", ".join(f"{name} = ?" for name in fields)
        values = [_to_db(v) for v in fields.values()]
        values.extend([utc_now_iso(), user_id])
        cur.execute(f"UPDATE users SET {assignments}, updated_at = ? WHERE id = ?", values)

    # ------------------------------------------------------------------
    # Vouchers
    def insert_voucher(
        self,
        cur: sqlite3.Cursor,
        user_id: str,
        name: str,
        department: str,
        start_date: date,
        end_date: date,
        description: Optional[str] = None,
    ) -> str:
        voucher_id = str(uuid.uuid4())
        now = utc_now_iso()
        cur.execute(
            """
            INSERT INTO vouchers (
                id, user_id, name, department, description, start_date, end_date,
                status, total_amount, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, 'draft', '0.00', ?, ?)
            """,
            (
                voucher_id,
                user_id,
                name,
                department,
                description,
                start_date.isoformat(),
                end_date.isoformat(),
                now,
                now,
            ),
        )
        return voucher_id

    def find_voucher(self, cur: sqlite3.Cursor, voucher_id: str) -> Optional[Dict[str, Any]]:
        cur.execute("SELECT * FROM vouchers WHERE id = ?", (voucher_id,))
        row = cur.fetchone()
        return dict(row) if row else None

    def list_vouchers(self, cur: sqlite3.Cursor, user_id: str) -> List[Dict[str, Any]]:
        cur.execute(
            "SELECT * FROM vouchers WHERE user_id = ? ORDER BY created_at DESC, rowid DESC",
            (user_id,),
        )
        return [dict(r) for r in cur.fetchall()]

    def update_voucher(self, cur: sqlite3.Cursor, voucher_id: str, fields: Dict[str, Any]) -> None:
        invalid = set(fields) - VOUCHER_DETAIL_FIELDS
        if invalid:
            raise ValueError(f"Invalid voucher fields: {sorted(invalid)}")
        if not fields:
            return
        assignments = ", ".join(f"{name} = ?" for name in fields)
        values = [_to_db(v) for v in fields.values()]
        values.extend([utc_now_iso(), voucher_id])
        cur.execute(f"UPDATE vouchers SET {assignments}, updated_at = ? WHERE id = ?", values)

    def update_voucher_total(self, cur: sqlite3.Cursor, voucher_id: str, total: Decimal) -> None:
        cur.execute(
            "UPDATE vouchers SET total_amount = ?, updated_at = ? WHERE id = ?",
            (str(total), utc_now_iso(), voucher_id),
        )
        if cur.rowcount == 0:
            raise ValueError("voucher not found")

    def set_voucher_status(self, cur: sqlite3.Cursor, voucher_id: str, status: str) -> None:
        cur.execute(
            "UPDATE vouchers SET status = ?, updated_at = ? WHERE id = ?",
            (status, utc_now_iso(), voucher_id),
        )
        if cur.rowcount == 0:
            raise ValueError("voucher not found")

    def delete_voucher(self, cur: sqlite3.Cursor, voucher_id: str) -> None:
        # expenses go with it through ON DELETE CASCADE
        cur.execute("DELETE FROM vouchers WHERE id = ?", (voucher_id,))
        if cur.rowcount == 0:
            raise ValueError("voucher not found")

    # ------------------------------------------------------------------
    # Expenses
    def insert_expense(self, cur: sqlite3.Cursor, voucher_id: str, fields: Dict[str, Any]) -> str:
        invalid = set(fields) - EXPENSE_FIELDS
        if invalid:
            raise ValueError(f"Invalid expense fields: {sorted(invalid)}")
        expense_id = str(uuid.uuid4())
        cur.execute(
            """
            INSERT INTO expenses (
                id, voucher_id, description, transport_type, amount, distance,
                datetime, notes, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                expense_id,
                voucher_id,
                fields["description"],
                fields["transport_type"],
                _to_db(fields["amount"]),
                fields.get("distance"),
                _to_db(fields["datetime"]),
                fields.get("notes"),
                utc_now_iso(),
            ),
        )
        return expense_id

    def get_expense(self, cur: sqlite3.Cursor, expense_id: str) -> Optional[Dict[str, Any]]:
        cur.execute("SELECT * FROM expenses WHERE id = ?", (expense_id,))
        row = cur.fetchone()
        return dict(row) if row else None

    def list_expenses(self, cur: sqlite3.Cursor, voucher_id: str) -> List[Dict[str, Any]]:
        cur.execute(
            "SELECT * FROM expenses WHERE voucher_id = ? ORDER BY datetime DESC, created_at DESC",
            (voucher_id,),
        )
        return [dict(r) for r in cur.fetchall()]

    def list_expenses_for_vouchers(
        self, cur: sqlite3.Cursor, voucher_ids: Iterable[str]
    ) -> List[Dict[str, Any]]:
        ids = list(voucher_ids)
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        cur.execute(
            f"SELECT * FROM expenses WHERE voucher_id IN ({placeholders}) "
            "ORDER BY datetime DESC, created_at DESC",
            ids,
        )
        return [dict(r) for r in cur.fetchall()]

    def count_expenses(self, cur: sqlite3.Cursor, voucher_id: str) -> int:
        cur.execute("SELECT COUNT(*) FROM expenses WHERE voucher_id = ?", (voucher_id,))
        row = cur.fetchone()
        return int(row[0] if row and row[0] is not None else 0)

    def update_expense(self, cur: sqlite3.Cursor, expense_id: str, fields: Dict[str, Any]) -> None:
        invalid = set(fields) - EXPENSE_FIELDS
        if invalid:
            raise ValueError(f"Invalid expense fields: {sorted(invalid)}")
        if not fields:
            return
        assignments = ", ".join(f"{name} = ?" for name in fields)
        values = [_to_db(v) for v in fields.values()]
        values.append(expense_id)
        cur.execute(f"UPDATE expenses SET {assignments} WHERE id = ?", values)
        if cur.rowcount == 0:
            raise ValueError("expense not found")

    def delete_expense(self, cur: sqlite3.Cursor, expense_id: str) -> None:
        cur.execute("DELETE FROM expenses WHERE id = ?", (expense_id,))
        if cur.rowcount == 0:
            raise ValueError("expense not found")


__all__ = ["Database", "utc_now_iso"]
