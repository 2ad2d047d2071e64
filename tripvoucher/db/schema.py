"""Database schema DDL definitions and initialization utilities.

Tables:
  - users: employee profiles keyed by the identity provider's user id
  - vouchers: trip containers owned by one user, with derived total_amount
  - expenses: itemized costs, cascade-deleted with their voucher
  - metadata: key/value store (schema version)

Money columns hold canonical decimal strings ("250.00") so totals are summed
with ``decimal.Decimal`` in the application and never pass through a float.
"""

from __future__ import annotations
import sqlite3
from typing import Sequence
from pathlib import Path

SCHEMA_VERSION = 1
SCHEMA_VERSION_KEY = "schema_version"
BASIC_UTC_NOW = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"

USERS_DDL = f"""
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    first_name TEXT,
    last_name TEXT,
    department TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

VOUCHERS_DDL = f"""
CREATE TABLE IF NOT EXISTS vouchers (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    department TEXT NOT NULL,
    description TEXT,
    start_date TEXT NOT NULL, -- ISO date (YYYY-MM-DD)
    end_date TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'draft' CHECK (status IN ('draft','submitted')),
    total_amount TEXT NOT NULL DEFAULT '0.00',
    created_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    CHECK (start_date <= end_date),
    FOREIGN KEY (user_id) REFERENCES users(id)
);
"""

EXPENSES_DDL = f"""
CREATE TABLE IF NOT EXISTS expenses (
    id TEXT PRIMARY KEY,
    voucher_id TEXT NOT NULL,
    description TEXT NOT NULL,
    transport_type TEXT NOT NULL CHECK (
        transport_type IN ('bus','train','cab','auto','fuel','flight','parking','food','other')
    ),
    amount TEXT NOT NULL,
    distance INTEGER,
    datetime TEXT NOT NULL, -- ISO timestamp (UTC) of the expense event
    notes TEXT,
    created_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    FOREIGN KEY (voucher_id) REFERENCES vouchers(id) ON DELETE CASCADE
);
"""

METADATA_DDL = f"""
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

VOUCHERS_USER_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_vouchers_user_created ON vouchers(user_id, created_at);"
)
EXPENSES_VOUCHER_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_expenses_voucher_datetime ON expenses(voucher_id, datetime);"
)

DDL_ORDER: Sequence[str] = (
    USERS_DDL,
    VOUCHERS_DDL,
    EXPENSES_DDL,
    METADATA_DDL,
    VOUCHERS_USER_INDEX_DDL,
    EXPENSES_VOUCHER_INDEX_DDL,
)


def init_db(path: Path) -> int:
    """Create all tables idempotently and return the recorded schema version.

    Parameters
    ----------
    path: Path to SQLite database file.
    """
    conn = sqlite3.connect(path)
    try:
        cur = conn.cursor()
        for ddl in DDL_ORDER:
            cur.execute(ddl)
        cur.execute(
            f"""
            INSERT INTO metadata (key, value)
            VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                updated_at = ({BASIC_UTC_NOW})
            """,
            (SCHEMA_VERSION_KEY, str(SCHEMA_VERSION)),
        )
        conn.commit()
        return SCHEMA_VERSION
    finally:
        conn.close()
