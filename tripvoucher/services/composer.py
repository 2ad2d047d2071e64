"""Read models for vouchers: the voucher row, its expenses, and a count.

Pure functions over rows already fetched in the caller's transaction.
Expenses are ordered newest ``datetime`` first (ties: newest ``created_at``)
and ``expense_count`` is always the length of that list.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping

from tripvoucher.models.expense import ExpenseOut
from tripvoucher.models.voucher import VoucherWithExpenses
from tripvoucher.services.money import round2


def _parse_ts(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        value = raw
    else:
        value = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _parse_date(raw: Any) -> date:
    if isinstance(raw, date):
        return raw
    return date.fromisoformat(str(raw)[:10])


def row_to_expense_out(row: Mapping[str, Any]) -> ExpenseOut:
    return ExpenseOut(
        id=row["id"],
        voucher_id=row["voucher_id"],
        description=row["description"],
        transport_type=row["transport_type"],
        amount=round2(row["amount"]),
        distance=row.get("distance"),
        datetime=_parse_ts(row["datetime"]),
        notes=row.get("notes"),
        created_at=_parse_ts(row["created_at"]),
    )


def compose_voucher_view(
    voucher: Mapping[str, Any], expenses: Iterable[Mapping[str, Any]]
) -> VoucherWithExpenses:
    items = sorted(
        (row_to_expense_out(row) for row in expenses),
        key=lambda e: (e.datetime, e.created_at),
        reverse=True,
    )
    return VoucherWithExpenses(
        id=voucher["id"],
        user_id=voucher["user_id"],
        name=voucher["name"],
        department=voucher["department"],
        description=voucher.get("description"),
        start_date=_parse_date(voucher["start_date"]),
        end_date=_parse_date(voucher["end_date"]),
        status=voucher["status"],
        total_amount=round2(voucher["total_amount"]),
        created_at=_parse_ts(voucher["created_at"]),
        updated_at=_parse_ts(voucher["updated_at"]),
        expenses=items,
        expense_count=len(items),
    )


def compose_voucher_list(
    vouchers: Iterable[Mapping[str, Any]], expenses: Iterable[Mapping[str, Any]]
) -> List[VoucherWithExpenses]:
    """Group ``expenses`` by ``voucher_id`` and compose each voucher in order."""
    grouped: Dict[str, List[Mapping[str, Any]]] = defaultdict(list)
    for row in expenses:
        grouped[row["voucher_id"]].append(row)
    return [compose_voucher_view(v, grouped.get(v["id"], [])) for v in vouchers]
