"""Spending summaries across a user's vouchers.

Vouchers are selected by the period their ``start_date`` falls in, or by id.
Totals come from the stored voucher totals and the expense amounts of the
same read, summed with ``Decimal``. Presentation is left to the client.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from tripvoucher.models.constants import TRANSPORT_TYPES
from tripvoucher.models.report import ReportSummary, VoucherTotal
from tripvoucher.models.voucher import VoucherWithExpenses
from tripvoucher.services.identity import Caller
from tripvoucher.services.money import ZERO, round2, sum_money
from tripvoucher.services.vouchers import VoucherService


def _month_start(day: date) -> date:
    return day.replace(day=1)


def _month_end(day: date) -> date:
    next_month = (day.replace(day=28) + timedelta(days=4)).replace(day=1)
    return next_month - timedelta(days=1)


def period_range(period: str, today: date) -> Optional[Tuple[date, date]]:
    """Inclusive date range for ``period`` relative to ``today``; None for all."""
    if period == "all":
        return None
    if period == "this_month":
        return _month_start(today), _month_end(today)
    if period == "last_month":
        last = _month_start(today) - timedelta(days=1)
        return _month_start(last), _month_end(last)
    if period == "this_quarter":
        first_month = 3 * ((today.month - 1) // 3) + 1
        start = date(today.year, first_month, 1)
        return start, _month_end(date(today.year, first_month + 2, 1))
    if period == "this_year":
        return date(today.year, 1, 1), date(today.year, 12, 31)
    if period == "last_year":
        return date(today.year - 1, 1, 1), date(today.year - 1, 12, 31)
    raise ValueError(f"unsupported report period '{period}'")


def summarize(
    vouchers: List[VoucherWithExpenses],
    period: str = "all",
    today: Optional[date] = None,
    voucher_id: Optional[str] = None,
) -> ReportSummary:
    today = today or date.today()
    span = None if voucher_id else period_range(period, today)
    if voucher_id:
        selected = [v for v in vouchers if v.id == voucher_id]
    elif span is not None:
        selected = [v for v in vouchers if span[0] <= v.start_date <= span[1]]
    else:
        selected = list(vouchers)

    by_type: Dict[str, List[Decimal]] = defaultdict(list)
    for voucher in selected:
        for expense in voucher.expenses:
            by_type[expense.transport_type].append(expense.amount)
    # only types with actual spending, in enum order
    type_totals = {
        name: sum_money(by_type[name])
        for name in TRANSPORT_TYPES
        if by_type.get(name) and sum_money(by_type[name]) > 0
    }

    total = sum_money(v.total_amount for v in selected)
    average = round2(total / len(selected)) if selected else ZERO
    return ReportSummary(
        period=period,
        voucher_id=voucher_id,
        range_start=span[0] if span else None,
        range_end=span[1] if span else None,
        voucher_count=len(selected),
        total_spending=total,
        average_per_voucher=average,
        by_transport_type=type_totals,
        by_status=dict(Counter(v.status for v in selected)),
        vouchers=[
            VoucherTotal(
                id=v.id,
                name=v.name,
                status=v.status,
                start_date=v.start_date,
                end_date=v.end_date,
                total_amount=v.total_amount,
                expense_count=v.expense_count,
            )
            for v in selected
        ],
    )


def summary_for(
    service: VoucherService,
    caller: Caller,
    period: str = "all",
    voucher_id: Optional[str] = None,
    today: Optional[date] = None,
) -> ReportSummary:
    """Summarize the caller's vouchers; a foreign ``voucher_id`` is NotFound."""
    if voucher_id:
        vouchers = [service.get_voucher(caller, voucher_id)]
    else:
        vouchers = service.list_vouchers(caller)
    return summarize(vouchers, period=period, today=today, voucher_id=voucher_id)
