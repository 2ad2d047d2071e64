from datetime import date
from decimal import Decimal

import pytest

from conftest import expense
from tripvoucher.core.errors import NotFound
from tripvoucher.models.voucher import VoucherCreate
from tripvoucher.services.reports import period_range, summarize, summary_for

TODAY = date(2026, 5, 14)


@pytest.mark.parametrize(
    "period, expected",
    [
        ("all", None),
        ("this_month", (date(2026, 5, 1), date(2026, 5, 31))),
        ("last_month", (date(2026, 4, 1), date(2026, 4, 30))),
        ("this_quarter", (date(2026, 4, 1), date(2026, 6, 30))),
        ("this_year", (date(2026, 1, 1), date(2026, 12, 31))),
        ("last_year", (date(2025, 1, 1), date(2025, 12, 31))),
    ],
)
def test_period_range(period, expected):
    assert period_range(period, TODAY) == expected


def test_last_month_in_january_wraps_year():
    assert period_range("last_month", date(2026, 1, 9)) == (date(2025, 12, 1), date(2025, 12, 31))


def test_unknown_period():
    with pytest.raises(ValueError):
        period_range("fortnight", TODAY)


@pytest.fixture
def two_trips(service, alice, draft_voucher):
    may = service.create_voucher(
        alice, VoucherCreate(name="Mumbai audit", start_date=date(2026, 5, 4), end_date=date(2026, 5, 6))
    )
    service.add_expense(alice, draft_voucher.id, expense("cab", amount="250.00"))
    service.add_expense(alice, draft_voucher.id, expense("fuel", distance=40))
    service.add_expense(alice, may.id, expense("flight", amount="4599.50"))
    service.add_expense(alice, may.id, expense("cab", amount="100.00"))
    service.submit_voucher(alice, may.id)
    return draft_voucher, may


def test_summary_over_all_vouchers(service, alice, two_trips):
    summary = summary_for(service, alice, period="all", today=TODAY)

    assert summary.voucher_count == 2
    assert summary.total_spending == Decimal("5089.50")
    assert summary.average_per_voucher == Decimal("2544.75")
    assert summary.by_transport_type == {
        "cab": Decimal("350.00"),
        "fuel": Decimal("140.00"),
        "flight": Decimal("4599.50"),
    }
    assert list(summary.by_transport_type) == ["cab", "fuel", "flight"]
    assert summary.by_status == {"draft": 1, "submitted": 1}


def test_summary_filters_by_start_date(service, alice, two_trips):
    summary = summary_for(service, alice, period="this_month", today=TODAY)

    assert summary.range_start == date(2026, 5, 1)
    assert [v.name for v in summary.vouchers] == ["Mumbai audit"]
    assert summary.total_spending == Decimal("4699.50")


def test_summary_for_single_voucher(service, alice, two_trips):
    march, _ = two_trips
    summary = summary_for(service, alice, voucher_id=march.id, today=TODAY)

    assert summary.voucher_count == 1
    assert summary.total_spending == Decimal("390.00")
    assert summary.range_start is None


def test_summary_for_foreign_voucher(service, bob, two_trips):
    march, _ = two_trips
    with pytest.raises(NotFound):
        summary_for(service, bob, voucher_id=march.id, today=TODAY)


def test_empty_summary():
    summary = summarize([], period="last_year", today=TODAY)

    assert summary.voucher_count == 0
    assert summary.total_spending == Decimal("0.00")
    assert summary.average_per_voucher == Decimal("0.00")
    assert summary.by_transport_type == {}
