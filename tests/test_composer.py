from decimal import Decimal

from tripvoucher.services.composer import compose_voucher_list, compose_voucher_view

VOUCHER = {
    "id": "v-1",
    "user_id": "user-alice",
    "name": "Pune client visit",
    "department": "Engineering",
    "description": None,
    "start_date": "2026-03-01",
    "end_date": "2026-03-04",
    "status": "draft",
    "total_amount": "180.00",
    "created_at": "2026-03-01T08:00:00.000000+00:00",
    "updated_at": "2026-03-01T08:00:00.000000+00:00",
}


def _row(expense_id, when, created, amount="60.00", voucher_id="v-1"):
    return {
        "id": expense_id,
        "voucher_id": voucher_id,
        "description": "ride",
        "transport_type": "cab",
        "amount": amount,
        "distance": None,
        "datetime": when,
        "notes": None,
        "created_at": created,
    }


def test_expenses_newest_first_with_created_at_tiebreak():
    rows = [
        _row("e-old", "2026-03-01T10:00:00+00:00", "2026-03-05T10:00:00+00:00"),
        _row("e-tie-early", "2026-03-03T10:00:00+00:00", "2026-03-05T10:00:00+00:00"),
        _row("e-tie-late", "2026-03-03T10:00:00+00:00", "2026-03-05T11:00:00+00:00"),
    ]

    view = compose_voucher_view(VOUCHER, rows)

    assert [e.id for e in view.expenses] == ["e-tie-late", "e-tie-early", "e-old"]
    assert view.expense_count == 3
    assert view.total_amount == Decimal("180.00")


def test_empty_voucher_view():
    view = compose_voucher_view({**VOUCHER, "total_amount": "0.00"}, [])

    assert view.expenses == []
    assert view.expense_count == 0
    assert view.total_amount == Decimal("0.00")


def test_wire_names_are_camel_case():
    payload = compose_voucher_view(VOUCHER, [_row("e-1", "2026-03-02T09:00:00Z", "2026-03-02T09:01:00Z")])
    dumped = payload.model_dump(by_alias=True)

    assert {"totalAmount", "expenseCount", "startDate", "endDate", "userId"} <= set(dumped)
    assert {"transportType", "voucherId", "createdAt"} <= set(dumped["expenses"][0])


def test_list_groups_expenses_by_voucher():
    other = {**VOUCHER, "id": "v-2", "total_amount": "15.00"}
    rows = [
        _row("e-1", "2026-03-02T09:00:00+00:00", "2026-03-02T09:00:00+00:00"),
        _row("e-2", "2026-03-02T09:00:00+00:00", "2026-03-02T09:00:00+00:00", "15.00", "v-2"),
    ]

    views = compose_voucher_list([VOUCHER, other], rows)

    assert [v.id for v in views] == ["v-1", "v-2"]
    assert [e.id for e in views[0].expenses] == ["e-1"]
    assert [e.id for e in views[1].expenses] == ["e-2"]
    assert views[1].expense_count == 1
