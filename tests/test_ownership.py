"""Tenant isolation: foreign vouchers and expenses look exactly like missing ones."""

from datetime import date
from decimal import Decimal

import pytest

from conftest import expense
from tripvoucher.core.errors import Forbidden, NotFound
from tripvoucher.models.expense import ExpenseUpdateIn
from tripvoucher.models.voucher import VoucherCreate, VoucherUpdate
from tripvoucher.services.identity import Caller
from tripvoucher.services.ownership import authorize, authorize_expense


def test_missing_and_foreign_voucher_are_indistinguishable(db, alice, bob, draft_voucher):
    with db.transaction(write=False) as cur:
        with pytest.raises(NotFound) as missing:
            authorize(db, cur, alice.user_id, "no-such-voucher")
        with pytest.raises(NotFound) as foreign:
            authorize(db, cur, bob.user_id, draft_voucher.id)

    assert str(missing.value) == str(foreign.value) == "voucher not found"


def test_owner_is_authorized(db, alice, draft_voucher):
    with db.transaction(write=False) as cur:
        voucher = authorize(db, cur, alice.user_id, draft_voucher.id)

    assert voucher["id"] == draft_voucher.id


def test_foreign_expense_is_not_found(db, service, alice, bob, draft_voucher):
    added = service.add_expense(alice, draft_voucher.id, expense("cab", amount="75.00"))

    with db.transaction(write=False) as cur:
        with pytest.raises(NotFound, match="expense not found"):
            authorize_expense(db, cur, bob.user_id, added.expense.id)
        with pytest.raises(NotFound, match="expense not found"):
            authorize_expense(db, cur, alice.user_id, "no-such-expense")


@pytest.mark.parametrize(
    "attempt",
    [
        lambda svc, who, vid, eid: svc.get_voucher(who, vid),
        lambda svc, who, vid, eid: svc.update_voucher(who, vid, VoucherUpdate(name="Hijacked")),
        lambda svc, who, vid, eid: svc.delete_voucher(who, vid),
        lambda svc, who, vid, eid: svc.submit_voucher(who, vid),
        lambda svc, who, vid, eid: svc.add_expense(who, vid, expense("cab", amount="1.00")),
        lambda svc, who, vid, eid: svc.update_expense(who, eid, ExpenseUpdateIn(amount=Decimal("1.00"))),
        lambda svc, who, vid, eid: svc.delete_expense(who, eid),
    ],
    ids=["get", "update", "delete", "submit", "add-expense", "update-expense", "delete-expense"],
)
def test_foreign_caller_changes_nothing(service, alice, bob, draft_voucher, attempt):
    added = service.add_expense(alice, draft_voucher.id, expense("train", amount="310.00"))

    with pytest.raises(NotFound):
        attempt(service, bob, draft_voucher.id, added.expense.id)

    view = service.get_voucher(alice, draft_voucher.id)
    assert view.name == "Pune client visit"
    assert view.status == "draft"
    assert view.total_amount == Decimal("310.00")
    assert [e.amount for e in view.expenses] == [Decimal("310.00")]


def test_list_only_returns_own_vouchers(service, alice, bob, draft_voucher):
    service.create_voucher(
        bob, VoucherCreate(name="Bob's trip", start_date=date(2026, 3, 5), end_date=date(2026, 3, 6))
    )

    assert [v.id for v in service.list_vouchers(alice)] == [draft_voucher.id]
    assert [v.name for v in service.list_vouchers(bob)] == ["Bob's trip"]


def test_profile_without_department_cannot_create(service):
    nobody = Caller(user_id="user-alice", email="alice@example.com", department="")

    with pytest.raises(Forbidden):
        service.create_voucher(
            nobody, VoucherCreate(name="Orphan", start_date=date(2026, 3, 1), end_date=date(2026, 3, 1))
        )
