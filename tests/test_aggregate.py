"""Voucher totals and the draft -> submitted lifecycle."""

from decimal import Decimal
import sqlite3
import threading

import pytest

from conftest import expense
from tripvoucher.core.errors import InvalidTransition, StoreFailure, VoucherImmutable
from tripvoucher.db.dal import Database
from tripvoucher.services import aggregate
from tripvoucher.services.vouchers import VoucherService


def _stored_total(db, voucher_id):
    with db.transaction(write=False) as cur:
        return Decimal(db.find_voucher(cur, voucher_id)["total_amount"])


def test_total_follows_add_and_delete(service, alice, draft_voucher):
    vid = draft_voucher.id
    first = service.add_expense(alice, vid, expense("cab", amount="250.00"))
    second = service.add_expense(alice, vid, expense("fuel", distance=40))

    assert first.voucher.total_amount == Decimal("250.00")
    assert second.voucher.total_amount == Decimal("390.00")
    assert second.voucher.expense_count == 2

    view = service.delete_expense(alice, first.expense.id)
    assert view.total_amount == Decimal("140.00")
    assert [e.id for e in view.expenses] == [second.expense.id]


def test_recompute_is_idempotent(db, service, alice, draft_voucher):
    service.add_expense(alice, draft_voucher.id, expense("bus", amount="0.10"))
    service.add_expense(alice, draft_voucher.id, expense("bus", amount="0.20"))

    with db.transaction() as cur:
        once = aggregate.recompute_total(db, cur, draft_voucher.id)["total_amount"]
        twice = aggregate.recompute_total(db, cur, draft_voucher.id)["total_amount"]

    assert once == twice == "0.30"


def test_no_drift_over_repeated_add_and_remove(db, service, alice, draft_voucher):
    vid = draft_voucher.id
    service.add_expense(alice, vid, expense("train", amount="99.99"))
    for _ in range(25):
        added = service.add_expense(alice, vid, expense("auto", amount="0.33"))
        service.delete_expense(alice, added.expense.id)

    assert _stored_total(db, vid) == Decimal("99.99")


def test_submit_freezes_voucher(service, alice, draft_voucher):
    added = service.add_expense(alice, draft_voucher.id, expense("cab", amount="120.00"))
    submitted = service.submit_voucher(alice, draft_voucher.id)

    assert submitted.status == "submitted"
    assert submitted.total_amount == Decimal("120.00")

    with pytest.raises(VoucherImmutable):
        service.add_expense(alice, draft_voucher.id, expense("cab", amount="5.00"))
    with pytest.raises(VoucherImmutable):
        service.delete_expense(alice, added.expense.id)
    with pytest.raises(InvalidTransition):
        service.submit_voucher(alice, draft_voucher.id)

    assert service.get_voucher(alice, draft_voucher.id).total_amount == Decimal("120.00")


def test_empty_voucher_cannot_be_submitted_by_default(service, alice, draft_voucher):
    with pytest.raises(InvalidTransition):
        service.submit_voucher(alice, draft_voucher.id)

    assert service.get_voucher(alice, draft_voucher.id).status == "draft"


def test_empty_submission_when_allowed(db, alice, draft_voucher):
    lenient = VoucherService(db, fuel_rate=Decimal("3.5"), allow_empty_submission=True)

    submitted = lenient.submit_voucher(alice, draft_voucher.id)

    assert submitted.status == "submitted"
    assert submitted.total_amount == Decimal("0.00")


def test_transition_rejects_unknown_target(db, draft_voucher):
    with db.transaction() as cur:
        voucher = db.find_voucher(cur, draft_voucher.id)
        with pytest.raises(InvalidTransition):
            aggregate.transition(db, cur, voucher, "archived", allow_empty=True)


def test_failed_recompute_rolls_back_expense(db, service, alice, draft_voucher, monkeypatch):
    service.add_expense(alice, draft_voucher.id, expense("cab", amount="10.00"))

    def _broken(self, cur, voucher_id, total):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(Database, "update_voucher_total", _broken)
    with pytest.raises(StoreFailure):
        service.add_expense(alice, draft_voucher.id, expense("cab", amount="20.00"))
    monkeypatch.undo()

    view = service.get_voucher(alice, draft_voucher.id)
    assert view.expense_count == 1
    assert view.total_amount == Decimal("10.00")


def test_concurrent_adds_produce_exact_total(settings, alice, draft_voucher):
    errors = []

    def _worker(n):
        # each thread gets its own connection through its own service
        svc = VoucherService(Database(settings.db_path, busy_timeout=30.0), fuel_rate=settings.fuel_rate)
        try:
            for _ in range(n):
                svc.add_expense(alice, draft_voucher.id, expense("bus", amount="1.25"))
        except Exception as exc:  # surfaced through the assertion below
            errors.append(exc)

    threads = [threading.Thread(target=_worker, args=(5,)) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    svc = VoucherService(Database(settings.db_path), fuel_rate=settings.fuel_rate)
    view = svc.get_voucher(alice, draft_voucher.id)
    assert view.expense_count == 20
    assert view.total_amount == Decimal("25.00")
