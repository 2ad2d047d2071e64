"""Application service for vouchers and their expenses.

Every public method takes the acting ``Caller`` explicitly and runs as one
store transaction: ownership guard, expense rules, the write, the total
recompute, and the read that builds the response. A failure at any step
rolls the whole unit back.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
import logging
from typing import Any, Dict, List

from tripvoucher.core.errors import Forbidden, ValidationError
from tripvoucher.db.dal import Database
from tripvoucher.models.constants import SUBMITTED
from tripvoucher.models.expense import ExpenseBulkIn, ExpenseIn, ExpenseUpdateIn
from tripvoucher.models.voucher import (
    BulkExpenseOut,
    ExpenseMutationOut,
    VoucherCreate,
    VoucherUpdate,
    VoucherWithExpenses,
)
from tripvoucher.services import aggregate
from tripvoucher.services.composer import (
    compose_voucher_list,
    compose_voucher_view,
    row_to_expense_out,
)
from tripvoucher.services.expense_rules import (
    ensure_draft,
    merge_update,
    validate_and_normalize,
)
from tripvoucher.services.identity import Caller
from tripvoucher.services.ownership import authorize, authorize_expense

logger = logging.getLogger("tripvoucher.vouchers")


class VoucherService:
    def __init__(self, db: Database, fuel_rate: Decimal, allow_empty_submission: bool = False):
        self.db = db
        self.fuel_rate = fuel_rate
        self.allow_empty_submission = allow_empty_submission

    # ------------------------------------------------------------------
    # Vouchers
    def create_voucher(self, caller: Caller, payload: VoucherCreate) -> VoucherWithExpenses:
        if not caller.department:
            raise Forbidden("set a department on your profile before creating vouchers")
        with self.db.transaction() as cur:
            voucher_id = self.db.insert_voucher(
                cur,
                user_id=caller.user_id,
                name=payload.name,
                department=caller.department,
                start_date=payload.start_date,
                end_date=payload.end_date,
                description=payload.description,
            )
            voucher = self.db.find_voucher(cur, voucher_id)
        logger.info("user %s created voucher %s", caller.user_id, voucher_id)
        return compose_voucher_view(voucher, [])  # type: ignore[arg-type]

    def list_vouchers(self, caller: Caller) -> List[VoucherWithExpenses]:
        with self.db.transaction(write=False) as cur:
            vouchers = self.db.list_vouchers(cur, caller.user_id)
            expenses = self.db.list_expenses_for_vouchers(cur, (v["id"] for v in vouchers))
        return compose_voucher_list(vouchers, expenses)

    def get_voucher(self, caller: Caller, voucher_id: str) -> VoucherWithExpenses:
        with self.db.transaction(write=False) as cur:
            voucher = authorize(self.db, cur, caller.user_id, voucher_id)
            expenses = self.db.list_expenses(cur, voucher_id)
        return compose_voucher_view(voucher, expenses)

    def update_voucher(
        self, caller: Caller, voucher_id: str, payload: VoucherUpdate
    ) -> VoucherWithExpenses:
        fields: Dict[str, Any] = {
            name: getattr(payload, name) for name in payload.model_fields_set
        }
        for required in ("name", "start_date", "end_date"):
            if required in fields and fields[required] is None:
                raise ValidationError.single(required, f"{required} cannot be null")
        with self.db.transaction() as cur:
            voucher = authorize(self.db, cur, caller.user_id, voucher_id)
            ensure_draft(voucher)
            start = fields.get("start_date") or date.fromisoformat(voucher["start_date"])
            end = fields.get("end_date") or date.fromisoformat(voucher["end_date"])
            if end < start:
                raise ValidationError.single("end_date", "end_date cannot be before start_date")
            self.db.update_voucher(cur, voucher_id, fields)
            voucher = self.db.find_voucher(cur, voucher_id)
            expenses = self.db.list_expenses(cur, voucher_id)
        logger.info("user %s updated voucher %s: %s", caller.user_id, voucher_id, sorted(fields))
        return compose_voucher_view(voucher, expenses)  # type: ignore[arg-type]

    def delete_voucher(self, caller: Caller, voucher_id: str) -> None:
        with self.db.transaction() as cur:
            authorize(self.db, cur, caller.user_id, voucher_id)
            self.db.delete_voucher(cur, voucher_id)
        logger.info("user %s deleted voucher %s", caller.user_id, voucher_id)

    def submit_voucher(self, caller: Caller, voucher_id: str) -> VoucherWithExpenses:
        with self.db.transaction() as cur:
            voucher = authorize(self.db, cur, caller.user_id, voucher_id)
            voucher = aggregate.transition(
                self.db, cur, voucher, SUBMITTED, allow_empty=self.allow_empty_submission
            )
            expenses = self.db.list_expenses(cur, voucher_id)
        return compose_voucher_view(voucher, expenses)

    # ------------------------------------------------------------------
    # Expenses
    def add_expense(
        self, caller: Caller, voucher_id: str, payload: ExpenseIn
    ) -> ExpenseMutationOut:
        with self.db.transaction() as cur:
            voucher = authorize(self.db, cur, caller.user_id, voucher_id)
            record = validate_and_normalize(payload, voucher, self.fuel_rate)
            expense_id = self.db.insert_expense(cur, voucher_id, record.as_fields())
            voucher = aggregate.recompute_total(self.db, cur, voucher_id)
            expense = self.db.get_expense(cur, expense_id)
            expenses = self.db.list_expenses(cur, voucher_id)
        logger.info(
            "expense %s added to voucher %s (%s %s), total now %s",
            expense_id,
            voucher_id,
            record.transport_type,
            record.amount,
            voucher["total_amount"],
        )
        return ExpenseMutationOut(
            expense=row_to_expense_out(expense),  # type: ignore[arg-type]
            voucher=compose_voucher_view(voucher, expenses),
        )

    def add_expenses_bulk(
        self, caller: Caller, voucher_id: str, payload: ExpenseBulkIn
    ) -> BulkExpenseOut:
        """Insert every line item or none of them."""
        with self.db.transaction() as cur:
            voucher = authorize(self.db, cur, caller.user_id, voucher_id)
            ensure_draft(voucher)
            records = []
            line_errors: Dict[str, List[str]] = {}
            for index, item in enumerate(payload.to_expenses()):
                try:
                    records.append(validate_and_normalize(item, voucher, self.fuel_rate))
                except ValidationError as exc:
                    for name, messages in exc.fields.items():
                        line_errors.setdefault(f"items.{index}.{name}", []).extend(messages)
            if line_errors:
                raise ValidationError(line_errors)
            expense_ids = [
                self.db.insert_expense(cur, voucher_id, record.as_fields()) for record in records
            ]
            voucher = aggregate.recompute_total(self.db, cur, voucher_id)
            expenses = self.db.list_expenses(cur, voucher_id)
        logger.info(
            "%d expenses added to voucher %s, total now %s",
            len(expense_ids),
            voucher_id,
            voucher["total_amount"],
        )
        created = set(expense_ids)
        view = compose_voucher_view(voucher, expenses)
        return BulkExpenseOut(
            expenses=[e for e in view.expenses if e.id in created],
            voucher=view,
        )

    def update_expense(
        self, caller: Caller, expense_id: str, payload: ExpenseUpdateIn
    ) -> ExpenseMutationOut:
        with self.db.transaction() as cur:
            row, voucher = authorize_expense(self.db, cur, caller.user_id, expense_id)
            ensure_draft(voucher)
            merged = merge_update(row, payload)
            record = validate_and_normalize(merged, voucher, self.fuel_rate)
            self.db.update_expense(cur, expense_id, record.as_fields())
            voucher = aggregate.recompute_total(self.db, cur, voucher["id"])
            expense = self.db.get_expense(cur, expense_id)
            expenses = self.db.list_expenses(cur, voucher["id"])
        logger.info(
            "expense %s updated on voucher %s, total now %s",
            expense_id,
            voucher["id"],
            voucher["total_amount"],
        )
        return ExpenseMutationOut(
            expense=row_to_expense_out(expense),  # type: ignore[arg-type]
            voucher=compose_voucher_view(voucher, expenses),
        )

    def delete_expense(self, caller: Caller, expense_id: str) -> VoucherWithExpenses:
        with self.db.transaction() as cur:
            _, voucher = authorize_expense(self.db, cur, caller.user_id, expense_id)
            ensure_draft(voucher)
            self.db.delete_expense(cur, expense_id)
            voucher = aggregate.recompute_total(self.db, cur, voucher["id"])
            expenses = self.db.list_expenses(cur, voucher["id"])
        logger.info(
            "expense %s deleted from voucher %s, total now %s",
            expense_id,
            voucher["id"],
            voucher["total_amount"],
        )
        return compose_voucher_view(voucher, expenses)
