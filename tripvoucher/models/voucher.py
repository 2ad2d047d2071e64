from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from .base import WireModel
from .constants import NAME_MAX_LENGTH, VoucherStatus
from .expense import ExpenseOut


class VoucherCreate(WireModel):
    """Voucher creation payload.

    Department is not accepted from the client; it is copied from the
    owner's profile when the voucher is created.
    """

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    description: Optional[str] = None
    start_date: date
    end_date: date

    @field_validator("description")
    @classmethod
    def _blank_description_to_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    @model_validator(mode="after")
    def _end_not_before_start(self) -> "VoucherCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class VoucherUpdate(WireModel):
    name: Optional[str] = Field(None, min_length=1, max_length=NAME_MAX_LENGTH)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def _at_least_one(self) -> "VoucherUpdate":
        if not self.model_fields_set:
            raise ValueError("at least one field must be provided")
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class VoucherOut(WireModel):
    id: str
    user_id: str
    name: str
    department: str
    description: Optional[str] = None
    start_date: date
    end_date: date
    status: VoucherStatus
    total_amount: Decimal
    created_at: datetime
    updated_at: datetime


class VoucherWithExpenses(VoucherOut):
    expenses: List[ExpenseOut]
    expense_count: int


class ExpenseMutationOut(WireModel):
    """Response for expense writes: the row plus the recomputed voucher."""

    expense: ExpenseOut
    voucher: VoucherWithExpenses


class BulkExpenseOut(WireModel):
    expenses: List[ExpenseOut]
    voucher: VoucherWithExpenses
