"""Pydantic models for the voucher tracker wire format."""

from .constants import (
    DEPARTMENTS,
    TRANSPORT_TYPES,
    VOUCHER_STATUSES,
)  # re-export
from .expense import ExpenseBulkIn, ExpenseIn, ExpenseOut, ExpenseUpdateIn
from .report import ReportSummary
from .user import ProfileOut, ProfileUpdate
from .voucher import (
    BulkExpenseOut,
    ExpenseMutationOut,
    VoucherCreate,
    VoucherOut,
    VoucherUpdate,
    VoucherWithExpenses,
)

__all__ = [
    "DEPARTMENTS",
    "TRANSPORT_TYPES",
    "VOUCHER_STATUSES",
    "ExpenseBulkIn",
    "ExpenseIn",
    "ExpenseOut",
    "ExpenseUpdateIn",
    "ReportSummary",
    "ProfileOut",
    "ProfileUpdate",
    "BulkExpenseOut",
    "ExpenseMutationOut",
    "VoucherCreate",
    "VoucherOut",
    "VoucherUpdate",
    "VoucherWithExpenses",
]
