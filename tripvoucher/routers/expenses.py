from fastapi import APIRouter, Depends

from tripvoucher.models.expense import ExpenseUpdateIn
from tripvoucher.models.voucher import ExpenseMutationOut, VoucherWithExpenses
from tripvoucher.routers.deps import get_caller, get_voucher_service
from tripvoucher.services.identity import Caller
from tripvoucher.services.vouchers import VoucherService

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.patch(
    "/{expense_id}",
    response_model=ExpenseMutationOut,
    summary="Edit an expense (partial)",
)
def patch_expense(
    expense_id: str,
    payload: ExpenseUpdateIn,
    caller: Caller = Depends(get_caller),
    service: VoucherService = Depends(get_voucher_service),
):
    return service.update_expense(caller, expense_id, payload)


@router.delete(
    "/{expense_id}",
    response_model=VoucherWithExpenses,
    summary="Delete an expense and return the recomputed voucher",
)
def delete_expense(
    expense_id: str,
    caller: Caller = Depends(get_caller),
    service: VoucherService = Depends(get_voucher_service),
):
    return service.delete_expense(caller, expense_id)
