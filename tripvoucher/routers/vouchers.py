from typing import List

from fastapi import APIRouter, Depends, Response, status

from tripvoucher.models.expense import ExpenseBulkIn, ExpenseIn
from tripvoucher.models.voucher import (
    BulkExpenseOut,
    ExpenseMutationOut,
    VoucherCreate,
    VoucherUpdate,
    VoucherWithExpenses,
)
from tripvoucher.routers.deps import get_caller, get_voucher_service
from tripvoucher.services.identity import Caller
from tripvoucher.services.vouchers import VoucherService

router = APIRouter(prefix="/vouchers", tags=["vouchers"])


# Routes -----------------------------------------------------------
@router.get("", response_model=List[VoucherWithExpenses], summary="List my vouchers")
def list_vouchers(
    caller: Caller = Depends(get_caller),
    service: VoucherService = Depends(get_voucher_service),
):
    return service.list_vouchers(caller)


@router.post(
    "",
    response_model=VoucherWithExpenses,
    status_code=status.HTTP_201_CREATED,
    summary="Create a draft voucher",
)
def create_voucher(
    payload: VoucherCreate,
    caller: Caller = Depends(get_caller),
    service: VoucherService = Depends(get_voucher_service),
):
    return service.create_voucher(caller, payload)


@router.get("/{voucher_id}", response_model=VoucherWithExpenses, summary="Get one voucher")
def get_voucher(
    voucher_id: str,
    caller: Caller = Depends(get_caller),
    service: VoucherService = Depends(get_voucher_service),
):
    return service.get_voucher(caller, voucher_id)


@router.patch(
    "/{voucher_id}",
    response_model=VoucherWithExpenses,
    summary="Edit a draft voucher's name, description or dates",
)
def update_voucher(
    voucher_id: str,
    payload: VoucherUpdate,
    caller: Caller = Depends(get_caller),
    service: VoucherService = Depends(get_voucher_service),
):
    return service.update_voucher(caller, voucher_id, payload)


@router.delete(
    "/{voucher_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a voucher and all of its expenses",
)
def delete_voucher(
    voucher_id: str,
    caller: Caller = Depends(get_caller),
    service: VoucherService = Depends(get_voucher_service),
):
    service.delete_voucher(caller, voucher_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{voucher_id}/submit",
    response_model=VoucherWithExpenses,
    summary="Submit a draft voucher (irreversible)",
)
def submit_voucher(
    voucher_id: str,
    caller: Caller = Depends(get_caller),
    service: VoucherService = Depends(get_voucher_service),
):
    return service.submit_voucher(caller, voucher_id)


@router.post(
    "/{voucher_id}/expenses",
    response_model=ExpenseMutationOut,
    status_code=status.HTTP_201_CREATED,
    summary="Add an expense to a draft voucher",
)
def add_expense(
    voucher_id: str,
    payload: ExpenseIn,
    caller: Caller = Depends(get_caller),
    service: VoucherService = Depends(get_voucher_service),
):
    return service.add_expense(caller, voucher_id, payload)


@router.post(
    "/{voucher_id}/expenses/bulk",
    response_model=BulkExpenseOut,
    status_code=status.HTTP_201_CREATED,
    summary="Add several expense lines at once (all or nothing)",
)
def add_expenses_bulk(
    voucher_id: str,
    payload: ExpenseBulkIn,
    caller: Caller = Depends(get_caller),
    service: VoucherService = Depends(get_voucher_service),
):
    return service.add_expenses_bulk(caller, voucher_id, payload)
