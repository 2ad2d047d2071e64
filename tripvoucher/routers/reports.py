from typing import Optional

from fastapi import APIRouter, Depends, Query

from tripvoucher.models.constants import ReportPeriod
from tripvoucher.models.report import ReportSummary
from tripvoucher.routers.deps import get_caller, get_voucher_service
from tripvoucher.services.identity import Caller
from tripvoucher.services.reports import summary_for
from tripvoucher.services.vouchers import VoucherService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/summary", response_model=ReportSummary, summary="Spending summary")
def report_summary(
    period: ReportPeriod = Query("all", description="Match vouchers whose start date falls in this period"),
    voucher_id: Optional[str] = Query(
        None, alias="voucherId", description="Summarize a single voucher instead of a period"
    ),
    caller: Caller = Depends(get_caller),
    service: VoucherService = Depends(get_voucher_service),
):
    return summary_for(service, caller, period=period, voucher_id=voucher_id)
