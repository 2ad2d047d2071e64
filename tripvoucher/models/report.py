from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from .base import WireModel
from .constants import ReportPeriod, VoucherStatus


class VoucherTotal(WireModel):
    id: str
    name: str
    status: VoucherStatus
    start_date: date
    end_date: date
    total_amount: Decimal
    expense_count: int


class ReportSummary(WireModel):
    period: ReportPeriod
    voucher_id: Optional[str] = None
    range_start: Optional[date] = None
    range_end: Optional[date] = None
    voucher_count: int
    total_spending: Decimal
    average_per_voucher: Decimal
    by_transport_type: Dict[str, Decimal]
    by_status: Dict[str, int]
    vouchers: List[VoucherTotal]
