"""Travel voucher tracker: vouchers, itemized expenses and derived totals."""

__version__ = "0.1.0"
