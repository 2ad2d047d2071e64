"""Domain constants and enumerations for validation."""

from typing import FrozenSet, Literal, Set, Tuple

TransportType = Literal[
    "bus", "train", "cab", "auto", "fuel", "flight", "parking", "food", "other"
]
TRANSPORT_TYPES: Tuple[str, ...] = (
    "bus",
    "train",
    "cab",
    "auto",
    "fuel",
    "flight",
    "parking",
    "food",
    "other",
)

VoucherStatus = Literal["draft", "submitted"]
DRAFT = "draft"
SUBMITTED = "submitted"
VOUCHER_STATUSES: Set[str] = {DRAFT, SUBMITTED}

# The only permitted status change; submitted is terminal.
ALLOWED_TRANSITIONS: FrozenSet[Tuple[str, str]] = frozenset({(DRAFT, SUBMITTED)})

DEPARTMENTS: Set[str] = {
    "Engineering",
    "Sales",
    "Marketing",
    "Finance",
    "HR",
    "Operations",
    "Support",
    "Other",
}

# varchar / numeric(10, 2) limits of the persisted shape
DESCRIPTION_MAX_LENGTH = 255
NAME_MAX_LENGTH = 255
MAX_AMOUNT_DIGITS = 10
MONEY_PLACES = 2

ReportPeriod = Literal[
    "all", "this_month", "last_month", "this_quarter", "this_year", "last_year"
]
