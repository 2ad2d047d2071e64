"""Domain-level expense validation and normalization.

Pydantic handles field shapes (enumerations, positive distance, non-empty
description). This module applies the rules that need the transport type, the
fuel rate or the parent voucher:

- the parent voucher must still be a draft;
- fuel with a distance gets ``amount = round(distance * fuel_rate, 2)``; any
  client amount is discarded;
- every other expense needs an explicit positive amount with at most two
  decimal places;
- distance only means something for fuel and is dropped elsewhere.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from tripvoucher.core.errors import ValidationError, VoucherImmutable
from tripvoucher.models.constants import DRAFT, MAX_AMOUNT_DIGITS, MONEY_PLACES
from tripvoucher.models.expense import ExpenseIn, ExpenseUpdateIn
from tripvoucher.services.money import fuel_amount, has_at_most_two_places, round2

MAX_AMOUNT = Decimal(10) ** (MAX_AMOUNT_DIGITS - MONEY_PLACES) - Decimal("0.01")


@dataclass(frozen=True)
class NormalizedExpense:
    description: str
    transport_type: str
    amount: Decimal
    distance: Optional[int]
    datetime: datetime
    notes: Optional[str]

    def as_fields(self) -> Dict[str, Any]:
        return asdict(self)


def ensure_draft(voucher: Mapping[str, Any]) -> None:
    if voucher["status"] != DRAFT:
        raise VoucherImmutable(f"voucher {voucher['id']} is {voucher['status']}; its expenses cannot change")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def validate_and_normalize(
    expense: ExpenseIn, voucher: Mapping[str, Any], fuel_rate: Decimal
) -> NormalizedExpense:
    """Return the record to persist for ``expense`` under ``voucher``.

    Raises ``VoucherImmutable`` when the voucher is submitted and
    ``ValidationError`` with per-field messages otherwise.
    """
    ensure_draft(voucher)

    errors: Dict[str, List[str]] = {}
    description = (expense.description or "").strip()
    if not description:
        errors.setdefault("description", []).append("description is required")

    distance: Optional[int] = None
    amount: Optional[Decimal] = None
    if expense.transport_type == "fuel" and expense.distance is not None:
        distance = expense.distance
        amount = fuel_amount(distance, fuel_rate)
    elif expense.amount is None:
        message = (
            "amount is required when no distance is given"
            if expense.transport_type == "fuel"
            else "amount is required"
        )
        errors.setdefault("amount", []).append(message)
    elif not expense.amount.is_finite() or expense.amount <= 0:
        errors.setdefault("amount", []).append("amount must be greater than 0")
    elif not has_at_most_two_places(expense.amount):
        errors.setdefault("amount", []).append("amount must have at most 2 decimal places")
    else:
        amount = round2(expense.amount)

    if amount is not None and amount > MAX_AMOUNT:
        errors.setdefault("amount", []).append(f"amount cannot exceed {MAX_AMOUNT}")

    if errors:
        raise ValidationError(errors)

    return NormalizedExpense(
        description=description,
        transport_type=expense.transport_type,
        amount=amount,  # type: ignore[arg-type]
        distance=distance,
        datetime=_as_utc(expense.datetime),
        notes=expense.notes,
    )


def parse_expense(data: Mapping[str, Any]) -> ExpenseIn:
    """Build an ``ExpenseIn`` from raw input, reporting problems per field."""
    try:
        return ExpenseIn.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(_field_messages(exc)) from exc


def merge_update(row: Mapping[str, Any], update: ExpenseUpdateIn) -> ExpenseIn:
    """Overlay the fields set on ``update`` onto a stored expense row."""
    merged: Dict[str, Any] = {
        "description": row["description"],
        "transport_type": row["transport_type"],
        "amount": row["amount"],
        "distance": row.get("distance"),
        "datetime": row["datetime"],
        "notes": row.get("notes"),
    }
    # A stored distance keeps deriving the fuel amount until the client
    # clears it with an explicit null.
    for name in update.model_fields_set:
        merged[name] = getattr(update, name)
    return parse_expense(merged)


def _field_messages(exc: PydanticValidationError) -> Dict[str, List[str]]:
    fields: Dict[str, List[str]] = {}
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or "body"
        fields.setdefault(loc, []).append(err.get("msg", "invalid"))
    return fields
