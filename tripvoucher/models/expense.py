import datetime as dt
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from .base import WireModel
from .constants import DESCRIPTION_MAX_LENGTH, TransportType


class ExpenseIn(WireModel):
    """Client payload for a single expense.

    ``amount`` is optional at this layer: a fuel expense with a distance gets
    its amount derived server side, so positivity and precision are checked by
    the expense rules once the transport type is known.
    """

    description: str = Field(..., min_length=1, max_length=DESCRIPTION_MAX_LENGTH)
    transport_type: TransportType
    amount: Optional[Decimal] = None
    distance: Optional[int] = Field(None, gt=0)
    datetime: dt.datetime
    notes: Optional[str] = None

    @field_validator("notes")
    @classmethod
    def _blank_notes_to_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None


class ExpenseUpdateIn(WireModel):
    """Partial update model. The parent voucher cannot be changed.

    All fields optional; at least one must be provided. ``distance`` and
    ``notes`` accept an explicit null to clear them.
    """

    description: Optional[str] = Field(None, min_length=1, max_length=DESCRIPTION_MAX_LENGTH)
    transport_type: Optional[TransportType] = None
    amount: Optional[Decimal] = None
    distance: Optional[int] = Field(None, gt=0)
    datetime: Optional[dt.datetime] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _at_least_one(self) -> "ExpenseUpdateIn":
        if not self.model_fields_set:
            raise ValueError("at least one field must be provided for update")
        return self


class ExpenseLineIn(WireModel):
    transport_type: TransportType
    amount: Optional[Decimal] = None
    distance: Optional[int] = Field(None, gt=0)


class ExpenseBulkIn(WireModel):
    """Several line items sharing one description, timestamp and notes."""

    description: str = Field(..., min_length=1, max_length=DESCRIPTION_MAX_LENGTH)
    datetime: dt.datetime
    notes: Optional[str] = None
    items: List[ExpenseLineIn] = Field(..., min_length=1, max_length=50)

    def to_expenses(self) -> List[ExpenseIn]:
        return [
            ExpenseIn(
                description=self.description,
                transport_type=item.transport_type,
                amount=item.amount,
                distance=item.distance,
                datetime=self.datetime,
                notes=self.notes,
            )
            for item in self.items
        ]


class ExpenseOut(WireModel):
    id: str
    voucher_id: str
    description: str
    transport_type: TransportType
    amount: Decimal
    distance: Optional[int] = None
    datetime: dt.datetime
    notes: Optional[str] = None
    created_at: dt.datetime
