"""
LineItem - a billable line on an invoice.

Immutable once built. ``amount`` is computed from quantity x unit price when
the item is created or updated and stored alongside; it is never recomputed
lazily.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from invoicing.core.clock import ensure_utc, utcnow
from invoicing.core.errors import ValidationError
from invoicing.models.money import Money, Numeric, to_decimal

MAX_DESCRIPTION_LENGTH = 500


def _validate_line(description: str, quantity: Numeric, unit_price: Money) -> tuple[str, Decimal]:
    if not description or not description.strip():
        raise ValidationError("DESCRIPTION_REQUIRED", "Description is required")

    trimmed = description.strip()
    if len(trimmed) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(
            "DESCRIPTION_TOO_LONG",
            f"Description cannot exceed {MAX_DESCRIPTION_LENGTH} characters",
        )

    decimal_quantity = to_decimal(quantity)
    if decimal_quantity <= 0:
        raise ValidationError("INVALID_QUANTITY", f"Quantity must be positive: {quantity}")

    if unit_price.is_negative():
        raise ValidationError(
            "INVALID_UNIT_PRICE", f"Unit price cannot be negative: {unit_price}"
        )

    return trimmed, decimal_quantity


class LineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    invoice_id: str
    description: str
    quantity: Decimal
    unit_price: Money
    amount: Money
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("created_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @classmethod
    def create(
        cls,
        invoice_id: str,
        description: str,
        quantity: Numeric,
        unit_price: Money,
        line_item_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> LineItem:
        """Validate inputs and build a line item with its amount rounded half-up."""
        trimmed, decimal_quantity = _validate_line(description, quantity, unit_price)
        return cls(
            id=line_item_id or str(uuid4()),
            invoice_id=invoice_id,
            description=trimmed,
            quantity=decimal_quantity,
            unit_price=unit_price,
            amount=unit_price.multiply(decimal_quantity),
            created_at=created_at or utcnow(),
        )

    def update(self, description: str, quantity: Numeric, unit_price: Money) -> LineItem:
        """Return a new line item with the same id and a recomputed amount."""
        return LineItem.create(
            invoice_id=self.invoice_id,
            description=description,
            quantity=quantity,
            unit_price=unit_price,
            line_item_id=self.id,
            created_at=self.created_at,
        )
