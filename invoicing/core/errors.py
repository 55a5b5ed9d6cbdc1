"""
Domain error taxonomy.

Every failed command raises one of these. Callers branch on ``kind`` (or the
concrete class), never on the message text. ``code`` is a stable machine
readable reason such as ``MAX_LINE_ITEMS_EXCEEDED``.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    INVALID_STATE = "invalid_state"
    CAPACITY = "capacity"
    NOT_FOUND = "not_found"
    OVERPAYMENT = "overpayment"
    CURRENCY_MISMATCH = "currency_mismatch"
    CONFLICT = "conflict"


class DomainError(Exception):
    """Base class for all invoicing domain errors."""

    kind: ErrorKind

    def __init__(self, code: str, message: Optional[str] = None):
        self.code = code
        self.message = message or code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"code": self.code, "kind": self.kind.value, "message": self.message}


class ValidationError(DomainError):
    """Malformed input: empty description, non-positive amount, bad dates."""
    kind = ErrorKind.VALIDATION


class InvalidStateError(DomainError):
    """Command is not legal for the invoice's current status."""
    kind = ErrorKind.INVALID_STATE


class CapacityError(DomainError):
    """Invoice already holds the maximum number of line items."""
    kind = ErrorKind.CAPACITY


class NotFoundError(DomainError):
    """Referenced invoice, line item, payment or customer does not exist."""
    kind = ErrorKind.NOT_FOUND


class OverpaymentError(DomainError):
    """Payment exceeds the invoice's current balance."""
    kind = ErrorKind.OVERPAYMENT


class CurrencyMismatchError(DomainError):
    """Arithmetic attempted across differing currencies."""
    kind = ErrorKind.CURRENCY_MISMATCH


class ConflictError(DomainError):
    """Concurrent write detected by the repository's version check."""
    kind = ErrorKind.CONFLICT
