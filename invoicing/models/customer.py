from __future__ import annotations

import re
from datetime import datetime
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from invoicing.core.clock import ensure_utc, utcnow
from invoicing.core.errors import InvalidStateError, ValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[0-9 ().-]{7,20}$")

# field -> max length
ADDRESS_LIMITS = {
    "street": 255,
    "city": 100,
    "state": 100,
    "postal_code": 20,
    "country": 100,
}


class Address(BaseModel):
    model_config = ConfigDict(frozen=True)

    street: str
    city: str
    state: str
    postal_code: str
    country: str

    @classmethod
    def create(cls, **fields: str) -> Address:
        cleaned = {}
        for name, limit in ADDRESS_LIMITS.items():
            value = (fields.get(name) or "").strip()
            if not value:
                raise ValidationError("INVALID_ADDRESS_MISSING_FIELDS", f"Address {name} is required")
            if len(value) > limit:
                raise ValidationError(
                    f"INVALID_ADDRESS_{name.upper()}_TOO_LONG",
                    f"Address {name} cannot exceed {limit} characters",
                )
            cleaned[name] = value
        return cls(**cleaned)


def _clean_name(name: str) -> str:
    if not name or not name.strip():
        raise ValidationError("NAME_REQUIRED", "Customer name is required")
    trimmed = name.strip()
    if len(trimmed) > 255:
        raise ValidationError("NAME_TOO_LONG", "Customer name cannot exceed 255 characters")
    return trimmed


def _clean_email(email: str) -> str:
    if not email or not email.strip():
        raise ValidationError("EMAIL_REQUIRED", "Email is required")
    trimmed = email.strip()
    if not EMAIL_PATTERN.match(trimmed):
        raise ValidationError("INVALID_EMAIL_FORMAT", f"Invalid email: {email}")
    if len(trimmed) > 255:
        raise ValidationError("EMAIL_TOO_LONG", "Email cannot exceed 255 characters")
    return trimmed.lower()


def _clean_phone(phone_number: str) -> str:
    trimmed = (phone_number or "").strip()
    if not PHONE_PATTERN.match(trimmed):
        raise ValidationError("INVALID_PHONE_NUMBER", f"Invalid phone number: {phone_number}")
    return trimmed


class Customer(BaseModel):
    """The party an invoice bills. Soft-deleted, never removed."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    email: str
    address: Address
    phone_number: str
    deleted_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("deleted_at", "created_at", "updated_at")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @classmethod
    def create(
        cls,
        name: str,
        email: str,
        address: dict,
        phone_number: str,
        now: datetime,
    ) -> Customer:
        return cls(
            name=_clean_name(name),
            email=_clean_email(email),
            address=Address.create(**address),
            phone_number=_clean_phone(phone_number),
            created_at=now,
            updated_at=now,
        )

    def update(self, name: str, email: str, address: dict, phone_number: str, now: datetime) -> Customer:
        if self.is_deleted:
            raise InvalidStateError("CANNOT_UPDATE_DELETED_CUSTOMER", "Customer is deleted")
        return self.model_copy(update={
            "name": _clean_name(name),
            "email": _clean_email(email),
            "address": Address.create(**address),
            "phone_number": _clean_phone(phone_number),
            "updated_at": now,
        })

    def soft_delete(self, now: datetime) -> Customer:
        if self.is_deleted:
            raise InvalidStateError("ALREADY_DELETED", "Customer is already deleted")
        return self.model_copy(update={"deleted_at": now, "updated_at": now})
