from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr

from invoicing.models.customer import Customer


class AddressSchema(BaseModel):
    street: str
    city: str
    state: str
    postal_code: str
    country: str


class CustomerCreate(BaseModel):
    name: str
    email: EmailStr
    address: AddressSchema
    phone_number: str


class CustomerUpdate(CustomerCreate):
    """Full replacement of the customer's editable fields."""
    pass


class CustomerResponse(BaseModel):
    id: str
    name: str
    email: str
    address: AddressSchema
    phone_number: str
    deleted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_customer(cls, customer: Customer) -> "CustomerResponse":
        return cls(
            id=customer.id,
            name=customer.name,
            email=customer.email,
            address=AddressSchema(**customer.address.model_dump()),
            phone_number=customer.phone_number,
            deleted_at=customer.deleted_at,
            created_at=customer.created_at,
            updated_at=customer.updated_at,
        )
