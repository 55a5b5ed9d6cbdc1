import logging
from typing import List, Optional

from invoicing.core.clock import Clock, SystemClock
from invoicing.core.errors import NotFoundError, ValidationError
from invoicing.models.customer import Customer
from invoicing.schemas.customer import CustomerCreate, CustomerUpdate

logger = logging.getLogger(__name__)


class CustomerService:
    def __init__(self, customers, clock: Optional[Clock] = None):
        self.customers = customers
        self.clock = clock or SystemClock()

    async def create(self, customer_in: CustomerCreate) -> Customer:
        # Emails stay unique even across soft-deleted customers
        if await self.customers.find_by_email(customer_in.email):
            raise ValidationError("EMAIL_ALREADY_EXISTS", "A customer with this email already exists")

        customer = Customer.create(
            name=customer_in.name,
            email=customer_in.email,
            address=customer_in.address.model_dump(),
            phone_number=customer_in.phone_number,
            now=self.clock.now(),
        )
        await self.customers.insert(customer)
        logger.info("Customer %s created", customer.id)
        return customer

    async def get(self, customer_id: str) -> Customer:
        customer = await self.customers.get(customer_id)
        if customer.is_deleted:
            raise NotFoundError("CUSTOMER_NOT_FOUND", f"Customer {customer_id} not found")
        return customer

    async def list(self, search: Optional[str] = None) -> List[Customer]:
        return await self.customers.list(search=search)

    async def update(self, customer_id: str, customer_in: CustomerUpdate) -> Customer:
        customer = await self.customers.get(customer_id)

        existing = await self.customers.find_by_email(customer_in.email)
        if existing and existing.id != customer_id:
            raise ValidationError("EMAIL_ALREADY_EXISTS", "A customer with this email already exists")

        updated = customer.update(
            name=customer_in.name,
            email=customer_in.email,
            address=customer_in.address.model_dump(),
            phone_number=customer_in.phone_number,
            now=self.clock.now(),
        )
        saved = await self.customers.save(updated)
        logger.info("Customer %s updated", customer_id)
        return saved

    async def delete(self, customer_id: str) -> None:
        customer = await self.customers.get(customer_id)
        await self.customers.save(customer.soft_delete(self.clock.now()))
        logger.info("Customer %s deleted", customer_id)
