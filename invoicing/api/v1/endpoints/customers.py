from typing import List, Optional

from fastapi import APIRouter, Depends, status

from invoicing.api.v1.deps import get_customer_service
from invoicing.schemas.customer import CustomerCreate, CustomerResponse, CustomerUpdate
from invoicing.services.customer_service import CustomerService

router = APIRouter()


@router.post("/", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    customer_in: CustomerCreate,
    service: CustomerService = Depends(get_customer_service),
):
    return CustomerResponse.from_customer(await service.create(customer_in))


@router.get("/", response_model=List[CustomerResponse])
async def list_customers(
    search: Optional[str] = None,
    service: CustomerService = Depends(get_customer_service),
):
    """List customers, optionally filtered by name or email"""
    customers = await service.list(search)
    return [CustomerResponse.from_customer(customer) for customer in customers]


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(customer_id: str, service: CustomerService = Depends(get_customer_service)):
    return CustomerResponse.from_customer(await service.get(customer_id))


@router.put("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: str,
    customer_in: CustomerUpdate,
    service: CustomerService = Depends(get_customer_service),
):
    return CustomerResponse.from_customer(await service.update(customer_id, customer_in))


@router.delete("/{customer_id}")
async def delete_customer(customer_id: str, service: CustomerService = Depends(get_customer_service)):
    await service.delete(customer_id)
    return {"message": "Customer deleted successfully"}
