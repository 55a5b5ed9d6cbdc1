from typing import List, Optional

from fastapi import APIRouter, Depends, status

from invoicing.api.v1.deps import get_invoice_handlers, get_invoice_queries
from invoicing.schemas.payment import PaymentDTO, PaymentRecordedResponse, RecordPaymentCommand
from invoicing.services.invoice_commands import InvoiceCommandHandlers
from invoicing.services.invoice_queries import InvoiceQueries

router = APIRouter()


@router.post("/", response_model=PaymentRecordedResponse, status_code=status.HTTP_201_CREATED)
async def record_payment(
    command: RecordPaymentCommand,
    handlers: InvoiceCommandHandlers = Depends(get_invoice_handlers),
    queries: InvoiceQueries = Depends(get_invoice_queries),
):
    """Apply a payment against an invoice's balance"""
    payment_id = await handlers.record_payment(command)
    invoice = await queries.get_invoice(command.invoice_id)
    return PaymentRecordedResponse(
        id=payment_id,
        invoice_id=invoice.id,
        invoice_status=invoice.status.value,
        balance=invoice.balance.to_decimal(),
    )


@router.get("/", response_model=List[PaymentDTO])
async def list_payments(
    invoice_id: Optional[str] = None,
    queries: InvoiceQueries = Depends(get_invoice_queries),
):
    payments = await queries.list_payments(invoice_id)
    return [PaymentDTO.from_payment(payment) for payment in payments]


@router.get("/{invoice_id}/{payment_id}", response_model=PaymentDTO)
async def get_payment(
    invoice_id: str,
    payment_id: str,
    queries: InvoiceQueries = Depends(get_invoice_queries),
):
    return PaymentDTO.from_payment(await queries.get_payment(invoice_id, payment_id))
