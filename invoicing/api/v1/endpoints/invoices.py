from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from invoicing.api.v1.deps import get_invoice_handlers, get_invoice_queries
from invoicing.models.invoice import InvoiceStatus
from invoicing.schemas.invoice import (
    AddLineItemCommand,
    CreateInvoiceCommand,
    InvoiceDTO,
    LineItemCreatedResponse,
    UpdateInvoiceCommand,
    UpdateLineItemCommand,
)
from invoicing.services.invoice_commands import InvoiceCommandHandlers
from invoicing.services.invoice_queries import InvoiceQueries
from invoicing.services.projections import InvoiceView

router = APIRouter()


@router.post("/", response_model=InvoiceDTO, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    command: CreateInvoiceCommand,
    handlers: InvoiceCommandHandlers = Depends(get_invoice_handlers),
    queries: InvoiceQueries = Depends(get_invoice_queries),
):
    """Create a draft invoice with the next invoice number"""
    invoice_id = await handlers.create_invoice(command)
    return InvoiceDTO.from_invoice(await queries.get_invoice(invoice_id))


@router.get("/", response_model=List[InvoiceDTO])
async def list_invoices(
    status_filter: Optional[InvoiceStatus] = Query(None, alias="status"),
    customer_id: Optional[str] = None,
    search: Optional[str] = None,
    include_deleted: bool = False,
    queries: InvoiceQueries = Depends(get_invoice_queries),
):
    """List invoices, newest first"""
    invoices = await queries.list_invoices(
        status=status_filter, customer_id=customer_id, search=search, include_deleted=include_deleted
    )
    return [InvoiceDTO.from_invoice(invoice) for invoice in invoices]


@router.get("/{invoice_id}", response_model=InvoiceDTO)
async def get_invoice(invoice_id: str, queries: InvoiceQueries = Depends(get_invoice_queries)):
    return InvoiceDTO.from_invoice(await queries.get_invoice(invoice_id))


@router.get("/{invoice_id}/view", response_model=InvoiceView)
async def get_invoice_view(
    invoice_id: str,
    locale: Optional[str] = None,
    queries: InvoiceQueries = Depends(get_invoice_queries),
):
    """Display-ready projection: flags, badge and formatted amounts"""
    return await queries.view(invoice_id, locale)


@router.patch("/{invoice_id}", response_model=InvoiceDTO)
async def update_invoice(
    invoice_id: str,
    command: UpdateInvoiceCommand,
    handlers: InvoiceCommandHandlers = Depends(get_invoice_handlers),
    queries: InvoiceQueries = Depends(get_invoice_queries),
):
    """Update notes, terms or due date"""
    await handlers.update_invoice(invoice_id, command)
    return InvoiceDTO.from_invoice(await queries.get_invoice(invoice_id))


@router.delete("/{invoice_id}")
async def delete_invoice(
    invoice_id: str,
    handlers: InvoiceCommandHandlers = Depends(get_invoice_handlers),
):
    """Soft delete a draft invoice"""
    await handlers.delete_invoice(invoice_id)
    return {"message": "Invoice deleted successfully"}


@router.post(
    "/{invoice_id}/line-items",
    response_model=LineItemCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_line_item(
    invoice_id: str,
    command: AddLineItemCommand,
    handlers: InvoiceCommandHandlers = Depends(get_invoice_handlers),
    queries: InvoiceQueries = Depends(get_invoice_queries),
):
    line_item_id = await handlers.add_line_item(invoice_id, command)
    invoice = await queries.get_invoice(invoice_id)
    return LineItemCreatedResponse(id=line_item_id, invoice=InvoiceDTO.from_invoice(invoice))


@router.put("/{invoice_id}/line-items/{line_item_id}", response_model=InvoiceDTO)
async def update_line_item(
    invoice_id: str,
    line_item_id: str,
    command: UpdateLineItemCommand,
    handlers: InvoiceCommandHandlers = Depends(get_invoice_handlers),
    queries: InvoiceQueries = Depends(get_invoice_queries),
):
    await handlers.update_line_item(invoice_id, line_item_id, command)
    return InvoiceDTO.from_invoice(await queries.get_invoice(invoice_id))


@router.delete("/{invoice_id}/line-items/{line_item_id}", response_model=InvoiceDTO)
async def remove_line_item(
    invoice_id: str,
    line_item_id: str,
    handlers: InvoiceCommandHandlers = Depends(get_invoice_handlers),
    queries: InvoiceQueries = Depends(get_invoice_queries),
):
    await handlers.remove_line_item(invoice_id, line_item_id)
    return InvoiceDTO.from_invoice(await queries.get_invoice(invoice_id))


@router.post("/{invoice_id}/send", response_model=InvoiceDTO)
async def mark_invoice_as_sent(
    invoice_id: str,
    handlers: InvoiceCommandHandlers = Depends(get_invoice_handlers),
    queries: InvoiceQueries = Depends(get_invoice_queries),
):
    """Move a draft invoice to Sent"""
    await handlers.mark_as_sent(invoice_id)
    return InvoiceDTO.from_invoice(await queries.get_invoice(invoice_id))
