import logging
import re
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from invoicing.core.config import settings
from invoicing.core.errors import ConflictError, NotFoundError
from invoicing.models.invoice import INVOICE_NUMBER_PREFIX, Invoice, InvoiceStatus

logger = logging.getLogger(__name__)

COUNTER_ID = "invoice_number"


def _money_doc(money) -> dict:
    return {"minor_units": money.minor_units, "currency": money.currency}


def invoice_to_document(invoice: Invoice) -> dict:
    """Flatten an invoice for Mongo. BSON has no Decimal, so rates and quantities go as strings."""
    doc = invoice.model_dump(
        mode="python", exclude={"id", "status", "tax_rate", "line_items", "payments"}
    )
    doc["_id"] = invoice.id
    doc["status"] = invoice.status.value
    doc["tax_rate"] = str(invoice.tax_rate)
    doc["line_items"] = [
        {
            "id": item.id,
            "invoice_id": item.invoice_id,
            "description": item.description,
            "quantity": str(item.quantity),
            "unit_price": _money_doc(item.unit_price),
            "amount": _money_doc(item.amount),
            "created_at": item.created_at,
        }
        for item in invoice.line_items
    ]
    doc["payments"] = [
        {
            "id": payment.id,
            "invoice_id": payment.invoice_id,
            "amount": _money_doc(payment.amount),
            "payment_method": payment.payment_method.value,
            "payment_date": payment.payment_date,
            "reference": payment.reference,
            "notes": payment.notes,
            "created_at": payment.created_at,
        }
        for payment in invoice.payments
    ]
    return doc


def invoice_from_document(doc: dict) -> Invoice:
    data = dict(doc)
    data["id"] = data.pop("_id")
    return Invoice(**data)


class InvoiceRepository:
    """Invoice database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["invoices"]
        self.counters = db["counters"]

    async def next_invoice_number(self) -> str:
        """Allocate the next sequential number, e.g. INV-1000 on an empty database."""
        counter = await self.counters.find_one_and_update(
            {"_id": COUNTER_ID},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=True,
        )
        number = settings.INVOICE_NUMBER_START + counter["seq"] - 1
        return f"{INVOICE_NUMBER_PREFIX}{number}"

    async def insert(self, invoice: Invoice) -> Invoice:
        try:
            await self.collection.insert_one(invoice_to_document(invoice))
        except DuplicateKeyError:
            raise ConflictError(
                "DUPLICATE_INVOICE", f"Invoice {invoice.invoice_number} already exists"
            )
        return invoice

    async def load(self, invoice_id: str) -> Invoice:
        doc = await self.collection.find_one({"_id": invoice_id})
        if not doc:
            raise NotFoundError("INVOICE_NOT_FOUND", f"Invoice {invoice_id} not found")
        return invoice_from_document(doc)

    async def save(self, invoice: Invoice) -> Invoice:
        """
        Persist a new snapshot of an existing invoice.

        The write only lands if the stored version still equals the snapshot's
        version; the stored version is then bumped by one.
        """
        doc = invoice_to_document(invoice)
        doc.pop("_id")
        doc["version"] = invoice.version + 1

        result = await self.collection.find_one_and_update(
            {"_id": invoice.id, "version": invoice.version},  # Optimistic lock
            {"$set": doc},
            return_document=True,
        )
        if result:
            return invoice_from_document(result)

        if not await self.collection.count_documents({"_id": invoice.id}, limit=1):
            raise NotFoundError("INVOICE_NOT_FOUND", f"Invoice {invoice.id} not found")
        logger.warning("Version conflict saving invoice %s at version %s", invoice.id, invoice.version)
        raise ConflictError(
            "VERSION_CONFLICT", f"Invoice {invoice.invoice_number} was modified concurrently"
        )

    async def list(
        self,
        status: Optional[InvoiceStatus] = None,
        customer_id: Optional[str] = None,
        search: Optional[str] = None,
        include_deleted: bool = False,
    ) -> List[Invoice]:
        """List invoices, newest first."""
        query: dict = {}
        if not include_deleted:
            query["deleted_at"] = None
        if status is not None:
            query["status"] = InvoiceStatus(status).value
        if customer_id:
            query["customer_id"] = customer_id
        if search:
            query["invoice_number"] = {"$regex": re.escape(search), "$options": "i"}

        cursor = self.collection.find(query).sort("created_at", -1)
        docs = await cursor.to_list(None)
        return [invoice_from_document(doc) for doc in docs]
