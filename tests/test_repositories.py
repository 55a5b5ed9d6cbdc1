"""Tests for the Motor-backed repositories."""
from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import DuplicateKeyError

from invoicing.core.errors import ConflictError, NotFoundError
from invoicing.models.invoice import InvoiceStatus
from invoicing.repositories.customer_repo import CustomerRepository
from invoicing.repositories.invoice_repo import (
    InvoiceRepository,
    invoice_from_document,
    invoice_to_document,
)

from conftest import NOW, make_customer, make_sent_invoice, usd


def _paid_in_part():
    invoice = make_sent_invoice(lines=[("Consulting", "2.5", "40.00")])
    invoice, _ = invoice.record_payment(usd("10.00"), "Check", NOW, NOW)
    return invoice


class TestInvoiceDocuments:
    def test_document_is_bson_friendly(self):
        doc = invoice_to_document(_paid_in_part())

        assert doc["status"] == "Sent"
        assert doc["tax_rate"] == "0.10"
        assert doc["line_items"][0]["quantity"] == "2.5"
        assert doc["line_items"][0]["amount"] == {"minor_units": 10000, "currency": "USD"}
        assert doc["payments"][0]["payment_method"] == "Check"
        assert "id" not in doc

    def test_document_round_trip(self):
        invoice = _paid_in_part()
        assert invoice_from_document(invoice_to_document(invoice)) == invoice

    def test_naive_datetimes_from_mongo_become_utc(self):
        invoice = _paid_in_part()
        doc = invoice_to_document(invoice)
        doc["created_at"] = NOW.replace(tzinfo=None)

        assert invoice_from_document(doc).created_at == NOW


@pytest.mark.asyncio
class TestInvoiceRepository:
    async def test_next_invoice_number_starts_at_1000(self, mock_db):
        repo = InvoiceRepository(mock_db)
        mock_db["counters"].find_one_and_update = AsyncMock(return_value={"_id": "invoice_number", "seq": 1})

        assert await repo.next_invoice_number() == "INV-1000"

        mock_db["counters"].find_one_and_update.return_value = {"_id": "invoice_number", "seq": 42}
        assert await repo.next_invoice_number() == "INV-1041"

    async def test_load_missing(self, mock_db):
        repo = InvoiceRepository(mock_db)

        with pytest.raises(NotFoundError) as exc:
            await repo.load("missing")
        assert exc.value.code == "INVOICE_NOT_FOUND"

    async def test_load(self, mock_db):
        invoice = _paid_in_part()
        mock_db["invoices"].find_one = AsyncMock(return_value=invoice_to_document(invoice))

        loaded = await InvoiceRepository(mock_db).load(invoice.id)

        assert loaded == invoice
        mock_db["invoices"].find_one.assert_called_once_with({"_id": invoice.id})

    async def test_insert_duplicate_number(self, mock_db):
        mock_db["invoices"].insert_one = AsyncMock(side_effect=DuplicateKeyError("duplicate"))

        with pytest.raises(ConflictError):
            await InvoiceRepository(mock_db).insert(_paid_in_part())

    async def test_save_checks_and_bumps_version(self, mock_db):
        invoice = _paid_in_part()
        stored = invoice_to_document(invoice)
        stored["version"] = invoice.version + 1
        mock_db["invoices"].find_one_and_update = AsyncMock(return_value=stored)

        saved = await InvoiceRepository(mock_db).save(invoice)

        assert saved.version == invoice.version + 1
        query, update = mock_db["invoices"].find_one_and_update.call_args.args
        assert query == {"_id": invoice.id, "version": invoice.version}
        assert update["$set"]["version"] == invoice.version + 1
        assert "_id" not in update["$set"]

    async def test_save_version_conflict(self, mock_db):
        mock_db["invoices"].count_documents = AsyncMock(return_value=1)

        with pytest.raises(ConflictError) as exc:
            await InvoiceRepository(mock_db).save(_paid_in_part())
        assert exc.value.code == "VERSION_CONFLICT"

    async def test_save_missing_invoice(self, mock_db):
        with pytest.raises(NotFoundError):
            await InvoiceRepository(mock_db).save(_paid_in_part())

    async def test_list_filters(self, mock_db):
        invoice = _paid_in_part()
        cursor = MagicMock()
        cursor.sort.return_value.to_list = AsyncMock(return_value=[invoice_to_document(invoice)])
        mock_db["invoices"].find = MagicMock(return_value=cursor)

        result = await InvoiceRepository(mock_db).list(status=InvoiceStatus.SENT, search="INV-1")

        assert result == [invoice]
        query = mock_db["invoices"].find.call_args.args[0]
        assert query["deleted_at"] is None
        assert query["status"] == "Sent"
        assert query["invoice_number"]["$regex"] == "INV\\-1"
        cursor.sort.assert_called_once_with("created_at", -1)


@pytest.mark.asyncio
class TestCustomerRepository:
    async def test_insert_and_get(self, mock_db):
        customer = make_customer()
        repo = CustomerRepository(mock_db)

        await repo.insert(customer)
        doc = mock_db["customers"].insert_one.call_args.args[0]
        assert doc["_id"] == customer.id
        assert doc["address"]["city"] == "Springfield"

        mock_db["customers"].find_one = AsyncMock(return_value=doc)
        assert await repo.get(customer.id) == customer

    async def test_duplicate_email(self, mock_db):
        mock_db["customers"].insert_one = AsyncMock(side_effect=DuplicateKeyError("duplicate"))

        with pytest.raises(ConflictError) as exc:
            await CustomerRepository(mock_db).insert(make_customer())
        assert exc.value.code == "EMAIL_ALREADY_EXISTS"

    async def test_get_missing(self, mock_db):
        with pytest.raises(NotFoundError):
            await CustomerRepository(mock_db).get("missing")
