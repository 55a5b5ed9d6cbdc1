import re
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from invoicing.core.errors import ConflictError, NotFoundError
from invoicing.models.customer import Customer


class CustomerRepository:
    """Customer database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["customers"]

    async def insert(self, customer: Customer) -> Customer:
        doc = customer.model_dump(mode="python", exclude={"id"})
        doc["_id"] = customer.id
        try:
            await self.collection.insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError("EMAIL_ALREADY_EXISTS", "A customer with this email already exists")
        return customer

    async def get(self, customer_id: str) -> Customer:
        doc = await self.collection.find_one({"_id": customer_id})
        if not doc:
            raise NotFoundError("CUSTOMER_NOT_FOUND", f"Customer {customer_id} not found")
        return self._from_document(doc)

    async def find_by_email(self, email: str) -> Optional[Customer]:
        """Includes soft-deleted customers; emails stay reserved."""
        doc = await self.collection.find_one({"email": email.strip().lower()})
        if doc:
            return self._from_document(doc)
        return None

    async def save(self, customer: Customer) -> Customer:
        doc = customer.model_dump(mode="python", exclude={"id"})
        try:
            result = await self.collection.find_one_and_update(
                {"_id": customer.id},
                {"$set": doc},
                return_document=True,
            )
        except DuplicateKeyError:
            raise ConflictError("EMAIL_ALREADY_EXISTS", "A customer with this email already exists")
        if not result:
            raise NotFoundError("CUSTOMER_NOT_FOUND", f"Customer {customer.id} not found")
        return self._from_document(result)

    async def list(self, search: Optional[str] = None, include_deleted: bool = False) -> List[Customer]:
        query: dict = {}
        if not include_deleted:
            query["deleted_at"] = None
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [{"name": pattern}, {"email": pattern}]

        cursor = self.collection.find(query).sort("name", 1)
        docs = await cursor.to_list(None)
        return [self._from_document(doc) for doc in docs]

    @staticmethod
    def _from_document(doc: dict) -> Customer:
        data = dict(doc)
        data["id"] = data.pop("_id")
        return Customer(**data)
