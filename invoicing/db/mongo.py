import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from invoicing.core.config import settings

logger = logging.getLogger(__name__)


class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL)
    mongodb.db = mongodb.client[settings.DATABASE_NAME]

    await create_indexes(mongodb.db)
    logger.info("Connected to MongoDB: %s", settings.DATABASE_NAME)

async def close_mongo_connection():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
    logger.info("Disconnected from MongoDB")

async def create_indexes(db: AsyncIOMotorDatabase):
    """Create database indexes."""
    # Invoice indexes
    await db["invoices"].create_index("invoice_number", unique=True)
    await db["invoices"].create_index("customer_id")
    await db["invoices"].create_index([("status", 1), ("deleted_at", 1)])

    # Customer email unique index
    await db["customers"].create_index("email", unique=True)