from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, ReturnDocument
from typing import AsyncGenerator, Optional

from storefront.core.config import settings
from storefront.core.logging_config import logger

# Collection names
USERS = "users"
PRODUCTS = "products"
CATEGORIES = "categories"
CART = "cart"
COUNTERS = "counters"

# Collections that get sequential integer ids from the counters collection
SEQUENCED_COLLECTIONS = (USERS, PRODUCTS, CATEGORIES)

# Projection that keeps Mongo's _id inside the service layer
NO_ID = {"_id": 0}

# Lazy client initialization - create on first use to avoid import-time issues
_client: Optional[AsyncIOMotorClient] = None


def get_client() -> AsyncIOMotorClient:
    """
    Get or create the Mongo client (lazy initialization).

    Environment variables:
    - MONGODB_URL: connection string
    - MONGODB_MAX_POOL_SIZE: maximum connections in the pool (default: 50)
    - MONGODB_TIMEOUT_MS: server selection timeout (default: 5000)
    """
    global _client
    if _client is None:
        _client = AsyncIOMotorClient(
            settings.MONGODB_URL,
            maxPoolSize=settings.MONGODB_MAX_POOL_SIZE,
            serverSelectionTimeoutMS=settings.MONGODB_TIMEOUT_MS,
        )
    return _client


def get_database() -> AsyncIOMotorDatabase:
    """Get the application database"""
    return get_client()[settings.MONGODB_DB_NAME]


# Dependency to get the database handle
async def get_db() -> AsyncGenerator[AsyncIOMotorDatabase, None]:
    yield get_database()


async def ping(db: Optional[AsyncIOMotorDatabase] = None) -> bool:
    """True when the database answers a ping"""
    db = db if db is not None else get_database()
    try:
        await db.command("ping")
        return True
    except Exception as e:
        logger.warning(f"[Database] Ping failed: {e}")
        return False


async def next_sequence(db: AsyncIOMotorDatabase, name: str) -> int:
    """Atomically allocate the next integer id for a collection"""
    counter = await db[COUNTERS].find_one_and_update(
        {"_id": name},
        {"$inc": {"value": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return int(counter["value"])


async def sync_sequence(db: AsyncIOMotorDatabase, name: str) -> int:
    """
    Align a counter with the highest id already stored in the collection.
    Never moves a counter backwards.
    """
    docs = await db[name].find({}, {"id": 1, "_id": 0}, sort=[("id", -1)], limit=1).to_list(None)
    highest = int(docs[0]["id"]) if docs and docs[0].get("id") is not None else 0

    counter = await db[COUNTERS].find_one({"_id": name})
    current = int(counter["value"]) if counter else 0

    if highest > current:
        await db[COUNTERS].update_one({"_id": name}, {"$set": {"value": highest}}, upsert=True)
        return highest
    if counter is None:
        await db[COUNTERS].update_one({"_id": name}, {"$set": {"value": current}}, upsert=True)
    return current


async def ensure_indexes(db: Optional[AsyncIOMotorDatabase] = None) -> None:
    """Create the indexes the application relies on"""
    db = db if db is not None else get_database()

    await db[USERS].create_index([("email", ASCENDING)], unique=True)
    await db[USERS].create_index([("id", ASCENDING)], unique=True)
    await db[PRODUCTS].create_index([("id", ASCENDING)], unique=True)
    await db[PRODUCTS].create_index([("category", ASCENDING)])
    await db[CATEGORIES].create_index([("id", ASCENDING)], unique=True)
    await db[CART].create_index([("userId", ASCENDING), ("productId", ASCENDING)], unique=True)

    logger.info("[Database] Indexes ensured")


async def init_db() -> None:
    """Initialize database: indexes and sequence counters"""
    db = get_database()
    await ensure_indexes(db)
    for name in SEQUENCED_COLLECTIONS:
        await sync_sequence(db, name)


async def close_db():
    """Close database connection"""
    global _client
    if _client is not None:
        _client.close()
        _client = None
