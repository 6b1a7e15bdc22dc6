"""
Database Seed Data Module

Default categories and a small demo catalog. Seeding only touches empty
collections, so it is safe to run repeatedly.
Run with: python scripts/init_db.py --seed
"""
from datetime import datetime, timezone
from typing import Dict, List

from motor.motor_asyncio import AsyncIOMotorDatabase

from storefront.core.database import CATEGORIES, PRODUCTS, next_sequence
from storefront.core.logging_config import logger
from storefront.services.product_service import normalize_gallery


# ==================== Sample Data Constants ====================

DEFAULT_CATEGORIES: List[Dict[str, str]] = [
    {"name": "Electronics", "description": "Electronic devices and gadgets"},
    {"name": "Home", "description": "Home and kitchen appliances"},
    {"name": "Fashion", "description": "Clothing, shoes and accessories"},
    {"name": "Fitness", "description": "Sports and fitness equipment"},
    {"name": "Beauty", "description": "Beauty and personal care products"},
]

DEMO_PRODUCTS: List[Dict] = [
    {"name": "Wireless Headphones", "price": 99.99, "rating": 4.5, "reviews": 128,
     "category": "Electronics", "inStock": True,
     "description": "Over-ear headphones with active noise cancellation"},
    {"name": "Smart Watch", "price": 199.99, "rating": 4.8, "reviews": 89,
     "category": "Electronics", "inStock": True,
     "description": "Fitness tracking, notifications and a week of battery"},
    {"name": "Coffee Maker", "price": 79.99, "rating": 4.3, "reviews": 156,
     "category": "Home", "inStock": True,
     "description": "Programmable drip coffee maker, 12 cups"},
    {"name": "Yoga Mat", "price": 29.99, "rating": 4.6, "reviews": 203,
     "category": "Fitness", "inStock": True,
     "description": "Non-slip mat with carrying strap"},
    {"name": "Bluetooth Speaker", "price": 49.99, "rating": 4.4, "reviews": 94,
     "category": "Electronics", "inStock": False,
     "description": "Portable waterproof speaker"},
    {"name": "Running Shoes", "price": 89.99, "rating": 4.7, "reviews": 167,
     "category": "Fashion", "inStock": True,
     "description": "Lightweight cushioned running shoes"},
    {"name": "Desk Lamp", "price": 34.99, "rating": 4.2, "reviews": 78,
     "category": "Home", "inStock": True,
     "description": "LED lamp with adjustable brightness"},
    {"name": "Backpack", "price": 59.99, "rating": 4.5, "reviews": 134,
     "category": "Fashion", "inStock": True,
     "description": "Water-resistant backpack with laptop sleeve"},
    {"name": "Air Purifier", "price": 149.99, "rating": 4.6, "reviews": 201,
     "category": "Home", "inStock": True,
     "description": "HEPA purifier for rooms up to 40 m2"},
    {"name": "Protein Powder", "price": 39.99, "rating": 4.4, "reviews": 312,
     "category": "Fitness", "inStock": True,
     "description": "Whey protein, chocolate flavour"},
]


async def seed_categories(db: AsyncIOMotorDatabase) -> int:
    """Insert the default categories into an empty collection"""
    if await db[CATEGORIES].count_documents({}) > 0:
        logger.info("[Seed] Categories already present, skipping")
        return 0

    now = datetime.now(timezone.utc)
    for category in DEFAULT_CATEGORIES:
        await db[CATEGORIES].insert_one({
            "id": await next_sequence(db, CATEGORIES),
            "name": category["name"],
            "description": category["description"],
            "isActive": True,
            "createdAt": now,
            "updatedAt": now,
        })

    logger.info(f"[Seed] Inserted {len(DEFAULT_CATEGORIES)} categories")
    return len(DEFAULT_CATEGORIES)


async def seed_products(db: AsyncIOMotorDatabase) -> int:
    """Insert the demo catalog into an empty collection"""
    if await db[PRODUCTS].count_documents({}) > 0:
        logger.info("[Seed] Products already present, skipping")
        return 0

    now = datetime.now(timezone.utc)
    for data in DEMO_PRODUCTS:
        product = normalize_gallery({**data, "images": []})
        product.update({
            "id": await next_sequence(db, PRODUCTS),
            "createdAt": now,
            "updatedAt": now,
        })
        await db[PRODUCTS].insert_one(product)

    logger.info(f"[Seed] Inserted {len(DEMO_PRODUCTS)} products")
    return len(DEMO_PRODUCTS)


async def seed_all(db: AsyncIOMotorDatabase) -> Dict[str, int]:
    return {
        "categories": await seed_categories(db),
        "products": await seed_products(db),
    }
