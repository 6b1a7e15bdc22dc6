#!/usr/bin/env python3
"""
Database Initialization Script for Storefront

This script:
1. Tests database connectivity
2. Creates the indexes the application relies on
3. Aligns the id counters with existing documents
4. Seeds default categories and demo products if requested

Usage:
    python scripts/init_db.py              # Indexes + counters
    python scripts/init_db.py --check      # Only check connectivity
    python scripts/init_db.py --seed       # Also seed categories and products
    python scripts/init_db.py --status     # Show collection counts
"""

import asyncio
import sys
import argparse
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from storefront.core.config import settings
from storefront.core.database import (
    CART,
    CATEGORIES,
    PRODUCTS,
    SEQUENCED_COLLECTIONS,
    USERS,
    close_db,
    ensure_indexes,
    get_database,
    ping,
    sync_sequence,
)
from storefront.db.seed_data import seed_all


async def test_connection() -> bool:
    """Test database connectivity"""
    print("\n[InitDB] Testing database connection...")
    host = settings.MONGODB_URL.split('@')[-1]
    print(f"[InitDB] Connecting to: {host} / {settings.MONGODB_DB_NAME}")

    if await ping():
        print("[InitDB] Database connection successful!")
        return True

    print("[InitDB] ERROR: Database connection failed")
    return False


async def create_indexes() -> bool:
    print("\n[InitDB] Creating/verifying indexes...")
    try:
        await ensure_indexes()
        print("[InitDB] Indexes created/verified!")
        return True
    except Exception as e:
        print(f"[InitDB] ERROR: Index creation failed: {e}")
        return False


async def sync_counters() -> None:
    print("\n[InitDB] Aligning id counters...")
    db = get_database()
    for name in SEQUENCED_COLLECTIONS:
        value = await sync_sequence(db, name)
        print(f"  - {name}: next id {value + 1}")


async def seed_data() -> None:
    print("\n[InitDB] Seeding initial data...")
    inserted = await seed_all(get_database())
    print(f"[InitDB] Inserted {inserted['categories']} categories, {inserted['products']} products")


async def show_status() -> None:
    print("\n[InitDB] Collection Status:")
    print("-" * 50)
    db = get_database()
    for name in (USERS, CATEGORIES, PRODUCTS, CART):
        print(f"  - {name}: {await db[name].count_documents({})} documents")


async def main():
    """Main initialization function"""
    parser = argparse.ArgumentParser(description="Storefront Database Initialization")
    parser.add_argument("--check", action="store_true", help="Only check connectivity")
    parser.add_argument("--seed", action="store_true", help="Include seed data")
    parser.add_argument("--status", action="store_true", help="Show collection status")

    args = parser.parse_args()

    print("=" * 50)
    print("  Storefront - Database Initialization")
    print("=" * 50)

    try:
        if not await test_connection():
            print("\n[InitDB] FAILED: Cannot connect to database")
            return 1

        if args.check:
            print("\n[InitDB] Connection check completed!")
            return 0

        if args.status:
            await show_status()
            return 0

        if not await create_indexes():
            return 1

        if args.seed:
            await seed_data()

        await sync_counters()
    finally:
        await close_db()

    print("\n" + "=" * 50)
    print("  Database Initialization Complete!")
    print("=" * 50)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
