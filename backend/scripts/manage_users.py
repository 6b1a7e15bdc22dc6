#!/usr/bin/env python3
"""
User maintenance for Storefront

Usage:
    python scripts/manage_users.py backfill-roles       # role "user" where missing
    python scripts/manage_users.py set-admin EMAIL      # promote an account
    python scripts/manage_users.py fix-passwords        # hash plain-text passwords
    python scripts/manage_users.py create-test-user     # test@example.com / 123456
    python scripts/manage_users.py audit-passwords      # hashed vs plain counts
"""

import asyncio
import sys
import argparse
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from storefront.core.database import close_db, get_database
from storefront.core.exceptions import UserNotFoundError
from storefront.services.user_service import TEST_USER, user_service


async def backfill_roles(args) -> int:
    updated = await user_service.backfill_roles(get_database())
    print(f"[Users] Set role 'user' on {updated} accounts")
    return 0


async def set_admin(args) -> int:
    try:
        user = await user_service.set_admin_by_email(get_database(), args.email)
    except UserNotFoundError:
        print(f"[Users] ERROR: No user with email {args.email}")
        return 1
    print(f"[Users] {user['email']} (id {user['id']}) is now an admin")
    return 0


async def fix_passwords(args) -> int:
    fixed = await user_service.fix_plaintext_passwords(get_database())
    print(f"[Users] Hashed {fixed} plain-text passwords")
    return 0


async def create_test_user(args) -> int:
    user, created = await user_service.create_test_user(get_database())
    if created:
        print(f"[Users] Created {user['email']} / {TEST_USER['password']} (id {user['id']})")
    else:
        print(f"[Users] {user['email']} already exists (id {user['id']})")
    return 0


async def audit_passwords(args) -> int:
    report = await user_service.audit_passwords(get_database())
    print(f"[Users] {report['total']} accounts: {report['hashed']} hashed, {report['plain']} plain-text")
    for email in report["plainEmails"]:
        print(f"  - {email}")
    return 0 if report["plain"] == 0 else 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Storefront user maintenance")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("backfill-roles", help="Give role 'user' to accounts without one").set_defaults(handler=backfill_roles)

    admin_parser = subparsers.add_parser("set-admin", help="Promote an account to admin")
    admin_parser.add_argument("email")
    admin_parser.set_defaults(handler=set_admin)

    subparsers.add_parser("fix-passwords", help="Hash plain-text stored passwords").set_defaults(handler=fix_passwords)
    subparsers.add_parser("create-test-user", help="Create test@example.com").set_defaults(handler=create_test_user)
    subparsers.add_parser("audit-passwords", help="Report hashed vs plain passwords").set_defaults(handler=audit_passwords)

    return parser


async def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return await args.handler(args)
    finally:
        await close_db()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
