"""
Unit Tests for the user maintenance command line
"""
import importlib.util
from pathlib import Path

import pytest

from storefront.core.security import is_password_hashed

from conftest import insert_user

SCRIPT = Path(__file__).resolve().parents[3] / "scripts" / "manage_users.py"


@pytest.fixture
def manage_users(db, monkeypatch):
    spec = importlib.util.spec_from_file_location("manage_users_cli", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    monkeypatch.setattr(module, "get_database", lambda: db)
    return module


class TestManageUsers:

    async def test_backfill_roles(self, manage_users, db, capsys):
        await db["users"].insert_one({"id": 1, "email": "a@example.com"})

        assert await manage_users.main(["backfill-roles"]) == 0
        assert "1 accounts" in capsys.readouterr().out
        assert (await db["users"].find_one({"id": 1}))["role"] == "user"

    async def test_set_admin(self, manage_users, db, test_user):
        assert await manage_users.main(["set-admin", test_user["email"]]) == 0
        assert (await db["users"].find_one({"id": test_user["id"]}))["role"] == "admin"

    async def test_set_admin_unknown_email(self, manage_users, capsys):
        assert await manage_users.main(["set-admin", "missing@example.com"]) == 1
        assert "No user with email" in capsys.readouterr().out

    async def test_audit_then_fix_passwords(self, manage_users, db):
        await insert_user(db)
        await db["users"].insert_one({"id": 50, "email": "plain@example.com", "password": "123456"})

        assert await manage_users.main(["audit-passwords"]) == 2
        assert await manage_users.main(["fix-passwords"]) == 0
        assert is_password_hashed((await db["users"].find_one({"id": 50}))["password"])
        assert await manage_users.main(["audit-passwords"]) == 0

    async def test_create_test_user_twice(self, manage_users, capsys):
        assert await manage_users.main(["create-test-user"]) == 0
        assert "Created test@example.com" in capsys.readouterr().out

        assert await manage_users.main(["create-test-user"]) == 0
        assert "already exists" in capsys.readouterr().out

    def test_unknown_command(self, manage_users):
        with pytest.raises(SystemExit):
            manage_users.build_parser().parse_args(["explode"])
