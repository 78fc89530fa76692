import json
import os
import shutil
import tempfile
import unittest
from unittest import mock

from application.services import EconomyService
from domain.models import DEFAULT_BANK_CAPACITY, Account
from infrastructure.db.account_repository_json import JsonFileAccountRepository
from infrastructure.db.account_repository_sqlite import SqliteAccountRepository


class RepositoryContract:
    """Behaviour every `AccountRepository` backend must share."""

    def make_repo(self):
        raise NotImplementedError

    def setUp(self) -> None:
        self.tmpdir = tempfile.mkdtemp()
        self.repo = self.make_repo()

    def tearDown(self) -> None:
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_missing_account_is_none(self):
        self.assertIsNone(self.repo.get_account("nobody", "discord"))

    def test_add_account_is_idempotent(self):
        self.assertTrue(self.repo.add_account(Account("u1", "discord", wallet=5)))
        self.assertFalse(self.repo.add_account(Account("u1", "discord", wallet=99)))
        self.assertEqual(self.repo.get_account("u1", "discord").wallet, 5)
        self.assertEqual(len(self.repo.list_accounts()), 1)

    def test_save_account_replaces_fields(self):
        self.repo.add_account(Account("u1", "discord"))
        self.repo.save_account(
            Account(
                "u1",
                "discord",
                wallet=10,
                bank=20,
                bank_capacity=3000,
                last_daily_claim=123,
                updated_at=456,
            )
        )
        stored = self.repo.get_account("u1", "discord")
        self.assertEqual(
            (stored.wallet, stored.bank, stored.bank_capacity, stored.last_daily_claim, stored.updated_at),
            (10, 20, 3000, 123, 456),
        )

    def test_save_accounts_writes_both(self):
        self.repo.add_account(Account("a", "discord", wallet=100))
        self.repo.add_account(Account("b", "discord"))
        self.repo.save_accounts(
            [Account("a", "discord", wallet=40), Account("b", "discord", wallet=60)]
        )
        self.assertEqual(self.repo.get_account("a", "discord").wallet, 40)
        self.assertEqual(self.repo.get_account("b", "discord").wallet, 60)

    def test_delete_account(self):
        self.repo.add_account(Account("u1", "discord"))
        self.assertTrue(self.repo.delete_account("u1", "discord"))
        self.assertFalse(self.repo.delete_account("u1", "discord"))
        self.assertIsNone(self.repo.get_account("u1", "discord"))

    def test_list_accounts_filters_platform(self):
        self.repo.add_account(Account("u1", "discord"))
        self.repo.add_account(Account("u1", "whatsapp"))
        self.repo.add_account(Account("u2", "discord"))
        self.assertEqual(len(self.repo.list_accounts()), 3)
        self.assertEqual(
            sorted(a.user_id for a in self.repo.list_accounts("discord")),
            ["u1", "u2"],
        )

    def test_data_survives_reopening(self):
        self.repo.add_account(Account("u1", "discord", wallet=77))
        reopened = self.make_repo()
        self.assertEqual(reopened.get_account("u1", "discord").wallet, 77)

    def test_service_round_trip(self):
        service = EconomyService(self.repo)
        service.add_money("a", "discord", 200)
        service.deposit("a", "discord", 150)
        service.transfer("a", "b", "discord", 50)
        self.assertEqual(service.balance("a", "discord").wallet, 0)
        self.assertEqual(service.balance("a", "discord").bank, 150)
        self.assertEqual(service.balance("b", "discord").wallet, 50)


class SqliteAccountRepositoryTests(RepositoryContract, unittest.TestCase):
    def make_repo(self):
        return SqliteAccountRepository(os.path.join(self.tmpdir, "economy.db"))


class JsonFileAccountRepositoryTests(RepositoryContract, unittest.TestCase):
    def make_repo(self):
        return JsonFileAccountRepository(os.path.join(self.tmpdir, "economy.json"))

    def test_file_is_keyed_by_platform_and_user(self):
        self.repo.add_account(Account("u1", "whatsapp", wallet=3))
        with open(os.path.join(self.tmpdir, "economy.json"), encoding="utf-8") as fh:
            data = json.load(fh)
        self.assertIn("whatsapp:u1", data)
        self.assertEqual(data["whatsapp:u1"]["wallet"], 3)

    def test_empty_file_is_treated_as_empty_collection(self):
        path = os.path.join(self.tmpdir, "empty.json")
        open(path, "w").close()
        self.assertEqual(JsonFileAccountRepository(path).list_accounts(), [])

    def test_failed_write_does_not_leave_a_phantom_account(self):
        with mock.patch.object(self.repo, "_save", side_effect=OSError("disk full")):
            with self.assertRaises(OSError):
                self.repo.add_account(Account("u1", "discord", wallet=7))
        self.assertIsNone(self.repo.get_account("u1", "discord"))
        self.assertTrue(self.repo.add_account(Account("u1", "discord", wallet=7)))

    def test_failed_write_keeps_deleted_account(self):
        self.repo.add_account(Account("u1", "discord", wallet=7))
        with mock.patch.object(self.repo, "_save", side_effect=OSError("disk full")):
            with self.assertRaises(OSError):
                self.repo.delete_account("u1", "discord")
        self.assertEqual(self.repo.get_account("u1", "discord").wallet, 7)
        reloaded = self.make_repo()
        self.assertEqual(reloaded.get_account("u1", "discord").wallet, 7)

    def test_missing_capacity_uses_default(self):
        path = os.path.join(self.tmpdir, "legacy.json")
        with open(path, "w", encoding="utf-8") as fh:
            json.dump({"discord:u1": {"user_id": "u1", "platform": "discord"}}, fh)
        account = JsonFileAccountRepository(path).get_account("u1", "discord")
        self.assertEqual(account.bank_capacity, DEFAULT_BANK_CAPACITY)


if __name__ == "__main__":
    unittest.main()
