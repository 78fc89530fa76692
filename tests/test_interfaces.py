import unittest
from types import SimpleNamespace
from unittest import mock

import telebot

from application.services import (
    BalanceResult,
    BankResult,
    DailyResult,
    EconomyService,
    LeaderboardEntry,
    TransferResult,
)
from domain.amounts import format_cooldown
from interfaces.messages import (
    format_balance,
    format_bank,
    format_daily,
    format_leaderboard,
    format_transfer,
)
from interfaces.telegram.callback_data import encode_leaderboard, parse_leaderboard
from interfaces.telegram.handlers import refresh_leaderboard
from tests.fakes import FakeClock, InMemoryAccountRepository


class MessageFormattingTests(unittest.TestCase):
    def test_balance(self):
        text = format_balance("Ann", BalanceResult(wallet=5, bank=10, bank_capacity=2500, net_worth=15))
        self.assertIn("Ann's balance", text)
        self.assertIn("Bank: 10/2500", text)
        self.assertIn("Net worth: 15", text)

    def test_bank_success_and_failures(self):
        ok = BankResult(success=True, type="deposit", amount=100, wallet=400, bank=2500)
        self.assertEqual(format_bank(ok), "Deposited 100. Wallet: 400, Bank: 2500")

        full = BankResult(success=False, type="deposit", amount=0, wallet=5, bank=2500, reason="bank_full")
        self.assertEqual(format_bank(full), "Your bank is full.")

        empty = BankResult(success=False, type="withdraw", amount=0, wallet=0, bank=0, reason="insufficient_bank")
        self.assertIn("bank", format_bank(empty))

    def test_daily_cooldown(self):
        result = DailyResult(
            success=False,
            cooldown=True,
            remaining_ms=3_600_000,
            remaining=format_cooldown(3_600_000),
        )
        self.assertEqual(
            format_daily(result),
            "You already claimed your daily reward. Come back in 1 hour(s).",
        )

    def test_daily_success(self):
        result = DailyResult(success=True, amount=100, new_balance=250)
        self.assertEqual(format_daily(result), "You claimed your daily 100! Wallet: 250")

    def test_transfer(self):
        ok = TransferResult(success=True, amount=30, from_user="1", to_user="2", platform="discord")
        self.assertEqual(format_transfer("Ann", "Bob", ok), "Ann paid 30 to Bob.")
        failed = TransferResult(
            success=False, amount=0, from_user="1", to_user="2", platform="discord", reason="insufficient_funds"
        )
        self.assertIn("enough", format_transfer("Ann", "Bob", failed))

    def test_leaderboard(self):
        entries = [
            LeaderboardEntry(rank=1, user_id="1", platform="discord", wallet=300, bank=0, total=300),
            LeaderboardEntry(rank=2, user_id="2", platform="discord", wallet=0, bank=200, total=200),
        ]
        text = format_leaderboard(entries, "total", {"1": "Ann"})
        self.assertEqual(text.splitlines(), ["Top 2 by total", "1. Ann: 300", "2. 2: 200"])
        self.assertEqual(format_leaderboard([], "total", {}), "No players yet.")


class LeaderboardCallbackDataTests(unittest.TestCase):
    def test_encode_and_parse(self):
        data = encode_leaderboard("bank", 10)
        self.assertEqual(data, "lb:bank:10")
        self.assertEqual(parse_leaderboard(data), ("bank", 10))

    def test_rejects_malformed(self):
        for bad in ("lb:bank", "lb:networth:10", "xx:bank:10", "lb:bank:ten", "lb:bank:0"):
            with self.assertRaises(ValueError, msg=bad):
                parse_leaderboard(bad)



def _api_error(description: str) -> telebot.apihelper.ApiTelegramException:
    return telebot.apihelper.ApiTelegramException(
        "editMessageText",
        None,
        {"error_code": 400, "description": description},
    )


class RefreshLeaderboardTests(unittest.TestCase):
    def setUp(self) -> None:
        self.bot = mock.Mock()
        self.service = EconomyService(InMemoryAccountRepository(), clock=FakeClock())
        self.service.add_money("u1", "telegram", 10)
        self.call = SimpleNamespace(
            id="cb1",
            data=encode_leaderboard("wallet", 5),
            message=SimpleNamespace(chat=SimpleNamespace(id=42), id=7),
        )

    def test_edits_message_and_answers(self):
        refresh_leaderboard(self.bot, self.service, self.call)
        args, kwargs = self.bot.edit_message_text.call_args
        self.assertEqual(args[1:], (42, 7))
        self.assertIn("u1", args[0])
        self.bot.answer_callback_query.assert_called_once_with("cb1")

    def test_unchanged_message_is_not_an_error(self):
        self.bot.edit_message_text.side_effect = _api_error(
            "Bad Request: message is not modified: specified new message content "
            "and reply markup are exactly the same"
        )
        refresh_leaderboard(self.bot, self.service, self.call)
        self.bot.answer_callback_query.assert_called_once_with("cb1")

    def test_other_api_errors_propagate(self):
        self.bot.edit_message_text.side_effect = _api_error("Bad Request: message to edit not found")
        with self.assertRaises(telebot.apihelper.ApiTelegramException):
            refresh_leaderboard(self.bot, self.service, self.call)

    def test_malformed_callback_is_answered(self):
        self.call.data = "lb:bogus:5"
        refresh_leaderboard(self.bot, self.service, self.call)
        self.bot.edit_message_text.assert_not_called()
        self.bot.answer_callback_query.assert_called_once_with("cb1", "Invalid selection.")


if __name__ == "__main__":
    unittest.main()
