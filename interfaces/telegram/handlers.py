from __future__ import annotations

import logging

import telebot
from telebot.types import InlineKeyboardButton, InlineKeyboardMarkup

from application.services import EconomyService
from domain.exceptions import ValidationError
from domain.models import LEADERBOARD_SORT_KEYS
from interfaces.messages import (
    format_balance,
    format_bank,
    format_daily,
    format_leaderboard,
    format_transfer,
)
from interfaces.telegram.callback_data import encode_leaderboard, parse_leaderboard


PLATFORM = "telegram"

logger = logging.getLogger(__name__)


def _display_name(user) -> str:
    return " ".join(p for p in (user.first_name, user.last_name) if p) or str(user.id)


def _leaderboard_markup(current: str, limit: int) -> InlineKeyboardMarkup:
    markup = InlineKeyboardMarkup(row_width=3)
    markup.add(
        *[
            InlineKeyboardButton(
                f"[{key}]" if key == current else key,
                callback_data=encode_leaderboard(key, limit),
            )
            for key in LEADERBOARD_SORT_KEYS
        ]
    )
    return markup


def refresh_leaderboard(bot: telebot.TeleBot, service: EconomyService, call) -> None:
    """Re-render a leaderboard message after one of its sort buttons is pressed."""

    try:
        sort_by, limit = parse_leaderboard(call.data)
    except ValueError:
        bot.answer_callback_query(call.id, "Invalid selection.")
        return

    entries = service.leaderboard(PLATFORM, limit, sort_by)
    try:
        bot.edit_message_text(
            format_leaderboard(entries, sort_by, {}),
            call.message.chat.id,
            call.message.id,
            reply_markup=_leaderboard_markup(sort_by, limit),
        )
    except telebot.apihelper.ApiTelegramException as exc:
        # Pressing the active sort button again yields identical content.
        if "message is not modified" not in str(exc.description):
            raise
        logger.debug("Leaderboard unchanged", extra={"sort_by": sort_by})
    bot.answer_callback_query(call.id)


def create_telegram_bot(
    bot_token: str,
    service: EconomyService,
    daily_reward: int = 100,
    leaderboard_size: int = 10,
) -> telebot.TeleBot:
    """
    Configure and return a TeleBot instance wired to the economy service.

    This module contains only Telegram-specific concerns: parsing Telegram
    messages/callbacks and mapping them to/from service calls.
    """

    bot = telebot.TeleBot(bot_token)

    def reply(message, text: str, **kwargs) -> None:
        bot.send_message(message.chat.id, text, **kwargs)

    def args_of(message) -> list[str]:
        return message.text.split()[1:]

    @bot.message_handler(commands=["start", "hello"])
    def handle_start(message):
        reply(
            message,
            "Welcome to the economy bot!\n"
            "Use /daily to claim free coins and /deposit to keep them safe.\n"
            "Type /help to see available commands.",
        )

    @bot.message_handler(commands=["help"])
    def handle_help(message):
        reply(
            message,
            "/balance                 - show wallet, bank and net worth\n"
            "/daily                   - claim your daily reward\n"
            "/deposit <amount|all>    - move coins from wallet to bank\n"
            "/withdraw <amount|all>   - move coins from bank to wallet\n"
            "/pay <user_id> <amount>  - send coins to another user\n"
            "/top                     - show the richest users\n",
        )

    @bot.message_handler(commands=["balance"])
    def handle_balance(message):
        result = service.balance(str(message.from_user.id), PLATFORM)
        reply(message, format_balance(_display_name(message.from_user), result))

    @bot.message_handler(commands=["daily"])
    def handle_daily(message):
        result = service.daily(str(message.from_user.id), PLATFORM, daily_reward)
        reply(message, format_daily(result))

    @bot.message_handler(commands=["deposit", "withdraw"])
    def handle_bank(message):
        parts = args_of(message)
        if not parts:
            reply(message, "Please enter an amount or 'all'.")
            return

        op = message.text.split()[0][1:].split("@")[0]  # strip leading '/' and bot name
        try:
            if op == "deposit":
                result = service.deposit(str(message.from_user.id), PLATFORM, parts[0])
            else:
                result = service.withdraw(str(message.from_user.id), PLATFORM, parts[0])
        except ValidationError as exc:
            reply(message, str(exc))
            return
        reply(message, format_bank(result))

    @bot.message_handler(commands=["pay"])
    def handle_pay(message):
        parts = args_of(message)
        if len(parts) < 2:
            reply(message, "Usage: /pay <user_id> <amount>")
            return

        target_id, amount = parts[0], parts[1]
        try:
            result = service.transfer(str(message.from_user.id), target_id, PLATFORM, amount)
        except ValidationError as exc:
            reply(message, str(exc))
            return

        reply(message, format_transfer(_display_name(message.from_user), target_id, result))
        if result.success:
            try:
                bot.send_message(
                    target_id,
                    f"{_display_name(message.from_user)} sent you {result.amount} coins.",
                )
            except telebot.apihelper.ApiTelegramException:
                # The receiver never opened a chat with the bot.
                logger.info("Could not notify transfer receiver", extra={"user_id": target_id})

    @bot.message_handler(commands=["top"])
    def handle_top(message):
        entries = service.leaderboard(PLATFORM, leaderboard_size, "total")
        reply(
            message,
            format_leaderboard(entries, "total", {}),
            reply_markup=_leaderboard_markup("total", leaderboard_size),
        )

    @bot.callback_query_handler(func=lambda call: call.data.startswith("lb:"))
    def handle_leaderboard_sort(call):
        refresh_leaderboard(bot, service, call)

    return bot
