"""Plain-text rendering of service results, shared by the chat bots."""

from __future__ import annotations

from typing import List

from application.services import (
    BalanceResult,
    BankResult,
    DailyResult,
    LeaderboardEntry,
    TransferResult,
)


_BANK_REASONS = {
    "bank_full": "Your bank is full.",
    "no_funds": "You don't have any coins in your wallet to deposit.",
    "insufficient_bank": "You don't have any coins in your bank to withdraw.",
}


def format_balance(name: str, result: BalanceResult) -> str:
    return (
        f"{name}'s balance\n"
        f"Wallet: {result.wallet}\n"
        f"Bank: {result.bank}/{result.bank_capacity}\n"
        f"Net worth: {result.net_worth}"
    )


def format_bank(result: BankResult) -> str:
    if not result.success:
        return _BANK_REASONS.get(result.reason or "", "Nothing to move.")

    verb = "Deposited" if result.type == "deposit" else "Withdrew"
    return f"{verb} {result.amount}. Wallet: {result.wallet}, Bank: {result.bank}"


def format_daily(result: DailyResult) -> str:
    if result.success:
        return f"You claimed your daily {result.amount}! Wallet: {result.new_balance}"
    remaining = result.remaining.formatted if result.remaining else "a while"
    return f"You already claimed your daily reward. Come back in {remaining}."


def format_transfer(sender: str, receiver: str, result: TransferResult) -> str:
    if not result.success:
        return f"{sender}, you don't have enough coins in your wallet."
    return f"{sender} paid {result.amount} to {receiver}."


def format_leaderboard(entries: List[LeaderboardEntry], sort_by: str, names: dict) -> str:
    """
    Render a ranked list. `names` maps user IDs to display names; unknown
    IDs are shown as-is.
    """

    if not entries:
        return "No players yet."

    lines = [f"Top {len(entries)} by {sort_by}"]
    for entry in entries:
        value = getattr(entry, sort_by)
        lines.append(f"{entry.rank}. {names.get(entry.user_id, entry.user_id)}: {value}")
    return "\n".join(lines)
