from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from domain.amounts import Cooldown, RawAmount, format_cooldown, now_ms, parse_amount, parse_bank_amount
from domain.exceptions import EconomyError, ValidationError
from domain.models import (
    ALL,
    DAILY_COOLDOWN_MS,
    DEFAULT_BANK_CAPACITY,
    DEFAULT_PLATFORM,
    LEADERBOARD_SORT_KEYS,
    Account,
    BankAmount,
)
from domain.repositories import AccountRepository

from .locking import KeyedLock, NullLock


logger = logging.getLogger(__name__)

_CREATE_ATTEMPTS = 3


@dataclass
class BalanceResult:
    wallet: int
    bank: int
    bank_capacity: int
    net_worth: int


@dataclass
class WalletResult:
    """Outcome of a wallet credit or debit; `amount` is what actually moved."""

    amount: int
    new_balance: int


@dataclass
class TransferResult:
    success: bool
    amount: int
    from_user: str
    to_user: str
    platform: str
    reason: Optional[str] = None
    from_balance: Optional[int] = None
    to_balance: Optional[int] = None


@dataclass
class DailyResult:
    """
    Result of a daily reward claim.

    On success `amount`/`new_balance` are set; while cooling down
    `cooldown` is True and `remaining`/`remaining_ms` say how long is left.
    """

    success: bool
    amount: int = 0
    new_balance: Optional[int] = None
    cooldown: bool = False
    remaining_ms: int = 0
    remaining: Optional[Cooldown] = None


@dataclass
class BankResult:
    success: bool
    type: str
    amount: int
    wallet: int
    bank: int
    reason: Optional[str] = None


@dataclass
class CapacityResult:
    amount: int
    new_capacity: int


@dataclass
class CreateResult:
    created: bool
    account: Account


@dataclass
class DeleteResult:
    deleted: bool


@dataclass
class LeaderboardEntry:
    rank: int
    user_id: str
    platform: str
    wallet: int
    bank: int
    total: int


def _validate_user_id(user_id: str, label: str = "User ID") -> str:
    if user_id is None or not str(user_id).strip():
        raise ValidationError(f"Please provide a {label}.")
    return str(user_id)


def _validate_platform(platform: str) -> str:
    if platform is None or not str(platform).strip():
        raise ValidationError("Please provide a platform.")
    return str(platform)


def _validate_limit(limit: Union[int, str]) -> int:
    try:
        value = parse_amount(limit, field="limit")
    except ValidationError:
        raise ValidationError("Limit must be a positive number.") from None
    if value < 1:
        raise ValidationError("Limit must be at least 1.")
    return value


class EconomyService:
    """
    Façade over the account collection exposing the economy operations.

    Every operation follows the same shape:
    - Validate input (raising `ValidationError` before any I/O).
    - Fetch the account, creating it with default balances if absent.
    - Compute the new balances.
    - Persist and return a plain result object.

    Business-rule failures (insufficient funds, full bank, cooldown) are
    returned as results with `success=False`, never raised.

    With `serialize=True` each read/compute/write cycle holds a per-account
    lock. Without it, two concurrent operations on the same account can
    overwrite each other's update (last write wins).
    """

    def __init__(
        self,
        repo: AccountRepository,
        *,
        daily_cooldown_ms: int = DAILY_COOLDOWN_MS,
        default_bank_capacity: int = DEFAULT_BANK_CAPACITY,
        clock: Callable[[], int] = now_ms,
        serialize: bool = False,
    ) -> None:
        if daily_cooldown_ms < 0:
            raise ValueError("daily_cooldown_ms can't be negative")
        if default_bank_capacity <= 0:
            raise ValueError("default_bank_capacity must be greater than zero")

        self._repo = repo
        self._daily_cooldown_ms = daily_cooldown_ms
        self._default_bank_capacity = default_bank_capacity
        self._clock = clock
        self._locks = KeyedLock() if serialize else NullLock()

    # -- shared primitives -------------------------------------------------

    def _get_or_create(self, user_id: str, platform: str) -> Account:
        account = self._repo.get_account(user_id, platform)
        if account is not None:
            return account
        return self._materialize(user_id, platform)[0]

    def _materialize(self, user_id: str, platform: str) -> tuple[Account, bool]:
        now = self._clock()
        fresh = Account(
            user_id=user_id,
            platform=platform,
            wallet=0,
            bank=0,
            bank_capacity=self._default_bank_capacity,
            last_daily_claim=0,
            created_at=now,
            updated_at=now,
        )
        for _ in range(_CREATE_ATTEMPTS):
            if self._repo.add_account(fresh):
                logger.debug(
                    "Account created",
                    extra={"user_id": user_id, "platform": platform},
                )
                return fresh, True
            # Lost a race with another writer; use the stored record.
            stored = self._repo.get_account(user_id, platform)
            if stored is not None:
                return stored, False
            # The other writer's record was deleted in between; try again.

        raise EconomyError(f"Could not create account {platform}:{user_id}")

    def _persist(self, account: Account) -> None:
        account.updated_at = self._clock()
        self._repo.save_account(account)

    # -- queries -----------------------------------------------------------

    def balance(self, user_id: str, platform: str = DEFAULT_PLATFORM) -> BalanceResult:
        user_id = _validate_user_id(user_id)
        platform = _validate_platform(platform)

        with self._locks.hold((user_id, platform)):
            account = self._get_or_create(user_id, platform)

        return BalanceResult(
            wallet=account.wallet,
            bank=account.bank,
            bank_capacity=account.bank_capacity,
            net_worth=account.net_worth,
        )

    def leaderboard(
        self,
        platform: Optional[str] = None,
        limit: Union[int, str] = 10,
        sort_by: str = "total",
    ) -> List[LeaderboardEntry]:
        """
        Rank accounts by wallet, bank or total (wallet + bank), descending.

        This is a full scan; ties keep whatever order the backend returned.
        """

        count = _validate_limit(limit)
        if sort_by not in LEADERBOARD_SORT_KEYS:
            raise ValidationError("Sort key must be 'wallet', 'bank', or 'total'.")

        accounts = self._repo.list_accounts(platform or None)

        def sort_value(account: Account) -> int:
            if sort_by == "wallet":
                return account.wallet
            if sort_by == "bank":
                return account.bank
            return account.net_worth

        ranked = sorted(accounts, key=sort_value, reverse=True)[:count]
        return [
            LeaderboardEntry(
                rank=index + 1,
                user_id=account.user_id,
                platform=account.platform,
                wallet=account.wallet,
                bank=account.bank,
                total=account.net_worth,
            )
            for index, account in enumerate(ranked)
        ]

    def user_count(self, platform: Optional[str] = None) -> int:
        return len(self._repo.list_accounts(platform or None))

    # -- wallet ------------------------------------------------------------

    def add_money(
        self,
        user_id: str,
        platform: str,
        amount: RawAmount,
    ) -> WalletResult:
        user_id = _validate_user_id(user_id)
        platform = _validate_platform(platform)
        value = parse_amount(amount)

        with self._locks.hold((user_id, platform)):
            account = self._get_or_create(user_id, platform)
            account.wallet += value
            self._persist(account)

        logger.info(
            "Wallet credited",
            extra={
                "operation": "add_money",
                "user_id": user_id,
                "platform": platform,
                "amount": value,
            },
        )
        return WalletResult(amount=value, new_balance=account.wallet)

    def remove_money(
        self,
        user_id: str,
        platform: str,
        amount: RawAmount,
    ) -> WalletResult:
        """
        Debit the wallet, clamping at zero.

        The returned `amount` is what was actually removed, which is less
        than requested when the wallet could not cover it.
        """

        user_id = _validate_user_id(user_id)
        platform = _validate_platform(platform)
        value = parse_amount(amount)

        with self._locks.hold((user_id, platform)):
            account = self._get_or_create(user_id, platform)
            actual = min(value, account.wallet)
            account.wallet -= actual
            self._persist(account)

        logger.info(
            "Wallet debited",
            extra={
                "operation": "remove_money",
                "user_id": user_id,
                "platform": platform,
                "requested": value,
                "amount": actual,
            },
        )
        return WalletResult(amount=actual, new_balance=account.wallet)

    def set_money(
        self,
        user_id: str,
        platform: str,
        wallet: RawAmount,
        bank: RawAmount,
    ) -> BalanceResult:
        """Overwrite both balances (admin tool)."""

        user_id = _validate_user_id(user_id)
        platform = _validate_platform(platform)
        new_wallet = parse_amount(wallet, field="wallet amount")
        new_bank = parse_amount(bank, field="bank amount")

        with self._locks.hold((user_id, platform)):
            account = self._get_or_create(user_id, platform)
            if new_bank > account.bank_capacity:
                raise ValidationError(
                    f"Bank amount exceeds the bank capacity of {account.bank_capacity}."
                )
            account.wallet = new_wallet
            account.bank = new_bank
            self._persist(account)

        logger.info(
            "Balances set",
            extra={
                "operation": "set_money",
                "user_id": user_id,
                "platform": platform,
                "wallet": new_wallet,
                "bank": new_bank,
            },
        )
        return BalanceResult(
            wallet=account.wallet,
            bank=account.bank,
            bank_capacity=account.bank_capacity,
            net_worth=account.net_worth,
        )

    def transfer(
        self,
        from_user_id: str,
        to_user_id: str,
        platform: str,
        amount: RawAmount,
    ) -> TransferResult:
        """
        Move exactly `amount` from one wallet to another, or nothing at all.

        Both records are written through `save_accounts`, which is a single
        transaction on the SQLite, Postgres and JSON backends. Backends
        without transactions write them one after the other, so a crash in
        between leaves the sender debited and the receiver not yet credited.
        """

        from_user_id = _validate_user_id(from_user_id, "sender User ID")
        to_user_id = _validate_user_id(to_user_id, "receiver User ID")
        platform = _validate_platform(platform)
        value = parse_amount(amount)
        if from_user_id == to_user_id:
            raise ValidationError("Cannot transfer to yourself.")

        with self._locks.hold((from_user_id, platform), (to_user_id, platform)):
            sender = self._get_or_create(from_user_id, platform)
            receiver = self._get_or_create(to_user_id, platform)

            if sender.wallet < value:
                return TransferResult(
                    success=False,
                    amount=0,
                    from_user=from_user_id,
                    to_user=to_user_id,
                    platform=platform,
                    reason="insufficient_funds",
                    from_balance=sender.wallet,
                    to_balance=receiver.wallet,
                )

            sender.wallet -= value
            receiver.wallet += value
            now = self._clock()
            sender.updated_at = now
            receiver.updated_at = now
            self._repo.save_accounts([sender, receiver])

        logger.info(
            "Transfer completed",
            extra={
                "operation": "transfer",
                "from_user": from_user_id,
                "to_user": to_user_id,
                "platform": platform,
                "amount": value,
            },
        )
        return TransferResult(
            success=True,
            amount=value,
            from_user=from_user_id,
            to_user=to_user_id,
            platform=platform,
            from_balance=sender.wallet,
            to_balance=receiver.wallet,
        )

    def daily(
        self,
        user_id: str,
        platform: str,
        amount: RawAmount,
    ) -> DailyResult:
        """
        Claim the daily reward.

        A `last_daily_claim` of 0 means "never claimed" and is always
        eligible. Otherwise the claim succeeds once the cooldown has fully
        elapsed since the previous one.
        """

        user_id = _validate_user_id(user_id)
        platform = _validate_platform(platform)
        value = parse_amount(amount)

        with self._locks.hold((user_id, platform)):
            account = self._get_or_create(user_id, platform)
            now = self._clock()

            if account.last_daily_claim != 0:
                elapsed = now - account.last_daily_claim
                if elapsed < self._daily_cooldown_ms:
                    remaining_ms = self._daily_cooldown_ms - elapsed
                    return DailyResult(
                        success=False,
                        cooldown=True,
                        remaining_ms=remaining_ms,
                        remaining=format_cooldown(remaining_ms),
                    )

            account.wallet += value
            account.last_daily_claim = now
            self._persist(account)

        logger.info(
            "Daily reward claimed",
            extra={
                "operation": "daily",
                "user_id": user_id,
                "platform": platform,
                "amount": value,
            },
        )
        return DailyResult(success=True, amount=value, new_balance=account.wallet)

    # -- bank --------------------------------------------------------------

    def deposit(
        self,
        user_id: str,
        platform: str,
        amount: Union[RawAmount, BankAmount],
    ) -> BankResult:
        """
        Move coins from wallet to bank, bounded by the wallet and free space.

        A full bank is reported as `reason="bank_full"`, an empty wallet
        (or a zero amount) as `reason="no_funds"`.
        """

        user_id = _validate_user_id(user_id)
        platform = _validate_platform(platform)
        requested = parse_bank_amount(amount)

        with self._locks.hold((user_id, platform)):
            account = self._get_or_create(user_id, platform)

            if requested is ALL:
                want = account.wallet
            else:
                want = min(requested.value, account.wallet)
            actual = min(want, account.bank_space)

            if actual <= 0:
                reason = "bank_full" if account.bank_space <= 0 else "no_funds"
                return BankResult(
                    success=False,
                    type="deposit",
                    amount=0,
                    wallet=account.wallet,
                    bank=account.bank,
                    reason=reason,
                )

            account.wallet -= actual
            account.bank += actual
            self._persist(account)

        logger.info(
            "Deposit completed",
            extra={
                "operation": "deposit",
                "user_id": user_id,
                "platform": platform,
                "amount": actual,
            },
        )
        return BankResult(
            success=True,
            type="deposit",
            amount=actual,
            wallet=account.wallet,
            bank=account.bank,
        )

    def withdraw(
        self,
        user_id: str,
        platform: str,
        amount: Union[RawAmount, BankAmount],
    ) -> BankResult:
        user_id = _validate_user_id(user_id)
        platform = _validate_platform(platform)
        requested = parse_bank_amount(amount)

        with self._locks.hold((user_id, platform)):
            account = self._get_or_create(user_id, platform)

            if requested is ALL:
                actual = account.bank
            else:
                actual = min(requested.value, account.bank)

            if actual <= 0:
                return BankResult(
                    success=False,
                    type="withdraw",
                    amount=0,
                    wallet=account.wallet,
                    bank=account.bank,
                    reason="insufficient_bank",
                )

            account.bank -= actual
            account.wallet += actual
            self._persist(account)

        logger.info(
            "Withdrawal completed",
            extra={
                "operation": "withdraw",
                "user_id": user_id,
                "platform": platform,
                "amount": actual,
            },
        )
        return BankResult(
            success=True,
            type="withdraw",
            amount=actual,
            wallet=account.wallet,
            bank=account.bank,
        )

    def add_bank_capacity(
        self,
        user_id: str,
        platform: str,
        amount: RawAmount,
    ) -> CapacityResult:
        user_id = _validate_user_id(user_id)
        platform = _validate_platform(platform)
        value = parse_amount(amount, field="capacity")

        with self._locks.hold((user_id, platform)):
            account = self._get_or_create(user_id, platform)
            account.bank_capacity += value
            self._persist(account)

        logger.info(
            "Bank capacity increased",
            extra={
                "operation": "add_bank_capacity",
                "user_id": user_id,
                "platform": platform,
                "amount": value,
            },
        )
        return CapacityResult(amount=value, new_capacity=account.bank_capacity)

    def set_bank_capacity(
        self,
        user_id: str,
        platform: str,
        capacity: RawAmount,
    ) -> CapacityResult:
        user_id = _validate_user_id(user_id)
        platform = _validate_platform(platform)
        value = parse_amount(capacity, field="capacity")
        if value <= 0:
            raise ValidationError("The capacity must be greater than zero.")

        with self._locks.hold((user_id, platform)):
            account = self._get_or_create(user_id, platform)
            if value < account.bank:
                raise ValidationError(
                    f"The capacity can't be lower than the current bank balance ({account.bank})."
                )
            account.bank_capacity = value
            self._persist(account)

        logger.info(
            "Bank capacity set",
            extra={
                "operation": "set_bank_capacity",
                "user_id": user_id,
                "platform": platform,
                "capacity": value,
            },
        )
        return CapacityResult(amount=value, new_capacity=account.bank_capacity)

    # -- lifecycle ---------------------------------------------------------

    def create(self, user_id: str, platform: str = DEFAULT_PLATFORM) -> CreateResult:
        user_id = _validate_user_id(user_id)
        platform = _validate_platform(platform)

        with self._locks.hold((user_id, platform)):
            existing = self._repo.get_account(user_id, platform)
            if existing is not None:
                return CreateResult(created=False, account=existing)
            account, created = self._materialize(user_id, platform)

        return CreateResult(created=created, account=account)

    def delete(self, user_id: str, platform: str = DEFAULT_PLATFORM) -> DeleteResult:
        user_id = _validate_user_id(user_id)
        platform = _validate_platform(platform)

        with self._locks.hold((user_id, platform)):
            deleted = self._repo.delete_account(user_id, platform)

        if deleted:
            logger.info(
                "Account deleted",
                extra={"operation": "delete", "user_id": user_id, "platform": platform},
            )
        return DeleteResult(deleted=deleted)

    def close(self) -> None:
        """Release the repository (drains a write queue if one is in front)."""

        close = getattr(self._repo, "close", None)
        if close is not None:
            close()
