from dataclasses import dataclass
from typing import Union


DEFAULT_PLATFORM = "discord"
DEFAULT_BANK_CAPACITY = 2500
DAILY_COOLDOWN_MS = 86_400_000
LEADERBOARD_SORT_KEYS = ("wallet", "bank", "total")


@dataclass
class Account:
    """
    Domain representation of a player's economy account.

    Accounts are keyed by `(user_id, platform)` so the same external ID can
    hold separate balances on different chat services. This model is
    independent of any particular transport or database schema.
    """

    user_id: str
    platform: str
    wallet: int = 0
    bank: int = 0
    bank_capacity: int = DEFAULT_BANK_CAPACITY
    last_daily_claim: int = 0
    created_at: int = 0
    updated_at: int = 0

    @property
    def key(self) -> tuple[str, str]:
        return (self.user_id, self.platform)

    @property
    def net_worth(self) -> int:
        return self.wallet + self.bank

    @property
    def bank_space(self) -> int:
        return max(self.bank_capacity - self.bank, 0)


@dataclass(frozen=True)
class Exact:
    """A specific number of coins to move between wallet and bank."""

    value: int


class All:
    """Move as much as the source balance (and bank space) allows."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ALL"


ALL = All()

BankAmount = Union[Exact, All]
