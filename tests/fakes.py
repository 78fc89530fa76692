from dataclasses import replace

from domain.models import Account
from domain.repositories import AccountRepository


class InMemoryAccountRepository(AccountRepository):
    def __init__(self):
        self.accounts = {}
        self.saves = 0

    def get_account(self, user_id: str, platform: str):
        account = self.accounts.get((user_id, platform))
        return replace(account) if account is not None else None

    def add_account(self, account: Account) -> bool:
        if account.key in self.accounts:
            return False
        self.accounts[account.key] = replace(account)
        return True

    def save_account(self, account: Account) -> None:
        self.saves += 1
        self.accounts[account.key] = replace(account)

    def save_accounts(self, accounts) -> None:
        for account in accounts:
            self.save_account(account)

    def delete_account(self, user_id: str, platform: str) -> bool:
        return self.accounts.pop((user_id, platform), None) is not None

    def list_accounts(self, platform=None):
        return [
            replace(a)
            for a in self.accounts.values()
            if platform is None or a.platform == platform
        ]


class FakeClock:
    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms
