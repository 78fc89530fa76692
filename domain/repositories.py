from __future__ import annotations

from typing import Iterable, List, Optional, Protocol

from .models import Account


class AccountRepository(Protocol):
    """
    Abstraction over account persistence.

    Implementations are responsible for:
    - Mapping between stored rows/documents and the `Account` domain model.
    - Hiding any SQL / driver / file-format details from the application layer.

    The economy service assumes it is the only writer to the underlying
    collection and performs no caching of its own.
    """

    def get_account(self, user_id: str, platform: str) -> Optional[Account]:
        """Return the account for the given key, or None if not found."""

        ...

    def add_account(self, account: Account) -> bool:
        """
        Insert `account` unless its key already exists.

        Returns True if a row was inserted. Calling this twice for the same
        key never creates two rows; the second call returns False.
        """

        ...

    def save_account(self, account: Account) -> None:
        """Replace the stored record for `account.key` with `account`."""

        ...

    def save_accounts(self, accounts: Iterable[Account]) -> None:
        """
        Replace several records at once.

        Backends with transactions apply all writes or none; others write
        them one after another.
        """

        ...

    def delete_account(self, user_id: str, platform: str) -> bool:
        """Remove the account. Returns False if nothing was stored."""

        ...

    def list_accounts(self, platform: Optional[str] = None) -> List[Account]:
        """Return every account, optionally restricted to one platform."""

        ...
