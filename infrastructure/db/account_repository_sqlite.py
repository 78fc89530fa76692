from __future__ import annotations

import sqlite3
from typing import Iterable, List, Optional

from domain.models import Account
from domain.repositories import AccountRepository


_COLUMNS = (
    "user_id, platform, wallet, bank, bank_capacity, "
    "last_daily_claim, created_at, updated_at"
)


class SqliteAccountRepository(AccountRepository):
    """
    SQLite-backed implementation of `AccountRepository`.

    Manages the `accounts` table, keyed by (user_id, platform). It is
    self-initialising: the table is created if needed.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._ensure_table()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _ensure_table(self) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS accounts (
                    user_id TEXT NOT NULL,
                    platform TEXT NOT NULL,
                    wallet INTEGER NOT NULL DEFAULT 0,
                    bank INTEGER NOT NULL DEFAULT 0,
                    bank_capacity INTEGER NOT NULL DEFAULT 2500,
                    last_daily_claim INTEGER NOT NULL DEFAULT 0,
                    created_at INTEGER NOT NULL DEFAULT 0,
                    updated_at INTEGER NOT NULL DEFAULT 0,
                    PRIMARY KEY (user_id, platform)
                )
                """
            )
            conn.commit()

    @staticmethod
    def _to_domain(row: sqlite3.Row) -> Account:
        return Account(
            user_id=str(row[0]),
            platform=row[1],
            wallet=int(row[2]),
            bank=int(row[3]),
            bank_capacity=int(row[4]),
            last_daily_claim=int(row[5]),
            created_at=int(row[6]),
            updated_at=int(row[7]),
        )

    @staticmethod
    def _update(cur: sqlite3.Cursor, account: Account) -> None:
        cur.execute(
            """
            UPDATE accounts
            SET wallet = ?, bank = ?, bank_capacity = ?,
                last_daily_claim = ?, updated_at = ?
            WHERE user_id = ? AND platform = ?
            """,
            (
                account.wallet,
                account.bank,
                account.bank_capacity,
                account.last_daily_claim,
                account.updated_at,
                account.user_id,
                account.platform,
            ),
        )

    def get_account(self, user_id: str, platform: str) -> Optional[Account]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                f"SELECT {_COLUMNS} FROM accounts WHERE user_id = ? AND platform = ?",
                (user_id, platform),
            )
            row = cur.fetchone()
            if not row:
                return None
            return self._to_domain(row)

    def add_account(self, account: Account) -> bool:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                f"""
                INSERT OR IGNORE INTO accounts ({_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    account.user_id,
                    account.platform,
                    account.wallet,
                    account.bank,
                    account.bank_capacity,
                    account.last_daily_claim,
                    account.created_at,
                    account.updated_at,
                ),
            )
            conn.commit()
            return cur.rowcount == 1

    def save_account(self, account: Account) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            self._update(cur, account)
            conn.commit()

    def save_accounts(self, accounts: Iterable[Account]) -> None:
        # The connection context manager commits on success and rolls back
        # if any update raises, so the batch lands as one transaction.
        with self._get_connection() as conn:
            cur = conn.cursor()
            for account in accounts:
                self._update(cur, account)

    def delete_account(self, user_id: str, platform: str) -> bool:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                "DELETE FROM accounts WHERE user_id = ? AND platform = ?",
                (user_id, platform),
            )
            conn.commit()
            return cur.rowcount > 0

    def list_accounts(self, platform: Optional[str] = None) -> List[Account]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            if platform is None:
                cur.execute(f"SELECT {_COLUMNS} FROM accounts ORDER BY rowid")
            else:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM accounts WHERE platform = ? ORDER BY rowid",
                    (platform,),
                )
            rows = cur.fetchall()
            return [self._to_domain(row) for row in rows]
