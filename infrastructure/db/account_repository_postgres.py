from __future__ import annotations

from typing import Iterable, List, Optional

import psycopg2

from domain.models import Account
from domain.repositories import AccountRepository


_COLUMNS = (
    "user_id, platform, wallet, bank, bank_capacity, "
    "last_daily_claim, created_at, updated_at"
)


class PostgresAccountRepository(AccountRepository):
    """
    Postgres-backed implementation of `AccountRepository`.

    `db_params` is passed straight to `psycopg2.connect`, so it may hold
    either a `dsn` or the individual host/user/password/dbname keys.
    """

    def __init__(self, db_params: dict) -> None:
        self._db_params = db_params
        self._ensure_table()

    def _get_connection(self):
        return psycopg2.connect(**self._db_params)

    def _ensure_table(self) -> None:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS accounts (
                        user_id TEXT NOT NULL,
                        platform TEXT NOT NULL,
                        wallet BIGINT NOT NULL DEFAULT 0,
                        bank BIGINT NOT NULL DEFAULT 0,
                        bank_capacity BIGINT NOT NULL DEFAULT 2500,
                        last_daily_claim BIGINT NOT NULL DEFAULT 0,
                        created_at BIGINT NOT NULL DEFAULT 0,
                        updated_at BIGINT NOT NULL DEFAULT 0,
                        PRIMARY KEY (user_id, platform)
                    )
                    """
                )
                conn.commit()

    @staticmethod
    def _to_domain(row: tuple) -> Account:
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
    def _update(cur, account: Account) -> None:
        cur.execute(
            """
            UPDATE accounts
            SET wallet = %s, bank = %s, bank_capacity = %s,
                last_daily_claim = %s, updated_at = %s
            WHERE user_id = %s AND platform = %s
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
            with conn.cursor() as cur:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM accounts WHERE user_id = %s AND platform = %s",
                    (user_id, platform),
                )
                row = cur.fetchone()
                if not row:
                    return None
                return self._to_domain(row)

    def add_account(self, account: Account) -> bool:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    INSERT INTO accounts ({_COLUMNS})
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                    ON CONFLICT (user_id, platform) DO NOTHING
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
            with conn.cursor() as cur:
                self._update(cur, account)
                conn.commit()

    def save_accounts(self, accounts: Iterable[Account]) -> None:
        # psycopg2 opens a transaction on the first statement; the
        # connection context manager commits or rolls back the whole batch.
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                for account in accounts:
                    self._update(cur, account)

    def delete_account(self, user_id: str, platform: str) -> bool:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "DELETE FROM accounts WHERE user_id = %s AND platform = %s",
                    (user_id, platform),
                )
                conn.commit()
                return cur.rowcount > 0

    def list_accounts(self, platform: Optional[str] = None) -> List[Account]:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                if platform is None:
                    cur.execute(f"SELECT {_COLUMNS} FROM accounts")
                else:
                    cur.execute(
                        f"SELECT {_COLUMNS} FROM accounts WHERE platform = %s",
                        (platform,),
                    )
                rows = cur.fetchall()
                return [self._to_domain(row) for row in rows]
