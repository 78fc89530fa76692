from __future__ import annotations

import json
import os
import tempfile
import threading
from dataclasses import asdict
from typing import Dict, Iterable, List, Optional

from domain.models import DEFAULT_BANK_CAPACITY, Account
from domain.repositories import AccountRepository


class JsonFileAccountRepository(AccountRepository):
    """
    Single-file JSON implementation of `AccountRepository`.

    The whole collection lives in memory as a dict keyed by
    "{platform}:{user_id}" and the file is rewritten on every save. Writes
    go to a temporary file that replaces the original, so a crash never
    leaves a half-written document behind.
    """

    def __init__(self, path: str) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._data: Dict[str, dict] = self._load()

    @staticmethod
    def _key(user_id: str, platform: str) -> str:
        return f"{platform}:{user_id}"

    def _load(self) -> Dict[str, dict]:
        if not os.path.exists(self._path):
            return {}
        with open(self._path, "r", encoding="utf-8") as fh:
            content = fh.read()
        if not content.strip():
            return {}
        data = json.loads(content)
        if not isinstance(data, dict):
            raise ValueError(f"{self._path} does not contain a JSON object")
        return data

    def _save(self) -> None:
        directory = os.path.dirname(os.path.abspath(self._path))
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, indent=2)
            os.replace(tmp_path, self._path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    @staticmethod
    def _to_domain(doc: dict) -> Account:
        return Account(
            user_id=str(doc["user_id"]),
            platform=doc["platform"],
            wallet=int(doc.get("wallet", 0)),
            bank=int(doc.get("bank", 0)),
            bank_capacity=int(doc.get("bank_capacity", DEFAULT_BANK_CAPACITY)),
            last_daily_claim=int(doc.get("last_daily_claim", 0)),
            created_at=int(doc.get("created_at", 0)),
            updated_at=int(doc.get("updated_at", 0)),
        )

    def get_account(self, user_id: str, platform: str) -> Optional[Account]:
        with self._lock:
            doc = self._data.get(self._key(user_id, platform))
            if doc is None:
                return None
            return self._to_domain(doc)

    def add_account(self, account: Account) -> bool:
        key = self._key(account.user_id, account.platform)
        with self._lock:
            if key in self._data:
                return False
            self._data[key] = asdict(account)
            try:
                self._save()
            except BaseException:
                del self._data[key]
                raise
            return True

    def save_account(self, account: Account) -> None:
        self.save_accounts([account])

    def save_accounts(self, accounts: Iterable[Account]) -> None:
        with self._lock:
            previous = dict(self._data)
            for account in accounts:
                self._data[self._key(account.user_id, account.platform)] = asdict(account)
            try:
                self._save()
            except BaseException:
                self._data = previous
                raise

    def delete_account(self, user_id: str, platform: str) -> bool:
        key = self._key(user_id, platform)
        with self._lock:
            if key not in self._data:
                return False
            removed = self._data.pop(key)
            try:
                self._save()
            except BaseException:
                self._data[key] = removed
                raise
            return True

    def list_accounts(self, platform: Optional[str] = None) -> List[Account]:
        with self._lock:
            docs = list(self._data.values())
        return [
            self._to_domain(doc)
            for doc in docs
            if platform is None or doc.get("platform") == platform
        ]
