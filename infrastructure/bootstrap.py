from __future__ import annotations

from application.services import EconomyService
from config import Settings
from domain.repositories import AccountRepository
from infrastructure.db.account_repository_json import JsonFileAccountRepository
from infrastructure.db.account_repository_sqlite import SqliteAccountRepository
from infrastructure.db.write_queue import QueuedAccountRepository


def build_account_repository(settings: Settings) -> AccountRepository:
    """
    Instantiate the storage backend selected by `settings.db_backend`.

    Each backend creates its schema (or loads its file) once, here, so the
    service never has to check whether storage is ready.
    """

    if settings.db_backend == "json":
        repo: AccountRepository = JsonFileAccountRepository(settings.db_path)
    elif settings.db_backend == "postgres":
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL must be set when DB_BACKEND=postgres.")
        # Imported lazily so sqlite/json deployments don't need libpq.
        from infrastructure.db.account_repository_postgres import PostgresAccountRepository

        repo = PostgresAccountRepository({"dsn": settings.database_url})
    else:
        repo = SqliteAccountRepository(settings.db_path)

    if settings.write_queue_size > 0:
        repo = QueuedAccountRepository(repo, maxsize=settings.write_queue_size)
    return repo


def build_service(settings: Settings) -> EconomyService:
    return EconomyService(
        build_account_repository(settings),
        daily_cooldown_ms=settings.daily_cooldown_ms,
        default_bank_capacity=settings.default_bank_capacity,
        serialize=settings.serialize_writes,
    )
