"""Runtime configuration read from environment variables (and `.env`)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from domain.models import DAILY_COOLDOWN_MS, DEFAULT_BANK_CAPACITY


DB_BACKENDS = ("sqlite", "json", "postgres")
LOG_FORMATS = ("json", "text")


@dataclass(frozen=True)
class Settings:
    db_backend: str = "sqlite"
    db_path: str = "economy.db"
    database_url: Optional[str] = None
    daily_cooldown_ms: int = DAILY_COOLDOWN_MS
    default_bank_capacity: int = DEFAULT_BANK_CAPACITY
    daily_reward: int = 100
    serialize_writes: bool = True
    write_queue_size: int = 0
    log_level: str = "INFO"
    log_format: str = "json"
    discord_token: Optional[str] = None
    telegram_token: Optional[str] = None


def _int(environ: Mapping[str, str], name: str, default: int, minimum: int = 0) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ValueError(f"{name} must be at least {minimum}, got {value}")
    return value


def _bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _choice(environ: Mapping[str, str], name: str, default: str, choices: tuple) -> str:
    value = (environ.get(name) or default).strip().lower()
    if value not in choices:
        raise ValueError(f"{name} must be one of {', '.join(choices)}, got {value!r}")
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build `Settings` from `environ` (defaults to `os.environ` after loading
    a `.env` file from the working directory, if present).
    """

    if environ is None:
        load_dotenv()
        environ = os.environ

    return Settings(
        db_backend=_choice(environ, "DB_BACKEND", "sqlite", DB_BACKENDS),
        db_path=environ.get("DB_PATH") or "economy.db",
        database_url=environ.get("DATABASE_URL") or None,
        daily_cooldown_ms=_int(environ, "DAILY_COOLDOWN_MS", DAILY_COOLDOWN_MS),
        default_bank_capacity=_int(
            environ, "DEFAULT_BANK_CAPACITY", DEFAULT_BANK_CAPACITY, minimum=1
        ),
        daily_reward=_int(environ, "DAILY_REWARD", 100),
        serialize_writes=_bool(environ, "SERIALIZE_WRITES", True),
        write_queue_size=_int(environ, "WRITE_QUEUE_SIZE", 0),
        log_level=(environ.get("LOG_LEVEL") or "INFO").upper(),
        log_format=_choice(environ, "LOG_FORMAT", "json", LOG_FORMATS),
        discord_token=environ.get("DISCORD_TOKEN") or None,
        telegram_token=environ.get("TELEGRAM_TOKEN") or None,
    )
