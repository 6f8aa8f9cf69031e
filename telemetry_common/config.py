from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def _default_env_file() -> str:
    # .env junto al directorio de trabajo del servicio.
    return str(Path.cwd() / ".env")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    database_url: str
    db_pool_recycle_seconds: int
    db_auto_create_schema: bool

    redis_url: Optional[str]
    cache_invalidation_channel: str
    cache_invalidation_url: Optional[str]
    cache_invalidation_timeout_seconds: float

    resolver_directory_timeout_seconds: float


def get_settings() -> Settings:
    # Carga el env file (si existe) sin pisar variables reales del entorno.
    env_file = os.getenv("TELEMETRY_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    database_url = os.getenv("DATABASE_URL", "sqlite:///./telemetry.db")
    db_pool_recycle_seconds = int(os.getenv("DB_POOL_RECYCLE_SECONDS", "300"))
    db_auto_create_schema = _env_flag("DB_AUTO_CREATE_SCHEMA", "1")

    # Sinks de invalidación: Redis tiene prioridad sobre el webhook HTTP.
    redis_url = os.getenv("REDIS_URL") or None
    cache_invalidation_channel = os.getenv("CACHE_INVALIDATION_CHANNEL", "cache:invalidate")
    cache_invalidation_url = os.getenv("CACHE_INVALIDATION_URL") or None
    cache_invalidation_timeout_seconds = float(
        os.getenv("CACHE_INVALIDATION_TIMEOUT_SECONDS", "2.0")
    )

    resolver_directory_timeout_seconds = float(
        os.getenv("RESOLVER_DIRECTORY_TIMEOUT_SECONDS", "5.0")
    )

    return Settings(
        database_url=database_url,
        db_pool_recycle_seconds=db_pool_recycle_seconds,
        db_auto_create_schema=db_auto_create_schema,
        redis_url=redis_url,
        cache_invalidation_channel=cache_invalidation_channel,
        cache_invalidation_url=cache_invalidation_url,
        cache_invalidation_timeout_seconds=cache_invalidation_timeout_seconds,
        resolver_directory_timeout_seconds=resolver_directory_timeout_seconds,
    )
