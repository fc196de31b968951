from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List

logger = logging.getLogger(__name__)

DEFAULT_ORIGINS = (
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
)


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'mongo'
    - MONGO_URI: MongoDB connection string. Default 'mongodb://localhost:27017'
    - MONGO_DB: database name. Default 'hotelapp'
    - MONGO_TIMEOUT_MS: per-operation timeout for the Mongo client. Default 10000
    - FRONT_ORIGINS: comma-separated origins allowed by CORS, added to the defaults
    - LOG_LEVEL: root logging level. Default 'INFO'
    - PORT: port used by the uvicorn entry point. Default 8080
    """

    persistence_backend: str = "memory"
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "hotelapp"
    mongo_timeout_ms: int = 10000
    cors_allow_origins: List[str] = field(default_factory=lambda: list(DEFAULT_ORIGINS))
    log_level: str = "INFO"
    port: int = 8080


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value.strip())
    except ValueError:
        logger.warning("Ignoring non-integer setting value %r, using %d", value, default)
        return default


def _parse_origins(extra: str) -> List[str]:
    """
    Merge the default origins with a comma-separated list from env.
    Blank entries are dropped and duplicates keep their first position.
    """
    origins: List[str] = []
    for origin in [*DEFAULT_ORIGINS, *extra.split(",")]:
        trimmed = origin.strip()
        if trimmed and trimmed not in origins:
            origins.append(trimmed)
    return origins


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "mongo"}:
        # Fallback to memory if unsupported
        logger.warning("Unknown PERSISTENCE_BACKEND %r, falling back to memory", backend)
        backend = "memory"

    return Settings(
        persistence_backend=backend,
        mongo_uri=_get_env("MONGO_URI", "mongodb://localhost:27017").strip(),
        mongo_db=_get_env("MONGO_DB", "hotelapp").strip(),
        mongo_timeout_ms=_parse_int(_get_env("MONGO_TIMEOUT_MS", "10000"), 10000),
        cors_allow_origins=_parse_origins(_get_env("FRONT_ORIGINS", "")),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        port=_parse_int(_get_env("PORT", "8080"), 8080),
    )
