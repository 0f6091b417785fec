from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urlparse

from dotenv import find_dotenv, load_dotenv

DEFAULT_MONGO_URI = "mongodb://mongo:27017/todolist"
DEFAULT_MONGO_DATABASE = "todolist"


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables (and a .env file).

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'mongo'
    - MONGO_URI: connection string. Default 'mongodb://mongo:27017/todolist'
    - MONGO_DATABASE: database name; defaults to the path of MONGO_URI, else 'todolist'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - BROADCAST_UPDATES: 'true' to send mutation events to every open channel (default: false)
    - STATIC_DIR: optional directory holding a built frontend to serve at '/'
    - LOG_LEVEL: logging level name (default: INFO)
    - HOST / PORT: bind address for the bundled server (default: 0.0.0.0 / 3001)
    """

    persistence_backend: str
    mongo_uri: str
    mongo_database: str
    cors_allow_origins: List[str]
    broadcast_updates: bool
    static_dir: Optional[str]
    log_level: str
    host: str
    port: int


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


def _database_from_uri(uri: str) -> str:
    path = urlparse(uri).path.lstrip("/")
    return path or DEFAULT_MONGO_DATABASE


def _parse_port(value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        return default


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    load_dotenv(find_dotenv(usecwd=True))

    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "mongo"}:
        # Fallback to memory if unsupported
        backend = "memory"

    mongo_uri = _get_env("MONGO_URI", DEFAULT_MONGO_URI).strip()
    mongo_database = _get_env("MONGO_DATABASE", _database_from_uri(mongo_uri)).strip()
    static_dir = os.getenv("STATIC_DIR") or None

    return Settings(
        persistence_backend=backend,
        mongo_uri=mongo_uri,
        mongo_database=mongo_database,
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        broadcast_updates=_parse_bool(_get_env("BROADCAST_UPDATES", "false"), False),
        static_dir=static_dir.strip() if static_dir else None,
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        host=_get_env("HOST", "0.0.0.0").strip(),
        port=_parse_port(_get_env("PORT", "3001"), 3001),
    )
