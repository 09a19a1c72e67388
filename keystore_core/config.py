# keystore_core/config.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional
import os

DEFAULT_CACHE_TTL = 300.0
DEFAULT_CACHE_CLEANUP_INTERVAL = 600.0
DEFAULT_BACKEND_MAX_WORKERS = 8
PROVIDERS = ("memory", "sqlite", "dynamodb")


@dataclass
class KeyStoreSettings:
    """
    Resolved runtime settings. Durations are seconds.

    provider/sqlite_path/table_name/region/endpoint_url/backend_max_workers are
    passed through to the durable store binding untouched.
    """
    provider: str = "sqlite"
    cache_ttl: float = DEFAULT_CACHE_TTL
    cache_cleanup_interval: float = DEFAULT_CACHE_CLEANUP_INTERVAL
    sqlite_path: str = "db/keystore.db"
    table_name: str = "encrypted-data-keys"
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    backend_max_workers: int = DEFAULT_BACKEND_MAX_WORKERS


def _duration(name: str, value: Any) -> float:
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number of seconds, got {value!r}")
    if seconds < 0:
        raise ValueError(f"{name} must be >= 0, got {value!r}")
    return seconds


def _provider(value: Any) -> str:
    if not isinstance(value, str) or value.lower() not in PROVIDERS:
        raise ValueError(f"provider must be one of {', '.join(PROVIDERS)}, got {value!r}")
    return value.lower()


def _positive_int(name: str, value: Any) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if number < 1:
        raise ValueError(f"{name} must be >= 1, got {value!r}")
    return number


def load_settings(config: Dict[str, Any] | None = None) -> KeyStoreSettings:
    """
    Resolve settings: config dict first, then KEYSTORE_* environment
    variables, then defaults.
    """
    config = config or {}

    def pick(key: str, env: str, default=None):
        value = config.get(key)
        if value is None:
            value = os.getenv(env, default)
        return value

    return KeyStoreSettings(
        provider=_provider(pick("provider", "KEYSTORE_PROVIDER", "sqlite")),
        cache_ttl=_duration("cache_ttl", pick("cache_ttl", "KEYSTORE_CACHE_TTL", DEFAULT_CACHE_TTL)),
        cache_cleanup_interval=_duration(
            "cache_cleanup_interval",
            pick("cache_cleanup_interval", "KEYSTORE_CACHE_CLEANUP_INTERVAL", DEFAULT_CACHE_CLEANUP_INTERVAL),
        ),
        sqlite_path=pick("sqlite_path", "KEYSTORE_DB_PATH", "db/keystore.db"),
        table_name=pick("table_name", "KEYSTORE_TABLE_NAME", "encrypted-data-keys"),
        region=pick("region", "KEYSTORE_REGION") or os.getenv("AWS_REGION"),
        endpoint_url=pick("endpoint_url", "KEYSTORE_ENDPOINT_URL"),
        backend_max_workers=_positive_int(
            "backend_max_workers",
            pick("backend_max_workers", "KEYSTORE_BACKEND_MAX_WORKERS", DEFAULT_BACKEND_MAX_WORKERS),
        ),
    )
