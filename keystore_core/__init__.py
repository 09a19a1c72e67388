"""
keystore-core
=============
Create-once storage of per-identifier encrypted data keys, fronted by a
time-expiring in-memory cache.

Provides:
- CachingKeyStore: read-through get, conditional (create-once) set
- Durable store bindings: memory, SQLite, DynamoDB
- Error taxonomy: AlreadyExistsError, BackendError
"""

from typing import Any, Dict

from keystore_core.cache import KeyCache
from keystore_core.config import KeyStoreSettings, load_settings
from keystore_core.errors import AlreadyExistsError, BackendError, KeyRecordDecodeError, KeyStoreError
from keystore_core.keystore import CachingKeyStore
from keystore_core.storage import load_durable_store


def load_key_store(config: Dict[str, Any] | None = None) -> CachingKeyStore:
    """Build a CachingKeyStore from a config dict and/or KEYSTORE_* env vars."""
    settings = load_settings(config)
    cache = KeyCache(settings.cache_ttl, cleanup_interval=settings.cache_cleanup_interval)
    return CachingKeyStore(load_durable_store(settings), cache)


__all__ = [
    "CachingKeyStore",
    "KeyCache",
    "KeyStoreSettings",
    "load_settings",
    "load_key_store",
    "KeyStoreError",
    "AlreadyExistsError",
    "BackendError",
    "KeyRecordDecodeError",
]
