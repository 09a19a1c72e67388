import logging

import pytest

from keystore_core import CachingKeyStore, load_key_store, load_settings
from keystore_core.logger import get_logger
from keystore_core.storage import InMemoryDurableStore, SQLiteDurableStore

ENV_VARS = [
    "KEYSTORE_PROVIDER",
    "KEYSTORE_CACHE_TTL",
    "KEYSTORE_CACHE_CLEANUP_INTERVAL",
    "KEYSTORE_DB_PATH",
    "KEYSTORE_TABLE_NAME",
    "KEYSTORE_REGION",
    "KEYSTORE_ENDPOINT_URL",
    "KEYSTORE_BACKEND_MAX_WORKERS",
    "KEYSTORE_LOG_LEVEL",
    "AWS_REGION",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    s = load_settings()
    assert s.provider == "sqlite"
    assert s.cache_ttl == 300.0
    assert s.cache_cleanup_interval == 600.0
    assert s.sqlite_path == "db/keystore.db"
    assert s.table_name == "encrypted-data-keys"
    assert s.region is None
    assert s.endpoint_url is None


def test_env_overrides_defaults(monkeypatch):
    monkeypatch.setenv("KEYSTORE_PROVIDER", "DynamoDB")
    monkeypatch.setenv("KEYSTORE_CACHE_TTL", "30")
    monkeypatch.setenv("KEYSTORE_TABLE_NAME", "deks")
    monkeypatch.setenv("AWS_REGION", "eu-west-1")

    s = load_settings()
    assert s.provider == "dynamodb"
    assert s.cache_ttl == 30.0
    assert s.table_name == "deks"
    assert s.region == "eu-west-1"


def test_dict_overrides_env(monkeypatch):
    monkeypatch.setenv("KEYSTORE_PROVIDER", "sqlite")
    monkeypatch.setenv("KEYSTORE_REGION", "eu-west-1")
    s = load_settings({"provider": "memory", "cache_ttl": 0, "region": "us-east-2"})
    assert s.provider == "memory"
    assert s.cache_ttl == 0.0
    assert s.region == "us-east-2"


@pytest.mark.parametrize("value", ["soon", "-1"])
def test_bad_duration(monkeypatch, value):
    monkeypatch.setenv("KEYSTORE_CACHE_TTL", value)
    with pytest.raises(ValueError):
        load_settings()


def test_load_key_store_memory():
    ks = load_key_store({"provider": "memory", "cache_ttl": 60, "cache_cleanup_interval": 0})
    assert isinstance(ks, CachingKeyStore)
    assert isinstance(ks.store, InMemoryDurableStore)
    assert ks.cache.ttl == 60

    ks.set_conditionally("tenant-42", {"dek": b"ct1"})
    assert ks.get("tenant-42") == {"dek": b"ct1"}
    ks.close()


def test_load_key_store_sqlite_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("KEYSTORE_DB_PATH", str(tmp_path / "db" / "keys.db"))
    ks = load_key_store()
    assert isinstance(ks.store, SQLiteDurableStore)
    assert ks.cache._sweeper is not None
    ks.close()
    assert ks.cache._sweeper is None


@pytest.mark.parametrize("provider", [42, ["memory"], "etcd"])
def test_bad_provider(provider):
    with pytest.raises(ValueError):
        load_settings({"provider": provider})


def test_backend_max_workers(monkeypatch):
    assert load_settings().backend_max_workers == 8
    monkeypatch.setenv("KEYSTORE_BACKEND_MAX_WORKERS", "32")
    assert load_settings().backend_max_workers == 32
    with pytest.raises(ValueError):
        load_settings({"backend_max_workers": 0})


def test_logger_names_are_namespaced():
    assert get_logger("cache").name == "keystore.cache"
    assert get_logger("keystore.storage.sqlite").name == "keystore.storage.sqlite"
    assert get_logger().name == "keystore"


def test_component_loggers_share_root_handler():
    root = logging.getLogger("keystore")
    log = get_logger("keystore.test")
    again = get_logger("keystore.test")
    assert log is again
    assert log.handlers == []
    assert log.propagate
    assert len(root.handlers) >= 1
    assert log.getEffectiveLevel() == root.level


def test_logger_level_override():
    log = get_logger("keystore.verbose", level="debug")
    assert log.level == logging.DEBUG
