# keystore_core/storage/__init__.py

from .models import InsertResult, KeyRecord
from .provider import DurableStore
from .providers.memory_provider import InMemoryDurableStore
from .providers.sqlite_provider import SQLiteDurableStore
from .providers.dynamodb_provider import DynamoDBDurableStore
from keystore_core.config import KeyStoreSettings


def load_durable_store(settings: KeyStoreSettings) -> DurableStore:
    """
    Factory resolver for selecting the durable backend.

        - sqlite (default)
        - memory
        - dynamodb
    """
    provider = settings.provider

    if provider == "memory":
        return InMemoryDurableStore()

    if provider == "sqlite":
        return SQLiteDurableStore(settings.sqlite_path)

    if provider == "dynamodb":
        return DynamoDBDurableStore(
            table_name=settings.table_name,
            region=settings.region,
            endpoint_url=settings.endpoint_url,
            max_workers=settings.backend_max_workers,
        )
    raise ValueError(f"Unknown storage provider: {provider}")


__all__ = [
    "KeyRecord",
    "InsertResult",
    "DurableStore",
    "InMemoryDurableStore",
    "SQLiteDurableStore",
    "DynamoDBDurableStore",
    "load_durable_store",
]
