"""
keystore_core.keystore
----------------------
Read-through, write-once access to encrypted data keys.

``CachingKeyStore`` composes a ``DurableStore`` (source of truth) with a
``KeyCache`` (disposable view). Two rules hold throughout:

- create-once is decided only by the store's atomic conditional insert; the
  cache is never consulted on the write path
- the cache is only populated after the store has confirmed the record,
  and never on a failure path
"""

from __future__ import annotations
from typing import Mapping, Optional

from keystore_core.cache import KeyCache
from keystore_core.errors import AlreadyExistsError, BackendError
from keystore_core.logger import get_logger
from keystore_core.storage.models import InsertResult, KeyRecord, validate_id
from keystore_core.storage.provider import DurableStore

log = get_logger("keystore")


class CachingKeyStore:
    def __init__(self, store: DurableStore, cache: KeyCache):
        self.store = store
        self.cache = cache

    def get(self, id: str, timeout: Optional[float] = None) -> Optional[Mapping[str, bytes]]:
        """
        Return the encrypted data keys for ``id``, or None if none were ever set.

        Served from the cache when an unexpired entry exists; otherwise read
        from the store with a consistent read and cached on success.
        Raises BackendError if the store fails or returns a corrupt record.
        """
        validate_id(id)

        keys = self.cache.get(id)
        if keys is not None:
            log.debug(f"[GET] cache hit id={id}")
            return keys

        log.debug(f"[GET] cache miss id={id}")
        try:
            record = self.store.get_consistent(id, timeout=timeout)
        except BackendError as e:
            log.error(f"[GET] backend={self.store.name} id={id} error={e}")
            raise

        if record is None:
            return None

        self.cache.set(id, record.keys)
        return record.keys

    def set_conditionally(
        self,
        id: str,
        keys: Mapping[str, bytes],
        timeout: Optional[float] = None,
    ) -> None:
        """
        Store ``keys`` for ``id`` only if ``id`` has no record yet.

        Raises AlreadyExistsError if a record exists (the existing record is
        left as is, and so is the cache) or BackendError on any other failure.
        On success the cache holds ``keys`` before this returns.
        """
        record = KeyRecord(id=id, keys=keys)

        try:
            result = self.store.insert_if_absent(record, timeout=timeout)
        except BackendError as e:
            log.error(f"[SET] backend={self.store.name} id={id} error={e}")
            raise

        if result is InsertResult.ALREADY_EXISTS:
            log.info(f"[SET] id already exists id={id}")
            raise AlreadyExistsError(id)

        self.cache.set(id, record.keys)
        log.info(f"[SET] created id={id} key_names={sorted(record.keys)}")

    def close(self) -> None:
        self.cache.close()
        self.store.close()
