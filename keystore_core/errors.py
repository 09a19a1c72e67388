"""
keystore_core.errors
--------------------
Error taxonomy for the caching key store.

- "not found" is not an error: reads return ``None``.
- ``AlreadyExistsError``: a create-once write lost to an existing record.
  Callers racing to initialise the same id should expect it.
- ``BackendError``: anything the durable backend could not do (network,
  throttling, permissions, deadline, corrupt record). The underlying exception
  is chained as ``__cause__``. Retrying is the caller's decision.
"""

from __future__ import annotations


class KeyStoreError(Exception):
    pass


class AlreadyExistsError(KeyStoreError):
    def __init__(self, id: str):
        self.id = id
        super().__init__(f"id already exists: {id}")


class BackendError(KeyStoreError):
    pass


class KeyRecordDecodeError(BackendError):
    """A stored record was readable but malformed."""
    pass
