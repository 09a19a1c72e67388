# keystore_core/storage/provider.py
from __future__ import annotations
from typing import Optional

from keystore_core.storage.models import InsertResult, KeyRecord


class DurableStore:
    """
    Durable backend contract consumed by the caching key store.

    - get_consistent: strongly-consistent point read. ``None`` means absent.
    - insert_if_absent: atomic create-if-not-exists, tagged with InsertResult.

    Every other failure (including an expired ``timeout``, in seconds) is
    raised as BackendError. Backend-specific error codes stay in the binding.
    """
    name: str = "base"

    def get_consistent(self, id: str, timeout: Optional[float] = None) -> Optional[KeyRecord]:
        raise NotImplementedError

    def insert_if_absent(self, record: KeyRecord, timeout: Optional[float] = None) -> InsertResult:
        raise NotImplementedError

    def close(self) -> None:
        return
