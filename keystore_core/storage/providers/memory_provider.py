import threading
from typing import Dict, Optional

from keystore_core.errors import BackendError
from keystore_core.storage.models import InsertResult, KeyRecord
from keystore_core.storage.provider import DurableStore


class InMemoryDurableStore(DurableStore):
    name = "memory"

    def __init__(self):
        self.records: Dict[str, KeyRecord] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _check_deadline(timeout: Optional[float]):
        if timeout is not None and timeout <= 0:
            raise BackendError("deadline exceeded")

    def get_consistent(self, id: str, timeout: Optional[float] = None) -> Optional[KeyRecord]:
        self._check_deadline(timeout)
        with self._lock:
            return self.records.get(id)

    def insert_if_absent(self, record: KeyRecord, timeout: Optional[float] = None) -> InsertResult:
        self._check_deadline(timeout)
        with self._lock:
            if record.id in self.records:
                return InsertResult.ALREADY_EXISTS
            self.records[record.id] = record
            return InsertResult.CREATED
