from __future__ import annotations
from contextlib import contextmanager
from typing import Optional
import json, sqlite3, os, threading, time

from keystore_core.errors import BackendError, KeyRecordDecodeError
from keystore_core.storage.models import InsertResult, KeyRecord
from keystore_core.storage.provider import DurableStore
from keystore_core.utils import canonical_json, deadline_after, deadline_passed

# progress handler granularity, in sqlite VM instructions
_PROGRESS_STEPS = 1000


class SQLiteDurableStore(DurableStore):
    """
    File-backed durable store.

    The PRIMARY KEY on ``id`` is what makes ``insert_if_absent`` atomic across
    processes sharing the same file. Within a process all callers share one
    connection; the lock around it covers local sqlite work only.
    """
    name = "sqlite"

    def __init__(self, path="db/keystore.db", busy_timeout: float = 5.0):
        # If no directory, default to current working directory
        dir_path = os.path.dirname(path) or "."
        os.makedirs(dir_path, exist_ok=True)
        self.path = path
        self.busy_timeout = busy_timeout
        self.db = sqlite3.connect(path, timeout=busy_timeout, check_same_thread=False)
        self._lock = threading.Lock()

        self._init()

    def _init(self) -> None:
        with self._lock:
            self.db.execute("""CREATE TABLE IF NOT EXISTS encrypted_data_keys(
                id TEXT PRIMARY KEY,
                keys TEXT NOT NULL
            )""")
            self.db.commit()

    @contextmanager
    def _session(self, timeout: Optional[float]):
        """
        Hold the connection for one operation. With a ``timeout``, waiting for
        the lock and the running statement are both cut off at the deadline.
        """
        deadline = deadline_after(timeout)
        if deadline_passed(deadline):
            raise BackendError("deadline exceeded")
        if deadline is None:
            with self._lock:
                yield self.db
            return

        if not self._lock.acquire(timeout=max(deadline - time.monotonic(), 0)):
            raise BackendError(f"deadline exceeded after {timeout}s waiting for connection")
        try:
            db = self.db
            busy_ms = int(min(self.busy_timeout, timeout) * 1000)
            db.execute(f"PRAGMA busy_timeout = {busy_ms}")
            db.set_progress_handler(lambda: 1 if deadline_passed(deadline) else 0, _PROGRESS_STEPS)
            try:
                yield db
            finally:
                db.set_progress_handler(None, 0)
                db.execute(f"PRAGMA busy_timeout = {int(self.busy_timeout * 1000)}")
        finally:
            self._lock.release()

    def get_consistent(self, id: str, timeout: Optional[float] = None) -> Optional[KeyRecord]:
        try:
            with self._session(timeout) as db:
                row = db.execute(
                    "SELECT id, keys FROM encrypted_data_keys WHERE id=?", (id,)
                ).fetchone()
        except sqlite3.Error as e:
            raise BackendError(f"sqlite read failed for {id}: {e}") from e

        if not row:
            return None
        rid, keys_json = row
        try:
            keys = json.loads(keys_json)
        except (TypeError, ValueError) as e:
            raise KeyRecordDecodeError(f"malformed keys column for {id}: {e}") from e
        return KeyRecord.from_dict({"id": rid, "keys": keys})

    def insert_if_absent(self, record: KeyRecord, timeout: Optional[float] = None) -> InsertResult:
        keys_json = canonical_json(record.to_dict()["keys"])
        try:
            with self._session(timeout) as db:
                try:
                    cur = db.execute(
                        "INSERT OR IGNORE INTO encrypted_data_keys(id, keys) VALUES(?,?)",
                        (record.id, keys_json),
                    )
                    db.commit()
                except sqlite3.Error:
                    db.rollback()
                    raise
        except sqlite3.Error as e:
            raise BackendError(f"sqlite insert failed for {record.id}: {e}") from e

        if cur.rowcount == 1:
            return InsertResult.CREATED
        return InsertResult.ALREADY_EXISTS

    def close(self):
        with self._lock:
            self.db.close()
