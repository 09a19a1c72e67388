import pytest

from keystore_core.cache import KeyCache
from keystore_core.keystore import CachingKeyStore
from keystore_core.storage import InMemoryDurableStore, SQLiteDurableStore
from keystore_core.errors import BackendError


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class CountingStore(InMemoryDurableStore):
    """In-memory store that counts backend calls and can be told to fail."""

    def __init__(self):
        super().__init__()
        self.get_calls = 0
        self.insert_calls = 0
        self.fail_with = None

    def get_consistent(self, id, timeout=None):
        self.get_calls += 1
        if self.fail_with:
            raise self.fail_with
        return super().get_consistent(id, timeout=timeout)

    def insert_if_absent(self, record, timeout=None):
        self.insert_calls += 1
        if self.fail_with:
            raise self.fail_with
        return super().insert_if_absent(record, timeout=timeout)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def counting_store():
    return CountingStore()


@pytest.fixture
def keystore(counting_store, clock):
    return CachingKeyStore(counting_store, KeyCache(ttl=60, timer=clock))


@pytest.fixture(params=["memory", "sqlite"])
def durable_store(request, tmp_path):
    if request.param == "memory":
        store = InMemoryDurableStore()
    else:
        store = SQLiteDurableStore(str(tmp_path / "keystore.db"))
    yield store
    store.close()


@pytest.fixture
def backend_down():
    return BackendError("connection reset")
