from datetime import datetime, timedelta

from moviecritic.utils import cache as cache_module
from moviecritic.utils.cache import CacheStore, cached_method


def test_entries_expire_after_ttl(monkeypatch):
    store = CacheStore()
    store.set("key", "value", ttl=60)
    assert store.get("key") == "value"

    later = datetime.now() + timedelta(seconds=61)

    class _Later(datetime):
        @classmethod
        def now(cls, tz=None):
            return later

    monkeypatch.setattr(cache_module, "datetime", _Later)

    assert store.get("key") is None


def test_least_recently_used_entry_is_evicted():
    store = CacheStore(max_size=2)
    store.set("a", 1)
    store.set("b", 2)
    store.get("a")
    store.set("c", 3)

    assert store.get("a") == 1
    assert store.get("b") is None
    assert store.get("c") == 3


def test_cached_method_keys_on_arguments():
    class Client:
        def __init__(self):
            self.cache_store = CacheStore()
            self.calls = 0

        @cached_method(ttl=300)
        def lookup(self, query, page=1):
            self.calls += 1
            return {"query": query, "page": page}

    client = Client()
    client.lookup("matrix")
    client.lookup("matrix")
    client.lookup("matrix", page=2)

    assert client.calls == 2
    assert client.cache_store.get_stats()["hit_rate"] == "33.33%"
