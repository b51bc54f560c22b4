"""LiveCache, TTLCache and the readers-writer lock."""

from __future__ import annotations

import threading

from crypto_pricer.runtime.cache import LiveCache, ReadWriteLock, TTLCache


class TestLiveCache:
    def test_basic_operations(self):
        cache: LiveCache[str, float] = LiveCache()
        cache.set("BTC", 0.0)
        cache.set("ETH", 3000.0)
        cache.set("BTC", 50000.0)

        assert cache.get("BTC") == 50000.0
        assert cache.get("SOL") is None
        assert cache.get("SOL", 0.0) == 0.0
        assert len(cache) == 2
        assert "ETH" in cache
        assert sorted(cache.keys()) == ["BTC", "ETH"]
        assert sorted(cache.values()) == [3000.0, 50000.0]
        assert dict(cache.items()) == {"BTC": 50000.0, "ETH": 3000.0}

        cache.delete("ETH")
        cache.delete("missing")
        assert "ETH" not in cache

        cache.clear()
        assert len(cache) == 0

    def test_concurrent_writers(self):
        cache: LiveCache[int, int] = LiveCache()

        def writer(offset: int) -> None:
            for i in range(200):
                cache.set(offset + i, i)
                cache.keys()

        threads = [threading.Thread(target=writer, args=(n * 1000,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(cache) == 800


class TestTTLCache:
    def test_expiry_on_injected_clock(self):
        now = [100.0]
        cache: TTLCache[str, float] = TTLCache(60, clock=lambda: now[0])
        cache.put("BTC", 1.0)

        now[0] = 159.9
        assert cache.get("BTC") == 1.0
        now[0] = 160.0
        assert cache.get("BTC") is None

    def test_put_drops_expired_entries(self):
        now = [0.0]
        cache: TTLCache[str, float] = TTLCache(10, clock=lambda: now[0])
        cache.put("A", 1.0)
        now[0] = 20.0
        cache.put("B", 2.0)
        assert len(cache) == 1

    def test_clear(self):
        cache: TTLCache[str, float] = TTLCache(60)
        cache.put("A", 1.0)
        cache.clear()
        assert cache.get("A") is None


class TestReadWriteLock:
    def test_readers_share_writers_exclude(self):
        lock = ReadWriteLock()
        inside = threading.Event()
        release = threading.Event()
        writer_done = threading.Event()

        def reader() -> None:
            with lock.read():
                inside.set()
                release.wait(2)

        def writer() -> None:
            with lock.write():
                writer_done.set()

        r = threading.Thread(target=reader)
        r.start()
        assert inside.wait(2)

        # A second reader is admitted while the first holds the lock.
        with lock.read():
            pass

        w = threading.Thread(target=writer)
        w.start()
        assert not writer_done.wait(0.1)
        release.set()
        assert writer_done.wait(2)
        r.join()
        w.join()
