import threading

from portmon.thread_safe_map import ThreadSafeMap


def test_get_missing_returns_none():
    assert ThreadSafeMap().get("missing") is None


def test_insert_and_overwrite():
    mapping = ThreadSafeMap()
    mapping.insert_or_assign(80, 100)
    assert mapping.get(80) == 100
    mapping.insert_or_assign(80, 200)
    assert mapping.get(80) == 200
    assert len(mapping) == 1


def test_erase_removes_and_tolerates_missing():
    mapping = ThreadSafeMap()
    mapping.insert_or_assign("a", 1)
    mapping.erase("a")
    mapping.erase("a")
    assert "a" not in mapping
    assert mapping.get("a") is None


def test_clear_empties_map():
    mapping = ThreadSafeMap()
    for key in range(5):
        mapping.insert_or_assign(key, key)
    mapping.clear()
    assert mapping.snapshot() == {}


def test_snapshot_is_independent_copy():
    mapping = ThreadSafeMap()
    mapping.insert_or_assign("x", 1)
    snap = mapping.snapshot()
    snap["y"] = 2
    mapping.insert_or_assign("z", 3)
    assert snap == {"x": 1, "y": 2}
    assert mapping.snapshot() == {"x": 1, "z": 3}


def test_concurrent_inserts():
    mapping = ThreadSafeMap()

    def worker(base):
        for offset in range(200):
            mapping.insert_or_assign(base + offset, base)

    threads = [threading.Thread(target=worker, args=(b * 200,)) for b in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(mapping) == 800
    assert set(mapping.snapshot()) == set(range(800))