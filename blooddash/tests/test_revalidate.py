from blooddash.core.revalidate import ViewCache


def test_cached_until_revalidated():
    cache = ViewCache(ttl_seconds=60)
    calls = []

    def compute():
        calls.append(1)
        return len(calls)

    assert cache.get_or_compute("/", compute) == 1
    assert cache.get_or_compute("/", compute) == 1

    cache.invalidate("/")
    assert cache.get_or_compute("/", compute) == 2


def test_value_computed_across_invalidation_is_not_stored():
    cache = ViewCache(ttl_seconds=60)

    def stale_read():
        # a write lands while this read is still running
        cache.invalidate("/")
        return "rows-before-write"

    assert cache.get_or_compute("/", stale_read) == "rows-before-write"
    assert cache.get_or_compute("/", lambda: "rows-after-write") == "rows-after-write"


def test_layout_invalidation_covers_nested_reads_in_flight():
    cache = ViewCache(ttl_seconds=60)

    def stale_read():
        cache.invalidate("/dashboard", layout=True)
        return "old"

    assert cache.get_or_compute("/dashboard:c1:admin", stale_read) == "old"
    assert cache.get_or_compute("/dashboard:c1:admin", lambda: "new") == "new"


def test_layout_invalidation_keeps_unrelated_keys():
    cache = ViewCache(ttl_seconds=60)
    cache.get_or_compute("/", lambda: "listing")
    cache.get_or_compute("/dashboard:c1:admin", lambda: "dash")

    cache.invalidate("/dashboard", layout=True)

    assert cache.get_or_compute("/", lambda: "recomputed") == "listing"
    assert cache.get_or_compute("/dashboard:c1:admin", lambda: "dash-2") == "dash-2"
