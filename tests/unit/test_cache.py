from __future__ import annotations

import unittest

from tests.unit._bootstrap import ensure_project_on_path


ensure_project_on_path()


def _payload(n: int) -> dict:
    return {"series": [{"id": "a", "data": [{"x": n, "y": None}]}], "meta": {"points_added": n}}


class TestPayloadCache(unittest.TestCase):
    def test_stored_payload_is_returned(self) -> None:
        from services.cache import InMemoryCache

        cache = InMemoryCache(max_items=4)
        cache.set("series:gap-fix:k1", _payload(1))
        self.assertEqual(cache.get("series:gap-fix:k1"), _payload(1))
        self.assertIsNone(cache.get("series:gap-fix:unknown"))

    def test_recently_read_payload_survives_eviction(self) -> None:
        from services.cache import InMemoryCache

        cache = InMemoryCache(max_items=2)
        cache.set("k1", _payload(1))
        cache.set("k2", _payload(2))
        cache.get("k1")
        cache.set("k3", _payload(3))

        self.assertIsNone(cache.get("k2"))
        self.assertEqual(cache.get("k1"), _payload(1))
        self.assertEqual(len(cache), 2)

    def test_expired_payload_is_dropped(self) -> None:
        from services.cache import InMemoryCache

        cache = InMemoryCache()
        cache.set("short", _payload(1), ttl_s=0)
        cache.set("forever", _payload(2), ttl_s=None)

        self.assertIsNone(cache.get("short"))
        self.assertEqual(cache.get("forever"), _payload(2))
        self.assertEqual(len(cache), 1)

    def test_key_ignores_record_order_but_not_params(self) -> None:
        from services.cache import make_cache_key

        records = [{"id": "a", "data": [{"x": 0, "y": 1}]}]
        k1 = make_cache_key(namespace="series:gap-fix", version="v1", payload={"records": records, "params": {"fix_distance": 1.0, "policy": "nearest_non_gap"}})
        k2 = make_cache_key(namespace="series:gap-fix", version="v1", payload={"params": {"policy": "nearest_non_gap", "fix_distance": 1.0}, "records": records})
        k3 = make_cache_key(namespace="series:gap-fix", version="v1", payload={"records": records, "params": {"fix_distance": 2.0, "policy": "nearest_non_gap"}})

        self.assertEqual(k1, k2)
        self.assertNotEqual(k1, k3)
        self.assertTrue(k1.startswith("series:gap-fix:"))

    def test_null_cache_never_stores(self) -> None:
        from services.cache import NullCache

        cache = NullCache()
        cache.set("k", _payload(1), ttl_s=60)
        self.assertIsNone(cache.get("k"))


if __name__ == "__main__":
    unittest.main()
