"""
Per-store feed counters.
"""

import time
from typing import Any, Dict, Optional


COUNTERS = ("requests", "cache_hits", "not_modified", "generated", "unauthorized", "errors")


class FeedMetrics:
    """
    In-process counters keyed by store id.

    Every update is a single dict operation on the event loop, so handlers
    can share one instance without locking.
    """

    def __init__(self):
        self._stores: Dict[str, Dict[str, Any]] = {}

    def _store(self, store_id: str) -> Dict[str, Any]:
        stats = self._stores.get(store_id)
        if stats is None:
            stats = {name: 0 for name in COUNTERS}
            stats.update({"last_item_count": None, "last_generated_at": None, "last_duration_ms": None})
            self._stores[store_id] = stats
        return stats

    def incr(self, store_id: str, counter: str) -> None:
        if counter not in COUNTERS:
            raise ValueError(f"Unknown counter: {counter}")
        self._store(str(store_id))[counter] += 1

    def record_generation(self, store_id: str, item_count: int, duration_ms: float) -> None:
        stats = self._store(str(store_id))
        stats["generated"] += 1
        stats["last_item_count"] = item_count
        stats["last_generated_at"] = time.time()
        stats["last_duration_ms"] = round(duration_ms, 1)

    def snapshot(self, store_id: Optional[str] = None) -> Dict[str, Dict[str, Any]]:
        """Copy of the counters, for one store or all of them."""
        if store_id is not None:
            stats = self._stores.get(str(store_id))
            return {str(store_id): dict(stats)} if stats else {}
        return {sid: dict(stats) for sid, stats in self._stores.items()}
