import pytest

from nubefeed.core.metrics import FeedMetrics


def test_counters_per_store():
    metrics = FeedMetrics()
    metrics.incr("1", "requests")
    metrics.incr("1", "requests")
    metrics.incr(2, "cache_hits")
    snapshot = metrics.snapshot()
    assert snapshot["1"]["requests"] == 2
    assert snapshot["2"]["cache_hits"] == 1
    assert snapshot["2"]["requests"] == 0


def test_unknown_counter():
    with pytest.raises(ValueError):
        FeedMetrics().incr("1", "bogus")


def test_record_generation_and_filtered_snapshot():
    metrics = FeedMetrics()
    metrics.record_generation("1", item_count=7, duration_ms=12.345)
    snapshot = metrics.snapshot("1")
    assert snapshot["1"]["generated"] == 1
    assert snapshot["1"]["last_item_count"] == 7
    assert snapshot["1"]["last_duration_ms"] == 12.3
    assert metrics.snapshot("missing") == {}

    # Snapshots are copies
    snapshot["1"]["generated"] = 99
    assert metrics.snapshot("1")["1"]["generated"] == 1
