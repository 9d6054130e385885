"""
Unit tests for AnalyticsEngine.

Covers:
    - summary_for: stored counter, recent unique IPs over a 20-event window,
      expired links still found, NotFound on absent links
    - global_summary: distinct visitors over all events, last-24h window, ordering
    - detailed_info: full history newest first, NotFound on absent/expired links
    - recent_unique_ips helper
"""

import pytest

from shortlink_platform.analytics.analytics import AnalyticsEngine, recent_unique_ips
from shortlink_platform.errors import NotFoundError
from shortlink_platform.models import ClickEvent


def _click(registry, clock, code, ip, seconds=1):
    clock.advance(seconds=seconds)
    registry.record_click(code, ip, "ua")


# -------------------------
# recent_unique_ips
# -------------------------

def test_recent_unique_ips_preserves_order_and_limit(clock):
    events = [ClickEvent("x", ip, "", clock.now) for ip in ["a", "b", "a", "c", "d", "b", "e", "f"]]
    assert recent_unique_ips(events, 5) == ["a", "b", "c", "d", "e"]
    assert recent_unique_ips(events, 2) == ["a", "b"]
    assert recent_unique_ips([], 5) == []


# -------------------------
# summary_for
# -------------------------

def test_summary_for_six_distinct_ips_drops_oldest(registry, analytics, clock):
    registry.create("https://example.com", alias="six")
    for i in range(1, 7):
        _click(registry, clock, "six", f"10.0.0.{i}")

    summary = analytics.summary_for("six")
    assert summary["click_count"] == 6
    assert summary["last_five_ips"] == ["10.0.0.6", "10.0.0.5", "10.0.0.4", "10.0.0.3", "10.0.0.2"]
    assert summary["original_url"] == "https://example.com"
    assert summary["short_code"] == "six"
    assert summary["created_at"] == registry.lookup("six").created_at


def test_summary_for_dedupes_repeat_visitors(registry, analytics, clock):
    registry.create("https://example.com", alias="rep")
    for ip in ["1.1.1.1", "2.2.2.2", "1.1.1.1", "3.3.3.3", "2.2.2.2"]:
        _click(registry, clock, "rep", ip)
    # newest first: 2, 3, 1, 2, 1
    assert analytics.summary_for("rep")["last_five_ips"] == ["2.2.2.2", "3.3.3.3", "1.1.1.1"]


def test_summary_for_window_hides_ips_older_than_20_clicks(registry, analytics, clock):
    registry.create("https://example.com", alias="win")
    _click(registry, clock, "win", "9.9.9.9")  # click #1, will fall outside the window
    for _ in range(20):
        _click(registry, clock, "win", "1.1.1.1")

    summary = analytics.summary_for("win")
    assert summary["click_count"] == 21
    assert summary["last_five_ips"] == ["1.1.1.1"]


def test_summary_for_uses_stored_counter_not_ledger(registry, analytics, store):
    registry.create("https://example.com", alias="ctr")
    store.increment_clicks("ctr")
    store.increment_clicks("ctr")
    summary = analytics.summary_for("ctr")
    assert summary["click_count"] == 2
    assert summary["last_five_ips"] == []


def test_summary_for_expired_link_still_found(registry, analytics, clock):
    registry.create("https://example.com", alias="exp", expires_at="2025-01-15T12:00:30Z")
    _click(registry, clock, "exp", "1.1.1.1")
    clock.advance(hours=1)

    assert registry.get("exp") is None
    summary = analytics.summary_for("exp")
    assert summary["click_count"] == 1
    assert summary["last_five_ips"] == ["1.1.1.1"]


def test_summary_for_missing_raises(analytics):
    with pytest.raises(NotFoundError):
        analytics.summary_for("missing")


def test_summary_for_deleted_raises(registry, analytics):
    registry.create("https://example.com", alias="del")
    registry.delete("del")
    with pytest.raises(NotFoundError):
        analytics.summary_for("del")


def test_custom_window_sizes(registry, clock):
    engine = AnalyticsEngine(registry, recent_window=3, recent_unique_ips=2)
    registry.create("https://example.com", alias="cw")
    for ip in ["a", "b", "c", "d"]:
        _click(registry, clock, "cw", ip)
    assert engine.summary_for("cw")["last_five_ips"] == ["d", "c"]


# -------------------------
# global_summary
# -------------------------

def test_global_summary_rows(registry, analytics, clock):
    registry.create("https://a.com", alias="a")
    _click(registry, clock, "a", "1.1.1.1")
    clock.advance(hours=30)  # first click now older than 24h
    registry.create("https://b.com", alias="b")
    _click(registry, clock, "a", "2.2.2.2")
    _click(registry, clock, "a", "1.1.1.1")
    _click(registry, clock, "b", "3.3.3.3")

    rows = analytics.global_summary()
    assert [r["short_code"] for r in rows] == ["b", "a"]

    a = rows[1]
    assert a["original_url"] == "https://a.com"
    assert a["total_clicks"] == 3
    assert a["unique_visitors"] == 2
    assert a["clicks_last_24h"] == 2

    b = rows[0]
    assert b["total_clicks"] == 1
    assert b["unique_visitors"] == 1
    assert b["clicks_last_24h"] == 1


def test_global_summary_unique_visitors_not_windowed(registry, analytics, clock):
    registry.create("https://example.com", alias="uv")
    _click(registry, clock, "uv", "9.9.9.9")
    for _ in range(25):
        _click(registry, clock, "uv", "1.1.1.1")
    row = analytics.global_summary()[0]
    assert row["unique_visitors"] == 2
    assert analytics.summary_for("uv")["last_five_ips"] == ["1.1.1.1"]


def test_global_summary_link_without_clicks(registry, analytics):
    registry.create("https://example.com", alias="quiet")
    row = analytics.global_summary()[0]
    assert row["total_clicks"] == 0
    assert row["unique_visitors"] == 0
    assert row["clicks_last_24h"] == 0


def test_global_summary_ignores_orphaned_events(registry, analytics, clock):
    registry.create("https://example.com", alias="orph")
    _click(registry, clock, "orph", "1.1.1.1")
    registry.delete("orph")
    assert analytics.global_summary() == []


def test_global_summary_empty(analytics):
    assert analytics.global_summary() == []


# -------------------------
# detailed_info
# -------------------------

def test_detailed_info_full_history(registry, analytics, clock):
    registry.create("https://example.com", alias="det")
    for i in range(25):
        _click(registry, clock, "det", f"10.0.0.{i}")

    detail = analytics.detailed_info("det")
    assert detail["link"].short_code == "det"
    assert detail["link"].click_count == 25
    stats = detail["statistics"]
    assert len(stats) == 25
    assert stats[0].ip_address == "10.0.0.24"
    assert stats[-1].ip_address == "10.0.0.0"


def test_detailed_info_expired_is_not_found(registry, analytics, clock):
    registry.create("https://example.com", alias="exp2", expires_at="2025-01-15T12:00:30Z")
    clock.advance(minutes=1)
    with pytest.raises(NotFoundError):
        analytics.detailed_info("exp2")
    # same fixture, summary_for still finds it
    assert analytics.summary_for("exp2")["short_code"] == "exp2"


def test_detailed_info_missing(analytics):
    with pytest.raises(NotFoundError):
        analytics.detailed_info("nope")
