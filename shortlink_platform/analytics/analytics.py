"""
Analytics module for Shortlink Platform.

Responsibilities:
    - Per-link summary: stored click counter and the most recent unique IPs
    - Global summary: totals, distinct visitors and last-24h clicks per link
    - Detailed info: link record plus full click history

Everything is derived on read from the LinkRegistry and the click ledger;
nothing here writes.

Expiry handling differs per query and is kept that way on purpose:
    summary_for    - expired-but-present links are still found
    detailed_info  - expired links are NotFound (same rule as registry.get)
    global_summary - lists every stored link, expired or not
"""

from datetime import timedelta
from typing import Any, Dict, List, Optional

from ..config import settings
from ..errors import NotFoundError
from ..manager.link_registry import LinkRegistry
from ..models import ClickEvent
from ..storage.base import BaseClickLedger
from .base import BaseAnalytics

RECENT_PERIOD = timedelta(hours=24)


def recent_unique_ips(events: List[ClickEvent], limit: int) -> List[str]:
    """
    First occurrence of each distinct IP in `events`, in order, up to `limit`.

    `events` is expected newest first, so the result is in reverse
    chronological order of each IP's latest click within the window.
    """
    seen = set()
    ips: List[str] = []
    for event in events:
        if len(ips) >= limit:
            break
        if event.ip_address not in seen:
            seen.add(event.ip_address)
            ips.append(event.ip_address)
    return ips


class AnalyticsEngine(BaseAnalytics):
    def __init__(
        self,
        registry: LinkRegistry,
        ledger: Optional[BaseClickLedger] = None,
        recent_window: Optional[int] = None,
        recent_unique_ips: Optional[int] = None,
    ):
        """
        Args:
            registry (LinkRegistry): Source of link records and the clock.
            ledger (Optional[BaseClickLedger]): Click events; defaults to the
                registry's own ledger.
            recent_window (Optional[int]): Newest events inspected by summary_for.
            recent_unique_ips (Optional[int]): Distinct IPs reported by summary_for.
        """
        self.registry = registry
        self.ledger = ledger if ledger is not None else registry.ledger
        self.recent_window = recent_window or settings.RECENT_WINDOW
        self.recent_unique_ips = recent_unique_ips or settings.RECENT_UNIQUE_IPS

    def summary_for(self, code: str) -> Dict[str, Any]:
        """
        Click count and last unique IPs for a link.

        Returns:
            Dict[str, Any]:
                - short_code, original_url, created_at
                - click_count: the stored counter, not the ledger length
                - last_five_ips: distinct IPs from the newest 20 events,
                  newest first, at most 5. An IP seen only in older clicks
                  does not appear.

        Raises:
            NotFoundError: Only if the link is absent; expiry is ignored here.
        """
        record = self.registry.lookup(code)
        if record is None:
            raise NotFoundError("Short link not found")

        window = self.ledger.events_for(code, limit=self.recent_window)
        return {
            "short_code": record.short_code,
            "original_url": record.original_url,
            "click_count": record.click_count,
            "last_five_ips": recent_unique_ips(window, self.recent_unique_ips),
            "created_at": record.created_at,
        }

    def global_summary(self) -> List[Dict[str, Any]]:
        """
        Aggregate row for every stored link, newest link first.

        Example:
            [
                {
                    "short_code": "ex1",
                    "original_url": "https://example.com",
                    "total_clicks": 5,
                    "unique_visitors": 3,     # distinct IPs across all events
                    "clicks_last_24h": 2,
                    "created_at": datetime(...),
                }
            ]
        """
        since = self.registry.clock() - RECENT_PERIOD
        grouped = self.ledger.all_events_grouped_by_code()

        rows: List[Dict[str, Any]] = []
        for record in self.registry.list_all():
            events = grouped.get(record.short_code, [])
            rows.append({
                "short_code": record.short_code,
                "original_url": record.original_url,
                "total_clicks": record.click_count,
                "unique_visitors": len({e.ip_address for e in events}),
                "clicks_last_24h": sum(1 for e in events if e.clicked_at >= since),
                "created_at": record.created_at,
            })
        return rows

    def detailed_info(self, code: str) -> Dict[str, Any]:
        """
        Link record plus every click event for it, newest first.

        Raises:
            NotFoundError: If the link is absent or expired.
        """
        record = self.registry.get(code)
        if record is None:
            raise NotFoundError("Short link not found or expired")
        return {
            "link": record,
            "statistics": self.ledger.events_for(code),
        }
