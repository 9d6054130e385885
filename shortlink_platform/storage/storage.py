"""
Storage module for Shortlink Platform (in-memory implementation).

Responsibilities:
    - Save link records and reserve their short codes
    - Track click counts
    - Keep the append-only click ledger
    - Enforce short-code and alias uniqueness

Design:
    - In-memory reference implementations of the BaseLinkStore and
      BaseClickLedger contracts, kept simple so tests stay fast and deterministic.
    - A dict keyed by short code, plus a set of taken aliases kept in step
      by insert and delete.
    - Every public method runs under the instance lock, which makes
      insert_if_absent and increment_clicks atomic across threads.
"""

import threading
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Set

from ..models import ClickEvent, LinkRecord
from .base import BaseClickLedger, BaseLinkStore


class LinkStore(BaseLinkStore):
    def __init__(self):
        """
        Initialize empty storage.

        Internal schema:
            self.links = { short_code: LinkRecord }
            self.aliases = { alias, ... }
        """
        self.links: Dict[str, LinkRecord] = {}
        self.aliases: Set[str] = set()
        self._lock = threading.Lock()

    def insert_if_absent(self, record: LinkRecord) -> bool:
        """
        Insert a record unless its code is already used.

        Rules:
            - Code already present -> reject (no short duplicates).
            - Alias already present on another record -> reject. Aliases equal
              their code, so this only matters for hand-built records.
        """
        with self._lock:
            if record.short_code in self.links:
                return False
            if record.alias is not None and record.alias in self.aliases:
                return False
            self.links[record.short_code] = record
            if record.alias is not None:
                self.aliases.add(record.alias)
            return True

    def get(self, short_code: str) -> Optional[LinkRecord]:
        with self._lock:
            return self.links.get(short_code)

    def increment_clicks(self, short_code: str) -> bool:
        with self._lock:
            record = self.links.get(short_code)
            if record is None:
                return False
            record.click_count += 1
            return True

    def delete(self, short_code: str) -> bool:
        with self._lock:
            record = self.links.pop(short_code, None)
            if record is None:
                return False
            self.aliases.discard(record.alias)
            return True

    def list_all(self) -> List[LinkRecord]:
        with self._lock:
            records = list(self.links.values())
        # Insertion order breaks created_at ties so equal timestamps stay stable.
        return [r for _, r in sorted(enumerate(records), key=lambda p: (p[1].created_at, p[0]), reverse=True)]


class ClickLedger(BaseClickLedger):
    def __init__(self):
        """
        Initialize an empty ledger.

        Internal schema:
            self.events = { short_code: [ClickEvent, ...] }   # append order
        """
        self.events: Dict[str, List[ClickEvent]] = defaultdict(list)
        self._lock = threading.Lock()

    def append(self, short_code: str, ip_address: str, user_agent: str, clicked_at: datetime) -> ClickEvent:
        event = ClickEvent(
            short_code=short_code,
            ip_address=ip_address,
            user_agent=user_agent or "",
            clicked_at=clicked_at,
        )
        with self._lock:
            self.events[short_code].append(event)
        return event

    def events_for(self, short_code: str, limit: Optional[int] = None) -> List[ClickEvent]:
        with self._lock:
            logs = list(self.events.get(short_code, []))
        ordered = _newest_first(logs)
        return ordered if limit is None else ordered[:limit]

    def all_events_grouped_by_code(self) -> Dict[str, List[ClickEvent]]:
        with self._lock:
            snapshot = {code: list(logs) for code, logs in self.events.items() if logs}
        return {code: _newest_first(logs) for code, logs in snapshot.items()}


def _newest_first(events: List[ClickEvent]) -> List[ClickEvent]:
    # Stable sort on the reversed list keeps later appends first on equal timestamps.
    return sorted(reversed(events), key=lambda e: e.clicked_at, reverse=True)
