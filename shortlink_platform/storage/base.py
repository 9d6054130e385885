"""
Base storage interfaces for Shortlink Platform.

Purpose:
    Define two small, stable contracts that multiple backends (in-memory,
    PostgreSQL) can implement without requiring changes to the registry or
    analytics code:

    BaseLinkStore   - link records keyed by short code
    BaseClickLedger - append-only click events keyed by short code

Both are keyed by short code, not by link id, so click history outlives the
link it belongs to. The link store never filters expired records; expiry is a
registry rule.

Testing & Coverage:
    These are abstract methods and are not executed directly in tests.
    We annotate them with `# pragma: no cover` so coverage tools don't
    penalize the project for un-runnable abstract declarations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from ..models import ClickEvent, LinkRecord


class BaseLinkStore(ABC):
    """Abstract base class for link record backends."""

    @abstractmethod  # pragma: no cover
    def insert_if_absent(self, record: LinkRecord) -> bool:
        """
        Persist `record` unless its short code is already taken.

        This is the only way to reserve a code, and it must be atomic: two
        concurrent inserts of the same code may not both succeed.

        Returns:
            bool: True if inserted, False if the code (or alias) already exists.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get(self, short_code: str) -> Optional[LinkRecord]:
        """
        Retrieve a record by short code, expired or not.

        Returns:
            Optional[LinkRecord]: The record, or None if absent.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def increment_clicks(self, short_code: str) -> bool:
        """
        Atomically add one to the record's click counter.

        Returns:
            bool: False if the code does not exist.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def delete(self, short_code: str) -> bool:
        """
        Hard-remove a record, freeing its code for reuse.

        Returns:
            bool: True if a record was removed.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def list_all(self) -> List[LinkRecord]:
        """All records, newest-created first."""
        raise NotImplementedError


class BaseClickLedger(ABC):
    """Abstract base class for click event backends."""

    @abstractmethod  # pragma: no cover
    def append(self, short_code: str, ip_address: str, user_agent: str, clicked_at: datetime) -> ClickEvent:
        """Add one immutable event and return it."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def events_for(self, short_code: str, limit: Optional[int] = None) -> List[ClickEvent]:
        """
        Events for one code, newest first.

        Args:
            limit (Optional[int]): Return at most this many of the newest events.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def all_events_grouped_by_code(self) -> Dict[str, List[ClickEvent]]:
        """Mapping of short code -> events, each list newest first."""
        raise NotImplementedError

    def append_counted(
        self,
        store: BaseLinkStore,
        short_code: str,
        ip_address: str,
        user_agent: str,
        clicked_at: datetime,
    ) -> Optional[ClickEvent]:
        """
        Increment the link's counter in `store` and append one event, as a unit.

        Backends that can do both in one transaction override this. The
        default relies on the caller holding the per-code lock.

        Returns:
            Optional[ClickEvent]: The appended event, or None (nothing written)
            if the code is not in `store`.
        """
        if not store.increment_clicks(short_code):
            return None
        return self.append(short_code, ip_address, user_agent, clicked_at)
