"""
Data model for Shortlink Platform.

Two record types flow between the storage backends, the registry and the
analytics engine:

    LinkRecord  - one short link; owned by the link store, mutated only by the
                  registry (click counter) and removed by an explicit delete.
    ClickEvent  - one redirect that happened; immutable and append-only,
                  keyed by short code so history survives link deletion.

All timestamps are timezone-aware UTC datetimes.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def utcnow() -> datetime:
    """Default clock used across the package."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class LinkRecord:
    original_url: str
    short_code: str
    short_url: str
    created_at: datetime
    alias: Optional[str] = None
    expires_at: Optional[datetime] = None
    click_count: int = 0
    id: str = field(default_factory=new_id)

    @property
    def is_aliased(self) -> bool:
        return self.alias is not None

    def is_expired(self, now: datetime) -> bool:
        """True only when an expiration is set and lies strictly in the past."""
        return self.expires_at is not None and self.expires_at < now

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "original_url": self.original_url,
            "short_code": self.short_code,
            "short_url": self.short_url,
            "alias": self.alias,
            "expires_at": self.expires_at,
            "created_at": self.created_at,
            "click_count": self.click_count,
        }


@dataclass(frozen=True)
class ClickEvent:
    short_code: str
    ip_address: str
    user_agent: str
    clicked_at: datetime
    id: str = field(default_factory=new_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "short_code": self.short_code,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "clicked_at": self.clicked_at,
        }
