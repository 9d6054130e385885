"""
LinkRegistry module for Shortlink Platform.

Responsibilities:
    - Create links from a validated request, with a caller alias or a random code
    - Validate original URLs, aliases and expiration timestamps
    - Guarantee short-code uniqueness through the store's insert-if-absent primitive
    - Hide expired links from redirect-style lookups
    - Record clicks: counter increment + ledger append as one unit per code
    - Delete links (hard removal; click history is kept)

Design notes:
    - Storage is an injected dependency (link store + click ledger), so the
      in-memory and Postgres backends are interchangeable.
    - The code generator is pluggable for tests; it defaults to the random
      URL-safe allocator.
    - Generated codes are retried on collision up to `max_retries`, then
      creation fails with CodeSpaceExhaustedError instead of looping forever.
    - Time comes from an injectable clock so expiry can be tested.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Union
from urllib.parse import urlparse

from pydantic import AnyUrl, TypeAdapter, ValidationError

from ..config import settings
from ..errors import (
    AliasInUseError,
    CodeSpaceExhaustedError,
    InvalidExpirationError,
    InvalidUrlError,
    NotFoundError,
)
from ..models import LinkRecord, utcnow
from ..storage.base import BaseClickLedger, BaseLinkStore
from .allocator import RESERVED_ALIASES, CodeStrategy, generate_code, validate_alias

log = logging.getLogger(__name__)

ALLOWED_SCHEMES = {"http", "https", "ftp"}
CLICK_LOCK_STRIPES = 64

_url_adapter = TypeAdapter(AnyUrl)

Clock = Callable[[], datetime]


class LinkRegistry:
    """
    Owns link records: creation, lookup, click recording and deletion.
    """

    def __init__(
        self,
        store: BaseLinkStore,
        ledger: BaseClickLedger,
        code_strategy: Optional[CodeStrategy] = None,
        base_url: Optional[str] = None,
        code_length: Optional[int] = None,
        max_retries: Optional[int] = None,
        clock: Clock = utcnow,
    ):
        """
        Initialize LinkRegistry with its storage backends.

        Args:
            store (BaseLinkStore): Link record backend.
            ledger (BaseClickLedger): Click event backend.
            code_strategy (Optional[CodeStrategy]): (length) -> code generator.
            base_url (Optional[str]): Prefix for canonical short URLs.
            code_length (Optional[int]): Length of generated codes.
            max_retries (Optional[int]): Generated-code attempts before giving up.
            clock (Clock): Returns the current aware UTC time.
        """
        self.store = store
        self.ledger = ledger
        self.code_strategy = code_strategy or generate_code
        self.base_url = (base_url if base_url is not None else settings.BASE_URL).rstrip("/")
        self.code_length = code_length or settings.CODE_LENGTH
        self.max_retries = max_retries or settings.CODE_MAX_RETRIES
        self.clock = clock

        # Fixed pool; a code always maps to the same stripe.
        self._click_locks: List[threading.Lock] = [threading.Lock() for _ in range(CLICK_LOCK_STRIPES)]

    # ---------------------------------------------------------------------
    # Validation Helpers
    # ---------------------------------------------------------------------
    def _validate_url(self, url: str) -> None:
        """
        Validate that a URL is a well-formed absolute URL: a known scheme plus a host.

        Raises:
            InvalidUrlError: If the URL is malformed.
        """
        try:
            parsed = urlparse(url)
        except ValueError as exc:
            raise InvalidUrlError("originalUrl must be a valid URL") from exc
        if parsed.scheme not in ALLOWED_SCHEMES or not parsed.hostname:
            raise InvalidUrlError("originalUrl must be a valid URL")
        try:
            _url_adapter.validate_python(url)
        except ValidationError as exc:
            raise InvalidUrlError("originalUrl must be a valid URL") from exc
        if any(ch.isspace() for ch in url):
            raise InvalidUrlError("originalUrl must be a valid URL")

    def _parse_expiration(self, expires_at: Union[str, datetime, None]) -> Optional[datetime]:
        """
        Parse an ISO-8601 timestamp (or accept a datetime). Naive values are UTC.

        Raises:
            InvalidExpirationError: If the string is not ISO-8601.
        """
        if expires_at is None or expires_at == "":
            return None
        if isinstance(expires_at, datetime):
            parsed = expires_at
        else:
            raw = expires_at.strip()
            if raw.endswith(("Z", "z")):
                raw = raw[:-1] + "+00:00"
            try:
                parsed = datetime.fromisoformat(raw)
            except ValueError as exc:
                raise InvalidExpirationError("expiresAt must be a valid ISO-8601 date") from exc
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)

    def _short_url(self, code: str) -> str:
        return f"{self.base_url}/{code}"

    def _lock_for(self, code: str) -> threading.Lock:
        return self._click_locks[hash(code) % len(self._click_locks)]

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    def create(
        self,
        original_url: str,
        alias: Optional[str] = None,
        expires_at: Union[str, datetime, None] = None,
    ) -> LinkRecord:
        """
        Create a link for `original_url`, optionally under a caller alias.

        Rules:
            - URL must be absolute (http/https/ftp with a host).
            - If alias provided:
                * must match [A-Za-z0-9_-] and be at most 20 chars.
                * if the code is already taken -> AliasInUseError.
            - If no alias:
                * generate a random code; on collision try again, at most
                  `max_retries` times.

        Returns:
            LinkRecord: The stored record (click_count == 0).

        Raises:
            InvalidUrlError, InvalidAliasError, InvalidExpirationError,
            AliasInUseError, CodeSpaceExhaustedError
        """
        self._validate_url(original_url)
        expiration = self._parse_expiration(expires_at)
        now = self.clock()

        if alias:
            validate_alias(alias)
            record = LinkRecord(
                original_url=original_url,
                short_code=alias,
                short_url=self._short_url(alias),
                alias=alias,
                expires_at=expiration,
                created_at=now,
            )
            if not self.store.insert_if_absent(record):
                raise AliasInUseError("Alias is already in use")
            log.info("Created aliased link %s -> %s", alias, original_url)
            return record

        for attempt in range(1, self.max_retries + 1):
            code = self.code_strategy(self.code_length)
            if code.lower() in RESERVED_ALIASES:
                log.warning("Generated code %s is reserved (attempt %d/%d)", code, attempt, self.max_retries)
                continue
            record = LinkRecord(
                original_url=original_url,
                short_code=code,
                short_url=self._short_url(code),
                expires_at=expiration,
                created_at=now,
            )
            if self.store.insert_if_absent(record):
                log.info("Created link %s -> %s", code, original_url)
                return record
            log.warning("Generated code %s collided (attempt %d/%d)", code, attempt, self.max_retries)

        raise CodeSpaceExhaustedError("Could not allocate a unique short code")

    def lookup(self, code: str) -> Optional[LinkRecord]:
        """The stored record whether expired or not; None if absent."""
        return self.store.get(code)

    def get(self, code: str) -> Optional[LinkRecord]:
        """
        The live record for `code`.

        Returns None when the record is absent, or when its expiration is set
        and strictly in the past. Expired records are not deleted.
        """
        record = self.store.get(code)
        if record is None or record.is_expired(self.clock()):
            return None
        return record

    def info(self, code: str) -> Dict[str, Any]:
        """Public info for a live link: original URL, creation time, clicks."""
        record = self.get(code)
        if record is None:
            raise NotFoundError("Short link not found or expired")
        return {
            "original_url": record.original_url,
            "created_at": record.created_at,
            "click_count": record.click_count,
        }

    def record_click(self, code: str, ip_address: str, user_agent: Optional[str] = "") -> None:
        """
        Count one click on a live link and append the matching ledger event.

        The liveness check runs under a striped per-code lock. The counter
        increment and ledger append are handed to the ledger as one unit
        (a single transaction on Postgres), so each increment has exactly
        one event.

        Raises:
            NotFoundError: If `get(code)` would return None.
        """
        with self._lock_for(code):
            now = self.clock()
            if self.get(code) is None:
                raise NotFoundError("Short link not found or expired")
            event = self.ledger.append_counted(self.store, code, ip_address, user_agent or "", now)
            if event is None:
                # Deleted or expired between the check and the increment.
                raise NotFoundError("Short link not found or expired")

    def delete(self, code: str) -> bool:
        """
        Hard-delete a link regardless of expiry. Click history is left alone.

        Returns:
            bool: True if a record was removed, False if none existed.
        """
        removed = self.store.delete(code)
        if removed:
            log.info("Deleted link %s", code)
        return removed

    def list_all(self) -> List[LinkRecord]:
        """All links, newest-created first."""
        return self.store.list_all()
