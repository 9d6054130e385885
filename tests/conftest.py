"""
Global pytest fixtures for the Shortlink Platform test suite.

Responsibilities:
    - Provide isolated in-memory LinkStore and ClickLedger fixtures
    - Provide a controllable clock so expiry and 24h windows are deterministic
    - Provide a LinkRegistry / AnalyticsEngine pair wired to those fixtures
    - Provide a fresh FastAPI TestClient built by the app factory around them

Why an app factory?
    Using `create_app(registry=...)` ensures each test gets fresh in-memory
    state and lets the test reach the same registry the HTTP layer uses.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from main import create_app
from shortlink_platform.analytics.analytics import AnalyticsEngine
from shortlink_platform.manager.link_registry import LinkRegistry
from shortlink_platform.storage.storage import ClickLedger, LinkStore

T0 = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def store() -> LinkStore:
    """Fresh in-memory link store."""
    return LinkStore()


@pytest.fixture
def ledger() -> ClickLedger:
    """Fresh in-memory click ledger."""
    return ClickLedger()


@pytest.fixture
def registry(store: LinkStore, ledger: ClickLedger, clock: FrozenClock) -> LinkRegistry:
    """LinkRegistry wired to the store, ledger and clock fixtures."""
    return LinkRegistry(store=store, ledger=ledger, base_url="http://sho.rt", clock=clock)


@pytest.fixture
def analytics(registry: LinkRegistry) -> AnalyticsEngine:
    return AnalyticsEngine(registry)


@pytest.fixture
def client(registry: LinkRegistry, analytics: AnalyticsEngine) -> TestClient:
    """
    Provide a fresh TestClient around the registry fixture.

    Tests can drive the clock fixture to expire links between requests.
    """
    return TestClient(create_app(registry=registry, analytics=analytics))
