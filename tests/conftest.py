from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import TransportError
from app.services.ledger_store import LedgerStore
from app.services.sync_bridge import InMemorySyncBridge

FAMILY_ID = "testfamily"
TODAY = "2026-10-19"


class FakeClock:
    """Settable clock feeding both `today` and `now` of a LedgerStore."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def now(self) -> datetime:
        return self.current

    def today(self):
        return self.current.date()

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class FlakyBridge(InMemorySyncBridge):
    """In-memory bridge whose saves can be switched to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_saves = False

    async def save(self, family_id, record):
        if self.fail_saves:
            raise TransportError("network down")
        await super().save(family_id, record)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 10, 19, 9, 30, 0, tzinfo=timezone.utc))


@pytest.fixture
def bridge() -> FlakyBridge:
    return FlakyBridge()


@pytest.fixture
async def store(bridge, clock):
    ledger = LedgerStore(FAMILY_ID, bridge, today=clock.today, now=clock.now)
    await ledger.connect()
    yield ledger
    ledger.disconnect()
