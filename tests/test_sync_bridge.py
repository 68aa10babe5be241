from __future__ import annotations

import asyncio

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.errors import NotFound, TransportError
from app.db.base import Base
from app.models import FamilyDocument
from app.schemas.ledger import FamilyRecord
from app.services.sync_bridge import InMemorySyncBridge, SqlSyncBridge

DOC = {
    "Dad": {
        "2026-10-19": {
            "sessions": [{"exercise": "squats", "reps": 50, "time": "09:30:00", "timestamp": "2026-10-19T09:30:00Z"}],
            "totalReps": 50,
            "goalMet": False,
        }
    },
    "Son": {},
    "lastUpdated": "2026-10-19T09:30:00Z",
}


def _record(**overrides) -> FamilyRecord:
    return FamilyRecord.from_document({**DOC, **overrides})


async def test_memory_load_missing_raises_not_found():
    bridge = InMemorySyncBridge()
    with pytest.raises(NotFound):
        await bridge.load("nobody")


async def test_memory_save_is_full_overwrite_and_notifies():
    bridge = InMemorySyncBridge()
    seen: list[FamilyRecord] = []
    unsubscribe = bridge.subscribe("fam", seen.append)

    await bridge.create("fam", _record())
    await bridge.save("fam", _record(Dad={}, lastUpdated="2026-10-19T10:00:00Z"))

    loaded = await bridge.load("fam")
    assert loaded.dad == {}
    assert loaded.last_updated == "2026-10-19T10:00:00Z"
    assert len(seen) == 2

    unsubscribe()
    await bridge.save("fam", _record())
    assert len(seen) == 2


async def test_memory_document_shape():
    bridge = InMemorySyncBridge()
    await bridge.save("fam", _record())
    doc = bridge.document("fam")
    assert set(doc) == {"Dad", "Son", "lastUpdated"}
    assert doc["Dad"]["2026-10-19"]["totalReps"] == 50
    assert doc["Dad"]["2026-10-19"]["sessions"][0]["exercise"] == "squats"


async def test_memory_subscriber_error_does_not_break_save():
    bridge = InMemorySyncBridge()

    def broken(_record):
        raise RuntimeError("listener bug")

    bridge.subscribe("fam", broken)
    await bridge.save("fam", _record())
    assert bridge.document("fam") is not None


@pytest.fixture
async def session_maker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'families.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


async def test_sql_load_missing_raises_not_found(session_maker):
    bridge = SqlSyncBridge(session_maker)
    with pytest.raises(NotFound):
        await bridge.load("nobody")


async def test_sql_create_save_load(session_maker):
    bridge = SqlSyncBridge(session_maker)
    await bridge.create("fam", FamilyRecord(last_updated="2026-10-19T09:00:00Z"))
    assert (await bridge.load("fam")).dad == {}

    await bridge.save("fam", _record(dailyGoals={"2026-10-19": 60}))
    loaded = await bridge.load("fam")
    assert loaded.dad["2026-10-19"].total_reps == 50
    assert loaded.daily_goals == {"2026-10-19": 60}
    assert loaded.last_updated == "2026-10-19T09:30:00Z"


async def test_sql_poll_picks_up_writes_from_another_process(session_maker):
    local = SqlSyncBridge(session_maker, poll_interval=3600)
    other = SqlSyncBridge(session_maker, poll_interval=3600)
    await local.create("fam", FamilyRecord(last_updated="2026-10-19T09:00:00Z"))

    seen: list[FamilyRecord] = []
    local.subscribe("fam", seen.append)
    assert await local.poll_once("fam") is False

    await other.save("fam", _record())
    assert await local.poll_once("fam") is True
    assert seen[-1].dad["2026-10-19"].total_reps == 50
    # same version is not delivered twice
    assert await local.poll_once("fam") is False

    await local.close()


async def test_sql_own_writes_reach_local_subscribers(session_maker):
    bridge = SqlSyncBridge(session_maker, poll_interval=3600)
    seen: list[FamilyRecord] = []
    unsubscribe = bridge.subscribe("fam", seen.append)

    await bridge.save("fam", _record())
    assert len(seen) == 1
    assert await bridge.poll_once("fam") is False

    unsubscribe()
    await bridge.close()


async def test_sql_errors_become_transport_errors(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
    bridge = SqlSyncBridge(async_sessionmaker(engine, expire_on_commit=False))
    try:
        with pytest.raises(TransportError):
            await bridge.load("fam")
        with pytest.raises(TransportError):
            await bridge.save("fam", _record())
    finally:
        await engine.dispose()


BAD_DOC = {
    "Dad": {
        "2026-10-19": {
            "sessions": [{"exercise": "burpees", "reps": 5, "time": "09:30:00", "timestamp": "2026-10-19T09:30:00Z"}],
            "totalReps": 5,
            "goalMet": False,
        }
    },
    "Son": {},
    "lastUpdated": "2026-10-19T09:45:00Z",
}


async def _write_raw(session_maker, document: dict, last_updated: str) -> None:
    async with session_maker() as session:
        row = await session.get(FamilyDocument, "fam")
        row.document = document
        row.last_updated = last_updated
        await session.commit()


async def test_sql_poll_skips_malformed_document(session_maker):
    local = SqlSyncBridge(session_maker, poll_interval=3600)
    other = SqlSyncBridge(session_maker, poll_interval=3600)
    await local.create("fam", FamilyRecord(last_updated="2026-10-19T09:00:00Z"))
    seen: list[FamilyRecord] = []
    local.subscribe("fam", seen.append)

    await _write_raw(session_maker, BAD_DOC, BAD_DOC["lastUpdated"])
    assert await local.poll_once("fam") is False
    assert seen == []

    await other.save("fam", _record(lastUpdated="2026-10-19T10:00:00Z"))
    assert await local.poll_once("fam") is True
    assert seen[-1].dad["2026-10-19"].total_reps == 50

    await local.close()


async def test_sql_poll_task_survives_malformed_document(session_maker):
    local = SqlSyncBridge(session_maker, poll_interval=0.01)
    other = SqlSyncBridge(session_maker, poll_interval=3600)
    await local.create("fam", FamilyRecord(last_updated="2026-10-19T09:00:00Z"))
    seen: list[FamilyRecord] = []
    local.subscribe("fam", seen.append)

    await _write_raw(session_maker, BAD_DOC, BAD_DOC["lastUpdated"])
    await asyncio.sleep(0.2)
    assert not local._poll_tasks["fam"].done()

    await other.save("fam", _record(lastUpdated="2026-10-19T10:00:00Z"))
    for _ in range(100):
        if seen:
            break
        await asyncio.sleep(0.02)
    assert seen[-1].dad["2026-10-19"].total_reps == 50

    await local.close()


async def test_sql_load_malformed_document_is_transport_error(session_maker):
    bridge = SqlSyncBridge(session_maker)
    await bridge.create("fam", FamilyRecord(last_updated="2026-10-19T09:00:00Z"))
    await _write_raw(session_maker, BAD_DOC, BAD_DOC["lastUpdated"])

    with pytest.raises(TransportError):
        await bridge.load("fam")


async def test_memory_load_malformed_document_is_transport_error():
    bridge = InMemorySyncBridge()
    await bridge.save("fam", _record())
    bridge.document("fam")["Dad"]["2026-10-19"]["sessions"][0]["reps"] = 0

    with pytest.raises(TransportError):
        await bridge.load("fam")


async def test_sql_last_unsubscribe_forgets_seen_version(session_maker):
    bridge = SqlSyncBridge(session_maker, poll_interval=3600)
    await bridge.create("fam", FamilyRecord(last_updated="2026-10-19T09:00:00Z"))
    unsubscribe = bridge.subscribe("fam", lambda _record: None)
    assert "fam" in bridge._seen

    unsubscribe()
    assert "fam" not in bridge._seen
    assert "fam" not in bridge._poll_tasks

    await bridge.close()
