import asyncio
from datetime import date

from app.services.date_watcher import DateRolloverWatcher


async def test_tick_rolls_over_once(store, clock):
    watcher = DateRolloverWatcher(store, interval_seconds=60)
    assert watcher.tick() is False

    clock.advance(hours=15)
    assert watcher.tick() is True
    assert store.today == date(2026, 10, 20)
    assert watcher.tick() is False


async def test_background_task_checks_periodically(store, clock):
    watcher = DateRolloverWatcher(store, interval_seconds=0.01)
    watcher.start()
    assert watcher.running

    clock.advance(days=1)
    for _ in range(100):
        if store.today == date(2026, 10, 20):
            break
        await asyncio.sleep(0.01)

    await watcher.stop()
    assert store.today == date(2026, 10, 20)
    assert "2026-10-20" in store.record.dad
    assert not watcher.running
