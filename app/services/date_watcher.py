"""Periodic local-date check that rolls a connected ledger over at midnight."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from app.services.ledger_store import LedgerStore

logger = logging.getLogger(__name__)


class DateRolloverWatcher:
    """Calls LedgerStore.check_date() every `interval_seconds` until stopped."""

    def __init__(self, store: LedgerStore, interval_seconds: float = 60.0) -> None:
        self.store = store
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"date-watch-{self.store.family_id}"
        )

    def tick(self) -> bool:
        changed = self.store.check_date()
        if changed:
            logger.info("Family %s rolled over to %s", self.store.family_id, self.store.today.isoformat())
        return changed

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            self.tick()

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
