"""Registry of connected families.

Each connected family owns one LedgerStore and one DateRolloverWatcher. The
store's lifetime is connect -> disconnect; nothing about a family lives at
module level.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import date, datetime

from app.core.constants import DEFAULT_DAILY_GOAL
from app.core.errors import InvalidInput, LedgerError
from app.schemas.ledger import normalize_family_id
from app.services.date_watcher import DateRolloverWatcher
from app.services.device_prefs import DevicePreferences
from app.services.ledger_store import LedgerStore, local_now
from app.services.sync_bridge import SyncBridge

logger = logging.getLogger(__name__)


class FamilyConnections:
    def __init__(
        self,
        bridge: SyncBridge,
        *,
        preferences: DevicePreferences | None = None,
        default_goal: int = DEFAULT_DAILY_GOAL,
        date_check_interval: float = 60.0,
        today: Callable[[], date] = date.today,
        now: Callable[[], datetime] = local_now,
    ) -> None:
        self.bridge = bridge
        self.preferences = preferences
        self._default_goal = default_goal
        self._date_check_interval = date_check_interval
        self._today = today
        self._now = now
        self._stores: dict[str, LedgerStore] = {}
        self._watchers: dict[str, DateRolloverWatcher] = {}
        self._lock = asyncio.Lock()

    async def connect(self, raw_family_id: str) -> LedgerStore:
        """Normalize the id, connect its store (once) and remember it on this device."""
        family_id = normalize_family_id(raw_family_id)
        async with self._lock:
            store = self._stores.get(family_id)
            if store is None:
                store = LedgerStore(
                    family_id,
                    self.bridge,
                    default_goal=self._default_goal,
                    today=self._today,
                    now=self._now,
                )
                await store.connect()
                watcher = DateRolloverWatcher(store, self._date_check_interval)
                watcher.start()
                self._stores[family_id] = store
                self._watchers[family_id] = watcher
                logger.info("Connected family %s", family_id)
        if self.preferences is not None:
            self.preferences.set_family_id(family_id)
        return store

    def get(self, family_id: str) -> LedgerStore | None:
        try:
            return self._stores.get(normalize_family_id(family_id))
        except InvalidInput:
            return None

    @property
    def family_ids(self) -> list[str]:
        return sorted(self._stores)

    async def disconnect(self, family_id: str, *, forget: bool = True) -> bool:
        """Tear down a family's store and watcher. Returns False if it was not connected."""
        try:
            family_id = normalize_family_id(family_id)
        except InvalidInput:
            return False
        async with self._lock:
            store = self._stores.pop(family_id, None)
            watcher = self._watchers.pop(family_id, None)
        if store is None:
            return False
        if watcher is not None:
            await watcher.stop()
        store.disconnect()
        if forget and self.preferences is not None and self.preferences.family_id == family_id:
            self.preferences.clear_family_id()
        return True

    async def restore(self) -> LedgerStore | None:
        """Reconnect to the family remembered in device preferences, if any."""
        if self.preferences is None or self.preferences.family_id is None:
            return None
        try:
            return await self.connect(self.preferences.family_id)
        except LedgerError:
            logger.exception("Auto-reconnect to family %s failed", self.preferences.family_id)
            return None

    async def close(self) -> None:
        """Disconnect everything but keep device preferences for the next start."""
        for family_id in list(self._stores):
            await self.disconnect(family_id, forget=False)
