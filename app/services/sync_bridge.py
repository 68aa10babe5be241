"""SyncBridge: document get/create/save/subscribe for family records.

The ledger only depends on the ``SyncBridge`` protocol. Two implementations:

- ``InMemorySyncBridge``: process-local dict, for tests and local development.
- ``SqlSyncBridge``: ``families`` table through async SQLAlchemy. Writes made by
  this process reach local subscribers immediately; writes made elsewhere are
  picked up by a per-family polling task.

Every write is a full-document overwrite. Subscribers receive every change,
including the writer's own.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import NotFound, TransportError
from app.models.family import FamilyDocument
from app.schemas.ledger import FamilyRecord

logger = logging.getLogger(__name__)

OnChange = Callable[[FamilyRecord], None]
Unsubscribe = Callable[[], None]


class SyncBridge(Protocol):
    async def load(self, family_id: str) -> FamilyRecord:
        """Fetch the family record. Raises NotFound when absent."""
        ...

    async def create(self, family_id: str, initial: FamilyRecord) -> None:
        ...

    async def save(self, family_id: str, record: FamilyRecord) -> None:
        ...

    def subscribe(self, family_id: str, on_change: OnChange) -> Unsubscribe:
        ...


class _SubscriberRegistry:
    """Per-family callback lists shared by both bridges."""

    def __init__(self) -> None:
        self._subscribers: dict[str, list[OnChange]] = {}

    def _add(self, family_id: str, on_change: OnChange) -> Unsubscribe:
        self._subscribers.setdefault(family_id, []).append(on_change)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(family_id, [])
            if on_change in callbacks:
                callbacks.remove(on_change)
            if not callbacks:
                self._subscribers.pop(family_id, None)
                self._on_last_unsubscribe(family_id)

        return unsubscribe

    def _on_last_unsubscribe(self, family_id: str) -> None:
        pass

    def _has_subscribers(self, family_id: str) -> bool:
        return bool(self._subscribers.get(family_id))

    def _notify(self, family_id: str, document: dict) -> bool:
        """Deliver a stored document to subscribers. Returns False if it does not parse."""
        try:
            record = FamilyRecord.from_document(document)
        except (TypeError, ValueError) as e:
            logger.warning("Skipping malformed document for family %s: %s", family_id, e)
            return False
        for callback in list(self._subscribers.get(family_id, [])):
            # Each subscriber gets its own copy
            try:
                callback(record.model_copy(deep=True))
            except Exception:
                logger.exception("Subscriber for family %s failed", family_id)
        return True


def _parse_loaded(family_id: str, document: dict | None) -> FamilyRecord:
    try:
        return FamilyRecord.from_document(document)
    except (TypeError, ValueError) as e:
        raise TransportError(f"stored document for family {family_id!r} is malformed: {e}") from e


class InMemorySyncBridge(_SubscriberRegistry):
    """Dict-backed bridge. Documents are stored in their serialized form."""

    def __init__(self) -> None:
        super().__init__()
        self._documents: dict[str, dict] = {}

    async def load(self, family_id: str) -> FamilyRecord:
        document = self._documents.get(family_id)
        if document is None:
            raise NotFound(family_id)
        return _parse_loaded(family_id, document)

    async def create(self, family_id: str, initial: FamilyRecord) -> None:
        self._documents[family_id] = initial.to_document()
        self._notify(family_id, self._documents[family_id])

    async def save(self, family_id: str, record: FamilyRecord) -> None:
        self._documents[family_id] = record.to_document()
        self._notify(family_id, self._documents[family_id])

    def subscribe(self, family_id: str, on_change: OnChange) -> Unsubscribe:
        return self._add(family_id, on_change)

    def document(self, family_id: str) -> dict | None:
        """Raw stored document (as persisted), or None."""
        return self._documents.get(family_id)


class SqlSyncBridge(_SubscriberRegistry):
    """Bridge over the ``families`` table."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        poll_interval: float = 2.0,
    ) -> None:
        super().__init__()
        self._session_maker = session_maker
        self._poll_interval = poll_interval
        self._poll_tasks: dict[str, asyncio.Task] = {}
        # lastUpdated of the newest version this process has seen, per family
        self._seen: dict[str, str | None] = {}

    async def load(self, family_id: str) -> FamilyRecord:
        try:
            async with self._session_maker() as session:
                row = await session.get(FamilyDocument, family_id)
        except SQLAlchemyError as e:
            raise TransportError(f"load failed for family {family_id!r}: {e}") from e
        if row is None:
            raise NotFound(family_id)
        self._seen[family_id] = row.last_updated
        return _parse_loaded(family_id, row.document)

    async def create(self, family_id: str, initial: FamilyRecord) -> None:
        document = initial.to_document()
        try:
            async with self._session_maker() as session:
                session.add(
                    FamilyDocument(
                        family_id=family_id,
                        document=document,
                        last_updated=initial.last_updated,
                    )
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise TransportError(f"create failed for family {family_id!r}: {e}") from e
        self._seen[family_id] = initial.last_updated
        self._notify(family_id, document)

    async def save(self, family_id: str, record: FamilyRecord) -> None:
        document = record.to_document()
        try:
            async with self._session_maker() as session:
                row = await session.get(FamilyDocument, family_id)
                if row is None:
                    session.add(
                        FamilyDocument(
                            family_id=family_id,
                            document=document,
                            last_updated=record.last_updated,
                        )
                    )
                else:
                    row.document = document
                    row.last_updated = record.last_updated
                await session.commit()
        except SQLAlchemyError as e:
            raise TransportError(f"save failed for family {family_id!r}: {e}") from e
        self._seen[family_id] = record.last_updated
        self._notify(family_id, document)

    def subscribe(self, family_id: str, on_change: OnChange) -> Unsubscribe:
        unsubscribe = self._add(family_id, on_change)
        if family_id not in self._poll_tasks:
            self._poll_tasks[family_id] = asyncio.get_running_loop().create_task(
                self._poll(family_id), name=f"family-poll-{family_id}"
            )
        return unsubscribe

    def _on_last_unsubscribe(self, family_id: str) -> None:
        task = self._poll_tasks.pop(family_id, None)
        self._seen.pop(family_id, None)
        if task is not None:
            task.cancel()

    async def poll_once(self, family_id: str) -> bool:
        """Check for a newer version written elsewhere; notify subscribers if found."""
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(FamilyDocument.last_updated, FamilyDocument.document).where(
                        FamilyDocument.family_id == family_id
                    )
                )
                row = result.one_or_none()
        except SQLAlchemyError as e:
            raise TransportError(f"poll failed for family {family_id!r}: {e}") from e
        if row is None or row.last_updated == self._seen.get(family_id):
            return False
        self._seen[family_id] = row.last_updated
        return self._notify(family_id, row.document)

    async def _poll(self, family_id: str) -> None:
        while self._has_subscribers(family_id):
            await asyncio.sleep(self._poll_interval)
            try:
                if await self.poll_once(family_id):
                    logger.debug("Remote change picked up for family %s", family_id)
            except TransportError as e:
                logger.warning("%s", e)

    async def close(self) -> None:
        """Cancel all polling tasks."""
        tasks = list(self._poll_tasks.values())
        self._poll_tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
