"""Family connect/disconnect, full record, chart data, CSV export and live stream."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from fastapi.responses import Response

from app.api.deps import get_connections, get_store
from app.core.constants import CHART_WINDOW_DAYS
from app.core.errors import InvalidInput, TransportError
from app.schemas.family import ChartPoint, FamilyConnect, FamilyRead
from app.schemas.ledger import FamilyRecord
from app.services.connections import FamilyConnections
from app.services.csv_export import export_csv, export_filename
from app.services.derived_stats import progress_series
from app.services.ledger_store import LedgerStore

logger = logging.getLogger(__name__)
router = APIRouter()


def _family_read(store: LedgerStore) -> FamilyRead:
    return FamilyRead(family_id=store.family_id, today=store.today.isoformat(), record=store.snapshot())


@router.post("/connect", response_model=FamilyRead)
async def connect_family(
    payload: FamilyConnect,
    connections: FamilyConnections = Depends(get_connections),
):
    """Connect to a family (creating its document on first use)."""
    try:
        store = await connections.connect(payload.family_id)
    except InvalidInput as e:
        raise HTTPException(status_code=422, detail=str(e))
    except TransportError as e:
        logger.exception("Connect failed for %r", payload.family_id)
        raise HTTPException(status_code=502, detail=str(e))
    return _family_read(store)


@router.get("/{family_id}", response_model=FamilyRead)
async def get_family(store: LedgerStore = Depends(get_store)):
    """Full family record as currently held in memory."""
    return _family_read(store)


@router.delete("/{family_id}", status_code=204)
async def disconnect_family(
    family_id: str,
    connections: FamilyConnections = Depends(get_connections),
):
    """Stop syncing the family and forget it on this device."""
    if not await connections.disconnect(family_id):
        raise HTTPException(status_code=404, detail="Family not connected")


@router.get("/{family_id}/chart", response_model=list[ChartPoint])
async def get_chart(
    store: LedgerStore = Depends(get_store),
    days: int = Query(CHART_WINDOW_DAYS, ge=1, le=366),
):
    """Daily totals for both users over the last `days` days (oldest first)."""
    return progress_series(store.record, store.today, days)


@router.get("/{family_id}/export.csv")
async def export_family_csv(store: LedgerStore = Depends(get_store)):
    """Complete workout history for both users as CSV."""
    return Response(
        content=export_csv(store.record),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(store.today)}"'},
    )


@router.websocket("/{family_id}/stream")
async def stream_family(websocket: WebSocket, family_id: str):
    """Push the family document on connect and after every reconcile."""
    connections: FamilyConnections = websocket.app.state.connections
    store = connections.get(family_id)
    await websocket.accept()
    if store is None:
        await websocket.close(code=4404, reason="Family not connected")
        return

    queue: asyncio.Queue[FamilyRecord] = asyncio.Queue()
    remove = store.add_listener(queue.put_nowait)

    async def forward() -> None:
        while True:
            record = await queue.get()
            await websocket.send_json(record.to_document())

    await websocket.send_json(store.snapshot().to_document())
    forwarder = asyncio.create_task(forward())
    try:
        # Inbound messages are ignored; receiving is how a client disconnect is noticed
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Stream client for family %s went away", family_id)
    finally:
        remove()
        forwarder.cancel()
        with contextlib.suppress(asyncio.CancelledError, WebSocketDisconnect, RuntimeError):
            await forwarder
