"""Motivational quote for the family's current standings."""

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_store
from app.services.ledger_store import LedgerStore, local_now
from app.services.motivation import build_stats, fetch_motivational_quote

router = APIRouter()


@router.get("/{family_id}/motivation")
async def get_motivation(request: Request, store: LedgerStore = Depends(get_store)):
    """Quote from the quote function, or a local fallback when it is unavailable."""
    settings = request.app.state.settings
    stats = build_stats(store.record, store.today, local_now())
    quote = await fetch_motivational_quote(
        stats,
        url=settings.motivation_function_url,
        timeout=settings.motivation_timeout_seconds,
    )
    return {"quote": quote, "stats": stats.model_dump(by_alias=True)}
