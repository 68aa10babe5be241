"""Per-date daily goal overrides."""

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_store
from app.core.errors import InvalidInput, TransportError
from app.schemas.family import GoalRead, GoalUpdate
from app.services.ledger_store import LedgerStore, parse_date_key

router = APIRouter()


def _date_key_or_422(day: str) -> str:
    try:
        return parse_date_key(day)
    except InvalidInput as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.get("/{family_id}/goals/{day}", response_model=GoalRead)
async def get_goal(day: str, store: LedgerStore = Depends(get_store)):
    """Goal for a date: the override if set, else the default."""
    key = _date_key_or_422(day)
    return GoalRead(date=key, goal=store.goal_for(key), is_override=key in store.record.daily_goals)


@router.put("/{family_id}/goals/{day}", response_model=GoalRead)
async def set_goal(day: str, payload: GoalUpdate, store: LedgerStore = Depends(get_store)):
    """Set the goal for a date (1 <= goal < 278) and re-check goalMet for both users."""
    key = _date_key_or_422(day)
    try:
        await store.set_goal(key, payload.goal)
    except InvalidInput as e:
        raise HTTPException(status_code=422, detail=str(e))
    except TransportError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return GoalRead(date=key, goal=store.goal_for(key), is_override=True)
