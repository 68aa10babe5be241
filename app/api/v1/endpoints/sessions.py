"""Log and undo workout sessions; per-user stats for today."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_store, parse_user
from app.core.enums import UserType
from app.core.errors import InvalidInput, TransportError
from app.schemas.family import SessionCreate, SessionResult, UserStats
from app.schemas.ledger import date_key
from app.services.derived_stats import (
    can_undo,
    has_achieved_goal,
    streak,
    todays_progress,
    todays_sessions,
)
from app.services.ledger_store import LedgerStore

router = APIRouter()


def _result(store: LedgerStore, user: UserType, session=None, goal_achieved: bool = False) -> SessionResult:
    return SessionResult(
        session=session,
        total_reps=todays_progress(store.record, user, store.today),
        goal_met=has_achieved_goal(store.record, user, store.today),
        goal_achieved=goal_achieved,
    )


@router.post("/{family_id}/users/{user}/sessions", response_model=SessionResult, status_code=201)
async def add_session(
    payload: SessionCreate,
    user: UserType = Depends(parse_user),
    store: LedgerStore = Depends(get_store),
):
    """Log a session for today. The save must land before this returns."""
    try:
        session = await store.add_session(user, payload.exercise, payload.reps)
    except InvalidInput as e:
        raise HTTPException(status_code=422, detail=str(e))
    except TransportError as e:
        raise HTTPException(status_code=502, detail=str(e))
    achieved = store.goal_achieved is not None and store.goal_achieved.user is user
    return _result(store, user, session, goal_achieved=achieved)


@router.delete("/{family_id}/users/{user}/sessions/last", response_model=SessionResult)
async def undo_last_session(
    user: UserType = Depends(parse_user),
    store: LedgerStore = Depends(get_store),
):
    """Remove today's latest session. session is null when there was nothing to undo."""
    try:
        session = await store.undo_last_session(user)
    except TransportError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return _result(store, user, session)


@router.get("/{family_id}/users/{user}/stats", response_model=UserStats)
async def get_user_stats(
    user: UserType = Depends(parse_user),
    store: LedgerStore = Depends(get_store),
):
    record, today = store.record, store.today
    return UserStats(
        user=user,
        date=date_key(today),
        progress=todays_progress(record, user, today),
        goal=store.goal_for(today),
        goal_met=has_achieved_goal(record, user, today),
        streak=streak(record, user, today),
        can_undo=can_undo(record, user, today),
        sessions=todays_sessions(record, user, today),
    )
