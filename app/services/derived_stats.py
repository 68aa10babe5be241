"""Derived statistics over a family record.

Pure functions: they read a FamilyRecord and a reference date, never mutate.
The reference date is the ledger's current date (LedgerStore.today).
"""

from __future__ import annotations

from datetime import date, timedelta

from app.core.constants import CHART_WINDOW_DAYS
from app.core.enums import UserType
from app.schemas.family import ChartPoint
from app.schemas.ledger import FamilyRecord, WorkoutSession, date_key


def todays_progress(record: FamilyRecord, user: UserType, today: date) -> int:
    """Total reps for user today, 0 if no record."""
    day = record.day(user, date_key(today))
    return day.total_reps if day else 0


def todays_sessions(record: FamilyRecord, user: UserType, today: date) -> list[WorkoutSession]:
    """Today's sessions in chronological (insertion) order."""
    day = record.day(user, date_key(today))
    return list(day.sessions) if day else []


def streak(record: FamilyRecord, user: UserType, today: date) -> int:
    """
    Consecutive goal-met days, newest first. Today's record does not break the
    streak while its goal is unmet (the day is still in progress); the first
    other unmet date ends the count.
    """
    ledger = record.ledger(user)
    today_key = date_key(today)
    count = 0
    for key in sorted(ledger, reverse=True):
        if ledger[key].goal_met:
            count += 1
        elif key == today_key:
            continue
        else:
            break
    return count


def can_undo(record: FamilyRecord, user: UserType, today: date) -> bool:
    day = record.day(user, date_key(today))
    return bool(day and day.sessions)


def has_achieved_goal(record: FamilyRecord, user: UserType, today: date) -> bool:
    day = record.day(user, date_key(today))
    return day.goal_met if day else False


def progress_series(
    record: FamilyRecord, today: date, days: int = CHART_WINDOW_DAYS
) -> list[ChartPoint]:
    """Both users' daily totals for the last `days` dates ending today (oldest first)."""
    points: list[ChartPoint] = []
    for offset in range(days - 1, -1, -1):
        key = date_key(today - timedelta(days=offset))
        dad = record.day(UserType.DAD, key)
        son = record.day(UserType.SON, key)
        points.append(
            ChartPoint(
                date=key,
                dad=dad.total_reps if dad else 0,
                son=son.total_reps if son else 0,
            )
        )
    return points
