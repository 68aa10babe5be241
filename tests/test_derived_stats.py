from __future__ import annotations

from datetime import date

from app.core.enums import UserType
from app.schemas.ledger import FamilyRecord
from app.services.derived_stats import (
    can_undo,
    has_achieved_goal,
    progress_series,
    streak,
    todays_progress,
    todays_sessions,
)

TODAY = date(2026, 10, 19)


def _day(total: int, met: bool, sessions: list | None = None) -> dict:
    return {"sessions": sessions or [], "totalReps": total, "goalMet": met}


def _session(exercise: str, reps: int, ts: str) -> dict:
    return {"exercise": exercise, "reps": reps, "time": ts[11:19], "timestamp": ts}


def _record(dad: dict | None = None, son: dict | None = None) -> FamilyRecord:
    return FamilyRecord.from_document({"Dad": dad or {}, "Son": son or {}})


def test_streak_skips_unmet_today():
    record = _record(
        dad={
            "2026-10-19": _day(30, False),
            "2026-10-18": _day(150, True),
            "2026-10-17": _day(141, True),
            "2026-10-16": _day(20, False),
            "2026-10-15": _day(200, True),
        }
    )
    assert streak(record, UserType.DAD, TODAY) == 2


def test_streak_counts_met_today():
    record = _record(
        son={
            "2026-10-19": _day(141, True),
            "2026-10-18": _day(141, True),
            "2026-10-17": _day(0, False),
        }
    )
    assert streak(record, UserType.SON, TODAY) == 2


def test_streak_breaks_on_unmet_yesterday():
    record = _record(
        dad={
            "2026-10-19": _day(0, False),
            "2026-10-18": _day(100, False),
            "2026-10-17": _day(141, True),
        }
    )
    assert streak(record, UserType.DAD, TODAY) == 0


def test_streak_without_data_is_zero():
    assert streak(_record(), UserType.DAD, TODAY) == 0


def test_streak_is_per_user():
    record = _record(dad={"2026-10-18": _day(141, True)}, son={"2026-10-18": _day(10, False)})
    assert streak(record, UserType.DAD, TODAY) == 1
    assert streak(record, UserType.SON, TODAY) == 0


def test_todays_progress_and_sessions():
    sessions = [
        _session("squats", 20, "2026-10-19T08:00:00Z"),
        _session("pushups", 15, "2026-10-19T12:00:00Z"),
    ]
    record = _record(dad={"2026-10-19": _day(35, False, sessions)})

    assert todays_progress(record, UserType.DAD, TODAY) == 35
    assert [s.reps for s in todays_sessions(record, UserType.DAD, TODAY)] == [20, 15]
    assert can_undo(record, UserType.DAD, TODAY) is True
    assert has_achieved_goal(record, UserType.DAD, TODAY) is False


def test_absent_today_defaults():
    record = _record(son={"2026-10-18": _day(141, True)})
    assert todays_progress(record, UserType.SON, TODAY) == 0
    assert todays_sessions(record, UserType.SON, TODAY) == []
    assert can_undo(record, UserType.SON, TODAY) is False
    assert has_achieved_goal(record, UserType.SON, TODAY) is False


def test_progress_series_covers_window_oldest_first():
    record = _record(
        dad={"2026-10-19": _day(40, False), "2026-10-06": _day(141, True), "2026-10-05": _day(99, False)},
        son={"2026-10-18": _day(12, False)},
    )
    points = progress_series(record, TODAY)

    assert len(points) == 14
    assert points[0].date == "2026-10-06"
    assert points[-1].date == "2026-10-19"
    assert points[0].dad == 141
    assert points[-1].dad == 40
    assert points[-2].son == 12
    assert all(p.dad == 0 for p in points[1:-1])


def test_progress_series_custom_window():
    points = progress_series(_record(), TODAY, days=3)
    assert [p.date for p in points] == ["2026-10-17", "2026-10-18", "2026-10-19"]
