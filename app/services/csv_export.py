"""CSV export of the full family history."""

from __future__ import annotations

import csv
import io
from datetime import date

from app.core.enums import UserType
from app.schemas.ledger import FamilyRecord

CSV_HEADER = ["Date", "User", "Exercise", "Reps", "Time", "Daily Total", "Goal Met"]


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def export_rows(record: FamilyRecord) -> list[list[str]]:
    """
    One row per session, users in fixed order, dates ascending per user.
    Daily total and goal flag only on each date's first row; a date with no
    sessions gets a single "No workouts" row.
    """
    rows: list[list[str]] = [CSV_HEADER]
    for user in UserType:
        ledger = record.ledger(user)
        for key in sorted(ledger):
            day = ledger[key]
            if not day.sessions:
                rows.append([key, user.value, "No workouts", "0", "", str(day.total_reps), _yes_no(day.goal_met)])
                continue
            for index, session in enumerate(day.sessions):
                first = index == 0
                rows.append(
                    [
                        key,
                        user.value,
                        session.exercise.value,
                        str(session.reps),
                        session.time,
                        str(day.total_reps) if first else "",
                        _yes_no(day.goal_met) if first else "",
                    ]
                )
    return rows


def export_csv(record: FamilyRecord) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(export_rows(record))
    return buffer.getvalue()


def export_filename(today: date) -> str:
    return f"fitness-data-{today.isoformat()}.csv"
