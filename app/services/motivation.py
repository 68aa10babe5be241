"""Motivational quote client with a local fallback.

The quote function receives today's numbers for both users and returns
{"quote": "..."}. Any failure falls back to a locally chosen phrase.
"""

from __future__ import annotations

import logging
import random
from datetime import date, datetime, timedelta

import httpx
from pydantic import BaseModel, ConfigDict, Field

from app.core.constants import CRUNCH_TIME_HOURS
from app.core.enums import UserType
from app.schemas.ledger import FamilyRecord
from app.services.derived_stats import has_achieved_goal, todays_progress

logger = logging.getLogger(__name__)

FALLBACK_QUOTES = [
    "💪 The family that squats together, stays together! Keep pushing!",
    "🏃 Dad vs Son: The ultimate fitness showdown continues!",
    "🔥 Every rep counts in this epic father-son battle!",
    "⚡ Sweat now, high-five later! You've got this team!",
    "🎯 141 reps standing between you and victory!",
    "💥 Dad's muscles vs Son's energy - who will win today?",
    "🏆 Champions are made one workout at a time!",
    "⭐ The only bad workout is the one you didn't do!",
    "🚀 Blast off to fitness greatness, team family!",
    "🌟 Strong families finish strong together!",
]


class WorkoutStats(BaseModel):
    """Payload sent to the quote function (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    dad_reps: int = Field(..., alias="dadReps")
    son_reps: int = Field(..., alias="sonReps")
    dad_goal_met: bool = Field(..., alias="dadGoalMet")
    son_goal_met: bool = Field(..., alias="sonGoalMet")
    hours_left: int = Field(..., alias="hoursLeft")
    minutes_left: int = Field(..., alias="minutesLeft")
    current_time: str = Field(..., alias="currentTime")
    current_date: str = Field(..., alias="currentDate")


def time_left(now: datetime) -> tuple[int, int]:
    """Whole hours and minutes until the end of now's day (23:59:59.999)."""
    end_of_day = datetime.combine(now.date(), datetime.max.time(), tzinfo=now.tzinfo)
    remaining = max(end_of_day - now, timedelta(0))
    total_minutes = int(remaining.total_seconds() // 60)
    return total_minutes // 60, total_minutes % 60


def build_stats(record: FamilyRecord, today: date, now: datetime) -> WorkoutStats:
    hours, minutes = time_left(now)
    return WorkoutStats(
        dad_reps=todays_progress(record, UserType.DAD, today),
        son_reps=todays_progress(record, UserType.SON, today),
        dad_goal_met=has_achieved_goal(record, UserType.DAD, today),
        son_goal_met=has_achieved_goal(record, UserType.SON, today),
        hours_left=hours,
        minutes_left=minutes,
        current_time=now.strftime("%H:%M:%S"),
        current_date=today.isoformat(),
    )


def fallback_quote(stats: WorkoutStats, rng: random.Random | None = None) -> str:
    if stats.dad_goal_met and stats.son_goal_met:
        return "🎉 Both champions completed their goals! Time for a victory dance! 🕺💃"
    if stats.dad_goal_met:
        return f"👨 Dad's crushing it! Son, can you catch up with {stats.hours_left}h left? 🏃"
    if stats.son_goal_met:
        return "👦 Son's on fire! Dad, time to show those dad muscles! 💪"
    if stats.hours_left < CRUNCH_TIME_HOURS:
        return "⏰ Crunch time! Every rep counts in the final hours! 🔥"
    return (rng or random).choice(FALLBACK_QUOTES)


async def fetch_motivational_quote(
    stats: WorkoutStats,
    *,
    url: str,
    timeout: float = 10.0,
    client: httpx.AsyncClient | None = None,
) -> str:
    """POST stats to the quote function. Never raises: failures return a fallback phrase."""
    payload = stats.model_dump(by_alias=True)
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as own_client:
                resp = await own_client.post(url, json=payload)
        else:
            resp = await client.post(url, json=payload)
        resp.raise_for_status()
        data = resp.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("Motivational quote request failed: %s", e)
        return fallback_quote(stats)

    quote = data.get("quote") if isinstance(data, dict) else None
    if not isinstance(quote, str) or not quote.strip():
        return fallback_quote(stats)
    return quote.strip()
