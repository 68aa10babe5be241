from __future__ import annotations

import json
import random
from datetime import date, datetime, timezone

import httpx
import pytest

from app.schemas.ledger import FamilyRecord
from app.services.motivation import (
    FALLBACK_QUOTES,
    WorkoutStats,
    build_stats,
    fallback_quote,
    fetch_motivational_quote,
    time_left,
)

URL = "https://quotes.example.test/getMotivationalQuote"


def _stats(**overrides) -> WorkoutStats:
    values = dict(
        dad_reps=20,
        son_reps=30,
        dad_goal_met=False,
        son_goal_met=False,
        hours_left=10,
        minutes_left=15,
        current_time="13:44:00",
        current_date="2026-10-19",
    )
    values.update(overrides)
    return WorkoutStats(**values)


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_time_left():
    assert time_left(datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)) == (14, 29)
    assert time_left(datetime(2026, 10, 19, 23, 0)) == (0, 59)


def test_payload_uses_camel_case_names():
    payload = _stats().model_dump(by_alias=True)
    assert set(payload) == {
        "dadReps", "sonReps", "dadGoalMet", "sonGoalMet",
        "hoursLeft", "minutesLeft", "currentTime", "currentDate",
    }


def test_build_stats_from_record():
    record = FamilyRecord.from_document(
        {"Dad": {"2026-10-19": {"sessions": [], "totalReps": 141, "goalMet": True}}}
    )
    stats = build_stats(record, date(2026, 10, 19), datetime(2026, 10, 19, 22, 0))
    assert stats.dad_reps == 141
    assert stats.dad_goal_met is True
    assert stats.son_reps == 0
    assert stats.son_goal_met is False
    assert (stats.hours_left, stats.minutes_left) == (1, 59)
    assert stats.current_time == "22:00:00"


@pytest.mark.parametrize(
    "overrides, expected",
    [
        (dict(dad_goal_met=True, son_goal_met=True), "Both champions"),
        (dict(dad_goal_met=True), "10h left"),
        (dict(son_goal_met=True), "Son's on fire"),
        (dict(hours_left=2), "Crunch time"),
    ],
)
def test_fallback_quote_follows_standings(overrides, expected):
    assert expected in fallback_quote(_stats(**overrides))


def test_fallback_quote_random_pick():
    assert fallback_quote(_stats(), rng=random.Random(7)) in FALLBACK_QUOTES


async def test_fetch_returns_remote_quote():
    received = {}

    def handler(request: httpx.Request) -> httpx.Response:
        received.update(json.loads(request.content))
        return httpx.Response(200, json={"quote": "  Go team!  "})

    async with _client(handler) as client:
        quote = await fetch_motivational_quote(_stats(), url=URL, client=client)

    assert quote == "Go team!"
    assert received["dadReps"] == 20
    assert received["currentDate"] == "2026-10-19"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "boom"}),
        httpx.Response(200, json={"nope": 1}),
        httpx.Response(200, json={"quote": ""}),
        httpx.Response(200, content=b"not json"),
    ],
)
async def test_fetch_falls_back_on_bad_response(response):
    async with _client(lambda request: response) as client:
        quote = await fetch_motivational_quote(_stats(hours_left=1), url=URL, client=client)
    assert "Crunch time" in quote


async def test_fetch_falls_back_on_transport_error():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    async with _client(handler) as client:
        quote = await fetch_motivational_quote(_stats(son_goal_met=True), url=URL, client=client)
    assert "Son's on fire" in quote
