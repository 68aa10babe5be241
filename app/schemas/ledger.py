"""Family document schemas: sessions, day records and the persisted family record.

Field aliases are the wire names of the stored document
(``Dad``/``Son``/``lastUpdated``/``dailyGoals``, ``totalReps``/``goalMet``).
"""

from __future__ import annotations

import re
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import Exercise, UserType
from app.core.errors import InvalidInput

_FAMILY_ID_STRIP = re.compile(r"[^a-z0-9]")


def normalize_family_id(raw: str) -> str:
    """Lowercase and keep only [a-z0-9]. Empty result is rejected."""
    cleaned = _FAMILY_ID_STRIP.sub("", (raw or "").lower())
    if not cleaned:
        raise InvalidInput("Family ID must contain at least one letter or digit")
    return cleaned


def date_key(day: date) -> str:
    """YYYY-MM-DD key for a local calendar date."""
    return day.isoformat()


class WorkoutSession(BaseModel):
    """One logged exercise event. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    exercise: Exercise
    reps: int = Field(..., gt=0)
    time: str
    timestamp: str


class DayRecord(BaseModel):
    """One user's sessions for one date, with the running total and goal flag."""

    model_config = ConfigDict(populate_by_name=True)

    sessions: list[WorkoutSession] = Field(default_factory=list)
    total_reps: int = Field(0, alias="totalReps")
    goal_met: bool = Field(False, alias="goalMet")


class FamilyRecord(BaseModel):
    """Root persisted entity: both users' ledgers plus per-date goal overrides."""

    model_config = ConfigDict(populate_by_name=True)

    dad: dict[str, DayRecord] = Field(default_factory=dict, alias="Dad")
    son: dict[str, DayRecord] = Field(default_factory=dict, alias="Son")
    last_updated: str | None = Field(None, alias="lastUpdated")
    daily_goals: dict[str, int] = Field(default_factory=dict, alias="dailyGoals")

    def ledger(self, user: UserType) -> dict[str, DayRecord]:
        """The date -> DayRecord mapping for one user."""
        return self.dad if UserType(user) is UserType.DAD else self.son

    def day(self, user: UserType, key: str) -> DayRecord | None:
        return self.ledger(user).get(key)

    def to_document(self) -> dict[str, Any]:
        """Serialize to the stored document shape (dailyGoals omitted when empty)."""
        doc = self.model_dump(mode="json", by_alias=True)
        if not doc.get("dailyGoals"):
            doc.pop("dailyGoals", None)
        if doc.get("lastUpdated") is None:
            doc.pop("lastUpdated", None)
        return doc

    @classmethod
    def from_document(cls, doc: dict[str, Any] | None) -> FamilyRecord:
        """Parse a stored document; missing user maps default to empty."""
        doc = dict(doc or {})
        for user in UserType:
            if not doc.get(user.value):
                doc[user.value] = {}
        if doc.get("dailyGoals") is None:
            doc.pop("dailyGoals", None)
        return cls.model_validate(doc)
