"""Request/response schemas for the family ledger endpoints."""

from pydantic import BaseModel, Field, StrictInt

from app.core.enums import Exercise, UserType
from app.schemas.ledger import FamilyRecord, WorkoutSession


class FamilyConnect(BaseModel):
    family_id: str = Field(..., min_length=1, max_length=255)


class FamilyRead(BaseModel):
    family_id: str
    today: str
    record: FamilyRecord


class SessionCreate(BaseModel):
    exercise: Exercise
    reps: StrictInt


class SessionResult(BaseModel):
    """Outcome of add/undo. session is None when undo had nothing to remove."""

    session: WorkoutSession | None = None
    total_reps: int
    goal_met: bool
    goal_achieved: bool = False


class GoalUpdate(BaseModel):
    goal: StrictInt


class GoalRead(BaseModel):
    date: str
    goal: int
    is_override: bool = False


class UserStats(BaseModel):
    user: UserType
    date: str
    progress: int
    goal: int
    goal_met: bool
    streak: int
    can_undo: bool
    sessions: list[WorkoutSession] = []


class ChartPoint(BaseModel):
    date: str
    dad: int = 0
    son: int = 0


class PreferencesRead(BaseModel):
    family_id: str | None = None
    selected_user: UserType = UserType.DAD


class PreferencesUpdate(BaseModel):
    selected_user: UserType
