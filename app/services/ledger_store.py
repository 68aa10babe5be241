"""LedgerStore: the in-memory family record for one connected family.

Mutations (add, undo, goal change) are applied locally first and then the whole
record is saved through the SyncBridge. A failed save raises TransportError and
leaves the local change in place; the next successful save or remote push
overwrites whichever side is behind. Remote snapshots replace local state
wholesale (last write wins).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timezone

from app.core.constants import (
    DAILY_GOAL_MAX_EXCLUSIVE,
    DAILY_GOAL_MIN,
    DEFAULT_DAILY_GOAL,
)
from app.core.enums import Exercise, UserType
from app.core.errors import InvalidInput, LedgerError, NotFound, TransportError
from app.schemas.ledger import DayRecord, FamilyRecord, WorkoutSession, date_key
from app.services.sync_bridge import SyncBridge, Unsubscribe

logger = logging.getLogger(__name__)


def local_now() -> datetime:
    return datetime.now().astimezone()


def _utc_iso(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _as_user(user: UserType | str) -> UserType:
    try:
        return UserType(user)
    except ValueError:
        raise InvalidInput(f"Unknown user {user!r}") from None


def _as_exercise(exercise: Exercise | str) -> Exercise:
    try:
        return Exercise(exercise)
    except ValueError:
        raise InvalidInput(f"Unknown exercise {exercise!r}") from None


def parse_date_key(day: date | str) -> str:
    if isinstance(day, date):
        return date_key(day)
    try:
        return date_key(date.fromisoformat(day))
    except (TypeError, ValueError):
        raise InvalidInput(f"Invalid date {day!r}, expected YYYY-MM-DD") from None


def validate_goal(value: int) -> int:
    """Accept 1 <= value < 278. Booleans and non-integers are rejected."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput("Goal must be an integer")
    if not DAILY_GOAL_MIN <= value < DAILY_GOAL_MAX_EXCLUSIVE:
        raise InvalidInput(
            f"Goal must be at least {DAILY_GOAL_MIN} and less than {DAILY_GOAL_MAX_EXCLUSIVE}"
        )
    return value


@dataclass(frozen=True)
class GoalAchievement:
    """Set when an add pushes a user's day over the goal; cleared by undo and rollover."""

    user: UserType
    achieved_at: datetime


class LedgerStore:
    """Authoritative in-memory record for one family, bound to a SyncBridge."""

    def __init__(
        self,
        family_id: str,
        bridge: SyncBridge,
        *,
        default_goal: int = DEFAULT_DAILY_GOAL,
        today: Callable[[], date] = date.today,
        now: Callable[[], datetime] = local_now,
    ) -> None:
        self.family_id = family_id
        self._bridge = bridge
        self._default_goal = default_goal
        self._today_provider = today
        self._now_provider = now
        self._record = FamilyRecord()
        self._current_date = today()
        self._connected = False
        self._unsubscribe: Unsubscribe | None = None
        self._listeners: list[Callable[[FamilyRecord], None]] = []
        self.goal_achieved: GoalAchievement | None = None

    # -- lifecycle ---------------------------------------------------------

    @property
    def connected(self) -> bool:
        return self._connected

    async def connect(self) -> FamilyRecord:
        """Load (or create) the family document and start listening for changes."""
        try:
            record = await self._bridge.load(self.family_id)
            logger.info("Loaded existing document for family %s", self.family_id)
        except NotFound:
            logger.info("No document for family %s, creating one", self.family_id)
            record = FamilyRecord(last_updated=_utc_iso(self._now_provider()))
            await self._bridge.create(self.family_id, record)
        self._record = record.model_copy(deep=True)
        self._current_date = self._today_provider()
        self._ensure_today()
        self._connected = True
        self._unsubscribe = self._bridge.subscribe(self.family_id, self.reconcile)
        return self.snapshot()

    def disconnect(self) -> None:
        """Stop listening and drop local state. In-flight saves are not cancelled."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._connected = False
        self._listeners.clear()
        self._record = FamilyRecord()
        self.goal_achieved = None
        logger.info("Disconnected family %s", self.family_id)

    def add_listener(self, callback: Callable[[FamilyRecord], None]) -> Callable[[], None]:
        """Register a callback invoked with a snapshot after every reconcile."""
        self._listeners.append(callback)

        def remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    # -- state -------------------------------------------------------------

    @property
    def today(self) -> date:
        """The ledger's current date. Advances only through check_date()."""
        return self._current_date

    @property
    def record(self) -> FamilyRecord:
        """Live record. Treat as read-only; use snapshot() to keep a copy."""
        return self._record

    def snapshot(self) -> FamilyRecord:
        return self._record.model_copy(deep=True)

    def goal_for(self, day: date | str) -> int:
        return self._record.daily_goals.get(parse_date_key(day), self._default_goal)

    def _ensure_today(self) -> None:
        key = date_key(self._current_date)
        for user in UserType:
            self._record.ledger(user).setdefault(key, DayRecord())

    def _require_connected(self) -> None:
        if not self._connected:
            raise LedgerError(f"Family {self.family_id!r} is not connected")

    # -- mutations ---------------------------------------------------------

    async def add_session(
        self, user: UserType | str, exercise: Exercise | str, reps: int
    ) -> WorkoutSession:
        """Append a session to today's record for user and save."""
        user = _as_user(user)
        exercise = _as_exercise(exercise)
        if isinstance(reps, bool) or not isinstance(reps, int) or reps <= 0:
            raise InvalidInput("Reps must be a positive integer")
        self._require_connected()

        now = self._now_provider()
        session = WorkoutSession(
            exercise=exercise,
            reps=reps,
            time=now.strftime("%H:%M:%S"),
            timestamp=_utc_iso(now),
        )
        key = date_key(self._current_date)
        day = self._record.ledger(user).setdefault(key, DayRecord())
        was_met = day.goal_met
        day.sessions.append(session)
        day.total_reps += reps
        day.goal_met = day.total_reps >= self.goal_for(key)
        if day.goal_met and not was_met:
            self.goal_achieved = GoalAchievement(user=user, achieved_at=now)
            logger.info("%s reached the goal for %s (%d reps)", user.value, key, day.total_reps)

        await self._persist()
        return session

    async def undo_last_session(self, user: UserType | str) -> WorkoutSession | None:
        """Remove today's most recent session for user. No-op when there is none."""
        user = _as_user(user)
        self._require_connected()
        key = date_key(self._current_date)
        day = self._record.day(user, key)
        if day is None or not day.sessions:
            return None

        last = day.sessions.pop()
        day.total_reps -= last.reps
        day.goal_met = day.total_reps >= self.goal_for(key)
        self.goal_achieved = None

        await self._persist()
        return last

    async def set_goal(self, day: date | str, value: int) -> None:
        """Override the goal for a date and re-derive goalMet for both users."""
        value = validate_goal(value)
        key = parse_date_key(day)
        self._require_connected()

        self._record.daily_goals[key] = value
        for user in UserType:
            record = self._record.day(user, key)
            if record is not None:
                record.goal_met = record.total_reps >= value

        await self._persist()

    def reconcile(self, remote: FamilyRecord) -> None:
        """Replace local state with a remote snapshot, then ensure today exists."""
        if not self._connected:
            logger.debug("Dropping snapshot for disconnected family %s", self.family_id)
            return
        self._record = remote.model_copy(deep=True)
        self._ensure_today()
        for listener in list(self._listeners):
            listener(self.snapshot())

    def check_date(self) -> bool:
        """Advance to the new local date if it changed. Returns True on rollover."""
        new_date = self._today_provider()
        if new_date == self._current_date:
            return False
        previous = self._current_date
        self._current_date = new_date
        self.goal_achieved = None
        if self._connected:
            self._ensure_today()
        logger.info(
            "Date changed from %s to %s for family %s",
            previous.isoformat(),
            new_date.isoformat(),
            self.family_id,
        )
        return True

    async def _persist(self) -> None:
        self._record.last_updated = _utc_iso(self._now_provider())
        try:
            await self._bridge.save(self.family_id, self.snapshot())
        except TransportError:
            logger.warning(
                "Save failed for family %s; local state is ahead of the store",
                self.family_id,
            )
            raise
