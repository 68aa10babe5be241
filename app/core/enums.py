"""Shared enums for the ledger and API."""

from enum import Enum


class UserType(str, Enum):
    """The two members of a family. Closed set: there is no third user bucket."""

    DAD = "Dad"
    SON = "Son"


class Exercise(str, Enum):
    """Exercises that can be logged."""

    SQUATS = "squats"
    SIT_UPS = "sit-ups"
    PUSHUPS = "pushups"
    BULGARIAN_SQUATS = "Bulgarian squats"
    LUNGES = "lunges"


class SyncBackend(str, Enum):
    """Which SyncBridge implementation backs connected families."""

    SQL = "sql"
    MEMORY = "memory"
