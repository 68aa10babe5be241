"""Ledger error taxonomy."""


class LedgerError(Exception):
    """Base class for ledger and sync errors."""


class InvalidInput(LedgerError):
    """Rejected before mutation: bad reps, goal, user, exercise or family id."""


class TransportError(LedgerError):
    """A SyncBridge operation failed. Local optimistic state is left as-is."""


class NotFound(LedgerError):
    """No remote document for the family yet."""

    def __init__(self, family_id: str) -> None:
        super().__init__(f"No document for family {family_id!r}")
        self.family_id = family_id
