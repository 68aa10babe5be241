"""Device-local preferences: connected family id and last selected user.

Stored as a small JSON key/value file and read once at startup so the service
reconnects to the last family automatically.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from app.core.enums import UserType

logger = logging.getLogger(__name__)

FAMILY_ID_KEY = "familyId"
SELECTED_USER_KEY = "selectedUser"


class DevicePreferences:
    def __init__(self, path: Path) -> None:
        self.path = path
        self._values: dict[str, Any] = self._read()

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable preferences file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._values, indent=2), encoding="utf-8")

    @property
    def family_id(self) -> str | None:
        value = self._values.get(FAMILY_ID_KEY)
        return value if isinstance(value, str) and value else None

    def set_family_id(self, family_id: str) -> None:
        self._values[FAMILY_ID_KEY] = family_id
        self._write()

    def clear_family_id(self) -> None:
        if self._values.pop(FAMILY_ID_KEY, None) is not None:
            self._write()

    @property
    def selected_user(self) -> UserType:
        """Last selected user; Dad when unset or not one of the two users."""
        try:
            return UserType(self._values.get(SELECTED_USER_KEY))
        except ValueError:
            return UserType.DAD

    def set_selected_user(self, user: UserType) -> None:
        self._values[SELECTED_USER_KEY] = UserType(user).value
        self._write()
