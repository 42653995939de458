"""Per-user and global tag/kind preference weights."""

from __future__ import annotations

from svgcraft.models.knowledge import Preferences


class PreferenceStore:
    def __init__(self, global_preferences: Preferences | None = None) -> None:
        self._global = global_preferences or Preferences()
        self._users: dict[str, Preferences] = {}

    def for_user(self, user_id: str | None) -> Preferences | None:
        """None for anonymous or unknown users; their boost comes from global weights only."""
        if not user_id:
            return None
        return self._users.get(user_id)

    @property
    def global_preferences(self) -> Preferences:
        return self._global

    def set_user(self, user_id: str, preferences: Preferences) -> None:
        self._users[user_id] = preferences

    def set_global(self, preferences: Preferences) -> None:
        self._global = preferences
