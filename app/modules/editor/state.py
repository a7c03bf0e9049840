"""
Process-wide editor state that outlives a single report: theme preference
and the online/offline flag. Loaded once with `load()`, persisted on every
change; passed explicitly to the session instead of read from globals.
"""

import enum
import logging
from typing import Optional

from app.core.config import config
from app.core.storage import FileStorage, LocalStorage

logger = logging.getLogger(__name__)

THEME_KEY = "theme"


class Theme(str, enum.Enum):
    LIGHT = "light"
    DARK = "dark"


class AppState:

    def __init__(self, storage: LocalStorage) -> None:
        self.storage = storage
        self.theme = Theme.LIGHT
        self.online = True

    @classmethod
    def from_config(cls, directory: Optional[str] = None) -> "AppState":
        state = cls(FileStorage(directory or config.draft_storage_dir))
        state.load()
        return state

    def load(self) -> None:
        stored = self.storage.get(THEME_KEY)
        if stored is None:
            return
        try:
            self.theme = Theme(stored)
        except ValueError:
            logger.warning("Ignoring unknown stored theme %r", stored)

    def set_theme(self, theme: Theme) -> None:
        self.theme = Theme(theme)
        self.storage.put(THEME_KEY, self.theme.value)

    def toggle_theme(self) -> Theme:
        self.set_theme(Theme.DARK if self.theme is Theme.LIGHT else Theme.LIGHT)
        return self.theme

    def set_online(self, online: bool) -> None:
        if online != self.online:
            logger.info("Connection %s", "restored" if online else "lost")
        self.online = online
