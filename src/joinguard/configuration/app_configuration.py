from __future__ import annotations
from dataclasses import replace
from pathlib import Path
import fcntl
import os
from typing import Any, Dict
import yaml

from joinguard.configuration.bot_settings import BotSettings
from joinguard.util.logger import get_logger

logger = get_logger("app_configuration")


API_KEY_ENV = "JOINGUARD_API_KEY"
IRC_PASSWORD_ENV = "JOINGUARD_IRC_PASSWORD"


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches the contents of ``./config/app_config.yml`` and exposes
    them as an immutable :class:`BotSettings` snapshot. ``reload()`` builds a
    fresh snapshot and swaps the reference in one assignment, so readers
    always see either the old settings or the new ones, never a mix.
    Uses fcntl file locks for safe concurrent access across processes.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self._settings: BotSettings = BotSettings()
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                # Acquire a shared lock for reading
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                if not isinstance(data, dict):
                    logger.warning("[APP CONFIGURATION] Config file %s is not a mapping; ignoring.", self.config_path)
                    return {}
                return data
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
        return {}

    @staticmethod
    def apply_environment(settings: BotSettings) -> BotSettings:
        """Overlay secrets supplied through the environment (or ``.env``)."""
        overrides: Dict[str, Any] = {}
        if api_key := os.getenv(API_KEY_ENV):
            overrides["api_key"] = api_key
        if password := os.getenv(IRC_PASSWORD_ENV):
            overrides["password"] = password
        return replace(settings, **overrides) if overrides else settings

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> BotSettings:
        """Reload configuration from disk and return the new settings snapshot.

        A failed read yields default settings rather than keeping the previous
        snapshot, matching what a fresh start would see.
        """
        data = self.load_from_disk()
        settings = self.apply_environment(BotSettings.from_mapping(data))
        self._data = data
        self._settings = settings
        logger.debug("[APP CONFIGURATION] Loaded settings from %s", self.config_path)
        return settings

    @property
    def settings(self) -> BotSettings:
        """Return the current settings snapshot."""
        return self._settings

    @property
    def data(self) -> Dict[str, Any]:
        """Return the raw mapping behind the current snapshot.

        Callers should not mutate it.
        """
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)
