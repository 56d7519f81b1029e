import json
import logging
import os
from pathlib import Path
from typing import Any

import commentjson  # type: ignore

CONFIG_ENV_VAR = "APITABLE_CONFIG"
CONFIG_FILE_NAME = "apitable.jsonc"


class ConfigurationManager:
    """
    Manages loading and merging of application configuration.
    """

    def __init__(self, *, base_path: Path | None = None) -> None:
        self._base_path = base_path or Path(__file__).parent

    def load_config(
        self, user_config_path: str | None, overrides: dict[str, Any]
    ) -> dict[str, Any]:
        """
        Loads defaults, merges with user JSONC, and applies runtime overrides.
        """
        config = self._load_defaults()

        if user_config_path:
            self._merge_user_file(config, Path(user_config_path))

        # Apply overrides (filtering out None values)
        config.update({k: v for k, v in overrides.items() if v is not None})

        if not config.get("search_root"):
            config["search_root"] = os.getcwd()

        return config

    @staticmethod
    def discover_user_config(cwd: Path) -> str | None:
        """
        Finds the user config: $APITABLE_CONFIG wins, then apitable.jsonc in cwd.
        """
        explicit = os.environ.get(CONFIG_ENV_VAR)
        if explicit:
            return explicit
        candidate = cwd / CONFIG_FILE_NAME
        if candidate.is_file():
            return str(candidate)
        return None

    @staticmethod
    def log_level(config: dict[str, Any]) -> int:
        level = logging.getLevelName(str(config.get("log_level", "WARNING")).upper())
        return level if isinstance(level, int) else logging.WARNING

    def _load_defaults(self) -> dict[str, Any]:
        defaults_path = self._base_path / "defaults.json"
        if not defaults_path.exists():
            return {}

        try:
            with open(defaults_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError):
            return {}

    def _merge_user_file(self, config: dict[str, Any], path: Path) -> None:
        if not path.is_file():
            raise FileNotFoundError(f"Config file not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                user_conf = commentjson.load(f)
        except Exception as e:
            raise IOError(f"Failed to parse config file {path}: {e}")
        if not isinstance(user_conf, dict):
            raise IOError(f"Config file {path} must contain a JSON object")
        config.update(user_conf)
