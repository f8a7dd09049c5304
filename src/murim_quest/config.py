"""Configuration file management for murim-quest.

Reads and writes ~/.murim-quest/config.json. The generator API key is read
from the GOOGLE_API_KEY environment variable rather than the file.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from murim_quest.db import DEFAULT_DB_PATH
from murim_quest.pets import StageRule

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH: Path = Path.home() / ".murim-quest" / "config.json"
DEFAULT_MODEL = "gemini-2.0-flash"


@dataclass
class Settings:
    db_path: Path = DEFAULT_DB_PATH
    pet_stage_rule: StageRule = StageRule.EXACT
    potion_poll_seconds: float = 10.0
    log_level: str = "WARNING"
    log_format: str = "text"
    gemini_model: str = DEFAULT_MODEL
    api_key: str | None = None


CONFIG_KEYS: tuple[str, ...] = (
    "db_path",
    "pet_stage_rule",
    "potion_poll_seconds",
    "log_level",
    "log_format",
    "gemini_model",
)


def load_config(config_path: Path | None = None) -> dict:
    """Read the raw config document. A missing or unreadable file reads as {}."""
    path = config_path or DEFAULT_CONFIG_PATH
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top level is not an object", path)
        return {}
    return data


def save_config(data: dict, config_path: Path | None = None) -> None:
    path = config_path or DEFAULT_CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def load_settings(config_path: Path | None = None) -> Settings:
    """Merge config file values over defaults. Invalid values are ignored."""
    config = load_config(config_path)
    settings = Settings(api_key=os.environ.get("GOOGLE_API_KEY") or None)

    if config.get("db_path"):
        settings.db_path = Path(config["db_path"]).expanduser()
    try:
        settings.pet_stage_rule = StageRule(config.get("pet_stage_rule", StageRule.EXACT.value))
    except ValueError:
        logger.warning("Unknown pet_stage_rule %r, using exact", config.get("pet_stage_rule"))
    try:
        poll = float(config.get("potion_poll_seconds", settings.potion_poll_seconds))
        if poll > 0:
            settings.potion_poll_seconds = poll
    except (TypeError, ValueError):
        logger.warning("Invalid potion_poll_seconds %r", config.get("potion_poll_seconds"))
    if isinstance(config.get("log_level"), str):
        settings.log_level = config["log_level"].upper()
    if config.get("log_format") in ("text", "json"):
        settings.log_format = config["log_format"]
    if isinstance(config.get("gemini_model"), str) and config["gemini_model"]:
        settings.gemini_model = config["gemini_model"]
    return settings


def set_config_value(key: str, value: object, config_path: Path | None = None) -> None:
    """Persist one known setting, preserving the others."""
    if key not in CONFIG_KEYS:
        raise KeyError(f"Unknown setting: {key}")
    config = load_config(config_path)
    config[key] = value
    save_config(config, config_path)
