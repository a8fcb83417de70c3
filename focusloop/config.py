"""Application configuration management."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from focusloop.models import AppConfig

log = logging.getLogger(__name__)

_CONFIG_DIR = Path.home() / ".config" / "focusloop"
_DB_DIR = Path.home() / ".local" / "share" / "focusloop"

_CONFIG_FILE = _CONFIG_DIR / "config.json"


def load_config() -> AppConfig:
    """Load config from disk, returning defaults if none exists or it is unusable."""
    if _CONFIG_FILE.exists():
        try:
            data = json.loads(_CONFIG_FILE.read_text())
            return AppConfig.model_validate(data)
        except (json.JSONDecodeError, ValidationError, OSError) as exc:
            log.warning("Ignoring unreadable config %s: %s", _CONFIG_FILE, exc)
    return AppConfig()


def save_config(config: AppConfig) -> Path:
    """Write config to disk. Returns the config file path."""
    _CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    _CONFIG_FILE.write_text(config.model_dump_json(indent=2))
    return _CONFIG_FILE


def update_config(**changes: Any) -> AppConfig:
    """Apply *changes* on top of the stored config, validate, and save.

    Raises ``pydantic.ValidationError`` if a value is out of range; nothing
    is written in that case.
    """
    current = load_config()
    merged = AppConfig.model_validate({**current.model_dump(), **changes})
    save_config(merged)
    return merged


def get_db_path() -> Path:
    """Resolve the database path from config (or default)."""
    config = load_config()
    if config.db_path is not None:
        p = Path(config.db_path)
        p.parent.mkdir(parents=True, exist_ok=True)
        return p
    _DB_DIR.mkdir(parents=True, exist_ok=True)
    return _DB_DIR / "focusloop.db"


def set_db_path(path: str) -> AppConfig:
    """Set a custom database path and save config."""
    resolved = Path(path).expanduser().resolve()
    if resolved.is_dir():
        resolved = resolved / "focusloop.db"
    resolved.parent.mkdir(parents=True, exist_ok=True)
    config = load_config()
    config.db_path = str(resolved)
    save_config(config)
    return config


def reset_config() -> AppConfig:
    """Restore default durations, keeping the configured database path."""
    config = AppConfig(db_path=load_config().db_path)
    save_config(config)
    return config
