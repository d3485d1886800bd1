"""
User configuration persistence.

Stores tracker settings (advance key, server address, logging) in a JSON
file next to the user's data.
"""

import json
import os
from pathlib import Path
from typing import TypedDict


class TrackerConfig(TypedDict, total=False):
    """User configuration."""
    advance_key: str  # Key that advances the turn (textual key name)
    server_url: str | None  # Tracker server for reorder sync, None = offline
    host: str  # API bind host
    port: int  # API bind port
    log_level: str  # DEBUG, INFO, WARNING, ...
    seed_demo: bool  # Seed the demo encounters on startup


DEFAULT_CONFIG: TrackerConfig = {
    "advance_key": "space",
    "server_url": None,
    "host": "127.0.0.1",
    "port": 8000,
    "log_level": "INFO",
    "seed_demo": True,
}

ENV_PREFIX = "INITIATIVE_"


def get_config_path(data_dir: Path | str = ".") -> Path:
    """Get path to config file."""
    return Path(data_dir) / ".initiative_config.json"


def load_config(data_dir: Path | str = ".") -> TrackerConfig:
    """Load config from file, or return defaults if not found."""
    path = get_config_path(data_dir)

    if not path.exists():
        return DEFAULT_CONFIG.copy()

    try:
        with open(path, "r", encoding="utf-8") as f:
            saved = json.load(f)
        # Merge with defaults to handle missing keys
        config = DEFAULT_CONFIG.copy()
        config.update(saved)
        return config
    except (json.JSONDecodeError, IOError):
        return DEFAULT_CONFIG.copy()


def save_config(config: TrackerConfig, data_dir: Path | str = ".") -> bool:
    """Save config to file. Returns True on success."""
    path = get_config_path(data_dir)
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        return True
    except IOError:
        return False


def apply_env(config: TrackerConfig) -> TrackerConfig:
    """Overlay INITIATIVE_* environment variables on a config."""
    merged = TrackerConfig(**config)
    env = os.environ

    if f"{ENV_PREFIX}ADVANCE_KEY" in env:
        merged["advance_key"] = env[f"{ENV_PREFIX}ADVANCE_KEY"]
    if f"{ENV_PREFIX}SERVER_URL" in env:
        merged["server_url"] = env[f"{ENV_PREFIX}SERVER_URL"] or None
    if f"{ENV_PREFIX}HOST" in env:
        merged["host"] = env[f"{ENV_PREFIX}HOST"]
    if f"{ENV_PREFIX}PORT" in env:
        try:
            merged["port"] = int(env[f"{ENV_PREFIX}PORT"])
        except ValueError:
            pass
    if f"{ENV_PREFIX}LOG_LEVEL" in env:
        merged["log_level"] = env[f"{ENV_PREFIX}LOG_LEVEL"].upper()
    if f"{ENV_PREFIX}SEED_DEMO" in env:
        merged["seed_demo"] = env[f"{ENV_PREFIX}SEED_DEMO"] == "1"

    return merged


def set_advance_key(key: str, data_dir: Path | str = ".") -> None:
    """Save the advance-turn key."""
    config = load_config(data_dir)
    config["advance_key"] = key
    save_config(config, data_dir)


def set_server_url(url: str | None, data_dir: Path | str = ".") -> None:
    """Save the sync server address (None to work offline)."""
    config = load_config(data_dir)
    config["server_url"] = url
    save_config(config, data_dir)
