"""Local (offline) tracker surface: controller, rendering, config and TUI."""

from .config import (
    DEFAULT_CONFIG,
    TrackerConfig,
    apply_env,
    load_config,
    save_config,
)
from .keys import KeyDispatcher, get_key_dispatcher, reset_key_dispatcher
from .local import LocalTracker

__all__ = [
    "DEFAULT_CONFIG",
    "TrackerConfig",
    "apply_env",
    "load_config",
    "save_config",
    "KeyDispatcher",
    "get_key_dispatcher",
    "reset_key_dispatcher",
    "LocalTracker",
]
