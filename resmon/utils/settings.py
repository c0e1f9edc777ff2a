"""
User settings - loads ``~/.resmon.yaml`` (or the file named by
``__RESMON_SETTINGS__``) on top of built-in defaults.

The file is optional.  Command-line flags describe *what* to sample; the
settings file tunes *how* (which tools to call, timing overhead, logging).
"""
import os
import yaml
from typing import Any, Dict, Optional

from resmon._config import (
    ENV_KEY_SETTINGS, DEFAULT_SETTINGS_PATH,
    TOP_COMMAND, GPU_COMMAND, TOP_OVERHEAD, TOP_DELAY_MAX,
)


_DEFAULTS: Dict[str, Any] = {
    # Logging
    "log_enabled": True,
    "log_level": "WARNING",             # DEBUG | INFO | WARNING | ERROR | CRITICAL
    "log_file": None,                   # append DEBUG logs to this file
    # Data sources
    "os_source": "top",                 # top | psutil | auto
    "top_command": TOP_COMMAND,
    "gpu_command": GPU_COMMAND,
    "tool_timeout": None,               # seconds; null waits for the tool indefinitely
    # Timing
    "top_overhead": TOP_OVERHEAD,
    "top_delay_max": TOP_DELAY_MAX,
}

# ── Module-level cache ───────────────────────────────────────
_cached: Dict[str, Any] = {}
_load_error: Optional[str] = None


def settings_path() -> str:
    return os.environ.get(ENV_KEY_SETTINGS) or DEFAULT_SETTINGS_PATH


def load_settings(path: Optional[str] = None) -> Dict[str, Any]:
    """Load settings from *path*, falling back to defaults.

    A missing file is normal.  An unreadable or malformed one is remembered
    in ``load_error()`` so the logger can report it once it is configured.
    Result is cached in-process; call ``reload_settings`` to refresh.
    """
    global _cached, _load_error
    path = path or settings_path()
    merged = dict(_DEFAULTS)
    _load_error = None
    if os.path.exists(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if isinstance(data, dict):
                merged.update(data)
            else:
                _load_error = f"{path}: expected a mapping, got {type(data).__name__}"
        except (OSError, yaml.YAMLError) as exc:
            _load_error = f"{path}: {exc}"
    _cached = merged
    return merged


def load_error() -> Optional[str]:
    return _load_error


def get(key: str, default: Any = None) -> Any:
    """Quick accessor for a single setting (loads on first use)."""
    if not _cached:
        load_settings()
    return _cached.get(key, _DEFAULTS.get(key, default))


def reload_settings(path: Optional[str] = None) -> Dict[str, Any]:
    """Force reload from disk."""
    return load_settings(path)
