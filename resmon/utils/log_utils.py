import logging
import sys
import threading
from typing import Dict, Optional, Set

_LOG_CONFIG = {
    "console": {
        "level": "WARNING",
        "format": f"\033[32m%(asctime)s \033[33m[%(levelname)s] \033[34m%(name)s:%(lineno)d \033[0m%(message)s",
        "datefmt": "%Y-%m-%d %H:%M:%S"
    },
    "file": {
        "level": "DEBUG",
        "format": f"%(asctime)s [%(levelname)s %(name)s:%(funcName)s:%(lineno)d] %(message)s"
    }
}

_LOGGER_LOCK = threading.RLock()
_LIBRARY_ROOT_LOGGER = None


def get_library_root():
    return __name__.split(".")[0]


def configure_project_root_logger(
        log_config: Optional[Dict] = None
):
    global _LIBRARY_ROOT_LOGGER
    log_config = log_config or _LOG_CONFIG

    with _LOGGER_LOCK:
        if _LIBRARY_ROOT_LOGGER:
            return

        from resmon.utils.settings import get as _get_setting, load_error
        log_enabled = _get_setting("log_enabled", True)
        log_level = str(_get_setting("log_level", log_config["console"]["level"])).upper()
        log_file = _get_setting("log_file")

        _LIBRARY_ROOT_LOGGER = logging.getLogger(get_library_root())
        _LIBRARY_ROOT_LOGGER.propagate = False

        if not log_enabled:
            _LIBRARY_ROOT_LOGGER.setLevel(logging.CRITICAL + 1)
            return

        # stdout carries the sample stream, so diagnostics go to stderr
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(
            log_config["console"]["format"],
            datefmt=log_config["console"].get("datefmt"),
        ))
        console_handler.setLevel(log_level)

        _LIBRARY_ROOT_LOGGER.addHandler(console_handler)
        _LIBRARY_ROOT_LOGGER.setLevel("DEBUG")

        if log_file:
            attach_file_handler(log_file, log_config)

        if load_error():
            _LIBRARY_ROOT_LOGGER.warning("Ignoring settings file %s", load_error())


def attach_file_handler(log_path: str, log_config: Optional[Dict] = None) -> None:
    log_config = log_config or _LOG_CONFIG

    file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(log_config["file"]["format"], datefmt=log_config["console"].get("datefmt", None)))
    file_handler.setLevel(log_config["file"]["level"])

    logging.getLogger(get_library_root()).addHandler(file_handler)


def get_logger(name: str = None):
    if name == "__main__":
        name = get_library_root() + ".__main__"
    configure_project_root_logger()
    return logging.getLogger(name)


class WarnOnce:
    """Log each distinct warning a single time.

    A data source that is missing stays missing for the whole run; repeating
    the same warning every cycle would bury the output.
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger
        self._seen: Set[str] = set()

    def __call__(self, key: str, msg: str, *args) -> bool:
        if key in self._seen:
            self._logger.debug(msg, *args)
            return False
        self._seen.add(key)
        self._logger.warning(msg, *args)
        return True
