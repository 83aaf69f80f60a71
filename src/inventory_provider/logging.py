"""Logging for the inventory provider.

Every module logs through a child of the ``inventory`` logger, so handlers,
level and format live in one place:

- INVENTORY_LOG_LEVEL (or LOG_LEVEL) picks the level, default INFO.
- LOG_FILE, when set, appends the same records to that file.
- ``set_level`` changes the level at runtime (the CLI's ``--verbose``).
"""

import logging
import os
import threading
from typing import Optional, Union


ROOT_LOGGER_NAME = "inventory"

FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}

_lock = threading.Lock()
_configured = False


def _coerce_level(value: Union[str, int, None]) -> int:
    if isinstance(value, str):
        return _LEVELS.get(value.upper().strip(), logging.INFO)
    if isinstance(value, int):
        return value
    return logging.INFO


def _env_level() -> int:
    return _coerce_level(os.environ.get("INVENTORY_LOG_LEVEL") or os.environ.get("LOG_LEVEL") or "INFO")


def _has_file_handler(logger: logging.Logger, path: str) -> bool:
    target = os.path.abspath(path)
    return any(
        isinstance(h, logging.FileHandler) and h.baseFilename == target for h in logger.handlers
    )


def configure(level: Union[str, int, None] = None, log_file: Optional[str] = None) -> logging.Logger:
    """Set up the ``inventory`` logger once and return it.

    Later calls only apply ``level`` and attach ``log_file`` if it is new.
    """
    global _configured
    root = logging.getLogger(ROOT_LOGGER_NAME)
    formatter = logging.Formatter(fmt=FORMAT, datefmt=DATEFMT)
    with _lock:
        if not _configured:
            sh = logging.StreamHandler()
            sh.setFormatter(formatter)
            root.addHandler(sh)
            root.setLevel(_env_level())
            # Host applications keep their own root handlers
            root.propagate = False
            _configured = True
            log_file = log_file or os.environ.get("LOG_FILE")
        if log_file and not _has_file_handler(root, log_file):
            try:
                fh = logging.FileHandler(log_file, encoding="utf-8")
            except OSError:
                root.warning(f"LOG_FILE {log_file} could not be opened; continuing without file logging")
            else:
                fh.setFormatter(formatter)
                root.addHandler(fh)
    if level is not None:
        set_level(level)
    return root


def set_level(level: Union[str, int]) -> None:
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(_coerce_level(level))


def get_logger(name: str) -> logging.Logger:
    """Return ``inventory.<name>``; records go through the shared handlers."""
    configure()
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
