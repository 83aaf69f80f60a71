import os
from typing import Dict, Optional

from dotenv import dotenv_values

from .logging import get_logger

log = get_logger("config")

DEFAULT_API_URL = "http://127.0.0.1:8002"


def _find_upwards(start_dir: str, filename: str) -> Optional[str]:
    """Return first matching file found when walking up from start_dir.

    Lets the CLI run from a subdirectory (e.g. `src/`) and still pick up the
    repository-level `.env`.
    """
    d = os.path.abspath(start_dir or ".")
    while True:
        candidate = os.path.join(d, filename)
        if os.path.isfile(candidate):
            return candidate
        parent = os.path.dirname(d)
        if parent == d:
            return None
        d = parent


def _read_dotenv(dotenv_dir: str) -> Dict[str, str]:
    """Return the key/value pairs of the nearest .env; environment untouched."""
    path = _find_upwards(dotenv_dir, ".env")
    if not path:
        log.debug(f"No .env found starting from: {os.path.abspath(dotenv_dir)}")
        return {}
    values = {k: v for k, v in dotenv_values(path).items() if v is not None}
    log.debug(f"Loaded {len(values)} key(s) from .env at {path}")
    return values


def _lookup(key: str, dotenv_dir: str) -> Optional[str]:
    v = os.environ.get(key)
    if v:
        return v.strip()
    v = _read_dotenv(dotenv_dir).get(key)
    return v.strip() if v else None


def load_db_path(dotenv_dir: str) -> Optional[str]:
    """Return INVENTORY_DB_PATH from env or .env, if configured."""
    v = _lookup("INVENTORY_DB_PATH", dotenv_dir)
    if v:
        log.info(f"Using INVENTORY_DB_PATH={v}")
    return v


def load_api_url(dotenv_dir: str, fallback: str = DEFAULT_API_URL) -> str:
    return (_lookup("INVENTORY_API_URL", dotenv_dir) or fallback).rstrip("/")
