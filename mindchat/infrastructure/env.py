"""
Centralized environment loader for mindchat.

Side Effects:
    - Loads .env file from the project root (once per process)

Usage:
    from mindchat.infrastructure.env import ensure_env_loaded, get_optional_env

    ensure_env_loaded()
    base_url = get_optional_env("MINDCHAT_BACKEND_URL", "http://localhost:8000")
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

_ENV_LOADED = False


def ensure_env_loaded(env_path: Path | None = None) -> None:
    """
    Ensure .env file is loaded exactly once.

    Args:
        env_path: Optional path to .env file. If None, walks up from this
            package looking for one, then falls back to the working directory.

    Side Effects:
        - Loads environment variables from .env (existing vars win)
        - Sets module-level flag to prevent double-loading
    """
    global _ENV_LOADED
    if _ENV_LOADED:
        return

    if env_path is None:
        current = Path(__file__).parent
        while current != current.parent:
            env_candidate = current / ".env"
            if env_candidate.exists():
                env_path = env_candidate
                break
            current = current.parent

    if env_path and env_path.exists():
        load_dotenv(env_path, override=False)
    else:
        load_dotenv(override=False)
    _ENV_LOADED = True


def get_optional_env(key: str, default: str = "") -> str:
    """Return an environment variable or ``default`` when unset or blank."""
    ensure_env_loaded()
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    return value


def get_env_int(key: str, default: int) -> int:
    raw = get_optional_env(key, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def get_env_float(key: str, default: float) -> float:
    raw = get_optional_env(key, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default
