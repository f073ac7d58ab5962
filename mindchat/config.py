"""Centralized configuration for mindchat.

Typed constants for language handling, context selection, token estimation,
history sync, telemetry and the backend HTTP adapters. Environment variable
overrides (``MINDCHAT_*``) use safe defaults so the library works without any
extra configuration.
"""

from __future__ import annotations

from mindchat.infrastructure.env import (
    ensure_env_loaded,
    get_env_float,
    get_env_int,
    get_optional_env,
)

ensure_env_loaded()

# --- App ---
APP_VERSION: str = "0.1.0"

# --- Language ---
DEFAULT_LANGUAGE: str = get_optional_env("MINDCHAT_DEFAULT_LANGUAGE", "en")

# --- Context selection ---
DEFAULT_MAX_CONTEXT_TOKENS: int = get_env_int("MINDCHAT_MAX_CONTEXT_TOKENS", 4000)
DEFAULT_TOPIC_OVERLAP_THRESHOLD: float = get_env_float("MINDCHAT_TOPIC_OVERLAP_THRESHOLD", 0.3)
TOPIC_WINDOW_MESSAGES: int = 3
SCORING_WEIGHTS_PATH: str = get_optional_env("MINDCHAT_SCORING_WEIGHTS_PATH", "")

# --- Token estimation (average characters per token) ---
CHARS_PER_TOKEN_LATIN: float = 4.0
CHARS_PER_TOKEN_ARABIC: float = 2.5

# --- History sync ---
HISTORY_PAGE_SIZE: int = get_env_int("MINDCHAT_HISTORY_PAGE_SIZE", 30)
HISTORY_PAGE_SIZE_MAX: int = 100

# --- Telemetry ---
METRICS_MAX_STORED: int = 1000
SLOW_SEND_THRESHOLD_MS: float = 10_000.0

# --- Backend ---
BACKEND_URL: str = get_optional_env("MINDCHAT_BACKEND_URL", "http://localhost:8000")
BACKEND_API_KEY: str = get_optional_env("MINDCHAT_BACKEND_API_KEY", "")
BACKEND_TIMEOUT_SECONDS: float = get_env_float("MINDCHAT_BACKEND_TIMEOUT", 30.0)
