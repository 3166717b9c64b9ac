"""Project-wide settings.

All environment-dependent values are read **lazily** on first access
(not at import time) and cached via ``functools.lru_cache``.  Call
``reset()`` in tests to clear the cache after changing env vars —
no ``importlib.reload`` required.
"""

from __future__ import annotations

import functools
import os
from pathlib import Path
from typing import TYPE_CHECKING, Final

from psychodiag import paths


def _float_env(name: str, default: float) -> float:
    """Parse float environment values with a safe fallback."""
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _optional_float_env(name: str) -> float | None:
    """Parse an optional positive float; None when unset, invalid or <= 0."""
    raw = os.getenv(name)
    if raw is None:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def _str_env(name: str) -> str | None:
    """Return a stripped env value, or None when unset or blank."""
    raw = os.getenv(name)
    if raw is None:
        return None
    # Hosting dashboards tend to keep trailing whitespace from copy/paste.
    return raw.strip() or None


# ── Constants (never change at runtime) ──────────────────────────────────
DEFAULT_API_URL: Final[str] = "https://api.telegram.org"
START_COMMAND: Final[str] = "start"


# ── Lazy settings cache ──────────────────────────────────────────────────

@functools.lru_cache(maxsize=1)
def _load_settings() -> dict[str, object]:
    """Read env-dependent settings once and cache the result."""
    return {
        "TELEGRAM_BOT_TOKEN": _str_env("TELEGRAM_BOT_TOKEN"),
        "TELEGRAM_API_URL": _str_env("TELEGRAM_API_URL") or DEFAULT_API_URL,
        "TELEGRAM_WEBHOOK_SECRET": _str_env("TELEGRAM_WEBHOOK_SECRET"),
        "NOTIFY_CHAT_ID": _str_env("NOTIFY_CHAT_ID"),
        "PACING_DELAY": _float_env("PACING_DELAY", 2.0),
        "SHORT_PACING_DELAY": _float_env("SHORT_PACING_DELAY", 0.5),
        "REQUEST_TIMEOUT": _float_env("REQUEST_TIMEOUT", 30.0),
        "INTERVIEW_MAX_IDLE": _optional_float_env("INTERVIEW_MAX_IDLE"),
        "INSTRUMENT_PATH": Path(_str_env("INSTRUMENT_PATH") or paths.INSTRUMENT_PATH),
        "SESSIONS_DIR": Path(_str_env("SESSIONS_DIR") or paths.SESSIONS_DIR),
    }


def reset() -> None:
    """Clear the cached settings — call from tests after monkeypatching env vars."""
    _load_settings.cache_clear()


# Type declarations for static analysis (not set at runtime so
# ``__getattr__`` is invoked on attribute access).
if TYPE_CHECKING:
    TELEGRAM_BOT_TOKEN: str | None
    TELEGRAM_API_URL: str
    TELEGRAM_WEBHOOK_SECRET: str | None
    NOTIFY_CHAT_ID: str | None
    PACING_DELAY: float
    SHORT_PACING_DELAY: float
    REQUEST_TIMEOUT: float
    INTERVIEW_MAX_IDLE: float | None
    INSTRUMENT_PATH: Path
    SESSIONS_DIR: Path


def __getattr__(name: str) -> object:
    """PEP 562 module-level ``__getattr__`` — provides lazy env reads."""
    settings = _load_settings()
    if name in settings:
        return settings[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


# ── Public helpers ────────────────────────────────────────────────────────


def require_bot_token() -> str:
    """Return the bot token or fail fast when the deployment lacks one."""
    token = _load_settings()["TELEGRAM_BOT_TOKEN"]
    if not token:
        raise RuntimeError("TELEGRAM_BOT_TOKEN is not set (check your .env)")
    return token  # type: ignore[return-value]
