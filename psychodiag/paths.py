"""Centralized path constants for the project.

Instrument data and session files are located relative to the project
root so that every module imports them from a single source of truth.
"""

from __future__ import annotations

from pathlib import Path

PROJECT_ROOT: Path = Path(__file__).resolve().parents[1]
DATA_DIR: Path = PROJECT_ROOT / "data"
SESSIONS_DIR: Path = DATA_DIR / "sessions"
INSTRUMENT_PATH: Path = DATA_DIR / "beck_depression.json"
