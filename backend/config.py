"""
Central configuration for the trading-stats backend.

Loads from environment variables (and an optional .env file next to the
project root) with fallback defaults.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)


class Settings:
    """Application settings loaded from environment variables"""

    # ── Logging ──────────────────────────────────────────────────────────────────
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # ── HTTP ─────────────────────────────────────────────────────────────────────
    CORS_ORIGINS: List[str] = [
        o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
    ]

    # ── Trade journal ────────────────────────────────────────────────────────────
    # Empty means trades only live in memory for the lifetime of the process.
    TRADES_FILE: str = os.getenv("TRADES_FILE", "")

    # ── Monte Carlo limits ───────────────────────────────────────────────────────
    MC_MAX_PATHS: int = int(os.getenv("MC_MAX_PATHS", 5000))
    MC_MAX_STEPS: int = int(os.getenv("MC_MAX_STEPS", 2000))
    MC_HISTOGRAM_BINS: int = int(os.getenv("MC_HISTOGRAM_BINS", 30))

    # ── Expectancy limits ────────────────────────────────────────────────────────
    EXPECTANCY_MAX_TRADES: int = int(os.getenv("EXPECTANCY_MAX_TRADES", 2000))

    # ── Consistency rule ─────────────────────────────────────────────────────────
    CONSISTENCY_RULE_PCT: float = float(os.getenv("CONSISTENCY_RULE_PCT", 35.0))


settings = Settings()


def validate_settings(s: Settings = settings) -> List[str]:
    """Return a list of configuration problems (empty when valid)."""
    errors: List[str] = []
    if s.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        errors.append(f"LOG_LEVEL must be a logging level name, got {s.LOG_LEVEL!r}")
    if s.MC_MAX_PATHS < 1:
        errors.append("MC_MAX_PATHS must be >= 1")
    if s.MC_MAX_STEPS < 1:
        errors.append("MC_MAX_STEPS must be >= 1")
    if s.MC_HISTOGRAM_BINS < 1:
        errors.append("MC_HISTOGRAM_BINS must be >= 1")
    if s.EXPECTANCY_MAX_TRADES < 1:
        errors.append("EXPECTANCY_MAX_TRADES must be >= 1")
    if not 0 < s.CONSISTENCY_RULE_PCT <= 100:
        errors.append("CONSISTENCY_RULE_PCT must be in (0, 100]")
    return errors
