"""Environment-driven settings for the optimizer service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


__all__ = [
    "_Settings",
    "env_bool",
    "get_settings",
    "reset_settings_cache",
]


@dataclass(frozen=True)
class _Settings:
    n_early: int = 200
    n_final: int = 600
    ci95_stop: float = 0.03
    min_separation_m: float = 2.74
    max_candidates: int = 8
    time_budget_s: float = 20.0
    default_strategy: str = "RingGrid"
    es_cache: bool = True
    plays_like: bool = False


@lru_cache(maxsize=1)
def get_settings() -> _Settings:
    """Return cached application settings."""

    return _Settings(
        n_early=_int_env("AIM_N_EARLY", 200),
        n_final=_int_env("AIM_N_FINAL", 600),
        ci95_stop=_float_env("AIM_CI95_STOP", 0.03),
        min_separation_m=_float_env("AIM_MIN_SEPARATION_M", 2.74),
        max_candidates=_int_env("AIM_MAX_CANDIDATES", 8),
        time_budget_s=_float_env("AIM_TIME_BUDGET_S", 20.0),
        default_strategy=os.getenv("AIM_DEFAULT_STRATEGY", "RingGrid").strip() or "RingGrid",
        es_cache=env_bool("AIM_ES_CACHE", True),
        plays_like=env_bool("AIM_PLAYS_LIKE", False),
    )


def reset_settings_cache() -> None:
    """Clear cached settings (primarily for tests)."""

    get_settings.cache_clear()


def env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default
