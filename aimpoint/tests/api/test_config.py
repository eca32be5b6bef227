from __future__ import annotations

from aimpoint.config import get_settings, reset_settings_cache


def test_defaults(monkeypatch):
    for name in ("AIM_N_EARLY", "AIM_N_FINAL", "AIM_CI95_STOP", "AIM_DEFAULT_STRATEGY"):
        monkeypatch.delenv(name, raising=False)
    reset_settings_cache()
    settings = get_settings()
    assert settings.n_early == 200
    assert settings.n_final == 600
    assert settings.ci95_stop == 0.03
    assert settings.default_strategy == "RingGrid"
    assert settings.es_cache is True
    assert settings.plays_like is False


def test_env_overrides_and_malformed_values(monkeypatch):
    monkeypatch.setenv("AIM_N_EARLY", "80")
    monkeypatch.setenv("AIM_N_FINAL", "lots")
    monkeypatch.setenv("AIM_TIME_BUDGET_S", "2.5")
    monkeypatch.setenv("AIM_ES_CACHE", "off")
    reset_settings_cache()
    settings = get_settings()
    assert settings.n_early == 80
    assert settings.n_final == 600
    assert settings.time_budget_s == 2.5
    assert settings.es_cache is False


def test_settings_are_cached_until_reset(monkeypatch):
    reset_settings_cache()
    first = get_settings()
    monkeypatch.setenv("AIM_MAX_CANDIDATES", "3")
    assert get_settings() is first
    reset_settings_cache()
    assert get_settings().max_candidates == 3
