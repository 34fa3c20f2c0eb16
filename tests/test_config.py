# FILE: tests/test_config.py
"""
Tests for engine configuration and environment overrides.
"""
import dataclasses
import logging

import pytest

from coach_engine.config import DEFAULT_CONFIG, EngineConfig, get_config, load_config_from_env

ENV_VARS = (
    "GZ_COACH_ACCEPTANCE_SCORE",
    "GZ_COACH_SUMMARY_INTERVAL",
    "GZ_COACH_AUTONOMY_GRACE_EXCHANGES",
    "GZ_COACH_RECENCY_WEIGHT",
    "GZ_COACH_ADVICE_MAXIMUM",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_default_instance(self):
        assert get_config() is DEFAULT_CONFIG
        assert DEFAULT_CONFIG.thresholds.acceptance_score == 75
        assert DEFAULT_CONFIG.validator.summary_interval == 10
        assert DEFAULT_CONFIG.detection.grow_recent_messages == 6

    def test_weights_sum_to_100(self):
        w = DEFAULT_CONFIG.weights
        assert w.sdt == 30
        assert w.sdt + w.question_balance + w.empathy + w.change_talk == 100

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_CONFIG.thresholds.acceptance_score = 10


class TestEnvOverrides:
    def test_no_env_matches_defaults(self):
        assert load_config_from_env() == EngineConfig()

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("GZ_COACH_ACCEPTANCE_SCORE", "60")
        monkeypatch.setenv("GZ_COACH_SUMMARY_INTERVAL", "5")
        monkeypatch.setenv("GZ_COACH_AUTONOMY_GRACE_EXCHANGES", "4")
        monkeypatch.setenv("GZ_COACH_RECENCY_WEIGHT", "1.5")
        monkeypatch.setenv("GZ_COACH_ADVICE_MAXIMUM", "1")
        cfg = load_config_from_env()
        assert cfg.thresholds.acceptance_score == 60
        assert cfg.thresholds.advice_giving_maximum == 1
        assert cfg.validator.summary_interval == 5
        assert cfg.validator.autonomy_grace_exchanges == 4
        assert cfg.detection.recency_weight == 1.5
        # untouched fields keep their defaults
        assert cfg.thresholds.empathy_target == DEFAULT_CONFIG.thresholds.empathy_target

    def test_invalid_value_is_ignored(self, monkeypatch, caplog):
        monkeypatch.setenv("GZ_COACH_SUMMARY_INTERVAL", "often")
        with caplog.at_level(logging.WARNING, logger="coach_engine.config"):
            cfg = load_config_from_env()
        assert cfg.validator.summary_interval == 10
        assert "GZ_COACH_SUMMARY_INTERVAL" in caplog.text
