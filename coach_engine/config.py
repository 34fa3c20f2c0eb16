# FILE: coach_engine/config.py
"""
Coaching Engine - Configuration

Centralized config for every threshold, weight and knob used by the
classifiers, the quality tracker and the quality validator.

Values can be overridden through GZ_COACH_* environment variables via
load_config_from_env(). Entry points (CLI, ASGI app) load .env first.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QualityThresholds:
    """
    Minimum / target levels for coaching quality metrics.
    """
    # SDT needs (per module)
    autonomy_target: int = 5
    autonomy_minimum: int = 2
    competence_target: int = 3
    competence_minimum: int = 1
    relatedness_target: int = 2
    relatedness_minimum: int = 1

    # Question quality
    open_question_ratio_target: float = 0.7
    open_question_ratio_minimum: float = 0.5

    # Empathy
    empathy_target: int = 3
    empathy_minimum: int = 1

    # MI: change talk / sustain talk ratio of 2.0 earns the full sub-score
    change_talk_ratio_target: float = 2.0

    # Anti-patterns (maximum tolerated before a correction fires)
    advice_giving_maximum: int = 2
    advice_giving_critical: int = 5
    leading_question_maximum: int = 1

    # Composite score
    acceptance_score: int = 75


@dataclass(frozen=True)
class ScoreWeights:
    """
    Maximum points per sub-score. The four weights sum to 100.
    """
    autonomy: float = 15.0
    competence: float = 10.0
    relatedness: float = 5.0
    question_balance: float = 25.0
    empathy: float = 20.0
    change_talk: float = 25.0

    # Subtracted once per anti-pattern instance (advice + leading questions)
    anti_pattern_penalty: float = 10.0

    @property
    def sdt(self) -> float:
        return self.autonomy + self.competence + self.relatedness


@dataclass(frozen=True)
class ValidatorConfig:
    """
    Conversational-context rules for the quality validator.
    """
    # Exchanges before missing autonomy support is flagged
    autonomy_grace_exchanges: int = 3

    # Empathy is only nagged (without an emotion) after this many exchanges
    empathy_grace_exchanges: int = 3

    # Exchanges without a reflective summary before one is requested
    summary_interval: int = 10

    # Minimum number of questions before the open-question nudge applies
    min_questions_for_ratio: int = 3


@dataclass(frozen=True)
class DetectionConfig:
    """
    Knobs for the stage / GROW classifiers.
    """
    # Linear recency boost for stage detection: the last user message
    # weighs 1 + recency_weight, the first one slightly above 1.
    recency_weight: float = 0.5

    # GROW scoring
    grow_keyword_weight: float = 2.0
    grow_pattern_weight: float = 5.0
    grow_negative_weight: float = 1.0

    # GROW detection only looks at the user messages among the most recent
    # N history entries (0 = whole history)
    grow_recent_messages: int = 6

    # A message shorter than this never counts as covering a GROW phase
    grow_min_message_length: int = 11


@dataclass(frozen=True)
class EngineConfig:
    """
    Master configuration for the coaching engine.
    """
    thresholds: QualityThresholds = field(default_factory=QualityThresholds)
    weights: ScoreWeights = field(default_factory=ScoreWeights)
    validator: ValidatorConfig = field(default_factory=ValidatorConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)


# Global default config instance
DEFAULT_CONFIG = EngineConfig()


def get_config() -> EngineConfig:
    """Get the default engine configuration."""
    return DEFAULT_CONFIG


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"[config] Ignoring non-integer {name}={raw!r}")
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"[config] Ignoring non-numeric {name}={raw!r}")
        return default


def load_config_from_env() -> EngineConfig:
    """
    Build an EngineConfig, overriding defaults from the environment.

    Recognised variables:
        GZ_COACH_ACCEPTANCE_SCORE
        GZ_COACH_SUMMARY_INTERVAL
        GZ_COACH_AUTONOMY_GRACE_EXCHANGES
        GZ_COACH_RECENCY_WEIGHT
        GZ_COACH_ADVICE_MAXIMUM
    """
    base = DEFAULT_CONFIG
    thresholds = QualityThresholds(
        **{
            **base.thresholds.__dict__,
            "acceptance_score": _env_int("GZ_COACH_ACCEPTANCE_SCORE", base.thresholds.acceptance_score),
            "advice_giving_maximum": _env_int("GZ_COACH_ADVICE_MAXIMUM", base.thresholds.advice_giving_maximum),
        }
    )
    validator = ValidatorConfig(
        **{
            **base.validator.__dict__,
            "summary_interval": _env_int("GZ_COACH_SUMMARY_INTERVAL", base.validator.summary_interval),
            "autonomy_grace_exchanges": _env_int(
                "GZ_COACH_AUTONOMY_GRACE_EXCHANGES", base.validator.autonomy_grace_exchanges
            ),
        }
    )
    detection = DetectionConfig(
        **{
            **base.detection.__dict__,
            "recency_weight": _env_float("GZ_COACH_RECENCY_WEIGHT", base.detection.recency_weight),
        }
    )
    return EngineConfig(
        thresholds=thresholds,
        weights=base.weights,
        validator=validator,
        detection=detection,
    )
