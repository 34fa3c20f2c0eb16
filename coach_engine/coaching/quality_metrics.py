# FILE: coach_engine/coaching/quality_metrics.py
"""
Coaching Quality Metrics Tracker

Analyzes single messages into metric deltas and scores the running metrics.

Assistant messages feed question balance, empathy, SDT support, reflective
summaries and the two anti-patterns (advice giving, leading questions).
User messages feed MI change talk / sustain talk.

Composite score (weights in config.ScoreWeights):
  SDT coverage 30 + question balance 25 + empathy 20 + change-talk dominance 25
  minus 10 per anti-pattern instance, clamped to [0, 100].
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from coach_engine.config import EngineConfig, get_config

from .indicators import (
    count_matches,
    normalize_text,
    quality_phrases,
    question_starters,
)
from .schemas import (
    CoachingMetrics,
    MetricDelta,
    MetricName,
    QualityAssessment,
    QualityLevel,
    QualityScoreBreakdown,
    QualityWarning,
    Role,
    WarningSeverity,
)

logger = logging.getLogger(__name__)

# Assistant-side pattern categories and the metric each one feeds
_ASSISTANT_CATEGORIES: Dict[str, MetricName] = {
    "empathy": MetricName.EMPATHY_MARKER_COUNT,
    "autonomy": MetricName.AUTONOMY_INSTANCES,
    "competence": MetricName.COMPETENCE_INSTANCES,
    "relatedness": MetricName.RELATEDNESS_INSTANCES,
    "advice": MetricName.ADVICE_GIVING_COUNT,
    "leading": MetricName.LEADING_QUESTION_COUNT,
    "reflective_summary": MetricName.REFLECTIVE_SUMMARY_COUNT,
}

_USER_CATEGORIES: Dict[str, MetricName] = {
    "change_talk": MetricName.CHANGE_TALK_COUNT,
    "sustain_talk": MetricName.SUSTAIN_TALK_COUNT,
}

_SENTENCE_BREAK = re.compile(r"[.!:;\n]")
_LEADING_PUNCT = " \t\"'„“”‚‘’-–—*•>("


# =============================================================================
# QUESTION CLASSIFICATION
# =============================================================================

def extract_questions(text: str) -> List[str]:
    """
    Split text into questions: the last sentence before every '?'.
    """
    if not text or "?" not in text:
        return []
    parts = text.split("?")[:-1]
    questions = []
    for part in parts:
        sentence = _SENTENCE_BREAK.split(part)[-1].strip().lstrip(_LEADING_PUNCT)
        if sentence:
            questions.append(sentence + "?")
    return questions


def _starts_with(normalized: str, kind: str) -> bool:
    return any(entry.pattern.match(normalized) for entry in question_starters(kind))


def classify_question(question: str) -> Optional[str]:
    """'open', 'closed' or None. Open starters are checked first."""
    normalized = normalize_text(question)
    if not normalized:
        return None
    if _starts_with(normalized, "open"):
        return "open"
    if _starts_with(normalized, "closed"):
        return "closed"
    return None


# =============================================================================
# MESSAGE ANALYSIS
# =============================================================================

def _coerce_role(role: Any) -> Optional[Role]:
    if isinstance(role, Role):
        return role
    try:
        return Role(str(role).strip().lower())
    except ValueError:
        return None


def analyze_message(text: str, role: Any) -> List[MetricDelta]:
    """
    Analyze one message and return the metric deltas it produces.

    Every occurrence of an indicator is one increment. Unknown roles and
    empty text produce no deltas.
    """
    resolved = _coerce_role(role)
    if resolved is None or not text:
        return []

    deltas: List[MetricDelta] = []
    normalized = normalize_text(text)

    if resolved == Role.ASSISTANT:
        open_count = 0
        closed_count = 0
        for question in extract_questions(text):
            kind = classify_question(question)
            if kind == "open":
                open_count += 1
            elif kind == "closed":
                closed_count += 1
        if open_count:
            deltas.append(MetricDelta(metric=MetricName.OPEN_QUESTION_COUNT, increment=open_count))
        if closed_count:
            deltas.append(MetricDelta(metric=MetricName.CLOSED_QUESTION_COUNT, increment=closed_count))
        categories = _ASSISTANT_CATEGORIES
    else:
        categories = _USER_CATEGORIES

    for category, metric in categories.items():
        hits = count_matches(normalized, quality_phrases(category))
        if hits:
            deltas.append(MetricDelta(metric=metric, increment=hits))

    if deltas:
        logger.debug(
            f"[quality] {resolved.value} message -> "
            + ", ".join(f"{d.metric.value}+{d.increment}" for d in deltas)
        )
    return deltas


def _coerce_delta(raw: Any) -> Optional[MetricDelta]:
    if isinstance(raw, MetricDelta):
        return raw
    if isinstance(raw, dict):
        try:
            return MetricDelta.model_validate(raw)
        except ValueError:
            return None
    return None


def apply_metric_deltas(
    metrics: Optional[CoachingMetrics],
    deltas: Optional[Iterable[Any]],
) -> CoachingMetrics:
    """
    Pure reducer: a new CoachingMetrics with the deltas applied.

    Counts never go below zero. Ratios follow from the counts.
    """
    base = metrics or CoachingMetrics()
    if not deltas:
        return base

    counts = base.model_dump(include=set(CoachingMetrics.model_fields))
    changed = False
    for raw in deltas:
        delta = _coerce_delta(raw)
        if delta is None:
            logger.debug(f"[quality] Ignoring unreadable delta: {raw!r}")
            continue
        key = delta.metric.value
        counts[key] = max(0, counts[key] + delta.increment)
        changed = True

    if not changed:
        return base
    return CoachingMetrics(**counts)


# =============================================================================
# SCORING
# =============================================================================

def _capped(value: float, target: float, weight: float) -> float:
    if target <= 0:
        return weight if value > 0 else 0.0
    return min(weight, (value / target) * weight)


def _effective_change_ratio(metrics: CoachingMetrics) -> float:
    # With no sustain talk the ratio is undefined; the change count stands in
    if metrics.change_talk_count <= 0:
        return 0.0
    if metrics.sustain_talk_count <= 0:
        return float(metrics.change_talk_count)
    return metrics.change_talk_ratio


def calculate_score_breakdown(
    metrics: CoachingMetrics,
    config: Optional[EngineConfig] = None,
) -> QualityScoreBreakdown:
    cfg = config or get_config()
    t = cfg.thresholds
    w = cfg.weights

    sdt_score = (
        _capped(metrics.autonomy_instances, t.autonomy_target, w.autonomy)
        + _capped(metrics.competence_instances, t.competence_target, w.competence)
        + _capped(metrics.relatedness_instances, t.relatedness_target, w.relatedness)
    )
    question_score = _capped(metrics.open_question_ratio, t.open_question_ratio_target, w.question_balance)
    empathy_score = _capped(metrics.empathy_marker_count, t.empathy_target, w.empathy)
    change_talk_score = _capped(_effective_change_ratio(metrics), t.change_talk_ratio_target, w.change_talk)
    penalty = -float(metrics.anti_pattern_count) * w.anti_pattern_penalty

    total = sdt_score + question_score + empathy_score + change_talk_score + penalty

    return QualityScoreBreakdown(
        sdt_score=round(sdt_score, 1),
        question_score=round(question_score, 1),
        empathy_score=round(empathy_score, 1),
        change_talk_score=round(change_talk_score, 1),
        anti_pattern_penalty=penalty,
        total_score=max(0.0, min(100.0, total)),
    )


def calculate_coaching_score(
    metrics: CoachingMetrics,
    config: Optional[EngineConfig] = None,
) -> int:
    """Composite quality score, an integer in [0, 100]."""
    breakdown = calculate_score_breakdown(metrics, config)
    return int(max(0, min(100, round(breakdown.total_score))))


def meets_target_quality(metrics: CoachingMetrics, config: Optional[EngineConfig] = None) -> bool:
    cfg = config or get_config()
    return calculate_coaching_score(metrics, cfg) >= cfg.thresholds.acceptance_score


# =============================================================================
# WARNINGS / ASSESSMENT
# =============================================================================

def get_detailed_warnings(
    metrics: CoachingMetrics,
    config: Optional[EngineConfig] = None,
) -> List[QualityWarning]:
    """Typed red flags for the current metrics, independent of conversation context."""
    t = (config or get_config()).thresholds
    warnings: List[QualityWarning] = []

    if metrics.autonomy_instances < t.autonomy_minimum:
        warnings.append(QualityWarning(
            type="autonomy",
            message="Zu wenig Autonomie-Unterstützung",
            severity=WarningSeverity.CRITICAL if metrics.autonomy_instances == 0 else WarningSeverity.WARNING,
        ))

    if metrics.empathy_marker_count == 0:
        warnings.append(QualityWarning(
            type="empathy",
            message="Keine Empathie-Marker erkannt",
            severity=WarningSeverity.CRITICAL,
        ))

    if metrics.advice_giving_count > t.advice_giving_maximum:
        warnings.append(QualityWarning(
            type="advice",
            message="Zu viele Ratschläge gegeben",
            severity=(
                WarningSeverity.CRITICAL
                if metrics.advice_giving_count > t.advice_giving_critical
                else WarningSeverity.WARNING
            ),
        ))

    if metrics.question_count > 0 and metrics.open_question_ratio < t.open_question_ratio_minimum:
        warnings.append(QualityWarning(
            type="questions",
            message="Zu wenige offene Fragen",
            severity=WarningSeverity.CRITICAL if metrics.open_question_ratio < 0.3 else WarningSeverity.WARNING,
        ))

    if metrics.leading_question_count > 0:
        warnings.append(QualityWarning(
            type="leading",
            message="Leitende Fragen erkannt",
            severity=WarningSeverity.CRITICAL if metrics.leading_question_count > 2 else WarningSeverity.WARNING,
        ))

    if metrics.competence_instances < t.competence_minimum:
        warnings.append(QualityWarning(
            type="competence",
            message="Keine Kompetenz-Unterstützung",
            severity=WarningSeverity.WARNING,
        ))

    if metrics.relatedness_instances < t.relatedness_minimum:
        warnings.append(QualityWarning(
            type="relatedness",
            message="Keine Verbundenheits-Signale",
            severity=WarningSeverity.WARNING,
        ))

    return warnings


_ASSESSMENT_LEVELS = [
    (90, QualityLevel.EXCELLENT, "Ausgezeichnete Coaching-Qualität"),
    (75, QualityLevel.GOOD, "Gute Coaching-Qualität"),
    (60, QualityLevel.ACCEPTABLE, "Akzeptable Coaching-Qualität"),
    (40, QualityLevel.NEEDS_IMPROVEMENT, "Coaching-Qualität verbesserungswürdig"),
]


def get_quality_assessment(
    metrics: CoachingMetrics,
    config: Optional[EngineConfig] = None,
) -> QualityAssessment:
    score = calculate_coaching_score(metrics, config)
    for floor, level, summary in _ASSESSMENT_LEVELS:
        if score >= floor:
            return QualityAssessment(level=level, score=score, summary=summary)
    return QualityAssessment(level=QualityLevel.POOR, score=score, summary="Coaching-Qualität unzureichend")


def get_patterns() -> Dict[str, List[str]]:
    """Normalized pattern lists, for debugging and tests."""
    patterns = {
        "open_question_starters": [e.phrase for e in question_starters("open")],
        "closed_question_starters": [e.phrase for e in question_starters("closed")],
    }
    for category in list(_ASSISTANT_CATEGORIES) + list(_USER_CATEGORIES):
        patterns[category] = [e.phrase for e in quality_phrases(category)]
    return patterns
