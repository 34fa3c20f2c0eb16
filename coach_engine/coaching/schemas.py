# FILE: coach_engine/coaching/schemas.py
"""
Pydantic models for the coaching classifiers and the quality tracker.
Defines messages, TTM stages, GROW phases, metric deltas and the
CoachingMetrics snapshot with its derived ratios.
"""
from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, computed_field

logger = logging.getLogger(__name__)


# =============================================================================
# MESSAGES
# =============================================================================

class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """One chat message. Histories are ordered and never mutated."""
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str = ""
    timestamp: Optional[datetime] = None


def coerce_messages(messages: Optional[Iterable[Any]]) -> List[Message]:
    """
    Normalize a history into Message objects.

    Accepts Message instances or mappings with role/content keys. Entries
    that cannot be read as a user/assistant message are skipped, so callers
    never see an exception for a malformed history.
    """
    if not messages:
        return []

    result: List[Message] = []
    for raw in messages:
        if isinstance(raw, Message):
            result.append(raw)
            continue
        if not isinstance(raw, dict):
            logger.debug(f"[messages] Skipping non-mapping entry: {type(raw).__name__}")
            continue
        data = dict(raw)
        if data.get("content") is None:
            data["content"] = ""
        try:
            result.append(Message.model_validate(data))
        except ValidationError:
            logger.debug(f"[messages] Skipping malformed message with role={raw.get('role')!r}")
    return result


def user_texts(messages: Iterable[Message]) -> List[str]:
    return [m.content for m in messages if m.role == Role.USER]


# =============================================================================
# TTM STAGES
# =============================================================================

class Stage(str, Enum):
    """Readiness stages from Prochaska & DiClemente's Transtheoretical Model."""
    PRECONTEMPLATION = "precontemplation"  # Not considering change
    CONTEMPLATION = "contemplation"        # Aware but ambivalent
    PREPARATION = "preparation"            # Planning to act soon
    ACTION = "action"                      # Actively implementing
    MAINTENANCE = "maintenance"            # Sustaining the change


class CoachingDepth(str, Enum):
    SHALLOW = "shallow"
    MEDIUM = "medium"
    DEEP = "deep"


class StageMatch(BaseModel):
    """Per-stage match details for diagnostics."""
    stage: Stage
    score: float = 0.0
    match_count: int = 0
    indicators: List[str] = Field(default_factory=list)


class StageDetection(BaseModel):
    """Result of TTM stage classification."""
    stage: Stage
    coaching_depth: CoachingDepth
    matched_indicators: List[str] = Field(default_factory=list)
    match_details: List[StageMatch] = Field(default_factory=list)
    user_message_count: int = 0
    is_fallback: bool = False  # True when a tie / zero match resolved to the default


# =============================================================================
# GROW MODEL
# =============================================================================

class GROWPhase(str, Enum):
    GOAL = "goal"        # What do you want to achieve?
    REALITY = "reality"  # Where are you now?
    OPTIONS = "options"  # What could you do?
    WILL = "will"        # What will you do?


GROW_SEQUENCE: List[GROWPhase] = [
    GROWPhase.GOAL,
    GROWPhase.REALITY,
    GROWPhase.OPTIONS,
    GROWPhase.WILL,
]


class AddressStyle(str, Enum):
    """German forms of address: informal 'du' or formal 'Sie'."""
    DU = "du"
    SIE = "Sie"


class GROWCompleteness(BaseModel):
    is_complete: bool
    missing_phases: List[GROWPhase] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


# =============================================================================
# EMOTIONS / BELIEFS
# =============================================================================

class Emotion(str, Enum):
    UNCERTAINTY = "uncertainty"
    AMBIVALENCE = "ambivalence"
    ANXIETY = "anxiety"
    FRUSTRATION = "frustration"
    EXCITEMENT = "excitement"
    CONFIDENCE = "confidence"


class EmotionIntensity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class EmotionDetection(BaseModel):
    emotion: Optional[Emotion] = None
    intensity: Optional[EmotionIntensity] = None
    score: float = 0.0
    matched_signals: List[str] = Field(default_factory=list)
    intensity_markers: List[str] = Field(default_factory=list)


class LimitingBeliefType(str, Enum):
    """Common limiting beliefs of founders (CBC)."""
    NOT_QUALIFIED = "not_qualified"
    NOT_SALESPERSON = "not_salesperson"
    MARKET_SATURATED = "market_saturated"
    NEED_MORE_PREP = "need_more_prep"
    FAILURE_IS_END = "failure_is_end"
    NOT_NUMBERS_PERSON = "not_numbers_person"
    TOO_OLD_YOUNG = "too_old_young"
    NO_NETWORK = "no_network"


class BeliefDetection(BaseModel):
    belief: Optional[LimitingBeliefType] = None
    match_count: int = 0
    matched_phrases: List[str] = Field(default_factory=list)


class StrengthDetection(BaseModel):
    strengths: List[str] = Field(default_factory=list)
    categorized: Dict[str, List[str]] = Field(default_factory=dict)
    confidence: float = 0.0  # 3+ distinct strengths = 1.0


# =============================================================================
# QUALITY METRICS
# =============================================================================

class MetricName(str, Enum):
    """Count metrics. The two ratios are derived and have no name here."""
    AUTONOMY_INSTANCES = "autonomy_instances"
    COMPETENCE_INSTANCES = "competence_instances"
    RELATEDNESS_INSTANCES = "relatedness_instances"
    OPEN_QUESTION_COUNT = "open_question_count"
    CLOSED_QUESTION_COUNT = "closed_question_count"
    EMPATHY_MARKER_COUNT = "empathy_marker_count"
    CHANGE_TALK_COUNT = "change_talk_count"
    SUSTAIN_TALK_COUNT = "sustain_talk_count"
    ADVICE_GIVING_COUNT = "advice_giving_count"
    LEADING_QUESTION_COUNT = "leading_question_count"
    REFLECTIVE_SUMMARY_COUNT = "reflective_summary_count"


class MetricDelta(BaseModel):
    model_config = ConfigDict(frozen=True)

    metric: MetricName
    increment: int = 1


class CoachingMetrics(BaseModel):
    """
    Running conversation-quality counts.

    open_question_ratio and change_talk_ratio are computed from the counts
    and cannot be assigned.
    """
    model_config = ConfigDict(frozen=True)

    # SDT needs
    autonomy_instances: int = 0
    competence_instances: int = 0
    relatedness_instances: int = 0

    # Question quality
    open_question_count: int = 0
    closed_question_count: int = 0

    # Empathy
    empathy_marker_count: int = 0

    # MI
    change_talk_count: int = 0
    sustain_talk_count: int = 0

    # Anti-patterns (lower is better)
    advice_giving_count: int = 0
    leading_question_count: int = 0

    reflective_summary_count: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def open_question_ratio(self) -> float:
        total = self.open_question_count + self.closed_question_count
        if total <= 0:
            return 0.0
        return self.open_question_count / total

    @computed_field  # type: ignore[prop-decorator]
    @property
    def change_talk_ratio(self) -> float:
        if self.sustain_talk_count <= 0:
            return 0.0
        return self.change_talk_count / self.sustain_talk_count

    @property
    def anti_pattern_count(self) -> int:
        return self.advice_giving_count + self.leading_question_count

    @property
    def question_count(self) -> int:
        return self.open_question_count + self.closed_question_count


class QualityScoreBreakdown(BaseModel):
    sdt_score: float
    question_score: float
    empathy_score: float
    change_talk_score: float
    anti_pattern_penalty: float  # zero or negative
    total_score: float           # clamped to [0, 100]


class QualityLevel(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    ACCEPTABLE = "acceptable"
    NEEDS_IMPROVEMENT = "needs_improvement"
    POOR = "poor"


class QualityAssessment(BaseModel):
    level: QualityLevel
    score: int
    summary: str


class WarningSeverity(str, Enum):
    WARNING = "warning"
    CRITICAL = "critical"


class QualityWarning(BaseModel):
    type: str  # "autonomy", "empathy", "advice", "questions", "leading", "competence", "relatedness"
    message: str
    severity: WarningSeverity


def metrics_from_dict(data: Optional[Dict[str, Any]]) -> CoachingMetrics:
    """Lenient constructor: unknown keys and derived ratios are ignored."""
    if not data:
        return CoachingMetrics()
    counts = {k: v for k, v in data.items() if k in CoachingMetrics.model_fields}
    try:
        return CoachingMetrics.model_validate(counts)
    except ValidationError:
        logger.warning("[metrics] Unreadable metrics payload, falling back to zero metrics")
        return CoachingMetrics()
