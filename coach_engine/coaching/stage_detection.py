# FILE: coach_engine/coaching/stage_detection.py
"""
TTM Stage Detection

Classifies the user's readiness for change (Transtheoretical Model) from
the language they use. Only user-authored messages are scored.

Scoring:
  - every indicator occurrence counts
  - the i-th of n user messages is weighted 1 + recency_weight * (i+1)/n,
    so recent messages dominate without older ones being dropped
  - highest weighted score wins; a tie for first place or no match at all
    resolves to CONTEMPLATION

Pure and total: empty histories, assistant-only histories and garbage input
all classify as CONTEMPLATION.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from coach_engine.config import EngineConfig, get_config

from .indicators import find_matches, normalize_text, stage_phrases
from .schemas import (
    CoachingDepth,
    Message,
    Role,
    Stage,
    StageDetection,
    StageMatch,
    coerce_messages,
)

logger = logging.getLogger(__name__)

DEFAULT_STAGE = Stage.CONTEMPLATION

STAGE_TO_DEPTH: Dict[Stage, CoachingDepth] = {
    Stage.PRECONTEMPLATION: CoachingDepth.SHALLOW,  # gentle exploration
    Stage.CONTEMPLATION: CoachingDepth.MEDIUM,      # develop discrepancy
    Stage.PREPARATION: CoachingDepth.DEEP,          # concrete planning
    Stage.ACTION: CoachingDepth.MEDIUM,             # support and validate
    Stage.MAINTENANCE: CoachingDepth.SHALLOW,       # reinforce
}


def get_coaching_depth_for_stage(stage: Stage) -> CoachingDepth:
    return STAGE_TO_DEPTH.get(stage, CoachingDepth.MEDIUM)


def get_indicators_for_stage(stage: Stage) -> List[str]:
    """Normalized indicator phrases for a stage (for debugging and tests)."""
    return [entry.phrase for entry in stage_phrases(stage)]


def _recency_weight(index: int, total: int, recency_weight: float) -> float:
    if total <= 0:
        return 1.0
    return 1.0 + recency_weight * (index + 1) / total


def _score_stages(
    user_messages: List[Message],
    recency_weight: float,
) -> List[StageMatch]:
    scores: Dict[Stage, float] = {stage: 0.0 for stage in Stage}
    counts: Dict[Stage, int] = {stage: 0 for stage in Stage}
    matched: Dict[Stage, List[str]] = {stage: [] for stage in Stage}

    total = len(user_messages)
    for index, message in enumerate(user_messages):
        normalized = normalize_text(message.content)
        if not normalized:
            continue
        weight = _recency_weight(index, total, recency_weight)
        for stage in Stage:
            hits = find_matches(normalized, stage_phrases(stage))
            if not hits:
                continue
            counts[stage] += len(hits)
            scores[stage] += len(hits) * weight
            for hit in hits:
                if hit not in matched[stage]:
                    matched[stage].append(hit)

    return [
        StageMatch(
            stage=stage,
            score=round(scores[stage], 4),
            match_count=counts[stage],
            indicators=matched[stage],
        )
        for stage in Stage
    ]


def analyze_stage_detection(
    messages: Optional[Iterable[Any]],
    config: Optional[EngineConfig] = None,
) -> StageDetection:
    """
    Classify the TTM stage and return full match details.
    """
    cfg = config or get_config()
    history = coerce_messages(messages)
    user_messages = [m for m in history if m.role == Role.USER]

    details = _score_stages(user_messages, cfg.detection.recency_weight)
    best_score = max(d.score for d in details)
    leaders = [d for d in details if d.score == best_score]

    matched_indicators: List[str] = []
    if best_score <= 0:
        stage = DEFAULT_STAGE
        is_fallback = True
    elif len(leaders) > 1:
        # Ambiguous: report what tied, classify as the default
        stage = DEFAULT_STAGE
        is_fallback = True
        for d in leaders:
            matched_indicators.extend(d.indicators)
    else:
        stage = leaders[0].stage
        is_fallback = False
        matched_indicators = list(leaders[0].indicators)

    logger.debug(
        f"[stage] {stage.value} from {len(user_messages)} user messages "
        f"(best={best_score}, fallback={is_fallback})"
    )

    return StageDetection(
        stage=stage,
        coaching_depth=get_coaching_depth_for_stage(stage),
        matched_indicators=matched_indicators,
        match_details=details,
        user_message_count=len(user_messages),
        is_fallback=is_fallback,
    )


def detect_stage(
    messages: Optional[Iterable[Any]],
    config: Optional[EngineConfig] = None,
) -> Stage:
    """Return only the detected TTM stage."""
    return analyze_stage_detection(messages, config).stage
