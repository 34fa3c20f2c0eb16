# FILE: coach_engine/state/reducers.py
"""
Pure state reducers.

Each reducer takes a CoachingState and returns a new one; the input is
never modified. Every reducer accepts an optional `now` so callers (and
tests) control the timestamps; a real change bumps last_updated_at.

No-ops return the very same snapshot (identity), e.g. identifying an
already known belief or setting a GROW phase the module does not allow.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, Optional

from coach_engine.coaching.modules import legal_phases
from coach_engine.coaching.quality_metrics import apply_metric_deltas
from coach_engine.coaching.schemas import (
    Emotion,
    GROWPhase,
    LimitingBeliefType,
    MetricDelta,
    MetricName,
    Stage,
)

from .models import (
    CoachingState,
    EmotionRecord,
    IdentifiedBelief,
    StageHistoryEntry,
    utc_now,
)

logger = logging.getLogger(__name__)


def _touch(state: CoachingState, now: Optional[datetime], **changes: Any) -> CoachingState:
    changes["last_updated_at"] = now or utc_now()
    return state.model_copy(update=changes)


def create_initial_state(now: Optional[datetime] = None) -> CoachingState:
    """Canonical zero state: contemplation, goal phase, first module, zero metrics."""
    started = now or utc_now()
    return CoachingState(session_started_at=started, last_updated_at=started)


# =============================================================================
# STAGE / GROW / MODULE
# =============================================================================

def set_stage(
    state: CoachingState,
    stage: Stage,
    trigger: Optional[str] = None,
    now: Optional[datetime] = None,
) -> CoachingState:
    """Set the current stage and append a history entry."""
    timestamp = now or utc_now()
    entry = StageHistoryEntry(stage=stage, detected_at=timestamp, trigger=trigger)
    logger.info(f"[state] Stage {state.current_stage.value} -> {stage.value}")
    return _touch(
        state,
        timestamp,
        current_stage=stage,
        stage_history=state.stage_history + (entry,),
    )


def set_grow_phase(
    state: CoachingState,
    phase: GROWPhase,
    module_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> CoachingState:
    """
    Record the GROW phase for a module (default: the current module) and
    make it the global phase. A phase the module does not allow is ignored.
    """
    module = module_id or state.current_module
    if phase not in legal_phases(module):
        logger.warning(f"[state] Ignoring GROW phase {phase.value} for {module}")
        return state
    by_module = dict(state.grow_phase_by_module)
    by_module[module] = phase
    return _touch(state, now, current_grow_phase=phase, grow_phase_by_module=by_module)


def set_current_module(
    state: CoachingState,
    module_id: str,
    now: Optional[datetime] = None,
) -> CoachingState:
    """Switch modules; the per-module exchange count starts over."""
    if module_id == state.current_module:
        return state
    logger.info(f"[state] Module {state.current_module} -> {module_id}")
    return _touch(state, now, current_module=module_id, module_exchange_count=0)


# =============================================================================
# METRICS / COUNTERS
# =============================================================================

def _is_summary_delta(raw: Any) -> bool:
    if isinstance(raw, MetricDelta):
        return raw.metric == MetricName.REFLECTIVE_SUMMARY_COUNT and raw.increment > 0
    if isinstance(raw, dict):
        return (
            raw.get("metric") == MetricName.REFLECTIVE_SUMMARY_COUNT.value
            and raw.get("increment", 1) > 0
        )
    return False


def apply_metrics(
    state: CoachingState,
    deltas: Optional[Iterable[Any]],
    now: Optional[datetime] = None,
) -> CoachingState:
    """
    Apply metric deltas. A reflective-summary delta also resets
    exchanges_since_last_summary.
    """
    pending = list(deltas or [])
    if not pending:
        return state
    metrics = apply_metric_deltas(state.metrics, pending)
    changes: dict = {"metrics": metrics}
    if any(_is_summary_delta(d) for d in pending):
        changes["exchanges_since_last_summary"] = 0
    if metrics == state.metrics and "exchanges_since_last_summary" not in changes:
        return state
    return _touch(state, now, **changes)


def increment_exchange(state: CoachingState, now: Optional[datetime] = None) -> CoachingState:
    return _touch(
        state,
        now,
        exchange_count=state.exchange_count + 1,
        module_exchange_count=state.module_exchange_count + 1,
        exchanges_since_last_summary=state.exchanges_since_last_summary + 1,
    )


def record_reflective_summary(state: CoachingState, now: Optional[datetime] = None) -> CoachingState:
    return apply_metrics(
        state,
        [MetricDelta(metric=MetricName.REFLECTIVE_SUMMARY_COUNT)],
        now=now,
    )


# =============================================================================
# BELIEFS / EMOTIONS
# =============================================================================

def add_limiting_belief(
    state: CoachingState,
    belief: LimitingBeliefType,
    now: Optional[datetime] = None,
) -> CoachingState:
    """Identify a limiting belief. Already known beliefs are left as they are."""
    if state.belief(belief) is not None:
        return state
    timestamp = now or utc_now()
    logger.info(f"[state] Limiting belief identified: {belief.value}")
    entry = IdentifiedBelief(belief=belief, identified_at=timestamp)
    return _touch(state, timestamp, identified_beliefs=state.identified_beliefs + (entry,))


def reframe_belief(
    state: CoachingState,
    belief: LimitingBeliefType,
    now: Optional[datetime] = None,
) -> CoachingState:
    existing = state.belief(belief)
    if existing is None or existing.reframed:
        return state
    timestamp = now or utc_now()
    updated = tuple(
        entry.model_copy(update={"reframed": True, "reframed_at": timestamp})
        if entry.belief == belief else entry
        for entry in state.identified_beliefs
    )
    return _touch(state, timestamp, identified_beliefs=updated)


def record_emotion(
    state: CoachingState,
    emotion: Emotion,
    now: Optional[datetime] = None,
) -> CoachingState:
    timestamp = now or utc_now()
    entry = EmotionRecord(emotion=emotion, detected_at=timestamp)
    return _touch(state, timestamp, emotion_history=state.emotion_history + (entry,))


def address_last_emotion(state: CoachingState, now: Optional[datetime] = None) -> CoachingState:
    """Mark the most recent emotion as addressed. Earlier entries stay untouched."""
    last = state.last_detected_emotion
    if last is None or last.addressed:
        return state
    history = state.emotion_history[:-1] + (last.model_copy(update={"addressed": True}),)
    return _touch(state, now, emotion_history=history)


# =============================================================================
# STRENGTHS / VISION
# =============================================================================

def add_strength(state: CoachingState, strength: str, now: Optional[datetime] = None) -> CoachingState:
    cleaned = (strength or "").strip()
    if not cleaned or cleaned in state.discovered_strengths:
        return state
    return _touch(state, now, discovered_strengths=state.discovered_strengths + (cleaned,))


def set_dream_vision(state: CoachingState, vision: str, now: Optional[datetime] = None) -> CoachingState:
    cleaned = (vision or "").strip()
    if not cleaned:
        return state
    return _touch(state, now, dream_vision=cleaned)
