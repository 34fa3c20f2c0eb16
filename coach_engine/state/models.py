# FILE: coach_engine/state/models.py
"""
Coaching state snapshot models.

CoachingState is the aggregate root for one coaching session. Every model
here is frozen: reducers produce a new snapshot with model_copy(update=...)
instead of mutating. Histories (stage, emotions) only ever grow.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field

from coach_engine.coaching.indicators import INDICATOR_TABLE_VERSION
from coach_engine.coaching.modules import FIRST_MODULE_ID
from coach_engine.coaching.schemas import (
    CoachingMetrics,
    Emotion,
    GROWPhase,
    LimitingBeliefType,
    Stage,
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StageHistoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    stage: Stage
    detected_at: datetime
    trigger: Optional[str] = None


class IdentifiedBelief(BaseModel):
    model_config = ConfigDict(frozen=True)

    belief: LimitingBeliefType
    identified_at: datetime
    reframed: bool = False
    reframed_at: Optional[datetime] = None


class EmotionRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    emotion: Emotion
    detected_at: datetime
    addressed: bool = False


class SDTNeeds(BaseModel):
    """Derived view over the SDT counters in CoachingMetrics."""
    model_config = ConfigDict(frozen=True)

    autonomy: int = 0
    competence: int = 0
    relatedness: int = 0


class CoachingState(BaseModel):
    """
    Complete coaching state for one session.

    exchange_count counts user turns over the whole session,
    module_exchange_count only those in the current module (the quality
    validator's grace periods use the latter).
    """
    model_config = ConfigDict(frozen=True)

    # TTM
    current_stage: Stage = Stage.CONTEMPLATION
    stage_history: Tuple[StageHistoryEntry, ...] = ()

    # GROW
    current_grow_phase: GROWPhase = GROWPhase.GOAL
    grow_phase_by_module: Dict[str, GROWPhase] = Field(default_factory=dict)

    # Quality
    metrics: CoachingMetrics = Field(default_factory=CoachingMetrics)

    # CBC / emotions
    identified_beliefs: Tuple[IdentifiedBelief, ...] = ()
    emotion_history: Tuple[EmotionRecord, ...] = ()

    # Appreciative inquiry
    discovered_strengths: Tuple[str, ...] = ()
    dream_vision: Optional[str] = None

    # Progress
    current_module: str = FIRST_MODULE_ID
    exchange_count: int = 0
    module_exchange_count: int = 0
    exchanges_since_last_summary: int = 0

    indicator_table_version: str = INDICATOR_TABLE_VERSION
    session_started_at: datetime = Field(default_factory=utc_now)
    last_updated_at: datetime = Field(default_factory=utc_now)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def sdt_needs(self) -> SDTNeeds:
        return SDTNeeds(
            autonomy=self.metrics.autonomy_instances,
            competence=self.metrics.competence_instances,
            relatedness=self.metrics.relatedness_instances,
        )

    @property
    def last_detected_emotion(self) -> Optional[EmotionRecord]:
        return self.emotion_history[-1] if self.emotion_history else None

    def belief(self, belief: LimitingBeliefType) -> Optional[IdentifiedBelief]:
        for entry in self.identified_beliefs:
            if entry.belief == belief:
                return entry
        return None
