# FILE: coach_engine/engine/turn.py
"""
Turn Orchestration

CoachingSession runs the per-turn flow for one session:

  1. classify stage and GROW phase from the full history (read-only)
  2. analyze the newest message into metric deltas and apply them
  3. user message: emotion + limiting-belief detection, exchange count
     assistant message: an empathy marker addresses the last open emotion
  4. record stage / GROW phase only when the detected value changed
  5. validate coaching quality against the updated state
  6. merge newly extracted fields into the module record and check
     module completion

Every step except the store writes is a pure function call. The session
is the single writer for its store.
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, Field

from coach_engine.coaching.belief_detection import detect_limiting_belief
from coach_engine.coaching.emotion_detection import detect_emotion
from coach_engine.coaching.grow_model import detect_grow_phase, generate_grow_transition
from coach_engine.coaching.modules import get_next_module
from coach_engine.coaching.quality_metrics import analyze_message
from coach_engine.coaching.schemas import (
    CoachingDepth,
    CoachingMetrics,
    Emotion,
    GROWPhase,
    LimitingBeliefType,
    Message,
    MetricName,
    Role,
    Stage,
    coerce_messages,
)
from coach_engine.coaching.stage_detection import analyze_stage_detection
from coach_engine.coaching.strength_detection import extract_strengths
from coach_engine.config import EngineConfig, get_config
from coach_engine.errors import ModuleAdvanceError
from coach_engine.extraction.merge import merge_module_record
from coach_engine.state.models import CoachingState
from coach_engine.state.persistence import SnapshotSink
from coach_engine.state.store import CoachingStateStore
from coach_engine.validation.completion import validate_module
from coach_engine.validation.quality_validator import (
    combine_correction_prompts,
    validate_coaching_quality,
)
from coach_engine.validation.schemas import (
    CorrectionPrompt,
    ModuleCompletion,
    ValidationContext,
)

logger = logging.getLogger(__name__)


class TurnResult(BaseModel):
    """Everything the chat layer needs after one turn."""
    session_id: str
    module_id: str
    stage: Stage
    coaching_depth: CoachingDepth
    stage_is_fallback: bool = False
    grow_phase: GROWPhase
    grow_transition: Optional[str] = None
    metrics: CoachingMetrics
    score: int
    is_acceptable: bool
    corrections: List[CorrectionPrompt] = Field(default_factory=list)
    correction_prompt: Optional[str] = None  # combined MEDIUM/HIGH text
    emotion: Optional[Emotion] = None
    limiting_belief: Optional[LimitingBeliefType] = None
    strengths: List[str] = Field(default_factory=list)  # discovered in the newest user message
    module_record: Dict[str, Any] = Field(default_factory=dict)
    completion: ModuleCompletion


def _last_user_message(history: List[Message]) -> Optional[Message]:
    for message in reversed(history):
        if message.role == Role.USER:
            return message
    return None


class CoachingSession:
    def __init__(
        self,
        session_id: str,
        module_id: Optional[str] = None,
        store: Optional[CoachingStateStore] = None,
        config: Optional[EngineConfig] = None,
        sink: Optional[SnapshotSink] = None,
    ):
        self.session_id = session_id
        self.config = config or get_config()
        self.store = store or CoachingStateStore(session_id, sink=sink)
        self.records: Dict[str, Dict[str, Any]] = {}
        if module_id and module_id != self.store.state.current_module:
            self.store.set_current_module(module_id)

    @property
    def state(self) -> CoachingState:
        return self.store.state

    @property
    def module_id(self) -> str:
        return self.store.state.current_module

    @property
    def module_record(self) -> Dict[str, Any]:
        return copy.deepcopy(self.records.get(self.module_id, {}))

    # =========================================================================
    # Turn processing
    # =========================================================================

    def _apply_newest(self, newest: Message) -> Dict[str, Any]:
        found: Dict[str, Any] = {"emotion": None, "belief": None, "strengths": []}
        deltas = analyze_message(newest.content, newest.role)
        self.store.apply_metrics(deltas)

        if newest.role == Role.USER:
            emotion = detect_emotion(newest.content)
            if emotion is not None:
                self.store.record_emotion(emotion)
                found["emotion"] = emotion
            belief = detect_limiting_belief(newest.content)
            if belief is not None:
                self.store.add_limiting_belief(belief)
                found["belief"] = belief
            strengths = extract_strengths(newest.content)
            for strength in strengths:
                self.store.add_strength(strength)
            found["strengths"] = strengths
            self.store.increment_exchange()
        else:
            showed_empathy = any(
                d.metric == MetricName.EMPATHY_MARKER_COUNT and d.increment > 0 for d in deltas
            )
            if showed_empathy:
                self.store.address_last_emotion()
        return found

    def process_turn(
        self,
        messages: Optional[Iterable[Any]],
        extracted: Optional[Mapping[str, Any]] = None,
    ) -> TurnResult:
        """
        Process the full history after a new message was appended.

        `extracted` holds structured fields extracted from this turn; they
        are merged into the current module's record.
        """
        cfg = self.config
        module_id = self.module_id
        history = coerce_messages(messages)

        stage_detection = analyze_stage_detection(history, cfg)
        grow_phase = detect_grow_phase(history, module_id, cfg)

        found: Dict[str, Any] = {"emotion": None, "belief": None, "strengths": []}
        if history:
            found = self._apply_newest(history[-1])

        if stage_detection.stage != self.state.current_stage:
            trigger = stage_detection.matched_indicators[0] if stage_detection.matched_indicators else None
            self.store.set_stage(stage_detection.stage, trigger=trigger)

        previous_phase = self.state.grow_phase_by_module.get(module_id)
        transition = None
        if grow_phase != previous_phase:
            self.store.set_grow_phase(grow_phase, module_id=module_id)
            if previous_phase is not None:
                transition = generate_grow_transition(previous_phase, grow_phase)
                logger.info(f"[turn] {module_id}: GROW {previous_phase.value} -> {grow_phase.value}")

        last_user = _last_user_message(history)
        state = self.state
        context = ValidationContext(
            metrics=state.metrics,
            exchange_count=state.module_exchange_count,
            emotion_detected=last_user is not None and detect_emotion(last_user.content) is not None,
            exchanges_since_last_summary=state.exchanges_since_last_summary,
        )
        quality = validate_coaching_quality(context, cfg)

        if extracted:
            self.records[module_id] = merge_module_record(
                module_id, self.records.get(module_id), extracted
            )
        record = self.module_record
        completion = validate_module(module_id, record)

        logger.debug(
            f"[turn] {self.session_id}/{module_id}: stage={stage_detection.stage.value} "
            f"grow={grow_phase.value} score={quality.score} progress={completion.progress_percent}%"
        )

        return TurnResult(
            session_id=self.session_id,
            module_id=module_id,
            stage=stage_detection.stage,
            coaching_depth=stage_detection.coaching_depth,
            stage_is_fallback=stage_detection.is_fallback,
            grow_phase=grow_phase,
            grow_transition=transition,
            metrics=state.metrics,
            score=quality.score,
            is_acceptable=quality.is_acceptable,
            corrections=quality.corrections,
            correction_prompt=combine_correction_prompts(quality.corrections),
            emotion=found["emotion"],
            limiting_belief=found["belief"],
            strengths=found["strengths"],
            module_record=record,
            completion=completion,
        )

    # =========================================================================
    # Module progression
    # =========================================================================

    def completion(self) -> ModuleCompletion:
        return validate_module(self.module_id, self.records.get(self.module_id, {}))

    def advance_module(self) -> str:
        """
        Move to the next workshop module.

        Raises ModuleAdvanceError while the current module is blocked or
        incomplete, or when it is the last module.
        """
        current = self.module_id
        completion = self.completion()
        if completion.is_blocked:
            raise ModuleAdvanceError(current, completion.block_reason or f"blocked in {completion.blocked_phase}")
        if not completion.is_complete:
            missing = [f for p in completion.phases for f in p.missing_fields]
            raise ModuleAdvanceError(current, "missing " + ", ".join(missing))

        next_module = get_next_module(current)
        if next_module is None:
            raise ModuleAdvanceError(current, "no further module")

        self.store.set_current_module(next_module)
        logger.info(f"[turn] {self.session_id}: advanced {current} -> {next_module}")
        return next_module

    def reset(self) -> CoachingState:
        """Explicit user reset: zero state and no module records."""
        self.records.clear()
        return self.store.reset()
