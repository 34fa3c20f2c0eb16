# FILE: coach_engine/state/store.py
"""
Coaching State Store

One store per session (no global singleton). It owns the current
snapshot, runs reducers through dispatch(), and hands every changed
snapshot to an optional sink. A failing sink is logged; the in-memory
snapshot stays authoritative.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Iterable, Optional

from coach_engine.coaching.schemas import Emotion, GROWPhase, LimitingBeliefType, Stage
from coach_engine.errors import SnapshotPersistError

from . import reducers
from .models import CoachingState, utc_now
from .persistence import SnapshotSink

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class CoachingStateStore:
    def __init__(
        self,
        session_id: str,
        initial: Optional[CoachingState] = None,
        sink: Optional[SnapshotSink] = None,
        clock: Optional[Clock] = None,
    ):
        self.session_id = session_id
        self.sink = sink
        self.clock = clock or utc_now
        self._state = initial or reducers.create_initial_state(now=self.clock())

    @property
    def state(self) -> CoachingState:
        return self._state

    def dispatch(self, reducer: Callable[..., CoachingState], *args: Any, **kwargs: Any) -> CoachingState:
        """Run `reducer(state, *args, now=..., **kwargs)` and keep the result."""
        kwargs.setdefault("now", self.clock())
        new_state = reducer(self._state, *args, **kwargs)
        if new_state is self._state:
            return new_state
        self._state = new_state
        self._persist()
        return new_state

    def _persist(self) -> None:
        if self.sink is None:
            return
        try:
            self.sink.persist(self.session_id, self._state)
        except SnapshotPersistError as e:
            logger.warning(f"[state] Snapshot for {self.session_id} not persisted: {e}")
        except Exception as e:
            # Any sink may fail; the in-memory snapshot stays authoritative
            logger.warning(
                f"[state] Snapshot for {self.session_id} not persisted "
                f"({type(e).__name__}): {e}",
                exc_info=True,
            )

    # =========================================================================
    # Convenience wrappers
    # =========================================================================

    def set_stage(self, stage: Stage, trigger: Optional[str] = None) -> CoachingState:
        return self.dispatch(reducers.set_stage, stage, trigger=trigger)

    def set_grow_phase(self, phase: GROWPhase, module_id: Optional[str] = None) -> CoachingState:
        return self.dispatch(reducers.set_grow_phase, phase, module_id=module_id)

    def set_current_module(self, module_id: str) -> CoachingState:
        return self.dispatch(reducers.set_current_module, module_id)

    def apply_metrics(self, deltas: Iterable[Any]) -> CoachingState:
        return self.dispatch(reducers.apply_metrics, deltas)

    def increment_exchange(self) -> CoachingState:
        return self.dispatch(reducers.increment_exchange)

    def record_reflective_summary(self) -> CoachingState:
        return self.dispatch(reducers.record_reflective_summary)

    def add_limiting_belief(self, belief: LimitingBeliefType) -> CoachingState:
        return self.dispatch(reducers.add_limiting_belief, belief)

    def reframe_belief(self, belief: LimitingBeliefType) -> CoachingState:
        return self.dispatch(reducers.reframe_belief, belief)

    def record_emotion(self, emotion: Emotion) -> CoachingState:
        return self.dispatch(reducers.record_emotion, emotion)

    def address_last_emotion(self) -> CoachingState:
        return self.dispatch(reducers.address_last_emotion)

    def add_strength(self, strength: str) -> CoachingState:
        return self.dispatch(reducers.add_strength, strength)

    def set_dream_vision(self, vision: str) -> CoachingState:
        return self.dispatch(reducers.set_dream_vision, vision)

    def reset(self) -> CoachingState:
        """Start over from the zero state. Only on explicit user request."""
        logger.info(f"[state] Resetting session {self.session_id}")
        self._state = reducers.create_initial_state(now=self.clock())
        self._persist()
        return self._state
