# FILE: coach_engine/state/__init__.py
"""Coaching session state: frozen snapshots, pure reducers, per-session store."""
from .models import (
    CoachingState,
    EmotionRecord,
    IdentifiedBelief,
    SDTNeeds,
    StageHistoryEntry,
)
from .reducers import create_initial_state
from .store import CoachingStateStore
from .persistence import JsonFileSnapshotSink, SnapshotSink, load_snapshot
