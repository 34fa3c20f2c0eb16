# FILE: coach_engine/engine/__init__.py
from .turn import CoachingSession, TurnResult
