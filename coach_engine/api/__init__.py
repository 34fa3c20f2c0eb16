# FILE: coach_engine/api/__init__.py
"""FastAPI surface for the coaching engine."""
from .app import create_app
from .registry import SessionRegistry
from .router import router
