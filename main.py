# FILE: main.py
"""
GZ Coach Engine - FastAPI Application

ASGI entry point: serve `main:app` with any ASGI server.

Environment (read from .env):
- GZ_COACH_SNAPSHOT_DIR: write per-session state snapshots below this directory
- GZ_COACH_*: quality thresholds, see coach_engine/config.py
"""
from dotenv import load_dotenv

# Load .env FIRST so the config picks up overrides
load_dotenv()

from coach_engine.api import create_app

app = create_app()
