# FILE: coach_engine/api/app.py
"""
ASGI app factory.

Snapshots are written below GZ_COACH_SNAPSHOT_DIR when that variable is
set and no sink is passed explicitly.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

from fastapi import FastAPI

from coach_engine import __version__
from coach_engine.config import EngineConfig, load_config_from_env
from coach_engine.state.persistence import JsonFileSnapshotSink, SnapshotSink

from .registry import SessionRegistry
from .router import router as coaching_router

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[EngineConfig] = None,
    sink: Optional[SnapshotSink] = None,
) -> FastAPI:
    app = FastAPI(
        title="GZ Coach Engine",
        version=__version__,
        description="Conversational progress and quality control for the Gründungszuschuss workshop",
    )

    if sink is None:
        snapshot_dir = os.getenv("GZ_COACH_SNAPSHOT_DIR", "").strip()
        if snapshot_dir:
            sink = JsonFileSnapshotSink(snapshot_dir)
            logger.info(f"[api] Persisting snapshots to {snapshot_dir}")

    app.state.sessions = SessionRegistry(config=config or load_config_from_env(), sink=sink)
    app.include_router(coaching_router)

    @app.get("/health")
    def health():
        return {"status": "ok", "version": __version__}

    return app
