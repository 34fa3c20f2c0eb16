# FILE: coach_engine/api/registry.py
"""
In-process session registry for the HTTP surface.

One registry per app instance (attached to app.state), one CoachingSession
per session id. Sessions stay until a client deletes them (discard()).
"""
from __future__ import annotations

import logging
from typing import Dict, Optional
from uuid import uuid4

from coach_engine.config import EngineConfig, get_config
from coach_engine.engine.turn import CoachingSession
from coach_engine.errors import UnknownSessionError
from coach_engine.state.persistence import SnapshotSink
from coach_engine.state.store import CoachingStateStore

logger = logging.getLogger(__name__)


class SessionRegistry:
    def __init__(self, config: Optional[EngineConfig] = None, sink: Optional[SnapshotSink] = None):
        self.config = config or get_config()
        self.sink = sink
        self._sessions: Dict[str, CoachingSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def create(self, module_id: Optional[str] = None, session_id: Optional[str] = None) -> CoachingSession:
        sid = session_id or uuid4().hex
        store = CoachingStateStore(sid, sink=self.sink)
        session = CoachingSession(sid, module_id=module_id, store=store, config=self.config)
        self._sessions[sid] = session
        logger.info(f"[api] Created session {sid} in {session.module_id}")
        return session

    def get(self, session_id: str) -> CoachingSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise UnknownSessionError(f"Unknown session: {session_id}")
        return session

    def discard(self, session_id: str) -> CoachingSession:
        """Remove a session; the registry holds only sessions not yet discarded."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise UnknownSessionError(f"Unknown session: {session_id}")
        logger.info(f"[api] Discarded session {session_id}")
        return session
