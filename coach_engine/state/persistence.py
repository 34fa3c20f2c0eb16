# FILE: coach_engine/state/persistence.py
"""
Snapshot persistence adapters.

The store hands every new snapshot to a SnapshotSink. Persistence is
best-effort: the in-memory snapshot stays authoritative and the store
only logs sink failures.

JsonFileSnapshotSink layout:
    <root>/<session_id>/coaching_state.json
"""
from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Optional, Protocol, Union

from pydantic import ValidationError

from coach_engine.errors import SnapshotPersistError

from .models import CoachingState

logger = logging.getLogger(__name__)

STATE_FILE = "coaching_state.json"

# Session ids double as directory names under the snapshot root
SESSION_ID_PATTERN = r"^[A-Za-z0-9_-]{1,64}$"


class SnapshotSink(Protocol):
    def persist(self, session_id: str, state: CoachingState) -> None:
        ...


def _state_path(root: Union[str, Path], session_id: str) -> Path:
    """Snapshot file for a session; ValueError if it would leave the root."""
    if not isinstance(session_id, str) or not re.fullmatch(SESSION_ID_PATTERN, session_id):
        raise ValueError(f"Invalid session id for snapshot storage: {session_id!r}")
    base = Path(root).resolve()
    path = (base / session_id / STATE_FILE).resolve()
    if not path.is_relative_to(base):
        raise ValueError(f"Snapshot path for {session_id!r} leaves {base}")
    return path


class JsonFileSnapshotSink:
    """Writes one JSON file per session, atomically (temp file + rename)."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def path_for(self, session_id: str) -> Path:
        return _state_path(self.root, session_id)

    def persist(self, session_id: str, state: CoachingState) -> None:
        try:
            path = self.path_for(session_id)
        except ValueError as e:
            raise SnapshotPersistError(str(e)) from e
        payload = state.model_dump_json(indent=2)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".state_", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_path, path)
            except OSError:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
                raise
        except OSError as e:
            raise SnapshotPersistError(f"Failed to write {path}: {e}") from e
        logger.debug(f"[state] Saved snapshot to {path}")


def load_snapshot(root: Union[str, Path], session_id: str) -> Optional[CoachingState]:
    """Read a persisted snapshot back; None when missing or unreadable."""
    try:
        path = _state_path(root, session_id)
    except ValueError as e:
        logger.warning(f"[state] {e}")
        return None
    if not path.exists():
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return CoachingState.model_validate(data)
    except (OSError, ValueError, ValidationError) as e:
        logger.warning(f"[state] Failed to load snapshot {path}: {e}")
        return None
