# FILE: coach_engine/api/router.py
"""
Coaching Router - HTTP API Endpoints

- POST /coaching/sessions                 - Create a session
- POST /coaching/sessions/{id}/turns      - Process one turn
- GET  /coaching/sessions/{id}/state      - Current state snapshot
- POST /coaching/sessions/{id}/reset      - Explicit reset to the zero state
- POST /coaching/sessions/{id}/advance    - Move on to the next module
- DELETE /coaching/sessions/{id}          - Drop a session from the registry
- POST /coaching/validate/phase           - Stateless phase validation
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel, Field

from coach_engine.coaching.schemas import Message
from coach_engine.engine.turn import CoachingSession, TurnResult
from coach_engine.errors import ModuleAdvanceError, UnknownSessionError
from coach_engine.state.models import CoachingState
from coach_engine.state.persistence import SESSION_ID_PATTERN
from coach_engine.validation.completion import validate_phase
from coach_engine.validation.schemas import ModuleCompletion, PhaseValidationResult

from .registry import SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/coaching", tags=["coaching"])


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class CreateSessionRequest(BaseModel):
    module_id: Optional[str] = Field(None, description="Workshop module to start in (default: gz-intake)")
    session_id: Optional[str] = Field(
        None,
        pattern=SESSION_ID_PATTERN,
        description="Client-chosen id (letters, digits, _ and -); generated when omitted",
    )


class TurnRequest(BaseModel):
    messages: List[Message] = Field(default_factory=list, description="Full ordered history")
    extracted: Optional[Dict[str, Any]] = Field(None, description="Fields extracted from this turn")


class PhaseValidationRequest(BaseModel):
    module_id: str
    phase: str
    data: Dict[str, Any] = Field(default_factory=dict)


class SessionResponse(BaseModel):
    session_id: str
    module_id: str
    state: CoachingState
    completion: ModuleCompletion


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def _lookup(registry: SessionRegistry, session_id: str) -> CoachingSession:
    try:
        return registry.get(session_id)
    except UnknownSessionError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _session_response(session: CoachingSession) -> SessionResponse:
    return SessionResponse(
        session_id=session.session_id,
        module_id=session.module_id,
        state=session.state,
        completion=session.completion(),
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("/sessions", response_model=SessionResponse, status_code=201)
def create_session(
    body: CreateSessionRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    if body.session_id and body.session_id in registry:
        raise HTTPException(status_code=409, detail=f"Session already exists: {body.session_id}")
    session = registry.create(module_id=body.module_id, session_id=body.session_id)
    return _session_response(session)


@router.post("/sessions/{session_id}/turns", response_model=TurnResult)
def process_turn(
    session_id: str,
    body: TurnRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    """
    Process the full history after a new message.

    Returns stage, GROW phase, metrics, corrections for the next assistant
    turn and the module's completion status.
    """
    session = _lookup(registry, session_id)
    return session.process_turn(body.messages, extracted=body.extracted)


@router.get("/sessions/{session_id}/state", response_model=SessionResponse)
def get_state(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
):
    return _session_response(_lookup(registry, session_id))


@router.post("/sessions/{session_id}/reset", response_model=SessionResponse)
def reset_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
):
    session = _lookup(registry, session_id)
    session.reset()
    return _session_response(session)


@router.post("/sessions/{session_id}/advance", response_model=SessionResponse)
def advance_module(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
):
    session = _lookup(registry, session_id)
    try:
        session.advance_module()
    except ModuleAdvanceError as e:
        logger.info(f"[api] Advance refused for {session_id}: {e}")
        raise HTTPException(status_code=409, detail=str(e))
    return _session_response(session)


@router.delete("/sessions/{session_id}", status_code=204)
def delete_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
):
    """Drop the in-memory session. Persisted snapshots are left on disk."""
    try:
        registry.discard(session_id)
    except UnknownSessionError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return Response(status_code=204)


@router.post("/validate/phase", response_model=PhaseValidationResult)
def validate_phase_endpoint(body: PhaseValidationRequest):
    return validate_phase(body.module_id, body.phase, body.data)
