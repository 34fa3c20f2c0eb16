# FILE: coach_engine/validation/schemas.py
"""
Result models for the quality validator and the completion validator.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from coach_engine.coaching.schemas import CoachingMetrics, QualityWarning


# =============================================================================
# QUALITY VALIDATION
# =============================================================================

class CorrectionPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


PRIORITY_ORDER: Dict[CorrectionPriority, int] = {
    CorrectionPriority.HIGH: 0,
    CorrectionPriority.MEDIUM: 1,
    CorrectionPriority.LOW: 2,
}


class CorrectionType(str, Enum):
    AUTONOMY = "autonomy"
    EMPATHY = "empathy"
    SUMMARY = "summary"
    ADVICE = "advice"
    LEADING = "leading"
    QUESTIONS = "questions"


class CorrectionPrompt(BaseModel):
    type: CorrectionType
    prompt: str
    priority: CorrectionPriority
    reason: str


class ValidationContext(BaseModel):
    """Conversational context the validator needs beyond the raw metrics."""
    metrics: CoachingMetrics = Field(default_factory=CoachingMetrics)
    exchange_count: int = 0  # exchanges in the current module
    emotion_detected: bool = False  # in the most recent user message
    exchanges_since_last_summary: int = 0


class QualityValidationResult(BaseModel):
    is_acceptable: bool
    score: int
    warnings: List[QualityWarning] = Field(default_factory=list)
    corrections: List[CorrectionPrompt] = Field(default_factory=list)
    summary: str = ""


# =============================================================================
# COMPLETION VALIDATION
# =============================================================================

class ValidationStatus(str, Enum):
    COMPLETE = "complete"
    INCOMPLETE = "incomplete"  # recoverable: ask for the missing fields
    BLOCKED = "blocked"        # halts progression until the blocking value exists


class PhaseValidationResult(BaseModel):
    module_id: str
    phase: str
    status: ValidationStatus
    is_complete: bool
    missing_fields: List[str] = Field(default_factory=list)
    completed_fields: List[str] = Field(default_factory=list)
    is_blocked: bool = False
    block_reason: Optional[str] = None
    blocking_field: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)


class ModuleCompletion(BaseModel):
    module_id: str
    is_complete: bool
    is_blocked: bool = False
    blocked_phase: Optional[str] = None
    block_reason: Optional[str] = None
    current_phase: Optional[str] = None  # first phase that is not complete
    phases: List[PhaseValidationResult] = Field(default_factory=list)
    progress_percent: int = 0
