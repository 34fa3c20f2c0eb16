# FILE: coach_engine/coaching/__init__.py
"""
Coaching classifiers: TTM stage, GROW phase, conversation quality metrics,
emotions, limiting beliefs and strengths. All functions here are pure.
"""
from .schemas import (
    AddressStyle,
    CoachingDepth,
    CoachingMetrics,
    Emotion,
    EmotionIntensity,
    GROWPhase,
    LimitingBeliefType,
    Message,
    MetricDelta,
    MetricName,
    Role,
    Stage,
)
from .stage_detection import analyze_stage_detection, detect_stage, get_coaching_depth_for_stage
from .grow_model import (
    detect_grow_phase,
    generate_grow_transition,
    get_grow_prompt_for_phase,
    get_module_grow_phases,
    get_next_grow_phase,
    is_phase_valid_for_module,
    validate_grow_completeness,
)
from .quality_metrics import (
    analyze_message,
    apply_metric_deltas,
    calculate_coaching_score,
    calculate_score_breakdown,
)
from .emotion_detection import detect_emotion, detect_emotion_with_details
from .belief_detection import detect_limiting_belief
from .strength_detection import categorize_strengths, detect_strengths, extract_strengths

__all__ = [
    "AddressStyle",
    "CoachingDepth",
    "CoachingMetrics",
    "Emotion",
    "EmotionIntensity",
    "GROWPhase",
    "LimitingBeliefType",
    "Message",
    "MetricDelta",
    "MetricName",
    "Role",
    "Stage",
    "analyze_stage_detection",
    "detect_stage",
    "get_coaching_depth_for_stage",
    "detect_grow_phase",
    "generate_grow_transition",
    "get_grow_prompt_for_phase",
    "get_module_grow_phases",
    "get_next_grow_phase",
    "is_phase_valid_for_module",
    "validate_grow_completeness",
    "analyze_message",
    "apply_metric_deltas",
    "calculate_coaching_score",
    "calculate_score_breakdown",
    "detect_emotion",
    "detect_emotion_with_details",
    "detect_limiting_belief",
    "categorize_strengths",
    "detect_strengths",
    "extract_strengths",
]
