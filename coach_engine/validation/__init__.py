# FILE: coach_engine/validation/__init__.py
"""
Quality and completion validation.

quality_validator: corrective guidance from the running coaching metrics
completion:        phase / module gating against declarative requirement tables
"""
from .schemas import (
    CorrectionPriority,
    CorrectionPrompt,
    ModuleCompletion,
    PhaseValidationResult,
    QualityValidationResult,
    ValidationContext,
    ValidationStatus,
)
from .quality_validator import (
    get_all_correction_prompts,
    get_quality_correction_prompt,
    validate_coaching_quality,
)
from .completion import (
    calculate_expected_gz,
    calculate_progress,
    can_advance,
    check_gz_eligibility,
    get_field_label,
    validate_module,
    validate_phase,
)
from .requirements import BUILTIN_REQUIREMENTS, ModuleRequirements, PhaseRequirement
