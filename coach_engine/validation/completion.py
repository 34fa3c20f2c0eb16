# FILE: coach_engine/validation/completion.py
"""
Phase / Module Completion Validator

Decides whether a phase or module may advance, given the merged partial
record collected so far.

Outcomes per phase:
  complete    every required path (incl. active conditional ones) present
  incomplete  some paths missing; recoverable, ask for them
  blocked     a blocking numeric value is missing; progression halts and the
              user is asked for exactly that value

A blocked phase stops the module: current_phase stays on it and
can_advance() is False for it and every later phase.

"Absent" means None, an empty/whitespace string, or an empty collection.
Missing intermediate objects simply read as absent.
"""
from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Tuple

from pydantic import BaseModel

from .requirements import (
    GZ_MIN_ALG_DAYS,
    GZ_PHASE_ONE_MONTHS,
    GZ_SOCIAL_INSURANCE_MONTHLY,
    BlockingRequirement,
    ModuleRequirements,
    PhaseRequirement,
    get_module_requirements,
    registered_modules,
)
from .schemas import ModuleCompletion, PhaseValidationResult, ValidationStatus

logger = logging.getLogger(__name__)

_MISSING = object()


# =============================================================================
# PATH HELPERS
# =============================================================================

def get_path(data: Any, path: str, default: Any = None) -> Any:
    """Resolve a dot-notation path; any missing or non-mapping step yields default."""
    current = data
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return default
        current = current.get(part, _MISSING)
        if current is _MISSING:
            return default
    return current


def is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return len(value) > 0
    return True


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_mapping(data: Any) -> Mapping:
    return data if isinstance(data, Mapping) else {}


def _resolve(module_id: str, requirements: Optional[ModuleRequirements]) -> Optional[ModuleRequirements]:
    return requirements if requirements is not None else get_module_requirements(module_id)


# =============================================================================
# PHASE VALIDATION
# =============================================================================

def required_paths(requirement: PhaseRequirement, data: Any) -> List[str]:
    """Base paths plus every conditional path whose trigger is active."""
    paths = list(requirement.required)
    for conditional in requirement.conditional:
        if get_path(data, conditional.when_path) == conditional.equals:
            for path in conditional.required:
                if path not in paths:
                    paths.append(path)
    return paths


def _active_blocks(requirement: PhaseRequirement, data: Any) -> List[BlockingRequirement]:
    active = []
    for block in requirement.blocking:
        if block.when_path is None or get_path(data, block.when_path) == block.equals:
            active.append(block)
    return active


def _validate_requirement(
    module_id: str,
    requirement: PhaseRequirement,
    data: Mapping,
) -> PhaseValidationResult:
    missing: List[str] = []
    completed: List[str] = []
    for path in required_paths(requirement, data):
        (completed if is_present(get_path(data, path)) else missing).append(path)

    warnings: List[str] = []
    blocked_by: Optional[BlockingRequirement] = None
    for block in _active_blocks(requirement, data):
        value = get_path(data, block.path)
        if not _is_number(value):
            if blocked_by is None:
                blocked_by = block
            if block.path not in missing:
                missing.append(block.path)
            if block.path in completed:
                completed.remove(block.path)
            continue
        if block.minimum is not None and value < block.minimum and block.minimum_warning:
            warnings.append(block.minimum_warning.format(value=value, minimum=int(block.minimum)))

    if blocked_by is not None:
        logger.warning(f"[completion] {module_id}/{requirement.phase} blocked on {blocked_by.path}")
        return PhaseValidationResult(
            module_id=module_id,
            phase=requirement.phase,
            status=ValidationStatus.BLOCKED,
            is_complete=False,
            missing_fields=missing,
            completed_fields=completed,
            is_blocked=True,
            block_reason=blocked_by.reason,
            blocking_field=blocked_by.path,
            warnings=warnings,
        )

    status = ValidationStatus.INCOMPLETE if missing else ValidationStatus.COMPLETE
    return PhaseValidationResult(
        module_id=module_id,
        phase=requirement.phase,
        status=status,
        is_complete=not missing,
        missing_fields=missing,
        completed_fields=completed,
        warnings=warnings,
    )


def _unconstrained(module_id: str, phase: str) -> PhaseValidationResult:
    return PhaseValidationResult(
        module_id=module_id,
        phase=phase,
        status=ValidationStatus.COMPLETE,
        is_complete=True,
    )


def validate_phase(
    module_id: str,
    phase: str,
    data: Any,
    requirements: Optional[ModuleRequirements] = None,
) -> PhaseValidationResult:
    """
    Validate one phase. Modules or phases without a requirement table are
    always complete.
    """
    table = _resolve(module_id, requirements)
    requirement = table.phase(phase) if table else None
    if requirement is None:
        logger.debug(f"[completion] No requirements for {module_id}/{phase}")
        return _unconstrained(module_id, phase)
    return _validate_requirement(module_id, requirement, _as_mapping(data))


# =============================================================================
# MODULE VALIDATION
# =============================================================================

def calculate_progress(
    module_id: str,
    data: Any,
    requirements: Optional[ModuleRequirements] = None,
) -> int:
    """
    round(100 * completed / required) over every phase of the module.
    Active conditional paths count on both sides. 0 when nothing is required.
    """
    table = _resolve(module_id, requirements)
    if table is None:
        return 0
    mapping = _as_mapping(data)
    total = 0
    done = 0
    for requirement in table.phases:
        result = _validate_requirement(module_id, requirement, mapping)
        total += len(result.missing_fields) + len(result.completed_fields)
        done += len(result.completed_fields)
    if total == 0:
        return 0
    return int(100 * done / total + 0.5)


def validate_module(
    module_id: str,
    data: Any,
    requirements: Optional[ModuleRequirements] = None,
) -> ModuleCompletion:
    table = _resolve(module_id, requirements)
    if table is None:
        return ModuleCompletion(module_id=module_id, is_complete=True)

    mapping = _as_mapping(data)
    phases = [_validate_requirement(module_id, r, mapping) for r in table.phases]

    current_phase = next((p.phase for p in phases if not p.is_complete), None)
    blocked = next((p for p in phases if p.is_blocked), None)

    completion = ModuleCompletion(
        module_id=module_id,
        is_complete=all(p.is_complete for p in phases),
        is_blocked=blocked is not None,
        blocked_phase=blocked.phase if blocked else None,
        block_reason=blocked.block_reason if blocked else None,
        current_phase=current_phase,
        phases=phases,
        progress_percent=calculate_progress(module_id, mapping, table),
    )
    logger.debug(
        f"[completion] {module_id}: {completion.progress_percent}% "
        f"current={current_phase} blocked={completion.blocked_phase}"
    )
    return completion


def can_advance(
    module_id: str,
    phase: str,
    data: Any,
    requirements: Optional[ModuleRequirements] = None,
) -> bool:
    """
    True when `phase` is complete and neither it nor any earlier phase of the
    module is blocked.
    """
    table = _resolve(module_id, requirements)
    if table is None or table.phase(phase) is None:
        return True
    mapping = _as_mapping(data)
    for requirement in table.phases:
        result = _validate_requirement(module_id, requirement, mapping)
        if result.is_blocked:
            return False
        if requirement.phase == phase:
            return result.is_complete
    return True


# =============================================================================
# GRÜNDUNGSZUSCHUSS HELPERS
# =============================================================================

class GZEligibility(BaseModel):
    is_eligible: bool
    message: str


def check_gz_eligibility(alg_days_remaining: Optional[int]) -> GZEligibility:
    """At least 150 remaining ALG I days are required (inclusive)."""
    if not _is_number(alg_days_remaining):
        return GZEligibility(
            is_eligible=False,
            message=(
                "Die Anzahl der ALG I-Resttage fehlt. Bitte gib die exakte Zahl "
                "aus deinem Bescheid an."
            ),
        )
    if alg_days_remaining >= GZ_MIN_ALG_DAYS:
        return GZEligibility(
            is_eligible=True,
            message=(
                f"Mit {alg_days_remaining} Tagen ALG-Restanspruch bist du "
                f"für den Gründungszuschuss berechtigt."
            ),
        )
    return GZEligibility(
        is_eligible=False,
        message=(
            f"Für den Gründungszuschuss brauchst du mindestens {GZ_MIN_ALG_DAYS} Tage "
            f"ALG I-Restanspruch. Du hast aktuell {alg_days_remaining} Tage."
        ),
    )


def calculate_expected_gz(alg_monthly_amount: float) -> float:
    """Phase one: six months of ALG I plus the 300 EUR social insurance share."""
    return (
        alg_monthly_amount * GZ_PHASE_ONE_MONTHS
        + GZ_SOCIAL_INSURANCE_MONTHLY * GZ_PHASE_ONE_MONTHS
    )


def get_field_label(
    path: str,
    module_id: Optional[str] = None,
    requirements: Optional[ModuleRequirements] = None,
) -> str:
    """German label for a field path; falls back to the path itself."""
    if requirements is not None:
        tables = [requirements]
    else:
        candidates: Tuple[str, ...] = (module_id,) if module_id else registered_modules()
        tables = [get_module_requirements(candidate) for candidate in candidates]
    for table in tables:
        if table and path in table.labels:
            return table.labels[path]
    return path
