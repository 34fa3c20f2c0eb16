# FILE: coach_engine/validation/requirements.py
"""
Declarative phase requirement tables.

A module is an ordered list of phases; every phase names the dot-notation
paths it requires. Conditional requirements add paths when another field
has a given value. Blocking requirements halt progression entirely until
a numeric value exists (regulatory data, e.g. remaining ALG I days).

The tables are data: callers with their own modules pass a ModuleRequirements
explicitly to the validators.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple


@dataclass(frozen=True)
class ConditionalRequirement:
    """Extra required paths while `when_path` equals `equals`."""
    when_path: str
    equals: Any
    required: Tuple[str, ...]


@dataclass(frozen=True)
class BlockingRequirement:
    """
    A numeric value that must exist before the phase can move on.

    Optional condition (when_path/equals); without one the block is
    unconditional. `minimum` only produces a warning, never a block.
    """
    path: str
    reason: str
    when_path: Optional[str] = None
    equals: Any = None
    minimum: Optional[float] = None
    minimum_warning: Optional[str] = None  # formatted with value= and minimum=


@dataclass(frozen=True)
class PhaseRequirement:
    phase: str
    label: str
    required: Tuple[str, ...] = ()
    conditional: Tuple[ConditionalRequirement, ...] = ()
    blocking: Tuple[BlockingRequirement, ...] = ()


@dataclass(frozen=True)
class ModuleRequirements:
    module_id: str
    phases: Tuple[PhaseRequirement, ...]
    labels: Mapping[str, str] = field(default_factory=dict)

    def phase(self, name: str) -> Optional[PhaseRequirement]:
        for requirement in self.phases:
            if requirement.phase == name:
                return requirement
        return None

    @property
    def phase_names(self) -> Tuple[str, ...]:
        return tuple(p.phase for p in self.phases)


# =============================================================================
# GRÜNDUNGSZUSCHUSS CONSTANTS
# =============================================================================

GZ_MIN_ALG_DAYS = 150
GZ_SOCIAL_INSURANCE_MONTHLY = 300
GZ_PHASE_ONE_MONTHS = 6

ALG_DAYS_BLOCK_REASON = (
    "Für arbeitslose Gründer ist die genaue Anzahl der ALG I-Resttage erforderlich. "
    "Bitte gib die exakte Zahl aus deinem Bescheid an."
)


# =============================================================================
# INTAKE
# =============================================================================

INTAKE_REQUIREMENTS = ModuleRequirements(
    module_id="gz-intake",
    phases=(
        PhaseRequirement(
            phase="warmup",
            label="Warm-Up",
            required=(
                "businessIdea.elevator_pitch",
                "businessIdea.problem",
                "businessIdea.solution",
                "businessIdea.targetAudience",
            ),
        ),
        PhaseRequirement(
            phase="founder_profile",
            label="Gründerprofil",
            required=(
                "founder.currentStatus",
                "founder.experience.yearsInIndustry",
                "founder.qualifications.education",
                "founder.motivation",
            ),
            conditional=(
                ConditionalRequirement(
                    when_path="founder.currentStatus",
                    equals="unemployed",
                    required=(
                        "founder.algStatus.daysRemaining",
                        "founder.algStatus.monthlyAmount",
                    ),
                ),
            ),
            blocking=(
                BlockingRequirement(
                    path="founder.algStatus.daysRemaining",
                    reason=ALG_DAYS_BLOCK_REASON,
                    when_path="founder.currentStatus",
                    equals="unemployed",
                    minimum=GZ_MIN_ALG_DAYS,
                    minimum_warning=(
                        "Mit {value} Tagen ALG I-Restanspruch liegt der Anspruch "
                        "unter dem GZ-Minimum von {minimum} Tagen."
                    ),
                ),
            ),
        ),
        PhaseRequirement(
            phase="personality",
            label="Unternehmerische Persönlichkeit",
            required=(
                "personality.innovativeness",
                "personality.riskTaking",
                "personality.achievement",
                "personality.proactiveness",
                "personality.locusOfControl",
                "personality.selfEfficacy",
                "personality.autonomy",
            ),
        ),
        PhaseRequirement(
            phase="profile_gen",
            label="Profil-Erstellung",
            required=("personality.narrative",),
        ),
        PhaseRequirement(
            phase="resources",
            label="Ressourcen",
            required=(
                "resources.financial.availableCapital",
                "resources.time.hoursPerWeek",
                "resources.time.isFullTime",
                "resources.network.industryContacts",
            ),
        ),
        PhaseRequirement(
            phase="business_type",
            label="Geschäftstyp",
            required=(
                "businessType.category",
                "businessType.isDigitalFirst",
                "businessType.isLocationDependent",
            ),
        ),
        PhaseRequirement(
            phase="validation",
            label="Validierung",
            required=(
                "validation.isGZEligible",
                "validation.strengths",
            ),
        ),
    ),
    labels={
        "businessIdea.elevator_pitch": "Elevator Pitch",
        "businessIdea.problem": "Problem",
        "businessIdea.solution": "Lösung",
        "businessIdea.targetAudience": "Zielgruppe",
        "founder.currentStatus": "Beruflicher Status",
        "founder.algStatus.daysRemaining": "ALG I Resttage",
        "founder.algStatus.monthlyAmount": "ALG I monatlich",
        "founder.experience.yearsInIndustry": "Branchenerfahrung",
        "founder.qualifications.education": "Ausbildung",
        "founder.motivation": "Motivation",
        "personality.innovativeness": "Innovationsfreude",
        "personality.riskTaking": "Risikobereitschaft",
        "personality.achievement": "Leistungsmotivation",
        "personality.proactiveness": "Proaktivität",
        "personality.locusOfControl": "Kontrollüberzeugung",
        "personality.selfEfficacy": "Selbstwirksamkeit",
        "personality.autonomy": "Autonomie",
        "personality.narrative": "Profil-Zusammenfassung",
        "resources.financial.availableCapital": "Eigenkapital",
        "resources.time.hoursPerWeek": "Stunden pro Woche",
        "resources.time.isFullTime": "Vollzeit/Teilzeit",
        "resources.network.industryContacts": "Branchenkontakte",
        "businessType.category": "Geschäftskategorie",
        "businessType.isDigitalFirst": "Digital First",
        "businessType.isLocationDependent": "Standortabhängig",
        "validation.isGZEligible": "GZ-Berechtigung",
        "validation.strengths": "Stärken",
    },
)


# =============================================================================
# GESCHÄFTSMODELL
# =============================================================================

GESCHAEFTSMODELL_REQUIREMENTS = ModuleRequirements(
    module_id="gz-geschaeftsmodell",
    phases=(
        PhaseRequirement(
            phase="angebot",
            label="Angebot",
            required=(
                "offering.mainOffering",
                "offering.deliveryFormat",
                "offering.pricingModel",
                "offering.oneSentencePitch",
            ),
        ),
        PhaseRequirement(
            phase="zielgruppe",
            label="Zielgruppe",
            required=(
                "targetAudience.primaryPersona.name",
                "targetAudience.primaryPersona.demographics.occupation",
                "targetAudience.primaryPersona.demographics.location",
                "targetAudience.primaryPersona.psychographics.challenges",
                "targetAudience.primaryPersona.buyingTrigger",
                "targetAudience.marketSize.serviceableMarket",
            ),
        ),
        PhaseRequirement(
            phase="wertversprechen",
            label="Wertversprechen",
            required=(
                "valueProposition.customerJobs",
                "valueProposition.customerPains",
                "valueProposition.painRelievers",
                "valueProposition.valueStatement",
            ),
        ),
        PhaseRequirement(
            phase="usp",
            label="Alleinstellungsmerkmal",
            required=(
                "usp.statement",
                "usp.category",
                "usp.proof",
                "competitiveAnalysis.directCompetitors",
            ),
        ),
    ),
    labels={
        "offering.mainOffering": "Hauptangebot",
        "offering.deliveryFormat": "Lieferformat",
        "offering.pricingModel": "Preismodell",
        "offering.oneSentencePitch": "Elevator Pitch",
        "targetAudience.primaryPersona.name": "Persona Name",
        "targetAudience.primaryPersona.demographics.occupation": "Beruf",
        "targetAudience.primaryPersona.demographics.location": "Standort",
        "targetAudience.primaryPersona.psychographics.challenges": "Herausforderungen",
        "targetAudience.primaryPersona.buyingTrigger": "Kaufauslöser",
        "targetAudience.marketSize.serviceableMarket": "SAM",
        "valueProposition.customerJobs": "Kundenaufgaben",
        "valueProposition.customerPains": "Kundenprobleme",
        "valueProposition.painRelievers": "Problemlöser",
        "valueProposition.valueStatement": "Wertversprechen",
        "usp.statement": "USP Statement",
        "usp.category": "USP Kategorie",
        "usp.proof": "USP Beweis",
        "competitiveAnalysis.directCompetitors": "Wettbewerber",
    },
)


# =============================================================================
# BUILT-IN TABLES
# =============================================================================

# Read-only; callers with their own modules pass `requirements=` explicitly
BUILTIN_REQUIREMENTS: Mapping[str, ModuleRequirements] = MappingProxyType({
    INTAKE_REQUIREMENTS.module_id: INTAKE_REQUIREMENTS,
    GESCHAEFTSMODELL_REQUIREMENTS.module_id: GESCHAEFTSMODELL_REQUIREMENTS,
})


def get_module_requirements(module_id: Optional[str]) -> Optional[ModuleRequirements]:
    if not module_id:
        return None
    return BUILTIN_REQUIREMENTS.get(module_id)


def registered_modules() -> Tuple[str, ...]:
    return tuple(BUILTIN_REQUIREMENTS)
