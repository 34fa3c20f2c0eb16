# FILE: coach_engine/coaching/grow_model.py
"""
GROW Model Conversation Structure

Goal, Reality, Options, Will (Whitmore, Coaching for Performance) with
module-aware phase restriction and SDT-flavoured prompts.

Detection scores user text from the recent history window:
  keyword occurrence   +2
  question pattern     +5 per occurrence
  negative keyword     -1 per occurrence
Only the module's legal phases compete. A tie for first place or no
positive score falls back to the module's first legal phase, so a module
whose only phase is WILL can never report anything else.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from coach_engine.config import DetectionConfig, EngineConfig, get_config

from .indicators import (
    count_matches,
    grow_keywords,
    grow_negative_keywords,
    grow_patterns,
    normalize_text,
)
from .modules import legal_phases
from .schemas import (
    AddressStyle,
    GROWCompleteness,
    GROWPhase,
    Message,
    Role,
    coerce_messages,
)

logger = logging.getLogger(__name__)


# =============================================================================
# STATIC TEXT
# =============================================================================

GROW_PROMPTS: Dict[GROWPhase, str] = {
    GROWPhase.GOAL: "Was willst DU mit diesem Modul erreichen?",
    GROWPhase.REALITY: "Wo stehst du aktuell? Was hast du bereits?",
    GROWPhase.OPTIONS: "Welche Möglichkeiten siehst du?",
    GROWPhase.WILL: "Was nimmst du dir konkret vor?",
}

# Primary SDT need per phase and its prompt enhancements
GROW_SDT_INTEGRATION: Dict[GROWPhase, Tuple[str, List[str]]] = {
    GROWPhase.GOAL: ("autonomy", [
        "Was ist DIR wichtig bei diesem Thema?",
        "Welches Ergebnis würdest DU als Erfolg bezeichnen?",
        "Was möchtest DU hier selbst steuern?",
    ]),
    GROWPhase.REALITY: ("competence", [
        "Welche Fähigkeiten hast du bereits entwickelt?",
        "Was hast du in ähnlichen Situationen schon erfolgreich gemacht?",
        "Worauf kannst du aufbauen?",
    ]),
    GROWPhase.OPTIONS: ("autonomy", [
        "Welche Option fühlt sich für DICH richtig an?",
        "Bei welchem Weg hättest du die meiste Kontrolle?",
        "Was passt zu deiner Art, Dinge anzugehen?",
    ]),
    GROWPhase.WILL: ("competence", [
        "Wie wirst du merken, dass du Fortschritte machst?",
        "Was wird dir zeigen, dass du erfolgreich warst?",
        "Welche Fähigkeiten wirst du dabei entwickeln?",
    ]),
}

MODULE_PHASE_CONTEXT: Dict[str, Dict[GROWPhase, str]] = {
    "gz-intake": {
        GROWPhase.GOAL: "Bedenke: Dies ist deine erste wichtige Reflexion über deine Gründungsreise.",
        GROWPhase.REALITY: "Fokus auf: Aktuelle Situation, Motivation, und ersten Gedanken zur Geschäftsidee.",
        GROWPhase.WILL: "Wichtig: Commitment zur Fortsetzung und Bereitschaft für tiefere Module.",
    },
    "gz-geschaeftsmodell": {
        GROWPhase.GOAL: "Bedenke: Hier geht es um die Kernfrage: Was bietest du wem an?",
        GROWPhase.REALITY: "Fokus auf: Bestehende Ideen, Erfahrungen, erste Überlegungen.",
        GROWPhase.OPTIONS: "Wichtig: Verschiedene Angebotsformen und Zielgruppen-Optionen erkunden.",
        GROWPhase.WILL: "Kritisch: Konkrete Entscheidung über Angebot und primäre Zielgruppe.",
    },
    "gz-finanzplanung": {
        GROWPhase.GOAL: "Bedenke: Zahlen können Angst machen - wir gehen das gemeinsam an.",
        GROWPhase.REALITY: "Fokus auf: Vorhandene Ersparnisse, Erfahrung mit Zahlen, Unsicherheiten.",
        GROWPhase.OPTIONS: "Wichtig: Verschiedene Finanzierungsquellen und Szenarien erkunden.",
        GROWPhase.WILL: "Kritisch: Verbindliche Zahlen und realistische Finanzplanung.",
    },
    "gz-meilensteine": {
        GROWPhase.WILL: "Fokus: Konkrete Termine, messbare Ziele, verbindliche Commitments.",
    },
    "gz-zusammenfassung": {
        GROWPhase.REALITY: "Fokus: Reflexion der gesamten Reise, Fortschritte, und nächste Schritte.",
    },
}

COMPLETENESS_SUGGESTIONS: Dict[GROWPhase, str] = {
    GROWPhase.GOAL: "Frage nach dem konkreten Ziel für dieses Modul",
    GROWPhase.REALITY: "Erkunde die aktuelle Situation und vorhandene Ressourcen",
    GROWPhase.OPTIONS: "Diskutiere verschiedene Handlungsoptionen",
    GROWPhase.WILL: "Hole verbindliche Commitment für nächste Schritte",
}

_TRANSITIONS: Dict[Tuple[GROWPhase, GROWPhase], Dict[AddressStyle, str]] = {
    (GROWPhase.GOAL, GROWPhase.REALITY): {
        AddressStyle.DU: "Gut! Jetzt wo klar ist, was du erreichen möchtest, schauen wir uns an, wo du aktuell stehst.",
        AddressStyle.SIE: "Gut! Jetzt wo klar ist, was Sie erreichen möchten, schauen wir uns an, wo Sie aktuell stehen.",
    },
    (GROWPhase.REALITY, GROWPhase.OPTIONS): {
        AddressStyle.DU: "Verstehe. Basierend auf deiner aktuellen Situation - welche Möglichkeiten siehst du?",
        AddressStyle.SIE: "Verstehe. Basierend auf Ihrer aktuellen Situation - welche Möglichkeiten sehen Sie?",
    },
    (GROWPhase.OPTIONS, GROWPhase.WILL): {
        AddressStyle.DU: "Interessante Optionen! Jetzt die wichtige Frage: Was wirst du konkret tun?",
        AddressStyle.SIE: "Interessante Optionen! Jetzt die wichtige Frage: Was werden Sie konkret tun?",
    },
    (GROWPhase.REALITY, GROWPhase.GOAL): {
        AddressStyle.DU: "Basierend auf dem, was du hast - was willst du erreichen?",
        AddressStyle.SIE: "Basierend auf dem, was Sie haben - was wollen Sie erreichen?",
    },
    (GROWPhase.OPTIONS, GROWPhase.GOAL): {
        AddressStyle.DU: "Deine Ideen zeigen viele Möglichkeiten. Was ist dein eigentliches Ziel?",
        AddressStyle.SIE: "Ihre Ideen zeigen viele Möglichkeiten. Was ist Ihr eigentliches Ziel?",
    },
    (GROWPhase.WILL, GROWPhase.GOAL): {
        AddressStyle.DU: "Du hast konkrete Pläne. Aber nochmal zur Grundfrage: Was willst du wirklich erreichen?",
        AddressStyle.SIE: "Sie haben konkrete Pläne. Aber nochmal zur Grundfrage: Was wollen Sie wirklich erreichen?",
    },
}

# Du -> Sie rewrites, verb conjugations first
_SIE_REWRITES: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"\bmöchtest DU\b"), "möchten Sie"),
    (re.compile(r"\bwillst DU\b"), "wollen Sie"),
    (re.compile(r"\bkannst DU\b"), "können Sie"),
    (re.compile(r"\bwillst du\b"), "wollen Sie"),
    (re.compile(r"\bstehst du\b"), "stehen Sie"),
    (re.compile(r"\bhast du\b"), "haben Sie"),
    (re.compile(r"\bsiehst du\b"), "sehen Sie"),
    (re.compile(r"\bnimmst du dir\b"), "nehmen Sie sich"),
    (re.compile(r"\bwirst du\b"), "werden Sie"),
    (re.compile(r"\bkannst du\b"), "können Sie"),
    (re.compile(r"\bhättest du\b"), "hätten Sie"),
    (re.compile(r"\bwürdest DU\b"), "würden Sie"),
    (re.compile(r"\b(du|Du|DU)\b"), "Sie"),
    (re.compile(r"\b(dich|DICH)\b"), "Sie"),
    (re.compile(r"\b(dir|DIR)\b"), "Ihnen"),
    (re.compile(r"\bdeine\b"), "Ihre"),
    (re.compile(r"\bdeiner\b"), "Ihrer"),
    (re.compile(r"\bdeinen\b"), "Ihren"),
    (re.compile(r"\bdeinem\b"), "Ihrem"),
    (re.compile(r"\bdein\b"), "Ihr"),
]


def _to_sie(text: str) -> str:
    for pattern, replacement in _SIE_REWRITES:
        text = pattern.sub(replacement, text)
    return text


def _coerce_style(address_style: Any) -> AddressStyle:
    if isinstance(address_style, AddressStyle):
        return address_style
    if isinstance(address_style, str) and address_style.strip().lower() == "sie":
        return AddressStyle.SIE
    return AddressStyle.DU


# =============================================================================
# MODULE PHASE HELPERS
# =============================================================================

def get_module_grow_phases(module_id: Optional[str]) -> List[GROWPhase]:
    return list(legal_phases(module_id))


def is_phase_valid_for_module(phase: GROWPhase, module_id: Optional[str]) -> bool:
    return phase in legal_phases(module_id)


def get_next_grow_phase(current: GROWPhase, module_id: Optional[str] = None) -> Optional[GROWPhase]:
    """
    Next legal phase for the module, or None at the module's terminal phase
    or when the current phase is not legal for the module.
    """
    phases = legal_phases(module_id)
    if current not in phases:
        return None
    index = phases.index(current)
    if index + 1 >= len(phases):
        return None
    return phases[index + 1]


# =============================================================================
# DETECTION
# =============================================================================

def _score_phase(normalized: str, phase: GROWPhase, detection: DetectionConfig) -> float:
    if not normalized:
        return 0.0
    keyword_hits = count_matches(normalized, grow_keywords(phase))
    pattern_hits = sum(len(p.findall(normalized)) for p in grow_patterns(phase))
    negative_hits = count_matches(normalized, grow_negative_keywords(phase))
    return (
        keyword_hits * detection.grow_keyword_weight
        + pattern_hits * detection.grow_pattern_weight
        - negative_hits * detection.grow_negative_weight
    )


def score_grow_phases(
    text: str,
    module_id: Optional[str] = None,
    config: Optional[EngineConfig] = None,
) -> Dict[GROWPhase, float]:
    """Score raw text against every legal phase of the module."""
    cfg = config or get_config()
    normalized = normalize_text(text)
    return {
        phase: _score_phase(normalized, phase, cfg.detection)
        for phase in legal_phases(module_id)
    }


def _pick_phase(scores: Dict[GROWPhase, float], phases: Tuple[GROWPhase, ...]) -> Optional[GROWPhase]:
    """Strict winner with a positive score, else None."""
    if not scores:
        return None
    best = max(scores.values())
    if best <= 0:
        return None
    leaders = [p for p in phases if scores.get(p) == best]
    if len(leaders) != 1:
        return None
    return leaders[0]


def _recent_user_text(history: List[Message], window: int) -> str:
    recent = history[-window:] if window > 0 else history
    return " ".join(m.content for m in recent if m.role == Role.USER and m.content)


def detect_grow_phase(
    messages: Optional[Iterable[Any]],
    module_id: Optional[str] = None,
    config: Optional[EngineConfig] = None,
) -> GROWPhase:
    """
    Detect the current GROW phase, restricted to the module's legal set.
    """
    cfg = config or get_config()
    phases = legal_phases(module_id)
    history = coerce_messages(messages)
    text = _recent_user_text(history, cfg.detection.grow_recent_messages)

    scores = score_grow_phases(text, module_id, cfg)
    winner = _pick_phase(scores, phases)
    if winner is None:
        logger.debug(f"[grow] No clear phase for {module_id}, defaulting to {phases[0].value}")
        return phases[0]

    summary = ", ".join(f"{p.value}={s:g}" for p, s in scores.items())
    logger.debug(f"[grow] {module_id}: {winner.value} ({summary})")
    return winner


def validate_grow_completeness(
    messages: Optional[Iterable[Any]],
    module_id: Optional[str] = None,
    config: Optional[EngineConfig] = None,
) -> GROWCompleteness:
    """
    Check which legal phases the conversation has covered.

    A phase is covered when some single message (either role) with
    substantive content scores that phase strictly highest.
    """
    cfg = config or get_config()
    phases = legal_phases(module_id)
    covered = set()

    for message in coerce_messages(messages):
        normalized = normalize_text(message.content)
        if len(normalized) < cfg.detection.grow_min_message_length:
            continue
        scores = {p: _score_phase(normalized, p, cfg.detection) for p in phases}
        winner = _pick_phase(scores, phases)
        if winner is not None:
            covered.add(winner)

    missing = [p for p in phases if p not in covered]
    return GROWCompleteness(
        is_complete=not missing,
        missing_phases=missing,
        suggestions=[COMPLETENESS_SUGGESTIONS[p] for p in missing],
    )


# =============================================================================
# TEXT GENERATION
# =============================================================================

def generate_grow_transition(
    from_phase: GROWPhase,
    to_phase: GROWPhase,
    address_style: Any = AddressStyle.DU,
) -> str:
    style = _coerce_style(address_style)
    variants = _TRANSITIONS.get((from_phase, to_phase))
    if variants:
        return variants[style]
    return f"Lass uns von {from_phase.value} zu {to_phase.value} wechseln."


def get_grow_prompt_for_phase(
    phase: GROWPhase,
    module_id: Optional[str] = None,
    address_style: Any = AddressStyle.DU,
) -> str:
    """
    Coaching prompt for a phase: base question, first enhancement for the
    phase's primary SDT need, module context and, for goal/will, a reminder
    to use open questions.
    """
    style = _coerce_style(address_style)
    parts = [GROW_PROMPTS[phase]]

    _, enhancements = GROW_SDT_INTEGRATION[phase]
    if enhancements:
        parts.append(enhancements[0])

    context = MODULE_PHASE_CONTEXT.get(module_id or "", {}).get(phase)
    if context:
        parts.append(context)

    if phase in (GROWPhase.GOAL, GROWPhase.WILL):
        parts.append("Hinweis: Nutze offene Fragen und unterstütze deine Autonomie bei der Antwort.")

    prompt = "\n\n".join(parts)
    if style == AddressStyle.SIE:
        # The reminder addresses the coach, keep it informal
        body, sep, reminder = prompt.rpartition("\n\nHinweis:")
        if sep:
            return _to_sie(body) + sep + reminder.replace("deine Autonomie", "Ihre Autonomie")
        return _to_sie(prompt)
    return prompt


def get_primary_sdt_need(phase: GROWPhase) -> str:
    return GROW_SDT_INTEGRATION[phase][0]
