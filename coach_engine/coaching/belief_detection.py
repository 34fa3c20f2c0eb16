# FILE: coach_engine/coaching/belief_detection.py
"""
Limiting-belief detection (CBC).

Trigger phrases per belief; the belief with the most matching phrases wins,
earlier table entries win ties.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .indicators import belief_triggers, find_matches, normalize_text
from .schemas import BeliefDetection, LimitingBeliefType

logger = logging.getLogger(__name__)

# Short reframing hints, one per belief
REFRAME_HINTS: Dict[LimitingBeliefType, str] = {
    LimitingBeliefType.NOT_QUALIFIED: "Welche Erfahrungen aus deinem bisherigen Weg zahlen direkt auf dein Vorhaben ein?",
    LimitingBeliefType.NOT_SALESPERSON: "Vielleicht verkaufst du anders als durch Kaltakquise, etwa durch Beratung und Vertrauen.",
    LimitingBeliefType.MARKET_SATURATED: "Ein voller Markt zeigt Nachfrage. Die Frage ist, wie du dich unterscheidest.",
    LimitingBeliefType.NEED_MORE_PREP: "Was brauchst du wirklich als Minimum, um zu starten?",
    LimitingBeliefType.FAILURE_IS_END: "Was genau würdest du konkret verlieren, und was würdest du lernen?",
    LimitingBeliefType.NOT_NUMBERS_PERSON: "Zahlen lassen sich lernen. Welche Zahlen brauchst du für die ersten Entscheidungen?",
    LimitingBeliefType.TOO_OLD_YOUNG: "Welche Vorteile bringt gerade deine Lebensphase für dein Vorhaben?",
    LimitingBeliefType.NO_NETWORK: "Wer kennt dich bereits beruflich oder privat und könnte ein erster Kontakt sein?",
}


def detect_limiting_belief_with_details(message: Optional[str]) -> BeliefDetection:
    if not message or not message.strip():
        return BeliefDetection()

    normalized = normalize_text(message)
    best: Optional[BeliefDetection] = None
    for belief in LimitingBeliefType:
        hits = find_matches(normalized, belief_triggers(belief))
        if not hits:
            continue
        phrases: List[str] = []
        for hit in hits:
            if hit not in phrases:
                phrases.append(hit)
        if best is None or len(phrases) > best.match_count:
            best = BeliefDetection(belief=belief, match_count=len(phrases), matched_phrases=phrases)

    if best is None:
        return BeliefDetection()

    logger.debug(f"[belief] {best.belief.value} via {best.matched_phrases}")
    return best


def detect_limiting_belief(message: Optional[str]) -> Optional[LimitingBeliefType]:
    """Best-matching limiting belief in a user message, or None."""
    return detect_limiting_belief_with_details(message).belief


def get_reframe_hint(belief: LimitingBeliefType) -> str:
    return REFRAME_HINTS[belief]
