# FILE: coach_engine/coaching/strength_detection.py
"""
Strength discovery (appreciative inquiry).

Scans a user answer for strength indicators ("organisiert", "Problem
gelöst", "Durchhaltevermögen", ...) and files each hit under its category.
Strengths are reported in the spelling of the indicator table, in order of
first appearance. A negated hit ("nicht organisiert") does not count.
"""
from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Optional, Tuple

from .indicators import STRENGTH_INDICATORS, normalize_text, strength_phrases
from .schemas import StrengthDetection

logger = logging.getLogger(__name__)


def _build_lookups() -> Tuple[Dict[str, str], Dict[str, str]]:
    display: Dict[str, str] = {}
    categories: Dict[str, str] = {}
    for category, phrases in STRENGTH_INDICATORS.items():
        for phrase in phrases:
            key = normalize_text(phrase)
            display.setdefault(key, phrase)
            categories.setdefault(key, category)
    return display, categories


# Normalized indicator -> table spelling / -> category (first listing wins)
_DISPLAY, _CATEGORY = _build_lookups()

_NEGATION = re.compile(r"(?<!\w)(nicht|kaum|wenig|kein\w*) (so |sehr |besonders |gerade )?$")

# Distinct strengths needed for full confidence
CONFIDENT_STRENGTH_COUNT = 3


def _is_negated(normalized: str, start: int) -> bool:
    return bool(_NEGATION.search(normalized[max(0, start - 40):start]))


def _find(normalized: str) -> List[Tuple[int, str]]:
    hits: List[Tuple[int, str]] = []
    for category in STRENGTH_INDICATORS:
        for entry in strength_phrases(category):
            for match in entry.pattern.finditer(normalized):
                if _is_negated(normalized, match.start()):
                    logger.debug(f"[strength] Skipping negated '{entry.phrase}'")
                    continue
                hits.append((match.start(), entry.phrase))
    hits.sort()
    return hits


def extract_strengths(message: Optional[str]) -> List[str]:
    """Distinct strengths named in a message, in order of appearance."""
    if not message or not message.strip():
        return []
    strengths: List[str] = []
    for _, phrase in _find(normalize_text(message)):
        display = _DISPLAY.get(phrase, phrase)
        if display not in strengths:
            strengths.append(display)
    return strengths


def categorize_strengths(strengths: Iterable[str]) -> Dict[str, List[str]]:
    """
    Group strengths by category. A free-text strength is filed under the
    first category with an indicator inside it; anything else is dropped.
    """
    categorized: Dict[str, List[str]] = {}
    for strength in strengths:
        normalized = normalize_text(strength or "")
        if not normalized:
            continue
        category = _CATEGORY.get(normalized)
        if category is None:
            category = next(
                (
                    name for name in STRENGTH_INDICATORS
                    if any(entry.pattern.search(normalized) for entry in strength_phrases(name))
                ),
                None,
            )
        if category is None:
            continue
        bucket = categorized.setdefault(category, [])
        if strength not in bucket:
            bucket.append(strength)
    return categorized


def detect_strengths(message: Optional[str]) -> StrengthDetection:
    strengths = extract_strengths(message)
    if not strengths:
        return StrengthDetection()
    detection = StrengthDetection(
        strengths=strengths,
        categorized=categorize_strengths(strengths),
        confidence=min(len(strengths) / CONFIDENT_STRENGTH_COUNT, 1.0),
    )
    logger.debug(f"[strength] {strengths} confidence={detection.confidence:.2f}")
    return detection


def build_strengths_record(message: Optional[str]) -> Dict[str, object]:
    """
    Strengths of one answer in the shape the intake record stores them
    (raw, categorized, sourceResponse); empty when nothing was found.
    Combine records with extraction.merge.merge_strengths.
    """
    detection = detect_strengths(message)
    if not detection.strengths:
        return {}
    return {
        "raw": list(detection.strengths),
        "categorized": {k: list(v) for k, v in detection.categorized.items()},
        "sourceResponse": message.strip(),
    }
