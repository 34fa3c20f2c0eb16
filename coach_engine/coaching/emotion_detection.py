# FILE: coach_engine/coaching/emotion_detection.py
"""
Emotion detection for MI-based coaching.

Each emotion has weighted signal patterns; the emotion with the highest
summed weight wins (ties go to the emotion listed first). Intensity comes
from that score plus boosts for intensity markers in the raw text
(exclamation marks, CAPS, intensifiers, repetition):

  score + boost >= 6  -> high
  score + boost >= 3  -> medium
  otherwise           -> low
"""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from .indicators import emotion_signals, intensity_markers, normalize_text
from .schemas import Emotion, EmotionDetection, EmotionIntensity

logger = logging.getLogger(__name__)

HIGH_INTENSITY_SCORE = 6.0
MEDIUM_INTENSITY_SCORE = 3.0


def _score_emotion(normalized: str, emotion: Emotion) -> Tuple[int, List[str]]:
    score = 0
    matches: List[str] = []
    for pattern, weight, label in emotion_signals(emotion):
        if pattern.search(normalized):
            score += weight
            matches.append(label)
    return score, matches


def _detect_intensity_markers(message: str) -> Tuple[List[str], float]:
    markers: List[str] = []
    boost = 0.0
    for pattern, label, value in intensity_markers():
        if pattern.search(message):
            markers.append(label)
            boost += value
    return markers, boost


def determine_intensity(score: float, boost: float) -> EmotionIntensity:
    adjusted = score + boost
    if adjusted >= HIGH_INTENSITY_SCORE:
        return EmotionIntensity.HIGH
    if adjusted >= MEDIUM_INTENSITY_SCORE:
        return EmotionIntensity.MEDIUM
    return EmotionIntensity.LOW


def detect_emotion_with_details(message: Optional[str]) -> EmotionDetection:
    """Detect the dominant emotion in a user message, with intensity and matched signals."""
    if not message or not message.strip():
        return EmotionDetection()

    normalized = normalize_text(message)
    best: Optional[Tuple[Emotion, int, List[str]]] = None
    for emotion in Emotion:
        score, matches = _score_emotion(normalized, emotion)
        if score > 0 and (best is None or score > best[1]):
            best = (emotion, score, matches)

    if best is None:
        return EmotionDetection()

    emotion, score, matches = best
    markers, boost = _detect_intensity_markers(message)
    intensity = determine_intensity(score, boost)
    logger.debug(f"[emotion] {emotion.value} ({intensity.value}) signals={matches} markers={markers}")

    return EmotionDetection(
        emotion=emotion,
        intensity=intensity,
        score=float(score),
        matched_signals=matches,
        intensity_markers=markers,
    )


def detect_emotion(message: Optional[str]) -> Optional[Emotion]:
    return detect_emotion_with_details(message).emotion


def has_emotion_signal(message: Optional[str]) -> bool:
    return detect_emotion(message) is not None
