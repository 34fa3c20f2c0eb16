# FILE: coach_engine/validation/quality_validator.py
"""
Coaching Quality Validator

Watches the running metrics plus conversational context and decides which
corrective guidance goes into the next assistant turn.

Rules (thresholds in config):
  - autonomy below minimum once the grace exchanges are over
      -> HIGH when there was none at all, MEDIUM otherwise
  - emotion in the last user message and no empathy marker yet -> HIGH
    otherwise no empathy after the grace exchanges -> MEDIUM
  - advice giving above maximum -> MEDIUM, above critical -> HIGH
  - no reflective summary for summary_interval exchanges -> MEDIUM
  - leading questions above maximum -> MEDIUM
  - open-question ratio below minimum with enough questions asked -> LOW

Corrections are sorted HIGH -> MEDIUM -> LOW, stable within a priority.
The combined correction text only carries MEDIUM and HIGH corrections.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from coach_engine.coaching.quality_metrics import calculate_coaching_score, get_detailed_warnings
from coach_engine.coaching.schemas import QualityWarning
from coach_engine.config import EngineConfig, get_config

from .schemas import (
    PRIORITY_ORDER,
    CorrectionPriority,
    CorrectionPrompt,
    CorrectionType,
    QualityValidationResult,
    ValidationContext,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CORRECTION PROMPTS (German)
# =============================================================================

CORRECTION_PROMPTS: Dict[str, Dict[str, str]] = {
    "autonomy": {
        "low": (
            "COACHING-HINWEIS: Unterstütze die Autonomie des Nutzers stärker.\n"
            "Nutze Formulierungen wie:\n"
            "- \"Du entscheidest, wie du das angehen möchtest\"\n"
            "- \"Was passt für dich am besten?\"\n"
            "- \"Wie siehst du das?\"\n"
            "- \"Du kennst deine Situation am besten\""
        ),
        "critical": (
            "COACHING-WARNUNG: Autonomie-Unterstützung fehlt komplett!\n"
            "VERWENDE SOFORT in deiner nächsten Antwort:\n"
            "- \"Du entscheidest...\" oder\n"
            "- \"Was ist dir dabei wichtig?\" oder\n"
            "- \"Wie möchtest du vorgehen?\"\n"
            "Die Entscheidungen liegen beim Nutzer, nicht bei dir."
        ),
    },
    "empathy": {
        "with_emotion": (
            "COACHING-HINWEIS: Emotion erkannt, aber keine Empathie gezeigt!\n"
            "BEGINNE deine nächste Antwort mit einem Empathie-Marker:\n"
            "- \"Das klingt nach einer herausfordernden Situation...\"\n"
            "- \"Ich höre, dass dich das beschäftigt...\"\n"
            "- \"Das ist nachvollziehbar, dass du...\"\n"
            "- \"Ich verstehe, dass das nicht einfach ist...\""
        ),
        "general": (
            "COACHING-HINWEIS: Zeige mehr Empathie.\n"
            "Nutze Formulierungen wie:\n"
            "- \"Das klingt...\"\n"
            "- \"Ich verstehe...\"\n"
            "- \"Das ist nachvollziehbar...\""
        ),
    },
    "summary": {
        "needed": (
            "COACHING-HINWEIS: Es ist Zeit für eine reflektierende Zusammenfassung.\n"
            "Fasse in deiner nächsten Antwort zusammen:\n"
            "1. FAKTEN: Was hat der Nutzer gesagt?\n"
            "2. EMOTIONALES: Welche Gefühle hast du wahrgenommen?\n"
            "3. STÄRKEN: Was zeigt sich als Stärke?\n"
            "\n"
            "Schließe mit: \"Stimmt das so? Fehlt etwas?\""
        ),
    },
    "advice": {
        "warning": (
            "COACHING-WARNUNG: Du gibst zu viele Ratschläge!\n"
            "VERMEIDE Formulierungen wie:\n"
            "- \"Du solltest...\"\n"
            "- \"Am besten...\"\n"
            "- \"Ich empfehle...\"\n"
            "\n"
            "STATTDESSEN frage:\n"
            "- \"Was denkst du, wäre der nächste Schritt?\"\n"
            "- \"Welche Möglichkeiten siehst du?\"\n"
            "- \"Was würde für dich am besten funktionieren?\""
        ),
        "critical": (
            "COACHING-FEHLER: Zu viele Ratschläge gegeben!\n"
            "STOPPE sofort mit direktiven Aussagen.\n"
            "FRAGE stattdessen offene Fragen.\n"
            "Der Nutzer ist der Experte für sein Leben - du bist nur der Coach."
        ),
    },
    "leading": {
        "warning": (
            "COACHING-HINWEIS: Vermeide Suggestivfragen.\n"
            "Formuliere neutral und ergebnisoffen:\n"
            "- STATT \"Findest du nicht auch...?\" → \"Wie siehst du das?\"\n"
            "- STATT \"Wäre es nicht besser...?\" → \"Welche Optionen siehst du?\""
        ),
    },
    "questions": {
        "closed_ratio": (
            "COACHING-HINWEIS: Zu viele geschlossene Fragen.\n"
            "Ersetze geschlossene Fragen (Ja/Nein) durch offene:\n"
            "- STATT \"Hast du Erfahrung?\" → \"Welche Erfahrungen hast du?\"\n"
            "- STATT \"Willst du das?\" → \"Was möchtest du?\"\n"
            "- STATT \"Ist das klar?\" → \"Was denkst du darüber?\""
        ),
    },
}

CORRECTION_BANNER_START = "\n\n=== COACHING QUALITY CORRECTION ===\n\n"
CORRECTION_BANNER_END = "\n\n=== END CORRECTION ==="
CORRECTION_SEPARATOR = "\n\n---\n\n"


def _coerce_context(context: Any) -> ValidationContext:
    if isinstance(context, ValidationContext):
        return context
    if isinstance(context, dict):
        try:
            return ValidationContext.model_validate(context)
        except ValidationError:
            logger.warning("[quality] Unreadable validation context, validating zero metrics")
    return ValidationContext()


# =============================================================================
# VALIDATION
# =============================================================================

def _collect_corrections(ctx: ValidationContext, cfg: EngineConfig) -> List[CorrectionPrompt]:
    m = ctx.metrics
    t = cfg.thresholds
    v = cfg.validator
    corrections: List[CorrectionPrompt] = []

    # Autonomy
    if m.autonomy_instances < t.autonomy_minimum and ctx.exchange_count >= v.autonomy_grace_exchanges:
        none_at_all = m.autonomy_instances == 0
        corrections.append(CorrectionPrompt(
            type=CorrectionType.AUTONOMY,
            prompt=CORRECTION_PROMPTS["autonomy"]["critical" if none_at_all else "low"],
            priority=CorrectionPriority.HIGH if none_at_all else CorrectionPriority.MEDIUM,
            reason=f"Autonomie-Instanzen: {m.autonomy_instances} (Minimum: {t.autonomy_minimum})",
        ))

    # Empathy
    if ctx.emotion_detected and m.empathy_marker_count == 0:
        corrections.append(CorrectionPrompt(
            type=CorrectionType.EMPATHY,
            prompt=CORRECTION_PROMPTS["empathy"]["with_emotion"],
            priority=CorrectionPriority.HIGH,
            reason="Emotion erkannt aber keine Empathie gezeigt",
        ))
    elif m.empathy_marker_count < t.empathy_minimum and ctx.exchange_count > v.empathy_grace_exchanges:
        corrections.append(CorrectionPrompt(
            type=CorrectionType.EMPATHY,
            prompt=CORRECTION_PROMPTS["empathy"]["general"],
            priority=CorrectionPriority.MEDIUM,
            reason=f"Empathie-Marker: {m.empathy_marker_count} (Minimum: {t.empathy_minimum})",
        ))

    # Advice giving
    if m.advice_giving_count > t.advice_giving_maximum:
        critical = m.advice_giving_count > t.advice_giving_critical
        corrections.append(CorrectionPrompt(
            type=CorrectionType.ADVICE,
            prompt=CORRECTION_PROMPTS["advice"]["critical" if critical else "warning"],
            priority=CorrectionPriority.HIGH if critical else CorrectionPriority.MEDIUM,
            reason=f"Ratschläge gegeben: {m.advice_giving_count} (Maximum: {t.advice_giving_maximum})",
        ))

    # Reflective summary
    if ctx.exchanges_since_last_summary >= v.summary_interval:
        corrections.append(CorrectionPrompt(
            type=CorrectionType.SUMMARY,
            prompt=CORRECTION_PROMPTS["summary"]["needed"],
            priority=CorrectionPriority.MEDIUM,
            reason=f"{ctx.exchanges_since_last_summary} Austausche seit letzter Zusammenfassung",
        ))

    # Leading questions
    if m.leading_question_count > t.leading_question_maximum:
        corrections.append(CorrectionPrompt(
            type=CorrectionType.LEADING,
            prompt=CORRECTION_PROMPTS["leading"]["warning"],
            priority=CorrectionPriority.MEDIUM,
            reason=f"Suggestivfragen: {m.leading_question_count} (Maximum: {t.leading_question_maximum})",
        ))

    # Question balance
    if m.question_count >= v.min_questions_for_ratio and m.open_question_ratio < t.open_question_ratio_minimum:
        corrections.append(CorrectionPrompt(
            type=CorrectionType.QUESTIONS,
            prompt=CORRECTION_PROMPTS["questions"]["closed_ratio"],
            priority=CorrectionPriority.LOW,
            reason=(
                f"Offene Fragen: {round(m.open_question_ratio * 100)}% "
                f"(Minimum: {round(t.open_question_ratio_minimum * 100)}%)"
            ),
        ))

    return sorted(corrections, key=lambda c: PRIORITY_ORDER[c.priority])


def _build_summary(
    score: int,
    warnings: List[QualityWarning],
    corrections: List[CorrectionPrompt],
    cfg: EngineConfig,
) -> str:
    parts = [f"Coaching-Qualität: {score}/100"]

    if score >= cfg.thresholds.acceptance_score:
        parts.append("Status: Gut")
    elif score >= 50:
        parts.append("Status: Akzeptabel, Verbesserungen empfohlen")
    else:
        parts.append("Status: Unzureichend, Korrekturen erforderlich")

    if warnings:
        parts.append(f"Warnungen: {len(warnings)}")

    high = sum(1 for c in corrections if c.priority == CorrectionPriority.HIGH)
    if high:
        parts.append(f"Kritische Korrekturen: {high}")

    return " | ".join(parts)


def validate_coaching_quality(
    context: Any,
    config: Optional[EngineConfig] = None,
) -> QualityValidationResult:
    """
    Validate coaching quality for the current turn.

    Accepts a ValidationContext (or an equivalent dict). Never raises; an
    unreadable context validates as a fresh conversation.
    """
    cfg = config or get_config()
    ctx = _coerce_context(context)

    score = calculate_coaching_score(ctx.metrics, cfg)
    warnings = get_detailed_warnings(ctx.metrics, cfg)
    corrections = _collect_corrections(ctx, cfg)

    if corrections:
        logger.info(
            f"[quality] score={score} corrections="
            + ",".join(f"{c.type.value}:{c.priority.value}" for c in corrections)
        )

    return QualityValidationResult(
        is_acceptable=score >= cfg.thresholds.acceptance_score,
        score=score,
        warnings=warnings,
        corrections=corrections,
        summary=_build_summary(score, warnings, corrections, cfg),
    )


def get_quality_correction_prompt(
    context: Any,
    config: Optional[EngineConfig] = None,
) -> Optional[str]:
    """Prompt text of the single highest-priority correction, or None."""
    result = validate_coaching_quality(context, config)
    if not result.corrections:
        return None
    return result.corrections[0].prompt


def combine_correction_prompts(corrections: List[CorrectionPrompt]) -> Optional[str]:
    relevant = [c for c in corrections if c.priority != CorrectionPriority.LOW]
    if not relevant:
        return None
    body = CORRECTION_SEPARATOR.join(c.prompt for c in relevant)
    return f"{CORRECTION_BANNER_START}{body}{CORRECTION_BANNER_END}"


def get_all_correction_prompts(
    context: Any,
    config: Optional[EngineConfig] = None,
) -> Optional[str]:
    """
    All MEDIUM and HIGH corrections joined into one injection block, or
    None when nothing (or only LOW) needs correcting.
    """
    result = validate_coaching_quality(context, config)
    return combine_correction_prompts(result.corrections)
