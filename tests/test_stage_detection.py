# FILE: tests/test_stage_detection.py
"""
Tests for TTM stage classification.
"""
import pytest

from coach_engine.coaching.schemas import CoachingDepth, Stage
from coach_engine.coaching.stage_detection import (
    analyze_stage_detection,
    detect_stage,
    get_coaching_depth_for_stage,
    get_indicators_for_stage,
)
from coach_engine.config import DetectionConfig, EngineConfig


def user(text):
    return {"role": "user", "content": text}


def assistant(text):
    return {"role": "assistant", "content": text}


class TestFallback:
    def test_empty_history_is_contemplation(self):
        result = analyze_stage_detection([])
        assert result.stage == Stage.CONTEMPLATION
        assert result.is_fallback is True
        assert result.user_message_count == 0

    def test_none_history(self):
        assert detect_stage(None) == Stage.CONTEMPLATION

    def test_assistant_only_history(self):
        assert detect_stage([assistant("Ich plane konkret die ersten Schritte.")]) == Stage.CONTEMPLATION

    def test_malformed_entries_are_skipped(self):
        history = [None, 42, {"role": "system", "content": "x"}, {"role": "user"}, "text"]
        result = analyze_stage_detection(history)
        assert result.stage == Stage.CONTEMPLATION
        assert result.user_message_count == 1

    def test_tie_falls_back_and_reports_tied_indicators(self):
        result = analyze_stage_detection([user("Ich bin unsicher, aber neugierig.")])
        assert result.stage == Stage.CONTEMPLATION
        assert result.is_fallback is True
        assert "unsicher" in result.matched_indicators
        assert "aber" in result.matched_indicators


class TestClassification:
    def test_preparation(self):
        result = analyze_stage_detection([user("Ich plane konkret meinen Start.")])
        assert result.stage == Stage.PREPARATION
        assert result.is_fallback is False
        assert result.coaching_depth == CoachingDepth.DEEP
        assert set(result.matched_indicators) == {"ich plane", "konkret"}

    def test_umlaut_folding(self):
        assert detect_stage([user("Ich weiß nicht.")]) == Stage.PRECONTEMPLATION
        assert detect_stage([user("Ich weiss nicht.")]) == Stage.PRECONTEMPLATION

    def test_word_boundaries(self):
        # "aber" must not match inside "Aberglaube"
        result = analyze_stage_detection([user("Aberglaube")])
        assert result.is_fallback is True

    def test_every_occurrence_counts(self):
        result = analyze_stage_detection([user("Aber das Risiko, aber die Angst.")])
        contemplation = next(d for d in result.match_details if d.stage == Stage.CONTEMPLATION)
        assert contemplation.match_count == 4
        assert result.stage == Stage.CONTEMPLATION
        assert result.is_fallback is False

    def test_recent_message_outweighs_older_one(self):
        history = [
            user("Ich habe schon einen Kunden."),
            assistant("Was bedeutet das für dich?"),
            user("Ich bin unsicher."),
        ]
        assert detect_stage(history) == Stage.PRECONTEMPLATION

    def test_recency_weight_is_configurable(self):
        history = [user("Ich habe schon einen Kunden."), user("Ich bin unsicher.")]
        flat = EngineConfig(detection=DetectionConfig(recency_weight=0.0))
        result = analyze_stage_detection(history, flat)
        # without recency both score 1.0: tie
        assert result.is_fallback is True


class TestDepthMapping:
    @pytest.mark.parametrize("stage,depth", [
        (Stage.PRECONTEMPLATION, CoachingDepth.SHALLOW),
        (Stage.CONTEMPLATION, CoachingDepth.MEDIUM),
        (Stage.PREPARATION, CoachingDepth.DEEP),
        (Stage.ACTION, CoachingDepth.MEDIUM),
        (Stage.MAINTENANCE, CoachingDepth.SHALLOW),
    ])
    def test_depth(self, stage, depth):
        assert get_coaching_depth_for_stage(stage) == depth

    def test_indicators_are_normalized(self):
        assert "routinemaessig" in get_indicators_for_stage(Stage.MAINTENANCE)
