# FILE: tests/test_grow_model.py
"""
Tests for GROW phase detection, module restrictions and prompt text.
"""
import pytest

from coach_engine.coaching.grow_model import (
    detect_grow_phase,
    generate_grow_transition,
    get_grow_prompt_for_phase,
    get_module_grow_phases,
    get_next_grow_phase,
    get_primary_sdt_need,
    is_phase_valid_for_module,
    score_grow_phases,
    validate_grow_completeness,
)
from coach_engine.coaching.modules import MODULE_ORDER, get_next_module, legal_phases
from coach_engine.coaching.schemas import AddressStyle, GROWPhase
from coach_engine.config import DetectionConfig, EngineConfig

GOAL_TEXT = "Mein Ziel ist es, Kunden zu erreichen."
REALITY_TEXT = "Wo stehst du gerade mit deiner Erfahrung?"
OPTIONS_TEXT = "Welche Möglichkeiten siehst du?"
WILL_TEXT = "Was ist der nächste Schritt?"


def user(text):
    return {"role": "user", "content": text}


def assistant(text):
    return {"role": "assistant", "content": text}


class TestModuleRegistry:
    def test_ten_modules_in_order(self):
        assert len(MODULE_ORDER) == 10
        assert MODULE_ORDER[0] == "gz-intake"
        assert MODULE_ORDER[-1] == "gz-zusammenfassung"

    def test_restricted_modules(self):
        assert legal_phases("gz-meilensteine") == (GROWPhase.WILL,)
        assert legal_phases("gz-kpi") == (GROWPhase.REALITY, GROWPhase.OPTIONS)
        assert legal_phases("gz-zusammenfassung") == (GROWPhase.REALITY,)

    def test_unknown_module_gets_full_sequence(self):
        assert get_module_grow_phases("does-not-exist") == list(GROWPhase)

    def test_next_module(self):
        assert get_next_module("gz-intake") == "gz-geschaeftsmodell"
        assert get_next_module("gz-zusammenfassung") is None
        assert get_next_module("nope") is None


class TestDefaults:
    @pytest.mark.parametrize("module_id,expected", [
        ("gz-intake", GROWPhase.GOAL),
        ("gz-meilensteine", GROWPhase.WILL),
        ("gz-kpi", GROWPhase.REALITY),
        (None, GROWPhase.GOAL),
    ])
    def test_empty_history_defaults_to_first_legal_phase(self, module_id, expected):
        assert detect_grow_phase([], module_id) == expected

    def test_will_only_module_never_reports_other_phases(self):
        for text in (GOAL_TEXT, REALITY_TEXT, OPTIONS_TEXT, WILL_TEXT, ""):
            assert detect_grow_phase([user(text)], "gz-meilensteine") == GROWPhase.WILL


class TestDetection:
    def test_goal(self):
        assert detect_grow_phase([user(GOAL_TEXT)], "gz-intake") == GROWPhase.GOAL

    def test_options(self):
        text = "Welche Möglichkeiten gibt es? Eine Alternative wäre ein Onlineshop."
        assert detect_grow_phase([user(text)], "gz-intake") == GROWPhase.OPTIONS
        assert detect_grow_phase([user(text)], "gz-kpi") == GROWPhase.OPTIONS

    def test_assistant_messages_are_ignored(self):
        history = [assistant(OPTIONS_TEXT), user(GOAL_TEXT)]
        assert detect_grow_phase(history, "gz-intake") == GROWPhase.GOAL

    def test_scores(self):
        scores = score_grow_phases(OPTIONS_TEXT, "gz-intake")
        assert scores[GROWPhase.OPTIONS] == 7.0
        assert scores[GROWPhase.GOAL] == 0.0

    def test_scores_only_cover_legal_phases(self):
        assert set(score_grow_phases(OPTIONS_TEXT, "gz-kpi")) == {GROWPhase.REALITY, GROWPhase.OPTIONS}

    def test_only_recent_window_is_scored(self):
        heavy_options = "Welche Möglichkeiten? Welche Möglichkeiten? Welche Möglichkeiten?"
        history = [user(heavy_options)]
        for _ in range(3):
            history += [assistant("Okay."), user(GOAL_TEXT)]

        assert detect_grow_phase(history, "gz-intake") == GROWPhase.GOAL

        whole = EngineConfig(detection=DetectionConfig(grow_recent_messages=0))
        assert detect_grow_phase(history, "gz-intake", whole) == GROWPhase.OPTIONS


class TestNavigation:
    def test_next_phase(self):
        assert get_next_grow_phase(GROWPhase.GOAL, "gz-intake") == GROWPhase.REALITY
        assert get_next_grow_phase(GROWPhase.WILL, "gz-intake") is None

    def test_next_phase_respects_module(self):
        assert get_next_grow_phase(GROWPhase.REALITY, "gz-kpi") == GROWPhase.OPTIONS
        assert get_next_grow_phase(GROWPhase.OPTIONS, "gz-kpi") is None
        assert get_next_grow_phase(GROWPhase.GOAL, "gz-kpi") is None

    def test_phase_validity(self):
        assert is_phase_valid_for_module(GROWPhase.WILL, "gz-meilensteine")
        assert not is_phase_valid_for_module(GROWPhase.GOAL, "gz-meilensteine")


class TestCompleteness:
    def test_all_phases_covered(self):
        history = [user(GOAL_TEXT), assistant(REALITY_TEXT), assistant(OPTIONS_TEXT), user(WILL_TEXT)]
        result = validate_grow_completeness(history, "gz-intake")
        assert result.is_complete
        assert result.missing_phases == []

    def test_missing_phases_get_suggestions(self):
        result = validate_grow_completeness([user(GOAL_TEXT)], "gz-intake")
        assert not result.is_complete
        assert result.missing_phases == [GROWPhase.REALITY, GROWPhase.OPTIONS, GROWPhase.WILL]
        assert len(result.suggestions) == 3

    def test_short_messages_never_cover_a_phase(self):
        result = validate_grow_completeness([user("Ziel?")], "gz-intake")
        assert GROWPhase.GOAL in result.missing_phases

    def test_restricted_module_only_checks_legal_phases(self):
        result = validate_grow_completeness([user(WILL_TEXT)], "gz-meilensteine")
        assert result.is_complete


class TestText:
    def test_known_transition(self):
        text = generate_grow_transition(GROWPhase.GOAL, GROWPhase.REALITY)
        assert "wo du aktuell stehst" in text

    def test_transition_formal(self):
        text = generate_grow_transition(GROWPhase.GOAL, GROWPhase.REALITY, "Sie")
        assert "wo Sie aktuell stehen" in text

    def test_fallback_transition(self):
        text = generate_grow_transition(GROWPhase.GOAL, GROWPhase.WILL)
        assert text == "Lass uns von goal zu will wechseln."

    def test_prompt_contains_enhancement_and_context(self):
        prompt = get_grow_prompt_for_phase(GROWPhase.GOAL, "gz-intake")
        assert prompt.startswith("Was willst DU mit diesem Modul erreichen?")
        assert "Was ist DIR wichtig bei diesem Thema?" in prompt
        assert "Hinweis:" in prompt

    def test_prompt_is_deterministic(self):
        first = get_grow_prompt_for_phase(GROWPhase.OPTIONS, "gz-geschaeftsmodell")
        assert first == get_grow_prompt_for_phase(GROWPhase.OPTIONS, "gz-geschaeftsmodell")

    def test_formal_prompt(self):
        prompt = get_grow_prompt_for_phase(GROWPhase.REALITY, None, AddressStyle.SIE)
        assert "stehen Sie" in prompt
        assert " du " not in prompt

    def test_primary_sdt_need(self):
        assert get_primary_sdt_need(GROWPhase.GOAL) == "autonomy"
        assert get_primary_sdt_need(GROWPhase.WILL) == "competence"
