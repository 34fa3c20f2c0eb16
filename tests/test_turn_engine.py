# FILE: tests/test_turn_engine.py
"""
Tests for per-turn orchestration and module progression.
"""
import pytest

from coach_engine.coaching.schemas import (
    Emotion,
    GROWPhase,
    LimitingBeliefType,
    Stage,
)
from coach_engine.engine.turn import CoachingSession
from coach_engine.errors import ModuleAdvanceError
from coach_engine.state.store import CoachingStateStore
from coach_engine.validation.quality_validator import CORRECTION_BANNER_START
from coach_engine.validation.schemas import CorrectionPriority, CorrectionType


def user(text):
    return {"role": "user", "content": text}


def assistant(text):
    return {"role": "assistant", "content": text}


@pytest.fixture
def session(clock):
    return CoachingSession("t1", store=CoachingStateStore("t1", clock=clock))


class TestBasics:
    def test_empty_history(self, session):
        result = session.process_turn([])
        assert result.stage == Stage.CONTEMPLATION
        assert result.stage_is_fallback
        assert result.grow_phase == GROWPhase.GOAL
        assert result.module_id == "gz-intake"
        assert session.state.exchange_count == 0

    def test_user_turn_counts_exchange(self, session):
        session.process_turn([user("Ich habe eine Idee für ein Café.")])
        assert session.state.exchange_count == 1
        assert session.state.module_exchange_count == 1

    def test_assistant_turn_does_not_count_exchange(self, session):
        session.process_turn([user("Hallo."), assistant("Was ist dir wichtig?")])
        assert session.state.exchange_count == 0
        assert session.state.metrics.open_question_count == 1

    def test_start_module(self, clock):
        session = CoachingSession("t2", module_id="gz-meilensteine", store=CoachingStateStore("t2", clock=clock))
        result = session.process_turn([user("Mein Ziel ist es, Kunden zu erreichen.")])
        assert result.module_id == "gz-meilensteine"
        assert result.grow_phase == GROWPhase.WILL
        assert session.state.grow_phase_by_module["gz-meilensteine"] == GROWPhase.WILL


class TestEmotionsAndBeliefs:
    def test_emotion_recorded_then_addressed(self, session):
        history = [user("Ich habe Angst zu scheitern.")]
        result = session.process_turn(history)
        assert result.emotion == Emotion.ANXIETY
        assert session.state.last_detected_emotion.addressed is False
        # emotion in the last user message and no empathy yet
        assert result.corrections[0].type == CorrectionType.EMPATHY
        assert result.corrections[0].priority == CorrectionPriority.HIGH

        history.append(assistant("Ich verstehe, das klingt belastend. Was macht dir am meisten Sorgen?"))
        session.process_turn(history)
        assert session.state.last_detected_emotion.addressed is True
        assert session.state.metrics.empathy_marker_count == 2

    def test_limiting_belief(self, session):
        result = session.process_turn([user("Ich bin kein Zahlenmensch.")])
        assert result.limiting_belief == LimitingBeliefType.NOT_NUMBERS_PERSON
        assert session.state.belief(LimitingBeliefType.NOT_NUMBERS_PERSON) is not None

    def test_strengths_discovered(self, session):
        history = [user("Im letzten Job habe ich das Team motiviert und war sehr organisiert.")]
        result = session.process_turn(history)
        assert result.strengths == ["motiviert", "organisiert"]
        assert session.state.discovered_strengths == ("motiviert", "organisiert")

        history += [assistant("Was hat dir dabei geholfen?"), user("Geduld und Ausdauer, und ich blieb organisiert.")]
        result = session.process_turn(history)
        assert result.strengths == ["geduld", "ausdauer", "organisiert"]
        assert session.state.discovered_strengths == ("motiviert", "organisiert", "geduld", "ausdauer")

    def test_assistant_praise_is_not_a_strength(self, session):
        session.process_turn([user("Hallo."), assistant("Du wirkst sehr organisiert und kreativ.")])
        assert session.state.discovered_strengths == ()


class TestStageAndGrowRecording:
    def test_stage_recorded_only_on_change(self, session):
        history = [user("Ich plane konkret meinen Start.")]
        result = session.process_turn(history)
        assert result.stage == Stage.PREPARATION
        assert len(session.state.stage_history) == 1
        assert session.state.stage_history[0].trigger in ("ich plane", "konkret")

        history.append(assistant("Was ist dir dabei wichtig?"))
        session.process_turn(history)
        assert len(session.state.stage_history) == 1

    def test_grow_transition(self, session):
        history = [user("Mein Ziel ist es, Kunden zu erreichen.")]
        first = session.process_turn(history)
        assert first.grow_phase == GROWPhase.GOAL
        assert first.grow_transition is None

        history.append(user("Welche Möglichkeiten habe ich? Eine Alternative wäre ein Onlineshop."))
        second = session.process_turn(history)
        assert second.grow_phase == GROWPhase.OPTIONS
        assert second.grow_transition == "Lass uns von goal zu options wechseln."
        assert session.state.current_grow_phase == GROWPhase.OPTIONS


class TestCorrections:
    def test_autonomy_correction_after_three_exchanges(self, session):
        history = []
        for text in ("Ich habe eine Idee.", "Es geht um ein Café.", "Mit eigener Backstube."):
            history.append(user(text))
            result = session.process_turn(history)
        assert result.corrections[0].type == CorrectionType.AUTONOMY
        assert result.corrections[0].priority == CorrectionPriority.HIGH
        assert result.correction_prompt.startswith(CORRECTION_BANNER_START)
        assert not result.is_acceptable

    def test_no_correction_on_first_exchange(self, session):
        result = session.process_turn([user("Ich habe eine Idee.")])
        assert result.corrections == []
        assert result.correction_prompt is None


class TestExtraction:
    def test_blocked_module_cannot_advance(self, session):
        result = session.process_turn(
            [user("Ich bin arbeitslos gemeldet.")],
            extracted={"founder": {"currentStatus": "unemployed"}},
        )
        assert result.module_record == {"founder": {"currentStatus": "unemployed"}}
        assert result.completion.is_blocked
        with pytest.raises(ModuleAdvanceError) as exc:
            session.advance_module()
        assert exc.value.module_id == "gz-intake"
        assert "ALG I" in str(exc.value)

    def test_records_accumulate(self, session):
        history = [user("Ich bin arbeitslos gemeldet.")]
        session.process_turn(history, extracted={"founder": {"currentStatus": "unemployed"}})
        history.append(user("Ich habe noch 200 Tage Anspruch."))
        result = session.process_turn(history, extracted={"founder": {"algStatus": {"daysRemaining": 200}}})
        assert result.module_record["founder"] == {
            "currentStatus": "unemployed",
            "algStatus": {"daysRemaining": 200},
        }
        assert not result.completion.is_blocked

    def test_returned_record_is_a_copy(self, session):
        result = session.process_turn([user("Hallo.")], extracted={"a": {"b": 1}})
        result.module_record["a"]["b"] = 2
        assert session.module_record == {"a": {"b": 1}}

    def test_incomplete_module_cannot_advance(self, session):
        session.process_turn([user("Hallo.")])
        with pytest.raises(ModuleAdvanceError) as exc:
            session.advance_module()
        assert "missing" in exc.value.reason


class TestAdvance:
    def test_complete_module_advances(self, session, intake_record):
        history = [user("Hier sind meine Daten.")]
        session.process_turn(history, extracted=intake_record)
        assert session.advance_module() == "gz-geschaeftsmodell"
        assert session.module_id == "gz-geschaeftsmodell"
        assert session.state.module_exchange_count == 0
        assert session.state.exchange_count == 1
        assert session.module_record == {}

    def test_module_without_requirements_always_advances(self, clock):
        session = CoachingSession("t3", module_id="gz-unternehmen", store=CoachingStateStore("t3", clock=clock))
        assert session.advance_module() == "gz-markt-wettbewerb"

    def test_last_module(self, clock):
        session = CoachingSession("t4", module_id="gz-zusammenfassung", store=CoachingStateStore("t4", clock=clock))
        with pytest.raises(ModuleAdvanceError):
            session.advance_module()

    def test_reset(self, session, intake_record):
        session.process_turn([user("Hallo.")], extracted=intake_record)
        session.advance_module()
        state = session.reset()
        assert state.current_module == "gz-intake"
        assert session.module_record == {}
