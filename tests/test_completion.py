# FILE: tests/test_completion.py
"""
Tests for phase/module completion gating and the Gründungszuschuss helpers.
"""
import pytest

from coach_engine.validation.completion import (
    calculate_expected_gz,
    calculate_progress,
    can_advance,
    check_gz_eligibility,
    get_field_label,
    get_path,
    is_present,
    validate_module,
    validate_phase,
)
from coach_engine.validation.requirements import (
    ALG_DAYS_BLOCK_REASON,
    BUILTIN_REQUIREMENTS,
    ModuleRequirements,
    PhaseRequirement,
    get_module_requirements,
)
from coach_engine.validation.schemas import ValidationStatus

INTAKE = "gz-intake"


class TestPathHelpers:
    def test_get_path(self):
        data = {"a": {"b": {"c": 1}}}
        assert get_path(data, "a.b.c") == 1
        assert get_path(data, "a.x.c") is None
        assert get_path({"a": "scalar"}, "a.b") is None
        assert get_path(None, "a") is None

    @pytest.mark.parametrize("value,present", [
        (None, False), ("", False), ("   ", False), ([], False), ({}, False),
        ("x", True), (0, True), (False, True), (["a"], True),
    ])
    def test_is_present(self, value, present):
        assert is_present(value) is present


class TestFounderProfile:
    def test_unemployed_without_days_is_blocked(self, make_intake_record):
        record = make_intake_record(days_remaining=None)
        result = validate_phase(INTAKE, "founder_profile", record)
        assert result.status == ValidationStatus.BLOCKED
        assert result.is_blocked is True
        assert result.is_complete is False
        assert result.blocking_field == "founder.algStatus.daysRemaining"
        assert result.block_reason == ALG_DAYS_BLOCK_REASON
        assert result.missing_fields == ["founder.algStatus.daysRemaining"]

    def test_non_numeric_days_still_block(self, make_intake_record):
        record = make_intake_record()
        record["founder"]["algStatus"]["daysRemaining"] = "ca. 200"
        assert validate_phase(INTAKE, "founder_profile", record).is_blocked

    def test_unemployed_with_days_is_complete(self, intake_record):
        result = validate_phase(INTAKE, "founder_profile", intake_record)
        assert result.status == ValidationStatus.COMPLETE
        assert result.is_complete
        assert "founder.algStatus.monthlyAmount" in result.completed_fields
        assert result.warnings == []

    def test_low_days_warn_but_do_not_block(self, make_intake_record):
        result = validate_phase(INTAKE, "founder_profile", make_intake_record(days_remaining=120))
        assert result.is_complete
        assert not result.is_blocked
        assert len(result.warnings) == 1
        assert "120" in result.warnings[0]

    def test_employed_needs_no_alg_data(self, make_intake_record):
        result = validate_phase(INTAKE, "founder_profile", make_intake_record(status="employed"))
        assert result.is_complete
        assert "founder.algStatus.daysRemaining" not in result.missing_fields


class TestPhaseValidation:
    def test_missing_fields_are_incomplete(self, intake_record):
        intake_record["businessIdea"]["problem"] = "   "
        result = validate_phase(INTAKE, "warmup", intake_record)
        assert result.status == ValidationStatus.INCOMPLETE
        assert result.missing_fields == ["businessIdea.problem"]
        assert not result.is_blocked

    def test_missing_intermediate_objects(self):
        result = validate_phase(INTAKE, "resources", {"resources": None})
        assert len(result.missing_fields) == 4

    def test_unknown_module_or_phase_is_complete(self):
        assert validate_phase("gz-unternehmen", "anything", {}).is_complete
        assert validate_phase(INTAKE, "no-such-phase", {}).is_complete

    def test_garbage_data_never_raises(self):
        result = validate_phase(INTAKE, "warmup", "not a mapping")
        assert result.status == ValidationStatus.INCOMPLETE


class TestModuleValidation:
    def test_complete_record(self, intake_record):
        completion = validate_module(INTAKE, intake_record)
        assert completion.is_complete
        assert not completion.is_blocked
        assert completion.current_phase is None
        assert completion.progress_percent == 100

    def test_blocked_module(self, make_intake_record):
        completion = validate_module(INTAKE, make_intake_record(days_remaining=None))
        assert completion.is_blocked
        assert not completion.is_complete
        assert completion.blocked_phase == "founder_profile"
        assert completion.current_phase == "founder_profile"
        assert completion.block_reason == ALG_DAYS_BLOCK_REASON

    def test_can_advance_stops_at_block(self, make_intake_record):
        record = make_intake_record(days_remaining=None)
        assert can_advance(INTAKE, "warmup", record)
        assert not can_advance(INTAKE, "founder_profile", record)
        # later phases are complete on their own but sit behind the block
        assert validate_phase(INTAKE, "personality", record).is_complete
        assert not can_advance(INTAKE, "personality", record)

    def test_can_advance_needs_complete_phase(self):
        assert not can_advance(INTAKE, "warmup", {})

    def test_unknown_module(self):
        completion = validate_module("gz-unternehmen", {})
        assert completion.is_complete
        assert completion.progress_percent == 0
        assert can_advance("gz-unternehmen", "anything", {})


class TestProgress:
    def test_empty(self):
        assert calculate_progress(INTAKE, {}) == 0

    def test_base_paths_only(self, intake_record):
        data = {"businessIdea": intake_record["businessIdea"]}
        # 4 of 25 base paths
        assert calculate_progress(INTAKE, data) == 16

    def test_active_conditional_paths_count(self, intake_record):
        data = {
            "businessIdea": intake_record["businessIdea"],
            "founder": {"currentStatus": "unemployed"},
        }
        # 5 of 27 paths: 18.5 rounds up
        assert calculate_progress(INTAKE, data) == 19

    def test_unknown_module(self):
        assert calculate_progress("gz-unternehmen", {"x": 1}) == 0


class TestGruendungszuschuss:
    def test_eligibility_boundary(self):
        assert check_gz_eligibility(150).is_eligible is True
        assert check_gz_eligibility(149).is_eligible is False
        assert "149" in check_gz_eligibility(149).message

    @pytest.mark.parametrize("value", [None, "abc", "200", True])
    def test_eligibility_without_a_number(self, value):
        result = check_gz_eligibility(value)
        assert result.is_eligible is False
        assert "fehlt" in result.message

    def test_expected_amount(self):
        assert calculate_expected_gz(1200) == 9000
        assert calculate_expected_gz(0) == 1800

    def test_field_labels(self):
        assert get_field_label("founder.algStatus.daysRemaining") == "ALG I Resttage"
        assert get_field_label("usp.proof", "gz-geschaeftsmodell") == "USP Beweis"
        assert get_field_label("no.such.path") == "no.such.path"


class TestRegistry:
    def test_custom_module_passed_explicitly(self):
        custom = ModuleRequirements(
            module_id="test-custom-module",
            phases=(PhaseRequirement(phase="one", label="Eins", required=("a.b",)),),
            labels={"a.b": "Feld B"},
        )
        assert not validate_module("test-custom-module", {}, custom).is_complete
        assert validate_module("test-custom-module", {"a": {"b": 1}}, custom).is_complete
        assert get_field_label("a.b", requirements=custom) == "Feld B"
        # nothing leaks into the shared tables
        assert get_module_requirements("test-custom-module") is None
        assert validate_module("test-custom-module", {}).is_complete
        assert get_field_label("a.b") == "a.b"

    def test_builtin_tables_are_read_only(self):
        with pytest.raises(TypeError):
            BUILTIN_REQUIREMENTS["test-custom-module"] = BUILTIN_REQUIREMENTS[INTAKE]
        assert set(BUILTIN_REQUIREMENTS) == {"gz-intake", "gz-geschaeftsmodell"}

    def test_explicit_requirements_argument(self):
        table = ModuleRequirements(
            module_id="inline",
            phases=(PhaseRequirement(phase="p", label="P", required=("x",)),),
        )
        assert validate_phase("inline", "p", {}, table).missing_fields == ["x"]
        assert calculate_progress("inline", {"x": "y"}, table) == 100
