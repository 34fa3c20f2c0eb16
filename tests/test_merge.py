# FILE: tests/test_merge.py
"""
Tests for the partial data merge engine.
"""
import copy

from coach_engine.extraction.merge import (
    CONCAT_SEPARATOR,
    MergeStrategy,
    merge_module_record,
    merge_partial,
    merge_strengths,
)
from coach_engine.validation.completion import validate_phase
from coach_engine.validation.schemas import ValidationStatus


class TestReplace:
    def test_nested_siblings_survive(self):
        existing = {"founder": {"currentStatus": "unemployed", "motivation": "Freiheit"}}
        update = {"founder": {"motivation": "Selbstbestimmung"}}
        merged = merge_partial(existing, update)
        assert merged == {"founder": {"currentStatus": "unemployed", "motivation": "Selbstbestimmung"}}

    def test_null_blank_and_empty_never_overwrite(self):
        existing = {"a": "wert", "b": ["x"], "c": 5}
        merged = merge_partial(existing, {"a": "  ", "b": [], "c": None})
        assert merged == existing

    def test_new_keys_are_added(self):
        assert merge_partial({"a": 1}, {"b": {"c": 2}}) == {"a": 1, "b": {"c": 2}}

    def test_none_for_new_key_is_not_added(self):
        assert merge_partial({"a": 1}, {"b": None}) == {"a": 1}

    def test_zero_and_false_do_overwrite(self):
        merged = merge_partial({"n": 5, "flag": True}, {"n": 0, "flag": False})
        assert merged == {"n": 0, "flag": False}

    def test_list_replaced_by_default(self):
        assert merge_partial({"tags": ["a"]}, {"tags": ["b"]}) == {"tags": ["b"]}

    def test_object_replaces_scalar(self):
        assert merge_partial({"a": "text"}, {"a": {"b": 1}}) == {"a": {"b": 1}}

    def test_scalar_never_replaces_object(self):
        existing = {"founder": {"currentStatus": "unemployed",
                                "algStatus": {"daysRemaining": 200, "monthlyAmount": 1500}}}
        merged = merge_module_record("gz-intake", existing, {"founder": {"algStatus": "unbekannt"}})
        assert merged == existing
        assert validate_phase("gz-intake", "founder_profile", merged).status != ValidationStatus.BLOCKED

    def test_list_never_replaces_object(self):
        merged = merge_partial({"a": {"b": 1}}, {"a": ["x"]})
        assert merged == {"a": {"b": 1}}

    def test_scalar_fills_empty_object(self):
        assert merge_partial({"a": {}}, {"a": "wert"}) == {"a": "wert"}

    def test_non_mapping_arguments(self):
        assert merge_partial(None, None) == {}
        assert merge_partial("x", {"a": 1}) == {"a": 1}
        assert merge_partial({"a": 1}, ["junk"]) == {"a": 1}


class TestUnion:
    STRATEGIES = {"validation.strengths": MergeStrategy.UNION}

    def test_union_keeps_order_existing_first(self):
        merged = merge_partial(
            {"validation": {"strengths": ["Fachwissen", "Netzwerk"]}},
            {"validation": {"strengths": ["Netzwerk", "Ausdauer"]}},
            self.STRATEGIES,
        )
        assert merged["validation"]["strengths"] == ["Fachwissen", "Netzwerk", "Ausdauer"]

    def test_union_is_idempotent(self):
        existing = {"validation": {"strengths": ["Fachwissen"]}}
        update = {"validation": {"strengths": ["Ausdauer"]}}
        once = merge_partial(existing, update, self.STRATEGIES)
        twice = merge_partial(once, update, self.STRATEGIES)
        assert once == twice

    def test_union_with_unhashable_items(self):
        strategies = {"items": MergeStrategy.UNION}
        merged = merge_partial({"items": [{"n": 1}]}, {"items": [{"n": 1}, {"n": 2}]}, strategies)
        assert merged["items"] == [{"n": 1}, {"n": 2}]

    def test_union_wraps_scalars(self):
        merged = merge_partial({"items": "a"}, {"items": ["b"]}, {"items": MergeStrategy.UNION})
        assert merged["items"] == ["a", "b"]

    def test_wildcard_and_exact_precedence(self):
        strategies = {"cat.*": MergeStrategy.UNION, "cat.fixed": MergeStrategy.REPLACE}
        merged = merge_partial(
            {"cat": {"soft": ["a"], "fixed": ["a"]}},
            {"cat": {"soft": ["b"], "fixed": ["b"]}},
            strategies,
        )
        assert merged["cat"]["soft"] == ["a", "b"]
        assert merged["cat"]["fixed"] == ["b"]

    def test_unknown_strategy_is_ignored(self):
        merged = merge_partial({"x": ["a"]}, {"x": ["b"]}, {"x": "bogus"})
        assert merged == {"x": ["b"]}


class TestConcat:
    STRATEGIES = {"strengths.sourceResponse": MergeStrategy.CONCAT}

    def test_concat_joins_with_separator(self):
        merged = merge_partial(
            {"strengths": {"sourceResponse": "erste Antwort"}},
            {"strengths": {"sourceResponse": "zweite Antwort"}},
            self.STRATEGIES,
        )
        assert merged["strengths"]["sourceResponse"] == f"erste Antwort{CONCAT_SEPARATOR}zweite Antwort"

    def test_concat_is_not_idempotent(self):
        update = {"strengths": {"sourceResponse": "Antwort"}}
        once = merge_partial({}, update, self.STRATEGIES)
        twice = merge_partial(once, update, self.STRATEGIES)
        assert twice["strengths"]["sourceResponse"] == f"Antwort{CONCAT_SEPARATOR}Antwort"

    def test_concat_unique_skips_known_segments(self):
        strategies = {"strengths.sourceResponse": MergeStrategy.CONCAT_UNIQUE}
        update = {"strengths": {"sourceResponse": "Antwort"}}
        once = merge_partial({"strengths": {"sourceResponse": "Vorher"}}, update, strategies)
        twice = merge_partial(once, update, strategies)
        assert once == twice

    def test_blank_concat_keeps_existing(self):
        merged = merge_partial(
            {"strengths": {"sourceResponse": "Text"}},
            {"strengths": {"sourceResponse": ""}},
            self.STRATEGIES,
        )
        assert merged["strengths"]["sourceResponse"] == "Text"


class TestPurity:
    def test_inputs_are_not_mutated(self):
        existing = {"validation": {"strengths": ["a"]}, "x": {"y": 1}}
        update = {"validation": {"strengths": ["b"]}, "x": {"z": 2}}
        before_existing = copy.deepcopy(existing)
        before_update = copy.deepcopy(update)
        merged = merge_partial(existing, update, {"validation.strengths": MergeStrategy.UNION})
        assert existing == before_existing
        assert update == before_update
        merged["x"]["y"] = 99
        assert existing["x"]["y"] == 1


class TestModuleTables:
    def test_intake_strengths_union(self):
        merged = merge_module_record(
            "gz-intake",
            {"validation": {"strengths": ["Fachwissen"], "isGZEligible": True}},
            {"validation": {"strengths": ["Ausdauer"]}},
        )
        assert merged["validation"] == {"strengths": ["Fachwissen", "Ausdauer"], "isGZEligible": True}

    def test_extra_strategies_override(self):
        merged = merge_module_record(
            "gz-intake",
            {"validation": {"strengths": ["a"]}},
            {"validation": {"strengths": ["b"]}},
            extra_strategies={"validation.strengths": MergeStrategy.REPLACE},
        )
        assert merged["validation"]["strengths"] == ["b"]

    def test_unknown_module_uses_replace(self):
        merged = merge_module_record("gz-unternehmen", {"a": ["x"]}, {"a": ["y"]})
        assert merged == {"a": ["y"]}

    def test_merge_strengths(self):
        existing = {"raw": ["Geduld"], "categorized": {"social": ["Empathie"]}, "sourceResponse": "A"}
        update = {"raw": ["Mut"], "categorized": {"social": ["Humor"], "craft": ["Backen"]}, "sourceResponse": "B"}
        merged = merge_strengths(existing, update)
        assert merged["raw"] == ["Geduld", "Mut"]
        assert merged["categorized"] == {"social": ["Empathie", "Humor"], "craft": ["Backen"]}
        assert merged["sourceResponse"] == f"A{CONCAT_SEPARATOR}B"

    def test_merge_strengths_without_existing(self):
        update = {"raw": ["Mut"]}
        merged = merge_strengths(None, update)
        assert merged == update
        assert merged is not update
