import pytest

from engines.emitter import Bounds, Rule, Trigger, collapse_bounds, emit, emit_base, resolve_message
from engines.errors import UnsupportedConstraintKind
from formschema.constraints import Constraint, ConstraintKind


class TestEmit:
    def test_min_length_default_message(self):
        rule = emit(Constraint(ConstraintKind.MIN_LENGTH, 3), "username", True)
        assert rule.bounds == Bounds("length", min=3)
        assert rule.message == "username must be at least 3 characters"
        assert rule.trigger is Trigger.BLUR
        assert rule.required is True
        assert rule.type_tag == "String"

    def test_custom_message_wins(self):
        rule = emit(Constraint(ConstraintKind.MIN_LENGTH, 3, message="too short"), "username", True)
        assert rule.message == "too short"

    def test_empty_custom_message_falls_back(self):
        rule = emit(Constraint(ConstraintKind.MAX_LENGTH, 1, message=""), "initial", False)
        assert rule.message == "initial must be at most 1 character"

    @pytest.mark.parametrize("kind,value,expected", [
        (ConstraintKind.LENGTH, 5, "zip must be exactly 5 characters"),
        (ConstraintKind.PATTERN, r"^\d+$", "zip has an invalid format"),
        (ConstraintKind.GT, 0, "zip must be greater than 0"),
        (ConstraintKind.GTE, 1.0, "zip must be greater than or equal to 1"),
        (ConstraintKind.LT, 2.5, "zip must be less than 2.5"),
        (ConstraintKind.LTE, 10, "zip must be less than or equal to 10"),
        (ConstraintKind.MIN_ITEMS, 1, "zip must contain at least 1 item"),
        (ConstraintKind.MAX_ITEMS, 4, "zip must contain at most 4 items"),
        (ConstraintKind.ITEMS_LENGTH, 2, "zip must contain exactly 2 items"),
    ])
    def test_default_templates(self, kind, value, expected):
        assert resolve_message(Constraint(kind, value), "zip") == expected

    def test_numeric_bounds_carry_exclusivity(self):
        rule = emit(Constraint(ConstraintKind.GT, 0), "age", True, type_tag="Number")
        assert rule.bounds == Bounds("value", min=0, exclusive_min=True)
        assert rule.to_dict() == {
            "trigger": "blur",
            "required": True,
            "type": "number",
            "min": 0,
            "exclusiveMin": True,
            "message": "age must be greater than 0",
        }

    def test_email_retags_rule(self):
        rule = emit(Constraint(ConstraintKind.EMAIL), "email", True)
        assert rule.type_tag == "Email"
        assert rule.message == "email must be a valid email address"

    def test_union_tags_are_kept(self):
        rule = emit(Constraint(ConstraintKind.EMAIL), "contact", True, type_tag=("String", "Number"))
        assert rule.type_tag == ("String", "Number")
        assert rule.to_dict()["type"] == ["string", "number"]

    @pytest.mark.parametrize("kind,value,tag", [
        (ConstraintKind.MAX_LENGTH, 8, "String"),
        (ConstraintKind.PATTERN, r"^\d+$", "String"),
        (ConstraintKind.GT, 0, "Number"),
        (ConstraintKind.GTE, 5, "Number"),
        (ConstraintKind.LT, 10, "Number"),
        (ConstraintKind.LTE, 10, "Number"),
        (ConstraintKind.MIN_ITEMS, 1, "Array"),
        (ConstraintKind.MAX_ITEMS, 3, "Array"),
        (ConstraintKind.ITEMS_LENGTH, 2, "Array"),
        (ConstraintKind.URL, None, "Url"),
    ])
    def test_type_tag_follows_kind(self, kind, value, tag):
        assert emit(Constraint(kind, value), "field", True).type_tag == tag

    def test_explicit_type_tag_wins(self):
        rule = emit(Constraint(ConstraintKind.MIN_LENGTH, 1), "id", True, type_tag=("String", "Number"))
        assert rule.type_tag == ("String", "Number")

    def test_pattern_rule(self):
        rule = emit(Constraint(ConstraintKind.PATTERN, "^[a-z]+$"), "slug", True)
        assert rule.pattern == "^[a-z]+$"
        assert rule.bounds is None

    def test_constraint_trigger_overrides_default(self):
        rule = emit(Constraint(ConstraintKind.MIN_LENGTH, 2, trigger="change"), "q", True, trigger=Trigger.BLUR)
        assert rule.trigger is Trigger.CHANGE

    def test_blur_and_change_renders_both(self):
        rule = emit(Constraint(ConstraintKind.MIN_LENGTH, 2), "q", True, trigger="blur_and_change")
        assert rule.to_dict()["trigger"] == ["blur", "change"]

    def test_unknown_kind(self):
        with pytest.raises(UnsupportedConstraintKind):
            emit(Constraint("palindrome"), "word", True)


class TestEmitBase:
    def test_required_base_rule(self):
        rule = emit_base("agree", True, type_tag="Boolean")
        assert rule.message == "agree is required"
        assert rule.bounds is None and rule.pattern is None

    def test_optional_base_rule(self):
        rule = emit_base("rememberMe", False, type_tag="Boolean")
        assert rule.required is False
        assert rule.message == "rememberMe must be a boolean"

    def test_union_base_rule(self):
        assert emit_base("id", False, type_tag=("String", "Number")).message == "id must be a string or a number"


class TestCollapseBounds:
    def _rule(self, bounds, message):
        return Rule(trigger=Trigger.BLUR, required=True, type_tag="String", message=message, bounds=bounds)

    def test_min_and_max_fold(self):
        rules = [self._rule(Bounds("length", min=3), "a"), self._rule(Bounds("length", max=20), "b")]
        (merged,) = collapse_bounds(rules)
        assert merged.bounds == Bounds("length", min=3, max=20)
        assert merged.message == "a; b"

    def test_overlapping_slots_stay_separate(self):
        rules = [self._rule(Bounds("length", min=3), "a"), self._rule(Bounds("length", min=5), "b")]
        assert len(collapse_bounds(rules)) == 2

    def test_exact_never_folds(self):
        rules = [self._rule(Bounds("length", exact=3), "a"), self._rule(Bounds("length", max=5), "b")]
        assert len(collapse_bounds(rules)) == 2
