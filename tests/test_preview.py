from engines.compiler import compile_rules
from engines.preview import check_rules
from formschema.builders import array, boolean, number, obj, optional, string, union


class TestCheckRules:
    def test_clean_data_is_accepted(self, login_schema):
        report = check_rules(compile_rules(login_schema), {"username": "ada", "password": "secret1"})
        assert report.accepted
        assert report.checked_fields == 3

    def test_required_and_bounds(self, login_schema):
        report = check_rules(compile_rules(login_schema), {"username": "ab", "password": ""})
        assert report.by_field() == {
            "username": ["username must be at least 3 characters"],
            "password": ["password is required"],
        }

    def test_optional_empty_field_is_skipped(self):
        schema = obj({"bio": optional(string().min(10))})
        assert check_rules(compile_rules(schema), {"bio": ""}).accepted

    def test_type_mismatch(self):
        schema = obj({"age": number().gte(18), "agree": boolean()})
        report = check_rules(compile_rules(schema), {"age": "old", "agree": "yes"})
        assert report.by_field() == {"age": ["age must be a number"], "agree": ["agree must be a boolean"]}

    def test_nan_is_not_a_number(self):
        schema = obj({"age": number().gte(0)})
        report = check_rules(compile_rules(schema), {"age": float("nan")})
        assert report.by_field() == {"age": ["age must be a number"]}

    def test_array_elements_are_expanded(self):
        schema = obj({"tags": array(string().max(3)).min(1)})
        report = check_rules(compile_rules(schema), {"tags": ["ok", "toolong"]})
        assert [v.path for v in report.violations] == ["tags[1]"]

    def test_pattern_and_email(self):
        schema = obj({"zip": string().regex(r"^\d{5}$"), "email": string().email()})
        report = check_rules(compile_rules(schema), {"zip": "1234", "email": "nope"})
        assert report.by_field() == {
            "zip": ["zip has an invalid format"],
            "email": ["email must be a valid email address"],
        }

    def test_union_bounds_apply_by_value_shape(self):
        schema = obj({"id": union(string().min(3), number().gt(0))})
        ruleset = compile_rules(schema)
        assert check_rules(ruleset, {"id": 5}).accepted
        assert not check_rules(ruleset, {"id": "ab"}).accepted

    def test_to_dict(self, login_schema):
        rendered = check_rules(compile_rules(login_schema), {"username": "ada"}).to_dict()
        assert rendered["accepted"] is False
        assert rendered["violations"] == [{"path": "password", "message": "password is required"}]
