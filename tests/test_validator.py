import pytest

from core.errors import Err, ErrorCode, Ok
from engines.errors import AuthoritativeValidationFailed, UnsupportedConstraintKind
from engines.validator import validate
from formschema.builders import array, boolean, nullable, number, obj, optional, string, union


def _errors(result):
    assert result.is_err()
    return result.unwrap_err().errors


class TestValidate:
    def test_accepts_and_drops_unknown_keys(self, login_schema):
        result = validate(login_schema, {"username": "ada", "password": "secret1", "extra": 1})
        assert result == Ok({"username": "ada", "password": "secret1"})

    def test_errors_in_declaration_order(self, login_schema):
        result = validate(login_schema, {"username": "a" * 25, "password": "123"})
        assert _errors(result) == [
            ("username", "username must be at most 20 characters"),
            ("password", "password must be at least 6 characters"),
        ]

    def test_every_violated_constraint_is_reported(self):
        schema = obj({"code": string().min(5).regex(r"^\d+$")})
        assert _errors(validate(schema, {"code": "ab"})) == [
            ("code", "code must be at least 5 characters"),
            ("code", "code has an invalid format"),
        ]

    def test_missing_and_none(self):
        schema = obj({
            "a": string(),
            "b": optional(string()),
            "c": nullable(string()),
            "d": optional(nullable(string())),
        })
        assert _errors(validate(schema, {})) == [("a", "a is required"), ("c", "c is required")]
        assert validate(schema, {"a": "x", "c": None, "d": None}) == Ok({"a": "x", "c": None, "d": None})
        assert _errors(validate(schema, {"a": "x", "b": None, "c": "y"})) == [("b", "b is required")]

    def test_type_errors(self):
        schema = obj({"age": number(), "agree": boolean(), "name": string()})
        assert _errors(validate(schema, {"age": True, "agree": 1, "name": 5})) == [
            ("age", "age must be a number"),
            ("agree", "agree must be a boolean"),
            ("name", "name must be a string"),
        ]

    def test_root_must_be_object(self, login_schema):
        assert _errors(validate(login_schema, ["nope"])) == [("$", "value must be an object")]

    def test_array_indices_in_paths(self):
        schema = obj({"tags": array(string().max(3)).max(2)})
        assert _errors(validate(schema, {"tags": ["ok", "toolong", "abcd"]})) == [
            ("tags", "tags must contain at most 2 items"),
            ("tags[1]", "tags must be at most 3 characters"),
            ("tags[2]", "tags must be at most 3 characters"),
        ]

    def test_numeric_bounds(self):
        schema = obj({"qty": number().gt(0).lte(10)})
        assert validate(schema, {"qty": 10}).is_ok()
        assert _errors(validate(schema, {"qty": 0})) == [("qty", "qty must be greater than 0")]
        assert _errors(validate(schema, {"qty": 10.5})) == [("qty", "qty must be less than or equal to 10")]

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_numbers_are_not_numbers(self, value):
        schema = obj({"age": number().gte(0).lte(120)})
        assert _errors(validate(schema, {"age": value})) == [("age", "age must be a number")]

    def test_email_rejects_trailing_newline(self):
        schema = obj({"email": string().email()})
        assert _errors(validate(schema, {"email": "ada@example.com\n"})) == [
            ("email", "email must be a valid email address"),
        ]

    def test_email_and_url(self):
        schema = obj({"email": string().email(), "site": optional(string().url())})
        assert validate(schema, {"email": "ada@example.com", "site": "https://example.com"}).is_ok()
        assert _errors(validate(schema, {"email": "ada", "site": "example.com"})) == [
            ("email", "email must be a valid email address"),
            ("site", "site must be a valid URL"),
        ]

    def test_pattern_uses_search(self):
        schema = obj({"ref": string().regex(r"\d{3}")})
        assert validate(schema, {"ref": "abc123def"}).is_ok()

    def test_union_first_accepting_alternative(self):
        schema = obj({"id": union(number().gt(0), string().min(3))})
        assert validate(schema, {"id": 7}) == Ok({"id": 7})
        assert validate(schema, {"id": "abc"}) == Ok({"id": "abc"})

    def test_union_reports_first_matching_alternative(self):
        schema = obj({"id": union(number().gt(0), string().min(3))})
        assert _errors(validate(schema, {"id": "ab"})) == [("id", "id must be at least 3 characters")]

    def test_union_type_error_names_alternatives(self):
        schema = obj({"id": union(number(), string())})
        assert _errors(validate(schema, {"id": True})) == [("id", "id must be a number or a string")]
        assert _errors(validate(schema, {})) == [("id", "id is required")]

    def test_refinement_rejects_value_that_passes_rules(self):
        schema = obj({"password": string().min(6), "confirm": string()}).refine(
            lambda d: d["password"] == d["confirm"], "Passwords must match", path=("confirm",)
        )
        assert validate(schema, {"password": "secret1", "confirm": "secret1"}).is_ok()
        assert _errors(validate(schema, {"password": "secret1", "confirm": "secret2"})) == [
            ("confirm", "Passwords must match")
        ]

    def test_refinement_skipped_while_node_has_errors(self):
        calls = []

        def check(data):
            calls.append(data)
            return False

        schema = obj({"password": string().min(6)}).refine(check, "never")
        assert _errors(validate(schema, {"password": "x"})) == [("password", "password must be at least 6 characters")]
        assert calls == []

    def test_custom_message(self):
        schema = obj({"pin": string().length(4, message="PIN must have 4 digits")})
        assert _errors(validate(schema, {"pin": "12"})) == [("pin", "PIN must have 4 digits")]

    def test_unknown_kind_is_authoring_error(self):
        schema = obj({"word": string().constrain("palindrome")})
        with pytest.raises(UnsupportedConstraintKind):
            validate(schema, {"word": "abba"})


class TestAuthoritativeValidationFailed:
    def test_sensitive_values_redacted(self, login_schema):
        failure = validate(login_schema, {"username": "ada", "password": "123"}).unwrap_err()
        assert isinstance(failure, AuthoritativeValidationFailed)
        assert failure.details[0].actual_value == "123"
        (detail,) = failure.to_dict()["error"]["errors"]
        assert detail["value"] == "[REDACTED]"

    def test_to_app_error(self, login_schema):
        failure = validate(login_schema, {}).unwrap_err()
        error = failure.to_app_error()
        assert error.code is ErrorCode.E2040_AUTHORITATIVE_VALIDATION_FAILED
        assert error.code.http_status == 400
        assert error.metadata["error_count"] == 2
        assert [e["field"] for e in error.metadata["errors"]] == ["username", "password"]

    def test_result_matching(self, login_schema):
        match validate(login_schema, {}):
            case Err(failure):
                assert len(failure.errors) == 2
            case Ok(_):
                pytest.fail("expected rejection")
