import pytest

from core.errors import AppError, Err, ErrorCode, Ok, not_found, submission_rejected
from core.validation import is_sensitive_field
from engines.errors import InvalidTopLevelSchema, MalformedSchema, UnsupportedConstraintKind
from formschema.paths import FieldPath


class TestErrorCode:
    def test_http_status(self):
        assert ErrorCode.E2030_UNSUPPORTED_CONSTRAINT_KIND.http_status == 400
        assert ErrorCode.E2040_AUTHORITATIVE_VALIDATION_FAILED.http_status == 400
        assert ErrorCode.E4010_NOT_FOUND.http_status == 404
        assert ErrorCode.E4011_DUPLICATE_KEY.http_status == 409
        assert ErrorCode.E4001_CONNECTION_FAILED.http_status == 503
        assert ErrorCode.E9001_UNEXPECTED_ERROR.http_status == 500

    def test_category(self):
        assert ErrorCode.E2031_RECURSIVE_SCHEMA.category == "schema"
        assert ErrorCode.E2001_REQUIRED_FIELD_MISSING.category == "validation"
        assert ErrorCode.E4010_NOT_FOUND.category == "database"
        assert ErrorCode.E9000_INTERNAL_GENERIC.category == "internal"


class TestResult:
    def test_ok_chain(self):
        result = Ok(2).map(lambda n: n * 10).and_then(lambda n: Ok(n + 1))
        assert result == Ok(21)
        assert result.unwrap_or(0) == 21

    def test_err_short_circuits(self):
        result = not_found("Form", "abc").map(lambda form: form.name)
        assert isinstance(result, Err)
        assert result.unwrap_or(None) is None
        assert result.unwrap_err().code is ErrorCode.E4010_NOT_FOUND

    def test_match_statement(self):
        match submission_rejected([{"field": "age", "constraint": "gte", "message": "too young"}]):
            case Ok(_):
                raise AssertionError("expected Err")
            case Err(error):
                assert error.message == "Submission rejected: 1 error"
                assert error.metadata["error_count"] == 1


class TestAppError:
    def test_to_dict_envelope(self):
        error = AppError(code=ErrorCode.E2033_MALFORMED_SCHEMA, message="bad").with_metadata(path="a.b")
        body = error.to_dict()["error"]
        assert body["code"] == "E2033_MALFORMED_SCHEMA"
        assert body["code_num"] == 2033
        assert body["category"] == "schema"
        assert body["metadata"] == {"path": "a.b"}

    def test_with_context_keeps_correlation_id_unless_given(self):
        error = AppError(code=ErrorCode.E9000_INTERNAL_GENERIC, message="x")
        assert error.with_context(origin="api").context.correlation_id == error.context.correlation_id
        assert error.with_context(correlation_id="abc").context.correlation_id == "abc"


class TestSchemaCompileErrors:
    def test_unsupported_kind_to_app_error(self):
        error = UnsupportedConstraintKind("palindrome", FieldPath.of("profile", "nick")).to_app_error()
        assert error.code is ErrorCode.E2030_UNSUPPORTED_CONSTRAINT_KIND
        assert error.metadata == {"path": "profile.nick", "kind": "palindrome"}
        assert error.context.origin == "compiler"

    def test_pathless_error_omits_path(self):
        error = MalformedSchema("broken").to_app_error()
        assert "path" not in error.metadata

    def test_invalid_top_level_message(self):
        exc = InvalidTopLevelSchema("array")
        assert str(exc) == "Top-level schema must be an object, got array"
        assert exc.to_app_error().code.http_status == 400


class TestSensitiveFields:
    @pytest.mark.parametrize("name", ["password", "confirmPassword", "api_token", "pin", "card_pin", "userPIN", "pin-code"])
    def test_sensitive(self, name):
        assert is_sensitive_field(name)

    @pytest.mark.parametrize("name", ["shipping", "opinion", "spinner", "pinnacle", "username"])
    def test_not_sensitive(self, name):
        assert not is_sensitive_field(name)
