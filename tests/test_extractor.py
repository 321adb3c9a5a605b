import pytest

from engines.errors import RecursiveSchemaUnsupported, UnsupportedConstraintKind
from engines.extractor import extract
from formschema.builders import array, boolean, nullable, number, obj, optional, string, union
from formschema.constraints import ConstraintKind
from formschema.paths import FieldPath


def _path(*segments):
    return FieldPath.of(*segments)


class TestExtract:
    def test_primitive_constraints_in_declaration_order(self, login_schema):
        extraction = extract(login_schema)
        kinds = [(str(path), c.kind) for path, c in extraction.pairs]
        assert kinds == [
            ("username", ConstraintKind.MIN_LENGTH),
            ("username", ConstraintKind.MAX_LENGTH),
            ("password", ConstraintKind.MIN_LENGTH),
        ]

    def test_field_order_and_required(self, login_schema):
        extraction = extract(login_schema)
        assert [str(f.path) for f in extraction.fields] == ["username", "password", "rememberMe"]
        assert [f.required for f in extraction.fields] == [True, True, False]

    def test_stacked_wrappers_resolve_to_not_required(self):
        schema = obj({"nick": optional(nullable(optional(string().min(2))))})
        entry = extract(schema).field(_path("nick"))
        assert entry.required is False
        assert entry.constraints[0].kind is ConstraintKind.MIN_LENGTH

    def test_nested_object_paths(self):
        schema = obj({"address": obj({"city": string().min(2), "zip": string().length(5)})})
        paths = [str(f.path) for f in extract(schema).fields]
        assert paths == ["address.city", "address.zip"]

    def test_array_constraints_stay_on_array_path(self):
        schema = obj({"tags": array(string().max(10)).min(1).max(5)})
        extraction = extract(schema)
        assert [(str(p), c.kind) for p, c in extraction.pairs] == [
            ("tags", ConstraintKind.MIN_ITEMS),
            ("tags", ConstraintKind.MAX_ITEMS),
            ("tags[]", ConstraintKind.MAX_LENGTH),
        ]
        assert extraction.field(_path("tags")).type_tags == ("Array",)

    def test_union_alternatives_share_path(self):
        schema = obj({"id": union(string().min(1), number().gt(0), string())})
        entry = extract(schema).field(_path("id"))
        assert entry.type_tags == ("String", "Number")
        assert [c.kind for c in entry.constraints] == [ConstraintKind.MIN_LENGTH, ConstraintKind.GT]

    def test_optional_union_alternative_clears_required(self):
        schema = obj({"code": union(string(), optional(number()))})
        assert extract(schema).field(_path("code")).required is False

    def test_unconstrained_field_still_listed(self):
        entry = extract(obj({"agree": boolean()})).field(_path("agree"))
        assert entry.constraints == ()
        assert entry.type_tags == ("Boolean",)

    def test_unknown_kind_raises_with_path(self):
        schema = obj({"profile": obj({"nick": string().constrain("palindrome")})})
        with pytest.raises(UnsupportedConstraintKind) as exc_info:
            extract(schema)
        assert exc_info.value.kind == "palindrome"
        assert str(exc_info.value.path) == "profile.nick"

    def test_depth_bound(self):
        schema = string()
        for _ in range(6):
            schema = obj({"next": schema})
        with pytest.raises(RecursiveSchemaUnsupported) as exc_info:
            extract(schema, max_depth=3)
        assert exc_info.value.max_depth == 3

    def test_depth_within_bound(self):
        schema = obj({"a": obj({"b": obj({"c": string()})})})
        assert [str(f.path) for f in extract(schema, max_depth=3).fields] == ["a.b.c"]
