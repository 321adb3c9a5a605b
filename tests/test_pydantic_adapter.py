import pytest
from pydantic import BaseModel, Field

from engines.compiler import compile_rules
from engines.emitter import Bounds
from engines.errors import MalformedSchema, RecursiveSchemaUnsupported
from engines.validator import validate
from formschema.constraints import ConstraintKind
from formschema.nodes import NodeKind
from formschema.pydantic_adapter import from_model


class Address(BaseModel):
    street: str
    zip: str = Field(pattern=r"^\d{5}$")


class Signup(BaseModel):
    username: str = Field(min_length=3, max_length=20)
    age: int | None = Field(default=None, ge=13)
    tags: list[str] = Field(default_factory=list, max_length=5)
    address: Address


class Quantity(BaseModel):
    amount: int = Field(multiple_of=5)


class Ticket(BaseModel):
    seat: int | str


class TestFromModel:
    def test_field_order_and_wrappers(self):
        schema = from_model(Signup)
        fields = schema.field_map

        assert list(fields) == ["username", "age", "tags", "address"]
        assert fields["username"].kind is NodeKind.PRIMITIVE
        assert fields["age"].kind is NodeKind.OPTIONAL
        assert fields["age"].child.kind is NodeKind.NULLABLE
        assert fields["tags"].kind is NodeKind.OPTIONAL

    def test_metadata_becomes_constraints(self):
        fields = from_model(Signup).field_map
        assert [c.kind for c in fields["username"].constraints] == [ConstraintKind.MIN_LENGTH, ConstraintKind.MAX_LENGTH]
        assert [c.kind for c in fields["tags"].unwrap().constraints] == [ConstraintKind.MAX_ITEMS]
        zip_node = fields["address"].field_map["zip"]
        assert zip_node.constraints[0].kind is ConstraintKind.PATTERN

    def test_compiles_to_rules(self):
        ruleset = compile_rules(from_model(Signup))
        assert [str(p) for p in ruleset] == ["username", "age", "tags", "tags[]", "address.street", "address.zip"]
        assert ruleset["age"][0].bounds == Bounds("value", min=13)
        assert ruleset["age"][0].required is False

    def test_validates_like_the_model(self):
        schema = from_model(Signup)
        result = validate(schema, {"username": "ad", "address": {"street": "Main", "zip": "123"}})
        assert [path for path, _ in result.unwrap_err().errors] == ["username", "address.zip"]

    def test_union_annotation(self):
        seat = from_model(Ticket).field_map["seat"]
        assert seat.kind is NodeKind.UNION
        assert len(seat.children) == 2

    def test_unsupported_metadata(self):
        with pytest.raises(MalformedSchema) as exc:
            from_model(Quantity)
        assert str(exc.value.path) == "amount"

    def test_nesting_beyond_depth_bound(self):
        with pytest.raises(RecursiveSchemaUnsupported):
            from_model(Signup, max_depth=1)

    def test_rejects_non_models(self):
        with pytest.raises(MalformedSchema):
            from_model(dict)
