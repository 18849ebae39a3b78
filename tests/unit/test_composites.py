"""Unit tests for record-shaped and sequence nodes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import pydantic
import pytest

import schemata as s
from schemata import ErrorCode, Ok


def paths(result) -> list[tuple]:
    return [e.path for e in result.unwrap_err()]


class Field(Enum):
    NAME = "name"


class TestObject:
    """Test fixed-field records."""

    def test_valid_record(self, user_schema) -> None:
        """Valid input parses with defaults filled and optionals omitted."""
        result = s.parse(user_schema, {"name": "Ada", "age": 36, "tags": []})
        assert result == Ok({"name": "Ada", "age": 36, "role": "member", "tags": []})

    def test_errors_carry_field_paths(self) -> None:
        """Every failing field is reported at its key."""
        node = s.object_({"a": s.integer(), "b": s.integer()})
        result = s.parse(node, {"a": "x", "b": "y"})
        assert paths(result) == [("a",), ("b",)]
        assert {e.code for e in result.unwrap_err()} == {ErrorCode.INVALID_TYPE}

    def test_missing_required_field(self) -> None:
        """A missing required key fails with required at that key."""
        [error] = s.parse(s.object_({"a": s.string()}), {}).unwrap_err()
        assert error.code is ErrorCode.REQUIRED
        assert error.path == ("a",)

    def test_unknown_keys_fail_by_default(self) -> None:
        """Records are strict unless opened."""
        [error] = s.parse(s.object_({"a": s.string()}), {"a": "x", "z": 1}).unwrap_err()
        assert error.code is ErrorCode.UNRECOGNIZED_KEY
        assert error.path == ("z",)

    def test_open_record_strips_unknown_keys(self) -> None:
        """strict=False drops unknown keys."""
        node = s.object_({"a": s.string()}, strict=False)
        assert s.parse(node, {"a": "x", "z": 1}) == Ok({"a": "x"})

    def test_container_empty_values_mean_missing(self) -> None:
        """Values in the record's empty_values count as absent."""
        node = s.object_({"a": s.string().optional(), "b": s.string()}, empty_values=[""])
        result = s.parse(node, {"a": "", "b": ""})
        assert paths(result) == [("b",)]
        assert result.unwrap_err()[0].code is ErrorCode.REQUIRED

    def test_nested_paths(self) -> None:
        """Paths compose through nested records and arrays."""
        node = s.object_({"order": s.object_({"items": s.array(s.object_({"qty": s.integer()}))})})
        result = s.parse(node, {"order": {"items": [{"qty": 1}, {"qty": "2"}]}})
        assert paths(result) == [("order", "items", 1, "qty")]

    def test_coerced_key_lookup(self) -> None:
        """With coerce, Enum and non-string field keys match string input keys."""
        node = s.object_({Field.NAME: s.string(), 1: s.integer()}, coerce=True)
        assert s.parse(node, {"name": "x", "1": 2}) == Ok({Field.NAME: "x", 1: 2})

    def test_non_mapping_input(self) -> None:
        """A non-mapping is a single invalid_type error."""
        [error] = s.parse(s.object_({}), [1]).unwrap_err()
        assert error.code is ErrorCode.INVALID_TYPE
        assert error.message == "invalid type: expected object"


class TestMap:
    """Test open associative containers."""

    def test_keys_and_values_are_validated(self) -> None:
        """Key and value errors are located at the key."""
        node = s.map_(s.string(), s.integer())
        assert s.parse(node, {"a": 1}) == Ok({"a": 1})
        result = s.parse(node, {"a": "x", 2: 3})
        assert paths(result) == [("a",), (2,)]

    def test_partial_keeps_valid_pairs(self) -> None:
        """Context shows the pairs that validated."""
        ctx = s.parse_context(s.map_(s.string(), s.integer()), {"a": 1, "b": "x"})
        assert ctx.parsed == {"a": 1}

    def test_defaults_to_any(self) -> None:
        """map_() without schemas accepts any mapping."""
        assert s.parse(s.map_(), {1: [2]}) == Ok({1: [2]})


class TestKeyword:
    """Test ordered pair lists."""

    def test_field_map_preserves_order_and_duplicates(self) -> None:
        """Pairs keep input order; duplicate keys are each validated."""
        node = s.keyword({"a": s.integer(), "b": s.string()})
        assert s.parse(node, [("b", "x"), ("a", 1), ("a", 2)]) == Ok([("b", "x"), ("a", 1), ("a", 2)])
        result = s.parse(node, [("a", 1), ("a", "bad"), ("b", "x")])
        assert paths(result) == [("a",)]

    def test_missing_and_unknown_keys(self) -> None:
        """Declared keys are required; unknown keys fail when strict."""
        node = s.keyword({"a": s.integer(), "b": s.string().default("d")})
        result = s.parse(node, [("z", 1)])
        assert [(e.code, e.path) for e in result.unwrap_err()] == [
            (ErrorCode.UNRECOGNIZED_KEY, ("z",)),
            (ErrorCode.REQUIRED, ("a",)),
        ]
        assert s.parse(node, [("a", 1)]) == Ok([("a", 1), ("b", "d")])

    def test_value_schema_mode(self) -> None:
        """A single schema types every value; empty values are skipped."""
        node = s.keyword(s.integer(), empty_values=[None])
        assert s.parse(node, [("x", 1), ("y", None), ("x", 2)]) == Ok([("x", 1), ("x", 2)])
        assert paths(s.parse(node, [("x", "1")])) == [("x",)]

    def test_rejects_non_pairs(self) -> None:
        """Inputs must be sequences of 2-item pairs."""
        node = s.keyword(s.integer())
        assert s.parse(node, {"x": 1}).is_err()
        assert s.parse(node, [("x", 1, 2)]).is_err()
        assert s.parse(s.keyword(s.integer(), coerce=True), {"x": 1}) == Ok([("x", 1)])


class TestTuple:
    """Test fixed-arity sequences."""

    def test_positions_are_validated(self) -> None:
        """Each position has its own schema and index path."""
        node = s.tuple_([s.string(), s.integer()])
        assert s.parse(node, ["a", 1]) == Ok(("a", 1))
        assert paths(s.parse(node, [1, "a"])) == [(0,), (1,)]

    def test_arity_mismatch_is_one_error(self) -> None:
        """Wrong length yields a single invalid_type error."""
        [error] = s.parse(s.tuple_([s.string(), s.integer()]), ["a"]).unwrap_err()
        assert error.code is ErrorCode.INVALID_TYPE
        assert error.message == "invalid type: expected tuple with 2 elements"

    def test_strings_are_not_sequences(self) -> None:
        """A string is never a tuple."""
        assert s.parse(s.tuple_([s.string(), s.string()]), "ab").is_err()


@dataclass
class Point:
    x: int
    y: int


class Account(pydantic.BaseModel):
    owner: str
    balance: int = pydantic.Field(ge=0)


class TestStruct:
    """Test records bound to a constructor."""

    def test_builds_instances(self) -> None:
        """Parsed fields are passed to the constructor."""
        node = s.struct(Point, {"x": s.integer(), "y": s.integer()})
        assert s.parse(node, {"x": 1, "y": 2}) == Ok(Point(1, 2))

    def test_accepts_instances(self) -> None:
        """Instances are read attribute-wise and rebuilt."""
        node = s.struct(Point, {"x": s.integer(), "y": s.integer()})
        assert s.parse(node, Point(3, 4)) == Ok(Point(3, 4))
        assert paths(s.parse(node, Point("a", 4))) == [("x",)]

    def test_field_errors_skip_construction(self) -> None:
        """Field errors are reported and the partial is a dict."""
        ctx = s.parse_context(s.struct(Point, {"x": s.integer(), "y": s.integer()}), {"x": 1})
        assert ctx.parsed == {"x": 1}
        assert [e.path for e in ctx.errors] == [("y",)]

    def test_constructor_errors_become_custom_errors(self) -> None:
        """TypeError/ValueError from the constructor become custom errors."""
        def build(**fields):
            raise ValueError("x and y must differ")

        [error] = s.parse(s.struct(build, {"x": s.integer()}), {"x": 1}).unwrap_err()
        assert error.code is ErrorCode.CUSTOM
        assert error.message == "x and y must differ"

    def test_pydantic_model_constructor(self) -> None:
        """pydantic model errors keep their field location."""
        node = s.struct(Account, {"owner": s.string(), "balance": s.integer()})
        assert s.parse(node, {"owner": "ada", "balance": 5}).unwrap() == Account(owner="ada", balance=5)
        [error] = s.parse(node, {"owner": "ada", "balance": -1}).unwrap_err()
        assert error.code is ErrorCode.CUSTOM
        assert error.path == ("balance",)

    def test_rejects_other_types(self) -> None:
        """Neither a mapping nor an instance is an invalid_type error."""
        [error] = s.parse(s.struct(Point, {"x": s.integer()}), 5).unwrap_err()
        assert error.message == "invalid type: expected Point"


class TestArray:
    """Test homogeneous sequences."""

    def test_elements_are_validated_with_index(self) -> None:
        """Every element is attempted; errors carry indices."""
        result = s.parse(s.array(s.integer()), [1, "a", 3, "b"])
        assert paths(result) == [(1,), (3,)]

    def test_min_length_is_single_error_at_root(self) -> None:
        """Length violations are one range_violation at []."""
        [error] = s.parse(s.array(s.string(), min_length=2), ["a"]).unwrap_err()
        assert error.code is ErrorCode.RANGE_VIOLATION
        assert error.path == ()
        assert error.message == "too small: must have at least 2 items"

    def test_length_short_circuits_elements(self) -> None:
        """Elements are not checked when the length is wrong."""
        result = s.parse(s.array(s.integer(), max_length=1), ["a", "b"])
        assert [e.code for e in result.unwrap_err()] == [ErrorCode.RANGE_VIOLATION]

    def test_exact_length(self) -> None:
        """length pins the element count."""
        assert s.parse(s.array(length=2), [1, 2]) == Ok([1, 2])
        assert s.parse(s.array(length=2), [1]).unwrap_err()[0].message == "invalid length: must have 2 items"

    def test_tuples_are_accepted_and_listed(self) -> None:
        """A tuple input produces a list."""
        assert s.parse(s.array(s.integer()), (1, 2)) == Ok([1, 2])

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [({3, 1, 2}, [1, 2, 3]), ({"1": "b", "0": "a"}, ["a", "b"])],
    )
    def test_coercion(self, raw, expected) -> None:
        """With coerce, sets and index-keyed mappings become lists."""
        assert s.parse(s.array(s.any_(), coerce=True), raw) == Ok(expected)

    def test_non_sequence(self) -> None:
        """Strings and mappings are not arrays without coercion."""
        assert s.parse(s.array(s.string()), "abc").is_err()
        assert s.parse(s.array(s.string()), {"0": "a"}).is_err()
