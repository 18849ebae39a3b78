"""Unit tests for the schema node model and constructors."""

from __future__ import annotations

import copy
from dataclasses import FrozenInstanceError
from enum import Enum

import pytest

import schemata as s
from schemata.validation.schema import Kind, Meta, build_meta, is_empty


class Color(Enum):
    RED = "red"
    BLUE = "blue"


class TestMissing:
    """Test the MISSING sentinel."""

    def test_is_falsy_singleton(self) -> None:
        """MISSING is falsy and survives copying."""
        assert not s.MISSING
        assert copy.copy(s.MISSING) is s.MISSING
        assert copy.deepcopy(s.MISSING) is s.MISSING
        assert repr(s.MISSING) == "MISSING"

    def test_is_distinct_from_none(self) -> None:
        """MISSING is not None."""
        assert s.MISSING is not None


class TestEmptyValues:
    """Test type-exact empty value membership."""

    def test_zero_is_not_false(self) -> None:
        """0 and False are distinct empty values."""
        assert is_empty(0, (0,))
        assert not is_empty(False, (0,))
        assert not is_empty(0, (False,))

    def test_matches_by_equality(self) -> None:
        """Equal values of the same type match."""
        assert is_empty("", ("", None))
        assert is_empty(None, (None,))
        assert not is_empty("x", ("",))


class TestMeta:
    """Test shared metadata."""

    def test_build_meta_rejects_unknown_options(self) -> None:
        """Unknown constructor options raise TypeError."""
        with pytest.raises(TypeError, match="unknown schema option"):
            s.string(colour="red")

    def test_metadata_is_frozen_to_pairs(self) -> None:
        """metadata accepts a mapping and stores ordered pairs."""
        meta = build_meta(metadata={"a": 1, "b": 2}, empty_values=["", None])
        assert meta.metadata == (("a", 1), ("b", 2))
        assert meta.empty_values == ("", None)

    def test_steps_split_by_type(self) -> None:
        """refinements and transforms views keep attachment order."""
        node = s.string().transform(str.strip).refine(bool).transform(str.upper)
        assert len(node.meta.transforms) == 2
        assert len(node.meta.refinements) == 1
        assert isinstance(node.meta, Meta)


class TestNodes:
    """Test node construction and immutability."""

    def test_nodes_are_frozen(self) -> None:
        """Nodes cannot be mutated."""
        node = s.string()
        with pytest.raises(FrozenInstanceError):
            node.meta = Meta()  # type: ignore[misc]

    def test_modifiers_return_new_nodes(self) -> None:
        """refine/transform/with_meta leave the original untouched."""
        node = s.string()
        refined = node.refine(bool)
        assert node.meta.steps == ()
        assert len(refined.meta.steps) == 1

    def test_kind_and_family(self) -> None:
        """Every node carries a kind in a family."""
        assert s.string().kind is Kind.STRING
        assert s.object_({}).kind.family == "record"
        assert s.array(s.string()).kind.family == "sequence"
        assert s.union([s.string(), s.integer()]).kind.family == "combinator"
        assert s.optional(s.string()).kind.family == "wrapper"

    def test_object_fields_are_read_only(self) -> None:
        """Field maps cannot be mutated after construction."""
        node = s.object_({"a": s.string()})
        with pytest.raises(TypeError):
            node.fields["b"] = s.string()  # type: ignore[index]

    def test_record_kinds_default_to_strict(self) -> None:
        """Record-shaped nodes are strict unless told otherwise."""
        assert s.object_({}).meta.strict is True
        assert s.keyword({"a": s.string()}).meta.strict is True
        assert s.object_({}, strict=False).meta.strict is False
        assert s.string().meta.strict is False

    def test_children_report_path_segments(self) -> None:
        """children() yields the segment each child adds."""
        node = s.tuple_([s.string(), s.integer()])
        assert [segment for segment, _ in node.children()] == [0, 1]
        assert [segment for segment, _ in s.array(s.string()).children()] == [None]
        assert list(s.lazy(s.string).children()) == []


class TestConstructors:
    """Test build-time validation of constructors."""

    def test_union_needs_two_alternatives(self) -> None:
        """A single-alternative union is a build error."""
        with pytest.raises(ValueError):
            s.union([s.string()])
        with pytest.raises(ValueError):
            s.intersection([s.string()])

    def test_children_must_be_nodes(self) -> None:
        """Non-node children raise TypeError."""
        with pytest.raises(TypeError):
            s.object_({"a": str})
        with pytest.raises(TypeError):
            s.array("string")
        with pytest.raises(TypeError):
            s.union([s.string(), int])

    def test_array_lengths_must_be_non_negative(self) -> None:
        """Negative lengths are rejected."""
        with pytest.raises(ValueError):
            s.array(s.string(), min_length=-1)

    def test_enum_forms(self) -> None:
        """enum accepts a value list, a mapping and an Enum class."""
        assert s.enum(["a", "b"]).options == ["a", "b"]
        assert s.enum({"low": 1, "high": 2}).choices == (("low", 1), ("high", 2))
        node = s.enum(Color)
        assert node.enum_class is Color
        assert node.options == ["red", "blue"]
        with pytest.raises(ValueError):
            s.enum([])

    def test_default_needs_value_or_factory(self) -> None:
        """default requires exactly one of value and factory."""
        with pytest.raises(ValueError):
            s.default(s.string())
        with pytest.raises(ValueError):
            s.default(s.string(), "a", factory=lambda: "b")

    def test_wrappers_set_presence(self) -> None:
        """optional/nullish/default are not required; nullable keeps the inner flag."""
        assert s.optional(s.string()).required is False
        assert s.nullish(s.string()).required is False
        assert s.default(s.string(), "x").required is False
        assert s.nullable(s.string()).required is True
        assert s.nullable(s.optional(s.string())).required is False

    def test_method_shortcuts(self) -> None:
        """Node methods wrap like the functional constructors."""
        assert isinstance(s.string().optional(), s.OptionalNode)
        assert isinstance(s.string().nullable(), s.NullableNode)
        assert isinstance(s.string().nullish(), s.NullishNode)
        assert s.string().default("x").value == "x"


class TestExtend:
    """Test build-time record merging."""

    def test_second_schema_overrides(self) -> None:
        """Fields of the extension win and order is preserved."""
        base = s.object_({"a": s.string(), "b": s.string()})
        merged = s.extend(base, s.object_({"b": s.integer(), "c": s.boolean()}))
        assert list(merged.fields) == ["a", "b", "c"]
        assert merged.fields["b"].kind is Kind.INTEGER

    def test_flags_are_or_ed(self) -> None:
        """strict and coerce are combined with OR."""
        base = s.object_({"a": s.string()}, strict=False)
        merged = s.extend(base, s.object_({"b": s.string()}, coerce=True))
        assert merged.meta.strict is True
        assert merged.meta.coerce is True

    def test_accepts_field_mapping(self) -> None:
        """A plain mapping extends the base schema."""
        merged = s.extend(s.object_({"a": s.string()}, strict=False), {"b": s.integer()})
        assert list(merged.fields) == ["a", "b"]
        assert merged.meta.strict is False

    def test_keyword_schemas(self) -> None:
        """Field-map keyword schemas can be extended too."""
        merged = s.extend(s.keyword({"a": s.string()}), s.keyword({"b": s.string()}))
        assert isinstance(merged, s.KeywordNode)
        assert list(merged.fields) == ["a", "b"]

    def test_rejects_mismatched_kinds(self) -> None:
        """Objects cannot be extended with keyword lists or scalars."""
        with pytest.raises(TypeError):
            s.extend(s.object_({}), s.keyword({"a": s.string()}))
        with pytest.raises(TypeError):
            s.extend(s.string(), {"a": s.string()})


class TestLazy:
    """Test lazy resolution and memoization."""

    def test_factory_runs_once(self) -> None:
        """The factory is invoked once per node instance."""
        calls = []

        def factory() -> s.SchemaNode:
            calls.append(1)
            return s.integer()

        node = s.lazy(factory)
        assert not node.is_resolved
        assert s.parse(node, 1).unwrap() == 1
        assert s.parse(node, 2).unwrap() == 2
        assert calls == [1]
        assert node.is_resolved

    def test_factory_must_return_node(self) -> None:
        """A factory returning a non-node is a TypeError on resolution."""
        with pytest.raises(TypeError):
            s.lazy(lambda: "string").resolve()
