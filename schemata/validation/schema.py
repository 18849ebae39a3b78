"""Schema Node Model

Schemas are immutable trees of nodes. Each node is a frozen dataclass tagged
with a closed ``Kind`` and carrying shared ``Meta``; the variant payload holds
children (fields, inner node, alternatives) and kind-specific settings.

Key Features:
- Closed set of node kinds matched exhaustively by the pipeline and traversal
- Shared metadata (presence, docs, coercion, strictness, empty values)
- Interleaved refinement/transform steps kept in attachment order
- Lazy nodes for self-referential schemas, memoized per node instance
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, ClassVar, Iterator, Mapping, Self, Union

from schemata.core.errors import CustomMessage, ErrorCode, PathSegment


class _Missing:
    """Sentinel for an absent value (a missing key, or no input at all)."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str: return "MISSING"

    def __bool__(self) -> bool: return False

    def __copy__(self) -> _Missing: return self

    def __deepcopy__(self, memo: dict) -> _Missing: return self

    def __reduce__(self) -> str: return "MISSING"


MISSING: Any = _Missing()


class Kind(str, Enum):
    """Tag identifying the variant of a schema node."""
    # Primitive
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    NUMBER = "number"
    BOOLEAN = "boolean"
    SYMBOL = "symbol"
    LITERAL = "literal"
    ENUM = "enum"
    DECIMAL = "decimal"
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"
    NAIVE_DATETIME = "naive_datetime"
    STRING_BOOLEAN = "string_boolean"
    NULL = "null"
    ANY = "any"
    # Record-shaped
    OBJECT = "object"
    MAP = "map"
    KEYWORD = "keyword"
    TUPLE = "tuple"
    STRUCT = "struct"
    # Sequence
    ARRAY = "array"
    # Combinator
    UNION = "union"
    DISCRIMINATED_UNION = "discriminated_union"
    INTERSECTION = "intersection"
    # Wrapper
    OPTIONAL = "optional"
    NULLABLE = "nullable"
    NULLISH = "nullish"
    DEFAULT = "default"
    LAZY = "lazy"

    @property
    def family(self) -> str:
        return _FAMILIES[self]


_FAMILIES: dict[Kind, str] = {
    **{k: "primitive" for k in (
        Kind.STRING, Kind.INTEGER, Kind.FLOAT, Kind.NUMBER, Kind.BOOLEAN, Kind.SYMBOL,
        Kind.LITERAL, Kind.ENUM, Kind.DECIMAL, Kind.DATE, Kind.TIME, Kind.DATETIME,
        Kind.NAIVE_DATETIME, Kind.STRING_BOOLEAN, Kind.NULL, Kind.ANY)},
    **{k: "record" for k in (Kind.OBJECT, Kind.MAP, Kind.KEYWORD, Kind.TUPLE, Kind.STRUCT)},
    Kind.ARRAY: "sequence",
    Kind.UNION: "combinator",
    Kind.DISCRIMINATED_UNION: "combinator",
    Kind.INTERSECTION: "combinator",
    **{k: "wrapper" for k in (Kind.OPTIONAL, Kind.NULLABLE, Kind.NULLISH, Kind.DEFAULT, Kind.LAZY)},
}


# ============================================================================
# Pipeline Steps
# ============================================================================

@dataclass(frozen=True, slots=True)
class Refinement:
    """Predicate-based check run after type success.

    ``fn(value)`` passes by returning ``None`` or ``True``. ``False`` fails with
    ``message`` (or a generic message); a string fails with that string; a
    ValidationError, a list of them, or an ``Err`` fails with those errors.

    Built-in constraints carry a ``name`` and ``params`` so read-only
    collaborators (JSON Schema export) can describe them.
    """
    fn: Callable[[Any], Any]
    message: CustomMessage = None
    code: ErrorCode = ErrorCode.CUSTOM
    name: str | None = None
    params: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Transform:
    """Value mapping run in attachment order; may return ``Err`` to stop."""
    fn: Callable[[Any], Any]
    name: str | None = None


Step = Union[Refinement, Transform]


@dataclass(frozen=True, slots=True)
class Meta:
    """Metadata shared by every node kind."""
    required: bool | None = None
    description: str | None = None
    example: Any = None
    metadata: tuple[tuple[str, Any], ...] = ()
    error: CustomMessage = None
    coerce: bool = False
    strict: bool = False
    empty_values: tuple[Any, ...] = ()
    steps: tuple[Step, ...] = ()

    @property
    def refinements(self) -> tuple[Refinement, ...]:
        return tuple(s for s in self.steps if isinstance(s, Refinement))

    @property
    def transforms(self) -> tuple[Transform, ...]:
        return tuple(s for s in self.steps if isinstance(s, Transform))


META_OPTIONS = frozenset({
    "required", "description", "example", "metadata", "error",
    "coerce", "strict", "empty_values",
})


def build_meta(base: Meta | None = None, **opts: Any) -> Meta:
    """Create Meta from constructor keyword options, rejecting unknown ones."""
    if unknown := set(opts) - META_OPTIONS:
        raise TypeError(f"unknown schema option(s): {', '.join(sorted(unknown))}")
    if "metadata" in opts and opts["metadata"] is not None:
        metadata = opts["metadata"]
        opts["metadata"] = tuple(metadata.items() if isinstance(metadata, Mapping) else metadata)
    if "empty_values" in opts and opts["empty_values"] is not None:
        opts["empty_values"] = tuple(opts["empty_values"])
    opts = {k: v for k, v in opts.items() if v is not None or k in ("example", "error")}
    return replace(base or Meta(), **opts)


def is_empty(value: Any, empty_values: tuple[Any, ...]) -> bool:
    """Whether ``value`` is one of ``empty_values`` (type-exact, so 0 is not False)."""
    for candidate in empty_values:
        if value is candidate:
            return True
        if type(value) is type(candidate):
            try:
                if value == candidate:
                    return True
            except (TypeError, ValueError):
                continue
    return False


def is_absent(value: Any, meta: Meta) -> bool:
    return value is MISSING or is_empty(value, meta.empty_values)


# ============================================================================
# Base Node
# ============================================================================

@dataclass(frozen=True, slots=True, kw_only=True)
class SchemaNode:
    """Base class for every schema node.

    Nodes are immutable: every modifier returns a new node.
    """
    kind: ClassVar[Kind]
    meta: Meta = field(default_factory=Meta)

    @property
    def required(self) -> bool:
        return self.meta.required is not False

    def with_meta(self, **changes: Any) -> Self:
        return replace(self, meta=replace(self.meta, **changes))

    def with_step(self, step: Step) -> Self:
        return self.with_meta(steps=(*self.meta.steps, step))

    def children(self) -> Iterator[tuple[PathSegment | None, SchemaNode]]:
        """Direct child nodes with the path segment they add (``None`` for none).

        Lazy nodes report no children; their target is never forced here.
        """
        return iter(())

    # Convenience shortcuts over the functional API

    def parse(self, value: Any = MISSING, **opts: Any):
        from .boundaries import parse
        return parse(self, value, **opts)

    def parse_or_raise(self, value: Any = MISSING, **opts: Any) -> Any:
        from .boundaries import parse_or_raise
        return parse_or_raise(self, value, **opts)

    def refine(self, fn: Callable[[Any], Any], message: CustomMessage = None) -> Self:
        return self.with_step(Refinement(fn=fn, message=message))

    def transform(self, fn: Callable[[Any], Any]) -> Self:
        return self.with_step(Transform(fn=fn))

    def optional(self) -> OptionalNode:
        from .constructors import optional
        return optional(self)

    def nullable(self) -> NullableNode:
        from .constructors import nullable
        return nullable(self)

    def nullish(self) -> NullishNode:
        from .constructors import nullish
        return nullish(self)

    def default(self, value: Any = MISSING, *, factory: Callable[[], Any] | None = None) -> DefaultNode:
        from .constructors import default
        return default(self, value, factory=factory)


# ============================================================================
# Primitive Nodes
# ============================================================================

@dataclass(frozen=True, slots=True, kw_only=True)
class StringNode(SchemaNode):
    kind: ClassVar[Kind] = Kind.STRING


@dataclass(frozen=True, slots=True, kw_only=True)
class IntegerNode(SchemaNode):
    kind: ClassVar[Kind] = Kind.INTEGER


@dataclass(frozen=True, slots=True, kw_only=True)
class FloatNode(SchemaNode):
    kind: ClassVar[Kind] = Kind.FLOAT


@dataclass(frozen=True, slots=True, kw_only=True)
class NumberNode(SchemaNode):
    kind: ClassVar[Kind] = Kind.NUMBER


@dataclass(frozen=True, slots=True, kw_only=True)
class BooleanNode(SchemaNode):
    kind: ClassVar[Kind] = Kind.BOOLEAN


@dataclass(frozen=True, slots=True, kw_only=True)
class SymbolNode(SchemaNode):
    kind: ClassVar[Kind] = Kind.SYMBOL


@dataclass(frozen=True, slots=True, kw_only=True)
class LiteralNode(SchemaNode):
    kind: ClassVar[Kind] = Kind.LITERAL
    value: Any


@dataclass(frozen=True, slots=True, kw_only=True)
class EnumNode(SchemaNode):
    """Enumeration of allowed values.

    ``choices`` maps each output key to the input value that selects it; for
    plain value lists key and value coincide, for ``enum.Enum`` classes the
    key is the member.
    """
    kind: ClassVar[Kind] = Kind.ENUM
    choices: tuple[tuple[Any, Any], ...]
    enum_class: type[Enum] | None = None

    @property
    def options(self) -> list[Any]:
        return [value for _key, value in self.choices]


@dataclass(frozen=True, slots=True, kw_only=True)
class DecimalNode(SchemaNode):
    kind: ClassVar[Kind] = Kind.DECIMAL


@dataclass(frozen=True, slots=True, kw_only=True)
class DateNode(SchemaNode):
    kind: ClassVar[Kind] = Kind.DATE


@dataclass(frozen=True, slots=True, kw_only=True)
class TimeNode(SchemaNode):
    kind: ClassVar[Kind] = Kind.TIME


@dataclass(frozen=True, slots=True, kw_only=True)
class DateTimeNode(SchemaNode):
    kind: ClassVar[Kind] = Kind.DATETIME


@dataclass(frozen=True, slots=True, kw_only=True)
class NaiveDateTimeNode(SchemaNode):
    kind: ClassVar[Kind] = Kind.NAIVE_DATETIME


@dataclass(frozen=True, slots=True, kw_only=True)
class StringBooleanNode(SchemaNode):
    kind: ClassVar[Kind] = Kind.STRING_BOOLEAN
    truthy: tuple[str, ...] = ("true", "1", "yes", "on", "y", "enabled")
    falsy: tuple[str, ...] = ("false", "0", "no", "off", "n", "disabled")
    case_sensitive: bool = False


@dataclass(frozen=True, slots=True, kw_only=True)
class NullNode(SchemaNode):
    kind: ClassVar[Kind] = Kind.NULL


@dataclass(frozen=True, slots=True, kw_only=True)
class AnyNode(SchemaNode):
    kind: ClassVar[Kind] = Kind.ANY


# ============================================================================
# Record-shaped Nodes
# ============================================================================

def freeze_fields(fields: Mapping[Any, SchemaNode] | Any) -> Mapping[Any, SchemaNode]:
    """Validate a field map and freeze it, preserving declaration order."""
    items = fields.items() if isinstance(fields, Mapping) else fields
    frozen: dict[Any, SchemaNode] = {}
    for key, node in items:
        if not isinstance(node, SchemaNode):
            raise TypeError(f"field {key!r} must be a schema node, got {type(node).__name__}")
        frozen[key] = node
    return MappingProxyType(frozen)


@dataclass(frozen=True, slots=True, kw_only=True)
class ObjectNode(SchemaNode):
    """Record with fixed, known fields."""
    kind: ClassVar[Kind] = Kind.OBJECT
    fields: Mapping[Any, SchemaNode]

    def children(self) -> Iterator[tuple[PathSegment | None, SchemaNode]]:
        return iter(self.fields.items())


@dataclass(frozen=True, slots=True, kw_only=True)
class MapNode(SchemaNode):
    """Associative container with open key/value typing."""
    kind: ClassVar[Kind] = Kind.MAP
    key_schema: SchemaNode
    value_schema: SchemaNode

    def children(self) -> Iterator[tuple[PathSegment | None, SchemaNode]]:
        return iter(((None, self.key_schema), (None, self.value_schema)))


@dataclass(frozen=True, slots=True, kw_only=True)
class KeywordNode(SchemaNode):
    """Ordered list of ``(key, value)`` pairs; duplicate keys allowed.

    Exactly one of ``fields`` (declared keys) or ``value_schema`` (uniform
    value typing, keys pass through) is set.
    """
    kind: ClassVar[Kind] = Kind.KEYWORD
    fields: Mapping[Any, SchemaNode] | None = None
    value_schema: SchemaNode | None = None

    def children(self) -> Iterator[tuple[PathSegment | None, SchemaNode]]:
        if self.fields is not None:
            return iter(self.fields.items())
        return iter(((None, self.value_schema),))


@dataclass(frozen=True, slots=True, kw_only=True)
class TupleNode(SchemaNode):
    """Fixed-length heterogeneous sequence."""
    kind: ClassVar[Kind] = Kind.TUPLE
    elements: tuple[SchemaNode, ...]

    def children(self) -> Iterator[tuple[PathSegment | None, SchemaNode]]:
        return iter(enumerate(self.elements))


@dataclass(frozen=True, slots=True, kw_only=True)
class StructNode(SchemaNode):
    """Record bound to a declared output type through ``constructor``."""
    kind: ClassVar[Kind] = Kind.STRUCT
    fields: Mapping[Any, SchemaNode]
    constructor: Callable[..., Any]

    def children(self) -> Iterator[tuple[PathSegment | None, SchemaNode]]:
        return iter(self.fields.items())


# ============================================================================
# Sequence Nodes
# ============================================================================

@dataclass(frozen=True, slots=True, kw_only=True)
class ArrayNode(SchemaNode):
    kind: ClassVar[Kind] = Kind.ARRAY
    inner: SchemaNode
    min_length: int | None = None
    max_length: int | None = None
    length: int | None = None

    def children(self) -> Iterator[tuple[PathSegment | None, SchemaNode]]:
        return iter(((None, self.inner),))


# ============================================================================
# Combinator Nodes
# ============================================================================

@dataclass(frozen=True, slots=True, kw_only=True)
class UnionNode(SchemaNode):
    """First alternative that fully succeeds wins."""
    kind: ClassVar[Kind] = Kind.UNION
    schemas: tuple[SchemaNode, ...]

    def children(self) -> Iterator[tuple[PathSegment | None, SchemaNode]]:
        return ((None, s) for s in self.schemas)


@dataclass(frozen=True, slots=True, kw_only=True)
class IntersectionNode(SchemaNode):
    """Every alternative must succeed; outputs are deep-merged."""
    kind: ClassVar[Kind] = Kind.INTERSECTION
    schemas: tuple[SchemaNode, ...]

    def children(self) -> Iterator[tuple[PathSegment | None, SchemaNode]]:
        return ((None, s) for s in self.schemas)


@dataclass(frozen=True, slots=True, kw_only=True)
class DiscriminatedUnionNode(SchemaNode):
    """Record alternatives told apart by a literal tag field.

    Each alternative is an object or struct node whose ``discriminator``
    field is a literal; the input's tag picks exactly one of them.
    """
    kind: ClassVar[Kind] = Kind.DISCRIMINATED_UNION
    discriminator: Any
    schemas: tuple[SchemaNode, ...]

    def children(self) -> Iterator[tuple[PathSegment | None, SchemaNode]]:
        return ((None, s) for s in self.schemas)

    def select(self, tag: Any) -> SchemaNode | None:
        """Alternative whose literal tag equals ``tag`` (type-exact), if any."""
        for schema in self.schemas:
            literal = getattr(schema, "fields", {}).get(self.discriminator)
            if isinstance(literal, LiteralNode) and type(literal.value) is type(tag) and literal.value == tag:
                return schema
        return None


# ============================================================================
# Wrapper Nodes
# ============================================================================

@dataclass(frozen=True, slots=True, kw_only=True)
class WrapperNode(SchemaNode):
    inner: SchemaNode

    def children(self) -> Iterator[tuple[PathSegment | None, SchemaNode]]:
        return iter(((None, self.inner),))


@dataclass(frozen=True, slots=True, kw_only=True)
class OptionalNode(WrapperNode):
    kind: ClassVar[Kind] = Kind.OPTIONAL


@dataclass(frozen=True, slots=True, kw_only=True)
class NullableNode(WrapperNode):
    kind: ClassVar[Kind] = Kind.NULLABLE


@dataclass(frozen=True, slots=True, kw_only=True)
class NullishNode(WrapperNode):
    kind: ClassVar[Kind] = Kind.NULLISH


@dataclass(frozen=True, slots=True, kw_only=True)
class DefaultNode(WrapperNode):
    """Supplies ``value`` (or ``factory()``) when the input is absent or None."""
    kind: ClassVar[Kind] = Kind.DEFAULT
    value: Any = MISSING
    factory: Callable[[], Any] | None = None

    def default_value(self) -> Any:
        return self.factory() if self.factory is not None else self.value


@dataclass(frozen=True, slots=True, kw_only=True)
class LazyNode(SchemaNode):
    """Deferred node for recursive schemas.

    ``factory`` is invoked on first resolution and the node it returns is
    memoized on this instance. Copies made with ``replace`` start unresolved.
    """
    kind: ClassVar[Kind] = Kind.LAZY
    factory: Callable[[], SchemaNode]
    _resolved: list = field(default_factory=list, init=False, repr=False, compare=False)

    @property
    def is_resolved(self) -> bool:
        return bool(self._resolved)

    def resolve(self) -> SchemaNode:
        if not self._resolved:
            node = self.factory()
            if not isinstance(node, SchemaNode):
                raise TypeError(f"lazy factory must return a schema node, got {type(node).__name__}")
            self._resolved.append(node)
        return self._resolved[0]
