"""Schema Constructors

The public DSL for building schema trees. Every constructor accepts the
shared metadata options (``description``, ``example``, ``metadata``,
``error``, ``coerce``, ``strict``, ``empty_values``, ``required``) as keyword
arguments and raises ``TypeError``/``ValueError`` on malformed schemas.

Names that would shadow a builtin carry a trailing underscore
(``float_``, ``any_``, ``object_``, ``map_``, ``tuple_``).

Usage:
    from schemata import object_, string, integer, array

    user = object_({
        "name": string(),
        "age": integer().optional(),
        "tags": array(string(), min_length=1),
    })
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Sequence

from .schema import (
    MISSING,
    AnyNode,
    ArrayNode,
    BooleanNode,
    DateNode,
    DateTimeNode,
    DecimalNode,
    DefaultNode,
    DiscriminatedUnionNode,
    EnumNode,
    FloatNode,
    IntegerNode,
    IntersectionNode,
    KeywordNode,
    LazyNode,
    LiteralNode,
    MapNode,
    Meta,
    NaiveDateTimeNode,
    NullableNode,
    NullishNode,
    NullNode,
    NumberNode,
    ObjectNode,
    OptionalNode,
    SchemaNode,
    StringBooleanNode,
    StringNode,
    StructNode,
    SymbolNode,
    TimeNode,
    TupleNode,
    UnionNode,
    build_meta,
    freeze_fields,
)


def _ensure_node(value: Any, what: str) -> SchemaNode:
    if not isinstance(value, SchemaNode):
        raise TypeError(f"{what} must be a schema node, got {type(value).__name__}")
    return value


# ============================================================================
# Primitives
# ============================================================================

def string(**opts: Any) -> StringNode:
    return StringNode(meta=build_meta(**opts))


def integer(**opts: Any) -> IntegerNode:
    return IntegerNode(meta=build_meta(**opts))


def float_(**opts: Any) -> FloatNode:
    return FloatNode(meta=build_meta(**opts))


def number(**opts: Any) -> NumberNode:
    """Integer or float."""
    return NumberNode(meta=build_meta(**opts))


def boolean(**opts: Any) -> BooleanNode:
    return BooleanNode(meta=build_meta(**opts))


def symbol(**opts: Any) -> SymbolNode:
    """Identifier-shaped string; with ``coerce`` an Enum member becomes its name."""
    return SymbolNode(meta=build_meta(**opts))


def literal(value: Any, **opts: Any) -> LiteralNode:
    return LiteralNode(value=value, meta=build_meta(**opts))


def enum(values: type[Enum] | Mapping[Any, Any] | Iterable[Any], **opts: Any) -> EnumNode:
    """Enumeration over plain values, a ``{output: input}`` mapping or an Enum class.

    For an Enum class both the member and its value are accepted and the
    member is returned.
    """
    enum_class = None
    if isinstance(values, type) and issubclass(values, Enum):
        enum_class = values
        choices = tuple((member, member.value) for member in values)
    elif isinstance(values, Mapping):
        choices = tuple(values.items())
    elif isinstance(values, (str, bytes)):
        raise TypeError("enum values must be a collection, not a string")
    else:
        choices = tuple((v, v) for v in values)
    if not choices:
        raise ValueError("enum requires at least one value")
    return EnumNode(choices=choices, enum_class=enum_class, meta=build_meta(**opts))


def decimal(**opts: Any) -> DecimalNode:
    return DecimalNode(meta=build_meta(**opts))


def date(**opts: Any) -> DateNode:
    return DateNode(meta=build_meta(**opts))


def time(**opts: Any) -> TimeNode:
    return TimeNode(meta=build_meta(**opts))


def datetime(**opts: Any) -> DateTimeNode:
    """Timezone-aware datetime."""
    return DateTimeNode(meta=build_meta(**opts))


def naive_datetime(**opts: Any) -> NaiveDateTimeNode:
    return NaiveDateTimeNode(meta=build_meta(**opts))


def string_boolean(
    *,
    truthy: Sequence[str] | None = None,
    falsy: Sequence[str] | None = None,
    case_sensitive: bool = False,
    **opts: Any,
) -> StringBooleanNode:
    """Boolean parsed from configurable truthy/falsy words (booleans pass through)."""
    payload: dict[str, Any] = {"case_sensitive": case_sensitive}
    if truthy is not None:
        payload["truthy"] = tuple(truthy)
    if falsy is not None:
        payload["falsy"] = tuple(falsy)
    return StringBooleanNode(meta=build_meta(**opts), **payload)


def null(**opts: Any) -> NullNode:
    return NullNode(meta=build_meta(**opts))


def any_(**opts: Any) -> AnyNode:
    return AnyNode(meta=build_meta(**opts))


# ============================================================================
# Records
# ============================================================================

def object_(fields: Mapping[Any, SchemaNode], **opts: Any) -> ObjectNode:
    """Record with fixed fields. Unknown keys are errors unless ``strict=False``."""
    if not isinstance(fields, Mapping):
        raise TypeError(f"object fields must be a mapping, got {type(fields).__name__}")
    opts.setdefault("strict", True)
    return ObjectNode(fields=freeze_fields(fields), meta=build_meta(**opts))


def map_(key_schema: SchemaNode | None = None, value_schema: SchemaNode | None = None,
         **opts: Any) -> MapNode:
    key_schema = _ensure_node(key_schema, "map key schema") if key_schema is not None else any_()
    value_schema = _ensure_node(value_schema, "map value schema") if value_schema is not None else any_()
    return MapNode(key_schema=key_schema, value_schema=value_schema, meta=build_meta(**opts))


def keyword(fields: Mapping[Any, SchemaNode] | SchemaNode, **opts: Any) -> KeywordNode:
    """Ordered ``(key, value)`` pair list.

    With a field map the pairs are checked like a record; with a single
    schema every value is checked against it and keys pass through.
    """
    if isinstance(fields, SchemaNode):
        return KeywordNode(value_schema=fields, meta=build_meta(**opts))
    if not isinstance(fields, Mapping):
        raise TypeError(f"keyword fields must be a mapping or a schema node, got {type(fields).__name__}")
    opts.setdefault("strict", True)
    return KeywordNode(fields=freeze_fields(fields), meta=build_meta(**opts))


def tuple_(elements: Sequence[SchemaNode], **opts: Any) -> TupleNode:
    if isinstance(elements, SchemaNode) or not isinstance(elements, Sequence):
        raise TypeError("tuple elements must be a sequence of schema nodes")
    nodes = tuple(_ensure_node(e, f"tuple element {i}") for i, e in enumerate(elements))
    return TupleNode(elements=nodes, meta=build_meta(**opts))


def struct(constructor: Callable[..., Any], fields: Mapping[Any, SchemaNode], **opts: Any) -> StructNode:
    """Record whose output is ``constructor(**parsed_fields)``.

    ``constructor`` is usually a class (dataclass, pydantic model); instances
    of it are accepted as input and read attribute-wise.
    """
    if not callable(constructor):
        raise TypeError("struct constructor must be callable")
    if not isinstance(fields, Mapping):
        raise TypeError(f"struct fields must be a mapping, got {type(fields).__name__}")
    opts.setdefault("strict", True)
    return StructNode(fields=freeze_fields(fields), constructor=constructor, meta=build_meta(**opts))


# ============================================================================
# Sequences
# ============================================================================

def _check_length(name: str, value: int | None) -> int | None:
    if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value < 0):
        raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
    return value


def array(inner: SchemaNode | None = None, *, min_length: int | None = None,
          max_length: int | None = None, length: int | None = None, **opts: Any) -> ArrayNode:
    inner = _ensure_node(inner, "array element schema") if inner is not None else any_()
    return ArrayNode(inner=inner, min_length=_check_length("min_length", min_length),
        max_length=_check_length("max_length", max_length), length=_check_length("length", length),
        meta=build_meta(**opts))


# ============================================================================
# Combinators
# ============================================================================

def _alternatives(schemas: Sequence[SchemaNode], what: str) -> tuple[SchemaNode, ...]:
    if isinstance(schemas, SchemaNode) or not isinstance(schemas, Sequence):
        raise TypeError(f"{what} expects a sequence of schema nodes")
    if len(schemas) < 2:
        raise ValueError(f"{what} requires at least two schemas")
    return tuple(_ensure_node(s, f"{what} alternative {i}") for i, s in enumerate(schemas))


def union(schemas: Sequence[SchemaNode], **opts: Any) -> UnionNode:
    return UnionNode(schemas=_alternatives(schemas, "union"), meta=build_meta(**opts))


def intersection(schemas: Sequence[SchemaNode], **opts: Any) -> IntersectionNode:
    return IntersectionNode(schemas=_alternatives(schemas, "intersection"), meta=build_meta(**opts))


def discriminated_union(field: Any, schemas: Sequence[SchemaNode], **opts: Any) -> DiscriminatedUnionNode:
    """Union of record schemas dispatched on the literal value of ``field``.

    Every alternative must be an object (or struct) schema declaring
    ``field`` as a ``literal``, and no two alternatives may share a tag.

    Usage:
        shape = discriminated_union("type", [
            object_({"type": literal("circle"), "radius": float_()}),
            object_({"type": literal("square"), "side": float_()}),
        ])
    """
    alternatives = _alternatives(schemas, "discriminated_union")
    tags: list[Any] = []
    for i, schema in enumerate(alternatives):
        if not isinstance(schema, (ObjectNode, StructNode)):
            raise TypeError(f"discriminated_union alternative {i} must be an object schema")
        tag_schema = schema.fields.get(field)
        if not isinstance(tag_schema, LiteralNode):
            raise ValueError(f"discriminated_union alternative {i} must declare {field!r} as a literal")
        if any(type(t) is type(tag_schema.value) and t == tag_schema.value for t in tags):
            raise ValueError(f"duplicate discriminator value {tag_schema.value!r} for field {field!r}")
        tags.append(tag_schema.value)
    return DiscriminatedUnionNode(discriminator=field, schemas=alternatives, meta=build_meta(**opts))


tagged_union = discriminated_union


def extend(base: ObjectNode | KeywordNode, extension: ObjectNode | KeywordNode | Mapping[Any, SchemaNode],
           **opts: Any) -> ObjectNode | KeywordNode:
    """Merge two record schemas at build time; ``extension`` fields win.

    ``strict`` and ``coerce`` are OR-ed across both schemas. A plain field
    mapping is accepted as the extension.
    """
    if not isinstance(base, (ObjectNode, KeywordNode)) or getattr(base, "fields", None) is None:
        raise TypeError("extend requires an object or a field-map keyword schema")
    if isinstance(extension, Mapping):
        extension_fields, extension_meta = freeze_fields(extension), Meta()
    elif type(extension) is type(base) and extension.fields is not None:
        extension_fields, extension_meta = extension.fields, extension.meta
    else:
        raise TypeError(f"cannot extend {base.kind.value} with {type(extension).__name__}")

    fields = freeze_fields({**base.fields, **extension_fields})
    meta = build_meta(base.meta, strict=base.meta.strict or extension_meta.strict,
        coerce=base.meta.coerce or extension_meta.coerce)
    if opts:
        meta = build_meta(meta, **opts)
    return type(base)(fields=fields, meta=meta)


# ============================================================================
# Wrappers
# ============================================================================

def optional(inner: SchemaNode, **opts: Any) -> OptionalNode:
    """Absent (or empty) input yields ``MISSING``; the key is omitted from records."""
    return OptionalNode(inner=_ensure_node(inner, "optional inner"), meta=build_meta(required=False, **opts))


def nullable(inner: SchemaNode, **opts: Any) -> NullableNode:
    """``None`` is accepted; presence inside records is left unchanged."""
    inner = _ensure_node(inner, "nullable inner")
    opts.setdefault("required", inner.meta.required)
    return NullableNode(inner=inner, meta=build_meta(**opts))


def nullish(inner: SchemaNode, **opts: Any) -> NullishNode:
    """Optional and nullable."""
    return NullishNode(inner=_ensure_node(inner, "nullish inner"), meta=build_meta(required=False, **opts))


def default(inner: SchemaNode, value: Any = MISSING, *, factory: Callable[[], Any] | None = None,
            **opts: Any) -> DefaultNode:
    """Fill ``value`` (or ``factory()``) when the input is absent, empty or ``None``."""
    inner = _ensure_node(inner, "default inner")
    if (value is MISSING) == (factory is None):
        raise ValueError("default requires exactly one of value or factory")
    if factory is not None and not callable(factory):
        raise TypeError("default factory must be callable")
    return DefaultNode(inner=inner, value=value, factory=factory, meta=build_meta(required=False, **opts))


def lazy(factory: Callable[[], SchemaNode], **opts: Any) -> LazyNode:
    """Deferred schema for recursion; ``factory`` is called on first parse."""
    if not callable(factory):
        raise TypeError("lazy factory must be callable")
    return LazyNode(factory=factory, meta=build_meta(**opts))


# ============================================================================
# Meta helpers (usable with traverse)
# ============================================================================

def coerce(node: SchemaNode) -> SchemaNode:
    """Enable coercion on one node."""
    return node if node.meta.coerce else node.with_meta(coerce=True)


def strict(node: SchemaNode, flag: bool = True) -> SchemaNode:
    """Set strictness on one node."""
    return node if node.meta.strict is flag else node.with_meta(strict=flag)


def describe(node: SchemaNode, description: str) -> SchemaNode:
    return node.with_meta(description=description)
