"""Schema Validation Engine

Schemas are immutable trees of nodes describing the shape of expected data.
Untrusted, already-decoded input is parsed against a tree and comes back as
``Ok(value)`` or ``Err(errors)`` with every error located by its path.

Key Features:
- Primitive, record, sequence, combinator and wrapper node kinds
- Ordered pipeline: empty check, coercion, type check, refinements/transforms
- Error accumulation across siblings, short-circuit within a node's steps
- Lazy nodes for recursive schemas with a depth guard
- Post-order tree rewriting (traverse) for bulk option changes
- Error rendering and JSON Schema export

Usage:
    from schemata.validation import object_, string, integer, parse, gte

    user = object_({"name": string(), "age": gte(integer(), 0)})

    match parse(user, payload):
        case Ok(value):
            save(value)
        case Err(errors):
            return flatten_errors(errors)
"""

# Node model
from .schema import (
    MISSING,
    Kind,
    Meta,
    Refinement,
    Transform,
    SchemaNode,
    StringNode,
    IntegerNode,
    FloatNode,
    NumberNode,
    BooleanNode,
    SymbolNode,
    LiteralNode,
    EnumNode,
    DecimalNode,
    DateNode,
    TimeNode,
    DateTimeNode,
    NaiveDateTimeNode,
    StringBooleanNode,
    NullNode,
    AnyNode,
    ObjectNode,
    MapNode,
    KeywordNode,
    TupleNode,
    StructNode,
    ArrayNode,
    UnionNode,
    IntersectionNode,
    DiscriminatedUnionNode,
    WrapperNode,
    OptionalNode,
    NullableNode,
    NullishNode,
    DefaultNode,
    LazyNode,
)

# Constructors
from .constructors import (
    string,
    integer,
    float_,
    number,
    boolean,
    symbol,
    literal,
    enum,
    decimal,
    date,
    time,
    datetime,
    naive_datetime,
    string_boolean,
    null,
    any_,
    object_,
    map_,
    keyword,
    tuple_,
    struct,
    array,
    union,
    intersection,
    discriminated_union,
    tagged_union,
    extend,
    optional,
    nullable,
    nullish,
    default,
    lazy,
    coerce,
    strict,
    describe,
)

# Constraints and transforms
from .validators import (
    gt,
    gte,
    lt,
    lte,
    min_,
    max_,
    length,
    multiple_of,
    regex,
    email,
    url,
    uuid,
    ipv4,
    ipv6,
    starts_with,
    ends_with,
    one_of,
    refine,
)
from .transforms import transform, trim, to_downcase, to_upcase

# Coercion
from .coercion import CoercionRule, ExplicitCoercion, DEFAULT_COERCER, coerce_value

# Parsing
from .boundaries import Context, parse, parse_or_raise, parse_context

# Traversal
from .traversal import traverse

# Rendering and export
from .errors import format_path, flatten_errors, treefy_errors, prettify_errors, errors_to_dicts
from .generators import JSONSchemaGenerator, to_json_schema

__all__ = [
    # Node model
    "MISSING", "Kind", "Meta", "Refinement", "Transform", "SchemaNode",
    "StringNode", "IntegerNode", "FloatNode", "NumberNode", "BooleanNode", "SymbolNode",
    "LiteralNode", "EnumNode", "DecimalNode", "DateNode", "TimeNode", "DateTimeNode",
    "NaiveDateTimeNode", "StringBooleanNode", "NullNode", "AnyNode",
    "ObjectNode", "MapNode", "KeywordNode", "TupleNode", "StructNode", "ArrayNode",
    "UnionNode", "IntersectionNode", "DiscriminatedUnionNode", "WrapperNode",
    "OptionalNode", "NullableNode",
    "NullishNode", "DefaultNode", "LazyNode",
    # Constructors
    "string", "integer", "float_", "number", "boolean", "symbol", "literal", "enum",
    "decimal", "date", "time", "datetime", "naive_datetime", "string_boolean", "null",
    "any_", "object_", "map_", "keyword", "tuple_", "struct", "array", "union",
    "intersection", "discriminated_union", "tagged_union", "extend", "optional",
    "nullable", "nullish", "default", "lazy",
    "coerce", "strict", "describe",
    # Constraints and transforms
    "gt", "gte", "lt", "lte", "min_", "max_", "length", "multiple_of", "regex", "email",
    "url", "uuid", "ipv4", "ipv6", "starts_with", "ends_with", "one_of", "refine",
    "transform", "trim", "to_downcase", "to_upcase",
    # Coercion
    "CoercionRule", "ExplicitCoercion", "DEFAULT_COERCER", "coerce_value",
    # Parsing
    "Context", "parse", "parse_or_raise", "parse_context",
    # Traversal
    "traverse",
    # Rendering and export
    "format_path", "flatten_errors", "treefy_errors", "prettify_errors", "errors_to_dicts",
    "JSONSchemaGenerator", "to_json_schema",
]
