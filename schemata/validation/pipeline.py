"""Parse Pipeline

The dispatcher that runs one node against one input value. Every node goes
through the same ordered steps:

1. empty-value check (``MISSING`` or a member of ``meta.empty_values``)
2. best-effort coercion when ``meta.coerce`` is set (non-fatal)
3. kind-specific type/shape check, recursing into children
4. ``meta.steps``: refinements and transforms in attachment order

Internally every function returns an ``Outcome``: the (possibly partial)
value and the list of errors, empty on success. Composites attempt every
child and accumulate errors; only a node's own step sequence short-circuits.
Keeping partial values lets ``Context`` surface what did validate.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, assert_never

import pydantic

from schemata.core.errors import (
    Err,
    Ok,
    ValidationError,
    apply_custom,
    custom_error,
    greater_than_or_equal_to,
    invalid_arity,
    invalid_enum_value,
    invalid_length,
    invalid_literal,
    invalid_type,
    less_than_or_equal_to,
    required,
    unrecognized_key,
)
from schemata.core.logging import pipeline_logger

from .coercion import DEFAULT_COERCER, ExplicitCoercion
from .regexes import IDENTIFIER
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
    Refinement,
    SchemaNode,
    StringBooleanNode,
    StringNode,
    StructNode,
    SymbolNode,
    TimeNode,
    Transform,
    TupleNode,
    UnionNode,
    is_absent,
    is_empty,
)

Outcome = tuple[Any, list[ValidationError]]

_NOT_FOUND = object()


@dataclass(slots=True)
class ParseState:
    """Per-call parse settings and the lazy resolution depth counter."""
    max_depth: int
    coercer: ExplicitCoercion = field(default_factory=lambda: DEFAULT_COERCER)
    depth: int = 0


def run(node: SchemaNode, value: Any, state: ParseState) -> Outcome:
    """Parse ``value`` against ``node``, returning ``(value_or_partial, errors)``."""
    match node:
        case OptionalNode() | NullableNode() | NullishNode() | DefaultNode() | LazyNode():
            return _run_wrapper(node, value, state)

    meta = node.meta
    if is_absent(value, meta):
        if meta.required is False:
            return MISSING, []
        return MISSING, [required(custom=meta.error)]

    if meta.coerce and (node.kind.family == "record" or not meta.strict):
        value = _coerce(node, value, state)

    value, errors = _check(node, value, state)
    if errors:
        return value, errors
    return run_steps(node, value)


def _coerce(node: SchemaNode, value: Any, state: ParseState) -> Any:
    if isinstance(node, EnumNode) and node.enum_class is not None and isinstance(value, str):
        member = node.enum_class.__members__.get(value)
        return member if member is not None else value
    return state.coercer.coerce_or_keep(value, node.kind)


# ============================================================================
# Steps
# ============================================================================

def run_steps(node: SchemaNode, value: Any) -> Outcome:
    """Run refinements and transforms in attachment order, stopping at the first failure."""
    meta = node.meta
    for step in meta.steps:
        match step:
            case Refinement():
                errors = _refinement_errors(step, value, meta)
                if errors:
                    return _failed_partial(node, value), errors
            case Transform(fn=fn):
                try:
                    result = fn(value)
                except (TypeError, ValueError) as exc:
                    return _failed_partial(node, value), [custom_error(str(exc))]
                match result:
                    case Ok(new_value):
                        value = new_value
                    case Err(errs):
                        return _failed_partial(node, value), _as_errors(errs)
                    case _:
                        value = result
            case _:
                assert_never(step)
    return value, []


def _failed_partial(node: SchemaNode, value: Any) -> Any:
    return MISSING if node.kind.family == "primitive" else value


def _refinement_errors(step: Refinement, value: Any, meta: Meta) -> list[ValidationError]:
    custom = step.message if step.message is not None else meta.error
    try:
        result = step.fn(value)
    except (TypeError, ValueError) as exc:
        return [apply_custom(custom_error(str(exc)), step.message)]

    match result:
        case None | True:
            return []
        case False:
            return [apply_custom(custom_error("invalid value"), custom)]
        case str():
            return [custom_error(result)]
        case ValidationError():
            return [apply_custom(result, custom)] if step.name else [result]
        case Err(errs):
            return _as_errors(errs)
        case list() | tuple():
            return _as_errors(result)
        case _:
            return [] if result else [apply_custom(custom_error("invalid value"), custom)]


def _as_errors(items: Any) -> list[ValidationError]:
    if isinstance(items, (ValidationError, str)):
        items = [items]
    errors = []
    for item in items:
        if isinstance(item, ValidationError):
            errors.append(item)
        elif isinstance(item, str):
            errors.append(custom_error(item))
        else:
            raise TypeError(f"expected ValidationError or str, got {type(item).__name__}")
    return errors


# ============================================================================
# Wrappers
# ============================================================================

def _inner_absent(node: SchemaNode, value: Any) -> bool:
    return is_absent(value, node.meta) or is_empty(value, node.inner.meta.empty_values)


def _delegate(node: SchemaNode, inner: SchemaNode, value: Any, state: ParseState) -> Outcome:
    value, errors = run(inner, value, state)
    if errors:
        return value, errors
    return run_steps(node, value)


def _run_wrapper(node: SchemaNode, value: Any, state: ParseState) -> Outcome:
    match node:
        case OptionalNode():
            if _inner_absent(node, value):
                return MISSING, []
            return _delegate(node, node.inner, value, state)
        case NullableNode():
            if value is None:
                return None, []
            return _delegate(node, node.inner, value, state)
        case NullishNode():
            if value is None:
                return None, []
            if _inner_absent(node, value):
                return MISSING, []
            return _delegate(node, node.inner, value, state)
        case DefaultNode():
            if value is None or _inner_absent(node, value):
                return run_steps(node, node.default_value())
            return _delegate(node, node.inner, value, state)
        case LazyNode():
            return _run_lazy(node, value, state)
        case _:
            raise TypeError(f"not a wrapper node: {node.kind.value}")


def depth_exceeded(max_depth: int) -> ValidationError:
    return custom_error("maximum schema depth of %{max_depth} exceeded", {"max_depth": max_depth})


def _run_lazy(node: LazyNode, value: Any, state: ParseState) -> Outcome:
    if state.depth >= state.max_depth:
        pipeline_logger().debug("max_depth_exceeded", max_depth=state.max_depth)
        return MISSING, [depth_exceeded(state.max_depth)]

    if not node.is_resolved:
        pipeline_logger().debug("lazy_resolved", depth=state.depth)
    target = node.resolve()

    state.depth += 1
    try:
        return _delegate(node, target, value, state)
    finally:
        state.depth -= 1


# ============================================================================
# Type Checks
# ============================================================================

def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def same_value(a: Any, b: Any) -> bool:
    """Equality that does not conflate bools with numbers."""
    if isinstance(a, bool) or isinstance(b, bool) or a is None or b is None:
        return a is b
    try:
        return bool(a == b)
    except (TypeError, ValueError):
        return False


def _check(node: SchemaNode, value: Any, state: ParseState) -> Outcome:
    custom = node.meta.error
    match node:
        case StringNode():
            return _expect(isinstance(value, str), value, "string", custom)
        case IntegerNode():
            return _expect(_is_int(value), value, "integer", custom)
        case FloatNode():
            return _expect(isinstance(value, float), value, "float", custom)
        case NumberNode():
            return _expect(_is_int(value) or isinstance(value, float), value, "number", custom)
        case BooleanNode():
            return _expect(isinstance(value, bool), value, "boolean", custom)
        case SymbolNode():
            ok = isinstance(value, str) and IDENTIFIER.match(value) is not None
            return _expect(ok, value, "symbol", custom)
        case LiteralNode():
            if same_value(value, node.value) and type(value) is type(node.value):
                return value, []
            return MISSING, [invalid_literal(node.value, custom=custom)]
        case EnumNode():
            return _check_enum(node, value)
        case DecimalNode():
            ok = isinstance(value, Decimal) and value.is_finite()
            return _expect(ok, value, "decimal", custom)
        case DateNode():
            ok = isinstance(value, date) and not isinstance(value, datetime)
            return _expect(ok, value, "date", custom)
        case TimeNode():
            return _expect(isinstance(value, time), value, "time", custom)
        case DateTimeNode():
            ok = isinstance(value, datetime) and value.utcoffset() is not None
            return _expect(ok, value, "datetime", custom)
        case NaiveDateTimeNode():
            ok = isinstance(value, datetime) and value.tzinfo is None
            return _expect(ok, value, "naive datetime", custom)
        case StringBooleanNode():
            return _check_string_boolean(node, value)
        case NullNode():
            return _expect(value is None, value, "null", custom)
        case AnyNode():
            return value, []
        case ObjectNode():
            return _check_object(node, value, state)
        case MapNode():
            return _check_map(node, value, state)
        case KeywordNode():
            return _check_keyword(node, value, state)
        case TupleNode():
            return _check_tuple(node, value, state)
        case StructNode():
            return _check_struct(node, value, state)
        case ArrayNode():
            return _check_array(node, value, state)
        case UnionNode():
            return _check_union(node, value, state)
        case IntersectionNode():
            return _check_intersection(node, value, state)
        case DiscriminatedUnionNode():
            return _check_discriminated(node, value, state)
        case _:
            raise TypeError(f"unsupported schema node: {type(node).__name__}")


def _expect(ok: bool, value: Any, expected: str, custom: Any) -> Outcome:
    if ok:
        return value, []
    return MISSING, [invalid_type(expected, custom=custom)]


def _check_enum(node: EnumNode, value: Any) -> Outcome:
    for key, choice in node.choices:
        if same_value(value, choice) or (node.enum_class is not None and value is key):
            return key, []
    return MISSING, [invalid_enum_value(node.options, custom=node.meta.error)]


def _check_string_boolean(node: StringBooleanNode, value: Any) -> Outcome:
    if isinstance(value, bool):
        return value, []
    if isinstance(value, str):
        word = value if node.case_sensitive else value.lower()
        if word in node.truthy:
            return True, []
        if word in node.falsy:
            return False, []
    return MISSING, [invalid_type("string boolean", custom=node.meta.error)]


# ============================================================================
# Records
# ============================================================================

def _lookup(data: Mapping, key: Any, coerce: bool) -> tuple[Any, Any]:
    """Find ``key`` in ``data``; with ``coerce`` also try its normalized forms."""
    if key in data:
        return key, data[key]
    if coerce:
        candidates = [str(key)]
        if isinstance(key, Enum):
            candidates = [key.value, str(key.value), key.name]
        for candidate in candidates:
            if candidate in data:
                return candidate, data[candidate]
    return _NOT_FOUND, MISSING


def _parse_fields(node: ObjectNode | StructNode, data: Mapping, state: ParseState, *,
                  check_unknown: bool = True) -> Outcome:
    meta = node.meta
    output: dict[Any, Any] = {}
    errors: list[ValidationError] = []
    consumed: set[Any] = set()

    for key, child in node.fields.items():
        found, raw = _lookup(data, key, meta.coerce)
        if found is not _NOT_FOUND:
            consumed.add(found)
        if is_empty(raw, meta.empty_values):
            raw = MISSING
        value, child_errors = run(child, raw, state)
        if child_errors:
            errors.extend(e.prepend_path(key) for e in child_errors)
        if value is not MISSING:
            output[key] = value

    if check_unknown and meta.strict:
        errors.extend(unrecognized_key(k) for k in data if k not in consumed)
    return output, errors


def _check_object(node: ObjectNode, value: Any, state: ParseState) -> Outcome:
    if not isinstance(value, Mapping):
        return MISSING, [invalid_type("object", custom=node.meta.error)]
    return _parse_fields(node, value, state)


def _check_struct(node: StructNode, value: Any, state: ParseState) -> Outcome:
    constructor = node.constructor
    if isinstance(constructor, type) and isinstance(value, constructor):
        data = {k: getattr(value, str(k), MISSING) for k in node.fields}
        output, errors = _parse_fields(node, data, state, check_unknown=False)
    elif isinstance(value, Mapping):
        output, errors = _parse_fields(node, value, state)
    else:
        name = getattr(constructor, "__name__", "struct")
        return MISSING, [invalid_type(name, custom=node.meta.error)]

    if errors:
        return output, errors
    try:
        return constructor(**output), []
    except pydantic.ValidationError as exc:
        return output, [custom_error(e["msg"], path=tuple(e["loc"])) for e in exc.errors()]
    except (TypeError, ValueError) as exc:
        return output, [custom_error(str(exc))]


def _check_map(node: MapNode, value: Any, state: ParseState) -> Outcome:
    if not isinstance(value, Mapping):
        return MISSING, [invalid_type("map", custom=node.meta.error)]
    output: dict[Any, Any] = {}
    errors: list[ValidationError] = []
    for key, item in value.items():
        new_key, key_errors = run(node.key_schema, key, state)
        new_value, value_errors = run(node.value_schema, item, state)
        errors.extend(e.prepend_path(key) for e in key_errors)
        errors.extend(e.prepend_path(key) for e in value_errors)
        if not key_errors and not value_errors:
            output[new_key] = new_value
    return output, errors


def _is_pair(item: Any) -> bool:
    return isinstance(item, (tuple, list)) and len(item) == 2


def _check_keyword(node: KeywordNode, value: Any, state: ParseState) -> Outcome:
    meta = node.meta
    if meta.coerce and isinstance(value, Mapping):
        value = list(value.items())
    if (not isinstance(value, (list, tuple))) or not all(_is_pair(item) for item in value):
        return MISSING, [invalid_type("keyword list", custom=meta.error)]

    output: list[tuple[Any, Any]] = []
    errors: list[ValidationError] = []

    if node.fields is None:
        for key, item in value:
            if is_empty(item, meta.empty_values):
                continue
            parsed, item_errors = run(node.value_schema, item, state)
            errors.extend(e.prepend_path(key) for e in item_errors)
            if not item_errors:
                output.append((key, parsed))
        return output, errors

    seen: set[Any] = set()
    for key, item in value:
        field_key = _keyword_field(node, key)
        if field_key is _NOT_FOUND:
            if meta.strict:
                errors.append(unrecognized_key(key))
            continue
        seen.add(field_key)
        if is_empty(item, meta.empty_values):
            item = MISSING
        parsed, item_errors = run(node.fields[field_key], item, state)
        errors.extend(e.prepend_path(field_key) for e in item_errors)
        if parsed is not MISSING:
            output.append((field_key, parsed))

    for field_key, child in node.fields.items():
        if field_key in seen:
            continue
        parsed, item_errors = run(child, MISSING, state)
        errors.extend(e.prepend_path(field_key) for e in item_errors)
        if parsed is not MISSING:
            output.append((field_key, parsed))
    return output, errors


def _keyword_field(node: KeywordNode, key: Any) -> Any:
    if key in node.fields:
        return key
    if node.meta.coerce:
        for field_key in node.fields:
            if key == str(field_key) or (isinstance(field_key, Enum) and key in (field_key.value, field_key.name)):
                return field_key
    return _NOT_FOUND


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _check_tuple(node: TupleNode, value: Any, state: ParseState) -> Outcome:
    if not _is_sequence(value):
        return MISSING, [invalid_type("tuple", custom=node.meta.error)]
    if len(value) != len(node.elements):
        return MISSING, [invalid_arity("tuple", len(node.elements), custom=node.meta.error)]

    output: list[Any] = []
    errors: list[ValidationError] = []
    for index, (child, item) in enumerate(zip(node.elements, value)):
        parsed, item_errors = run(child, item, state)
        errors.extend(e.prepend_path(index) for e in item_errors)
        output.append(parsed)
    return tuple(output), errors


# ============================================================================
# Sequences
# ============================================================================

def _length_error(node: ArrayNode, count: int) -> ValidationError | None:
    custom = node.meta.error
    if node.length is not None and count != node.length:
        return invalid_length("array", node.length, custom=custom)
    if node.min_length is not None and count < node.min_length:
        return greater_than_or_equal_to("array", node.min_length, custom=custom)
    if node.max_length is not None and count > node.max_length:
        return less_than_or_equal_to("array", node.max_length, custom=custom)
    return None


def _check_array(node: ArrayNode, value: Any, state: ParseState) -> Outcome:
    if not isinstance(value, (list, tuple)):
        return MISSING, [invalid_type("array", custom=node.meta.error)]
    if (error := _length_error(node, len(value))) is not None:
        return MISSING, [error]

    output: list[Any] = []
    errors: list[ValidationError] = []
    for index, item in enumerate(value):
        parsed, item_errors = run(node.inner, item, state)
        errors.extend(e.prepend_path(index) for e in item_errors)
        if parsed is not MISSING:
            output.append(parsed)
    return output, errors


# ============================================================================
# Combinators
# ============================================================================

def _combined_failure(node: UnionNode | IntersectionNode, errors: list[ValidationError]) -> list[ValidationError]:
    if node.meta.error is None:
        return errors
    return [apply_custom(custom_error("invalid value"), node.meta.error)]


def _check_union(node: UnionNode, value: Any, state: ParseState) -> Outcome:
    errors: list[ValidationError] = []
    for alternative in node.schemas:
        parsed, alt_errors = run(alternative, value, state)
        if not alt_errors:
            return parsed, []
        errors.extend(alt_errors)
    return MISSING, _combined_failure(node, errors)


def _check_discriminated(node: DiscriminatedUnionNode, value: Any, state: ParseState) -> Outcome:
    meta = node.meta
    if not isinstance(value, Mapping):
        return MISSING, [invalid_type("object", custom=meta.error)]

    field_name = node.discriminator
    found, tag = _lookup(value, field_name, meta.coerce)
    if found is _NOT_FOUND or is_empty(tag, meta.empty_values):
        return MISSING, [required(custom=meta.error).prepend_path(field_name)]

    alternative = node.select(tag)
    if alternative is None:
        error = custom_error("unknown discriminator '%{value}' for field '%{field}'",
            {"field": field_name, "value": tag}, path=(field_name,))
        return MISSING, [apply_custom(error, meta.error)]
    return run(alternative, value, state)


def deep_merge(left: Any, right: Any) -> Any:
    """Merge mappings recursively; ``right`` wins on conflicting leaves."""
    if not (isinstance(left, Mapping) and isinstance(right, Mapping)):
        return right
    merged = dict(left)
    for key, value in right.items():
        merged[key] = deep_merge(merged[key], value) if key in merged else value
    return merged


def _check_intersection(node: IntersectionNode, value: Any, state: ParseState) -> Outcome:
    outputs: list[Any] = []
    errors: list[ValidationError] = []
    for alternative in node.schemas:
        parsed, alt_errors = run(alternative, value, state)
        if alt_errors:
            errors.extend(alt_errors)
        else:
            outputs.append(parsed)
    if errors:
        return MISSING, _combined_failure(node, errors)

    result = outputs[0]
    for parsed in outputs[1:]:
        result = deep_merge(result, parsed)
    return result, []
