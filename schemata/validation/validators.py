"""Built-in Constraints

Constraint helpers attach named refinements to a node, choosing the check by
the node's kind: strings compare their length, numbers and temporal values
compare themselves, arrays record structural length bounds that are checked
before their elements.

Features:
- Range constraints (gt/gte/lt/lte, min_/max_, length, multiple_of)
- String formats (regex, email, url, uuid, ipv4, ipv6, starts_with, ends_with)
- Membership (one_of) and arbitrary predicates (refine)
- Constraints on wrapped nodes apply to the wrapped value node

Every check returns a default ValidationError; the pipeline applies the
step's message (or the node's ``error``) on top of it.
"""
from __future__ import annotations

import re
from dataclasses import replace
from decimal import Decimal
from ipaddress import IPv4Address, IPv6Address, AddressValueError
from typing import Any, Callable, Sequence

from schemata.core.errors import (
    CustomMessage,
    ValidationError,
    invalid_enum_value,
    greater_than,
    greater_than_or_equal_to,
    invalid_format,
    invalid_length,
    less_than,
    less_than_or_equal_to,
    not_multiple_of,
)

from . import regexes
from .schema import (
    ArrayNode,
    DefaultNode,
    Kind,
    NullableNode,
    NullishNode,
    OptionalNode,
    Refinement,
    SchemaNode,
)

Check = Callable[[Any], ValidationError | None]

_NUMERIC = frozenset({Kind.INTEGER, Kind.FLOAT, Kind.NUMBER, Kind.DECIMAL})
_TEMPORAL = frozenset({Kind.DATE, Kind.TIME, Kind.DATETIME, Kind.NAIVE_DATETIME})
_WRAPPERS = (OptionalNode, NullableNode, NullishNode, DefaultNode)


def _constrain(node: SchemaNode, apply: Callable[[SchemaNode], SchemaNode]) -> SchemaNode:
    """Apply a constraint to the value node, rebuilding any wrappers around it."""
    if isinstance(node, _WRAPPERS):
        return replace(node, inner=_constrain(node.inner, apply))
    return apply(node)


def _attach(node: SchemaNode, name: str, check: Check, message: CustomMessage,
            **params: Any) -> SchemaNode:
    return node.with_step(Refinement(fn=check, message=message, name=name, params=params))


def _subject(node: SchemaNode, constraint: str) -> str:
    if node.kind is Kind.STRING:
        return "string"
    if node.kind in _NUMERIC:
        return "number"
    if node.kind in _TEMPORAL:
        return "date"
    raise TypeError(f"{constraint} is not supported on {node.kind.value} schemas")


def _measure(subject: str) -> Callable[[Any], Any]:
    return len if subject == "string" else (lambda v: v)


# ============================================================================
# Range Constraints
# ============================================================================

def gte(node: SchemaNode, value: Any, *, message: CustomMessage = None) -> SchemaNode:
    """Minimum (inclusive): length for strings and arrays, value otherwise."""
    def apply(target: SchemaNode) -> SchemaNode:
        if isinstance(target, ArrayNode):
            return replace(target, min_length=value)
        subject = _subject(target, "gte")
        measure = _measure(subject)
        def check(v: Any) -> ValidationError | None:
            return None if measure(v) >= value else greater_than_or_equal_to(subject, value)
        return _attach(target, "gte", check, message, value=value, subject=subject)
    return _constrain(node, apply)


def gt(node: SchemaNode, value: Any, *, message: CustomMessage = None) -> SchemaNode:
    """Exclusive minimum."""
    def apply(target: SchemaNode) -> SchemaNode:
        if isinstance(target, ArrayNode):
            return replace(target, min_length=value + 1)
        subject = _subject(target, "gt")
        measure = _measure(subject)
        def check(v: Any) -> ValidationError | None:
            return None if measure(v) > value else greater_than(subject, value)
        return _attach(target, "gt", check, message, value=value, subject=subject)
    return _constrain(node, apply)


def lte(node: SchemaNode, value: Any, *, message: CustomMessage = None) -> SchemaNode:
    """Maximum (inclusive): length for strings and arrays, value otherwise."""
    def apply(target: SchemaNode) -> SchemaNode:
        if isinstance(target, ArrayNode):
            return replace(target, max_length=value)
        subject = _subject(target, "lte")
        measure = _measure(subject)
        def check(v: Any) -> ValidationError | None:
            return None if measure(v) <= value else less_than_or_equal_to(subject, value)
        return _attach(target, "lte", check, message, value=value, subject=subject)
    return _constrain(node, apply)


def lt(node: SchemaNode, value: Any, *, message: CustomMessage = None) -> SchemaNode:
    """Exclusive maximum."""
    def apply(target: SchemaNode) -> SchemaNode:
        if isinstance(target, ArrayNode):
            return replace(target, max_length=value - 1)
        subject = _subject(target, "lt")
        measure = _measure(subject)
        def check(v: Any) -> ValidationError | None:
            return None if measure(v) < value else less_than(subject, value)
        return _attach(target, "lt", check, message, value=value, subject=subject)
    return _constrain(node, apply)


min_ = gte
max_ = lte


def length(node: SchemaNode, value: int, *, message: CustomMessage = None) -> SchemaNode:
    """Exact length of a string or array."""
    def apply(target: SchemaNode) -> SchemaNode:
        if isinstance(target, ArrayNode):
            return replace(target, length=value)
        if target.kind is not Kind.STRING:
            raise TypeError(f"length is not supported on {target.kind.value} schemas")
        def check(v: str) -> ValidationError | None:
            return None if len(v) == value else invalid_length("string", value)
        return _attach(target, "length", check, message, value=value, subject="string")
    return _constrain(node, apply)


def multiple_of(node: SchemaNode, value: int | float | Decimal, *, message: CustomMessage = None) -> SchemaNode:
    if not value:
        raise ValueError("multiple_of requires a non-zero value")

    def apply(target: SchemaNode) -> SchemaNode:
        if target.kind not in _NUMERIC:
            raise TypeError(f"multiple_of is not supported on {target.kind.value} schemas")
        def check(v: Any) -> ValidationError | None:
            return None if v % value == 0 else not_multiple_of(value)
        return _attach(target, "multiple_of", check, message, value=value)
    return _constrain(node, apply)


# ============================================================================
# String Formats
# ============================================================================

def _string_check(node: SchemaNode, name: str, check: Check, message: CustomMessage,
                  **params: Any) -> SchemaNode:
    def apply(target: SchemaNode) -> SchemaNode:
        if target.kind is not Kind.STRING:
            raise TypeError(f"{name} is not supported on {target.kind.value} schemas")
        return _attach(target, name, check, message, **params)
    return _constrain(node, apply)


def regex(node: SchemaNode, pattern: str | re.Pattern[str], *, message: CustomMessage = None) -> SchemaNode:
    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern

    def check(v: str) -> ValidationError | None:
        if compiled.search(v):
            return None
        return invalid_format("regex", "invalid format: must match pattern %{pattern}", pattern=compiled.pattern)
    return _string_check(node, "regex", check, message, pattern=compiled.pattern)


def email(node: SchemaNode, *, pattern: re.Pattern[str] = regexes.EMAIL, message: CustomMessage = None) -> SchemaNode:
    def check(v: str) -> ValidationError | None:
        return None if pattern.match(v) else invalid_format("email")
    return _string_check(node, "email", check, message, format="email")


def url(node: SchemaNode, *, message: CustomMessage = None) -> SchemaNode:
    def check(v: str) -> ValidationError | None:
        return None if regexes.URL.match(v) else invalid_format("url")
    return _string_check(node, "url", check, message, format="uri")


def uuid(node: SchemaNode, *, version: int | None = None, message: CustomMessage = None) -> SchemaNode:
    pattern = regexes.uuid(version)

    def check(v: str) -> ValidationError | None:
        return None if pattern.match(v) else invalid_format("uuid")
    return _string_check(node, "uuid", check, message, format="uuid", version=version)


def ipv4(node: SchemaNode, *, message: CustomMessage = None) -> SchemaNode:
    def check(v: str) -> ValidationError | None:
        try:
            IPv4Address(v)
        except (AddressValueError, ValueError):
            return invalid_format("ipv4", "invalid format: must be a valid IPv4 address")
        return None
    return _string_check(node, "ipv4", check, message, format="ipv4")


def ipv6(node: SchemaNode, *, message: CustomMessage = None) -> SchemaNode:
    def check(v: str) -> ValidationError | None:
        try:
            IPv6Address(v)
        except (AddressValueError, ValueError):
            return invalid_format("ipv6", "invalid format: must be a valid IPv6 address")
        return None
    return _string_check(node, "ipv6", check, message, format="ipv6")


def starts_with(node: SchemaNode, prefix: str, *, message: CustomMessage = None) -> SchemaNode:
    def check(v: str) -> ValidationError | None:
        if v.startswith(prefix):
            return None
        return invalid_format("starts_with", "invalid format: must start with '%{prefix}'", prefix=prefix)
    return _string_check(node, "starts_with", check, message, prefix=prefix)


def ends_with(node: SchemaNode, suffix: str, *, message: CustomMessage = None) -> SchemaNode:
    def check(v: str) -> ValidationError | None:
        if v.endswith(suffix):
            return None
        return invalid_format("ends_with", "invalid format: must end with '%{suffix}'", suffix=suffix)
    return _string_check(node, "ends_with", check, message, suffix=suffix)


# ============================================================================
# Membership & Predicates
# ============================================================================

def one_of(node: SchemaNode, values: Sequence[Any], *, message: CustomMessage = None) -> SchemaNode:
    allowed = tuple(values)

    def check(v: Any) -> ValidationError | None:
        if v in allowed:
            return None
        return invalid_enum_value(allowed)
    return _constrain(node, lambda target: _attach(target, "one_of", check, message, values=allowed))


def refine(node: SchemaNode, fn: Callable[[Any], Any], *, message: CustomMessage = None) -> SchemaNode:
    """Attach a predicate.

    ``fn(value)`` passes with ``None``/``True``; ``False`` fails with
    ``message``; a string, a ValidationError, a list of them or an ``Err``
    fail with those. Errors may carry their own relative path.
    """
    return node.refine(fn, message)
