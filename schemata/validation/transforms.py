"""Built-in transforms.

Transforms run after the type check, interleaved with refinements in the order
they were attached. ``fn(value)`` returns the new value, or ``Ok``/``Err``.
"""
from __future__ import annotations

from typing import Any, Callable

from .schema import Kind, SchemaNode, Transform


def transform(node: SchemaNode, fn: Callable[[Any], Any]) -> SchemaNode:
    return node.transform(fn)


def _string_transform(node: SchemaNode, name: str, fn: Callable[[str], str]) -> SchemaNode:
    if node.kind is not Kind.STRING:
        raise TypeError(f"{name} is not supported on {node.kind.value} schemas")
    return node.with_step(Transform(fn=fn, name=name))


def trim(node: SchemaNode) -> SchemaNode:
    return _string_transform(node, "trim", str.strip)


def to_downcase(node: SchemaNode) -> SchemaNode:
    return _string_transform(node, "to_downcase", str.lower)


def to_upcase(node: SchemaNode) -> SchemaNode:
    return _string_transform(node, "to_upcase", str.upper)
