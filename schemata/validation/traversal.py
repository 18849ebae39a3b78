"""Schema Traversal

Generic post-order rewrite of a schema tree. ``traverse(root, fn)`` rebuilds
every non-root node bottom-up, handing each one to ``fn`` after its children
have been rewritten. The input tree is never mutated.

``fn`` takes the node, or the node and its path when it declares two
required positional parameters. The path grows by field keys for object,
keyword and struct fields and by position for tuple elements; arrays, maps,
combinators and wrappers keep their parent's path. Lazy nodes are leaves and
are never forced.

Usage:
    from schemata import coerce, traverse

    form_schema = traverse(user_schema, coerce)
    traverse(user_schema, lambda node, path: node.with_meta(description=".".join(map(str, path))))
"""
from __future__ import annotations

import inspect
from dataclasses import replace
from typing import Any, Callable

from schemata.core.errors import PathSegment
from schemata.core.logging import traversal_logger

from .schema import (
    ArrayNode,
    DiscriminatedUnionNode,
    IntersectionNode,
    KeywordNode,
    MapNode,
    ObjectNode,
    SchemaNode,
    StructNode,
    TupleNode,
    UnionNode,
    WrapperNode,
    freeze_fields,
)

Path = tuple[PathSegment, ...]
Visitor = Callable[[SchemaNode, Path], SchemaNode]


def _wants_path(fn: Callable[..., Any]) -> bool:
    try:
        params = inspect.signature(fn).parameters.values()
    except (TypeError, ValueError):
        return False
    positional = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params):
        return True
    required = [p for p in params if p.kind in positional and p.default is inspect.Parameter.empty]
    return len(required) >= 2


def _adapt(fn: Callable[..., SchemaNode]) -> Visitor:
    call = fn if _wants_path(fn) else (lambda node, _path: fn(node))

    def visit(node: SchemaNode, path: Path) -> SchemaNode:
        result = call(node, path)
        if not isinstance(result, SchemaNode):
            raise TypeError(f"traverse callback must return a schema node, got {type(result).__name__}")
        return result
    return visit


def traverse(root: SchemaNode, fn: Callable[..., SchemaNode]) -> SchemaNode:
    """Rewrite every descendant of ``root`` with ``fn``; ``root`` itself is not passed to it."""
    if not isinstance(root, SchemaNode):
        raise TypeError(f"expected a schema node, got {type(root).__name__}")
    traversal_logger().debug("traverse", kind=root.kind.value)
    return _rebuild(root, (), _adapt(fn))


def _visit(node: SchemaNode, path: Path, visit: Visitor) -> SchemaNode:
    return visit(_rebuild(node, path, visit), path)


def _rebuild(node: SchemaNode, path: Path, visit: Visitor) -> SchemaNode:
    """Return ``node`` with each child rewritten."""
    match node:
        case ObjectNode() | StructNode():
            return replace(node, fields=_rewrite_fields(node.fields, path, visit))
        case KeywordNode(fields=None):
            return replace(node, value_schema=_visit(node.value_schema, path, visit))
        case KeywordNode():
            return replace(node, fields=_rewrite_fields(node.fields, path, visit))
        case TupleNode():
            elements = tuple(_visit(child, (*path, i), visit) for i, child in enumerate(node.elements))
            return replace(node, elements=elements)
        case ArrayNode() | WrapperNode():
            return replace(node, inner=_visit(node.inner, path, visit))
        case MapNode():
            return replace(node, key_schema=_visit(node.key_schema, path, visit),
                value_schema=_visit(node.value_schema, path, visit))
        case UnionNode() | IntersectionNode() | DiscriminatedUnionNode():
            return replace(node, schemas=tuple(_visit(child, path, visit) for child in node.schemas))
        case _:
            return node


def _rewrite_fields(fields, path: Path, visit: Visitor):
    return freeze_fields({key: _visit(child, (*path, key), visit) for key, child in fields.items()})
