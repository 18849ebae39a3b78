"""Parse Entry Points

The public boundary of the pipeline: untrusted input comes in, a Result
comes out.

- ``parse`` never raises on invalid input; it returns ``Ok`` or ``Err``
- ``parse_or_raise`` is the explicit raising variant (``ParseError``)
- ``parse_context`` keeps partial success for form and UI adapters
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from schemata.core.config import get_settings
from schemata.core.errors import Err, Ok, ParseError, PathSegment, Result, ValidationError
from schemata.core.logging import pipeline_logger

from .coercion import DEFAULT_COERCER, ExplicitCoercion
from .pipeline import Outcome, ParseState, depth_exceeded, run
from .schema import MISSING, SchemaNode


def _run(schema: SchemaNode, value: Any, max_depth: int | None,
         coercer: ExplicitCoercion | None = None) -> Outcome:
    if not isinstance(schema, SchemaNode):
        raise TypeError(f"expected a schema node, got {type(schema).__name__}")
    state = ParseState(max_depth=max_depth if max_depth is not None else get_settings().MAX_DEPTH,
        coercer=coercer if coercer is not None else DEFAULT_COERCER)
    try:
        parsed, errors = run(schema, value, state)
    except RecursionError:
        # Nesting ran out of interpreter stack before the lazy guard tripped.
        pipeline_logger().debug("recursion_limit_reached", max_depth=state.max_depth)
        parsed, errors = MISSING, [depth_exceeded(state.max_depth)]
    if errors:
        pipeline_logger().debug("parse_failed", kind=schema.kind.value, error_count=len(errors),
            paths=[e.path for e in errors[:10]])
    return parsed, errors


def parse(schema: SchemaNode, value: Any = MISSING, *, max_depth: int | None = None,
          coercer: ExplicitCoercion | None = None) -> Result[Any, ValidationError]:
    """Parse ``value`` against ``schema``.

    Args:
        schema: Root schema node
        value: Already-decoded input; ``MISSING`` stands for "no input"
        max_depth: Lazy resolution depth guard, defaults to ``Settings.MAX_DEPTH``
        coercer: Coercion registry used by ``coerce=True`` nodes, defaults to
            ``DEFAULT_COERCER``; extend one with ``ExplicitCoercion.add_rule``

    Returns:
        ``Ok(value)`` with the validated, coerced and transformed value, or
        ``Err(errors)`` with every error found.
    """
    parsed, errors = _run(schema, value, max_depth, coercer)
    if errors:
        return Err(errors)
    return Ok(parsed)


def parse_or_raise(schema: SchemaNode, value: Any = MISSING, *, max_depth: int | None = None,
                   coercer: ExplicitCoercion | None = None) -> Any:
    """Parse and return the value, raising ParseError on failure."""
    parsed, errors = _run(schema, value, max_depth, coercer)
    if errors:
        raise ParseError(errors)
    return parsed


# ============================================================================
# Context Adapter
# ============================================================================

@dataclass(slots=True)
class Context:
    """A parse session that keeps what did validate.

    - input: the raw input
    - parsed: best-effort output (valid record fields and array elements)
    - valid: whether no errors were recorded
    - errors: every error, in discovery order
    - path: location of this context inside a larger document
    """
    schema: SchemaNode
    input: Any
    parsed: Any = MISSING
    errors: list[ValidationError] = field(default_factory=list)
    path: tuple[PathSegment, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.errors

    def add_error(self, error: ValidationError) -> Context:
        """Record an error found outside the schema (e.g. by a form adapter)."""
        self.errors.append(error)
        return self

    def to_result(self) -> Result[Any, ValidationError]:
        return Ok(self.parsed) if self.valid else Err(list(self.errors))


def parse_context(schema: SchemaNode, value: Any = MISSING, *, max_depth: int | None = None,
                  coercer: ExplicitCoercion | None = None,
                  path: tuple[PathSegment, ...] = ()) -> Context:
    """Parse into a Context instead of a Result; never raises on invalid input."""
    parsed, errors = _run(schema, value, max_depth, coercer)
    if path:
        errors = [e.prepend_path(*path) for e in errors]
    return Context(schema=schema, input=value, parsed=parsed, errors=errors, path=tuple(path))
