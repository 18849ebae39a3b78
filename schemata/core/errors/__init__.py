"""Monadic Error Handling System

Type-safe error handling for the parse pipeline, inspired by Haskell's Either
monad and Rust's Result type.

Key components:
- Result[T, E]: Monadic container for success/failure
- ValidationError: structured, path-addressed error record
- ErrorCode: closed validation error taxonomy
- Builder functions: ergonomic error construction

Usage:
    from schemata.core.errors import Ok, Err, invalid_type

    match parse(schema, payload):
        case Ok(value):
            store(value)
        case Err(errors):
            log.info("rejected", codes=[e.code.value for e in errors])
"""
from .types import (
    # Core types
    Result,
    Ok,
    Err,
    ErrorCode,
    ValidationError,
    ParseError,
    PathSegment,
    # Constructors
    ok,
    err,
    render_template,
    # Combinators
    collect_results,
)

from .builders import (
    CustomMessage,
    build_error,
    apply_custom,
    # Type
    invalid_type,
    invalid_arity,
    invalid_literal,
    invalid_enum_value,
    # Presence
    required,
    unrecognized_key,
    # Range
    greater_than,
    greater_than_or_equal_to,
    less_than,
    less_than_or_equal_to,
    invalid_length,
    not_multiple_of,
    # Format
    invalid_format,
    # Custom
    custom_error,
)

__all__ = [
    "Result",
    "Ok",
    "Err",
    "ErrorCode",
    "ValidationError",
    "ParseError",
    "PathSegment",
    "ok",
    "err",
    "render_template",
    "collect_results",
    "CustomMessage",
    "build_error",
    "apply_custom",
    "invalid_type",
    "invalid_arity",
    "invalid_literal",
    "invalid_enum_value",
    "required",
    "unrecognized_key",
    "greater_than",
    "greater_than_or_equal_to",
    "less_than",
    "less_than_or_equal_to",
    "invalid_length",
    "not_multiple_of",
    "invalid_format",
    "custom_error",
]
