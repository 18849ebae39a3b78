"""Monadic Error Handling Types

Result/Either types for deterministic, composable error propagation through
the parse pipeline, plus the structured validation error record.

A parse never raises: every failure path returns ``Err`` holding a list of
``ValidationError`` records, even when a single error occurred, so record and
array containers can append to it.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import (
    Any, Callable, Generic, Iterator, NoReturn,
    Sequence, TypeVar, Union, final,
)

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")
F = TypeVar("F")

PathSegment = Union[str, int]

_PLACEHOLDER = re.compile(r"%\{(\w+)\}")


class ErrorCode(str, Enum):
    """Closed validation error taxonomy.

    The code is the stable, machine-readable half of an error; the message
    may be customized or localized without changing it.
    """
    INVALID_TYPE = "invalid_type"
    INVALID_LITERAL = "invalid_literal"
    UNRECOGNIZED_KEY = "unrecognized_key"
    INVALID_ENUM_VALUE = "invalid_enum_value"
    RANGE_VIOLATION = "range_violation"
    INVALID_FORMAT = "invalid_format"
    REQUIRED = "required"
    CUSTOM = "custom"

    @property
    def category(self) -> str:
        """Coarse grouping used by error renderers."""
        if self in (ErrorCode.REQUIRED, ErrorCode.UNRECOGNIZED_KEY):
            return "presence"
        if self is ErrorCode.CUSTOM:
            return "custom"
        return "value"


def render_template(template: str, params: dict[str, Any]) -> str:
    """Interpolate ``%{name}`` placeholders. Unknown placeholders are kept."""
    def _sub(match: re.Match) -> str:
        name = match.group(1)
        if name not in params:
            return match.group(0)
        value = params[name]
        if isinstance(value, (list, tuple)):
            return ", ".join(str(v) for v in value)
        return str(value)

    return _PLACEHOLDER.sub(_sub, template)


@dataclass(frozen=True, slots=True)
class ValidationError:
    """A single validation failure located by ``path``.

    - code: stable machine-readable ErrorCode
    - issue: ``(template, params)`` pair kept for downstream localization
    - message: the rendered (or custom) human-readable message
    - path: field keys and indices from the schema root
    """
    code: ErrorCode
    issue: tuple[str, dict[str, Any]]
    message: str
    path: tuple[PathSegment, ...] = ()

    @property
    def template(self) -> str: return self.issue[0]

    @property
    def params(self) -> dict[str, Any]: return self.issue[1]

    def prepend_path(self, *segments: PathSegment) -> ValidationError:
        return replace(self, path=(*segments, *self.path))

    def with_message(self, message: str) -> ValidationError:
        return replace(self, message=message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses and logs."""
        return {"code": self.code.value, "message": self.message, "path": list(self.path),
            "issue": {"template": self.template, "params": dict(self.params)}}

    def __str__(self) -> str:
        if not self.path: return self.message
        return f"{'.'.join(str(p) for p in self.path)}: {self.message}"


class ParseError(Exception):
    """Raised only by the explicitly raising parse variants."""

    def __init__(self, errors: Sequence[ValidationError]):
        self.errors = list(errors)
        super().__init__(self._render())

    def _render(self) -> str:
        from schemata.validation.errors import prettify_errors
        return prettify_errors(self.errors)

    def __repr__(self) -> str:
        return f"ParseError(errors={self.errors!r})"


@final
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Success variant of Result monad."""
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Extract the value. Safe because Ok always contains a value."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def unwrap_or_else(self, f: Callable[[Any], T]) -> T:
        return self.value

    def unwrap_err(self) -> NoReturn:
        raise ValueError(f"Called unwrap_err on Ok: {self.value!r}")

    def map(self, f: Callable[[T], U]) -> Result[U, Any]:
        """Transform the success value."""
        return Ok(f(self.value))

    def map_err(self, f: Callable[[Any], F]) -> Result[T, F]:
        """No-op for Ok variant."""
        return self  # type: ignore

    def and_then(self, f: Callable[[T], Result[U, Any]]) -> Result[U, Any]:
        """Chain operations that may fail."""
        return f(self.value)

    def or_else(self, f: Callable[[Any], Result[T, F]]) -> Result[T, F]:
        """No-op for Ok variant."""
        return self  # type: ignore

    def match(self, ok: Callable[[T], U], err: Callable[[Any], U]) -> U:
        """Pattern match on Result. Forces exhaustive handling."""
        return ok(self.value)

    def __iter__(self) -> Iterator[T]:
        yield self.value


@final
@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failure variant of Result monad.

    Holds the complete, ordered list of errors for a failed parse.
    """
    errors: list[E] = field(default_factory=list)

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        """Raises because Err has no value to unwrap."""
        raise ParseError(self.errors)  # type: ignore[arg-type]

    def unwrap_or(self, default: T) -> T:
        return default

    def unwrap_or_else(self, f: Callable[[list[E]], T]) -> T:
        return f(self.errors)

    def unwrap_err(self) -> list[E]:
        """Extract the errors."""
        return self.errors

    def map(self, f: Callable[[Any], U]) -> Result[U, E]:
        """No-op for Err variant."""
        return self  # type: ignore

    def map_err(self, f: Callable[[E], F]) -> Result[Any, F]:
        """Transform every error."""
        return Err([f(e) for e in self.errors])

    def and_then(self, f: Callable[[Any], Result[U, E]]) -> Result[U, E]:
        """No-op for Err variant."""
        return self  # type: ignore

    def or_else(self, f: Callable[[list[E]], Result[T, F]]) -> Result[T, F]:
        """Try to recover from error."""
        return f(self.errors)

    def match(self, ok: Callable[[Any], U], err: Callable[[list[E]], U]) -> U:
        """Pattern match on Result. Forces exhaustive handling."""
        return err(self.errors)

    def __iter__(self) -> Iterator:
        return iter([])


# Type alias for Result monad
Result = Union[Ok[T], Err[E]]


def ok(value: T) -> Ok[T]:
    """Construct Ok variant."""
    return Ok(value)


def err(*errors: E) -> Err[E]:
    """Construct Err variant from one or more errors."""
    return Err(list(errors))


def collect_results(results: Sequence[Result[T, E]]) -> Result[list[T], E]:
    """Collect Results into a Result of list.

    Returns Ok with all values if all are Ok, otherwise Err with the errors of
    every failed Result, in order.
    """
    values: list[T] = []
    errors: list[E] = []

    for r in results:
        match r:
            case Ok(v):
                values.append(v)
            case Err(es):
                errors.extend(es)

    if errors:
        return Err(errors)
    return Ok(values)
