"""Validation Error Builders

Ergonomic constructors for every ErrorCode. Each builder pairs a code with a
message template and named params, renders the message, and applies an
optional custom message without touching code or issue.
"""
from typing import Any, Callable, Sequence, Union

from .types import ErrorCode, PathSegment, ValidationError, render_template

CustomMessage = Union[str, Callable[[ValidationError], str], None]


def build_error(
    code: ErrorCode,
    template: str,
    params: dict[str, Any] | None = None,
    *,
    custom: CustomMessage = None,
    path: Sequence[PathSegment] = (),
) -> ValidationError:
    """Create a ValidationError with rendered message.

    A custom message replaces only ``message``; a callable custom message
    receives the default error and returns the string to use.
    """
    params = dict(params or {})
    error = ValidationError(code=code, issue=(template, params),
        message=render_template(template, params), path=tuple(path))
    return apply_custom(error, custom)


def apply_custom(error: ValidationError, custom: CustomMessage) -> ValidationError:
    """Replace the message of an already built error, keeping code and issue."""
    if custom is None:
        return error
    if callable(custom):
        return error.with_message(str(custom(error)))
    return error.with_message(render_template(custom, error.params))


# =============================================================================
# Type Errors
# =============================================================================

def invalid_type(expected: str, *, custom: CustomMessage = None, **params) -> ValidationError:
    return build_error(ErrorCode.INVALID_TYPE, "invalid type: expected %{expected}",
        {"expected": expected, **params}, custom=custom)


def invalid_arity(expected: str, count: int, *, custom: CustomMessage = None) -> ValidationError:
    return build_error(ErrorCode.INVALID_TYPE, "invalid type: expected %{expected} with %{count} elements",
        {"expected": expected, "count": count}, custom=custom)


def invalid_literal(expected: Any, *, custom: CustomMessage = None) -> ValidationError:
    return build_error(ErrorCode.INVALID_LITERAL, "invalid literal: expected %{expected}",
        {"expected": repr(expected)}, custom=custom)


def invalid_enum_value(options: Sequence[Any], *, custom: CustomMessage = None) -> ValidationError:
    return build_error(ErrorCode.INVALID_ENUM_VALUE, "invalid option, must be one of: %{options}",
        {"options": [str(o) for o in options]}, custom=custom)


# =============================================================================
# Presence Errors
# =============================================================================

def required(*, custom: CustomMessage = None) -> ValidationError:
    return build_error(ErrorCode.REQUIRED, "is required", custom=custom)


def unrecognized_key(key: Any, *, custom: CustomMessage = None) -> ValidationError:
    return build_error(ErrorCode.UNRECOGNIZED_KEY, "unrecognized key: '%{key}'",
        {"key": key}, custom=custom, path=(key,))


# =============================================================================
# Range Errors
# =============================================================================

_SUBJECTS = {
    "string": ("too small: must have at least %{count} characters",
               "too big: must have at most %{count} characters",
               "invalid length: must have %{count} characters"),
    "array": ("too small: must have at least %{count} items",
              "too big: must have at most %{count} items",
              "invalid length: must have %{count} items"),
}


def greater_than(subject: str, value: Any, *, custom: CustomMessage = None) -> ValidationError:
    return build_error(ErrorCode.RANGE_VIOLATION, "too small: must be greater than %{count}",
        {"count": value, "constraint": "gt", "subject": subject}, custom=custom)


def greater_than_or_equal_to(subject: str, value: Any, *, custom: CustomMessage = None) -> ValidationError:
    if subject in _SUBJECTS:
        template = _SUBJECTS[subject][0]
    else:
        template = "too small: must be at least %{count}"
    return build_error(ErrorCode.RANGE_VIOLATION, template,
        {"count": value, "constraint": "gte", "subject": subject}, custom=custom)


def less_than(subject: str, value: Any, *, custom: CustomMessage = None) -> ValidationError:
    return build_error(ErrorCode.RANGE_VIOLATION, "too big: must be less than %{count}",
        {"count": value, "constraint": "lt", "subject": subject}, custom=custom)


def less_than_or_equal_to(subject: str, value: Any, *, custom: CustomMessage = None) -> ValidationError:
    if subject in _SUBJECTS:
        template = _SUBJECTS[subject][1]
    else:
        template = "too big: must be at most %{count}"
    return build_error(ErrorCode.RANGE_VIOLATION, template,
        {"count": value, "constraint": "lte", "subject": subject}, custom=custom)


def invalid_length(subject: str, value: int, *, custom: CustomMessage = None) -> ValidationError:
    template = _SUBJECTS.get(subject, _SUBJECTS["array"])[2]
    return build_error(ErrorCode.RANGE_VIOLATION, template,
        {"count": value, "constraint": "length", "subject": subject}, custom=custom)


def not_multiple_of(value: Any, *, custom: CustomMessage = None) -> ValidationError:
    return build_error(ErrorCode.RANGE_VIOLATION, "invalid number: must be a multiple of %{count}",
        {"count": value, "constraint": "multiple_of"}, custom=custom)


# =============================================================================
# Format Errors
# =============================================================================

def invalid_format(format: str, template: str | None = None, *, custom: CustomMessage = None,
                   **params) -> ValidationError:
    return build_error(ErrorCode.INVALID_FORMAT, template or "invalid format: must be a valid %{format}",
        {"format": format, **params}, custom=custom)


# =============================================================================
# Custom Errors
# =============================================================================

def custom_error(message: str, params: dict[str, Any] | None = None, *,
                 path: Sequence[PathSegment] = ()) -> ValidationError:
    return build_error(ErrorCode.CUSTOM, message, params, path=path)
