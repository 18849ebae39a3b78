"""Explicit Opt-in Coercion System

Coercion rules are explicit and opt-in, never implicit. A node only coerces
when its ``coerce`` flag is set (and, for scalars, ``strict`` is not).

Features:
- Type-safe coercion with Result types
- Extensible rule registry keyed by node kind
- Coercion is best-effort: a failed rule leaves the input untouched so the
  type check reports the error
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping, Sequence
from uuid import UUID

from schemata.core.errors import Err, Ok, Result, ValidationError, invalid_type

from .regexes import IDENTIFIER
from .schema import Kind


def _not_coercible(value: Any, target: Kind) -> Err[ValidationError]:
    return Err([invalid_type(target.value, source=type(value).__name__)])


@dataclass(frozen=True, slots=True)
class CoercionRule(ABC):
    """Base class for coercion rules.

    Each rule defines:
    - The node kind it coerces to
    - Whether a value is a candidate for coercion
    - The actual coercion logic
    """

    @property
    @abstractmethod
    def target(self) -> Kind:
        """Node kind this rule coerces to."""

    @abstractmethod
    def can_coerce(self, value: Any) -> bool:
        """Check if value is a candidate for this rule."""

    @abstractmethod
    def coerce(self, value: Any) -> Result[Any, ValidationError]:
        """Coerce value to the target kind. Returns Result."""

    def __call__(self, value: Any) -> Result[Any, ValidationError]:
        return self.coerce(value)


# ============================================================================
# String Rules
# ============================================================================

@dataclass(frozen=True, slots=True)
class ToString(CoercionRule):
    """Render scalars (numbers, booleans, enums, dates, UUIDs) as strings."""

    @property
    def target(self) -> Kind: return Kind.STRING

    def can_coerce(self, value: Any) -> bool:
        return isinstance(value, (int, float, Decimal, Enum, date, time, UUID)) and not isinstance(value, str)

    def coerce(self, value: Any) -> Result[str, ValidationError]:
        if isinstance(value, bool):
            return Ok("true" if value else "false")
        if isinstance(value, Enum):
            return Ok(str(value.value))
        if isinstance(value, (date, time)):
            return Ok(value.isoformat())
        return Ok(str(value))


@dataclass(frozen=True, slots=True)
class ToSymbol(CoercionRule):
    """Coerce enum members to their name and identifier-shaped strings as-is."""

    @property
    def target(self) -> Kind: return Kind.SYMBOL

    def can_coerce(self, value: Any) -> bool:
        return isinstance(value, Enum)

    def coerce(self, value: Any) -> Result[str, ValidationError]:
        if isinstance(value, Enum) and IDENTIFIER.match(value.name):
            return Ok(value.name)
        return _not_coercible(value, self.target)


# ============================================================================
# Numeric Rules
# ============================================================================

@dataclass(frozen=True, slots=True)
class StringToInt(CoercionRule):
    """Coerce string to integer."""
    allow_float_strings: bool = False

    @property
    def target(self) -> Kind: return Kind.INTEGER

    def can_coerce(self, value: Any) -> bool:
        return isinstance(value, str) and bool(value.strip())

    def coerce(self, value: Any) -> Result[int, ValidationError]:
        try:
            stripped = value.strip()
            if self.allow_float_strings:
                return Ok(int(float(stripped)))
            return Ok(int(stripped))
        except (ValueError, AttributeError):
            return _not_coercible(value, self.target)


@dataclass(frozen=True, slots=True)
class StringToFloat(CoercionRule):
    """Coerce numeric strings and integers to float."""

    @property
    def target(self) -> Kind: return Kind.FLOAT

    def can_coerce(self, value: Any) -> bool:
        return isinstance(value, (str, Decimal)) or (isinstance(value, int) and not isinstance(value, bool))

    def coerce(self, value: Any) -> Result[float, ValidationError]:
        try:
            return Ok(float(value.strip() if isinstance(value, str) else value))
        except (ValueError, OverflowError):
            return _not_coercible(value, self.target)


@dataclass(frozen=True, slots=True)
class StringToNumber(CoercionRule):
    """Coerce a numeric string to int when integral, float otherwise."""

    @property
    def target(self) -> Kind: return Kind.NUMBER

    def can_coerce(self, value: Any) -> bool:
        return isinstance(value, str) and bool(value.strip())

    def coerce(self, value: Any) -> Result[int | float, ValidationError]:
        stripped = value.strip()
        try:
            return Ok(int(stripped))
        except ValueError:
            pass
        try:
            return Ok(float(stripped))
        except ValueError:
            return _not_coercible(value, self.target)


@dataclass(frozen=True, slots=True)
class StringToDecimal(CoercionRule):
    """Coerce strings, integers and floats to Decimal (floats via their repr)."""

    @property
    def target(self) -> Kind: return Kind.DECIMAL

    def can_coerce(self, value: Any) -> bool:
        return isinstance(value, (str, int, float)) and not isinstance(value, bool)

    def coerce(self, value: Any) -> Result[Decimal, ValidationError]:
        try:
            result = Decimal(value.strip() if isinstance(value, str) else str(value))
        except InvalidOperation:
            return _not_coercible(value, self.target)
        if not result.is_finite():
            return _not_coercible(value, self.target)
        return Ok(result)


# ============================================================================
# Boolean Rules
# ============================================================================

@dataclass(frozen=True, slots=True)
class StringToBool(CoercionRule):
    """Coerce string to boolean.

    Truthy: "true", "1", "yes", "on", "y"
    Falsy: "false", "0", "no", "off", "n"
    """
    true_values: frozenset[str] = frozenset({"true", "1", "yes", "on", "y"})
    false_values: frozenset[str] = frozenset({"false", "0", "no", "off", "n"})

    @property
    def target(self) -> Kind: return Kind.BOOLEAN

    def can_coerce(self, value: Any) -> bool:
        if not isinstance(value, str):
            return False
        lower = value.strip().lower()
        return lower in self.true_values or lower in self.false_values

    def coerce(self, value: Any) -> Result[bool, ValidationError]:
        lower = value.strip().lower()
        if lower in self.true_values:
            return Ok(True)
        if lower in self.false_values:
            return Ok(False)
        return _not_coercible(value, self.target)


# ============================================================================
# Temporal Rules
# ============================================================================

@dataclass(frozen=True, slots=True)
class ISO8601ToDateTime(CoercionRule):
    """Coerce ISO8601 strings and Unix timestamps to aware datetimes."""
    default_timezone: timezone | None = None

    @property
    def target(self) -> Kind: return Kind.DATETIME

    def can_coerce(self, value: Any) -> bool:
        return isinstance(value, (str, int, float)) and not isinstance(value, bool)

    def _parse(self, value: str) -> datetime:
        """Parse ISO8601 string handling Z suffix."""
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        if dt.tzinfo is None and self.default_timezone:
            dt = dt.replace(tzinfo=self.default_timezone)
        return dt

    def coerce(self, value: Any) -> Result[datetime, ValidationError]:
        try:
            if isinstance(value, str):
                return Ok(self._parse(value))
            return Ok(datetime.fromtimestamp(value, tz=timezone.utc))
        except (ValueError, OverflowError, OSError):
            return _not_coercible(value, self.target)


@dataclass(frozen=True, slots=True)
class ISO8601ToNaiveDateTime(CoercionRule):
    """Coerce ISO8601 strings without offset to naive datetimes."""

    @property
    def target(self) -> Kind: return Kind.NAIVE_DATETIME

    def can_coerce(self, value: Any) -> bool:
        return isinstance(value, str)

    def coerce(self, value: Any) -> Result[datetime, ValidationError]:
        try:
            return Ok(datetime.fromisoformat(value.strip()))
        except ValueError:
            return _not_coercible(value, self.target)


@dataclass(frozen=True, slots=True)
class ISO8601ToDate(CoercionRule):
    """Coerce ISO8601 date strings to date."""

    @property
    def target(self) -> Kind: return Kind.DATE

    def can_coerce(self, value: Any) -> bool:
        return isinstance(value, str)

    def coerce(self, value: Any) -> Result[date, ValidationError]:
        try:
            return Ok(date.fromisoformat(value.strip()))
        except ValueError:
            return _not_coercible(value, self.target)


@dataclass(frozen=True, slots=True)
class ISO8601ToTime(CoercionRule):
    """Coerce ISO8601 time strings to time."""

    @property
    def target(self) -> Kind: return Kind.TIME

    def can_coerce(self, value: Any) -> bool:
        return isinstance(value, str)

    def coerce(self, value: Any) -> Result[time, ValidationError]:
        try:
            return Ok(time.fromisoformat(value.strip()))
        except ValueError:
            return _not_coercible(value, self.target)


# ============================================================================
# Container Rules
# ============================================================================

@dataclass(frozen=True, slots=True)
class ToList(CoercionRule):
    """Coerce tuples, sets and index-keyed mappings (form style) to lists.

    ``{"1": "b", "0": "a"}`` becomes ``["a", "b"]``; a mapping whose keys are
    not all integer-like is left alone.
    """

    @property
    def target(self) -> Kind: return Kind.ARRAY

    def can_coerce(self, value: Any) -> bool:
        return isinstance(value, (tuple, set, frozenset, Mapping))

    def coerce(self, value: Any) -> Result[list, ValidationError]:
        if isinstance(value, tuple):
            return Ok(list(value))
        if isinstance(value, (set, frozenset)):
            try:
                return Ok(sorted(value))
            except TypeError:
                return Ok(list(value))
        try:
            indexed = sorted((int(k), v) for k, v in value.items())
        except (TypeError, ValueError):
            return _not_coercible(value, self.target)
        return Ok([v for _i, v in indexed])


# ============================================================================
# Registry
# ============================================================================

@dataclass(frozen=True, slots=True)
class ExplicitCoercion:
    """Coercion system with explicit opt-in rules.

    Usage:
        coercer = ExplicitCoercion()
        result = coercer.coerce("123", Kind.INTEGER)  # Ok(123)
        result = coercer.coerce("abc", Kind.INTEGER)  # Err([...])
    """
    rules: tuple[CoercionRule, ...] = field(default_factory=lambda: (
        ToString(),
        ToSymbol(),
        StringToInt(),
        StringToFloat(),
        StringToNumber(),
        StringToDecimal(),
        StringToBool(),
        ISO8601ToDateTime(),
        ISO8601ToNaiveDateTime(),
        ISO8601ToDate(),
        ISO8601ToTime(),
        ToList(),
    ))

    def add_rule(self, rule: CoercionRule) -> ExplicitCoercion:
        """Add a coercion rule, returning new instance."""
        return ExplicitCoercion(rules=(*self.rules, rule))

    def rules_for(self, kind: Kind) -> Sequence[CoercionRule]:
        return [rule for rule in self.rules if rule.target is kind]

    def coerce(self, value: Any, kind: Kind) -> Result[Any, ValidationError]:
        """Attempt to coerce value to the given kind.

        Returns the first successful rule's result, or Err when no rule applies.
        """
        for rule in self.rules_for(kind):
            if rule.can_coerce(value):
                result = rule.coerce(value)
                if result.is_ok():
                    return result
        return _not_coercible(value, kind)

    def coerce_or_keep(self, value: Any, kind: Kind) -> Any:
        """Coerce value or return it unchanged on failure."""
        return self.coerce(value, kind).unwrap_or(value)


# Default coercion instance
DEFAULT_COERCER = ExplicitCoercion()


def coerce_value(value: Any, kind: Kind) -> Result[Any, ValidationError]:
    """Convenience function using default coercer."""
    return DEFAULT_COERCER.coerce(value, kind)
