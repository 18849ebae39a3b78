"""Schema Generators

Generate JSON Schema (draft 2020-12) from schema trees. Generators only read
the tree: node kinds, children, ``description``/``example``/``metadata`` and
the parameters of built-in constraints. User refinements and transforms have
no JSON Schema equivalent and are skipped.

Features:
- Objects with ``required`` and ``additionalProperties``
- Combinators as ``anyOf``/``allOf``, nullable as ``anyOf`` with ``null``
- String formats, length and numeric bounds from built-in constraints
"""
from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from decimal import Decimal
from enum import Enum
from typing import Any

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
    NaiveDateTimeNode,
    NullableNode,
    NullishNode,
    NullNode,
    NumberNode,
    ObjectNode,
    OptionalNode,
    SchemaNode,
    StringBooleanNode,
    StringNode,
    StructNode,
    SymbolNode,
    TimeNode,
    TupleNode,
    UnionNode,
)

DRAFT = "https://json-schema.org/draft/2020-12/schema"


def _json_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return _json_value(value.value)
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, tuple):
        return [_json_value(v) for v in value]
    return value


def _property_name(key: Any) -> str:
    return str(key.value) if isinstance(key, Enum) else str(key)


class SchemaGenerator(ABC):
    """Base class for schema generators."""

    @abstractmethod
    def generate(self, schema: SchemaNode) -> str:
        """Generate schema representation."""

    def generate_all(self, *schemas: SchemaNode, separator: str = "\n\n") -> str:
        return separator.join(self.generate(s) for s in schemas)


class JSONSchemaGenerator(SchemaGenerator):
    """Generate JSON Schema (draft 2020-12)."""

    def __init__(self, indent: int | None = 2): self.indent = indent

    def generate(self, schema: SchemaNode) -> str:
        return json.dumps(self.encode(schema), indent=self.indent, default=str)

    def encode(self, schema: SchemaNode) -> dict[str, Any]:
        """Encode the root node, adding the ``$schema`` draft marker."""
        return {"$schema": DRAFT, **self._encode(schema)}

    def _encode(self, node: SchemaNode) -> dict[str, Any]:
        encoded = self._encode_kind(node)
        self._apply_constraints(node, encoded)
        meta = node.meta
        if meta.description is not None: encoded["description"] = meta.description
        if meta.example is not None: encoded["example"] = _json_value(meta.example)
        for key, value in meta.metadata: encoded.setdefault(f"x-{key}", _json_value(value))
        return encoded

    def _encode_kind(self, node: SchemaNode) -> dict[str, Any]:
        match node:
            case StringNode():
                return {"type": "string"}
            case IntegerNode():
                return {"type": "integer"}
            case FloatNode() | NumberNode() | DecimalNode():
                return {"type": "number"}
            case BooleanNode():
                return {"type": "boolean"}
            case SymbolNode():
                return {"type": "string", "pattern": r"^[A-Za-z_][A-Za-z0-9_]*$"}
            case LiteralNode():
                return {"const": _json_value(node.value)}
            case EnumNode():
                return {"enum": [_json_value(v) for v in node.options]}
            case DateNode():
                return {"type": "string", "format": "date"}
            case TimeNode():
                return {"type": "string", "format": "time"}
            case DateTimeNode() | NaiveDateTimeNode():
                return {"type": "string", "format": "date-time"}
            case StringBooleanNode():
                return {"anyOf": [{"type": "boolean"}, {"type": "string", "enum": [*node.truthy, *node.falsy]}]}
            case NullNode():
                return {"type": "null"}
            case AnyNode():
                return {}
            case ObjectNode() | StructNode():
                return self._encode_record(node)
            case MapNode():
                return {"type": "object", "additionalProperties": self._encode(node.value_schema)}
            case KeywordNode(fields=None):
                pair = {"type": "array", "prefixItems": [{"type": "string"}, self._encode(node.value_schema)],
                    "minItems": 2, "maxItems": 2}
                return {"type": "array", "items": pair}
            case KeywordNode():
                pairs = [{"type": "array", "prefixItems": [{"const": _property_name(k)}, self._encode(c)],
                    "minItems": 2, "maxItems": 2} for k, c in node.fields.items()]
                return {"type": "array", "items": {"anyOf": pairs}}
            case TupleNode():
                n = len(node.elements)
                return {"type": "array", "prefixItems": [self._encode(e) for e in node.elements],
                    "minItems": n, "maxItems": n}
            case ArrayNode():
                return self._encode_array(node)
            case UnionNode():
                return {"anyOf": [self._encode(s) for s in node.schemas]}
            case IntersectionNode():
                return {"allOf": [self._encode(s) for s in node.schemas]}
            case DiscriminatedUnionNode():
                return {"oneOf": [self._encode(s) for s in node.schemas],
                    "discriminator": {"propertyName": _property_name(node.discriminator)}}
            case OptionalNode() | NullishNode():
                inner = self._encode(node.inner)
                return {"anyOf": [inner, {"type": "null"}]} if isinstance(node, NullishNode) else inner
            case NullableNode():
                return {"anyOf": [self._encode(node.inner), {"type": "null"}]}
            case DefaultNode():
                encoded = self._encode(node.inner)
                if node.factory is None and node.value is not MISSING:
                    encoded["default"] = _json_value(node.value)
                return encoded
            case LazyNode():
                raise ValueError("lazy schemas cannot be encoded as JSON Schema")
            case _:
                raise ValueError(f"encoding not implemented for {type(node).__name__}")

    def _encode_record(self, node: ObjectNode | StructNode) -> dict[str, Any]:
        properties = {_property_name(k): self._encode(c) for k, c in node.fields.items()}
        required = [_property_name(k) for k, c in node.fields.items() if c.required]
        encoded: dict[str, Any] = {"type": "object", "properties": properties}
        if required: encoded["required"] = required
        encoded["additionalProperties"] = not node.meta.strict
        return encoded

    def _encode_array(self, node: ArrayNode) -> dict[str, Any]:
        encoded: dict[str, Any] = {"type": "array", "items": self._encode(node.inner)}
        if node.length is not None:
            encoded["minItems"] = encoded["maxItems"] = node.length
        if node.min_length is not None: encoded["minItems"] = node.min_length
        if node.max_length is not None: encoded["maxItems"] = node.max_length
        return encoded

    def _apply_constraints(self, node: SchemaNode, encoded: dict[str, Any]) -> None:
        """Translate named built-in refinements into JSON Schema keywords."""
        for refinement in node.meta.refinements:
            params = refinement.params
            subject = params.get("subject")
            value = _json_value(params.get("value"))
            match refinement.name:
                case "gte" if subject == "string": encoded["minLength"] = value
                case "gt" if subject == "string": encoded["minLength"] = value + 1
                case "lte" if subject == "string": encoded["maxLength"] = value
                case "lt" if subject == "string": encoded["maxLength"] = value - 1
                case "length": encoded["minLength"] = encoded["maxLength"] = value
                case "gte" if subject == "number": encoded["minimum"] = value
                case "gt" if subject == "number": encoded["exclusiveMinimum"] = value
                case "lte" if subject == "number": encoded["maximum"] = value
                case "lt" if subject == "number": encoded["exclusiveMaximum"] = value
                case "multiple_of": encoded["multipleOf"] = value
                case "regex": encoded["pattern"] = params["pattern"]
                case "starts_with": encoded["pattern"] = f"^{re.escape(params['prefix'])}"
                case "ends_with": encoded["pattern"] = f"{re.escape(params['suffix'])}$"
                case "email" | "url" | "uuid" | "ipv4" | "ipv6": encoded["format"] = params["format"]
                case "one_of": encoded["enum"] = [_json_value(v) for v in params["values"]]
                case _: continue


def to_json_schema(schema: SchemaNode) -> dict[str, Any]:
    """Encode a schema tree as a JSON Schema (draft 2020-12) dict."""
    return JSONSchemaGenerator().encode(schema)
