"""Validation Error Rendering

Pure views over a list of ValidationError records. Nothing here affects
parsing; these helpers shape errors for API responses, forms and logs.

Path Format:
    ("user", "addresses", 0, "street")  ->  "user.addresses[0].street"
    ()                                  ->  "$"
"""
from __future__ import annotations

from typing import Any, Sequence

from schemata.core.config import get_settings
from schemata.core.errors import PathSegment, ValidationError

ROOT = "$"


def format_path(path: Sequence[PathSegment]) -> str:
    """Format a path tuple as a JSON-style path."""
    if not path: return ROOT
    parts = []
    for segment in path:
        if isinstance(segment, int) and not isinstance(segment, bool): parts.append(f"[{segment}]")
        elif parts: parts.append(f".{segment}")
        else: parts.append(str(segment))
    return "".join(parts)


def flatten_errors(errors: Sequence[ValidationError]) -> dict[str, list[str]]:
    """Group messages by formatted path, preserving discovery order."""
    flat: dict[str, list[str]] = {}
    for error in errors:
        flat.setdefault(format_path(error.path), []).append(error.message)
    return flat


def treefy_errors(errors: Sequence[ValidationError]) -> dict[str, Any]:
    """Nest messages following their paths.

    Every level is a dict with an ``errors`` list; child levels live under
    ``fields``, keyed by the path segment (field key or index), so a field
    may itself be named ``errors``:

        {"errors": [], "fields": {"user": {"errors": [], "fields": {"name": {"errors": ["is required"]}}}}}
    """
    tree: dict[str, Any] = {"errors": []}
    for error in errors:
        level = tree
        for segment in error.path:
            level = level.setdefault("fields", {}).setdefault(segment, {"errors": []})
        level["errors"].append(error.message)
    return tree


def prettify_errors(errors: Sequence[ValidationError], *, bullet: str | None = None) -> str:
    """Human-readable multi-line rendering, one entry per error."""
    bullet = bullet or get_settings().PRETTIFY_BULLET
    lines = []
    for error in errors:
        lines.append(f"{bullet} {error.message}")
        if error.path:
            lines.append(f"  → at {format_path(error.path)}")
    return "\n".join(lines)


def errors_to_dicts(errors: Sequence[ValidationError]) -> list[dict[str, Any]]:
    """Serialize for API responses."""
    return [e.to_dict() for e in errors]
