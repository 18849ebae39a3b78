"""Shared test fixtures for schemata.

Provides settings isolation and a few reusable schema trees.
"""

from collections.abc import Generator

import pytest

import schemata as s
from schemata.core.config import get_settings


# =============================================================================
# SETTINGS
# =============================================================================


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Drop cached settings and SCHEMATA_ env vars around every test."""
    for name in ("LOG_LEVEL", "LOG_JSON", "MAX_DEPTH", "PRETTIFY_BULLET"):
        monkeypatch.delenv(f"SCHEMATA_{name}", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# =============================================================================
# SCHEMAS
# =============================================================================


@pytest.fixture
def user_schema() -> s.ObjectNode:
    """A small record with nested array and optional/default fields."""
    return s.object_({
        "name": s.min_(s.string(), 2),
        "age": s.gte(s.integer(), 0),
        "email": s.email(s.string()).optional(),
        "role": s.enum(["admin", "member"]).default("member"),
        "tags": s.array(s.string()),
    })


@pytest.fixture
def tree_schema() -> s.ObjectNode:
    """A self-referential tree node: {"value": int, "children": [node, ...]}."""
    def node() -> s.ObjectNode:
        return s.object_({
            "value": s.integer(),
            "children": s.array(s.lazy(node)).optional(),
        })

    return node()
