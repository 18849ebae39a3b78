"""Unit tests for error rendering helpers."""

from __future__ import annotations

import pytest

import schemata as s
from schemata.core.errors import custom_error, required


def sample_errors() -> list:
    node = s.object_({
        "user": s.object_({"name": s.string(), "tags": s.array(s.string())}),
        "age": s.integer(),
    })
    return s.parse(node, {"user": {"tags": ["a", 1]}, "age": "x"}).unwrap_err()


class TestFormatPath:
    """Test JSON-style path formatting."""

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ((), "$"),
            (("a",), "a"),
            (("a", "b", 0, "c"), "a.b[0].c"),
            ((0, "a"), "[0].a"),
            (("a", 0, 1), "a[0][1]"),
        ],
    )
    def test_format_path(self, path, expected) -> None:
        """Keys join with dots and indices use brackets."""
        assert s.format_path(path) == expected


class TestFlatten:
    """Test flat rendering."""

    def test_groups_by_path(self) -> None:
        """Messages are grouped under formatted paths in discovery order."""
        assert s.flatten_errors(sample_errors()) == {
            "user.name": ["is required"],
            "user.tags[1]": ["invalid type: expected string"],
            "age": ["invalid type: expected integer"],
        }

    def test_root_errors(self) -> None:
        """Errors at the root are keyed by $."""
        errors = [custom_error("first"), custom_error("second")]
        assert s.flatten_errors(errors) == {"$": ["first", "second"]}


class TestTreefy:
    """Test nested rendering."""

    def test_nests_by_segment(self) -> None:
        """Every level carries an errors list; children sit under fields."""
        tree = s.treefy_errors(sample_errors())
        assert tree["errors"] == []
        user = tree["fields"]["user"]
        assert user["fields"]["name"] == {"errors": ["is required"]}
        assert user["fields"]["tags"]["fields"][1] == {"errors": ["invalid type: expected string"]}
        assert tree["fields"]["age"]["errors"] == ["invalid type: expected integer"]

    def test_field_named_errors(self) -> None:
        """A failing field called ``errors`` does not clash with the message list."""
        node = s.object_({"errors": s.integer()})
        tree = s.treefy_errors(s.parse(node, {"errors": "x"}).unwrap_err())
        assert tree == {"errors": [], "fields": {"errors": {"errors": ["invalid type: expected integer"]}}}

    def test_empty(self) -> None:
        """No errors yields an empty root."""
        assert s.treefy_errors([]) == {"errors": []}


class TestPrettify:
    """Test human-readable rendering."""

    def test_lines(self) -> None:
        """Each error is a bullet line followed by its location."""
        errors = [required().prepend_path("user", "name"), custom_error("bad")]
        assert s.prettify_errors(errors) == "× is required\n  → at user.name\n× bad"

    def test_bullet_argument(self) -> None:
        """An explicit bullet wins."""
        assert s.prettify_errors([custom_error("bad")], bullet="-") == "- bad"

    def test_bullet_setting(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """The default bullet comes from settings."""
        monkeypatch.setenv("SCHEMATA_PRETTIFY_BULLET", "*")
        assert s.prettify_errors([custom_error("bad")]) == "* bad"


class TestErrorsToDicts:
    """Test serialization for API responses."""

    def test_serializes(self) -> None:
        """Every error becomes a plain dict."""
        [entry] = s.errors_to_dicts([required().prepend_path("a", 0)])
        assert entry == {
            "code": "required",
            "message": "is required",
            "path": ["a", 0],
            "issue": {"template": "is required", "params": {}},
        }
