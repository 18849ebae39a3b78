"""Compiled format patterns used by the string format validators."""
from __future__ import annotations

import re

EMAIL = re.compile(
    r"^(?!\.)(?!.*\.\.)([a-z0-9_'+\-.]*)[a-z0-9_+\-]@([a-z0-9][a-z0-9\-]*\.)+[a-z]{2,}$",
    re.IGNORECASE,
)

URL = re.compile(
    r"^(https?|mailto)://(([\w-]+\.)+[\w-]+|localhost|127(?:\.\d{1,3}){3})(:\d+)?"
    r"(/[\w\-._~:/?#\[\]@!$&'()*+,;=%]*)?$",
    re.IGNORECASE,
)

UUID = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[1-8][0-9a-fA-F]{3}-[89abAB][0-9a-fA-F]{3}-[0-9a-fA-F]{12}$"
)

IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_UUID_VERSIONED = {
    v: re.compile(
        rf"^[0-9a-fA-F]{{8}}-[0-9a-fA-F]{{4}}-{v}[0-9a-fA-F]{{3}}-[89abAB][0-9a-fA-F]{{3}}-[0-9a-fA-F]{{12}}$"
    )
    for v in range(1, 9)
}


def uuid(version: int | None = None) -> re.Pattern[str]:
    """UUID pattern, optionally pinned to one version (1-8)."""
    if version is None:
        return UUID
    if version not in _UUID_VERSIONED:
        raise ValueError(f"invalid UUID version: {version}")
    return _UUID_VERSIONED[version]
