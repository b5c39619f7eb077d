"""
Script: release_tools/template.py
What: Fills `{name}` placeholders in path and version templates.
Doing: Walks the macro table in insertion order and swaps the first `{key}` for its value.
Why: Publish paths and versions are configured as templates like `{repository}/{package}/`.
Goal: Keep template substitution small and predictable.
"""

from __future__ import annotations

import re
from typing import Mapping


PLACEHOLDER_RE = re.compile(r"\{([A-Za-z0-9_-]+)\}")


def resolve_template(template: str, macros: Mapping[str, str]) -> str:
    """
    Replace placeholders in `template` with macro values.

    Only the first `{key}` per macro is replaced, and values are not resolved
    again, so `resolve_template("{a}{a}", {"a": "x"})` gives `"x{a}"`.
    Unknown placeholders stay in the output as-is.
    """
    result = template
    for key, value in macros.items():
        result = result.replace(f"{{{key}}}", value, 1)
    return result


def find_unresolved(text: str) -> list[str]:
    """Return placeholder names still present in `text`."""
    return PLACEHOLDER_RE.findall(text)
