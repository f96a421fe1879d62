"""
Utility functions for recipegraph.

Includes:
- Storage path access on documents
- Projection path collapsing
- Path formatting for logs
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence


_MISSING = object()


# =============================================================================
# Storage path utilities
# =============================================================================


def get_path(record: Any, path: str, default: Any = None) -> Any:
    """
    Read a dotted storage path from a document.

    Missing keys and non-dict intermediates resolve to `default`, never raise.

    Examples:
        get_path({"a": {"b": 1}}, "a.b") -> 1
        get_path({"a": None}, "a.b") -> None
    """
    current = record
    for part in path.split("."):
        if not isinstance(current, dict):
            return default
        current = current.get(part, _MISSING)
        if current is _MISSING:
            return default
    return current


def join_path(prefix: str | None, path: str) -> str:
    """Join two storage paths with a dot."""
    return f"{prefix}.{path}" if prefix else path


def collapse_paths(paths: Iterable[str]) -> list[str]:
    """
    Collapse projection paths so no path is a prefix of another.

    MongoDB rejects projections such as {"ingredients": 1, "ingredients.name": 1},
    so the shorter prefix wins.

    Example:
        ["ingredients.name", "_id", "ingredients"] -> ["_id", "ingredients"]
    """
    result: list[str] = []
    for path in sorted(set(paths), key=lambda p: (p.count("."), p)):
        if any(path == kept or path.startswith(f"{kept}.") for kept in result):
            continue
        result.append(path)
    return sorted(result)


# =============================================================================
# Formatting
# =============================================================================


def format_path(path: Sequence[str | int]) -> str:
    """
    Format a response path for logs.

    Example:
        ["recipes", 0, "name"] -> "recipes[0].name"
    """
    out = ""
    for part in path:
        if isinstance(part, int):
            out += f"[{part}]"
        else:
            out += f".{part}" if out else part
    return out
