"""Helpers for GraphQL connection shaped payloads."""

from __future__ import annotations

from typing import Any, List


def unwrap_edges(value: Any) -> List[Any]:
    """Return the node list of a connection ``{edges: [{node: ...}]}``.

    Plain lists are returned as-is; ``None`` becomes an empty list.
    """
    if value is None:
        return []
    if isinstance(value, dict) and "edges" in value:
        return [edge.get("node") for edge in (value.get("edges") or []) if isinstance(edge, dict)]
    if isinstance(value, (list, tuple)):
        return list(value)
    raise TypeError(f"expected a list or connection, got {type(value).__name__}")


__all__ = ["unwrap_edges"]
