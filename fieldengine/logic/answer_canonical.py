"""Canonicalization helpers for answer values.

Provides a stable string representation used when comparing answer values
against dependency rule values.
"""

from __future__ import annotations

from typing import Any, Optional


def canonicalize_answer_value(value: Any) -> Optional[str]:
    """Return a stable string representation for a scalar answer value.

    - Booleans -> "true" / "false"
    - Numbers  -> integer form when integral, else decimal string
    - Text     -> as-is string
    - None     -> None
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        f = float(value)
        if f.is_integer():
            return str(int(f))
        return str(f)
    return str(value)


def canonicalize_many(value: Any) -> list[str]:
    """Canonicalize a scalar or list value into a list of tokens (None dropped)."""
    items = value if isinstance(value, (list, tuple, set, frozenset)) else [value]
    out: list[str] = []
    for item in items:
        token = canonicalize_answer_value(item)
        if token is not None:
            out.append(token)
    return out


__all__ = ["canonicalize_answer_value", "canonicalize_many"]
