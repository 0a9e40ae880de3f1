"""Dependency rule evaluation for hidden/required state.

Centralizes the equality-based check used by questions to decide whether a
rule referencing another field's answer currently holds.
"""

from __future__ import annotations

from typing import Any, Iterable
import logging

from fieldengine.logic.answer_canonical import canonicalize_many

logger = logging.getLogger(__name__)


def _canon(token: str) -> str:
    # "TRUE" and "true" compare equal; other strings are case sensitive
    return token.lower() if token.lower() in {"true", "false"} else token


def rule_holds(referenced_value: Any, rule_values: Iterable[Any] | None) -> bool:
    """Return True if the referenced answer value matches one of the rule values.

    List answers match when any selected element matches. A missing value or
    an empty rule value list never matches.
    """
    if referenced_value is None or not rule_values:
        return False
    targets = {_canon(t) for t in canonicalize_many(list(rule_values))}
    return any(_canon(token) in targets for token in canonicalize_many(referenced_value))


def find_cycle(edges: dict[str, set[str]]) -> list[str] | None:
    """Return one dependency cycle as a list of node ids, or None.

    ``edges`` maps a field id to the ids of the fields that depend on it.
    """
    visiting: set[str] = set()
    done: set[str] = set()
    path: list[str] = []

    def _walk(node: str) -> list[str] | None:
        visiting.add(node)
        path.append(node)
        for nxt in sorted(edges.get(node, ())):
            if nxt in visiting:
                return path[path.index(nxt):] + [nxt]
            if nxt not in done:
                found = _walk(nxt)
                if found:
                    return found
        visiting.discard(node)
        done.add(node)
        path.pop()
        return None

    for start in sorted(edges):
        if start not in done:
            cycle = _walk(start)
            if cycle:
                return cycle
    return None


__all__ = ["rule_holds", "find_cycle"]
