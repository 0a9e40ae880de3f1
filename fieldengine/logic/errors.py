"""Exception types shared by the field engine.

Validation failures are never raised; they are returned as structured
descriptors (see ``fieldengine.logic.validation``).
"""

from __future__ import annotations


class PreconditionViolation(AssertionError):
    """A programming or configuration error upstream (missing context,
    missing question payload, missing validator, unknown dependency)."""


class PersistenceError(RuntimeError):
    """Transport or backend failure raised by a persistence adapter."""

    def __init__(self, message: str, *, operation: str | None = None, errors: list | None = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.errors = list(errors or [])


__all__ = ["PreconditionViolation", "PersistenceError"]
