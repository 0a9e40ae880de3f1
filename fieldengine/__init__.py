"""Reactive form-field engine.

Pairs questions with answers as stateful fields, propagates hidden/required
recomputation through a per-field dependency registry, validates answers by
question type and persists them through a pluggable adapter. The FastAPI
application factory lives in ``fieldengine.main``.
"""

from __future__ import annotations

from fieldengine.logic.context import FieldContext
from fieldengine.logic.document import Document
from fieldengine.logic.field import Field

__all__ = ["Field", "Document", "FieldContext"]
