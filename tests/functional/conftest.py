from __future__ import annotations

"""Functional test bootstrap for the field engine.

Provides a recording persistence adapter and a field context bound to it.
Async tests run on asyncio through the anyio pytest plugin.
"""

import os

import pytest

# Keep the app away from any developer database before fieldengine imports
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from fieldengine.logic.context import FieldContext

from field_builders import RecordingAdapter


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def adapter() -> RecordingAdapter:
    return RecordingAdapter()


@pytest.fixture
def context(adapter: RecordingAdapter) -> FieldContext:
    return FieldContext(adapter=adapter)
