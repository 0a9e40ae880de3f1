"""Core table definitions for persisted answers."""

from __future__ import annotations

from sqlalchemy import JSON, Column, MetaData, String, Table, UniqueConstraint
from sqlalchemy.engine import Engine

metadata = MetaData()

answers = Table(
    "answers",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("document_id", String(255), nullable=False, index=True),
    Column("question_slug", String(255), nullable=False),
    Column("answer_type", String(32), nullable=False),
    Column("value", JSON, nullable=True),
    UniqueConstraint("document_id", "question_slug", name="uq_answers_document_question"),
)


def create_schema(engine: Engine) -> None:
    """Create missing tables (idempotent)."""
    metadata.create_all(engine)


__all__ = ["metadata", "answers", "create_schema"]
