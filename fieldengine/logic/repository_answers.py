"""SQL-backed persistence adapter for answers.

Implements the save/remove mutations against the ``answers`` table. Values
are normalized per answer type the way the backend would coerce them, and
answers are returned in wire shape with global ids. Engine calls are
blocking, so ``mutate`` runs them in a worker thread.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import anyio
from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from fieldengine.db.base import get_engine
from fieldengine.db.schema import answers as answers_table, create_schema
from fieldengine.logic.errors import PersistenceError
from fieldengine.logic.persistence import (
    REMOVE_ANSWER,
    MutationOperation,
    decode_id,
    encode_id,
    extract_path,
)
from fieldengine.models.question_kind import VALUE_KEYS, AnswerType

logger = logging.getLogger(__name__)


def normalize_value(answer_type: AnswerType, value: Any) -> Any:
    """Coerce ``value`` to the stored representation of ``answer_type``."""
    try:
        if answer_type in (AnswerType.STRING, AnswerType.DATE):
            if isinstance(value, (date, datetime)):
                return value.isoformat()
            return str(value)
        if answer_type == AnswerType.INTEGER:
            return int(value)
        if answer_type == AnswerType.FLOAT:
            return float(value)
        if answer_type in (AnswerType.LIST, AnswerType.TABLE):
            return [str(item) for item in value]
        if answer_type == AnswerType.FILE:
            if isinstance(value, dict):
                return value
            return {"name": str(value), "metadata": {"object_name": str(value)}}
    except (TypeError, ValueError) as exc:
        raise PersistenceError(
            f"invalid {answer_type.value} value: {value!r}", operation=f"saveDocument{answer_type.value}"
        ) from exc
    raise PersistenceError(f"{answer_type.value} values cannot be stored")


def _to_payload(row: Any) -> Dict[str, Any]:
    answer_type = AnswerType(row.answer_type)
    return {
        "id": encode_id(answer_type.value, row.id),
        "__typename": answer_type.value,
        "question": {"slug": row.question_slug},
        VALUE_KEYS[answer_type]: row.value,
    }


class SqlPersistenceAdapter:
    def __init__(self, engine: Optional[Engine] = None) -> None:
        self.engine = engine or get_engine()
        create_schema(self.engine)

    def encode_id(self, type_name: str, raw_id: str) -> str:
        return encode_id(type_name, raw_id)

    def decode_id(self, global_id: Optional[str]) -> Optional[str]:
        return decode_id(global_id)

    async def mutate(self, operation: MutationOperation, variables: Dict[str, Any], result_path: str) -> Any:
        payload = dict(variables.get("input") or {})
        if operation.name == REMOVE_ANSWER.name:
            data = await anyio.to_thread.run_sync(self._remove, payload)
        elif operation.answer_type is not None:
            data = await anyio.to_thread.run_sync(self._save, operation, payload)
        else:
            raise PersistenceError(f"unsupported operation {operation.name}", operation=operation.name)
        return extract_path(data, result_path)

    def _save(self, operation: MutationOperation, payload: Dict[str, Any]) -> Dict[str, Any]:
        answer_type = operation.answer_type
        document_id = str(payload.get("document") or "")
        slug = str(payload.get("question") or "")
        if not document_id or not slug:
            raise PersistenceError("document and question are required", operation=operation.name)
        value = normalize_value(answer_type, payload.get("value"))
        try:
            with self.engine.begin() as conn:
                row = conn.execute(
                    select(answers_table).where(
                        answers_table.c.document_id == document_id,
                        answers_table.c.question_slug == slug,
                    )
                ).first()
                if row is None:
                    answer_id = str(uuid.uuid4())
                    conn.execute(
                        answers_table.insert().values(
                            id=answer_id,
                            document_id=document_id,
                            question_slug=slug,
                            answer_type=answer_type.value,
                            value=value,
                        )
                    )
                else:
                    answer_id = row.id
                    conn.execute(
                        answers_table.update()
                        .where(answers_table.c.id == answer_id)
                        .values(answer_type=answer_type.value, value=value)
                    )
                saved = conn.execute(select(answers_table).where(answers_table.c.id == answer_id)).one()
        except SQLAlchemyError as exc:
            logger.error("answers.save_failed document_id=%s question=%s", document_id, slug, exc_info=True)
            raise PersistenceError(str(exc), operation=operation.name) from exc
        logger.info("answers.saved document_id=%s question=%s answer_id=%s", document_id, slug, answer_id)
        return {operation.name: {"answer": _to_payload(saved)}}

    def _remove(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        answer_id = payload.get("answer")
        if not answer_id:
            raise PersistenceError("answer id is required", operation=REMOVE_ANSWER.name)
        try:
            with self.engine.begin() as conn:
                row = conn.execute(select(answers_table).where(answers_table.c.id == answer_id)).first()
                if row is None:
                    raise PersistenceError(f"answer {answer_id} not found", operation=REMOVE_ANSWER.name)
                conn.execute(answers_table.delete().where(answers_table.c.id == answer_id))
        except SQLAlchemyError as exc:
            logger.error("answers.remove_failed answer_id=%s", answer_id, exc_info=True)
            raise PersistenceError(str(exc), operation=REMOVE_ANSWER.name) from exc
        logger.info("answers.removed answer_id=%s", answer_id)
        return {
            REMOVE_ANSWER.name: {
                "answer": {"id": encode_id(row.answer_type, row.id), "__typename": row.answer_type}
            }
        }

    def load_answers(self, document_id: str) -> List[Dict[str, Any]]:
        """Return all stored answers of a document in wire shape."""
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(
                    select(answers_table)
                    .where(answers_table.c.document_id == str(document_id))
                    .order_by(answers_table.c.question_slug)
                ).all()
        except SQLAlchemyError as exc:
            logger.error("answers.load_failed document_id=%s", document_id, exc_info=True)
            raise PersistenceError(str(exc)) from exc
        return [_to_payload(row) for row in rows]


__all__ = ["SqlPersistenceAdapter", "normalize_value"]
