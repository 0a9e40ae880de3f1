"""Owning context injected into every field.

Bundles the collaborators a field needs but does not own: the persistence
adapter, the message formatter (with its locale) and the factories that
build typed Question/Answer objects from raw payloads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from fieldengine.logic.messages import MessageFormatter, format_error
from fieldengine.logic.persistence import PersistenceAdapter
from fieldengine.models.answer import Answer
from fieldengine.models.question import Question


@dataclass
class FieldContext:
    adapter: PersistenceAdapter
    formatter: MessageFormatter = format_error
    locale: str = "en"
    question_factory: Callable[..., Question] = field(default=Question.from_payload)
    answer_factory: Callable[..., Answer] = field(default=Answer.from_payload)

    def create_question(self, raw: dict, **refs: Any) -> Question:
        return self.question_factory(raw, **refs)

    def create_answer(self, raw: dict, **refs: Any) -> Answer:
        return self.answer_factory(raw, **refs)


__all__ = ["FieldContext"]
