"""Field: one question paired with at most one answer within a document.

A field derives its answer type from the question type, exposes derived
state (valid/new/optional/hidden), propagates value and visibility changes
to the fields registered as its dependents, and offers two restartable
asynchronous operations, ``save`` and ``validate``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from fieldengine.logic.context import FieldContext
from fieldengine.logic.errors import PreconditionViolation
from fieldengine.logic.events import HIDDEN_CHANGED, VALUE_CHANGED, EventEmitter
from fieldengine.logic.persistence import REMOVE_ANSWER, SAVE_OPERATIONS
from fieldengine.logic.tasks import RestartableTask, TaskToken
from fieldengine.logic.validation import ValidationErrorDescriptor, is_empty, run_validation
from fieldengine.models.answer import Answer
from fieldengine.models.question import Question
from fieldengine.models.question_kind import VALUE_KEYS, QuestionType, answer_type_for

if TYPE_CHECKING:  # pragma: no cover
    from fieldengine.logic.document import Document

logger = logging.getLogger(__name__)

DEPENDENCY_KEYS = ("isRequired", "isHidden")


class Field:
    def __init__(
        self,
        *,
        question: Optional[Dict[str, Any]],
        document: "Document",
        context: Optional[FieldContext],
        answer: Optional[Dict[str, Any]] = None,
    ) -> None:
        if context is None:
            raise PreconditionViolation("Field context must be provided")
        if not question:
            raise PreconditionViolation("Question payload must be provided")

        self.document = document
        self.context = context
        self.child_document: Optional["Document"] = None
        self.events = EventEmitter(owner=f"{getattr(document, 'id', None)}:{question.get('slug')}")
        self._errors: List[ValidationErrorDescriptor] = []
        self.dependent_fields: Dict[str, List[Field]] = {key: [] for key in DEPENDENCY_KEYS}

        self.question: Question = context.create_question(question, document=document, field=self)
        answer_type = answer_type_for(self.question.type)
        self.answer: Optional[Answer] = None
        if answer_type is not None:
            raw_answer = answer or {
                "__typename": answer_type.value,
                "question": {"slug": self.question.slug},
                VALUE_KEYS[answer_type]: None,
            }
            self.answer = context.create_answer(raw_answer, document=document, field=self)

        self.save_task = RestartableTask(self._save, name=f"{self.id}.save")
        self.validate_task = RestartableTask(self._validate, name=f"{self.id}.validate")

        self.events.on(VALUE_CHANGED, self.update_hidden)
        self.events.on(HIDDEN_CHANGED, self.update_hidden)
        self.events.on(VALUE_CHANGED, self.update_optional)
        self.events.on(HIDDEN_CHANGED, self.update_optional)

    def __repr__(self) -> str:
        return f"<Field {self.id}>"

    @property
    def id(self) -> str:
        """``Document:<document id>:Question:<question slug>``."""
        return f"Document:{self.document.id}:Question:{self.question.slug}"

    # -- events and dependencies --------------------------------------------

    def on(self, event: str, callback) -> None:
        self.events.on(event, callback)

    def trigger(self, event: str, *args: Any) -> None:
        self.events.trigger(event, *args)

    def register_dependent_field(self, field: "Field", key: str) -> None:
        """Register ``field`` to be recomputed when this field changes."""
        if key not in self.dependent_fields:
            raise PreconditionViolation(f"Unknown dependency key {key!r}")
        dependents = self.dependent_fields[key]
        if not any(existing is field for existing in dependents):
            dependents.append(field)

    def update_hidden(self) -> None:
        for field in self.dependent_fields["isHidden"]:
            field.question.hidden_task.perform()

    def update_optional(self) -> None:
        for field in self.dependent_fields["isRequired"]:
            field.question.optional_task.perform()

    def update_value(self, value: Any) -> asyncio.Task:
        """Set the answer value, notify dependents and start a validation."""
        if self.answer is None:
            raise PreconditionViolation(f"{self.question.type.value} fields carry no value")
        self.answer.value = value
        self.trigger(VALUE_CHANGED)
        return self.validate()

    # -- derived state ------------------------------------------------------

    @property
    def value(self) -> Any:
        return self.answer.value if self.answer is not None else None

    @property
    def error_descriptors(self) -> List[ValidationErrorDescriptor]:
        return list(self._errors)

    @property
    def errors(self) -> List[str]:
        return [self.context.formatter(error, self.context.locale) for error in self._errors]

    @property
    def is_valid(self) -> bool:
        return not self._errors

    @property
    def is_invalid(self) -> bool:
        return not self.is_valid

    @property
    def is_new(self) -> bool:
        return self.answer is None or not self.answer.id

    @property
    def optional(self) -> bool:
        return self.question.optional

    @property
    def hidden(self) -> bool:
        return self.question.hidden

    @property
    def question_type(self) -> QuestionType:
        return self.question.type

    @property
    def visible_in_navigation(self) -> bool:
        visible = getattr(self.child_document, "visible_fields", None) or []
        return not self.hidden and self.question_type == QuestionType.FORM and len(visible) > 0

    # -- tasks --------------------------------------------------------------

    def save(self) -> asyncio.Task:
        return self.save_task.perform()

    def validate(self) -> asyncio.Task:
        return self.validate_task.perform()

    async def _save(self, token: TaskToken) -> Any:
        if self.answer is None:
            raise PreconditionViolation(f"{self.question.type.value} fields have no answer to save")
        adapter = self.context.adapter
        answer_type = self.answer.type
        value = self.answer.value

        if is_empty(value):
            if not self.answer.id:
                logger.info("field.save.skip_remove field_id=%s reason=never_saved", self.id)
                return None
            variables = {"input": {"answer": adapter.decode_id(self.answer.id)}}
            logger.info("field.save.remove field_id=%s", self.id)
            response = await asyncio.shield(
                adapter.mutate(REMOVE_ANSWER, variables, REMOVE_ANSWER.result_path)
            )
            if token.is_current:
                self.answer.id = None
            return response

        operation = SAVE_OPERATIONS[answer_type]
        if operation is None:
            raise PreconditionViolation(f"No save operation for {answer_type.value}")
        variables = {
            "input": {
                "question": self.question.slug,
                "document": self.document.id,
                "value": value,
            }
        }
        logger.info("field.save field_id=%s operation=%s", self.id, operation.name)
        response = await asyncio.shield(adapter.mutate(operation, variables, operation.result_path))
        if token.is_current:
            self.answer.merge(response)
        else:
            logger.info("field.save.superseded field_id=%s generation=%s", self.id, token.generation)
        return response

    async def _validate(self, token: TaskToken) -> List[ValidationErrorDescriptor]:
        errors = await run_validation(self.question, self.value)
        if token.is_current:
            self._errors = errors
        return errors


__all__ = ["Field", "DEPENDENCY_KEYS"]
