"""Document: the form instance owning a collection of fields.

Builds one field per question of a raw document payload
``{id, form: {slug, questions}, answers}``, wires the dependency registry
from each question's hidden/required rules and computes the initial
hidden/optional state. Form questions get a child document over their
sub-form questions which shares the parent's id and answers.

Dependency cycles are assumed not to occur in well-formed forms. They are
detected at build time and logged, not broken up.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterator, List, Optional

from fieldengine.logic.context import FieldContext
from fieldengine.logic.errors import PreconditionViolation
from fieldengine.logic.field import DEPENDENCY_KEYS, Field
from fieldengine.logic.visibility_rules import find_cycle
from fieldengine.models.connection import unwrap_edges
from fieldengine.models.question_kind import QuestionType

logger = logging.getLogger(__name__)


class Document:
    def __init__(
        self,
        raw: Dict[str, Any],
        *,
        context: FieldContext,
        parent_field: Optional[Field] = None,
        questions: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        if context is None:
            raise PreconditionViolation("Field context must be provided")
        self.id: str = str(raw["id"])
        self.raw = raw
        self.context = context
        self.parent_field = parent_field
        form = raw.get("form") or {}
        self.form_slug: Optional[str] = form.get("slug")

        answers_by_slug: Dict[str, Dict[str, Any]] = {}
        for answer in unwrap_edges(raw.get("answers")):
            slug = (answer.get("question") or {}).get("slug")
            if slug:
                answers_by_slug[slug] = answer

        raw_questions = questions if questions is not None else unwrap_edges(form.get("questions"))
        self.fields: List[Field] = []
        for raw_question in raw_questions:
            field = Field(
                question=raw_question,
                answer=answers_by_slug.get(raw_question.get("slug")),
                document=self,
                context=context,
            )
            if field.question.type == QuestionType.FORM and field.question.sub_form is not None:
                field.child_document = Document(
                    raw,
                    context=context,
                    parent_field=field,
                    questions=field.question.sub_form.questions,
                )
            self.fields.append(field)

        if parent_field is None:
            self._register_dependencies()
            self._compute_initial_state()

    def __repr__(self) -> str:
        return f"<Document {self.id} fields={len(self.fields)}>"

    @property
    def root(self) -> "Document":
        doc = self
        while doc.parent_field is not None:
            doc = doc.parent_field.document
        return doc

    def iter_fields(self) -> Iterator[Field]:
        """Yield this document's fields and those of all child documents."""
        for field in self.fields:
            yield field
            if field.child_document is not None:
                yield from field.child_document.iter_fields()

    @property
    def all_fields(self) -> List[Field]:
        return list(self.iter_fields())

    @property
    def visible_fields(self) -> List[Field]:
        return [field for field in self.fields if not field.hidden]

    def find_field(self, slug: str) -> Field:
        for field in self.root.iter_fields():
            if field.question.slug == slug:
                return field
        raise PreconditionViolation(f"Unknown question {slug!r} in document {self.id}")

    def _register_dependencies(self) -> None:
        for field in self.iter_fields():
            for key, slugs in field.question.dependency_slugs().items():
                for slug in slugs:
                    self.find_field(slug).register_dependent_field(field, key)
            if field.child_document is not None:
                for child in field.child_document.fields:
                    field.register_dependent_field(child, "isHidden")

        edges = {
            field.id: {dep.id for key in DEPENDENCY_KEYS for dep in field.dependent_fields[key]}
            for field in self.iter_fields()
        }
        cycle = find_cycle(edges)
        if cycle:
            logger.warning("document.dependency_cycle document_id=%s cycle=%s", self.id, " -> ".join(cycle))

    def _compute_initial_state(self) -> None:
        fields = self.all_fields
        # Bounded fixpoint: each pass settles at least one more level of the graph
        for _ in range(len(fields) + 1):
            changed = [field.question.refresh_state() for field in fields]
            if not any(changed):
                return
        logger.warning("document.initial_state_unstable document_id=%s", self.id)

    def _pending_tasks(self) -> List[asyncio.Task]:
        pending: List[asyncio.Task] = []
        for field in self.root.iter_fields():
            for task in (
                field.save_task,
                field.validate_task,
                field.question.hidden_task,
                field.question.optional_task,
            ):
                if task.is_running:
                    pending.append(task.current)
        return pending

    async def settle(self) -> None:
        """Wait until no field or question task of this document is running.

        Failures of individual tasks are left to whoever awaits those tasks.
        """
        while True:
            pending = self._pending_tasks()
            if not pending:
                return
            await asyncio.wait(pending)


__all__ = ["Document"]
