"""Question value object.

A Question is built from a raw camelCase payload (the GraphQL shape, with
``__typename`` as the type) plus back-references to its document and field.
The caller's payload is never mutated. Besides its definition a question
carries two pieces of derived runtime state, ``hidden`` and ``optional``,
recomputed by the restartable ``hidden_task`` / ``optional_task``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator
from pydantic.alias_generators import to_camel

from fieldengine.logic.events import HIDDEN_CHANGED
from fieldengine.logic.tasks import RestartableTask, TaskToken
from fieldengine.logic.visibility_rules import rule_holds
from fieldengine.models.connection import unwrap_edges
from fieldengine.models.question_kind import QuestionType

if TYPE_CHECKING:  # pragma: no cover
    from fieldengine.logic.document import Document
    from fieldengine.logic.field import Field as FormField

logger = logging.getLogger(__name__)


class DependencyRule(BaseModel):
    """Holds when the referenced question's answer is one of ``values``."""

    model_config = ConfigDict(frozen=True)

    question: str
    values: List[Any] = Field(default_factory=list)


class Option(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    slug: str
    label: Optional[str] = None


class SubForm(BaseModel):
    model_config = ConfigDict(extra="ignore")

    slug: str
    questions: List[Dict[str, Any]] = Field(default_factory=list)

    @field_validator("questions", mode="before")
    @classmethod
    def _unwrap_questions(cls, v: Any) -> list:
        return unwrap_edges(v)


def _to_bool_or_rule(v: Any) -> Any:
    if isinstance(v, str):
        token = v.strip().lower()
        if token in {"true", "false"}:
            return token == "true"
    return v


def _to_options(v: Any) -> list:
    return [{"slug": node} if isinstance(node, str) else node for node in unwrap_edges(v)]


class Question(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    slug: str
    type: QuestionType = Field(alias="__typename")
    label: Optional[str] = None
    is_hidden: Union[bool, DependencyRule] = False
    is_required: Union[bool, DependencyRule] = False

    text_max_length: Optional[int] = None
    textarea_max_length: Optional[int] = None
    integer_min_value: Optional[int] = None
    integer_max_value: Optional[int] = None
    float_min_value: Optional[float] = None
    float_max_value: Optional[float] = None

    choice_options: List[Option] = Field(default_factory=list)
    multiple_choice_options: List[Option] = Field(default_factory=list)
    dynamic_choice_options: List[Option] = Field(default_factory=list)
    dynamic_multiple_choice_options: List[Option] = Field(default_factory=list)

    sub_form: Optional[SubForm] = None

    _hidden: bool = PrivateAttr(default=False)
    _optional: bool = PrivateAttr(default=True)
    _document: Optional["Document"] = PrivateAttr(default=None)
    _field: Optional["FormField"] = PrivateAttr(default=None)
    _hidden_task: Optional[RestartableTask] = PrivateAttr(default=None)
    _optional_task: Optional[RestartableTask] = PrivateAttr(default=None)

    @field_validator("is_hidden", "is_required", mode="before")
    @classmethod
    def _coerce_flag(cls, v: Any) -> Any:
        return _to_bool_or_rule(v)

    @field_validator(
        "choice_options",
        "multiple_choice_options",
        "dynamic_choice_options",
        "dynamic_multiple_choice_options",
        mode="before",
    )
    @classmethod
    def _coerce_options(cls, v: Any) -> list:
        return _to_options(v)

    def model_post_init(self, __context: Any) -> None:
        self._hidden = self.is_hidden if isinstance(self.is_hidden, bool) else False
        self._optional = not self.is_required if isinstance(self.is_required, bool) else True
        self._hidden_task = RestartableTask(self._recompute_hidden, name=f"{self.slug}.hidden")
        self._optional_task = RestartableTask(self._recompute_optional, name=f"{self.slug}.optional")

    @classmethod
    def from_payload(
        cls,
        raw: Dict[str, Any],
        *,
        document: Optional["Document"] = None,
        field: Optional["FormField"] = None,
    ) -> "Question":
        question = cls.model_validate(raw)
        question._document = document
        question._field = field
        return question

    # -- derived state -------------------------------------------------

    @property
    def document(self) -> Optional["Document"]:
        return self._document

    @property
    def field(self) -> Optional["FormField"]:
        return self._field

    @property
    def hidden(self) -> bool:
        return self._hidden

    @property
    def optional(self) -> bool:
        return self._optional

    @property
    def hidden_task(self) -> RestartableTask:
        return self._hidden_task

    @property
    def optional_task(self) -> RestartableTask:
        return self._optional_task

    def option_slugs(self, attr: str) -> List[str]:
        return [option.slug for option in getattr(self, attr) or []]

    def dependency_slugs(self) -> Dict[str, List[str]]:
        """Slugs this question's hidden/required state is computed from."""
        return {
            "isHidden": [self.is_hidden.question] if isinstance(self.is_hidden, DependencyRule) else [],
            "isRequired": [self.is_required.question] if isinstance(self.is_required, DependencyRule) else [],
        }

    def _rule_state(self, rule: Union[bool, DependencyRule]) -> bool:
        if isinstance(rule, bool):
            return rule
        referenced = self._document.find_field(rule.question)
        value = None
        if not referenced.hidden and referenced.answer is not None:
            value = referenced.answer.value
        return rule_holds(value, rule.values)

    def evaluate_hidden(self) -> bool:
        enclosing = self._document.parent_field if self._document is not None else None
        if enclosing is not None and enclosing.hidden:
            return True
        if isinstance(self.is_hidden, DependencyRule) and self._document is None:
            return self._hidden
        return self._rule_state(self.is_hidden)

    def evaluate_optional(self) -> bool:
        if isinstance(self.is_required, DependencyRule) and self._document is None:
            return self._optional
        return not self._rule_state(self.is_required)

    def refresh_state(self) -> bool:
        """Synchronously recompute hidden/optional; return True if anything changed."""
        hidden, optional = self.evaluate_hidden(), self.evaluate_optional()
        changed = (hidden, optional) != (self._hidden, self._optional)
        self._hidden, self._optional = hidden, optional
        return changed

    async def _recompute_hidden(self, token: TaskToken) -> bool:
        hidden = self.evaluate_hidden()
        if not token.is_current or hidden == self._hidden:
            return self._hidden
        self._hidden = hidden
        logger.info("question.hidden_changed slug=%s hidden=%s", self.slug, hidden)
        if self._field is not None:
            self._field.trigger(HIDDEN_CHANGED)
        return hidden

    async def _recompute_optional(self, token: TaskToken) -> bool:
        optional = self.evaluate_optional()
        if token.is_current and optional != self._optional:
            self._optional = optional
            logger.info("question.optional_changed slug=%s optional=%s", self.slug, optional)
        return self._optional


__all__ = ["Question", "DependencyRule", "Option", "SubForm"]
