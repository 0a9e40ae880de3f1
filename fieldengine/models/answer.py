"""Answer value object.

Accepts the wire shape of an answer (``__typename`` plus a typed value slot
such as ``stringValue``) or a normalized shape with ``value``. The caller's
payload is copied, never mutated.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

from fieldengine.models.question_kind import VALUE_KEYS, AnswerType

if TYPE_CHECKING:  # pragma: no cover
    from fieldengine.logic.document import Document
    from fieldengine.logic.field import Field as FormField


def _value_key(type_name: Any) -> Optional[str]:
    try:
        return VALUE_KEYS[AnswerType(type_name)]
    except ValueError:
        return None


class Answer(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    type: AnswerType = Field(alias="__typename")
    question_slug: Optional[str] = None
    value: Any = None

    _document: Optional["Document"] = PrivateAttr(default=None)
    _field: Optional["FormField"] = PrivateAttr(default=None)

    @model_validator(mode="before")
    @classmethod
    def _from_wire(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        key = _value_key(data.get("__typename", data.get("type")))
        if "value" not in data and key and key in data:
            data["value"] = data[key]
        question = data.get("question")
        if "question_slug" not in data and isinstance(question, dict):
            data["question_slug"] = question.get("slug")
        return data

    @classmethod
    def from_payload(
        cls,
        raw: Dict[str, Any],
        *,
        document: Optional["Document"] = None,
        field: Optional["FormField"] = None,
    ) -> "Answer":
        answer = cls.model_validate(raw)
        answer._document = document
        answer._field = field
        return answer

    @property
    def value_key(self) -> str:
        return VALUE_KEYS[self.type]

    def merge(self, payload: Optional[Dict[str, Any]]) -> None:
        """Apply a backend answer payload: its id and any normalized value."""
        if not payload:
            return
        if "id" in payload:
            self.id = payload["id"]
        if self.value_key in payload:
            self.value = payload[self.value_key]
        elif "value" in payload:
            self.value = payload["value"]


__all__ = ["Answer"]
