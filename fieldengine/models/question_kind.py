"""Question and answer type enumerations.

The question type is the wire ``__typename`` of a question; each one maps to
exactly one answer type (or ``None`` for question types that carry no value).
The mapping is process-wide configuration and is never mutated at runtime.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional


class QuestionType(str, Enum):
    TEXT = "TextQuestion"
    TEXTAREA = "TextareaQuestion"
    INTEGER = "IntegerQuestion"
    FLOAT = "FloatQuestion"
    MULTIPLE_CHOICE = "MultipleChoiceQuestion"
    CHOICE = "ChoiceQuestion"
    DYNAMIC_CHOICE = "DynamicChoiceQuestion"
    DYNAMIC_MULTIPLE_CHOICE = "DynamicMultipleChoiceQuestion"
    TABLE = "TableQuestion"
    FORM = "FormQuestion"
    FILE = "FileQuestion"
    STATIC = "StaticQuestion"
    DATE = "DateQuestion"


class AnswerType(str, Enum):
    STRING = "StringAnswer"
    INTEGER = "IntegerAnswer"
    FLOAT = "FloatAnswer"
    LIST = "ListAnswer"
    TABLE = "TableAnswer"
    FORM = "FormAnswer"
    FILE = "FileAnswer"
    DATE = "DateAnswer"


TYPE_MAP: Mapping[QuestionType, Optional[AnswerType]] = MappingProxyType(
    {
        QuestionType.TEXT: AnswerType.STRING,
        QuestionType.TEXTAREA: AnswerType.STRING,
        QuestionType.INTEGER: AnswerType.INTEGER,
        QuestionType.FLOAT: AnswerType.FLOAT,
        QuestionType.MULTIPLE_CHOICE: AnswerType.LIST,
        QuestionType.CHOICE: AnswerType.STRING,
        QuestionType.DYNAMIC_MULTIPLE_CHOICE: AnswerType.LIST,
        QuestionType.DYNAMIC_CHOICE: AnswerType.STRING,
        QuestionType.TABLE: AnswerType.TABLE,
        QuestionType.FORM: AnswerType.FORM,
        QuestionType.FILE: AnswerType.FILE,
        QuestionType.STATIC: None,
        QuestionType.DATE: AnswerType.DATE,
    }
)

# Wire name of the typed value slot, e.g. StringAnswer -> stringValue
VALUE_KEYS: Mapping[AnswerType, str] = MappingProxyType(
    {t: t.value[0].lower() + t.value[1:].replace("Answer", "Value") for t in AnswerType}
)


def answer_type_for(question_type: QuestionType | str) -> Optional[AnswerType]:
    """Return the answer type for a question type (``None`` if it has no answer)."""
    return TYPE_MAP[QuestionType(question_type)]


__all__ = [
    "QuestionType",
    "AnswerType",
    "TYPE_MAP",
    "VALUE_KEYS",
    "answer_type_for",
]
