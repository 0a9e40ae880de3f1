"""Type-aware validation for field answers.

Every question type has exactly one validator in ``VALIDATORS``; each
validator is a pure function over the question's constraints and a snapshot
of the answer value. A validator returns ``True`` (pass), a single
``ValidationErrorDescriptor`` or a list mixing both (one entry per checked
element for multiple-choice questions). Validators may also be coroutine
functions. Failures are returned as data, never raised.
"""

from __future__ import annotations

import asyncio
import inspect
import math
from datetime import date, datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from fieldengine.logic.errors import PreconditionViolation
from fieldengine.models.question import Question
from fieldengine.models.question_kind import QuestionType


class ErrorKind(str, Enum):
    BLANK = "blank"
    TOO_LONG = "tooLong"
    NOT_A_NUMBER = "notANumber"
    NOT_AN_INTEGER = "notAnInteger"
    GREATER_THAN_OR_EQUAL_TO = "greaterThanOrEqualTo"
    LESS_THAN_OR_EQUAL_TO = "lessThanOrEqualTo"
    INCLUSION = "inclusion"
    DATE = "date"


class ValidationErrorDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    context: Dict[str, Any] = Field(default_factory=dict)
    value: Any = None


ValidationResult = Union[bool, ValidationErrorDescriptor, List[Union[bool, ValidationErrorDescriptor]]]
Validator = Callable[[Question, Any], Union[ValidationResult, Awaitable[ValidationResult]]]


# ---------------------------------------------------------------------------
# Primitive checks
# ---------------------------------------------------------------------------


def _error(kind: ErrorKind, value: Any, **context: Any) -> ValidationErrorDescriptor:
    return ValidationErrorDescriptor(kind=kind, context=context, value=value)


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def is_empty(value: Any) -> bool:
    """None, an empty string or an empty sequence; whitespace is a value."""
    if value is None:
        return True
    return isinstance(value, (str, list, tuple)) and len(value) == 0


def check_presence(value: Any) -> ValidationResult:
    return _error(ErrorKind.BLANK, value) if is_blank(value) else True


def check_length(value: Any, *, max_length: Optional[int]) -> ValidationResult:
    if value is None or max_length is None:
        return True
    length = len(value) if hasattr(value, "__len__") else len(str(value))
    if length > max_length:
        return _error(ErrorKind.TOO_LONG, value, max=max_length)
    return True


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def check_number(
    value: Any,
    *,
    integer: bool = False,
    gte: Optional[float] = None,
    lte: Optional[float] = None,
) -> ValidationResult:
    if value is None:
        return True
    if not _is_number(value):
        return _error(ErrorKind.NOT_A_NUMBER, value)
    if integer and not float(value).is_integer():
        return _error(ErrorKind.NOT_AN_INTEGER, value)
    if gte is not None and value < gte:
        return _error(ErrorKind.GREATER_THAN_OR_EQUAL_TO, value, gte=gte)
    if lte is not None and value > lte:
        return _error(ErrorKind.LESS_THAN_OR_EQUAL_TO, value, lte=lte)
    return True


def check_inclusion(value: Any, *, allowed: Iterable[str], allow_blank: bool = False) -> ValidationResult:
    if allow_blank and is_empty(value):
        return True
    allowed = list(allowed)
    if value not in allowed:
        return _error(ErrorKind.INCLUSION, value, **{"in": allowed})
    return True


def check_date(value: Any, *, allow_blank: bool = False) -> ValidationResult:
    if allow_blank and is_empty(value):
        return True
    if isinstance(value, (date, datetime)):
        return True
    if isinstance(value, str):
        text = value.strip()
        for parse in (date.fromisoformat, datetime.fromisoformat):
            try:
                parse(text)
                return True
            except ValueError:
                continue
    return _error(ErrorKind.DATE, value)


# ---------------------------------------------------------------------------
# Per question type validators
# ---------------------------------------------------------------------------


def validate_required(question: Question, value: Any) -> ValidationResult:
    return question.optional or check_presence(value)


def validate_text(question: Question, value: Any) -> ValidationResult:
    return check_length(value, max_length=question.text_max_length)


def validate_textarea(question: Question, value: Any) -> ValidationResult:
    return check_length(value, max_length=question.textarea_max_length)


def validate_integer(question: Question, value: Any) -> ValidationResult:
    return check_number(
        value, integer=True, gte=question.integer_min_value, lte=question.integer_max_value
    )


def validate_float(question: Question, value: Any) -> ValidationResult:
    return check_number(value, gte=question.float_min_value, lte=question.float_max_value)


def validate_choice(question: Question, value: Any) -> ValidationResult:
    return check_inclusion(value, allowed=question.option_slugs("choice_options"), allow_blank=True)


def validate_multiple_choice(question: Question, value: Any) -> ValidationResult:
    if not value:
        return True
    allowed = question.option_slugs("multiple_choice_options")
    return [check_inclusion(item, allowed=allowed) for item in value]


def validate_dynamic_choice(question: Question, value: Any) -> ValidationResult:
    return check_inclusion(value, allowed=question.option_slugs("dynamic_choice_options"))


def validate_dynamic_multiple_choice(question: Question, value: Any) -> ValidationResult:
    if not value:
        return True
    allowed = question.option_slugs("dynamic_multiple_choice_options")
    return [check_inclusion(item, allowed=allowed) for item in value]


def validate_date(question: Question, value: Any) -> ValidationResult:
    return check_date(value, allow_blank=True)


async def validate_nothing(question: Question, value: Any) -> ValidationResult:
    """File, table, static and form answers have no intrinsic value rules."""
    return True


# Total table: one validator per question type. Not mutated at runtime.
VALIDATORS: Dict[QuestionType, Validator] = {
    QuestionType.TEXT: validate_text,
    QuestionType.TEXTAREA: validate_textarea,
    QuestionType.INTEGER: validate_integer,
    QuestionType.FLOAT: validate_float,
    QuestionType.CHOICE: validate_choice,
    QuestionType.MULTIPLE_CHOICE: validate_multiple_choice,
    QuestionType.DYNAMIC_CHOICE: validate_dynamic_choice,
    QuestionType.DYNAMIC_MULTIPLE_CHOICE: validate_dynamic_multiple_choice,
    QuestionType.DATE: validate_date,
    QuestionType.FILE: validate_nothing,
    QuestionType.TABLE: validate_nothing,
    QuestionType.STATIC: validate_nothing,
    QuestionType.FORM: validate_nothing,
}


def rules_for(question: Question) -> List[Validator]:
    """Return the validators that apply to ``question`` in run order."""
    specific = VALIDATORS.get(question.type)
    if specific is None:
        raise PreconditionViolation(f"Missing validation function for {question.type.value}")
    rules: List[Validator] = []
    if not question.hidden:
        rules.append(validate_required)
    rules.append(specific)
    return rules


async def _run_rule(rule: Validator, question: Question, value: Any) -> list:
    result = rule(question, value)
    if inspect.isawaitable(result):
        result = await result
    return result if isinstance(result, list) else [result]


async def run_validation(question: Question, value: Any) -> List[ValidationErrorDescriptor]:
    """Run all applicable rules concurrently and return the flattened errors.

    Order follows the rule order, then each rule's own result order.
    """
    rules = rules_for(question)
    results = await asyncio.gather(*(_run_rule(rule, question, value) for rule in rules))
    return [item for result in results for item in result if isinstance(item, ValidationErrorDescriptor)]


__all__ = [
    "ErrorKind",
    "ValidationErrorDescriptor",
    "VALIDATORS",
    "check_presence",
    "check_length",
    "check_number",
    "check_inclusion",
    "check_date",
    "is_blank",
    "is_empty",
    "validate_required",
    "rules_for",
    "run_validation",
]
