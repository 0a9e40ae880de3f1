"""Functional tests for field construction and derived state.

Covers the question-type to answer-type mapping, default answer synthesis,
field identity, precondition failures and navigation visibility.
"""

from __future__ import annotations

import copy

import pytest

from fieldengine.logic.errors import PreconditionViolation
from fieldengine.logic.field import Field
from fieldengine.models.question_kind import TYPE_MAP, VALUE_KEYS, QuestionType

from field_builders import answer, build_document, question


class _Doc:
    id = "doc-1"
    parent_field = None

    def find_field(self, slug):  # pragma: no cover - rules unused here
        raise PreconditionViolation(slug)


@pytest.mark.parametrize("question_type", list(QuestionType))
def test_field_has_answer_iff_type_map_yields_answer_type(question_type, context):
    field = Field(question=question(f"q-{question_type.name.lower()}", question_type.value), document=_Doc(), context=context)
    expected = TYPE_MAP[question_type]
    # Assert: answer presence follows the type map
    assert (field.answer is not None) == (expected is not None)
    if expected is not None:
        # Assert: synthesized answer carries the mapped type and an empty value
        assert field.answer.type == expected
        assert field.answer.value is None
        assert field.answer.question_slug == f"q-{question_type.name.lower()}"


def test_static_question_maps_to_no_answer():
    assert TYPE_MAP[QuestionType.STATIC] is None
    assert TYPE_MAP[QuestionType.TEXT].value == "StringAnswer"
    assert TYPE_MAP[QuestionType.MULTIPLE_CHOICE].value == "ListAnswer"
    assert VALUE_KEYS[TYPE_MAP[QuestionType.DATE]] == "dateValue"


def test_missing_context_is_a_precondition_violation():
    with pytest.raises(PreconditionViolation):
        Field(question=question("q", "TextQuestion"), document=_Doc(), context=None)


def test_missing_question_payload_is_a_precondition_violation(context):
    with pytest.raises(PreconditionViolation):
        Field(question=None, document=_Doc(), context=context)


def test_field_id_combines_document_id_and_question_slug(context):
    field = Field(question=question("first-name", "TextQuestion"), document=_Doc(), context=context)
    assert field.id == "Document:doc-1:Question:first-name"


def test_raw_payloads_are_not_mutated(context):
    raw_question = question("age", "IntegerQuestion", integerMaxValue=10)
    raw_answer = answer("age", "IntegerAnswer", 3, answer_id="QW5zd2VyOjE=")
    before_q, before_a = copy.deepcopy(raw_question), copy.deepcopy(raw_answer)

    field = Field(question=raw_question, answer=raw_answer, document=_Doc(), context=context)

    # Assert: construction builds new objects with back-references
    assert raw_question == before_q
    assert raw_answer == before_a
    assert field.question.field is field
    assert field.answer.value == 3


def test_existing_answer_is_not_new(context):
    field = Field(
        question=question("name", "TextQuestion"),
        answer=answer("name", "StringAnswer", "Ada", answer_id="U3RyaW5nQW5zd2VyOjEyMw=="),
        document=_Doc(),
        context=context,
    )
    assert field.answer.value == "Ada"
    assert field.is_new is False


def test_synthesized_answer_is_new_and_valid_until_validated(context):
    field = Field(question=question("name", "TextQuestion"), document=_Doc(), context=context)
    assert field.is_new is True
    assert field.is_valid is True
    assert field.is_invalid is False
    assert field.errors == []
    assert field.dependent_fields == {"isRequired": [], "isHidden": []}


def test_options_accept_connection_shape(context):
    raw = question(
        "color",
        "ChoiceQuestion",
        choiceOptions={"edges": [{"node": {"slug": "red", "label": "Red"}}, {"node": {"slug": "blue"}}]},
        multipleChoiceOptions=["a", "b"],
    )
    field = Field(question=raw, document=_Doc(), context=context)
    assert field.question.option_slugs("choice_options") == ["red", "blue"]
    assert field.question.option_slugs("multiple_choice_options") == ["a", "b"]


def test_static_flags_set_initial_hidden_and_optional(context):
    field = Field(
        question=question("note", "TextQuestion", isHidden="true", isRequired="false"),
        document=_Doc(),
        context=context,
    )
    assert field.hidden is True
    assert field.optional is True


def test_form_field_visible_in_navigation_only_with_visible_children(context):
    doc = build_document(
        context,
        [
            question(
                "personal",
                "FormQuestion",
                subForm={"slug": "personal-form", "questions": [question("first-name", "TextQuestion")]},
            ),
            question(
                "empty-section",
                "FormQuestion",
                subForm={"slug": "empty", "questions": [question("secret", "TextQuestion", isHidden=True)]},
            ),
            question("hidden-section", "FormQuestion", isHidden=True, subForm={"slug": "x", "questions": [question("inner", "TextQuestion")]}),
            question("no-subform", "FormQuestion"),
            question("plain", "TextQuestion"),
        ],
    )
    by_slug = {f.question.slug: f for f in doc.fields}
    # Assert: visible sub-form with a visible child shows in navigation
    assert by_slug["personal"].visible_in_navigation is True
    # Assert: every other combination does not
    assert by_slug["empty-section"].visible_in_navigation is False
    assert by_slug["hidden-section"].visible_in_navigation is False
    assert by_slug["no-subform"].visible_in_navigation is False
    assert by_slug["plain"].visible_in_navigation is False


def test_child_document_shares_document_id_and_answers(context):
    doc = build_document(
        context,
        [question("personal", "FormQuestion", subForm={"slug": "p", "questions": [question("first-name", "TextQuestion")]})],
        answers=[answer("first-name", "StringAnswer", "Grace", answer_id="abc")],
    )
    child = doc.fields[0].child_document
    assert child.id == doc.id
    assert child.fields[0].value == "Grace"
    assert doc.find_field("first-name") is child.fields[0]
    assert [f.question.slug for f in doc.all_fields] == ["personal", "first-name"]
