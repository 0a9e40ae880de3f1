"""Functional tests for hidden/required propagation between fields."""

from __future__ import annotations

import logging

import pytest

from fieldengine.logic.errors import PreconditionViolation
from fieldengine.logic.events import HIDDEN_CHANGED, VALUE_CHANGED

from field_builders import answer, build_document, question

pytestmark = pytest.mark.anyio


def _hidden_when(slug: str, *values):
    return {"question": slug, "values": list(values)}


async def test_value_change_hides_dependent_field(context):
    doc = build_document(
        context,
        [
            question("has-pets", "ChoiceQuestion", choiceOptions=["yes", "no"]),
            question("pet-name", "TextQuestion", isHidden=_hidden_when("has-pets", "no")),
        ],
    )
    source, dependent = doc.fields
    assert dependent.hidden is False
    assert source.dependent_fields["isHidden"] == [dependent]

    await source.update_value("no")
    await doc.settle()

    assert dependent.hidden is True
    assert dependent.question.hidden_task.perform_count == 1


async def test_hidden_change_cascades_through_chain(context):
    doc = build_document(
        context,
        [
            question("a", "TextQuestion"),
            question("b", "TextQuestion", isHidden=_hidden_when("a", "no")),
            question("c", "TextQuestion", isHidden=_hidden_when("b", "x")),
        ],
        answers=[answer("a", "StringAnswer", "no"), answer("b", "StringAnswer", "x")],
    )
    a, b, c = doc.fields
    # Assert: initial state treats a hidden field as unanswered
    assert (b.hidden, c.hidden) == (True, False)

    await a.update_value("yes")
    await doc.settle()

    # Assert: b became visible, which re-exposed its answer to c
    assert (b.hidden, c.hidden) == (False, True)


async def test_required_rule_drives_optional_and_validation(context):
    doc = build_document(
        context,
        [
            question("employed", "TextQuestion"),
            question("employer", "TextQuestion", isRequired=_hidden_when("employed", True)),
        ],
    )
    source, dependent = doc.fields
    assert dependent.optional is True

    await source.update_value("TRUE")
    await doc.settle()
    assert dependent.optional is False

    await dependent.validate()
    assert [e.kind.value for e in dependent.error_descriptors] == ["blank"]


async def test_list_answer_matches_any_selected_value(context):
    doc = build_document(
        context,
        [
            question("langs", "MultipleChoiceQuestion", multipleChoiceOptions=["py", "js", "go"]),
            question("py-version", "IntegerQuestion", isHidden=_hidden_when("langs", "js")),
        ],
    )
    langs, dependent = doc.fields
    await langs.update_value(["py", "js"])
    await doc.settle()
    assert dependent.hidden is True
    await langs.update_value(["py"])
    await doc.settle()
    assert dependent.hidden is False


async def test_numeric_answers_compare_canonically(context):
    doc = build_document(
        context,
        [
            question("age", "IntegerQuestion"),
            question("guardian", "TextQuestion", isHidden=_hidden_when("age", "18", 19)),
        ],
    )
    age, guardian = doc.fields
    await age.update_value(18.0)
    await doc.settle()
    assert guardian.hidden is True


async def test_hidden_form_field_hides_its_sub_form(context):
    doc = build_document(
        context,
        [
            question("skip", "TextQuestion"),
            question(
                "details",
                "FormQuestion",
                isHidden=_hidden_when("skip", "yes"),
                subForm={"slug": "details-form", "questions": [question("street", "TextQuestion")]},
            ),
        ],
    )
    skip, section = doc.fields
    street = section.child_document.fields[0]
    assert section.visible_in_navigation is True
    assert section.dependent_fields["isHidden"] == [street]

    await skip.update_value("yes")
    await doc.settle()

    assert section.hidden is True
    assert street.hidden is True
    assert section.visible_in_navigation is False


async def test_child_rule_can_reference_root_field(context):
    doc = build_document(
        context,
        [
            question("country", "TextQuestion"),
            question(
                "address",
                "FormQuestion",
                subForm={
                    "slug": "address-form",
                    "questions": {"edges": [{"node": question("canton", "TextQuestion", isHidden=_hidden_when("country", "DE"))}]},
                },
            ),
        ],
    )
    country = doc.fields[0]
    canton = doc.find_field("canton")
    await country.update_value("DE")
    await doc.settle()
    assert canton.hidden is True


def test_unknown_dependency_slug_is_rejected(context):
    with pytest.raises(PreconditionViolation):
        build_document(context, [question("b", "TextQuestion", isHidden=_hidden_when("missing", "x"))])


def test_dependency_cycle_is_logged(context, caplog):
    caplog.set_level(logging.WARNING, logger="fieldengine.logic.document")
    doc = build_document(
        context,
        [
            question("a", "TextQuestion", isHidden=_hidden_when("b", "x")),
            question("b", "TextQuestion", isHidden=_hidden_when("a", "y")),
        ],
    )
    # Assert: the document still builds with a stable state
    assert [f.hidden for f in doc.fields] == [False, False]
    assert any("document.dependency_cycle" in r.getMessage() for r in caplog.records)


def test_register_dependent_field_deduplicates_and_checks_key(context):
    doc = build_document(context, [question("a", "TextQuestion"), question("b", "TextQuestion")])
    a, b = doc.fields
    a.register_dependent_field(b, "isRequired")
    a.register_dependent_field(b, "isRequired")
    assert a.dependent_fields["isRequired"] == [b]
    with pytest.raises(PreconditionViolation):
        a.register_dependent_field(b, "isReadOnly")


async def test_custom_subscribers_receive_field_events(context):
    doc = build_document(
        context,
        [question("a", "TextQuestion"), question("b", "TextQuestion", isHidden=_hidden_when("a", "hide"))],
    )
    a, b = doc.fields
    seen = []
    a.on(VALUE_CHANGED, lambda: seen.append("a.value"))
    b.on(HIDDEN_CHANGED, lambda: seen.append("b.hidden"))

    await a.update_value("hide")
    await doc.settle()

    assert seen == ["a.value", "b.hidden"]


def test_find_field_searches_whole_tree(context):
    doc = build_document(
        context,
        [question("sec", "FormQuestion", subForm={"slug": "f", "questions": [question("inner", "TextQuestion")]})],
    )
    inner = doc.find_field("inner")
    assert inner.document is doc.fields[0].child_document
    assert inner.document.find_field("sec") is doc.fields[0]
    with pytest.raises(PreconditionViolation):
        doc.find_field("nope")
