"""Functional tests for Field.save(): mutation selection, merging and restarts."""

from __future__ import annotations

import asyncio

import pytest

from fieldengine.logic.errors import PersistenceError, PreconditionViolation
from fieldengine.logic.persistence import encode_id

from field_builders import answer, build_document, question

pytestmark = pytest.mark.anyio


async def _drain(rounds: int = 5) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


async def test_save_new_value_uses_typed_mutation_and_merges_id(context, adapter):
    field = build_document(context, [question("name", "TextQuestion")]).fields[0]
    field.answer.value = "Ada"
    assert field.is_new

    await field.save()

    # Assert: one call with the typed mutation and full input
    assert adapter.calls == [
        {
            "operation": "saveDocumentStringAnswer",
            "variables": {"input": {"question": "name", "document": "doc-1", "value": "Ada"}},
            "result_path": "saveDocumentStringAnswer.answer",
        }
    ]
    # Assert: the returned id is merged into the answer
    assert field.answer.id == encode_id("StringAnswer", "answer-1")
    assert field.is_new is False


@pytest.mark.parametrize(
    "type_name, value, operation",
    [
        ("IntegerQuestion", 3, "saveDocumentIntegerAnswer"),
        ("FloatQuestion", 0.5, "saveDocumentFloatAnswer"),
        ("MultipleChoiceQuestion", ["a"], "saveDocumentListAnswer"),
        ("DateQuestion", "2024-05-01", "saveDocumentDateAnswer"),
        ("TableQuestion", ["row-1"], "saveDocumentTableAnswer"),
        ("FileQuestion", {"name": "plan.pdf"}, "saveDocumentFileAnswer"),
    ],
)
async def test_each_answer_type_has_its_own_mutation(context, adapter, type_name, value, operation):
    field = build_document(context, [question("q", type_name)]).fields[0]
    field.answer.value = value
    await field.save()
    assert [call["operation"] for call in adapter.calls] == [operation]


async def test_backend_normalized_value_is_merged(context, adapter):
    async def normalizing_mutate(operation, variables, result_path):
        adapter.calls.append({"operation": operation.name})
        return {"id": "answer-9", "__typename": "IntegerAnswer", "integerValue": int(variables["input"]["value"])}

    adapter.mutate = normalizing_mutate
    field = build_document(context, [question("count", "IntegerQuestion")]).fields[0]
    field.answer.value = 7.0
    await field.save()
    assert field.value == 7 and isinstance(field.value, int)
    assert field.answer.id == "answer-9"


async def test_empty_value_on_never_saved_answer_issues_no_call(context, adapter):
    field = build_document(context, [question("name", "TextQuestion")]).fields[0]
    result = await field.save()
    assert result is None
    assert adapter.calls == []


@pytest.mark.parametrize("empty", [None, "", []])
async def test_empty_value_on_saved_answer_removes_it(context, adapter, empty):
    saved_id = encode_id("StringAnswer", "42")
    doc = build_document(
        context,
        [question("name", "TextQuestion")],
        answers=[answer("name", "StringAnswer", "Ada", answer_id=saved_id)],
    )
    field = doc.fields[0]
    field.answer.value = empty

    await field.save()

    # Assert: remove is called with the decoded raw id
    assert adapter.calls == [
        {"operation": "removeAnswer", "variables": {"input": {"answer": "42"}}, "result_path": "removeAnswer.answer"}
    ]
    assert field.answer.id is None
    assert field.is_new


async def test_restarted_save_keeps_only_latest_result(context, adapter):
    field = build_document(context, [question("name", "TextQuestion")]).fields[0]
    first_gate = asyncio.Event()
    adapter.gates.append(first_gate)

    field.answer.value = "first"
    first = field.save()
    await _drain()
    field.answer.value = "second"
    second = field.save()
    await second

    first_gate.set()
    await _drain()

    # Assert: the superseded invocation was cancelled but its request completed
    assert first.cancelled()
    assert [call["variables"]["input"]["value"] for call in adapter.calls] == ["first", "second"]
    assert len(adapter.completed) == 2
    # Assert: only the latest invocation committed its result
    assert field.answer.id == encode_id("StringAnswer", "answer-1")
    assert field.value == "second"
    assert field.save_task.perform_count == 2


async def test_persistence_failure_propagates_and_leaves_answer_untouched(context, adapter):
    field = build_document(context, [question("name", "TextQuestion")]).fields[0]
    adapter.fail_with = PersistenceError("backend down", operation="saveDocumentStringAnswer")
    field.answer.value = "Ada"

    with pytest.raises(PersistenceError) as exc:
        await field.save()
    assert exc.value.operation == "saveDocumentStringAnswer"
    assert field.answer.id is None
    assert field.value == "Ada"


async def test_static_field_cannot_be_saved(context):
    field = build_document(context, [question("intro", "StaticQuestion")]).fields[0]
    with pytest.raises(PreconditionViolation):
        await field.save()


async def test_form_answer_with_value_has_no_save_operation(context):
    field = build_document(context, [question("section", "FormQuestion")]).fields[0]
    field.answer.value = ["anything"]
    with pytest.raises(PreconditionViolation):
        await field.save()


async def test_update_value_on_static_field_is_rejected(context):
    field = build_document(context, [question("intro", "StaticQuestion")]).fields[0]
    with pytest.raises(PreconditionViolation):
        field.update_value("x")
