"""Document and field endpoints.

Implements:
- POST /documents                         build a live document from a form
- GET  /documents/{document_id}           document with all field views
- GET  /documents/{document_id}/fields/{slug}
- PATCH /documents/{document_id}/fields/{slug}
  - sets the value, validates, saves when valid and waits for dependent
    fields to settle before answering
"""

from __future__ import annotations

import asyncio
import logging
import uuid

import anyio
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from fieldengine.http.problem import problem_response
from fieldengine.logic.context import FieldContext
from fieldengine.logic.document import Document
from fieldengine.logic.errors import PersistenceError, PreconditionViolation
from fieldengine.logic.field import Field
from fieldengine.logic.inmemory_state import DOCUMENTS_STORE
from fieldengine.logic.persistence import SAVE_OPERATIONS
from fieldengine.models.response_types import (
    DocumentCreate,
    DocumentView,
    ErrorDescriptorView,
    FieldView,
    ValueUpdate,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def field_view(field: Field) -> FieldView:
    answer = field.answer
    children = [field_view(child) for child in field.child_document.fields] if field.child_document else []
    return FieldView(
        id=field.id,
        slug=field.question.slug,
        question_type=field.question_type.value,
        answer_id=answer.id if answer is not None else None,
        answer_type=answer.type.value if answer is not None else None,
        value=field.value,
        is_new=field.is_new,
        is_valid=field.is_valid,
        hidden=field.hidden,
        optional=field.optional,
        visible_in_navigation=field.visible_in_navigation,
        errors=field.errors,
        error_descriptors=[
            ErrorDescriptorView(kind=e.kind.value, context=e.context, value=e.value)
            for e in field.error_descriptors
        ],
        children=children,
    )


def document_view(document: Document) -> DocumentView:
    return DocumentView(
        id=document.id,
        form=document.form_slug,
        fields=[field_view(field) for field in document.fields],
    )


async def _finished(task: asyncio.Task) -> bool:
    """Wait for a field task; False when a newer invocation superseded it.

    Failures of the task are re-raised. Cancellation of the calling request
    propagates from ``asyncio.wait`` itself.
    """
    await asyncio.wait({task})
    if task.cancelled():
        return False
    task.result()
    return True


def _context(request: Request) -> FieldContext:
    return request.app.state.field_context


def _lookup(document_id: str, slug: str | None = None):
    document = DOCUMENTS_STORE.get(document_id)
    if document is None:
        return None, problem_response(404, "Not Found", f"document {document_id} not found", code="DOCUMENT_NOT_FOUND")
    if slug is None:
        return document, None
    try:
        return document.find_field(slug), None
    except PreconditionViolation:
        return None, problem_response(404, "Not Found", f"question {slug} not found", code="FIELD_NOT_FOUND")


@router.post("/documents", summary="Build a live document from a form", status_code=201)
async def create_document(body: DocumentCreate, request: Request):
    context = _context(request)
    document_id = body.id or str(uuid.uuid4())
    if document_id in DOCUMENTS_STORE:
        return problem_response(409, "Conflict", f"document {document_id} already exists", code="DOCUMENT_EXISTS")

    answers = body.answers
    if answers is None:
        loader = getattr(context.adapter, "load_answers", None)
        try:
            answers = await anyio.to_thread.run_sync(loader, document_id) if loader is not None else []
        except PersistenceError as exc:
            return problem_response(502, "Bad Gateway", str(exc), code="PERSISTENCE_FAILED")

    raw = {"id": document_id, "form": body.form.model_dump(), "answers": answers}
    try:
        document = Document(raw, context=context)
    except (PreconditionViolation, PydanticValidationError, ValueError) as exc:
        logger.warning("documents.create_rejected document_id=%s error=%s", document_id, exc)
        return problem_response(422, "Invalid Form", str(exc), code="FORM_INVALID")

    DOCUMENTS_STORE[document_id] = document
    logger.info("documents.created document_id=%s fields=%s", document_id, len(document.all_fields))
    return JSONResponse(document_view(document).model_dump(mode="json"), status_code=201)


@router.get("/documents/{document_id}", summary="Get a document with its fields")
async def get_document(document_id: str):
    document, problem = _lookup(document_id)
    if problem is not None:
        return problem
    return document_view(document).model_dump(mode="json")


@router.get("/documents/{document_id}/fields/{slug}", summary="Get one field")
async def get_field(document_id: str, slug: str):
    field, problem = _lookup(document_id, slug)
    if problem is not None:
        return problem
    return field_view(field).model_dump(mode="json")


@router.patch("/documents/{document_id}/fields/{slug}", summary="Update, validate and save a field value")
async def update_field(document_id: str, slug: str, body: ValueUpdate):
    field, problem = _lookup(document_id, slug)
    if problem is not None:
        return problem
    if field.answer is None:
        return problem_response(
            409, "Conflict", f"{field.question_type.value} fields carry no value", code="FIELD_HAS_NO_VALUE"
        )

    if SAVE_OPERATIONS[field.answer.type] is None:
        return problem_response(
            409, "Conflict", f"{field.question_type.value} fields are not saved directly", code="FIELD_NOT_SAVABLE"
        )

    if not await _finished(field.update_value(body.value)):
        logger.info("documents.patch_superseded field_id=%s stage=validate", field.id)
        await field.document.settle()
        return field_view(field).model_dump(mode="json")
    if field.is_invalid:
        await field.document.settle()
        view = field_view(field)
        return problem_response(
            422,
            "Invalid Value",
            "; ".join(view.errors),
            code="FIELD_INVALID",
            errors=view.errors,
            field=view.model_dump(mode="json"),
        )

    try:
        saved = await _finished(field.save())
    except PersistenceError as exc:
        await field.document.settle()
        return problem_response(502, "Bad Gateway", str(exc), code="PERSISTENCE_FAILED", operation=exc.operation)
    if not saved:
        logger.info("documents.patch_superseded field_id=%s stage=save", field.id)

    await field.document.settle()
    return field_view(field).model_dump(mode="json")


__all__ = ["router", "field_view", "document_view"]
