"""Pydantic models for HTTP request and response bodies."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class FormPayload(BaseModel):
    slug: str
    questions: List[Dict[str, Any]] = Field(default_factory=list)


class DocumentCreate(BaseModel):
    id: Optional[str] = None
    form: FormPayload
    # None means: load stored answers through the persistence backend
    answers: Optional[List[Dict[str, Any]]] = None


class ValueUpdate(BaseModel):
    value: Any = None


class ErrorDescriptorView(BaseModel):
    kind: str
    context: Dict[str, Any] = Field(default_factory=dict)
    value: Any = None


class FieldView(BaseModel):
    id: str
    slug: str
    question_type: str
    answer_id: Optional[str] = None
    answer_type: Optional[str] = None
    value: Any = None
    is_new: bool
    is_valid: bool
    hidden: bool
    optional: bool
    visible_in_navigation: bool
    errors: List[str] = Field(default_factory=list)
    error_descriptors: List[ErrorDescriptorView] = Field(default_factory=list)
    children: List["FieldView"] = Field(default_factory=list)


class DocumentView(BaseModel):
    id: str
    form: Optional[str] = None
    fields: List[FieldView]


__all__ = [
    "FormPayload",
    "DocumentCreate",
    "ValueUpdate",
    "ErrorDescriptorView",
    "FieldView",
    "DocumentView",
]
